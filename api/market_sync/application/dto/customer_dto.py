"""
DTOs de lectura de clientes.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CustomerDTO(BaseModel):
    """Cliente con totales de creditos y estado de actividad."""

    model_config = ConfigDict(from_attributes=True)

    guid: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    birth_date: Optional[date] = None
    corporate_name: Optional[str] = None
    industry_name: Optional[str] = None
    employee_qty: Optional[int] = None
    solution_corporate_needs: Optional[str] = None
    referal_code: Optional[str] = None
    is_email_verified: bool = False
    is_phone_number_verified: bool = False
    is_free_trial_use: bool = False
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    total_credit: float = 0.0
    total_debit: float = 0.0
    last_debit_at: Optional[datetime] = None
    churn_status: str


class CustomerListResponseDTO(BaseModel):
    data: List[CustomerDTO]
    page: int
    limit: int
    total: int


class CustomerActivityDTO(BaseModel):
    guid: str
    last_debit_at: Optional[datetime] = None
    status: str
