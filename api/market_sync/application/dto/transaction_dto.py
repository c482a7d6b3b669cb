"""
DTOs de lectura de transacciones.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionDetailDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    guid: str
    transaction_guid: str
    merchant_guid: Optional[str] = None
    merchant_store_name: Optional[str] = None
    product_name: Optional[str] = None
    product_price: Optional[float] = None
    purchase_type_name: Optional[str] = None
    purchase_type_value: Optional[str] = None
    qty: Optional[int] = None
    total_discount: Optional[float] = None
    grand_total: Optional[float] = None


class TransactionDTO(BaseModel):
    """Transaccion con datos del cliente, partner de referido e items."""

    model_config = ConfigDict(from_attributes=True)

    guid: str
    invoice_number: Optional[str] = None
    customer_guid: Optional[str] = None
    status: Optional[str] = None
    payment_channel_code: Optional[str] = None
    payment_channel_name: Optional[str] = None
    valuta_code: Optional[str] = None
    qty: Optional[int] = None
    sub_total: Optional[float] = None
    platform_fee: Optional[float] = None
    payment_service_fee: Optional[float] = None
    total_discount: Optional[float] = None
    grand_total: Optional[float] = None
    created_at: Optional[datetime] = None
    customer_full_name: Optional[str] = None
    customer_username: Optional[str] = None
    customer_email: Optional[str] = None
    referal_code: Optional[str] = None
    referral_partner: Optional[str] = None
    details: List[TransactionDetailDTO] = Field(default_factory=list)


class TransactionListResponseDTO(BaseModel):
    data: List[TransactionDTO]
    page: int
    limit: int
    total: int
