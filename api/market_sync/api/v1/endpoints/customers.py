"""
Endpoints de lectura de clientes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from market_sync.api.v1.dependencies.use_case_deps import get_customer_use_cases
from market_sync.application.dto.customer_dto import CustomerActivityDTO, CustomerListResponseDTO
from market_sync.application.use_cases.customer_use_cases import CustomerUseCases
from market_sync.shared.constants.sync_constants import ActivityStatus


router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=CustomerListResponseDTO)
async def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = Query(None, description="Nombre, email, username o guid"),
    referral: Optional[str] = Query(None, description="Codigo de referido"),
    churn: Optional[ActivityStatus] = Query(None, description="active | idle | passive"),
    use_cases: CustomerUseCases = Depends(get_customer_use_cases),
):
    """Lista clientes con totales de creditos y estado de actividad."""
    return await use_cases.list_customers(
        page=page, limit=limit, search=search, referral=referral, churn=churn
    )


@router.get("/{guid}/activity", response_model=CustomerActivityDTO)
async def get_customer_activity(
    guid: str,
    use_cases: CustomerUseCases = Depends(get_customer_use_cases),
):
    """Estado de actividad derivado del ultimo debito del cliente."""
    return await use_cases.get_activity(guid)
