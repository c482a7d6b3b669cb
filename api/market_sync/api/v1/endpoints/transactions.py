"""
Endpoints de lectura de transacciones.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from market_sync.api.v1.dependencies.use_case_deps import get_transaction_use_cases
from market_sync.application.dto.transaction_dto import TransactionListResponseDTO
from market_sync.application.use_cases.transaction_use_cases import TransactionUseCases


router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=TransactionListResponseDTO)
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    status: Optional[str] = Query(None),
    currency: Optional[str] = Query(None),
    customer_guid: Optional[str] = Query(None),
    payment_channel: Optional[str] = Query(None),
    referral: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    use_cases: TransactionUseCases = Depends(get_transaction_use_cases),
):
    """Lista transacciones con cliente, partner de referido e items."""
    return await use_cases.list_transactions(
        page=page,
        limit=limit,
        status=status,
        currency=currency,
        customer_guid=customer_guid,
        payment_channel=payment_channel,
        referral=referral,
        start_date=start_date,
        end_date=end_date,
    )
