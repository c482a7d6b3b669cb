"""
Casos de uso de lectura de transacciones.
"""
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.application.dto.transaction_dto import (
    TransactionDetailDTO,
    TransactionDTO,
    TransactionListResponseDTO,
)
from market_sync.infrastructure.repositories.transaction_repository import TransactionReadRepository


class TransactionUseCases:
    """Listado de transacciones con cliente, partner e items."""

    def __init__(self, db: AsyncSession):
        self.repository = TransactionReadRepository(db)

    async def list_transactions(
        self,
        page: int = 1,
        limit: int = 50,
        status: Optional[str] = None,
        currency: Optional[str] = None,
        customer_guid: Optional[str] = None,
        payment_channel: Optional[str] = None,
        referral: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TransactionListResponseDTO:
        rows, total = await self.repository.list_transactions(
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

        data = []
        for row in rows:
            tx = row["transaction"]
            data.append(
                TransactionDTO.model_validate(
                    {
                        **{c.name: getattr(tx, c.name) for c in tx.__table__.columns},
                        "customer_full_name": row["customer_full_name"],
                        "customer_username": row["customer_username"],
                        "customer_email": row["customer_email"],
                        "referal_code": row["referal_code"],
                        "referral_partner": row["referral_partner"],
                        "details": [TransactionDetailDTO.model_validate(d) for d in row["details"]],
                    }
                )
            )
        return TransactionListResponseDTO(data=data, page=page, limit=limit, total=total)
