"""
Casos de uso de lectura de clientes.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.application.dto.customer_dto import (
    CustomerActivityDTO,
    CustomerDTO,
    CustomerListResponseDTO,
)
from market_sync.application.services.activity_classifier import classify_activity
from market_sync.infrastructure.repositories.customer_repository import CustomerReadRepository
from market_sync.shared.constants.sync_constants import ActivityStatus
from market_sync.shared.exceptions.domain import EntityNotFoundException
from market_sync.shared.utils.datetime_utils import DateTimeUtils


class CustomerUseCases:
    """Listado de clientes y estado de actividad."""

    def __init__(self, db: AsyncSession):
        self.repository = CustomerReadRepository(db)

    async def list_customers(
        self,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
        referral: Optional[str] = None,
        churn: Optional[ActivityStatus] = None,
        now: Optional[datetime] = None,
    ) -> CustomerListResponseDTO:
        now = now or DateTimeUtils.now_utc()
        rows, total = await self.repository.list_customers(
            page=page, limit=limit, search=search, referral=referral, churn=churn, now=now
        )

        data = []
        for row in rows:
            customer = CustomerDTO.model_validate(
                {
                    **{c.name: getattr(row["customer"], c.name) for c in row["customer"].__table__.columns},
                    "total_credit": row["total_credit"],
                    "total_debit": row["total_debit"],
                    "last_debit_at": row["last_debit_at"],
                    "churn_status": classify_activity(row["last_debit_at"], now).value,
                }
            )
            data.append(customer)

        return CustomerListResponseDTO(data=data, page=page, limit=limit, total=total)

    async def get_activity(self, guid: str, now: Optional[datetime] = None) -> CustomerActivityDTO:
        """
        Estado de actividad de un cliente.

        Raises:
            EntityNotFoundException: si el cliente no existe y no tiene movimientos
        """
        last_debit_at = await self.repository.get_last_debit_at(guid)
        if last_debit_at is None and await self.repository.get_by_guid(guid) is None:
            raise EntityNotFoundException("Cliente", guid)

        return CustomerActivityDTO(
            guid=guid,
            last_debit_at=last_debit_at,
            status=classify_activity(last_debit_at, now).value,
        )
