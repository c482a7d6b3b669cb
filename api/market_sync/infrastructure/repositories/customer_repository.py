"""
Consultas de lectura sobre clientes (vista de dashboard).

Une cada cliente con sus totales de creditos y su ultimo debito, del que se
deriva el estado de actividad. Los filtros por estado usan los mismos cortes
que el clasificador.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.application.services.activity_classifier import activity_bounds
from market_sync.infrastructure.database.models import CustomerModel, UsageTransactionModel
from market_sync.shared.constants.sync_constants import ActivityStatus, CREDIT_TYPE, DEBIT_TYPE
from market_sync.shared.utils.datetime_utils import DateTimeUtils


class CustomerReadRepository:
    """Repositorio de lectura de clientes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _last_debit_subquery():
        usage = UsageTransactionModel
        return (
            select(
                usage.user_id.label("user_id"),
                func.max(usage.created_at).label("last_debit_at"),
            )
            .where(func.lower(usage.type) == DEBIT_TYPE)
            .group_by(usage.user_id)
            .subquery("last_debit")
        )

    @staticmethod
    def _credit_totals_subquery():
        usage = UsageTransactionModel
        usage_type = func.lower(usage.type)
        return (
            select(
                usage.user_id.label("user_id"),
                func.sum(case((usage_type == CREDIT_TYPE, usage.amount), else_=0)).label("total_credit"),
                func.sum(case((usage_type == DEBIT_TYPE, usage.amount), else_=0)).label("total_debit"),
            )
            .group_by(usage.user_id)
            .subquery("credit_totals")
        )

    async def list_customers(
        self,
        *,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
        referral: Optional[str] = None,
        churn: Optional[ActivityStatus] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Lista clientes paginados, mas recientes primero.

        Returns:
            Tupla (filas, total). Cada fila trae el cliente, `last_debit_at`,
            `total_credit` y `total_debit`.
        """
        last_debit = self._last_debit_subquery()
        totals = self._credit_totals_subquery()

        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    CustomerModel.full_name.ilike(pattern),
                    CustomerModel.email.ilike(pattern),
                    CustomerModel.username.ilike(pattern),
                    CustomerModel.guid == search.strip(),
                )
            )
        if referral:
            conditions.append(func.lower(CustomerModel.referal_code) == referral.strip().lower())
        if churn is not None:
            lower, upper = activity_bounds(churn, now)
            if churn == ActivityStatus.PASSIVE:
                conditions.append(
                    or_(last_debit.c.last_debit_at.is_(None), last_debit.c.last_debit_at < upper)
                )
            else:
                bound = [last_debit.c.last_debit_at >= lower]
                if upper is not None:
                    bound.append(last_debit.c.last_debit_at < upper)
                conditions.append(and_(*bound))

        base = (
            select(
                CustomerModel,
                last_debit.c.last_debit_at,
                func.coalesce(totals.c.total_credit, 0).label("total_credit"),
                func.coalesce(totals.c.total_debit, 0).label("total_debit"),
            )
            .outerjoin(last_debit, last_debit.c.user_id == CustomerModel.guid)
            .outerjoin(totals, totals.c.user_id == CustomerModel.guid)
            .where(*conditions)
        )

        total = await self.session.scalar(select(func.count()).select_from(base.subquery()))

        page = max(1, page)
        result = await self.session.execute(
            base.order_by(CustomerModel.created_at.desc(), CustomerModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        rows = [
            {
                "customer": customer,
                "last_debit_at": DateTimeUtils.ensure_utc(last_debit_at),
                "total_credit": float(total_credit or 0),
                "total_debit": float(total_debit or 0),
            }
            for customer, last_debit_at, total_credit, total_debit in result.all()
        ]
        return rows, int(total or 0)

    async def get_by_guid(self, guid: str) -> Optional[CustomerModel]:
        result = await self.session.execute(
            select(CustomerModel).where(CustomerModel.guid == guid)
        )
        return result.scalar_one_or_none()

    async def get_last_debit_at(self, guid: str) -> Optional[datetime]:
        """Timestamp del ultimo debito del cliente (None si nunca consumio)."""
        usage = UsageTransactionModel
        result = await self.session.execute(
            select(func.max(usage.created_at)).where(
                usage.user_id == guid,
                func.lower(usage.type) == DEBIT_TYPE,
            )
        )
        return DateTimeUtils.ensure_utc(result.scalar_one_or_none())
