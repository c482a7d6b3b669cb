"""
Consultas de lectura sobre transacciones (vista de dashboard).

Cada transaccion se devuelve con los datos visibles del cliente, el partner
de referidos (por codigo de referido del cliente) y sus items.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.infrastructure.database.models import (
    CustomerModel,
    ReferralPartnerModel,
    TransactionDetailModel,
    TransactionModel,
)
from market_sync.shared.utils.datetime_utils import DateTimeUtils


class TransactionReadRepository:
    """Repositorio de lectura de transacciones."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_transactions(
        self,
        *,
        page: int = 1,
        limit: int = 50,
        status: Optional[str] = None,
        currency: Optional[str] = None,
        customer_guid: Optional[str] = None,
        payment_channel: Optional[str] = None,
        referral: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Lista transacciones paginadas, mas recientes primero.

        `status` y `currency` se comparan sin distinguir mayusculas; el rango de
        fechas es inclusivo (dia completo).

        Returns:
            Tupla (filas, total)
        """
        tx = TransactionModel
        conditions = []
        if status:
            conditions.append(func.lower(tx.status) == status.strip().lower())
        if currency:
            conditions.append(func.lower(tx.valuta_code) == currency.strip().lower())
        if customer_guid:
            conditions.append(tx.customer_guid == customer_guid)
        if payment_channel:
            conditions.append(
                func.lower(tx.payment_channel_code) == payment_channel.strip().lower()
            )
        if referral:
            conditions.append(func.lower(CustomerModel.referal_code) == referral.strip().lower())
        if start_date:
            conditions.append(tx.created_at >= DateTimeUtils.start_of_day(start_date))
        if end_date:
            conditions.append(tx.created_at <= DateTimeUtils.end_of_day(end_date))

        base = (
            select(
                tx,
                CustomerModel.full_name.label("customer_full_name"),
                CustomerModel.username.label("customer_username"),
                CustomerModel.email.label("customer_email"),
                CustomerModel.referal_code.label("referal_code"),
                ReferralPartnerModel.partner.label("referral_partner"),
            )
            .outerjoin(CustomerModel, CustomerModel.guid == tx.customer_guid)
            .outerjoin(
                ReferralPartnerModel,
                func.lower(ReferralPartnerModel.code) == func.lower(CustomerModel.referal_code),
            )
            .where(*conditions)
        )

        total = await self.session.scalar(select(func.count()).select_from(base.subquery()))

        page = max(1, page)
        result = await self.session.execute(
            base.order_by(tx.created_at.desc(), tx.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = [
            {
                "transaction": transaction,
                "customer_full_name": full_name,
                "customer_username": username,
                "customer_email": email,
                "referal_code": referal_code,
                "referral_partner": partner,
                "details": [],
            }
            for transaction, full_name, username, email, referal_code, partner in result.all()
        ]

        details = await self.get_details_for([row["transaction"].guid for row in rows])
        for row in rows:
            row["details"] = details.get(row["transaction"].guid, [])

        return rows, int(total or 0)

    async def get_details_for(
        self, transaction_guids: List[str]
    ) -> Dict[str, List[TransactionDetailModel]]:
        """Items agrupados por guid de transaccion."""
        if not transaction_guids:
            return {}
        result = await self.session.execute(
            select(TransactionDetailModel)
            .where(TransactionDetailModel.transaction_guid.in_(transaction_guids))
            .order_by(TransactionDetailModel.id)
        )
        grouped: Dict[str, List[TransactionDetailModel]] = {}
        for detail in result.scalars().all():
            grouped.setdefault(detail.transaction_guid, []).append(detail)
        return grouped
