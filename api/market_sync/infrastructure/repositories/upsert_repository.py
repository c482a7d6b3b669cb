"""
Motor de upsert idempotente (SQLAlchemy async).

Cada registro canonico se escribe con INSERT ... ON CONFLICT (guid) DO UPDATE:
- columnas mutables se sobrescriben con los valores entrantes
- `created_at` conserva el valor existente (COALESCE)
- `inserted_at` solo se escribe en el primer insert
- `updated_at` se refresca en cada upsert

Las escrituras de hijos (items) y del cliente embebido van en savepoints:
un fallo ahi no revierte la transaccion padre. El commit lo decide el caller
(una unidad de trabajo por registro).
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.domain.entities.sync_records import (
    CanonicalCustomer,
    CanonicalTransaction,
    CanonicalTransactionDetail,
    CanonicalUsage,
    TransactionUpsertResult,
)
from market_sync.infrastructure.database.models import (
    CustomerModel,
    TransactionDetailModel,
    TransactionModel,
    UsageTransactionModel,
)
from market_sync.shared.exceptions.sync import SyncConfigError, UpsertError
from market_sync.shared.utils.datetime_utils import DateTimeUtils


# Columnas que un upsert nunca pisa una vez escritas
PRESERVED_COLUMNS = ("created_at",)


class UpsertRepository:
    """Escritura idempotente de registros canonicos."""

    def __init__(self, session: AsyncSession):
        """
        Inicializa el repositorio con una sesión de base de datos.

        Args:
            session: Sesión de SQLAlchemy
        """
        self.session = session

    def _insert(self, table):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(table)
        if dialect == "sqlite":
            return sqlite_insert(table)
        raise SyncConfigError(f"Dialecto sin soporte de upsert: {dialect}")

    async def _upsert(
        self,
        model: Any,
        row: Dict[str, Any],
        *,
        kind: str,
        partial: bool = False,
        preserve: Iterable[str] = PRESERVED_COLUMNS,
    ) -> None:
        """
        Ejecuta el upsert de una fila.

        Args:
            model: Modelo ORM destino (con columna unica `guid`)
            row: Valores de columnas (incluye `guid`)
            kind: Tipo de registro, para mensajes de error
            partial: Si True las columnas sin valor no se escriben; en un insert
                toman el default del modelo y en un update conservan lo guardado
            preserve: Columnas que conservan el valor existente
        """
        table = model.__table__
        now = DateTimeUtils.now_utc()
        preserved = set(preserve)
        if partial:
            row = {column: value for column, value in row.items() if value is not None}

        stmt = self._insert(table).values(**row, inserted_at=now, updated_at=now)
        excluded = stmt.excluded

        set_: Dict[str, Any] = {}
        for column in row:
            if column == "guid":
                continue
            if column in preserved:
                set_[column] = func.coalesce(table.c[column], excluded[column])
            else:
                set_[column] = excluded[column]
        set_["updated_at"] = excluded.updated_at

        stmt = stmt.on_conflict_do_update(index_elements=[table.c.guid], set_=set_)
        try:
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise UpsertError(kind, row.get("guid"), e) from e

    async def upsert_customer(self, customer: CanonicalCustomer, partial: bool = False) -> None:
        """Inserta o actualiza un cliente por guid."""
        await self._upsert(CustomerModel, customer.to_row(), kind="customer", partial=partial)

    async def upsert_transaction_detail(self, detail: CanonicalTransactionDetail) -> None:
        """Inserta o actualiza un item de transaccion por guid."""
        await self._upsert(
            TransactionDetailModel, detail.to_row(), kind="transaction_detail", preserve=()
        )

    async def upsert_usage(self, usage: CanonicalUsage) -> None:
        """Inserta o actualiza un movimiento de credito por id de la fuente."""
        await self._upsert(UsageTransactionModel, usage.to_row(), kind="usage")

    async def upsert_transaction(self, transaction: CanonicalTransaction) -> TransactionUpsertResult:
        """
        Escribe una transaccion con sus relacionados.

        Orden:
        1. Cliente embebido (best effort, savepoint, escritura parcial)
        2. Fila de la transaccion (un error aqui se propaga)
        3. Cada item en su propio savepoint (errores se acumulan)

        Returns:
            TransactionUpsertResult con los errores de hijos
        """
        result = TransactionUpsertResult(guid=transaction.guid)

        if transaction.customer is not None:
            try:
                async with self.session.begin_nested():
                    await self.upsert_customer(transaction.customer, partial=True)
            except UpsertError as e:
                result.customer_error = e.message
                logger.warning(
                    f"No se pudo guardar el cliente {transaction.customer.guid} "
                    f"de la transaccion {transaction.guid}: {e.message}"
                )

        await self._upsert(TransactionModel, transaction.to_row(), kind="transaction")

        for detail in transaction.details:
            try:
                async with self.session.begin_nested():
                    await self.upsert_transaction_detail(detail)
                result.details_written += 1
            except UpsertError as e:
                result.detail_errors.append(e)
                logger.warning(
                    f"Item {detail.guid} de la transaccion {transaction.guid} no guardado: {e.message}"
                )

        return result

    async def max_created_at(self, model: Any) -> Optional[datetime]:
        """Mayor `created_at` de la tabla (None si esta vacia)."""
        result = await self.session.execute(select(func.max(model.created_at)))
        return DateTimeUtils.ensure_utc(result.scalar_one_or_none())
