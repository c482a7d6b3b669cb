"""
Recursos sincronizables.

Cada recurso une un endpoint de la fuente, su normalizador, su escritura y
la tabla de la que sale la ventana incremental.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping

from market_sync.application.services.record_normalizer import (
    normalize_customer,
    normalize_transaction,
    normalize_usage,
)
from market_sync.infrastructure.database.models import (
    CustomerModel,
    TransactionModel,
    UsageTransactionModel,
)
from market_sync.infrastructure.external.mwx import endpoints
from market_sync.infrastructure.repositories.upsert_repository import UpsertRepository
from market_sync.shared.exceptions.sync import SyncConfigError


# Escribe un registro canonico y retorna la cantidad de hijos fallidos
RecordWriter = Callable[[UpsertRepository, Any], Awaitable[int]]


@dataclass(frozen=True)
class SyncResource:
    name: str
    endpoint: str
    model: Any
    normalize: Callable[[Mapping[str, Any]], Any]
    write: RecordWriter
    # Sin fechas en modo full se pide el catalogo completo
    unbounded_full_window: bool = False


async def _write_customer(repo: UpsertRepository, record: Any) -> int:
    await repo.upsert_customer(record)
    return 0


async def _write_transaction(repo: UpsertRepository, record: Any) -> int:
    result = await repo.upsert_transaction(record)
    return len(result.detail_errors) + record.skipped_details


async def _write_usage(repo: UpsertRepository, record: Any) -> int:
    await repo.upsert_usage(record)
    return 0


CUSTOMERS = SyncResource(
    name=endpoints.CUSTOMERS,
    endpoint=endpoints.CUSTOMERS,
    model=CustomerModel,
    normalize=normalize_customer,
    write=_write_customer,
    unbounded_full_window=True,
)

TRANSACTIONS = SyncResource(
    name=endpoints.TRANSACTIONS,
    endpoint=endpoints.TRANSACTIONS,
    model=TransactionModel,
    normalize=normalize_transaction,
    write=_write_transaction,
)

BACK_OFFICE_TRANSACTIONS = SyncResource(
    name=endpoints.BACK_OFFICE_TRANSACTIONS,
    endpoint=endpoints.BACK_OFFICE_TRANSACTIONS,
    model=TransactionModel,
    normalize=normalize_transaction,
    write=_write_transaction,
)

USAGE = SyncResource(
    name=endpoints.USAGE,
    endpoint=endpoints.USAGE,
    model=UsageTransactionModel,
    normalize=normalize_usage,
    write=_write_usage,
)

SYNC_RESOURCES: Dict[str, SyncResource] = {
    resource.name: resource
    for resource in (CUSTOMERS, TRANSACTIONS, BACK_OFFICE_TRANSACTIONS, USAGE)
}


def get_resource(name: str) -> SyncResource:
    try:
        return SYNC_RESOURCES[name]
    except KeyError as e:
        raise SyncConfigError(f"Recurso de sync desconocido: {name}") from e
