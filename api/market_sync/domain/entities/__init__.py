"""
Entidades del dominio.
"""
from market_sync.domain.entities.sync_records import (
    CanonicalCustomer,
    CanonicalTransaction,
    CanonicalTransactionDetail,
    CanonicalUsage,
    TransactionUpsertResult,
)

__all__ = [
    "CanonicalCustomer",
    "CanonicalTransaction",
    "CanonicalTransactionDetail",
    "CanonicalUsage",
    "TransactionUpsertResult",
]
