"""
Servicios de aplicacion.

Contiene la logica de negocio reutilizable que no pertenece
a un caso de uso especifico.
"""
from market_sync.application.services.record_normalizer import (
    normalize_customer,
    normalize_transaction,
    normalize_transaction_detail,
    normalize_usage,
)
from market_sync.application.services.activity_classifier import (
    activity_bounds,
    classify_activity,
)

__all__ = [
    # Normalizacion de registros de la fuente
    "normalize_customer",
    "normalize_transaction",
    "normalize_transaction_detail",
    "normalize_usage",
    # Actividad de clientes
    "classify_activity",
    "activity_bounds",
]
