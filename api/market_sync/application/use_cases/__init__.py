"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import SyncAllUseCase, SyncResourceUseCase, SyncRunCoordinator
from .customer_use_cases import CustomerUseCases
from .transaction_use_cases import TransactionUseCases

__all__ = [
    "SyncRunCoordinator",
    "SyncResourceUseCase",
    "SyncAllUseCase",
    "CustomerUseCases",
    "TransactionUseCases",
]
