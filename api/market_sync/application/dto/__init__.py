"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import SyncRequestDTO, SyncResponseDTO, SyncAllResponseDTO
from .customer_dto import CustomerDTO, CustomerListResponseDTO, CustomerActivityDTO
from .transaction_dto import TransactionDTO, TransactionDetailDTO, TransactionListResponseDTO

__all__ = [
    "SyncRequestDTO",
    "SyncResponseDTO",
    "SyncAllResponseDTO",
    "CustomerDTO",
    "CustomerListResponseDTO",
    "CustomerActivityDTO",
    "TransactionDTO",
    "TransactionDetailDTO",
    "TransactionListResponseDTO",
]
