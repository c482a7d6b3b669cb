"""
Dependencias para inyeccion de casos de uso.

El handle de base de datos y el cliente de la fuente se construyen en el
startup y viven en `app.state`.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.application.use_cases.customer_use_cases import CustomerUseCases
from market_sync.application.use_cases.sync_use_cases import (
    SyncAllUseCase,
    SyncResourceUseCase,
    SyncRunCoordinator,
)
from market_sync.application.use_cases.transaction_use_cases import TransactionUseCases
from market_sync.core.config import settings
from market_sync.infrastructure.database.session import Database, get_database, get_db
from market_sync.infrastructure.external.mwx import MwxSourceClient


def get_source_client(request: Request) -> MwxSourceClient:
    """Cliente de la fuente registrado en el startup."""
    client = getattr(request.app.state, "source_client", None)
    if client is None:
        raise RuntimeError("El cliente de la fuente no fue inicializado en el startup")
    return client


def get_sync_coordinator(
    source: MwxSourceClient = Depends(get_source_client),
    database: Database = Depends(get_database),
) -> SyncRunCoordinator:
    """
    Dependencia para obtener el coordinador de corridas de sync.

    Returns:
        SyncRunCoordinator: Coordinador con su propia session factory
    """
    return SyncRunCoordinator(source, database.session_factory, settings)


def get_sync_resource_use_case(
    coordinator: SyncRunCoordinator = Depends(get_sync_coordinator),
) -> SyncResourceUseCase:
    return SyncResourceUseCase(coordinator)


def get_sync_all_use_case(
    coordinator: SyncRunCoordinator = Depends(get_sync_coordinator),
) -> SyncAllUseCase:
    return SyncAllUseCase(coordinator)


def get_customer_use_cases(
    db: AsyncSession = Depends(get_db)
) -> CustomerUseCases:
    """
    Dependencia para obtener los casos de uso de clientes.

    Returns:
        CustomerUseCases: Instancia de casos de uso de clientes
    """
    return CustomerUseCases(db)


def get_transaction_use_cases(
    db: AsyncSession = Depends(get_db)
) -> TransactionUseCases:
    return TransactionUseCases(db)
