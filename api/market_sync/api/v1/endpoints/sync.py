"""
Endpoints para sincronizacion de datos de la fuente externa (MWX).
Cada corrida se ejecuta dentro del request y devuelve su resumen.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from market_sync.api.v1.dependencies.use_case_deps import (
    get_sync_all_use_case,
    get_sync_resource_use_case,
)
from market_sync.application.dto.sync_dto import (
    SyncAllResponseDTO,
    SyncRequestDTO,
    SyncResponseDTO,
)
from market_sync.application.use_cases.sync_use_cases import SyncAllUseCase, SyncResourceUseCase
from market_sync.infrastructure.external.mwx import endpoints
from market_sync.shared.constants.sync_constants import SyncStatus


router = APIRouter(prefix="/sync", tags=["Sync"])


async def _run(
    resource: str,
    body: Optional[SyncRequestDTO],
    use_case: SyncResourceUseCase,
) -> SyncResponseDTO:
    request = (body or SyncRequestDTO()).to_request()
    summary = await use_case.execute(resource, request)
    return SyncResponseDTO.from_summary(summary)


@router.post(
    "/customers",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza clientes",
)
async def sync_customers(
    body: Optional[SyncRequestDTO] = Body(None),
    use_case: SyncResourceUseCase = Depends(get_sync_resource_use_case),
):
    """
    Sincroniza la lista publica de clientes.

    Sin fechas y en modo full trae el catalogo completo; en modo incremental
    usa el ultimo `created_at` local menos un dia.
    """
    return await _run(endpoints.CUSTOMERS, body, use_case)


@router.post(
    "/transactions",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza transacciones",
)
async def sync_transactions(
    body: Optional[SyncRequestDTO] = Body(None),
    use_case: SyncResourceUseCase = Depends(get_sync_resource_use_case),
):
    """Sincroniza transacciones (con items y cliente embebido)."""
    return await _run(endpoints.TRANSACTIONS, body, use_case)


@router.post(
    "/back-office-transactions",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza transacciones del back-office",
)
async def sync_back_office_transactions(
    body: Optional[SyncRequestDTO] = Body(None),
    use_case: SyncResourceUseCase = Depends(get_sync_resource_use_case),
):
    """Lista back-office: autenticada con token, re-autentica una vez ante 401."""
    return await _run(endpoints.BACK_OFFICE_TRANSACTIONS, body, use_case)


@router.post(
    "/usage",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza movimientos de creditos",
)
async def sync_usage(
    body: Optional[SyncRequestDTO] = Body(None),
    use_case: SyncResourceUseCase = Depends(get_sync_resource_use_case),
):
    return await _run(endpoints.USAGE, body, use_case)


@router.post(
    "/all",
    response_model=SyncAllResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza clientes, transacciones y uso",
    responses={207: {"model": SyncAllResponseDTO, "description": "Algun recurso fallo"}},
)
async def sync_all(
    response: Response,
    use_case: SyncAllUseCase = Depends(get_sync_all_use_case),
):
    """
    Ejecuta en orden clientes -> transacciones -> uso, todos incrementales.
    Responde 207 si algun recurso termino con errores.
    """
    result = await use_case.execute()
    if result.status is not SyncStatus.SUCCESS:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return SyncAllResponseDTO.from_result(result)
