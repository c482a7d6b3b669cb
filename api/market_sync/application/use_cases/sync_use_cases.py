"""
Casos de uso de sincronizacion (fuente MWX -> base local).

El coordinador recorre las paginas de un recurso, normaliza cada registro y lo
escribe de forma idempotente, una unidad de trabajo por registro. Un error de
registro se cuenta y no detiene la corrida; un error de la fuente la termina.

Maquina de estados de una corrida:
    IDLE -> FETCHING -> NORMALIZING -> UPSERTING -> DECIDING -> (FETCHING | DONE)
    FETCHING -> FAILED (solo por SourceFetchError)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from market_sync.application.use_cases.sync_resources import (
    SyncResource,
    get_resource,
)
from market_sync.application.use_cases.sync_window import (
    SyncWindow,
    full_window,
    incremental_window,
)
from market_sync.core.config import Settings, settings as default_settings
from market_sync.infrastructure.external.mwx import MwxSourceClient, SourcePage, SourceQuery
from market_sync.infrastructure.external.mwx import endpoints
from market_sync.infrastructure.repositories.upsert_repository import UpsertRepository
from market_sync.shared.constants.sync_constants import RunState, SyncMode, SyncStatus
from market_sync.shared.exceptions.base import AppException
from market_sync.shared.exceptions.sync import (
    DuplicateInRunError,
    MissingIdentifierError,
    SourceFetchError,
    UpsertError,
)
from market_sync.shared.utils.datetime_utils import DateTimeUtils


@dataclass
class SyncRequest:
    """Parametros de una corrida."""
    mode: SyncMode = SyncMode.FULL
    limit: Optional[int] = None
    page: int = 1
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    customer_guid: Optional[str] = None
    filter: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncRunSummary:
    """Resumen de una corrida, devuelto al caller."""
    resource: str
    mode: SyncMode = SyncMode.FULL
    status: SyncStatus = SyncStatus.SUCCESS
    state: RunState = RunState.IDLE
    total_processed: int = 0
    success_count: int = 0
    error_count: int = 0
    duplicate_count: int = 0
    detail_error_count: int = 0
    pages_fetched: int = 0
    total_pages: Optional[int] = None
    window_start: Optional[date] = None
    window_end: Optional[date] = None
    sample_errors: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    failure: Optional[AppException] = field(default=None, repr=False)

    def record_error(self, guid: Optional[str], error: str, sample_size: int) -> None:
        self.error_count += 1
        if len(self.sample_errors) < sample_size:
            self.sample_errors.append({"guid": guid, "error": error})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "mode": self.mode.value,
            "status": self.status.value,
            "state": self.state.value,
            "total_processed": self.total_processed,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "duplicate_count": self.duplicate_count,
            "detail_error_count": self.detail_error_count,
            "pages_fetched": self.pages_fetched,
            "total_pages": self.total_pages,
            "window_start": self.window_start.isoformat() if self.window_start else None,
            "window_end": self.window_end.isoformat() if self.window_end else None,
            "sample_errors": list(self.sample_errors),
            "message": self.message,
            "started_at": DateTimeUtils.to_iso_string(self.started_at),
            "finished_at": DateTimeUtils.to_iso_string(self.finished_at),
        }


# Estados que no cuentan como fallo en el sync completo
OK_STATUSES = (SyncStatus.SUCCESS, SyncStatus.SYNC_COMPLETED)


def _raw_guid(raw: Any) -> Optional[str]:
    if isinstance(raw, dict):
        value = raw.get("guid") or raw.get("id")
        return str(value) if value else None
    return None


class SyncRunCoordinator:
    """
    Ejecuta una corrida de sync para un recurso.

    Uso:
        coordinator = SyncRunCoordinator(source, database.session_factory)
        summary = await coordinator.run("customers", SyncRequest(mode=SyncMode.INCREMENTAL))
    """

    def __init__(
        self,
        source: MwxSourceClient,
        session_factory: async_sessionmaker,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = DateTimeUtils.now_utc,
    ):
        self._source = source
        self._session_factory = session_factory
        self._settings = settings or default_settings
        self._clock = clock

    async def resolve_window(self, resource: SyncResource, request: SyncRequest) -> SyncWindow:
        """Ventana de la corrida segun el modo."""
        now = self._clock()
        if request.mode is SyncMode.INCREMENTAL:
            async with self._session_factory() as session:
                last_created_at = await UpsertRepository(session).max_created_at(resource.model)
            return incremental_window(
                last_created_at,
                now,
                overlap_days=self._settings.SYNC_OVERLAP_DAYS,
                fallback_days=self._settings.SYNC_FULL_WINDOW_DAYS,
            )
        return full_window(
            request.start_date,
            request.end_date,
            now,
            default_days=self._settings.SYNC_FULL_WINDOW_DAYS,
            allow_unbounded=resource.unbounded_full_window,
        )

    async def run(
        self,
        resource: Union[str, SyncResource],
        request: Optional[SyncRequest] = None,
    ) -> SyncRunSummary:
        """
        Ejecuta la corrida completa.

        Args:
            resource: Nombre o descriptor del recurso
            request: Parametros de la corrida

        Returns:
            SyncRunSummary. Si la fuente falla, `status=error`, `state=failed`
            y `failure` contiene la excepcion; lo ya escrito queda escrito.
        """
        res = get_resource(resource) if isinstance(resource, str) else resource
        request = request or SyncRequest()
        endpoint = self._source.endpoint(res.endpoint)
        limit = self._source.clamp_page_size(request.limit, endpoint)
        max_pages = max(1, self._settings.SYNC_MAX_PAGES)

        summary = SyncRunSummary(resource=res.name, mode=request.mode, started_at=self._clock())
        window = await self.resolve_window(res, request)
        summary.window_start = window.start
        summary.window_end = window.end

        query = SourceQuery(
            start_date=window.start,
            end_date=window.end,
            status=request.status,
            customer_guid=request.customer_guid,
            extra=dict(request.filter or {}),
        )

        logger.info(
            f"[{res.name}] Inicio de sync: modo={request.mode.value} "
            f"ventana={window.start or '-'}..{window.end or '-'} limite={limit}"
        )

        seen: Set[str] = set()
        page = max(1, int(request.page or 1))
        # Registros de las paginas anteriores a la inicial, para comparar contra total_data
        skipped_before = (page - 1) * limit

        try:
            while True:
                summary.state = RunState.FETCHING
                source_page = await self._source.fetch_page(endpoint, page, query, limit)
                summary.pages_fetched += 1
                if source_page.total_pages is not None:
                    summary.total_pages = source_page.total_pages

                logger.info(
                    f"[{res.name}] Pagina {page}: {len(source_page)} registros "
                    f"(total_pages={source_page.total_pages}, total_data={source_page.total_count})"
                )

                if not source_page.records:
                    break

                await self._process_page(res, source_page, seen, summary)

                summary.state = RunState.DECIDING
                if self._should_stop(res, source_page, limit, summary, max_pages, skipped_before):
                    break
                page += 1
        except SourceFetchError as e:
            summary.state = RunState.FAILED
            summary.status = SyncStatus.ERROR
            summary.message = e.message
            summary.failure = e
            summary.finished_at = self._clock()
            logger.error(
                f"[{res.name}] Sync abortado en pagina {page}: {e.message} "
                f"(procesados={summary.total_processed}, ok={summary.success_count})"
            )
            return summary

        summary.state = RunState.DONE
        summary.finished_at = self._clock()
        if summary.total_processed == 0:
            summary.status = SyncStatus.SYNC_COMPLETED
            summary.message = "Sin registros para sincronizar"
            logger.info(f"[{res.name}] Sync finalizado: la fuente no devolvio registros")
        elif summary.error_count:
            summary.status = SyncStatus.PARTIAL_ERROR
            logger.warning(
                f"[{res.name}] Sync finalizado con errores: procesados={summary.total_processed} "
                f"ok={summary.success_count} errores={summary.error_count} "
                f"duplicados={summary.duplicate_count} paginas={summary.pages_fetched}"
            )
        else:
            summary.status = SyncStatus.SUCCESS
            logger.success(
                f"[{res.name}] Sync finalizado: procesados={summary.total_processed} "
                f"ok={summary.success_count} duplicados={summary.duplicate_count} "
                f"paginas={summary.pages_fetched}"
            )
        return summary

    async def _process_page(
        self,
        resource: SyncResource,
        source_page: SourcePage,
        seen: Set[str],
        summary: SyncRunSummary,
    ) -> None:
        """Normaliza y escribe cada registro; un registro = un commit."""
        sample_size = self._settings.SYNC_ERROR_SAMPLE_SIZE

        async with self._session_factory() as session:
            repo = UpsertRepository(session)
            for raw in source_page.records:
                summary.total_processed += 1
                guid = _raw_guid(raw)
                try:
                    summary.state = RunState.NORMALIZING
                    record = resource.normalize(raw)
                    guid = record.guid
                    if guid in seen:
                        raise DuplicateInRunError(guid)
                    seen.add(guid)

                    summary.state = RunState.UPSERTING
                    child_errors = await self._write(session, repo, resource, record)
                except DuplicateInRunError as e:
                    summary.duplicate_count += 1
                    logger.info(f"[{resource.name}] {e.message}")
                    continue
                except (MissingIdentifierError, UpsertError) as e:
                    summary.record_error(guid, e.message, sample_size)
                    logger.warning(f"[{resource.name}] Registro {guid or '(sin guid)'} fallido: {e.message}")
                    continue
                except Exception as e:
                    await session.rollback()
                    summary.record_error(guid, f"{type(e).__name__}: {e}", sample_size)
                    logger.exception(f"[{resource.name}] Error inesperado en el registro {guid or '(sin guid)'}")
                    continue

                summary.success_count += 1
                summary.detail_error_count += child_errors

    async def _write(
        self,
        session: AsyncSession,
        repo: UpsertRepository,
        resource: SyncResource,
        record: Any,
    ) -> int:
        try:
            child_errors = await resource.write(repo, record)
            await session.commit()
            return child_errors
        except UpsertError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            raise UpsertError(resource.name, record.guid, e) from e

    def _should_stop(
        self,
        resource: SyncResource,
        source_page: SourcePage,
        limit: int,
        summary: SyncRunSummary,
        max_pages: int,
        skipped_before: int = 0,
    ) -> bool:
        """
        Decide si la corrida termina despues de esta pagina.

        Contra `total_data` solo cuentan registros unicos: los duplicados de
        paginas solapadas no avanzan el conteo.
        """
        if len(source_page) < limit:
            return True
        current = source_page.current_page or source_page.page
        if source_page.total_pages is not None and current >= source_page.total_pages:
            return True
        unique_handled = skipped_before + summary.success_count + summary.error_count
        if source_page.total_count is not None and unique_handled >= source_page.total_count:
            return True
        if summary.pages_fetched >= max_pages:
            logger.warning(
                f"[{resource.name}] Tope de {max_pages} paginas alcanzado; se detiene la paginacion"
            )
            return True
        return False


class SyncResourceUseCase:
    """Caso de uso de una corrida individual disparada por la API o el CLI."""

    def __init__(self, coordinator: SyncRunCoordinator):
        self.coordinator = coordinator

    async def execute(self, resource: str, request: SyncRequest) -> SyncRunSummary:
        """
        Ejecuta la corrida; si la fuente fallo, propaga el error con el resumen
        parcial adjunto en `details.summary`.
        """
        summary = await self.coordinator.run(resource, request)
        if summary.failure is not None:
            summary.failure.details["summary"] = summary.to_dict()
            raise summary.failure
        return summary


@dataclass
class SyncAllResult:
    status: SyncStatus
    results: List[SyncRunSummary]
    triggered_at: datetime


class SyncAllUseCase:
    """
    Sincronizacion completa: clientes, transacciones y uso, en ese orden y en
    modo incremental. El fallo de un recurso no detiene a los siguientes.
    """

    DEFAULT_ORDER: Sequence[str] = (
        endpoints.CUSTOMERS,
        endpoints.TRANSACTIONS,
        endpoints.USAGE,
    )

    def __init__(self, coordinator: SyncRunCoordinator, order: Optional[Sequence[str]] = None):
        self.coordinator = coordinator
        self.order = tuple(order or self.DEFAULT_ORDER)

    async def execute(self) -> SyncAllResult:
        triggered_at = DateTimeUtils.now_utc()
        results: List[SyncRunSummary] = []

        for name in self.order:
            try:
                summary = await self.coordinator.run(name, SyncRequest(mode=SyncMode.INCREMENTAL))
            except AppException as e:
                logger.error(f"[{name}] No se pudo ejecutar el sync: {e.message}")
                summary = SyncRunSummary(
                    resource=name,
                    mode=SyncMode.INCREMENTAL,
                    status=SyncStatus.ERROR,
                    state=RunState.FAILED,
                    message=e.message,
                    failure=e,
                )
            results.append(summary)

        status = (
            SyncStatus.SUCCESS
            if all(r.status in OK_STATUSES for r in results)
            else SyncStatus.PARTIAL_ERROR
        )
        if status is SyncStatus.SUCCESS:
            logger.success(f"Sync completo finalizado sin errores ({len(results)} recursos)")
        else:
            logger.warning(
                "Sync completo con errores en: "
                + ", ".join(r.resource for r in results if r.status not in OK_STATUSES)
            )
        return SyncAllResult(status=status, results=results, triggered_at=triggered_at)
