"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from market_sync.core.config import settings
from market_sync.infrastructure.database.session import Database
from market_sync.infrastructure.external.mwx import MwxSourceClient


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Validar configuracion critica
            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            database = Database.from_settings(settings)
            await database.create_all()
            app.state.database = database
            logger.info("Base de datos inicializada")

            # Cliente de la fuente externa (pool httpx compartido entre corridas)
            app.state.source_client = MwxSourceClient.from_settings(settings)
            logger.info(f"Cliente de la fuente configurado: {settings.MWX_API_BASE_URL}")

            # Configurar logging adicional
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")

            # Mostrar URLs disponibles
            _print_available_urls()

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.MWX_API_KEY:
        warnings.append("MWX_API_KEY no configurada - el sync de clientes y transacciones fallara")
    if not settings.CREDIT_MANAGER_TOKEN:
        warnings.append("CREDIT_MANAGER_TOKEN no configurado - el sync de uso fallara")
    if not (settings.MWX_APP_KEY and settings.MWX_IDENTIFIER and settings.MWX_PASSWORD):
        warnings.append("Credenciales back-office incompletas - el sync back-office no podra autenticarse")

    # Mostrar advertencias
    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def _print_available_urls() -> None:
    """Imprime las URLs disponibles de la aplicacion."""
    # Determinar la URL base de acceso
    if settings.HOST == "0.0.0.0":
        access_host = "localhost"
    else:
        access_host = settings.HOST

    base_url = f"http://{access_host}:{settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info("<bold><green>URLS DISPONIBLES:</green></bold>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Sync:        {base_url}/api/v1/sync/all</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        source_client = getattr(app.state, "source_client", None)
        if source_client is not None:
            await source_client.aclose()
            logger.info("Cliente de la fuente cerrado")

        # Cerrar conexiones de base de datos
        database = getattr(app.state, "database", None)
        if database is not None:
            await database.dispose()
            logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan de la aplicacion: encadena startup y shutdown."""
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
