"""
Gestión de sesiones de base de datos.

El handle `Database` (engine + session factory) se construye en el startup,
se guarda en `app.state.database` y se inyecta en los casos de uso.
"""
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from market_sync.core.config import Settings


# Base para modelos de SQLAlchemy
Base = declarative_base()


def _create_engine_args(url: str, echo: bool, pool_size: int, max_overflow: int) -> dict:
    """
    Construye los argumentos del engine segun el tipo de base de datos.
    PostgreSQL usa pool de conexiones, SQLite no lo soporta.
    """
    args = {
        "echo": echo,
        "future": True,
    }

    # Configuracion de pool solo para PostgreSQL
    if "postgresql" in url:
        args.update({
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,  # Verifica conexion antes de usar
        })
    elif url.startswith("sqlite") and ":memory:" in url:
        # Una sola conexion compartida: cada conexion en memoria es una base distinta
        args.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })

    return args


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    El driver sqlite emite BEGIN por su cuenta y rompe los SAVEPOINT;
    se desactiva y SQLAlchemy emite el BEGIN explicito.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Handle de base de datos: engine async + session factory."""

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 10,
    ):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url, **_create_engine_args(url, echo, pool_size, max_overflow)
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False
        )
        if url.startswith("sqlite"):
            _enable_sqlite_savepoints(self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Construye el handle a partir de la configuracion."""
        return cls(
            settings.effective_database_url,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def create_all(self) -> None:
        """Inicializa la base de datos creando todas las tablas."""
        # Registra los modelos en Base.metadata
        from market_sync.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Cierra las conexiones de la base de datos."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Obtiene el handle de base de datos registrado en el startup."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("La base de datos no fue inicializada en el startup")
    return database


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Generador de sesiones de base de datos.
    Para usar como dependencia en FastAPI.

    Yields:
        AsyncSession: Sesión de base de datos
    """
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
