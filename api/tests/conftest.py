"""
Configuración de fixtures para pytest.

- Base de datos SQLite en memoria por test (handle `Database` completo)
- Cliente de la fuente MWX sobre `httpx.MockTransport`
"""
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, List

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from market_sync.core.config import Settings
from market_sync.infrastructure.database.session import Database
from market_sync.infrastructure.external.mwx import MwxAuthenticator, MwxSourceClient, build_endpoints


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BASE_URL = "https://mwx.test"
CREDIT_MANAGER_URL = "https://credit.test/api/v1/transactions"

# Instante fijo para los tests que dependen del reloj
FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> Settings:
    """Settings de prueba, sin leer el .env local."""
    values = dict(
        MWX_API_BASE_URL=BASE_URL,
        MWX_API_KEY="test-api-key",
        CREDIT_MANAGER_URL=CREDIT_MANAGER_URL,
        CREDIT_MANAGER_TOKEN="credit-token",
        MWX_APP_KEY="app-key",
        MWX_IDENTIFIER="ops@example.com",
        MWX_PASSWORD="secret",
        SYNC_DEFAULT_LIMIT=100,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """Base de datos en memoria con las tablas creadas; se descarta al final del test."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Sesión sobre la base de datos en memoria del test."""
    async with database.session_factory() as session:
        yield session


class RecordingHandler:
    """
    Handler de MockTransport que registra los requests recibidos.

    `responder(request, call_number)` decide la respuesta; `call_number`
    cuenta los requests hechos a la misma ruta (1-based).
    """

    def __init__(self, responder: Callable[[httpx.Request, int], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request, len(self.calls_to(request.url.path)))


@pytest.fixture
async def make_source_client():
    """
    Fabrica de MwxSourceClient sobre MockTransport.

    Uso:
        handler = RecordingHandler(responder)
        client = make_source_client(handler)
    """
    created: List[httpx.AsyncClient] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response], settings: Settings = None) -> MwxSourceClient:
        settings = settings or make_settings()
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        created.append(http)
        return MwxSourceClient(
            http,
            build_endpoints(settings),
            api_key=settings.MWX_API_KEY,
            static_token=settings.CREDIT_MANAGER_TOKEN,
            authenticator=MwxAuthenticator.from_settings(http, settings),
            max_page_size=settings.SYNC_MAX_LIMIT,
        )

    yield _factory

    for http in created:
        await http.aclose()
