"""
Tests del contrato HTTP de los endpoints de sync y de lectura.

La app se construye con `create_application()` y las dependencias de
infraestructura (base de datos y cliente de la fuente) se reemplazan via
dependency_overrides.
"""
from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from conftest import RecordingHandler
from market_sync.api.v1.dependencies.use_case_deps import get_source_client, get_sync_all_use_case
from market_sync.application.use_cases.sync_use_cases import SyncAllResult, SyncRunSummary
from market_sync.infrastructure.database.session import get_database
from market_sync.shared.constants.sync_constants import SyncStatus
from market_sync.shared.utils.datetime_utils import DateTimeUtils


def _customers_ok(request: httpx.Request, n: int) -> httpx.Response:
    return httpx.Response(200, json={"data": [{"guid": "c1"}, {"guid": "c2"}], "total_page": 1})


@pytest.fixture
def build_app(database, make_source_client):
    """Crea la app FastAPI con la base en memoria y la fuente mockeada."""
    from main import create_application

    apps = []

    def _build(responder=_customers_ok):
        app = create_application()
        source = make_source_client(RecordingHandler(responder))
        app.dependency_overrides[get_database] = lambda: database
        app.dependency_overrides[get_source_client] = lambda: source
        apps.append(app)
        return app

    yield _build

    for app in apps:
        app.dependency_overrides.clear()


async def _post(app, path: str, **kwargs) -> httpx.Response:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, **kwargs)


async def _get(app, path: str, **kwargs) -> httpx.Response:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, **kwargs)


# ============================================================================
# Sync por recurso
# ============================================================================

@pytest.mark.asyncio
async def test_sync_customers_returns_summary(build_app) -> None:
    app = build_app()

    response = await _post(app, "/api/v1/sync/customers", json={"limit": 50})

    assert response.status_code == 200
    data = response.json()
    assert data["resource"] == "customers"
    assert data["status"] == "success"
    assert data["success_count"] == 2
    assert data["pages_fetched"] == 1


@pytest.mark.asyncio
async def test_sync_without_body_is_accepted(build_app) -> None:
    app = build_app()

    response = await _post(app, "/api/v1/sync/customers")

    assert response.status_code == 200
    assert response.json()["mode"] == "full"


@pytest.mark.asyncio
async def test_sync_accepts_camel_case_dates(build_app) -> None:
    app = build_app()

    response = await _post(
        app,
        "/api/v1/sync/customers",
        json={"startDate": "2025-01-01", "endDate": "2025-01-05"},
    )

    assert response.status_code == 200
    assert response.json()["window_start"] == "2025-01-01"
    assert response.json()["window_end"] == "2025-01-05"


@pytest.mark.asyncio
async def test_sync_rejects_inverted_dates(build_app) -> None:
    app = build_app()

    response = await _post(
        app,
        "/api/v1/sync/customers",
        json={"startDate": "2025-02-01", "endDate": "2025-01-01"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_source_failure_returns_502_with_summary(build_app) -> None:
    app = build_app(lambda request, n: httpx.Response(500, text="upstream exploded"))

    response = await _post(app, "/api/v1/sync/customers", json={})

    assert response.status_code == 502
    data = response.json()
    assert data["status"] == "error"
    assert data["error"] == "SOURCE_FETCH_ERROR"
    assert data["details"]["http_status"] == 500
    assert data["details"]["body_prefix"] == "upstream exploded"
    assert data["details"]["summary"]["state"] == "failed"


# ============================================================================
# Sync completo
# ============================================================================

@pytest.mark.asyncio
async def test_sync_all_returns_207_on_partial_error(build_app) -> None:
    app = build_app()
    use_case = AsyncMock()
    use_case.execute = AsyncMock(return_value=SyncAllResult(
        status=SyncStatus.PARTIAL_ERROR,
        results=[
            SyncRunSummary(resource="customers"),
            SyncRunSummary(resource="transactions", status=SyncStatus.ERROR, message="HTTP 500"),
        ],
        triggered_at=DateTimeUtils.now_utc(),
    ))
    app.dependency_overrides[get_sync_all_use_case] = lambda: use_case

    response = await _post(app, "/api/v1/sync/all")

    assert response.status_code == 207
    data = response.json()
    assert data["status"] == "partial_error"
    assert [r["status"] for r in data["results"]] == ["success", "error"]


@pytest.mark.asyncio
async def test_sync_all_returns_200_when_everything_succeeds(build_app) -> None:
    app = build_app()
    use_case = AsyncMock()
    use_case.execute = AsyncMock(return_value=SyncAllResult(
        status=SyncStatus.SUCCESS,
        results=[SyncRunSummary(resource="customers")],
        triggered_at=DateTimeUtils.now_utc(),
    ))
    app.dependency_overrides[get_sync_all_use_case] = lambda: use_case

    response = await _post(app, "/api/v1/sync/all")

    assert response.status_code == 200
    assert response.json()["status"] == "success"


# ============================================================================
# Lectura
# ============================================================================

@pytest.mark.asyncio
async def test_customers_endpoint_after_sync(build_app) -> None:
    app = build_app()
    await _post(app, "/api/v1/sync/customers", json={})

    response = await _get(app, "/api/v1/customers", params={"limit": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {c["guid"] for c in data["data"]} == {"c1", "c2"}
    assert all(c["churn_status"] == "passive" for c in data["data"])


@pytest.mark.asyncio
async def test_customer_activity_not_found(build_app) -> None:
    app = build_app()

    response = await _get(app, "/api/v1/customers/no-existe/activity")

    assert response.status_code == 404
    assert response.json()["error"] == "ENTITY_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_churn_filter_is_rejected(build_app) -> None:
    app = build_app()

    response = await _get(app, "/api/v1/customers", params={"churn": "dormant"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_transactions_endpoint_empty(build_app) -> None:
    app = build_app()

    response = await _get(app, "/api/v1/transactions")

    assert response.status_code == 200
    assert response.json() == {"data": [], "page": 1, "limit": 50, "total": 0}
