"""
Tests unitarios del cliente de la fuente MWX (httpx.MockTransport).

Verifica:
- Tamaño de pagina acotado y pagina 1-based
- Headers de autenticacion por endpoint
- 401 en endpoints con token: un handshake y un unico reintento
- Errores de red, HTTP, body vacio/no JSON y code != "00"
"""
from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from conftest import CREDIT_MANAGER_URL, RecordingHandler, make_settings
from market_sync.infrastructure.external.mwx import SourceQuery
from market_sync.infrastructure.external.mwx import endpoints
from market_sync.shared.exceptions.sync import SourceAuthError, SourceFetchError, SyncConfigError


TOKEN_PATH = "/auth-service/token/auth"
LOGIN_PATH = "/auth-service/authentication/back-office/login"
BACK_OFFICE_PATH = "/transaction-service/transaction/back-office/list"
TRANSACTIONS_PATH = "/transaction-service/transaction/external/list"
CUSTOMERS_PATH = "/cms-service/customer/list/public"


def _ok_envelope(records, total_page=1, current_page=1, total_data=None) -> dict:
    return {
        "response": {
            "code": "00",
            "status": "success",
            "data": records,
            "total_page": total_page,
            "current_page": current_page,
            "total_data": total_data if total_data is not None else len(records),
        }
    }


def _token_response(token: str) -> httpx.Response:
    return httpx.Response(200, json={"response": {"code": "00", "status": "success", "data": {"token": token}}})


# ============================================================================
# Paginacion y requests
# ============================================================================

@pytest.mark.asyncio
async def test_page_size_is_clamped_and_page_is_one_based(make_source_client) -> None:
    """Un limite fuera de rango se acota a [1, SYNC_MAX_LIMIT] y page < 1 pasa a 1."""
    handler = RecordingHandler(lambda request, n: httpx.Response(200, json={"data": [], "total_page": 0}))
    client = make_source_client(handler, make_settings(SYNC_MAX_LIMIT=50))

    page = await client.fetch_page(endpoints.CUSTOMERS, 0, SourceQuery(), page_size=10_000)

    body = json.loads(handler.requests[0].content)
    assert body["limit"] == 50
    assert body["page"] == 1
    assert page.page == 1
    assert page.page_size == 50

    ep = client.endpoint(endpoints.CUSTOMERS)
    assert client.clamp_page_size(-5, ep) == 1
    assert client.clamp_page_size(None, ep) == 50


@pytest.mark.asyncio
async def test_transaction_body_carries_window_and_api_key(make_source_client) -> None:
    handler = RecordingHandler(lambda request, n: httpx.Response(200, json=_ok_envelope([{"guid": "t1"}])))
    client = make_source_client(handler)

    query = SourceQuery(start_date=date(2025, 1, 9), end_date=date(2025, 1, 15))
    page = await client.fetch_page(endpoints.TRANSACTIONS, 1, query, page_size=100)

    request = handler.requests[0]
    body = json.loads(request.content)
    assert request.url.path == TRANSACTIONS_PATH
    assert request.headers["x-api-key"] == "test-api-key"
    assert body["filter"]["set_transaction_at"] is True
    assert body["filter"]["start_date"] == "2025-01-09T00:00:00"
    assert body["filter"]["end_date"] == "2025-01-15T23:59:59"
    assert body["filter"]["set_status"] is False
    assert body["filter"]["status"] == "finished"
    assert page.records == ({"guid": "t1"},)
    assert page.total_pages == 1


@pytest.mark.asyncio
async def test_usage_endpoint_uses_query_string_and_static_token(make_source_client) -> None:
    handler = RecordingHandler(
        lambda request, n: httpx.Response(200, json={"data": {"data": [{"id": 1}], "total_count": 1}})
    )
    client = make_source_client(handler)

    query = SourceQuery(start_date=date(2025, 1, 1), end_date=date(2025, 1, 2))
    page = await client.fetch_page(endpoints.USAGE, 2, query, page_size=25)

    request = handler.requests[0]
    assert str(request.url).startswith(CREDIT_MANAGER_URL)
    assert request.method == "GET"
    assert request.url.params["page"] == "2"
    assert request.url.params["limit"] == "25"
    assert request.url.params["start_date"] == "2025-01-01"
    assert request.headers["Authorization"] == "credit-token"
    assert page.total_count == 1


@pytest.mark.asyncio
async def test_missing_api_key_is_config_error(make_source_client) -> None:
    handler = RecordingHandler(lambda request, n: httpx.Response(200, json={"data": []}))
    client = make_source_client(handler, make_settings(MWX_API_KEY=""))

    with pytest.raises(SyncConfigError):
        await client.fetch_page(endpoints.CUSTOMERS, 1)
    assert handler.requests == []


# ============================================================================
# Re-autenticacion
# ============================================================================

@pytest.mark.asyncio
async def test_401_triggers_single_reauth_and_retry(make_source_client) -> None:
    """Primer request sin token -> handshake; 401 -> un handshake mas y un reintento."""
    tokens = iter(["app-1", "session-1", "app-2", "session-2"])

    def responder(request: httpx.Request, n: int) -> httpx.Response:
        if request.url.path in (TOKEN_PATH, LOGIN_PATH):
            return _token_response(next(tokens))
        if n == 1:
            return httpx.Response(401, json={"message": "token expired"})
        return httpx.Response(200, json=_ok_envelope([{"guid": "bo-1"}]))

    handler = RecordingHandler(responder)
    client = make_source_client(handler)

    page = await client.fetch_page(endpoints.BACK_OFFICE_TRANSACTIONS, 1, SourceQuery(), page_size=10)

    data_calls = handler.calls_to(BACK_OFFICE_PATH)
    assert len(data_calls) == 2
    assert data_calls[0].headers["token"] == "session-1"
    assert data_calls[1].headers["token"] == "session-2"
    assert data_calls[1].headers["cookie"] == "token=session-2; logged_in=1"
    assert data_calls[1].headers["origin"] == "https://backoffice.mwxmarket.ai"
    assert len(handler.calls_to(LOGIN_PATH)) == 2
    # El login lleva el token de aplicacion
    assert handler.calls_to(LOGIN_PATH)[1].headers["token"] == "app-2"
    assert page.records == ({"guid": "bo-1"},)


@pytest.mark.asyncio
async def test_second_401_is_fatal(make_source_client) -> None:
    def responder(request: httpx.Request, n: int) -> httpx.Response:
        if request.url.path in (TOKEN_PATH, LOGIN_PATH):
            return _token_response(f"tok-{n}")
        return httpx.Response(401, text="unauthorized")

    handler = RecordingHandler(responder)
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError) as exc_info:
        await client.fetch_page(endpoints.BACK_OFFICE_TRANSACTIONS, 1)

    assert exc_info.value.http_status == 401
    assert len(handler.calls_to(BACK_OFFICE_PATH)) == 2


@pytest.mark.asyncio
async def test_failed_handshake_raises_auth_error(make_source_client) -> None:
    def responder(request: httpx.Request, n: int) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            return httpx.Response(200, json={"response": {"code": "99", "message_en": "invalid app key"}})
        return httpx.Response(200, json=_ok_envelope([]))

    handler = RecordingHandler(responder)
    client = make_source_client(handler)

    with pytest.raises(SourceAuthError) as exc_info:
        await client.fetch_page(endpoints.BACK_OFFICE_TRANSACTIONS, 1)

    assert exc_info.value.error_code == "SOURCE_AUTH_ERROR"
    assert "invalid app key" in exc_info.value.message
    assert handler.calls_to(BACK_OFFICE_PATH) == []


@pytest.mark.asyncio
async def test_401_on_api_key_endpoint_is_not_retried(make_source_client) -> None:
    handler = RecordingHandler(lambda request, n: httpx.Response(401, text="bad key"))
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError):
        await client.fetch_page(endpoints.CUSTOMERS, 1)

    assert len(handler.requests) == 1


# ============================================================================
# Errores de la fuente
# ============================================================================

@pytest.mark.asyncio
async def test_http_error_keeps_body_prefix(make_source_client) -> None:
    body = "x" * 2000
    handler = RecordingHandler(lambda request, n: httpx.Response(503, text=body))
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError) as exc_info:
        await client.fetch_page(endpoints.CUSTOMERS, 1)

    error = exc_info.value
    assert error.http_status == 503
    assert len(error.body_prefix) == 500
    assert error.details["endpoint"] == endpoints.CUSTOMERS
    assert error.status_code == 502


@pytest.mark.asyncio
async def test_empty_body_is_fetch_error(make_source_client) -> None:
    handler = RecordingHandler(lambda request, n: httpx.Response(200, text="   "))
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError, match="vacio"):
        await client.fetch_page(endpoints.CUSTOMERS, 1)


@pytest.mark.asyncio
async def test_non_json_body_is_fetch_error(make_source_client) -> None:
    handler = RecordingHandler(lambda request, n: httpx.Response(200, text="<html>gateway</html>"))
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError) as exc_info:
        await client.fetch_page(endpoints.CUSTOMERS, 1)

    assert exc_info.value.body_prefix == "<html>gateway</html>"


@pytest.mark.asyncio
async def test_envelope_code_not_ok_is_fetch_error(make_source_client) -> None:
    payload = {"response": {"code": "05", "status": "failed", "message_en": "filter invalid"}}
    handler = RecordingHandler(lambda request, n: httpx.Response(200, json=payload))
    client = make_source_client(handler)

    with pytest.raises(SourceFetchError, match="filter invalid"):
        await client.fetch_page(endpoints.TRANSACTIONS, 1)


@pytest.mark.asyncio
async def test_network_error_is_fetch_error(make_source_client) -> None:
    def responder(request: httpx.Request, n: int) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_source_client(RecordingHandler(responder))

    with pytest.raises(SourceFetchError, match="error de red"):
        await client.fetch_page(endpoints.CUSTOMERS, 1)


@pytest.mark.asyncio
async def test_unknown_endpoint_is_config_error(make_source_client) -> None:
    client = make_source_client(RecordingHandler(lambda request, n: httpx.Response(200)))

    with pytest.raises(SyncConfigError):
        client.endpoint("orders")


@pytest.mark.parametrize(
    "build, window_flag, start_key",
    [
        (endpoints.build_customer_body, "set_date", "2025-01-01"),
        (endpoints.build_transaction_body, "set_transaction_at", "2025-01-01T00:00:00"),
    ],
)
def test_caller_filter_does_not_override_run_window(build, window_flag, start_key) -> None:
    query = SourceQuery(
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 5),
        extra={window_flag: False, "start_date": "1999-01-01", "set_email": True, "email": "a@b.c"},
    )

    body = build(1, 10, query)

    assert body["filter"][window_flag] is True
    assert body["filter"]["start_date"] == start_key
    assert body["filter"]["set_email"] is True
    assert body["filter"]["email"] == "a@b.c"
