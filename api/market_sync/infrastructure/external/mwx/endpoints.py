"""
Descriptores de los endpoints paginados de la fuente.

Cada endpoint define como se arma el request de una pagina y como se lee su
envelope. Las funciones son puras: el I/O vive en `client.py`.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Dict, Optional

from market_sync.core.config import Settings
from market_sync.shared.constants.sync_constants import FINISHED_STATUS
from market_sync.shared.utils.datetime_utils import DateTimeUtils

from .types import AuthMode, PageEnvelope, SourceEndpoint, SourceQuery

CUSTOMERS = "customers"
TRANSACTIONS = "transactions"
BACK_OFFICE_TRANSACTIONS = "back_office_transactions"
USAGE = "usage"

# Codigo de exito del envelope `response` de los servicios MWX
SUCCESS_CODE = "00"

BACK_OFFICE_REFERER_PATH = "/dashboard/transaction/manage-transaction"


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ============================================================================
# Customers (lista publica del CMS)
# ============================================================================

def build_customer_body(page: int, limit: int, query: SourceQuery) -> Dict[str, Any]:
    """Body de la lista publica de clientes: flags `set_*` apagados por defecto."""
    body_filter: Dict[str, Any] = {
        "set_guid": False,
        "set_name": False,
        "set_email": False,
        "set_date": False,
        "set_platform": False,
    }
    body_filter.update(query.extra)
    if query.customer_guid:
        body_filter.update(set_guid=True, guid=query.customer_guid)
    if query.has_window:
        body_filter.update(
            set_date=True,
            start_date=DateTimeUtils.format_ymd(query.start_date),
            end_date=DateTimeUtils.format_ymd(query.end_date),
        )
    return {
        "filter": body_filter,
        "limit": limit,
        "page": page,
        "order": query.order,
        "sort": query.sort,
    }


def extract_customer_page(payload: Any) -> PageEnvelope:
    """
    Los registros vienen en `data` (lista) o en `data.customers`; los totales
    en el nivel superior o dentro de `data`.
    """
    if not isinstance(payload, dict):
        raise ValueError("La respuesta de clientes no es un objeto JSON")

    data = payload.get("data")
    nested = data if isinstance(data, dict) else {}
    if isinstance(data, list):
        records = data
    else:
        records = nested.get("customers") or []
    if not isinstance(records, list):
        raise ValueError("El campo 'customers' no es una lista")

    total_count = payload.get("total_data", nested.get("total_data"))
    total_pages = payload.get("total_page", nested.get("total_page"))
    current_page = payload.get("current_page", nested.get("current_page"))
    return PageEnvelope(
        records=records,
        total_count=_as_int(total_count),
        total_pages=_as_int(total_pages),
        current_page=_as_int(current_page),
    )


# ============================================================================
# Transactions (lista externa y lista back-office)
# ============================================================================

def build_transaction_body(
    page: int,
    limit: int,
    query: SourceQuery,
    *,
    default_status: str = FINISHED_STATUS,
    default_valuta: str = "USD",
) -> Dict[str, Any]:
    """
    Body de la lista de transacciones con flags `set_<campo>`.

    Igual que en clientes, `query.extra` se aplica sobre los defaults y la
    ventana, el estado y el cliente de la corrida se aplican al final.
    """
    body_filter: Dict[str, Any] = {
        "set_guid": False,
        "guid": "",
        "set_status": False,
        "status": default_status,
        "set_merchant": False,
        "merchant_id": "",
        "set_category": False,
        "category": "",
        "set_name": False,
        "name": "",
        "set_transaction_at": False,
        "start_date": "",
        "end_date": "",
        "set_valuta": False,
        "valuta": default_valuta,
        "set_customer_id": False,
        "customer_id": "",
        "set_email": False,
        "email": "",
    }
    body_filter.update(query.extra)
    if query.status:
        body_filter.update(set_status=True, status=query.status)
    if query.has_window:
        body_filter.update(
            set_transaction_at=True,
            start_date=f"{DateTimeUtils.format_ymd(query.start_date)}T00:00:00",
            end_date=f"{DateTimeUtils.format_ymd(query.end_date)}T23:59:59",
        )
    if query.customer_guid:
        body_filter.update(set_customer_id=True, customer_id=query.customer_guid)
    return {
        "filter": body_filter,
        "limit": limit,
        "page": page,
        "order": query.order,
        "sort": query.sort,
    }


def extract_transaction_envelope(payload: Any) -> PageEnvelope:
    """
    Envelope `{response: {code, status, data, total_page, current_page, total_data}}`.
    Un `code` distinto de "00" es un error de la fuente aunque el HTTP sea 200.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("response"), dict):
        raise ValueError("La respuesta de transacciones no contiene el objeto 'response'")

    response = payload["response"]
    code = str(response.get("code", ""))
    status = str(response.get("status", "")).lower()
    if code != SUCCESS_CODE or status != "success":
        message = response.get("message_en") or response.get("message") or "sin mensaje"
        raise ValueError(f"La fuente respondio code={code} status={status}: {message}")

    records = response.get("data") or []
    if not isinstance(records, list):
        raise ValueError("El campo 'response.data' no es una lista")

    return PageEnvelope(
        records=records,
        total_count=_as_int(response.get("total_data")),
        total_pages=_as_int(response.get("total_page")),
        current_page=_as_int(response.get("current_page")),
    )


# ============================================================================
# Usage (credit manager)
# ============================================================================

def build_usage_query(page: int, limit: int, query: SourceQuery) -> Dict[str, Any]:
    """Query string del credit manager: page/limit y ventana opcional."""
    params: Dict[str, Any] = {"page": page, "limit": limit}
    if query.has_window:
        params["start_date"] = DateTimeUtils.format_ymd(query.start_date)
        params["end_date"] = DateTimeUtils.format_ymd(query.end_date)
    if query.customer_guid:
        params["user_id"] = query.customer_guid
    params.update(query.extra)
    return params


def extract_usage_page(payload: Any) -> PageEnvelope:
    """Registros en `data.data`, `data` o `transactions`; sin total de paginas."""
    if not isinstance(payload, dict):
        raise ValueError("La respuesta del credit manager no es un objeto JSON")

    data = payload.get("data")
    total_count = None
    if isinstance(data, dict):
        records = data.get("data") or []
        total_count = _as_int(data.get("total_count"))
    elif isinstance(data, list):
        records = data
    else:
        records = payload.get("transactions") or []
    if not isinstance(records, list):
        raise ValueError("Los registros de uso no son una lista")

    return PageEnvelope(records=records, total_count=total_count)


def build_endpoints(settings: Settings) -> Dict[str, SourceEndpoint]:
    """Construye los descriptores de endpoints a partir de la configuracion."""
    base_url = settings.MWX_API_BASE_URL.rstrip("/")
    origin = settings.MWX_BACK_OFFICE_ORIGIN.rstrip("/")

    return {
        CUSTOMERS: SourceEndpoint(
            name=CUSTOMERS,
            method="POST",
            url=f"{base_url}{settings.MWX_CUSTOMER_LIST_PATH}",
            auth_mode=AuthMode.API_KEY,
            build_request=build_customer_body,
            extract=extract_customer_page,
            default_page_size=settings.SYNC_DEFAULT_LIMIT,
        ),
        TRANSACTIONS: SourceEndpoint(
            name=TRANSACTIONS,
            method="POST",
            url=f"{base_url}{settings.MWX_TRANSACTION_LIST_PATH}",
            auth_mode=AuthMode.API_KEY,
            build_request=build_transaction_body,
            extract=extract_transaction_envelope,
        ),
        BACK_OFFICE_TRANSACTIONS: SourceEndpoint(
            name=BACK_OFFICE_TRANSACTIONS,
            method="POST",
            url=f"{base_url}{settings.MWX_BACK_OFFICE_TRANSACTION_PATH}",
            auth_mode=AuthMode.TOKEN,
            build_request=partial(build_transaction_body, default_status="", default_valuta=""),
            extract=extract_transaction_envelope,
            extra_headers={
                "origin": origin,
                "referer": f"{origin}{BACK_OFFICE_REFERER_PATH}",
            },
        ),
        USAGE: SourceEndpoint(
            name=USAGE,
            method="GET",
            url=settings.CREDIT_MANAGER_URL,
            auth_mode=AuthMode.STATIC_TOKEN,
            build_request=build_usage_query,
            extract=extract_usage_page,
        ),
    }
