"""
Normalizador de registros de la fuente externa.

Unica frontera de normalizacion del pipeline: convierte los registros crudos
(con nombres alternativos, objetos anidados opcionales y tipos inconsistentes)
en registros canonicos inmutables. Funciones puras, sin I/O.

Reglas:
- Objetos anidados ausentes (customer, payment_channel, created_by, merchant...)
  producen None, nunca excepciones.
- Strings se recortan; strings vacios pasan a None.
- Timestamps se parsean a datetime UTC (None si no se pueden parsear).
- Registro sin identificador -> MissingIdentifierError.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from market_sync.domain.entities.sync_records import (
    CanonicalCustomer,
    CanonicalTransaction,
    CanonicalTransactionDetail,
    CanonicalUsage,
)
from market_sync.shared.exceptions.sync import MissingIdentifierError
from market_sync.shared.utils.datetime_utils import DateTimeUtils


# Rangos de cantidad de empleados que la fuente envia como texto.
# Se conservan tal cual: los reportes existentes dependen de estos valores.
EMPLOYEE_QTY_BUCKETS: Dict[str, int] = {
    "1-10": 5,
    "11-50": 30,
    ">50": 51,
}

SOLUTION_NEEDS_SEPARATOR = ", "

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


# ============================================================================
# Helpers de tipos
# ============================================================================

def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """Primer valor presente (no None) entre nombres alternativos."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _nested(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else {}


def clean_str(value: Any) -> Optional[str]:
    """Recorta y descarta strings vacios. Los NUL no son validos en PostgreSQL."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).replace("\x00", "").strip()
    return text or None


def parse_int(value: Any) -> Optional[int]:
    """Entero al estilo parseInt: toma el prefijo numerico; None si no hay."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def parse_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # Infinity y NaN llegan desde JSON pero no son montos validos
    return number if math.isfinite(number) else None


def parse_bool(value: Any, default: Optional[bool] = False) -> Optional[bool]:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "y"):
        return True
    if text in ("false", "0", "no", "n", ""):
        return False
    return default


def map_employee_qty(value: Any) -> Optional[int]:
    """
    Mapea la cantidad de empleados.

    Los rangos de EMPLOYEE_QTY_BUCKETS se traducen a su valor representativo;
    cualquier otro valor se parsea como entero. Vacio o no parseable -> None.
    """
    text = clean_str(value)
    if text is None:
        return None
    if text in EMPLOYEE_QTY_BUCKETS:
        return EMPLOYEE_QTY_BUCKETS[text]
    return parse_int(text)


def join_solution_needs(value: Any) -> Optional[str]:
    """Lista de necesidades -> string unido con ", "; un string se deja igual."""
    if isinstance(value, (list, tuple)):
        items = [item for item in (clean_str(v) for v in value) if item]
        return SOLUTION_NEEDS_SEPARATOR.join(items) or None
    return clean_str(value)


def _require_guid(value: Any, kind: str, field: str = "guid") -> str:
    guid = clean_str(value)
    if guid is None:
        raise MissingIdentifierError(kind, field)
    return guid


# ============================================================================
# Normalizadores
# ============================================================================

def normalize_customer(raw: Mapping[str, Any], partial: bool = False) -> CanonicalCustomer:
    """
    Normaliza un cliente de la fuente.

    Args:
        raw: Registro crudo (lista de clientes o cliente embebido en una transaccion)
        partial: Cliente embebido; los flags ausentes quedan en None para no
            pisar lo que ya guardo el sync de clientes

    Returns:
        CanonicalCustomer

    Raises:
        MissingIdentifierError: si no tiene guid
    """
    if not isinstance(raw, Mapping):
        raise MissingIdentifierError("customer")

    created_by = _nested(raw, "created_by")
    updated_by = _nested(raw, "updated_by")
    flag_default = None if partial else False

    return CanonicalCustomer(
        guid=_require_guid(raw.get("guid"), "customer"),
        username=clean_str(raw.get("username")),
        full_name=clean_str(raw.get("full_name")),
        email=clean_str(raw.get("email")),
        phone_number=clean_str(raw.get("phone_number")),
        gender=clean_str(raw.get("gender")),
        birth_date=DateTimeUtils.parse_date(raw.get("birth_date")),
        identity_number=clean_str(raw.get("identity_number")),
        identity_img=clean_str(raw.get("identity_img")),
        country_id=clean_str(raw.get("country_id")),
        country=clean_str(raw.get("country")),
        city_id=clean_str(raw.get("city_id")),
        city=clean_str(raw.get("city")),
        is_identity_verified=parse_bool(raw.get("is_identity_verified"), flag_default),
        bank_name=clean_str(raw.get("bank_name")),
        bank_account_number=clean_str(raw.get("bank_account_number")),
        bank_owner_name=clean_str(raw.get("bank_owner_name")),
        is_phone_number_verified=parse_bool(raw.get("is_phone_number_verified"), flag_default),
        is_email_verified=parse_bool(raw.get("is_email_verified"), flag_default),
        corporate_name=clean_str(raw.get("corporate_name")),
        industry_name=clean_str(raw.get("industry_name")),
        employee_qty=map_employee_qty(raw.get("employee_qty")),
        solution_corporate_needs=join_solution_needs(raw.get("solution_corporate_needs")),
        referal_code=clean_str(_first(raw, "referal_code", "referral_code")),
        is_free_trial_use=parse_bool(raw.get("is_free_trial_use"), flag_default),
        status=clean_str(raw.get("status")),
        subscribe_list=raw.get("subscribe_list"),
        created_by_guid=clean_str(_first(created_by, "guid") or raw.get("created_by_guid")),
        created_by_name=clean_str(_first(created_by, "name") or raw.get("created_by_name")),
        updated_by_guid=clean_str(_first(updated_by, "guid") or raw.get("updated_by_guid")),
        updated_by_name=clean_str(_first(updated_by, "name") or raw.get("updated_by_name")),
        created_at=DateTimeUtils.parse_datetime(raw.get("created_at")),
        source_updated_at=DateTimeUtils.parse_datetime(raw.get("updated_at")),
    )


def normalize_transaction_detail(
    raw: Mapping[str, Any], parent_guid: str
) -> CanonicalTransactionDetail:
    """
    Normaliza un item de transaccion.

    `transaction_guid` toma el `transaction_id` del item y, si falta, el guid
    de la transaccion padre.
    """
    if not isinstance(raw, Mapping):
        raise MissingIdentifierError("transaction_detail")

    merchant = _nested(raw, "merchant")
    purchase_type = _nested(raw, "purchase_type")

    return CanonicalTransactionDetail(
        guid=_require_guid(raw.get("guid"), "transaction_detail"),
        transaction_guid=clean_str(raw.get("transaction_id")) or parent_guid,
        merchant_guid=clean_str(merchant.get("guid")),
        merchant_store_name=clean_str(merchant.get("store_name")),
        product_name=clean_str(raw.get("product_name")),
        product_price=parse_float(raw.get("product_price")),
        purchase_type_id=clean_str(purchase_type.get("id")),
        purchase_type_name=clean_str(purchase_type.get("name")),
        purchase_type_value=clean_str(purchase_type.get("value")),
        qty=parse_int(raw.get("qty")),
        total_discount=parse_float(raw.get("total_discount")),
        grand_total=parse_float(raw.get("grand_total")),
    )


def _normalize_details(
    items: Any, parent_guid: str
) -> Tuple[Tuple[CanonicalTransactionDetail, ...], int]:
    """Items validos y cantidad de items descartados por no tener guid."""
    if not isinstance(items, list):
        return (), 0

    details: List[CanonicalTransactionDetail] = []
    skipped = 0
    for item in items:
        try:
            details.append(normalize_transaction_detail(item, parent_guid))
        except MissingIdentifierError:
            skipped += 1
            logger.warning(f"Item sin guid omitido en la transaccion {parent_guid}")
    return tuple(details), skipped


def normalize_transaction(raw: Mapping[str, Any]) -> CanonicalTransaction:
    """
    Normaliza una transaccion con sus items y el cliente embebido.

    - Items en `transaction_detail` o `transaction_details` (el primero presente).
    - Cliente embebido sin guid -> customer=None (la transaccion se conserva).

    Raises:
        MissingIdentifierError: si la transaccion no tiene guid
    """
    if not isinstance(raw, Mapping):
        raise MissingIdentifierError("transaction")

    guid = _require_guid(raw.get("guid"), "transaction")
    raw_customer = _nested(raw, "customer")
    payment_channel = _nested(raw, "payment_channel")
    created_by = _nested(raw, "created_by")

    customer: Optional[CanonicalCustomer] = None
    if raw_customer:
        try:
            customer = normalize_customer(raw_customer, partial=True)
        except MissingIdentifierError:
            customer = None

    details, skipped = _normalize_details(
        _first(raw, "transaction_detail", "transaction_details"), guid
    )

    return CanonicalTransaction(
        guid=guid,
        invoice_number=clean_str(raw.get("invoice_number")),
        customer_guid=clean_str(raw_customer.get("guid") or raw.get("customer_guid")),
        transaction_callback_id=clean_str(raw.get("transaction_callback_id")),
        status=clean_str(raw.get("status")),
        payment_channel_id=clean_str(payment_channel.get("id")),
        payment_channel_code=clean_str(payment_channel.get("code")),
        payment_channel_name=clean_str(
            _first(payment_channel, "payment_name", "name")
        ),
        payment_url=clean_str(raw.get("payment_url")),
        qty=parse_int(raw.get("qty")),
        valuta_code=clean_str(raw.get("valuta_code")),
        sub_total=parse_float(raw.get("sub_total")),
        platform_fee=parse_float(raw.get("platform_fee")),
        payment_service_fee=parse_float(raw.get("payment_service_fee")),
        total_discount=parse_float(raw.get("total_discount")),
        grand_total=parse_float(raw.get("grand_total")),
        created_at=DateTimeUtils.parse_datetime(raw.get("created_at")),
        created_by_guid=clean_str(created_by.get("guid") or raw.get("created_by_guid")),
        created_by_name=clean_str(created_by.get("name") or raw.get("created_by_name")),
        details=details,
        customer=customer,
        skipped_details=skipped,
    )


def normalize_usage(raw: Mapping[str, Any]) -> CanonicalUsage:
    """Normaliza un movimiento del credit manager (`id` | `guid`, `user_id` | `customer_guid`)."""
    if not isinstance(raw, Mapping):
        raise MissingIdentifierError("usage", "id")

    usage_type = clean_str(raw.get("type"))
    return CanonicalUsage(
        guid=_require_guid(_first(raw, "id", "guid"), "usage", "id"),
        user_id=clean_str(_first(raw, "user_id", "customer_guid")),
        type=usage_type.lower() if usage_type else None,
        amount=parse_float(raw.get("amount")),
        agent=clean_str(raw.get("agent")),
        user_product_id=clean_str(raw.get("user_product_id")),
        product_name=clean_str(raw.get("product_name")),
        product_package=clean_str(raw.get("product_package")),
        action_id=clean_str(raw.get("action_id")),
        created_at=DateTimeUtils.parse_datetime(raw.get("created_at")),
        source_updated_at=DateTimeUtils.parse_datetime(raw.get("updated_at")),
    )
