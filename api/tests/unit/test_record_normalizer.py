"""
Tests unitarios del normalizador de registros de la fuente.

Cubre:
- Rangos de empleados y lista de necesidades
- Items en `transaction_detail` / `transaction_details`
- Fallback de transaction_guid al padre
- Registros sin identificador
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from market_sync.application.services.record_normalizer import (
    clean_str,
    join_solution_needs,
    map_employee_qty,
    normalize_customer,
    normalize_transaction,
    normalize_usage,
    parse_float,
    parse_int,
)
from market_sync.shared.exceptions.sync import MissingIdentifierError


def _transaction(**overrides) -> dict:
    raw = {
        "guid": "trx-1",
        "invoice_number": "INV-001",
        "status": "finished",
        "valuta_code": "USD",
        "grand_total": "150.50",
        "qty": 2,
        "created_at": "2025-01-10T08:30:00Z",
        "customer": {"guid": "cus-1", "full_name": "Ana Perez", "email": "ana@example.com"},
        "payment_channel": {"id": "pc-1", "code": "VA", "payment_name": "Virtual Account"},
        "created_by": {"guid": "usr-1", "name": "Sistema"},
    }
    raw.update(overrides)
    return raw


# ============================================================================
# Helpers de tipos
# ============================================================================

@pytest.mark.parametrize(
    "value, expected",
    [
        ("1-10", 5),
        ("11-50", 30),
        (">50", 51),
        ("120", 120),
        ("7 personas", 7),
        ("", None),
        (None, None),
        ("muchos", None),
    ],
)
def test_map_employee_qty(value, expected) -> None:
    assert map_employee_qty(value) == expected


def test_join_solution_needs_list_and_string() -> None:
    assert join_solution_needs(["CRM", " ERP ", "", None]) == "CRM, ERP"
    assert join_solution_needs("Marketing") == "Marketing"
    assert join_solution_needs([]) is None


def test_clean_str_strips_nul_and_blank() -> None:
    assert clean_str("  a\x00b  ") == "ab"
    assert clean_str("   ") is None
    assert clean_str({"x": 1}) is None


def test_parse_int_leading_prefix() -> None:
    assert parse_int("42abc") == 42
    assert parse_int(3.9) == 3
    assert parse_int(True) is None
    assert parse_int("abc") is None


def test_non_finite_numbers_are_dropped() -> None:
    assert parse_int(float("inf")) is None
    assert parse_int(float("nan")) is None
    assert parse_float(float("-inf")) is None
    assert parse_float("NaN") is None
    assert parse_float("12.5") == 12.5


# ============================================================================
# Clientes
# ============================================================================

def test_normalize_customer_maps_nested_and_buckets() -> None:
    customer = normalize_customer({
        "guid": " cus-1 ",
        "full_name": "Ana Perez",
        "employee_qty": "11-50",
        "solution_corporate_needs": ["CRM", "Analytics"],
        "referral_code": "REF1",
        "is_email_verified": "true",
        "created_by": {"guid": "adm-1", "name": "Admin"},
        "created_at": "2024-12-01 10:00:00",
        "subscribe_list": [{"plan": "basic"}],
    })

    assert customer.guid == "cus-1"
    assert customer.employee_qty == 30
    assert customer.solution_corporate_needs == "CRM, Analytics"
    assert customer.referal_code == "REF1"
    assert customer.is_email_verified is True
    assert customer.created_by_guid == "adm-1"
    assert customer.created_by_name == "Admin"
    assert customer.created_at == datetime(2024, 12, 1, 10, 0, tzinfo=timezone.utc)
    assert customer.subscribe_list == [{"plan": "basic"}]


def test_normalize_customer_without_guid_raises() -> None:
    with pytest.raises(MissingIdentifierError):
        normalize_customer({"guid": "   ", "full_name": "Sin guid"})


# ============================================================================
# Transacciones
# ============================================================================

def test_normalize_transaction_singular_details_key() -> None:
    trx = normalize_transaction(_transaction(transaction_detail=[
        {"guid": "det-1", "transaction_id": "trx-1", "product_name": "Plan Pro", "qty": "1"},
    ]))

    assert trx.guid == "trx-1"
    assert trx.grand_total == 150.5
    assert trx.payment_channel_name == "Virtual Account"
    assert trx.customer_guid == "cus-1"
    assert trx.customer is not None and trx.customer.email == "ana@example.com"
    assert [d.guid for d in trx.details] == ["det-1"]
    assert trx.details[0].qty == 1


def test_normalize_transaction_plural_details_key() -> None:
    trx = normalize_transaction(_transaction(transaction_details=[
        {"guid": "det-1"},
        {"guid": "det-2"},
    ]))

    assert [d.guid for d in trx.details] == ["det-1", "det-2"]


def test_detail_without_transaction_id_uses_parent_guid() -> None:
    trx = normalize_transaction(_transaction(transaction_detail=[
        {"guid": "det-1"},
        {"guid": "det-2", "transaction_id": "otra-trx"},
    ]))

    assert trx.details[0].transaction_guid == "trx-1"
    assert trx.details[1].transaction_guid == "otra-trx"


def test_detail_without_guid_is_skipped_and_counted() -> None:
    trx = normalize_transaction(_transaction(transaction_detail=[
        {"guid": "det-1"},
        {"product_name": "sin guid"},
    ]))

    assert len(trx.details) == 1
    assert trx.skipped_details == 1


def test_embedded_customer_leaves_absent_flags_unset() -> None:
    trx = normalize_transaction(_transaction(customer={"guid": "cus-1", "is_email_verified": "true"}))

    assert trx.customer.is_email_verified is True
    assert trx.customer.is_identity_verified is None
    assert trx.customer.is_free_trial_use is None
    # Un cliente del listado si toma False por defecto
    assert normalize_customer({"guid": "cus-1"}).is_identity_verified is False


def test_embedded_customer_without_guid_is_dropped() -> None:
    trx = normalize_transaction(_transaction(customer={"full_name": "Anonimo"}))

    assert trx.customer is None
    assert trx.customer_guid is None


def test_missing_nested_objects_produce_none() -> None:
    trx = normalize_transaction({"guid": "trx-2"})

    assert trx.customer is None
    assert trx.payment_channel_id is None
    assert trx.created_by_guid is None
    assert trx.details == ()


def test_transaction_without_guid_raises() -> None:
    with pytest.raises(MissingIdentifierError):
        normalize_transaction(_transaction(guid=None))


def test_to_row_excludes_children() -> None:
    row = normalize_transaction(_transaction(transaction_detail=[{"guid": "det-1"}])).to_row()

    assert "details" not in row
    assert "customer" not in row
    assert "skipped_details" not in row
    assert row["guid"] == "trx-1"


# ============================================================================
# Uso (credit manager)
# ============================================================================

def test_normalize_usage_alternative_names() -> None:
    usage = normalize_usage({
        "id": 981,
        "customer_guid": "cus-1",
        "type": "DEBIT",
        "amount": "12.5",
        "created_at": "2025-01-12T00:00:00Z",
    })

    assert usage.guid == "981"
    assert usage.user_id == "cus-1"
    assert usage.type == "debit"
    assert usage.amount == 12.5


def test_normalize_usage_without_id_raises() -> None:
    with pytest.raises(MissingIdentifierError):
        normalize_usage({"user_id": "cus-1", "type": "debit"})
