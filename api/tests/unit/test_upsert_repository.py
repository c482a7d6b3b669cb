"""
Tests del motor de upsert idempotente sobre SQLite en memoria.

Verifica:
- Re-escribir el mismo registro no duplica filas
- `created_at` e `inserted_at` se conservan
- Fallo de un item no revierte la transaccion padre
- Cliente embebido: escritura parcial sin pisar datos con nulos ni flags
- Re-escribir contenido identico solo cambia `updated_at`
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from market_sync.domain.entities.sync_records import (
    CanonicalCustomer,
    CanonicalTransaction,
    CanonicalTransactionDetail,
    CanonicalUsage,
)
from market_sync.infrastructure.database.models import (
    CustomerModel,
    TransactionDetailModel,
    TransactionModel,
    UsageTransactionModel,
)
from market_sync.application.services.record_normalizer import normalize_transaction
from market_sync.infrastructure.repositories.upsert_repository import UpsertRepository
from market_sync.shared.exceptions.sync import UpsertError
from market_sync.shared.utils.datetime_utils import DateTimeUtils


CREATED = datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc)


async def _count(session, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def _get(session, model, guid):
    session.expire_all()
    result = await session.execute(select(model).where(model.guid == guid))
    return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_customer_upsert_is_idempotent(db_session) -> None:
    repo = UpsertRepository(db_session)

    await repo.upsert_customer(CanonicalCustomer(guid="cus-1", full_name="Ana", created_at=CREATED))
    await db_session.commit()
    first = await _get(db_session, CustomerModel, "cus-1")
    inserted_at = first.inserted_at

    await repo.upsert_customer(CanonicalCustomer(guid="cus-1", full_name="Ana Perez", created_at=CREATED))
    await db_session.commit()

    assert await _count(db_session, CustomerModel) == 1
    customer = await _get(db_session, CustomerModel, "cus-1")
    assert customer.full_name == "Ana Perez"
    assert customer.inserted_at == inserted_at


@pytest.mark.asyncio
async def test_created_at_is_preserved_on_update(db_session) -> None:
    repo = UpsertRepository(db_session)

    await repo.upsert_usage(CanonicalUsage(guid="u-1", type="debit", amount=5.0, created_at=CREATED))
    await db_session.commit()
    await repo.upsert_usage(
        CanonicalUsage(guid="u-1", type="debit", amount=7.0, created_at=datetime(2025, 3, 1, tzinfo=timezone.utc))
    )
    await db_session.commit()

    usage = await _get(db_session, UsageTransactionModel, "u-1")
    assert usage.amount == 7.0
    assert usage.created_at.replace(tzinfo=timezone.utc) == CREATED


@pytest.mark.asyncio
async def test_transaction_with_details_and_embedded_customer(db_session) -> None:
    repo = UpsertRepository(db_session)
    transaction = CanonicalTransaction(
        guid="trx-1",
        customer_guid="cus-1",
        status="finished",
        grand_total=100.0,
        created_at=CREATED,
        customer=CanonicalCustomer(guid="cus-1", full_name="Ana"),
        details=(
            CanonicalTransactionDetail(guid="det-1", transaction_guid="trx-1", product_name="Plan Pro"),
            CanonicalTransactionDetail(guid="det-2", transaction_guid="trx-1", product_name="Addon"),
        ),
    )

    result = await repo.upsert_transaction(transaction)
    await db_session.commit()

    assert result.details_written == 2
    assert result.detail_errors == []
    assert await _count(db_session, TransactionModel) == 1
    assert await _count(db_session, TransactionDetailModel) == 2
    assert (await _get(db_session, CustomerModel, "cus-1")).full_name == "Ana"

    # Segunda escritura de la misma transaccion: sin duplicados
    await repo.upsert_transaction(transaction)
    await db_session.commit()
    assert await _count(db_session, TransactionModel) == 1
    assert await _count(db_session, TransactionDetailModel) == 2


@pytest.mark.asyncio
async def test_child_failure_does_not_roll_back_parent(db_session) -> None:
    repo = UpsertRepository(db_session)
    original = repo.upsert_transaction_detail

    async def flaky_detail(detail):
        if detail.guid == "det-bad":
            raise UpsertError("transaction_detail", detail.guid, "constraint violated")
        await original(detail)

    repo.upsert_transaction_detail = flaky_detail

    result = await repo.upsert_transaction(CanonicalTransaction(
        guid="trx-1",
        details=(
            CanonicalTransactionDetail(guid="det-ok", transaction_guid="trx-1"),
            CanonicalTransactionDetail(guid="det-bad", transaction_guid="trx-1"),
        ),
    ))
    await db_session.commit()

    assert result.details_written == 1
    assert len(result.detail_errors) == 1
    assert await _get(db_session, TransactionModel, "trx-1") is not None
    assert await _get(db_session, TransactionDetailModel, "det-ok") is not None
    assert await _get(db_session, TransactionDetailModel, "det-bad") is None


@pytest.mark.asyncio
async def test_embedded_customer_failure_keeps_transaction(db_session) -> None:
    repo = UpsertRepository(db_session)

    async def broken_customer(customer, partial=False):
        raise UpsertError("customer", customer.guid, "db down")

    repo.upsert_customer = broken_customer

    result = await repo.upsert_transaction(CanonicalTransaction(
        guid="trx-2",
        customer_guid="cus-9",
        customer=CanonicalCustomer(guid="cus-9"),
    ))
    await db_session.commit()

    assert result.customer_error is not None
    assert await _get(db_session, TransactionModel, "trx-2") is not None


@pytest.mark.asyncio
async def test_embedded_customer_does_not_erase_known_fields(db_session) -> None:
    repo = UpsertRepository(db_session)
    await repo.upsert_customer(CanonicalCustomer(
        guid="cus-1", full_name="Ana", email="ana@example.com", country="Indonesia"
    ))
    await db_session.commit()

    # El cliente embebido en una transaccion trae menos campos
    await repo.upsert_transaction(CanonicalTransaction(
        guid="trx-1",
        customer_guid="cus-1",
        customer=CanonicalCustomer(guid="cus-1", full_name="Ana Perez"),
    ))
    await db_session.commit()

    customer = await _get(db_session, CustomerModel, "cus-1")
    assert customer.full_name == "Ana Perez"
    assert customer.email == "ana@example.com"
    assert customer.country == "Indonesia"


@pytest.mark.asyncio
async def test_embedded_customer_keeps_verification_flags(db_session) -> None:
    repo = UpsertRepository(db_session)
    await repo.upsert_customer(CanonicalCustomer(
        guid="cus-1",
        full_name="Ana",
        is_identity_verified=True,
        is_phone_number_verified=True,
        is_email_verified=True,
        is_free_trial_use=True,
    ))
    await db_session.commit()

    await repo.upsert_transaction(normalize_transaction(
        {"guid": "trx-1", "customer": {"guid": "cus-1", "full_name": "Ana P"}}
    ))
    await db_session.commit()

    customer = await _get(db_session, CustomerModel, "cus-1")
    assert customer.full_name == "Ana P"
    assert customer.is_identity_verified is True
    assert customer.is_phone_number_verified is True
    assert customer.is_email_verified is True
    assert customer.is_free_trial_use is True


@pytest.mark.asyncio
async def test_embedded_new_customer_gets_default_flags(db_session) -> None:
    repo = UpsertRepository(db_session)

    await repo.upsert_transaction(normalize_transaction(
        {"guid": "trx-1", "customer": {"guid": "cus-new", "full_name": "Nuevo"}}
    ))
    await db_session.commit()

    customer = await _get(db_session, CustomerModel, "cus-new")
    assert customer.full_name == "Nuevo"
    assert customer.is_email_verified is False
    assert customer.is_free_trial_use is False


@pytest.mark.asyncio
async def test_identical_upsert_only_refreshes_updated_at(db_session, monkeypatch) -> None:
    ticks = iter([CREATED, CREATED + timedelta(minutes=5)])
    monkeypatch.setattr(DateTimeUtils, "now_utc", staticmethod(lambda: next(ticks)))
    repo = UpsertRepository(db_session)
    customer = CanonicalCustomer(
        guid="cus-1",
        full_name="Ana",
        email="ana@example.com",
        is_email_verified=True,
        employee_qty=30,
        created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )
    columns = [c.name for c in CustomerModel.__table__.columns]

    await repo.upsert_customer(customer)
    await db_session.commit()
    first = await _get(db_session, CustomerModel, "cus-1")
    before = {name: getattr(first, name) for name in columns}

    await repo.upsert_customer(customer)
    await db_session.commit()
    second = await _get(db_session, CustomerModel, "cus-1")
    after = {name: getattr(second, name) for name in columns}

    assert after.pop("updated_at") > before.pop("updated_at")
    assert after == before
    assert after["inserted_at"].replace(tzinfo=timezone.utc) == CREATED
    assert after["created_at"].replace(tzinfo=timezone.utc) == datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_max_created_at(db_session) -> None:
    repo = UpsertRepository(db_session)
    assert await repo.max_created_at(CustomerModel) is None

    await repo.upsert_customer(CanonicalCustomer(guid="a", created_at=CREATED))
    await repo.upsert_customer(CanonicalCustomer(guid="b", created_at=datetime(2024, 5, 1, tzinfo=timezone.utc)))
    await db_session.commit()

    assert await repo.max_created_at(CustomerModel) == CREATED
