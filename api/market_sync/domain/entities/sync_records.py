"""
Entidades de dominio: registros canonicos del pipeline de sincronizacion.

Son la unica forma en que los datos de la fuente externa cruzan hacia el
motor de upsert. Cada registro tiene un `kind` y un identificador unico.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple


def _row_values(record: Any, exclude: Tuple[str, ...] = ()) -> Dict[str, Any]:
    """Columnas persistibles de un registro canonico."""
    return {
        f.name: getattr(record, f.name)
        for f in fields(record)
        if f.name not in exclude
    }


@dataclass(frozen=True)
class CanonicalCustomer:
    guid: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    identity_number: Optional[str] = None
    identity_img: Optional[str] = None
    country_id: Optional[str] = None
    country: Optional[str] = None
    city_id: Optional[str] = None
    city: Optional[str] = None
    is_identity_verified: Optional[bool] = False
    bank_name: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_owner_name: Optional[str] = None
    is_phone_number_verified: Optional[bool] = False
    is_email_verified: Optional[bool] = False
    corporate_name: Optional[str] = None
    industry_name: Optional[str] = None
    employee_qty: Optional[int] = None
    solution_corporate_needs: Optional[str] = None
    referal_code: Optional[str] = None
    is_free_trial_use: Optional[bool] = False
    status: Optional[str] = None
    subscribe_list: Optional[Any] = None
    created_by_guid: Optional[str] = None
    created_by_name: Optional[str] = None
    updated_by_guid: Optional[str] = None
    updated_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    source_updated_at: Optional[datetime] = None

    kind = "customer"

    def to_row(self) -> Dict[str, Any]:
        return _row_values(self)


@dataclass(frozen=True)
class CanonicalTransactionDetail:
    guid: str
    transaction_guid: str
    merchant_guid: Optional[str] = None
    merchant_store_name: Optional[str] = None
    product_name: Optional[str] = None
    product_price: Optional[float] = None
    purchase_type_id: Optional[str] = None
    purchase_type_name: Optional[str] = None
    purchase_type_value: Optional[str] = None
    qty: Optional[int] = None
    total_discount: Optional[float] = None
    grand_total: Optional[float] = None

    kind = "transaction_detail"

    def to_row(self) -> Dict[str, Any]:
        return _row_values(self)


@dataclass(frozen=True)
class CanonicalTransaction:
    """
    Transaccion normalizada con sus items y, si venia embebido, el cliente.

    `skipped_details` cuenta los items descartados por no tener identificador.
    """
    guid: str
    invoice_number: Optional[str] = None
    customer_guid: Optional[str] = None
    transaction_callback_id: Optional[str] = None
    status: Optional[str] = None
    payment_channel_id: Optional[str] = None
    payment_channel_code: Optional[str] = None
    payment_channel_name: Optional[str] = None
    payment_url: Optional[str] = None
    qty: Optional[int] = None
    valuta_code: Optional[str] = None
    sub_total: Optional[float] = None
    platform_fee: Optional[float] = None
    payment_service_fee: Optional[float] = None
    total_discount: Optional[float] = None
    grand_total: Optional[float] = None
    created_at: Optional[datetime] = None
    created_by_guid: Optional[str] = None
    created_by_name: Optional[str] = None
    details: Tuple[CanonicalTransactionDetail, ...] = field(default_factory=tuple)
    customer: Optional[CanonicalCustomer] = None
    skipped_details: int = 0

    kind = "transaction"

    def to_row(self) -> Dict[str, Any]:
        return _row_values(self, exclude=("details", "customer", "skipped_details"))


@dataclass(frozen=True)
class CanonicalUsage:
    guid: str
    user_id: Optional[str] = None
    type: Optional[str] = None
    amount: Optional[float] = None
    agent: Optional[str] = None
    user_product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_package: Optional[str] = None
    action_id: Optional[str] = None
    created_at: Optional[datetime] = None
    source_updated_at: Optional[datetime] = None

    kind = "usage"

    def to_row(self) -> Dict[str, Any]:
        return _row_values(self)


@dataclass
class TransactionUpsertResult:
    """Resultado de escribir una transaccion: los errores de hijos no anulan al padre."""
    guid: str
    details_written: int = 0
    detail_errors: List[Any] = field(default_factory=list)
    customer_error: Optional[str] = None
