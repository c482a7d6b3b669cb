"""
Modelos de base de datos (ORM).

Tablas alimentadas por el pipeline de sincronizacion. El identificador de la
fuente (`guid`) es unico y es el target del ON CONFLICT de los upserts.
"""
from sqlalchemy import Column, String, Integer, DateTime, Date, Text, JSON, Boolean, Numeric
from sqlalchemy.sql import func

from market_sync.infrastructure.database.session import Base


class CustomerModel(Base):
    """
    Modelo de base de datos para clientes del marketplace.

    `created_at` es la fecha de creacion en la fuente; `inserted_at` la primera
    insercion local (nunca se actualiza); `updated_at` se refresca en cada upsert.
    """

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    guid = Column(String(64), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone_number = Column(String(64), nullable=True)
    gender = Column(String(32), nullable=True)
    birth_date = Column(Date, nullable=True)
    identity_number = Column(String(128), nullable=True)
    identity_img = Column(Text, nullable=True)
    country_id = Column(String(64), nullable=True)
    country = Column(String(128), nullable=True)
    city_id = Column(String(64), nullable=True)
    city = Column(String(128), nullable=True)
    is_identity_verified = Column(Boolean, nullable=False, default=False)
    bank_name = Column(String(128), nullable=True)
    bank_account_number = Column(String(128), nullable=True)
    bank_owner_name = Column(String(255), nullable=True)
    is_phone_number_verified = Column(Boolean, nullable=False, default=False)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    corporate_name = Column(String(255), nullable=True)
    industry_name = Column(String(255), nullable=True)
    employee_qty = Column(Integer, nullable=True)
    solution_corporate_needs = Column(Text, nullable=True)  # Valores unidos con ", "
    referal_code = Column(String(64), nullable=True, index=True)
    is_free_trial_use = Column(Boolean, nullable=False, default=False)
    status = Column(String(64), nullable=True)
    subscribe_list = Column(JSON(none_as_null=True), nullable=True)
    created_by_guid = Column(String(64), nullable=True)
    created_by_name = Column(String(255), nullable=True)
    updated_by_guid = Column(String(64), nullable=True)
    updated_by_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    source_updated_at = Column(DateTime(timezone=True), nullable=True)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Customer(guid={self.guid}, email={self.email})>"


class TransactionModel(Base):
    """
    Modelo de base de datos para transacciones.
    `customer_guid` no tiene FK: se toleran transacciones huerfanas.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    guid = Column(String(64), nullable=False, unique=True, index=True)
    invoice_number = Column(String(128), nullable=True)
    customer_guid = Column(String(64), nullable=True, index=True)
    transaction_callback_id = Column(String(128), nullable=True)
    status = Column(String(64), nullable=True)
    payment_channel_id = Column(String(64), nullable=True)
    payment_channel_code = Column(String(64), nullable=True)
    payment_channel_name = Column(String(128), nullable=True)
    payment_url = Column(Text, nullable=True)
    qty = Column(Integer, nullable=True)
    valuta_code = Column(String(16), nullable=True)
    sub_total = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    platform_fee = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    payment_service_fee = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    total_discount = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    grand_total = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_by_guid = Column(String(64), nullable=True)
    created_by_name = Column(String(255), nullable=True)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Transaction(guid={self.guid}, status={self.status})>"


class TransactionDetailModel(Base):
    """Modelo de base de datos para items (lineas) de una transaccion."""

    __tablename__ = "transaction_details"

    id = Column(Integer, primary_key=True, index=True)
    guid = Column(String(64), nullable=False, unique=True, index=True)
    transaction_guid = Column(String(64), nullable=False, index=True)
    merchant_guid = Column(String(64), nullable=True)
    merchant_store_name = Column(String(255), nullable=True)
    product_name = Column(String(255), nullable=True)
    product_price = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    purchase_type_id = Column(String(64), nullable=True)
    purchase_type_name = Column(String(128), nullable=True)
    purchase_type_value = Column(String(128), nullable=True)
    qty = Column(Integer, nullable=True)
    total_discount = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    grand_total = Column(Numeric(18, 2, asdecimal=False), nullable=True)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<TransactionDetail(guid={self.guid}, transaction={self.transaction_guid})>"


class UsageTransactionModel(Base):
    """
    Modelo de base de datos para movimientos de credito (credit manager).
    `type` es credit/debit y se compara sin distinguir mayusculas.
    """

    __tablename__ = "usage_transactions"

    id = Column(Integer, primary_key=True, index=True)
    guid = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    type = Column(String(32), nullable=True)
    amount = Column(Numeric(18, 4, asdecimal=False), nullable=True)
    agent = Column(String(255), nullable=True)
    user_product_id = Column(String(64), nullable=True)
    product_name = Column(String(255), nullable=True)
    product_package = Column(String(255), nullable=True)
    action_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True, index=True)
    source_updated_at = Column(DateTime(timezone=True), nullable=True)
    inserted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<UsageTransaction(guid={self.guid}, type={self.type}, amount={self.amount})>"


class ReferralPartnerModel(Base):
    """Modelo de base de datos para partners de referidos (solo lectura para el sync)."""

    __tablename__ = "referral_partners"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), nullable=False, unique=True, index=True)
    partner = Column(String(255), nullable=True)
    is_gov = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<ReferralPartner(code={self.code}, partner={self.partner})>"
