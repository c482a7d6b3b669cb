"""create_sync_tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('inserted_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('customers'):
        op.create_table('customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('guid', sa.String(length=64), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=64), nullable=True),
        sa.Column('gender', sa.String(length=32), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('identity_number', sa.String(length=128), nullable=True),
        sa.Column('identity_img', sa.Text(), nullable=True),
        sa.Column('country_id', sa.String(length=64), nullable=True),
        sa.Column('country', sa.String(length=128), nullable=True),
        sa.Column('city_id', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=128), nullable=True),
        sa.Column('is_identity_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('bank_name', sa.String(length=128), nullable=True),
        sa.Column('bank_account_number', sa.String(length=128), nullable=True),
        sa.Column('bank_owner_name', sa.String(length=255), nullable=True),
        sa.Column('is_phone_number_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('corporate_name', sa.String(length=255), nullable=True),
        sa.Column('industry_name', sa.String(length=255), nullable=True),
        sa.Column('employee_qty', sa.Integer(), nullable=True),
        sa.Column('solution_corporate_needs', sa.Text(), nullable=True),
        sa.Column('referal_code', sa.String(length=64), nullable=True),
        sa.Column('is_free_trial_use', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=64), nullable=True),
        sa.Column('subscribe_list', sa.JSON(), nullable=True),
        sa.Column('created_by_guid', sa.String(length=64), nullable=True),
        sa.Column('created_by_name', sa.String(length=255), nullable=True),
        sa.Column('updated_by_guid', sa.String(length=64), nullable=True),
        sa.Column('updated_by_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('source_updated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_customers_id'), 'customers', ['id'], unique=False)
        op.create_index(op.f('ix_customers_guid'), 'customers', ['guid'], unique=True)
        op.create_index(op.f('ix_customers_email'), 'customers', ['email'], unique=False)
        op.create_index(op.f('ix_customers_referal_code'), 'customers', ['referal_code'], unique=False)
        op.create_index(op.f('ix_customers_created_at'), 'customers', ['created_at'], unique=False)

    if not inspector.has_table('transactions'):
        op.create_table('transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('guid', sa.String(length=64), nullable=False),
        sa.Column('invoice_number', sa.String(length=128), nullable=True),
        sa.Column('customer_guid', sa.String(length=64), nullable=True),
        sa.Column('transaction_callback_id', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=64), nullable=True),
        sa.Column('payment_channel_id', sa.String(length=64), nullable=True),
        sa.Column('payment_channel_code', sa.String(length=64), nullable=True),
        sa.Column('payment_channel_name', sa.String(length=128), nullable=True),
        sa.Column('payment_url', sa.Text(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=True),
        sa.Column('valuta_code', sa.String(length=16), nullable=True),
        sa.Column('sub_total', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('platform_fee', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('payment_service_fee', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('total_discount', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('grand_total', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_guid', sa.String(length=64), nullable=True),
        sa.Column('created_by_name', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_transactions_id'), 'transactions', ['id'], unique=False)
        op.create_index(op.f('ix_transactions_guid'), 'transactions', ['guid'], unique=True)
        op.create_index(op.f('ix_transactions_customer_guid'), 'transactions', ['customer_guid'], unique=False)
        op.create_index(op.f('ix_transactions_created_at'), 'transactions', ['created_at'], unique=False)

    if not inspector.has_table('transaction_details'):
        op.create_table('transaction_details',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('guid', sa.String(length=64), nullable=False),
        sa.Column('transaction_guid', sa.String(length=64), nullable=False),
        sa.Column('merchant_guid', sa.String(length=64), nullable=True),
        sa.Column('merchant_store_name', sa.String(length=255), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('product_price', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('purchase_type_id', sa.String(length=64), nullable=True),
        sa.Column('purchase_type_name', sa.String(length=128), nullable=True),
        sa.Column('purchase_type_value', sa.String(length=128), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=True),
        sa.Column('total_discount', sa.Numeric(precision=18, scale=2), nullable=True),
        sa.Column('grand_total', sa.Numeric(precision=18, scale=2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_transaction_details_id'), 'transaction_details', ['id'], unique=False)
        op.create_index(op.f('ix_transaction_details_guid'), 'transaction_details', ['guid'], unique=True)
        op.create_index(op.f('ix_transaction_details_transaction_guid'), 'transaction_details', ['transaction_guid'], unique=False)

    if not inspector.has_table('usage_transactions'):
        op.create_table('usage_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('guid', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('type', sa.String(length=32), nullable=True),
        sa.Column('amount', sa.Numeric(precision=18, scale=4), nullable=True),
        sa.Column('agent', sa.String(length=255), nullable=True),
        sa.Column('user_product_id', sa.String(length=64), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=True),
        sa.Column('product_package', sa.String(length=255), nullable=True),
        sa.Column('action_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('source_updated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_usage_transactions_id'), 'usage_transactions', ['id'], unique=False)
        op.create_index(op.f('ix_usage_transactions_guid'), 'usage_transactions', ['guid'], unique=True)
        op.create_index(op.f('ix_usage_transactions_user_id'), 'usage_transactions', ['user_id'], unique=False)
        op.create_index(op.f('ix_usage_transactions_created_at'), 'usage_transactions', ['created_at'], unique=False)

    if not inspector.has_table('referral_partners'):
        op.create_table('referral_partners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('partner', sa.String(length=255), nullable=True),
        sa.Column('is_gov', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_referral_partners_id'), 'referral_partners', ['id'], unique=False)
        op.create_index(op.f('ix_referral_partners_code'), 'referral_partners', ['code'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('referral_partners', 'usage_transactions', 'transaction_details', 'transactions', 'customers'):
        if inspector.has_table(table):
            op.drop_table(table)
