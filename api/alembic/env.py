"""
Entorno de Alembic para las tablas de sincronizacion.

Las migraciones corren sincronicas con psycopg sobre la misma base que usa la
app (`effective_database_url`).
"""
import sys
from pathlib import Path
from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

API_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(API_DIR))

from market_sync.core.config import settings
from market_sync.infrastructure.database import models  # noqa: F401
from market_sync.infrastructure.database.session import Base

config = context.config

# La app usa asyncpg; Alembic necesita un driver sincrono
db_url = settings.effective_database_url.replace("+asyncpg", "+psycopg")
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# customers, transactions, transaction_details, usage_transactions, referral_partners
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emite el SQL de las migraciones sin conectarse."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Aplica las migraciones contra la base configurada."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
