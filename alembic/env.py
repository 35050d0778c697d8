"""
Alembic Migration Environment

1. Load application settings (database URL)
2. Import every model so Base.metadata knows all tables
3. Run migrations offline (emit SQL) or online (async engine, asyncpg)

Tables owned by the account/catalog services (users, follows, votes,
content_items) are declared in reelsense.models because this service reads
them; the migrations here only create what this service owns and the
embedding columns it writes.
"""

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

# Project root on sys.path so `import reelsense` works from alembic/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from reelsense.core.config import settings  # noqa: E402
from reelsense.db.base import Base  # noqa: E402

# Registers every table with Base.metadata
import reelsense.models  # noqa: E402,F401

# ================================
# Alembic Config Object
# ================================

config = context.config

# The URL always comes from application settings, never from alembic.ini
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    Run migrations in 'offline' mode: emit SQL without a database
    connection.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Create an async engine (no pooling) and run migrations through it."""
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured database."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
