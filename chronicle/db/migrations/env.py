"""Alembic environment for the audit schema.

Migrations are hand-written (no autogenerate) and run over asyncpg. The
database URL is resolved the same way the application pool resolves it.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from chronicle.config import get_settings
from chronicle.db.pool import PostgresPool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = None


def get_database_url() -> str:
    """Resolve the migration database URL.

    Priority:
    1. storage.postgres.connection_url from settings
    2. CHRONICLE_DATABASE_URL / DATABASE_URL / POSTGRES_* environment variables

    The sqlalchemy.url in alembic.ini is only a placeholder. Plain
    postgresql:// URLs are switched to the asyncpg driver.
    """
    url = get_settings().storage.postgres.connection_url or PostgresPool().dsn
    for scheme in ("postgresql://", "postgres://"):
        if url.startswith(scheme):
            return url.replace(scheme, "postgresql+asyncpg://", 1)
    return url


def run_migrations_offline() -> None:
    """Emit SQL for review without connecting."""
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_database_url()

    engine = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
