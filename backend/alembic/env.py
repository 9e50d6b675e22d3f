"""
Alembic environment for the member directory schema.

  • The URL is taken from memberdir settings; alembic.ini carries none.
  • Offline mode renders SQL for the configured dialect; online mode opens
    the same async driver the app uses (asyncpg, or aiosqlite in dev).
  • SQLite targets get batch mode so ALTERs become table rebuilds. The
    metadata naming convention gives every constraint a stable name for it.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import async_engine_from_config

import memberdir.models  # noqa: F401  (registers every table on Base.metadata)
from memberdir.core.config import settings
from memberdir.core.database import Base

config = context.config

# ConfigParser treats % as interpolation; percent-encoded passwords need %%.
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _context_options(dialect_name: str, **extra) -> dict:  # type: ignore[no-untyped-def]
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": dialect_name == "sqlite",
        **extra,
    }


# ── Offline: emit SQL ──────────────────────────────────────
def run_migrations_offline() -> None:
    url = make_url(settings.DATABASE_URL)
    context.configure(
        **_context_options(
            url.get_backend_name(),
            url=url,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
        )
    )
    with context.begin_transaction():
        context.run_migrations()


# ── Online: async engine ───────────────────────────────────
def _migrate(connection: Connection) -> None:
    context.configure(**_context_options(connection.dialect.name, connection=connection))
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(_run_online())
