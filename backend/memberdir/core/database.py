"""
Async database engine, session factory, and ORM base.

Rules enforced:
  • Every DB call goes through AsyncSession; services get it from a
    request-scoped get_db_session() or, for writes, via a UnitOfWork.
  • Models use portable column types only (Uuid, DateTime(timezone=True),
    non-native Enum) so the same metadata runs on Postgres and SQLite.
  • Constraint names come from NAMING_CONVENTION, which lets Alembic's
    batch mode find and rebuild them on SQLite.
  • Timestamps are written with utcnow(), never naive datetimes.
"""

import datetime
from collections.abc import AsyncGenerator

from sqlalchemy import MetaData, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from memberdir.core.config import settings

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# ── SQLite ──────────────────────────────────────────────────
def enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    """
    Turn on FK enforcement for every new SQLite connection.

    SQLite ships with foreign keys off; ON DELETE CASCADE on project needs
    and access tokens relies on them.
    """

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Engine ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)
if make_url(settings.DATABASE_URL).get_backend_name() == "sqlite":
    enable_sqlite_foreign_keys(engine.sync_engine)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,  # services return ORM objects after commit
)


# ── ORM Base ────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Shared declarative base; Alembic autogenerates from Base.metadata."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime.datetime:
    """Timezone-aware current time, used for every timestamp we write."""
    return datetime.datetime.now(datetime.timezone.utc)


# ── Dependency ──────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request, shared by every dependency of that request
    (auth lookup, reads and the unit of work all see the same session).

    Commits happen through UnitOfWork; this only guarantees cleanup.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
