"""
Shared fixtures.

Every test gets its own SQLite file (aiosqlite) with the full schema
created from Base.metadata, so tests never share state. A file rather
than :memory: lets a test open a second, independent connection (the
needs atomicity and concurrent-approval tests rely on this).
"""

import os

# Settings are read at import time; give them a harmless URL first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "dev")

import datetime
import uuid
from collections.abc import AsyncIterator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import memberdir.models  # noqa: F401
from memberdir.auth.hashing import DISPLAY_PREFIX_LENGTH, generate_access_token
from memberdir.core.database import Base, enable_sqlite_foreign_keys, utcnow
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.access_token import AccessToken
from memberdir.models.needs import ProjectNeed, ProjectNeedOption
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.project import Project, ProjectStatus
from memberdir.models.user import AccountStatus, User
from memberdir.services.taxonomy import (
    CategoryEntry,
    DEFAULT_TAXONOMY,
    OptionEntry,
    Taxonomy,
    TaxonomyCache,
    seed_taxonomy,
)


# ── Database ────────────────────────────────────────────────
@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'directory.db'}",
        poolclass=NullPool,
    )
    enable_sqlite_foreign_keys(engine.sync_engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def uow(session) -> UnitOfWork:
    return UnitOfWork(session)


# ── Taxonomy ────────────────────────────────────────────────
@pytest.fixture
def taxonomy_cache() -> TaxonomyCache:
    return TaxonomyCache()


@pytest.fixture
async def taxonomy(session, taxonomy_cache) -> Taxonomy:
    """The default taxonomy, seeded and loaded through a fresh cache."""
    await seed_taxonomy(session, DEFAULT_TAXONOMY, taxonomy_cache)
    return await taxonomy_cache.get(session)


def category(taxonomy: Taxonomy, slug: str) -> CategoryEntry:
    return next(c for c in taxonomy.categories if c.slug == slug)


def option(taxonomy: Taxonomy, category_slug: str, slug: str) -> OptionEntry:
    return next(o for o in category(taxonomy, category_slug).options if o.slug == slug)


# ── Factories ───────────────────────────────────────────────
class Factory:
    """Inserts committed rows. Each helper refreshes what it returns."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def user(
        self,
        email: str | None = None,
        *,
        status: AccountStatus = AccountStatus.approved,
        is_admin: bool = False,
        is_employer: bool = False,
    ) -> User:
        return await self._save(
            User(
                email=email or f"{uuid.uuid4().hex[:10]}@example.com",
                status=status,
                is_admin=is_admin,
                is_employer=is_employer,
            )
        )

    async def admin(self) -> User:
        return await self.user("admin@example.com", is_admin=True)

    async def profile(
        self,
        user: User,
        handle: str,
        *,
        status: ApprovalStatus = ApprovalStatus.approved,
        name: str = "Ada Lovelace",
        **fields,
    ) -> Profile:
        return await self._save(
            Profile(
                user_id=user.id,
                name=name,
                handle=handle,
                approval_status=status,
                approved_at=utcnow() if status is ApprovalStatus.approved else None,
                **fields,
            )
        )

    async def member(
        self,
        handle: str,
        *,
        account: AccountStatus = AccountStatus.approved,
        profile: ApprovalStatus = ApprovalStatus.approved,
        **fields,
    ) -> tuple[User, Profile]:
        user = await self.user(f"{handle}@example.com", status=account)
        return user, await self.profile(user, handle, status=profile, **fields)

    async def project(
        self,
        creator: Profile,
        title: str = "Analytical Engine",
        *,
        status: ProjectStatus = ProjectStatus.active,
        needs_reminder_sent_at: datetime.datetime | None = None,
    ) -> Project:
        return await self._save(
            Project(
                creator_id=creator.id,
                title=title,
                status=status,
                needs_reminder_sent_at=needs_reminder_sent_at,
            )
        )

    async def need(
        self,
        project: Project,
        category_id: uuid.UUID,
        option_ids: list[uuid.UUID],
        *,
        updated_at: datetime.datetime | None = None,
        context_text: str | None = None,
    ) -> ProjectNeed:
        return await self._save(
            ProjectNeed(
                project_id=project.id,
                category_id=category_id,
                context_text=context_text,
                updated_at=updated_at or utcnow(),
                options=[ProjectNeedOption(option_id=oid) for oid in option_ids],
            )
        )

    async def token(self, user: User) -> str:
        raw_token, token_hash = generate_access_token()
        await self._save(
            AccessToken(
                user_id=user.id,
                token_hash=token_hash,
                prefix=raw_token[:DISPLAY_PREFIX_LENGTH],
            )
        )
        return raw_token


@pytest.fixture
def make(session) -> Factory:
    return Factory(session)
