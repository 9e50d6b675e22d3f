"""
Transaction-scoped unit of work.

Services never call session.commit() on their own: they receive a
UnitOfWork and commit through it exactly once per logical operation.
That is what makes the multi-row writes atomic:

  • approve_profile        — Profile + owning User in one commit
  • replace_project_needs  — delete old needs + insert new needs in one commit

If the block exits with an exception, everything since the last commit
is rolled back, so a failed validation can never leave a partial write.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from types import TracebackType

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.database import get_db_session

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Wraps one AsyncSession and owns its commit/rollback."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def __aenter__(self) -> UnitOfWork:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            await self.rollback()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


async def get_unit_of_work(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[UnitOfWork, None]:
    """FastAPI dependency — one unit of work per request."""
    async with UnitOfWork(session) as uow:
        yield uow
