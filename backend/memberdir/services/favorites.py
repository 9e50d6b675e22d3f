"""
Favorites: private bookmarks on other members' profiles.

Only approved profiles can be favorited, and the list only shows
favorites whose profile is still approved. Everything here requires an
approved account.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.errors import NotFound, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.bookmarks import UserFavorite
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.user import User
from memberdir.services.visibility import Viewer, require_directory_access

logger = logging.getLogger(__name__)


async def _find(
    session: AsyncSession,
    user_id: uuid.UUID,
    profile_id: uuid.UUID,
) -> UserFavorite | None:
    return (
        await session.execute(
            select(UserFavorite).where(
                UserFavorite.user_id == user_id,
                UserFavorite.profile_id == profile_id,
            )
        )
    ).scalar_one_or_none()


async def add_favorite(
    uow: UnitOfWork,
    user: User,
    profile_id: uuid.UUID,
) -> tuple[UserFavorite, bool]:
    """
    Favorite an approved profile. Returns (favorite, created); adding one
    twice returns the existing row.

    Raises:
        Forbidden:       the user's account is not approved
        NotFound:        no such profile, or it is not approved
        ValidationError: it is the user's own profile
    """
    require_directory_access(Viewer.from_user(user))
    session = uow.session

    profile = await session.get(Profile, profile_id)
    if profile is None or profile.approval_status is not ApprovalStatus.approved:
        raise NotFound("Profile not found")
    if profile.user_id == user.id:
        raise ValidationError("Cannot favorite your own profile", reason="own-profile")

    existing = await _find(session, user.id, profile_id)
    if existing is not None:
        return existing, False

    favorite = UserFavorite(user_id=user.id, profile_id=profile_id)
    session.add(favorite)
    try:
        await uow.commit()
    except IntegrityError:
        # Lost a race with an identical request.
        await uow.rollback()
        existing = await _find(session, user.id, profile_id)
        if existing is None:
            raise
        return existing, False

    logger.info("User %s favorited profile %s", user.id, profile_id)
    return favorite, True


async def remove_favorite(uow: UnitOfWork, user: User, profile_id: uuid.UUID) -> None:
    require_directory_access(Viewer.from_user(user))

    result = await uow.session.execute(
        delete(UserFavorite).where(
            UserFavorite.user_id == user.id,
            UserFavorite.profile_id == profile_id,
        )
    )
    if result.rowcount == 0:
        raise NotFound("Favorite not found")
    await uow.commit()


async def list_favorites(session: AsyncSession, user: User) -> list[tuple[UserFavorite, Profile]]:
    """Newest first; favorites of profiles no longer approved are left out."""
    require_directory_access(Viewer.from_user(user))

    rows = (
        await session.execute(
            select(UserFavorite, Profile)
            .join(Profile, Profile.id == UserFavorite.profile_id)
            .where(
                UserFavorite.user_id == user.id,
                Profile.approval_status == ApprovalStatus.approved,
            )
            .order_by(UserFavorite.created_at.desc(), UserFavorite.id)
        )
    ).all()
    return [(favorite, profile) for favorite, profile in rows]


async def is_favorited(session: AsyncSession, user: User, profile_id: uuid.UUID) -> bool:
    require_directory_access(Viewer.from_user(user))
    return await _find(session, user.id, profile_id) is not None
