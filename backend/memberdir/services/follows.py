"""
Follows: private bookmarks on other members' projects.

A project can be followed while its creator is approved and it is not
archived; the list applies the same filter, so follows of projects that
drop out of the directory disappear from it without being deleted.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.errors import NotFound, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.bookmarks import ProjectFollow
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.project import Project, ProjectStatus
from memberdir.models.user import User
from memberdir.services.projects import load_project_with_creator
from memberdir.services.visibility import Viewer, require_directory_access

logger = logging.getLogger(__name__)


async def _find(
    session: AsyncSession,
    user_id: uuid.UUID,
    project_id: uuid.UUID,
) -> ProjectFollow | None:
    return (
        await session.execute(
            select(ProjectFollow).where(
                ProjectFollow.user_id == user_id,
                ProjectFollow.project_id == project_id,
            )
        )
    ).scalar_one_or_none()


async def follow_project(
    uow: UnitOfWork,
    user: User,
    project_id: uuid.UUID,
) -> tuple[ProjectFollow, bool]:
    """
    Returns (follow, created). Following twice returns the existing row.

    Raises:
        Forbidden:       the user's account is not approved
        NotFound:        missing, archived, or creator not approved
        ValidationError: the user created the project
    """
    require_directory_access(Viewer.from_user(user))
    session = uow.session

    project, creator = await load_project_with_creator(session, project_id)
    if (
        creator.approval_status is not ApprovalStatus.approved
        or project.status is ProjectStatus.archived
    ):
        raise NotFound("Project not found")
    if creator.user_id == user.id:
        raise ValidationError("Cannot follow your own project", reason="own-project")

    existing = await _find(session, user.id, project_id)
    if existing is not None:
        return existing, False

    follow = ProjectFollow(user_id=user.id, project_id=project_id)
    session.add(follow)
    try:
        await uow.commit()
    except IntegrityError:
        await uow.rollback()
        existing = await _find(session, user.id, project_id)
        if existing is None:
            raise
        return existing, False

    logger.info("User %s followed project %s", user.id, project_id)
    return follow, True


async def unfollow_project(uow: UnitOfWork, user: User, project_id: uuid.UUID) -> None:
    require_directory_access(Viewer.from_user(user))

    result = await uow.session.execute(
        delete(ProjectFollow).where(
            ProjectFollow.user_id == user.id,
            ProjectFollow.project_id == project_id,
        )
    )
    if result.rowcount == 0:
        raise NotFound("Follow not found")
    await uow.commit()


async def list_follows(
    session: AsyncSession,
    user: User,
) -> list[tuple[ProjectFollow, Project, Profile]]:
    """Newest first, as (follow, project, creator)."""
    require_directory_access(Viewer.from_user(user))

    rows = (
        await session.execute(
            select(ProjectFollow, Project, Profile)
            .join(Project, Project.id == ProjectFollow.project_id)
            .join(Profile, Profile.id == Project.creator_id)
            .where(
                ProjectFollow.user_id == user.id,
                Profile.approval_status == ApprovalStatus.approved,
                Project.status != ProjectStatus.archived,
            )
            .order_by(ProjectFollow.created_at.desc(), ProjectFollow.id)
        )
    ).all()
    return [(follow, project, creator) for follow, project, creator in rows]


async def is_following(session: AsyncSession, user: User, project_id: uuid.UUID) -> bool:
    require_directory_access(Viewer.from_user(user))
    return await _find(session, user.id, project_id) is not None
