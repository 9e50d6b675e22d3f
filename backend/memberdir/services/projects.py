"""
Project CRUD.

Projects have no review state of their own — every read goes through the
visibility policy using the creator profile's approval_status.
Archived projects are hidden from everyone except the owner and admins.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.errors import Forbidden, NotFound, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.bookmarks import ProjectFollow
from memberdir.models.needs import ProjectNeed, ProjectNeedOption
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.project import Project, ProjectStatus
from memberdir.models.user import User
from memberdir.services.pagination import Page
from memberdir.services.sanitize import sanitize_multiline_text, sanitize_text, sanitize_url
from memberdir.services.visibility import (
    Viewer,
    Visibility,
    require_directory_access,
    require_visible,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProjectView:
    project: Project
    creator: Profile
    visibility: Visibility


def clean_project_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Sanitize the project fields present in `fields`.

    Raises:
        ValidationError: empty title, bad URL or unknown status.
    """
    cleaned: dict[str, Any] = {}

    if "title" in fields:
        title = sanitize_text(fields["title"])
        if not title:
            raise ValidationError("Title is required", reason="title-required")
        cleaned["title"] = title

    if "description" in fields:
        cleaned["description"] = sanitize_multiline_text(fields["description"])

    for field in ("website_url", "repo_url"):
        if field in fields:
            try:
                cleaned[field] = sanitize_url(fields[field])
            except ValueError as exc:
                raise ValidationError(
                    f"{field} must be a valid http(s) URL",
                    reason="invalid-url",
                ) from exc

    if fields.get("status") is not None:
        try:
            cleaned["status"] = ProjectStatus(fields["status"])
        except ValueError as exc:
            raise ValidationError("Invalid project status", reason="invalid-status") from exc

    return cleaned


async def load_project_with_creator(
    session: AsyncSession,
    project_id: uuid.UUID,
) -> tuple[Project, Profile]:
    row = (
        await session.execute(
            select(Project, Profile)
            .join(Profile, Profile.id == Project.creator_id)
            .where(Project.id == project_id)
        )
    ).first()
    if row is None:
        raise NotFound("Project not found")
    return row[0], row[1]


async def _own_profile(session: AsyncSession, user: User) -> Profile | None:
    return (
        await session.execute(select(Profile).where(Profile.user_id == user.id))
    ).scalar_one_or_none()


# ── Create ──────────────────────────────────────────────────
async def create_project(
    uow: UnitOfWork,
    user: User,
    fields: Mapping[str, Any],
) -> Project:
    """
    Create a project owned by the user's profile.

    Both the account and the profile must be approved.

    Raises:
        Forbidden, ValidationError
    """
    session = uow.session
    require_directory_access(Viewer.from_user(user))

    profile = await _own_profile(session, user)
    if profile is None or profile.approval_status is not ApprovalStatus.approved:
        raise Forbidden(
            "An approved profile is required to create projects",
            reason="profile_not_approved",
        )

    if not fields.get("title"):
        raise ValidationError("Title is required", reason="title-required")
    cleaned = clean_project_fields(fields)
    cleaned.pop("status", None)

    project = Project(creator_id=profile.id, status=ProjectStatus.active, **cleaned)
    session.add(project)
    await uow.commit()
    await session.refresh(project)

    logger.info("Project %s created by profile %s", project.id, profile.id)
    return project


# ── Read ────────────────────────────────────────────────────
async def get_project(
    session: AsyncSession,
    viewer: User,
    project_id: uuid.UUID,
) -> ProjectView:
    """
    Raises:
        NotFound:  missing, archived, or creator not approved
        Forbidden: the viewer's account is not approved
    """
    project, creator = await load_project_with_creator(session, project_id)
    outcome = require_visible(
        Viewer.from_user(viewer),
        creator.user_id,
        creator.approval_status,
        not_found_message="Project not found",
    )
    if outcome is Visibility.public and project.status is ProjectStatus.archived:
        raise NotFound("Project not found")
    return ProjectView(project=project, creator=creator, visibility=outcome)


async def list_visible_projects(
    session: AsyncSession,
    viewer: User,
    page: Page,
) -> tuple[list[tuple[Project, Profile]], int]:
    """Non-archived projects of approved creators, newest first."""
    require_directory_access(Viewer.from_user(viewer))

    conditions = (
        Profile.approval_status == ApprovalStatus.approved,
        Project.status != ProjectStatus.archived,
    )
    rows = (
        await session.execute(
            select(Project, Profile)
            .join(Profile, Profile.id == Project.creator_id)
            .where(*conditions)
            .order_by(Project.created_at.desc(), Project.id)
            .limit(page.limit)
            .offset(page.offset)
        )
    ).all()
    total = (
        await session.execute(
            select(func.count())
            .select_from(Project)
            .join(Profile, Profile.id == Project.creator_id)
            .where(*conditions)
        )
    ).scalar_one()
    return [(project, creator) for project, creator in rows], total


async def list_own_projects(session: AsyncSession, user: User) -> list[Project]:
    profile = await _own_profile(session, user)
    if profile is None:
        return []
    projects = (
        await session.execute(
            select(Project)
            .where(Project.creator_id == profile.id)
            .order_by(Project.created_at.desc())
        )
    ).scalars().all()
    return list(projects)


# ── Update / delete ─────────────────────────────────────────
async def update_project(
    uow: UnitOfWork,
    project_id: uuid.UUID,
    requester: User,
    fields: Mapping[str, Any],
) -> Project:
    """Owner-only partial update."""
    project, creator = await load_project_with_creator(uow.session, project_id)
    if creator.user_id != requester.id:
        raise Forbidden("Not authorized to edit this project")

    cleaned = clean_project_fields(fields)
    if cleaned.get("status") is ProjectStatus.archived and not requester.is_admin:
        raise Forbidden("Only admins can archive projects")

    for field, value in cleaned.items():
        setattr(project, field, value)
    await uow.commit()
    await uow.session.refresh(project)
    return project


async def delete_project_needs(session: AsyncSession, project_id: uuid.UUID) -> None:
    need_ids = select(ProjectNeed.id).where(ProjectNeed.project_id == project_id)
    await session.execute(
        delete(ProjectNeedOption)
        .where(ProjectNeedOption.project_need_id.in_(need_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(ProjectNeed)
        .where(ProjectNeed.project_id == project_id)
        .execution_options(synchronize_session=False)
    )


async def delete_project(
    uow: UnitOfWork,
    project_id: uuid.UUID,
    requester: User,
) -> None:
    """Owner or admin. Needs and follows go with the project in the same commit."""
    session = uow.session
    project, creator = await load_project_with_creator(session, project_id)
    if creator.user_id != requester.id and not requester.is_admin:
        raise Forbidden("Not authorized to delete this project")

    await delete_project_needs(session, project.id)
    await session.execute(
        delete(ProjectFollow)
        .where(ProjectFollow.project_id == project.id)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(Project)
        .where(Project.id == project.id)
        .execution_options(synchronize_session=False)
    )
    await uow.commit()
    session.expunge(project)

    logger.info("Project %s deleted by %s", project_id, requester.id)


async def archive_project(
    uow: UnitOfWork,
    project_id: uuid.UUID,
    actor: User,
) -> Project:
    """Admin soft delete."""
    if not actor.is_admin:
        raise Forbidden("Admin access required")

    project, _ = await load_project_with_creator(uow.session, project_id)
    project.status = ProjectStatus.archived
    await uow.commit()
    await uow.session.refresh(project)

    logger.info("Project %s archived by %s", project.id, actor.id)
    return project