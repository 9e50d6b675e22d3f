"""
Admin router — review queue, moderation, and operational tasks.

Every route requires an admin token (403 otherwise).

  GET  /admin/profiles/pending                 — review queue, oldest first
  GET  /admin/profiles/{profile_id}            — any profile
  POST /admin/profiles/{profile_id}/approve
  POST /admin/profiles/{profile_id}/reject
  GET  /admin/users
  POST /admin/users/{user_id}/suspend
  POST /admin/users/{user_id}/reinstate
  POST /admin/projects/{project_id}/archive
  POST /admin/jobs/{job_id}/deactivate
  POST /admin/tasks/send-need-reminders        — run the stale-needs sweep now
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.auth.dependencies import AdminAuth
from memberdir.core.database import get_db_session
from memberdir.core.unit_of_work import UnitOfWork, get_unit_of_work
from memberdir.models.user import AccountStatus
from memberdir.schemas.admin import RejectRequest, SweepReportOut, UserList, UserOut
from memberdir.schemas.common import PageMeta
from memberdir.schemas.job import JobFullOut
from memberdir.schemas.profile import ProfileFull
from memberdir.schemas.project import ProjectFullOut
from memberdir.services import accounts, jobs, profiles, projects, reminders
from memberdir.services.mailer import EmailReminderNotifier
from memberdir.services.pagination import pagination_meta, parse_pagination

router = APIRouter(tags=["Admin"])

DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Uow = Annotated[UnitOfWork, Depends(get_unit_of_work)]


def get_reminder_notifier() -> reminders.ReminderNotifier:
    return EmailReminderNotifier()


Notifier = Annotated[reminders.ReminderNotifier, Depends(get_reminder_notifier)]


# ── Profiles ────────────────────────────────────────────────
@router.get("/profiles/pending", response_model=list[ProfileFull], summary="Review queue")
async def list_pending_profiles(session: DbSession, admin: AdminAuth) -> list[ProfileFull]:
    rows = await profiles.list_pending_profiles(session)
    return [ProfileFull.from_profile(profile, user.email) for profile, user in rows]


@router.get("/profiles/{profile_id}", response_model=ProfileFull, summary="Any profile by id")
async def get_profile(profile_id: uuid.UUID, session: DbSession, admin: AdminAuth) -> ProfileFull:
    profile, user = await profiles.get_profile_by_id(session, profile_id)
    return ProfileFull.from_profile(profile, user.email)


@router.post(
    "/profiles/{profile_id}/approve",
    response_model=ProfileFull,
    summary="Approve a profile",
    description="pending_review → approved. Also approves a pending account. 409 otherwise.",
)
async def approve_profile(profile_id: uuid.UUID, uow: Uow, admin: AdminAuth) -> ProfileFull:
    await profiles.approve_profile(uow, profile_id, admin.user)
    profile, user = await profiles.get_profile_by_id(uow.session, profile_id)
    return ProfileFull.from_profile(profile, user.email)


@router.post(
    "/profiles/{profile_id}/reject",
    response_model=ProfileFull,
    summary="Reject a profile",
)
async def reject_profile(
    profile_id: uuid.UUID,
    payload: RejectRequest,
    uow: Uow,
    admin: AdminAuth,
) -> ProfileFull:
    await profiles.reject_profile(uow, profile_id, admin.user, payload.note)
    profile, user = await profiles.get_profile_by_id(uow.session, profile_id)
    return ProfileFull.from_profile(profile, user.email)


# ── Users ───────────────────────────────────────────────────
@router.get("/users", response_model=UserList, summary="List accounts")
async def list_users(
    session: DbSession,
    admin: AdminAuth,
    status: Annotated[AccountStatus | None, Query()] = None,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int | None, Query()] = None,
) -> UserList:
    page = parse_pagination(limit, offset)
    users, total = await accounts.list_users(session, admin.user, page, status)
    return UserList(
        items=[UserOut.model_validate(u) for u in users],
        meta=PageMeta(**pagination_meta(total, page)),
    )


@router.post("/users/{user_id}/suspend", response_model=UserOut, summary="Suspend an account")
async def suspend_user(user_id: uuid.UUID, uow: Uow, admin: AdminAuth) -> UserOut:
    user = await accounts.suspend_user(uow, user_id, admin.user)
    return UserOut.model_validate(user)


@router.post("/users/{user_id}/reinstate", response_model=UserOut, summary="Reinstate an account")
async def reinstate_user(user_id: uuid.UUID, uow: Uow, admin: AdminAuth) -> UserOut:
    user = await accounts.reinstate_user(uow, user_id, admin.user)
    return UserOut.model_validate(user)


# ── Content moderation ──────────────────────────────────────
@router.post(
    "/projects/{project_id}/archive",
    response_model=ProjectFullOut,
    summary="Archive a project",
)
async def archive_project(project_id: uuid.UUID, uow: Uow, admin: AdminAuth) -> ProjectFullOut:
    project = await projects.archive_project(uow, project_id, admin.user)
    _, creator = await projects.load_project_with_creator(uow.session, project.id)
    return ProjectFullOut.from_project(project, creator)


@router.post("/jobs/{job_id}/deactivate", response_model=JobFullOut, summary="Deactivate a job")
async def deactivate_job(job_id: uuid.UUID, uow: Uow, admin: AdminAuth) -> JobFullOut:
    await jobs.deactivate_job(uow, job_id, admin.user)
    view = await jobs.get_job(uow.session, admin.user, job_id)
    return JobFullOut.from_job(view.job, view.poster)


# ── Tasks ───────────────────────────────────────────────────
@router.post(
    "/tasks/send-need-reminders",
    response_model=SweepReportOut,
    summary="Send stale-needs reminders",
    description=(
        "Emails owners of active projects whose needs have not changed in "
        "30 days. Safe to re-run: reminded projects are skipped for 30 days."
    ),
)
async def send_need_reminders(uow: Uow, admin: AdminAuth, notifier: Notifier) -> SweepReportOut:
    report = await reminders.send_stale_need_reminders(uow, notifier)
    return SweepReportOut.model_validate(report)
