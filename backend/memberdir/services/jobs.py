"""
Job postings.

Posting requires an approved account, the employer capability (granted by
billing, see accounts.apply_billing_event) and an approved profile.
Reads follow the visibility policy on the poster's profile; inactive or
expired postings are only visible to the poster and admins.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from memberdir.core.database import utcnow
from memberdir.core.errors import Forbidden, NotFound, ValidationError
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.job import Job, JobType
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.user import AccountStatus, User
from memberdir.services.pagination import Page
from memberdir.services.sanitize import sanitize_multiline_text, sanitize_text, sanitize_url
from memberdir.services.visibility import (
    Viewer,
    Visibility,
    require_directory_access,
    require_visible,
)

logger = logging.getLogger(__name__)

DEFAULT_JOB_LIFETIME = datetime.timedelta(days=30)


@dataclass(frozen=True, slots=True)
class JobView:
    job: Job
    poster: Profile
    visibility: Visibility


def _as_aware(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def clean_job_fields(
    fields: Mapping[str, Any],
    now: datetime.datetime,
) -> dict[str, Any]:
    """
    Raises:
        ValidationError: empty title/company, bad type, URL or expiry.
    """
    cleaned: dict[str, Any] = {}

    for field, reason in (("title", "title-required"), ("company_name", "company-name-required")):
        if field in fields:
            value = sanitize_text(fields[field])
            if not value:
                raise ValidationError(f"{field} is required", reason=reason)
            cleaned[field] = value

    if "description" in fields:
        cleaned["description"] = sanitize_multiline_text(fields["description"])

    if "type" in fields:
        try:
            cleaned["type"] = JobType(fields["type"])
        except ValueError as exc:
            raise ValidationError("Invalid job type", reason="invalid-job-type") from exc

    if "apply_url" in fields:
        try:
            apply_url = sanitize_url(fields["apply_url"])
        except ValueError:
            apply_url = None
        if apply_url is None:
            raise ValidationError("apply_url must be a valid http(s) URL", reason="invalid-url")
        cleaned["apply_url"] = apply_url

    if fields.get("expires_at") is not None:
        expires_at = _as_aware(fields["expires_at"])
        if expires_at <= now:
            raise ValidationError("expires_at must be in the future", reason="invalid-expiry")
        cleaned["expires_at"] = expires_at

    return cleaned


async def _load_job(session: AsyncSession, job_id: uuid.UUID) -> tuple[Job, Profile]:
    row = (
        await session.execute(
            select(Job, Profile)
            .join(Profile, Profile.id == Job.poster_id)
            .where(Job.id == job_id)
        )
    ).first()
    if row is None:
        raise NotFound("Job not found")
    return row[0], row[1]


# ── Create ──────────────────────────────────────────────────
async def create_job(
    uow: UnitOfWork,
    user: User,
    fields: Mapping[str, Any],
    *,
    now: datetime.datetime | None = None,
) -> Job:
    """
    Raises:
        Forbidden:       not approved, not an employer, or profile not approved
        ValidationError: missing/invalid fields
    """
    session = uow.session
    now = now or utcnow()

    if user.status is not AccountStatus.approved:
        raise Forbidden("Account pending approval", reason="account_not_approved")
    if not user.is_employer:
        raise Forbidden("An employer subscription is required to post jobs", reason="not_employer")

    profile = (
        await session.execute(select(Profile).where(Profile.user_id == user.id))
    ).scalar_one_or_none()
    if profile is None or profile.approval_status is not ApprovalStatus.approved:
        raise Forbidden(
            "An approved profile is required to post jobs",
            reason="profile_not_approved",
        )

    for field in ("title", "company_name", "type", "apply_url"):
        if not fields.get(field):
            raise ValidationError(f"{field} is required", reason=f"{field.replace('_', '-')}-required")

    cleaned = clean_job_fields(fields, now)
    cleaned.setdefault("expires_at", now + DEFAULT_JOB_LIFETIME)

    job = Job(poster_id=profile.id, active=True, **cleaned)
    session.add(job)
    await uow.commit()
    await session.refresh(job)

    logger.info("Job %s posted by profile %s", job.id, profile.id)
    return job


# ── Read ────────────────────────────────────────────────────
def _is_live(job: Job, now: datetime.datetime) -> bool:
    return job.active and _as_aware(job.expires_at) > now


async def get_job(
    session: AsyncSession,
    viewer: User,
    job_id: uuid.UUID,
    *,
    now: datetime.datetime | None = None,
) -> JobView:
    now = now or utcnow()
    job, poster = await _load_job(session, job_id)
    outcome = require_visible(
        Viewer.from_user(viewer),
        poster.user_id,
        poster.approval_status,
        not_found_message="Job not found",
    )
    if outcome is Visibility.public and not _is_live(job, now):
        raise NotFound("Job not found")
    return JobView(job=job, poster=poster, visibility=outcome)


async def list_active_jobs(
    session: AsyncSession,
    viewer: User,
    page: Page,
    *,
    now: datetime.datetime | None = None,
) -> tuple[list[tuple[Job, Profile]], int]:
    """Active, unexpired jobs from approved posters, newest first."""
    require_directory_access(Viewer.from_user(viewer))
    now = now or utcnow()

    conditions = (
        Job.active.is_(True),
        Job.expires_at > now,
        Profile.approval_status == ApprovalStatus.approved,
    )
    rows = (
        await session.execute(
            select(Job, Profile)
            .join(Profile, Profile.id == Job.poster_id)
            .where(*conditions)
            .order_by(Job.created_at.desc(), Job.id)
            .limit(page.limit)
            .offset(page.offset)
        )
    ).all()
    total = (
        await session.execute(
            select(func.count())
            .select_from(Job)
            .join(Profile, Profile.id == Job.poster_id)
            .where(*conditions)
        )
    ).scalar_one()
    return [(job, poster) for job, poster in rows], total


# ── Update / deactivate ─────────────────────────────────────
async def update_job(
    uow: UnitOfWork,
    job_id: uuid.UUID,
    requester: User,
    fields: Mapping[str, Any],
    *,
    now: datetime.datetime | None = None,
) -> Job:
    """Poster-only partial update."""
    job, poster = await _load_job(uow.session, job_id)
    if poster.user_id != requester.id:
        raise Forbidden("Not authorized to edit this job")

    cleaned = clean_job_fields(fields, now or utcnow())
    for field, value in cleaned.items():
        setattr(job, field, value)
    await uow.commit()
    await uow.session.refresh(job)
    return job


async def deactivate_job(
    uow: UnitOfWork,
    job_id: uuid.UUID,
    actor: User,
) -> Job:
    """Admin soft delete."""
    if not actor.is_admin:
        raise Forbidden("Admin access required")

    job, _ = await _load_job(uow.session, job_id)
    job.active = False
    await uow.commit()
    await uow.session.refresh(job)

    logger.info("Job %s deactivated by %s", job.id, actor.id)
    return job
