"""
Stale project-needs reminder sweep.

Run by cron (scripts/send_need_reminders.py) or by an admin through
POST /admin/tasks/send-need-reminders.

A project is eligible when ALL hold:
  • status = active
  • creator profile is approved
  • it has at least one need
  • its most recent need.updated_at ≤ now − STALE_AFTER
  • needs_reminder_sent_at is NULL or ≤ now − STALE_AFTER

For each eligible project the notifier is called; only after it returns
is the watermark set to `now` and committed. A failed send leaves the
watermark alone, so the project is picked up again next run. Failures are
isolated per project and reported, never raised.
"""

from __future__ import annotations

import datetime
import logging
import uuid
from dataclasses import dataclass, field
from typing import Literal, Protocol

from sqlalchemy import func, or_, select, update

from memberdir.core.database import utcnow
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.models.needs import ProjectNeed
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.project import Project, ProjectStatus
from memberdir.models.user import User

logger = logging.getLogger(__name__)

STALE_AFTER = datetime.timedelta(days=30)


class ReminderNotifier(Protocol):
    async def send_need_reminder(
        self,
        *,
        to: str,
        profile_name: str,
        project_title: str,
        project_id: uuid.UUID,
    ) -> None:
        """Deliver one reminder or raise."""


@dataclass(frozen=True, slots=True)
class ReminderResult:
    project_id: uuid.UUID
    project_title: str
    status: Literal["sent", "error"]
    error: str | None = None


@dataclass
class SweepReport:
    total_eligible: int = 0
    sent: int = 0
    errors: int = 0
    results: list[ReminderResult] = field(default_factory=list)


async def find_stale_projects(
    uow: UnitOfWork,
    now: datetime.datetime,
) -> list[tuple[uuid.UUID, str, str, str]]:
    """(project_id, title, creator name, creator email) for every eligible project."""
    cutoff = now - STALE_AFTER

    latest = (
        select(
            ProjectNeed.project_id.label("project_id"),
            func.max(ProjectNeed.updated_at).label("latest_update"),
        )
        .group_by(ProjectNeed.project_id)
        .subquery()
    )

    stmt = (
        select(Project.id, Project.title, Profile.name, User.email)
        .join(latest, latest.c.project_id == Project.id)
        .join(Profile, Profile.id == Project.creator_id)
        .join(User, User.id == Profile.user_id)
        .where(
            Project.status == ProjectStatus.active,
            Profile.approval_status == ApprovalStatus.approved,
            latest.c.latest_update <= cutoff,
            or_(
                Project.needs_reminder_sent_at.is_(None),
                Project.needs_reminder_sent_at <= cutoff,
            ),
        )
        .order_by(latest.c.latest_update.asc(), Project.id)
    )
    rows = (await uow.session.execute(stmt)).all()
    return [(row[0], row[1], row[2], row[3]) for row in rows]


async def send_stale_need_reminders(
    uow: UnitOfWork,
    notifier: ReminderNotifier,
    now: datetime.datetime | None = None,
) -> SweepReport:
    """
    Remind owners of stale needs. Idempotent for a given `now`: a second
    run right after a fully successful one finds nothing eligible.
    """
    now = now or utcnow()
    report = SweepReport()

    stale = await find_stale_projects(uow, now)
    report.total_eligible = len(stale)
    logger.info("Need reminder sweep: %d eligible project(s)", len(stale))

    for project_id, title, profile_name, email in stale:
        try:
            await notifier.send_need_reminder(
                to=email,
                profile_name=profile_name,
                project_title=title,
                project_id=project_id,
            )
        except Exception as exc:
            logger.exception("Need reminder for project %s failed", project_id)
            report.errors += 1
            report.results.append(
                ReminderResult(project_id, title, "error", str(exc) or type(exc).__name__)
            )
            continue

        await uow.session.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(needs_reminder_sent_at=now)
            .execution_options(synchronize_session=False)
        )
        await uow.commit()

        report.sent += 1
        report.results.append(ReminderResult(project_id, title, "sent"))

    logger.info(
        "Need reminder sweep done: sent=%d errors=%d",
        report.sent,
        report.errors,
    )
    return report
