"""Stale-needs reminder sweep."""

import datetime
import uuid

import pydantic
import pytest

from conftest import category, option
from memberdir.models.profile import ApprovalStatus
from memberdir.models.project import Project, ProjectStatus
from memberdir.schemas.admin import SweepReportOut
from memberdir.services.reminders import STALE_AFTER, send_stale_need_reminders

NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)
STALE = NOW - STALE_AFTER - datetime.timedelta(days=1)
FRESH = NOW - datetime.timedelta(days=2)


class RecordingNotifier:
    """Collects reminders; raises for project titles listed in `fail_for`."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send_need_reminder(self, *, to, profile_name, project_title, project_id):
        if project_title in self.fail_for:
            raise RuntimeError("mailbox unavailable")
        self.sent.append((to, profile_name, project_title, project_id))


async def add_need(make, taxonomy, project, updated_at):
    await make.need(
        project,
        category(taxonomy, "capital-financial").id,
        [option(taxonomy, "capital-financial", "intro-angels").id],
        updated_at=updated_at,
    )


async def test_sends_only_to_eligible_projects(uow, make, taxonomy):
    _, ada = await make.member("ada", name="Ada")
    _, grace = await make.member("grace", profile=ApprovalStatus.pending_review)

    stale = await make.project(ada, "Stale")
    await add_need(make, taxonomy, stale, STALE)

    fresh = await make.project(ada, "Fresh")
    await add_need(make, taxonomy, fresh, FRESH)

    await make.project(ada, "No needs")

    archived = await make.project(ada, "Archived", status=ProjectStatus.archived)
    await add_need(make, taxonomy, archived, STALE)

    hidden = await make.project(grace, "Unapproved creator")
    await add_need(make, taxonomy, hidden, STALE)

    recent = await make.project(ada, "Recently reminded", needs_reminder_sent_at=FRESH)
    await add_need(make, taxonomy, recent, STALE)

    long_ago = await make.project(ada, "Reminded long ago", needs_reminder_sent_at=STALE)
    await add_need(make, taxonomy, long_ago, STALE)

    notifier = RecordingNotifier()
    report = await send_stale_need_reminders(uow, notifier, now=NOW)

    assert report.total_eligible == 2
    assert report.sent == 2
    assert report.errors == 0
    assert {title for _, _, title, _ in notifier.sent} == {"Stale", "Reminded long ago"}
    assert ("ada@example.com", "Ada", "Stale", stale.id) in notifier.sent


async def test_most_recent_need_decides_staleness(uow, make, taxonomy):
    _, ada = await make.member("ada")
    project = await make.project(ada)
    await add_need(make, taxonomy, project, STALE)
    await make.need(
        project,
        category(taxonomy, "people-partners").id,
        [option(taxonomy, "people-partners", "advisors-mentors").id],
        updated_at=FRESH,
    )

    report = await send_stale_need_reminders(uow, RecordingNotifier(), now=NOW)

    assert report.total_eligible == 0


async def test_second_run_is_a_no_op(uow, make, taxonomy, session_factory):
    _, ada = await make.member("ada")
    project = await make.project(ada)
    await add_need(make, taxonomy, project, STALE)

    first = await send_stale_need_reminders(uow, RecordingNotifier(), now=NOW)
    notifier = RecordingNotifier()
    second = await send_stale_need_reminders(uow, notifier, now=NOW)

    assert first.sent == 1
    assert second.total_eligible == 0
    assert notifier.sent == []

    async with session_factory() as check:
        stored = await check.get(Project, project.id)
        assert stored.needs_reminder_sent_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)


async def test_failure_is_isolated_and_retried(uow, make, taxonomy, session_factory):
    _, ada = await make.member("ada")
    broken = await make.project(ada, "Broken")
    await add_need(make, taxonomy, broken, STALE)
    working = await make.project(ada, "Working")
    await add_need(make, taxonomy, working, STALE)

    report = await send_stale_need_reminders(uow, RecordingNotifier(fail_for={"Broken"}), now=NOW)

    assert (report.total_eligible, report.sent, report.errors) == (2, 1, 1)
    failed = next(r for r in report.results if r.status == "error")
    assert failed.project_id == broken.id
    assert failed.error == "mailbox unavailable"

    async with session_factory() as check:
        assert (await check.get(Project, broken.id)).needs_reminder_sent_at is None

    # The failed project is still eligible on the next run.
    retry = RecordingNotifier()
    again = await send_stale_need_reminders(uow, retry, now=NOW)
    assert [title for _, _, title, _ in retry.sent] == ["Broken"]
    assert again.sent == 1


async def test_reminder_becomes_due_again_after_the_window(uow, make, taxonomy):
    _, ada = await make.member("ada")
    project = await make.project(ada)
    await add_need(make, taxonomy, project, STALE)
    await send_stale_need_reminders(uow, RecordingNotifier(), now=NOW)

    later = NOW + STALE_AFTER + datetime.timedelta(hours=1)
    notifier = RecordingNotifier()
    report = await send_stale_need_reminders(uow, notifier, now=later)

    assert report.sent == 1
    assert notifier.sent[0][3] == project.id


def test_report_schema_only_accepts_known_result_statuses():
    result = {"project_id": str(uuid.uuid4()), "project_title": "Engine", "status": "sent"}
    report = {"total_eligible": 1, "sent": 1, "errors": 0, "results": [result]}

    assert SweepReportOut.model_validate(report).results[0].status == "sent"
    with pytest.raises(pydantic.ValidationError):
        SweepReportOut.model_validate({**report, "results": [{**result, "status": "queued"}]})
