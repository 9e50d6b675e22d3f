"""
Cron entrypoint for the stale-needs reminder sweep.

Usage:
    python -m scripts.send_need_reminders

Exits non-zero when at least one reminder failed, so the scheduler can
alert. Failed projects keep their watermark and are retried next run.
"""

import asyncio
import logging
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from memberdir.core.database import async_session_factory, engine
from memberdir.core.unit_of_work import UnitOfWork
from memberdir.services.mailer import EmailReminderNotifier
from memberdir.services.reminders import send_stale_need_reminders

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)


async def main() -> int:
    async with async_session_factory() as session:
        async with UnitOfWork(session) as uow:
            report = await send_stale_need_reminders(uow, EmailReminderNotifier())

    print(
        f"Eligible: {report.total_eligible}  Sent: {report.sent}  Errors: {report.errors}"
    )
    for result in report.results:
        if result.status == "error":
            print(f"  ✗ {result.project_title} ({result.project_id}): {result.error}")

    await engine.dispose()
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
