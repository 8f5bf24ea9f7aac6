"""Scheduled jobs for the notifications module."""

import logging

from studylock.core.config import settings
from studylock.core.module import ScheduledJob
from studylock.services import reminder_service


logger = logging.getLogger(__name__)


async def run_deadline_reminders() -> None:
    """Push reminders for tasks due within the hour.

    Runs on the reminder CRON schedule. Failures are logged so the scheduler keeps running.
    """
    logger.info("Running deadline reminders job")
    try:
        reminded = await reminder_service.send_deadline_reminders()
        logger.info("Completed deadline reminders job", extra={"reminders": reminded})
    except Exception:
        logger.exception("Error in deadline reminders job")


def get_scheduled_jobs() -> list[ScheduledJob]:
    """Return all scheduled jobs for the notifications module."""
    return [
        ScheduledJob(
            id="deadline_reminders",
            name="Send Deadline Reminders",
            cron=settings.reminder_cron,
            func=run_deadline_reminders,
        ),
    ]
