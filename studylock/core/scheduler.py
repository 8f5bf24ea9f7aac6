"""Scheduler for automated jobs (deadline reminders)."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from studylock.core import module_registry
from studylock.core.module import ScheduledJob


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


def add_scheduled_job(job: ScheduledJob, *, target: AsyncIOScheduler | None = None) -> None:
    """Register a module job on the scheduler using its CRON expression."""
    sched = target or scheduler
    sched.add_job(
        job.func,
        trigger=CronTrigger.from_crontab(job.cron, timezone="UTC"),
        id=job.id,
        name=job.name,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    logger.info("Scheduled job", extra={"job_id": job.id, "cron": job.cron})


def start_scheduler() -> None:
    """Start the scheduler and register all module jobs.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")

    for job in module_registry.get_all_scheduled_jobs():
        add_scheduled_job(job)

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    logger.info("Stopping scheduler")
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped")
