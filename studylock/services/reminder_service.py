"""Deadline reminder service.

Pushes a one-time reminder for every pending task due within the next hour.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from studylock.core import db_client
from studylock.core.config import constants
from studylock.core.errors import ConfigurationError
from studylock.core.logging import span
from studylock.domain.subscription import PushSubscription
from studylock.domain.task import Task, TaskStatus, ensure_utc
from studylock.interface import push_sender
from studylock.interface.push_sender import PushResult
from studylock.modules.tasks import service as task_service
from studylock.services import subscription_service


logger = logging.getLogger(__name__)

PushFunc = Callable[[PushSubscription, dict[str, Any]], Awaitable[PushResult]]


def build_reminder_payload(task: Task, *, now: datetime) -> dict[str, str]:
    """Notification body for a task approaching its deadline."""
    minutes_left = round((task.deadline - ensure_utc(now)).total_seconds() / 60)
    return {
        "title": "⏰ Deadline Approaching!",
        "body": f'"{task.title}" is due in {minutes_left} minutes. Don\'t forget to complete it!',
        "icon": "/favicon.ico",
        "tag": f"deadline-{task.id}",
    }


async def find_due_tasks(*, now: datetime) -> list[Task]:
    """Pending tasks without a reminder whose deadline falls in the reminder window."""
    window_start = task_service.to_storage_timestamp(now)
    window = timedelta(minutes=constants.REMINDER_WINDOW_MINUTES)
    window_end = task_service.to_storage_timestamp(ensure_utc(now) + window)
    records = await task_service.list_all_records(
        filter_query=(
            f'status = "{TaskStatus.PENDING}" && reminder_sent = "false" && '
            f'deadline >= "{window_start}" && deadline <= "{window_end}"'
        ),
        sort="deadline ASC",
    )
    return [Task.model_validate(r) for r in records]


async def _notify_subscription(
    *,
    task: Task,
    subscription: PushSubscription,
    payload: dict[str, Any],
    push: PushFunc,
) -> None:
    try:
        result = await push(subscription, payload)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error("Push send raised", extra={"task_id": task.id, "error": str(e)})
        result = PushResult(
            success=False,
            error=str(e),
            expired=push_sender.is_expired_failure(status_code=None, message=str(e)),
        )

    if result.success:
        logger.info("Sent deadline reminder", extra={"task_id": task.id, "user_id": task.user_id})
        return

    logger.warning(
        "Failed to send deadline reminder",
        extra={"task_id": task.id, "status": result.status_code, "error": result.error},
    )
    if result.expired:
        await subscription_service.remove_subscription(endpoint=subscription.endpoint)


async def send_deadline_reminders(
    *,
    now: datetime | None = None,
    push: PushFunc | None = None,
) -> int:
    """Remind owners of pending tasks due within the window.

    A failed subscription lookup skips the task without marking it, so the next
    run retries. Individual delivery failures do not stop the task from being marked.

    Args:
        now: Reference time (defaults to the current UTC time)
        push: Delivery function (defaults to web push)

    Returns:
        Number of tasks reminded
    """
    with span("reminder_service.send_deadline_reminders"):
        now = ensure_utc(now or datetime.now(UTC))
        push = push or push_sender.send_push

        tasks = await find_due_tasks(now=now)
        logger.info("Found tasks needing reminders", extra={"count": len(tasks)})

        reminded = 0
        for task in tasks:
            try:
                subscriptions = await subscription_service.list_subscriptions(user_id=task.user_id)
            except db_client.DatabaseError as e:
                logger.error(
                    "Failed to load push subscriptions",
                    extra={"task_id": task.id, "user_id": task.user_id, "error": str(e)},
                )
                continue

            payload = build_reminder_payload(task, now=now)
            for subscription in subscriptions:
                await _notify_subscription(task=task, subscription=subscription, payload=payload, push=push)

            await db_client.update_record(
                collection=task_service.COLLECTION,
                record_id=task.id,
                data={"reminder_sent": True},
            )
            reminded += 1

        return reminded
