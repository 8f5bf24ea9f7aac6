"""Task service for CRUD operations and lifecycle updates."""

import logging
from datetime import UTC, datetime
from typing import Any

from studylock.core import db_client
from studylock.core.config import constants
from studylock.core.db_client import sanitize_param
from studylock.core.logging import span
from studylock.domain.task import Task, TaskStatus, TaskType, ensure_utc
from studylock.models.service_models import TaskStats, VerificationResult
from studylock.modules.tasks import state_machine


logger = logging.getLogger(__name__)

COLLECTION = "tasks"

# Fields a user may edit directly; status moves only through the lifecycle functions
EDITABLE_FIELDS = frozenset({"title", "description", "task_type", "deadline", "buddy_id"})


def to_storage_timestamp(value: datetime | str) -> str:
    """Normalize a timestamp to the UTC ISO form used for storage and filtering."""
    return ensure_utc(value).isoformat()


async def list_all_records(*, filter_query: str, sort: str) -> list[dict[str, Any]]:
    """Collect every page of a task query."""
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await db_client.list_records(
            collection=COLLECTION,
            filter_query=filter_query,
            sort=sort,
            page=page,
            per_page=constants.DEFAULT_PER_PAGE_LIMIT,
        )
        records.extend(batch)
        if len(batch) < constants.DEFAULT_PER_PAGE_LIMIT:
            return records
        page += 1


async def create_task(
    *,
    user_id: str,
    title: str,
    deadline: datetime | str,
    task_type: TaskType = TaskType.PERSONAL,
    description: str | None = None,
    buddy_id: str | None = None,
) -> Task:
    """Create a new pending task.

    Args:
        user_id: Owner user ID
        title: Task title (e.g., "Finish essay")
        deadline: Deadline, naive values are treated as UTC
        task_type: Kind of work
        description: Optional details
        buddy_id: Optional accountability buddy

    Returns:
        The created task

    Raises:
        ValueError: If the title is blank
        db_client.DatabaseError: If database operation fails
    """
    with span("task_service.create_task"):
        if not title.strip():
            msg = "Task title cannot be empty"
            raise ValueError(msg)

        data: dict[str, Any] = {
            "user_id": user_id,
            "title": title.strip(),
            "description": description,
            "task_type": TaskType(task_type),
            "deadline": to_storage_timestamp(deadline),
            "status": TaskStatus.PENDING,
        }
        if buddy_id:
            data["buddy_id"] = buddy_id

        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Created task", extra={"task_id": record["id"], "user_id": user_id})
        return Task.model_validate(record)


async def get_task(*, task_id: str) -> Task:
    """Fetch one task.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
    """
    record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
    return Task.model_validate(record)


async def list_tasks(*, user_id: str) -> list[Task]:
    """List tasks owned or buddied by a user, earliest deadline first."""
    with span("task_service.list_tasks"):
        user = sanitize_param(user_id)
        records = await list_all_records(
            filter_query=f'(user_id = "{user}" || buddy_id = "{user}")',
            sort="deadline ASC",
        )
        return [Task.model_validate(r) for r in records]


async def list_open_tasks(*, user_id: str) -> list[Task]:
    """List a user's own pending or rejected tasks, earliest deadline first."""
    with span("task_service.list_open_tasks"):
        filter_query = (
            f'user_id = "{sanitize_param(user_id)}" && '
            f'(status = "{TaskStatus.PENDING}" || status = "{TaskStatus.REJECTED}")'
        )
        records = await list_all_records(filter_query=filter_query, sort="deadline ASC")
        return [Task.model_validate(r) for r in records]


async def update_task(*, task_id: str, data: dict[str, Any]) -> Task:
    """Edit user-editable task fields.

    Moving the deadline re-arms the deadline reminder.

    Raises:
        ValueError: If a non-editable field is supplied
        db_client.RecordNotFoundError: If the task does not exist
    """
    with span("task_service.update_task"):
        forbidden = set(data) - EDITABLE_FIELDS
        if forbidden:
            msg = f"Fields cannot be edited directly: {', '.join(sorted(forbidden))}"
            raise ValueError(msg)

        payload = dict(data)
        if "deadline" in payload:
            payload["deadline"] = to_storage_timestamp(payload["deadline"])
            payload["reminder_sent"] = False
        if "task_type" in payload:
            payload["task_type"] = TaskType(payload["task_type"])

        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=payload)
        return Task.model_validate(record)


async def delete_task(*, task_id: str) -> None:
    """Delete a task."""
    with span("task_service.delete_task"):
        await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        logger.info("Deleted task", extra={"task_id": task_id})


async def submit_proof(
    *,
    task_id: str,
    proof_text: str | None = None,
    proof_url: str | None = None,
    proof_hash: str | None = None,
) -> Task:
    """Persist submitted proof and move the task to submitted.

    Raises:
        InvalidTransitionError: If the task is not pending or rejected
    """
    with span("task_service.submit_proof"):
        task = await get_task(task_id=task_id)
        state_machine.validate_transition(task_id=task_id, current=task.status, target=TaskStatus.SUBMITTED)

        record = await db_client.update_record(
            collection=COLLECTION,
            record_id=task_id,
            data={
                "status": TaskStatus.SUBMITTED,
                "proof_text": proof_text,
                "proof_url": proof_url,
                "proof_hash": proof_hash,
                "submitted_at": datetime.now(UTC),
            },
        )
        logger.info("Proof submitted", extra={"task_id": task_id, "has_artifact": proof_url is not None})
        return Task.model_validate(record)


def _verdict_fields(result: VerificationResult, *, now: datetime) -> dict[str, Any]:
    return {
        "status": TaskStatus.APPROVED if result.approved else TaskStatus.REJECTED,
        "ai_verified": True,
        "ai_feedback": result.feedback,
        "ai_confidence": result.confidence,
        "points_earned": constants.APPROVAL_POINTS if result.approved else 0,
        "approved_at": now if result.approved else None,
    }


async def record_verification(*, task_id: str, result: VerificationResult) -> Task:
    """Persist the verifier's verdict on a submitted task.

    Raises:
        InvalidTransitionError: If the task is not submitted
    """
    with span("task_service.record_verification"):
        task = await get_task(task_id=task_id)
        data = _verdict_fields(result, now=datetime.now(UTC))
        target = data["status"]
        state_machine.validate_transition(task_id=task_id, current=task.status, target=target)

        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=data)
        logger.info(
            "Recorded verification",
            extra={"task_id": task_id, "status": target.value, "confidence": result.confidence},
        )
        return Task.model_validate(record)


async def record_submission(
    *,
    task_id: str,
    result: VerificationResult,
    proof_text: str | None = None,
    proof_url: str | None = None,
    proof_hash: str | None = None,
) -> Task:
    """Persist proof and its verdict in one write.

    The task passes through submitted without that state ever being stored,
    so a failed write leaves it pending or rejected and still blocking.

    Raises:
        InvalidTransitionError: If the task is not pending or rejected
    """
    with span("task_service.record_submission"):
        task = await get_task(task_id=task_id)
        now = datetime.now(UTC)
        data = _verdict_fields(result, now=now)
        target = data["status"]
        state_machine.validate_transition(task_id=task_id, current=task.status, target=TaskStatus.SUBMITTED)
        state_machine.validate_transition(task_id=task_id, current=TaskStatus.SUBMITTED, target=target)

        data.update(proof_text=proof_text, proof_url=proof_url, proof_hash=proof_hash, submitted_at=now)
        record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=data)
        logger.info(
            "Recorded submission",
            extra={"task_id": task_id, "status": target.value, "confidence": result.confidence},
        )
        return Task.model_validate(record)


async def mark_missed(*, task_id: str) -> Task:
    """Close an open task as missed."""
    with span("task_service.mark_missed"):
        task = await get_task(task_id=task_id)
        state_machine.validate_transition(task_id=task_id, current=task.status, target=TaskStatus.MISSED)
        record = await db_client.update_record(
            collection=COLLECTION,
            record_id=task_id,
            data={"status": TaskStatus.MISSED},
        )
        return Task.model_validate(record)


async def get_task_stats(*, user_id: str) -> TaskStats:
    """Dashboard counters for a user's own tasks."""
    with span("task_service.get_task_stats"):
        records = await list_all_records(filter_query=f'user_id = "{sanitize_param(user_id)}"', sort="")
        stats = TaskStats()
        for record in records:
            status = TaskStatus(record["status"])
            if status in (TaskStatus.PENDING, TaskStatus.REJECTED):
                stats.pending += 1
            elif status == TaskStatus.SUBMITTED:
                stats.submitted += 1
            elif status == TaskStatus.APPROVED:
                stats.completed += 1
            elif status == TaskStatus.MISSED:
                stats.missed += 1
            stats.points_earned += int(record.get("points_earned") or 0)
        return stats
