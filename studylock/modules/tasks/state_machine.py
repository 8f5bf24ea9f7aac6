"""Allowed status transitions for the task lifecycle."""

from studylock.core.errors import InvalidTransitionError
from studylock.domain.task import TaskStatus


TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.SUBMITTED, TaskStatus.MISSED}),
    TaskStatus.SUBMITTED: frozenset({TaskStatus.APPROVED, TaskStatus.REJECTED}),
    TaskStatus.REJECTED: frozenset({TaskStatus.SUBMITTED, TaskStatus.MISSED}),  # Resubmission
    TaskStatus.APPROVED: frozenset(),
    TaskStatus.MISSED: frozenset(),
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    """Check whether a task may move from one status to another."""
    return target in TRANSITIONS[current]


def validate_transition(*, task_id: str, current: TaskStatus, target: TaskStatus) -> None:
    """Raise InvalidTransitionError unless the transition is allowed."""
    if not can_transition(current, target):
        msg = f"Cannot move task {task_id} from {current} to {target}"
        raise InvalidTransitionError(msg)


def is_terminal(status: TaskStatus) -> bool:
    return not TRANSITIONS[status]
