"""Pure lock state computation.

The lock state is never stored: it is rebuilt from the task snapshot and the
two suppression flags on every evaluation, so any trigger can recompute it at
any time and get the same answer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from studylock.core.config import constants
from studylock.domain.task import Task, ensure_utc
from studylock.models.service_models import DeadlineInfo


@dataclass(frozen=True)
class LockState:
    """Derived lock session for one user.

    Equality ignores ``evaluated_at`` so two evaluations of the same snapshot compare equal.
    """

    locked: bool = False
    locking_task: Task | None = None
    overdue_tasks: tuple[Task, ...] = ()
    upcoming_tasks: tuple[Task, ...] = ()
    unlocked_for_proof: bool = False
    submitting: bool = False
    evaluated_at: datetime | None = field(default=None, compare=False)

    @property
    def has_overdue(self) -> bool:
        return bool(self.overdue_tasks)


def recompute(
    tasks: list[Task],
    now: datetime,
    *,
    unlocked_for_proof: bool = False,
    submitting: bool = False,
) -> LockState:
    """Derive the lock state from a task snapshot.

    Args:
        tasks: The user's tasks, any status
        now: Evaluation time
        unlocked_for_proof: The user opened the proof flow from the lock screen
        submitting: A proof submission is in flight

    Returns:
        LockState where the locking task is the earliest-deadline overdue task
    """
    now = ensure_utc(now)
    open_tasks = [t for t in tasks if t.is_open]

    # sorted() is stable, so equal deadlines keep snapshot order
    overdue = sorted((t for t in open_tasks if t.deadline <= now), key=lambda t: t.deadline)
    upcoming = sorted((t for t in open_tasks if t.deadline > now), key=lambda t: t.deadline)

    return LockState(
        locked=bool(overdue) and not unlocked_for_proof and not submitting,
        locking_task=overdue[0] if overdue else None,
        overdue_tasks=tuple(overdue),
        upcoming_tasks=tuple(upcoming),
        unlocked_for_proof=unlocked_for_proof,
        submitting=submitting,
        evaluated_at=now,
    )


def next_wakeup(state: LockState, now: datetime) -> datetime | None:
    """Earliest upcoming deadline within the look-ahead horizon, if any."""
    if not state.upcoming_tasks:
        return None
    horizon = ensure_utc(now) + timedelta(hours=constants.LOCK_LOOKAHEAD_HOURS)
    deadline = state.upcoming_tasks[0].deadline
    return deadline if deadline <= horizon else None


def describe_deadline(task: Task, now: datetime) -> DeadlineInfo:
    """Remaining (or overdue) time to a task's deadline in whole hours and minutes."""
    delta = task.deadline - ensure_utc(now)
    overdue = delta.total_seconds() <= 0
    total_minutes = int(abs(delta.total_seconds()) // 60)
    hours, minutes = divmod(total_minutes, 60)
    return DeadlineInfo(overdue=overdue, hours=hours, minutes=minutes)
