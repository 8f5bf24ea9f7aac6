"""Domain models and DTOs."""

from studylock.domain.profile import Badge, Profile
from studylock.domain.subscription import PushSubscription
from studylock.domain.task import OPEN_STATUSES, Task, TaskStatus, TaskType, ensure_utc


__all__ = [
    "OPEN_STATUSES",
    "Badge",
    "Profile",
    "PushSubscription",
    "Task",
    "TaskStatus",
    "TaskType",
    "ensure_utc",
]
