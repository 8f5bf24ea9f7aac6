"""Task domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, Field, field_validator


class TaskType(StrEnum):
    """Kind of work a task represents."""

    ASSIGNMENT = "assignment"
    EXAM_PREP = "exam_prep"
    PROJECT = "project"
    PERSONAL = "personal"


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"  # No proof yet
    SUBMITTED = "submitted"  # Proof awaiting verdict
    APPROVED = "approved"
    REJECTED = "rejected"  # Resubmission allowed
    MISSED = "missed"


OPEN_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.REJECTED})


def ensure_utc(value: datetime | str) -> datetime:
    """Parse an ISO timestamp or datetime into an aware UTC datetime.

    Naive values are interpreted as UTC.
    """
    parsed = dateutil_parser.isoparse(value) if isinstance(value, str) else value
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    user_id: str = Field(..., description="Owner user ID")
    buddy_id: str | None = Field(default=None, description="Accountability buddy user ID")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    task_type: TaskType = Field(default=TaskType.PERSONAL, description="Kind of work")
    deadline: datetime = Field(..., description="Deadline (UTC)")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    proof_text: str | None = Field(default=None, description="Text description of the proof")
    proof_url: str | None = Field(default=None, description="Public URL of the uploaded artifact")
    proof_hash: str | None = Field(default=None, description="SHA-256 of the uploaded artifact")
    ai_verified: bool = Field(default=False, description="Whether the verifier approved the proof")
    ai_feedback: str | None = Field(default=None, description="Feedback from the verifier")
    ai_confidence: int | None = Field(default=None, ge=0, le=100, description="Verifier confidence")
    points_earned: int = Field(default=0, description="Points credited for this task")
    reminder_sent: bool = Field(default=False, description="Whether the deadline reminder was pushed")
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    created: str | None = None
    updated: str | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def _parse_deadline(cls, v: datetime | str) -> datetime:
        return ensure_utc(v)

    @field_validator("submitted_at", "approved_at", mode="before")
    @classmethod
    def _parse_optional_timestamp(cls, v: datetime | str | None) -> datetime | None:
        if v is None or v == "":
            return None
        return ensure_utc(v)

    @property
    def is_open(self) -> bool:
        """Whether the task still needs (re)submitted proof."""
        return self.status in OPEN_STATUSES

    def is_overdue(self, now: datetime) -> bool:
        """Whether the task is open and its deadline has passed."""
        return self.is_open and self.deadline <= ensure_utc(now)
