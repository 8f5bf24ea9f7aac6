"""Pydantic models for service layer inputs and return types.

These models provide type safety at service boundaries, converting request
payloads and database dictionaries into typed objects with validation.
"""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from studylock.domain.task import TaskType


class _CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VerificationRequest(_CamelModel):
    """Proof verification request as posted by the client."""

    task_title: str = Field(..., min_length=1)
    task_description: str | None = None
    task_type: TaskType = TaskType.PERSONAL
    proof_text: str | None = None
    proof_url: str | None = None

    @field_validator("task_type", mode="before")
    @classmethod
    def _default_task_type(cls, v: str | None) -> str:
        return v or TaskType.PERSONAL

    @property
    def has_proof(self) -> bool:
        """Whether any proof text or artifact reference was supplied."""
        return bool((self.proof_text or "").strip() or self.proof_url)


class VerificationResult(_CamelModel):
    """Verdict returned by the proof verifier."""

    approved: bool = False
    confidence: int = 0
    feedback: str = ""
    matched_keywords: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: object) -> int:
        # Round down: a fractional score below the approval floor must stay below it
        try:
            value = math.floor(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, min(100, value))

    @field_validator("matched_keywords", "concerns", mode="before")
    @classmethod
    def _coerce_str_list(cls, v: object) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, list):
            return [str(item) for item in v]
        msg = "Expected a list of strings"
        raise ValueError(msg)


class FetchedImage(BaseModel):
    """Image bytes downloaded for multimodal verification."""

    data: bytes
    media_type: str = "image/jpeg"


class TaskStats(BaseModel):
    """Dashboard counters for one user's tasks."""

    pending: int = 0
    submitted: int = 0
    completed: int = 0
    missed: int = 0
    points_earned: int = 0


class DeadlineInfo(BaseModel):
    """Human-readable remaining time for a deadline."""

    overdue: bool
    hours: int
    minutes: int

    def describe(self) -> str:
        """Short phrase such as "2h 5m left" or "Overdue by 10m"."""
        span_text = f"{self.hours}h {self.minutes}m" if self.hours else f"{self.minutes}m"
        return f"Overdue by {span_text}" if self.overdue else f"{span_text} left"
