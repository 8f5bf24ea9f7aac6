"""Module Protocol defining the plugin interface for feature modules."""

from collections.abc import Awaitable, Callable
from typing import Protocol

from croniter import croniter
from pydantic import BaseModel, field_validator


class ScheduledJob(BaseModel):
    """Scheduled job definition."""

    id: str
    name: str
    cron: str
    func: Callable[[], Awaitable[object]]

    @field_validator("cron")
    @classmethod
    def _validate_cron(cls, value: str) -> str:
        if not croniter.is_valid(value):
            msg = f"Invalid CRON expression: {value}"
            raise ValueError(msg)
        return value


class Module(Protocol):
    """Protocol defining the interface for feature modules. Self-contained plugins with schemas and jobs."""

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        ...

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        ...

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module.

        Returns:
            Dictionary mapping table names to CREATE TABLE SQL statements
        """
        ...

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables.

        Returns:
            List of CREATE INDEX SQL statements
        """
        ...

    def get_scheduled_jobs(self) -> list[ScheduledJob]:
        """Return scheduled jobs for this module.

        Returns:
            List of ScheduledJob definitions
        """
        ...
