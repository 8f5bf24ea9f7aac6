"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime, timedelta

import pytest

from studylock.core.change_feed import change_feed
from studylock.domain.task import Task, TaskStatus, TaskType


# Keep module-level Settings() away from developer credentials
os.environ.setdefault("OPENROUTER_API_KEY", "test-openrouter-key")
os.environ.setdefault("LOGFIRE_TOKEN", "")

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for deadline arithmetic."""
    return NOW


@pytest.fixture(autouse=True)
def _isolated_change_feed():
    """Drop subscribers registered by a test."""
    yield
    change_feed.clear()


def make_task(
    task_id: str = "1",
    *,
    deadline: datetime,
    status: TaskStatus = TaskStatus.PENDING,
    user_id: str = "user-1",
    title: str | None = None,
    task_type: TaskType = TaskType.ASSIGNMENT,
) -> Task:
    """Build a task for pure lock and verification tests."""
    return Task(
        id=task_id,
        user_id=user_id,
        title=title or f"Task {task_id}",
        task_type=task_type,
        deadline=deadline,
        status=status,
    )


@pytest.fixture
def task_factory():
    """Factory fixture for Task objects relative to a base time."""

    def _factory(task_id: str = "1", *, minutes: float, base: datetime = NOW, **kwargs) -> Task:
        return make_task(task_id, deadline=base + timedelta(minutes=minutes), **kwargs)

    return _factory
