"""Fixtures for tests against a real SQLite database."""

import pytest

from studylock.core import db_client
from studylock.core.config import settings


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch):
    """Point the store at a fresh database file with the full schema."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "studylock.db"))
    await db_client.init_db()
    yield
    await db_client.close_connection()
