"""Pytest configuration and fixtures for unit tests."""

import pytest

from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches studylock.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("studylock.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("studylock.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("studylock.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("studylock.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("studylock.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("studylock.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def sample_task_data():
    """Returns sample task data for testing."""
    return {
        "user_id": "user-1",
        "title": "Finish essay",
        "description": "Write the 1500 word history essay on the industrial revolution",
        "task_type": "assignment",
        "deadline": "2026-03-10T18:00:00+00:00",
    }
