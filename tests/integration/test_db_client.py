"""Integration tests for the SQLite store."""

from datetime import timedelta

import pytest

from studylock.core import db_client
from studylock.core.change_feed import ChangeAction, change_feed
from studylock.core.db_client import DatabaseError, RecordNotFoundError, parse_filter, parse_sort
from studylock.core.errors import DuplicateProofError
from studylock.domain.task import TaskStatus
from studylock.models.service_models import VerificationResult
from studylock.modules.tasks import proofs
from studylock.modules.tasks import service as task_service
from studylock.services import reminder_service


pytestmark = pytest.mark.integration


def _task_data(**overrides) -> dict:
    return {
        "user_id": "user-1",
        "title": "Finish essay",
        "task_type": "assignment",
        "deadline": "2026-03-10T18:00:00+00:00",
        "status": "pending",
        **overrides,
    }


class TestParsing:
    def test_parse_filter(self):
        clause, params = parse_filter('user_id = "user-1" && (status = "pending" || status = "rejected")')

        assert clause == "user_id = ? AND (status = ? OR status = ?)"
        assert params == ["user-1", "pending", "rejected"]

    def test_parse_filter_booleans_and_comparisons(self):
        clause, params = parse_filter('reminder_sent = "false" && deadline >= "2026-03-10T12:00:00+00:00"')

        assert clause == "reminder_sent = ? AND deadline >= ?"
        assert params == [False, "2026-03-10T12:00:00+00:00"]

    def test_parse_filter_rejects_garbage(self):
        with pytest.raises(ValueError, match="Invalid filter syntax"):
            parse_filter("status pending")

    @pytest.mark.parametrize(
        ("sort", "expected"),
        [
            ("", "id ASC"),
            ("deadline", "deadline ASC, id ASC"),
            ("-deadline", "deadline DESC, id ASC"),
            ("deadline desc", "deadline DESC, id ASC"),
            ("deadline; DROP TABLE tasks", "id ASC"),
        ],
    )
    def test_parse_sort(self, sort, expected):
        assert parse_sort(sort) == expected


class TestCrud:
    async def test_create_and_get(self, sqlite_db):
        created = await db_client.create_record(collection="tasks", data=_task_data())

        fetched = await db_client.get_record(collection="tasks", record_id=created["id"])

        assert fetched == created
        assert isinstance(created["id"], str)
        assert created["created"] == created["updated"]
        assert created["reminder_sent"] == 0

    async def test_update(self, sqlite_db):
        created = await db_client.create_record(collection="tasks", data=_task_data())

        updated = await db_client.update_record(
            collection="tasks", record_id=created["id"], data={"status": "submitted"}
        )

        assert updated["status"] == "submitted"
        assert updated["updated"] >= created["updated"]

    async def test_update_missing_raises(self, sqlite_db):
        with pytest.raises(RecordNotFoundError):
            await db_client.update_record(collection="tasks", record_id="999", data={"status": "missed"})

    async def test_delete(self, sqlite_db):
        created = await db_client.create_record(collection="tasks", data=_task_data())

        await db_client.delete_record(collection="tasks", record_id=created["id"])

        with pytest.raises(RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id=created["id"])

    async def test_check_constraint_is_database_error(self, sqlite_db):
        with pytest.raises(DatabaseError):
            await db_client.create_record(collection="tasks", data=_task_data(status="abandoned"))

    async def test_unknown_table(self, sqlite_db):
        with pytest.raises(DatabaseError, match="does not exist"):
            await db_client.create_record(collection="homework", data={"title": "x"})

    async def test_list_with_filter_sort_and_pages(self, sqlite_db):
        for hour in (15, 13, 14):
            await db_client.create_record(
                collection="tasks", data=_task_data(deadline=f"2026-03-10T{hour}:00:00+00:00", title=f"T{hour}")
            )
        await db_client.create_record(collection="tasks", data=_task_data(user_id="user-2", title="Other"))

        first_page = await db_client.list_records(
            collection="tasks", filter_query='user_id = "user-1"', sort="deadline ASC", per_page=2
        )
        second_page = await db_client.list_records(
            collection="tasks", filter_query='user_id = "user-1"', sort="deadline ASC", per_page=2, page=2
        )

        assert [r["title"] for r in first_page] == ["T13", "T14"]
        assert [r["title"] for r in second_page] == ["T15"]

    async def test_get_first_record(self, sqlite_db):
        await db_client.create_record(collection="tasks", data=_task_data(proof_hash="abc"))

        found = await db_client.get_first_record(collection="tasks", filter_query='proof_hash = "abc"')
        missing = await db_client.get_first_record(collection="tasks", filter_query='proof_hash = "zzz"')

        assert found is not None
        assert missing is None


class TestChangeEvents:
    async def test_mutations_are_published(self, sqlite_db):
        events = []
        change_feed.subscribe(collection="tasks", callback=events.append, user_id="user-1")

        created = await db_client.create_record(collection="tasks", data=_task_data())
        await db_client.update_record(collection="tasks", record_id=created["id"], data={"status": "submitted"})
        await db_client.delete_record(collection="tasks", record_id=created["id"])
        await db_client.create_record(collection="tasks", data=_task_data(user_id="user-2"))

        assert [e.action for e in events] == [ChangeAction.CREATE, ChangeAction.UPDATE, ChangeAction.DELETE]
        assert events[2].record["id"] == created["id"]


class TestServicesOnSqlite:
    async def test_open_tasks_and_verdict(self, sqlite_db, now):
        task = await task_service.create_task(user_id="user-1", title="Essay", deadline=now)
        await task_service.submit_proof(task_id=task.id, proof_text="Wrote every section")
        judged = await task_service.record_verification(
            task_id=task.id, result=VerificationResult(approved=False, confidence=15, feedback="Vague")
        )

        open_tasks = await task_service.list_open_tasks(user_id="user-1")

        assert judged.ai_verified is True
        assert [t.status for t in open_tasks] == [TaskStatus.REJECTED]

    async def test_duplicate_guard(self, sqlite_db, now):
        task = await task_service.create_task(user_id="user-1", title="Essay", deadline=now)
        await task_service.submit_proof(task_id=task.id, proof_text="Photo", proof_hash="feedface")

        await proofs.ensure_proof_is_original(proof_hash="feedface", user_id="user-1")
        with pytest.raises(DuplicateProofError):
            await proofs.ensure_proof_is_original(proof_hash="feedface", user_id="user-2")

    async def test_reminder_window_query(self, sqlite_db, now):
        due = await task_service.create_task(user_id="user-1", title="Due", deadline=now + timedelta(minutes=20))
        await task_service.create_task(user_id="user-1", title="Later", deadline=now + timedelta(hours=2))
        reminded = await task_service.create_task(
            user_id="user-1", title="Reminded", deadline=now + timedelta(minutes=40)
        )
        await db_client.update_record(collection="tasks", record_id=reminded.id, data={"reminder_sent": True})

        tasks = await reminder_service.find_due_tasks(now=now)

        assert [t.id for t in tasks] == [due.id]
