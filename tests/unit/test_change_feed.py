"""Tests for the in-process change feed."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from studylock.core.change_feed import ChangeAction, ChangeEvent, ChangeFeed


def _event(collection: str = "tasks", user_id: str | None = "user-1") -> ChangeEvent:
    record = {"id": "1"} if user_id is None else {"id": "1", "user_id": user_id}
    return ChangeEvent(collection=collection, action=ChangeAction.UPDATE, record=record)


@pytest.mark.unit
class TestChangeFeed:
    async def test_delivers_to_matching_subscribers(self):
        feed = ChangeFeed()
        sync_callback = MagicMock(return_value=None)
        async_callback = AsyncMock()
        feed.subscribe(collection="tasks", callback=sync_callback)
        feed.subscribe(collection="tasks", callback=async_callback, user_id="user-1")

        event = _event()
        await feed.publish(event)

        sync_callback.assert_called_once_with(event)
        async_callback.assert_awaited_once_with(event)

    async def test_filters_collection_and_user(self):
        feed = ChangeFeed()
        callback = AsyncMock()
        feed.subscribe(collection="tasks", callback=callback, user_id="user-1")

        await feed.publish(_event(collection="profiles"))
        await feed.publish(_event(user_id="user-2"))

        callback.assert_not_called()

    async def test_unsubscribe(self):
        feed = ChangeFeed()
        callback = AsyncMock()
        unsubscribe = feed.subscribe(collection="tasks", callback=callback)

        unsubscribe()
        unsubscribe()
        await feed.publish(_event())

        assert feed.subscriber_count == 0
        callback.assert_not_called()

    async def test_failing_subscriber_does_not_block_others(self, caplog):
        feed = ChangeFeed()
        healthy = AsyncMock()
        feed.subscribe(collection="tasks", callback=AsyncMock(side_effect=RuntimeError("boom")))
        feed.subscribe(collection="tasks", callback=healthy)

        await feed.publish(_event())

        healthy.assert_awaited_once()
        assert "change_feed_subscriber_failed" in caplog.text

    def test_event_user_id(self):
        assert _event(user_id="user-1").user_id == "user-1"
        assert _event(user_id=None).user_id is None
