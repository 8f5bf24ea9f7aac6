"""Tests for push subscription storage."""

import pytest

from studylock.services import subscription_service


@pytest.mark.unit
class TestSubscriptionService:
    async def test_save_and_list(self, patched_db):
        saved = await subscription_service.save_subscription(
            user_id="user-1", endpoint="https://push.example.com/a", p256dh="key", auth="secret"
        )

        subscriptions = await subscription_service.list_subscriptions(user_id="user-1")

        assert subscriptions == [saved]
        assert saved.to_subscription_info() == {
            "endpoint": "https://push.example.com/a",
            "keys": {"p256dh": "key", "auth": "secret"},
        }

    async def test_same_endpoint_is_replaced(self, patched_db):
        await subscription_service.save_subscription(
            user_id="user-1", endpoint="https://push.example.com/a", p256dh="old", auth="old"
        )
        await subscription_service.save_subscription(
            user_id="user-2", endpoint="https://push.example.com/a", p256dh="new", auth="new"
        )

        records = patched_db.all_records("push_subscriptions")
        assert len(records) == 1
        assert records[0]["user_id"] == "user-2"
        assert await subscription_service.list_subscriptions(user_id="user-1") == []

    async def test_remove(self, patched_db):
        await subscription_service.save_subscription(
            user_id="user-1", endpoint="https://push.example.com/a", p256dh="key", auth="secret"
        )

        assert await subscription_service.remove_subscription(endpoint="https://push.example.com/a") is True
        assert await subscription_service.remove_subscription(endpoint="https://push.example.com/a") is False
        assert patched_db.all_records("push_subscriptions") == []
