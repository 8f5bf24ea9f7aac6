"""In-process realtime change feed for store mutations.

The store publishes one ChangeEvent per create/update/delete. Subscribers are
scoped to a collection and optionally to a single user's records.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


logger = logging.getLogger(__name__)


class ChangeAction(StrEnum):
    """Kind of mutation that produced a change event."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    """A single committed mutation."""

    collection: str
    action: ChangeAction
    record: dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> str | None:
        value = self.record.get("user_id")
        return str(value) if value is not None else None


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


@dataclass
class _Subscription:
    collection: str
    callback: ChangeCallback
    user_id: str | None = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.collection != self.collection:
            return False
        return self.user_id is None or event.user_id == self.user_id


class ChangeFeed:
    """Fan-out of change events to subscribers."""

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def subscribe(
        self,
        *,
        collection: str,
        callback: ChangeCallback,
        user_id: str | None = None,
    ) -> Callable[[], None]:
        """Register a callback and return a function that removes it."""
        subscription = _Subscription(collection=collection, callback=callback, user_id=user_id)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscriber.

        A failing subscriber is logged and does not prevent delivery to the others.
        """
        targets = [s for s in self._subscriptions if s.matches(event)]
        for subscription in targets:
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "change_feed_subscriber_failed",
                    extra={"collection": event.collection, "action": event.action.value},
                )

    def clear(self) -> None:
        self._subscriptions.clear()


# Global change feed instance
change_feed = ChangeFeed()
