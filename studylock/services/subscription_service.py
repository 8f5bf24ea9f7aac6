"""Push subscription service."""

import logging

from studylock.core import db_client
from studylock.core.config import constants
from studylock.core.db_client import sanitize_param
from studylock.core.logging import span
from studylock.domain.subscription import PushSubscription


logger = logging.getLogger(__name__)

COLLECTION = "push_subscriptions"


async def save_subscription(*, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
    """Register a push endpoint for a user, replacing any existing registration of that endpoint."""
    with span("subscription_service.save_subscription"):
        data = {"user_id": user_id, "endpoint": endpoint, "p256dh": p256dh, "auth": auth}
        existing = await db_client.get_first_record(
            collection=COLLECTION,
            filter_query=f'endpoint = "{sanitize_param(endpoint)}"',
        )
        if existing is None:
            record = await db_client.create_record(collection=COLLECTION, data=data)
        else:
            record = await db_client.update_record(collection=COLLECTION, record_id=existing["id"], data=data)

        logger.info("Saved push subscription", extra={"user_id": user_id})
        return PushSubscription.model_validate(record)


async def remove_subscription(*, endpoint: str) -> bool:
    """Delete the registration for an endpoint.

    Returns:
        True if a registration was removed
    """
    with span("subscription_service.remove_subscription"):
        existing = await db_client.get_first_record(
            collection=COLLECTION,
            filter_query=f'endpoint = "{sanitize_param(endpoint)}"',
        )
        if existing is None:
            return False
        await db_client.delete_record(collection=COLLECTION, record_id=existing["id"])
        logger.info("Removed push subscription", extra={"user_id": existing.get("user_id")})
        return True


async def list_subscriptions(*, user_id: str) -> list[PushSubscription]:
    """List a user's push registrations."""
    records = await db_client.list_records(
        collection=COLLECTION,
        filter_query=f'user_id = "{sanitize_param(user_id)}"',
        per_page=constants.DEFAULT_PER_PAGE_LIMIT,
    )
    return [PushSubscription.model_validate(r) for r in records]
