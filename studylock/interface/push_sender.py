"""Web push sender using VAPID-signed pywebpush deliveries."""

import asyncio
import json
import logging
from typing import Any

from pydantic import BaseModel, Field
from pywebpush import WebPushException, webpush

from studylock.core.config import constants, settings
from studylock.domain.subscription import PushSubscription


logger = logging.getLogger(__name__)


class PushResult(BaseModel):
    """Result of sending a push notification."""

    success: bool = Field(..., description="Whether the push service accepted the notification")
    status_code: int | None = Field(None, description="Push service HTTP status if known")
    error: str | None = Field(None, description="Error message if failed")
    expired: bool = Field(False, description="Whether the subscription is gone and should be removed")


def is_expired_failure(*, status_code: int | None, message: str) -> bool:
    """Whether a delivery failure means the subscription no longer exists."""
    return status_code == constants.HTTP_GONE or "410" in message or "expired" in message.lower()


def _deliver(subscription: PushSubscription, data: str, private_key: str) -> None:
    webpush(
        subscription_info=subscription.to_subscription_info(),
        data=data,
        vapid_private_key=private_key,
        vapid_claims={"sub": settings.vapid_subject},
        timeout=constants.API_TIMEOUT_SECONDS,
    )


async def send_push(subscription: PushSubscription, payload: dict[str, Any]) -> PushResult:
    """Deliver one notification to one subscription.

    The blocking pywebpush call runs in a worker thread.

    Args:
        subscription: Target push registration
        payload: JSON-serializable notification body

    Returns:
        PushResult describing the outcome

    Raises:
        ConfigurationError: If the VAPID keys are not configured
    """
    settings.require_credential("vapid_public_key", "VAPID public key")
    private_key = settings.require_credential("vapid_private_key", "VAPID private key")

    try:
        await asyncio.to_thread(_deliver, subscription, json.dumps(payload), private_key)
    except WebPushException as e:
        status_code = e.response.status_code if e.response is not None else None
        message = str(e)
        expired = is_expired_failure(status_code=status_code, message=message)
        logger.warning(
            "Push delivery failed",
            extra={"user_id": subscription.user_id, "status": status_code, "expired": expired},
        )
        return PushResult(success=False, status_code=status_code, error=message, expired=expired)

    return PushResult(success=True, status_code=201)
