"""Push subscription domain model."""

from pydantic import BaseModel, Field


class PushSubscription(BaseModel):
    """Browser push endpoint registered by a user."""

    id: str | None = Field(default=None, description="Unique subscription ID from database")
    user_id: str = Field(..., description="Owner user ID")
    endpoint: str = Field(..., description="Push service endpoint URL")
    p256dh: str = Field(..., description="Client public key")
    auth: str = Field(..., description="Client auth secret")

    def to_subscription_info(self) -> dict[str, object]:
        """Return the structure expected by web push libraries."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
