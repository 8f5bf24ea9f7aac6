from studylock.services import (
    profile_service,
    reminder_service,
    subscription_service,
)


__all__ = [
    "profile_service",
    "reminder_service",
    "subscription_service",
]
