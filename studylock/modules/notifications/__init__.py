"""Notifications module for web push deadline reminders."""

from studylock.core.module import ScheduledJob


class NotificationsModule:
    """Push subscriptions and the deadline reminder job."""

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "notifications"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Web push reminders for tasks due within the hour"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "push_subscriptions": """CREATE TABLE IF NOT EXISTS push_subscriptions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        user_id TEXT NOT NULL,
        endpoint TEXT NOT NULL UNIQUE,
        p256dh TEXT NOT NULL,
        auth TEXT NOT NULL
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return ["CREATE INDEX IF NOT EXISTS idx_push_subscriptions_user_id ON push_subscriptions (user_id)"]

    def get_scheduled_jobs(self) -> list[ScheduledJob]:
        """Return scheduled jobs for this module."""
        import studylock.modules.notifications.scheduler_jobs

        return studylock.modules.notifications.scheduler_jobs.get_scheduled_jobs()
