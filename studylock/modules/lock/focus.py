"""Focus-break tracking while the app is locked.

This is a best-effort, client-observed signal: the penalty logic only runs
while the app is in the foreground, so a user who never returns is never
penalized.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from studylock.core.config import constants
from studylock.domain.profile import Profile
from studylock.services import profile_service


logger = logging.getLogger(__name__)

PenaltyFunc = Callable[..., Awaitable[Profile]]


@dataclass(frozen=True)
class FocusBreak:
    """A return to the app after leaving it while locked."""

    away_seconds: float
    message: str


def _utc_now() -> datetime:
    return datetime.now(UTC)


class FocusTracker:
    """Counts focus breaks and applies reliability penalties for one user."""

    def __init__(
        self,
        *,
        user_id: str,
        scheduler: AsyncIOScheduler,
        penalize: PenaltyFunc | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.user_id = user_id
        self._scheduler = scheduler
        self._penalize = penalize or profile_service.apply_focus_penalty
        self._clock = clock

        self.focus_breaks = 0
        self.penalty_points = 0
        self.show_warning = False
        self.warning_message: str | None = None
        self.last_break_time: datetime | None = None
        self._left_at: datetime | None = None
        self._penalty_job_ids: set[str] = set()

    def on_background(self, now: datetime | None = None, *, locked: bool) -> bool:
        """Record leaving the app. Only counts while locked.

        Returns:
            True if a focus break was recorded
        """
        if not locked:
            return False

        now = now or self._clock()
        self.focus_breaks += 1
        self.last_break_time = now
        self._left_at = now
        self.show_warning = False
        logger.info("Focus break started", extra={"user_id": self.user_id, "focus_breaks": self.focus_breaks})
        return True

    def on_foreground(self, now: datetime | None = None) -> FocusBreak | None:
        """Record returning to the app.

        When the user was away longer than the warning threshold, surface a
        warning and schedule the penalty after the grace delay.
        """
        if self._left_at is None:
            return None

        now = now or self._clock()
        away_seconds = (now - self._left_at).total_seconds()
        self._left_at = None

        if away_seconds <= constants.FOCUS_AWAY_WARNING_SECONDS:
            return None

        message = f"You left the app for {round(away_seconds)}s. Complete your task to avoid penalties!"
        self.show_warning = True
        self.warning_message = message

        job_id = f"focus-penalty-{self.user_id}-{self.focus_breaks}"
        self._scheduler.add_job(
            self._run_penalty,
            trigger=DateTrigger(run_date=now + timedelta(seconds=constants.FOCUS_PENALTY_GRACE_SECONDS)),
            args=[job_id],
            id=job_id,
            replace_existing=True,
        )
        self._penalty_job_ids.add(job_id)
        logger.warning(
            "Focus break detected",
            extra={"user_id": self.user_id, "away_seconds": away_seconds, "focus_breaks": self.focus_breaks},
        )
        return FocusBreak(away_seconds=away_seconds, message=message)

    async def _run_penalty(self, job_id: str) -> None:
        self._penalty_job_ids.discard(job_id)
        try:
            await self.apply_penalty()
        except Exception:
            logger.exception("Focus penalty failed", extra={"user_id": self.user_id})

    async def apply_penalty(self) -> Profile:
        """Add local penalty points and lower the stored reliability score.

        The streak is reset once the break count reaches the limit.
        """
        self.penalty_points += constants.FOCUS_PENALTY_POINTS
        reset_streak = self.focus_breaks >= constants.FOCUS_BREAK_STREAK_LIMIT
        profile = await self._penalize(user_id=self.user_id, reset_streak=reset_streak)
        logger.info(
            "Focus penalty applied",
            extra={"user_id": self.user_id, "penalty_points": self.penalty_points, "reset_streak": reset_streak},
        )
        return profile

    def dismiss_warning(self) -> None:
        self.show_warning = False
        self.warning_message = None

    def reset(self) -> None:
        """Start a fresh focus session."""
        for job_id in self._penalty_job_ids:
            if self._scheduler.get_job(job_id) is not None:
                self._scheduler.remove_job(job_id)
        self._penalty_job_ids.clear()
        self.focus_breaks = 0
        self.penalty_points = 0
        self.show_warning = False
        self.warning_message = None
        self.last_break_time = None
        self._left_at = None
