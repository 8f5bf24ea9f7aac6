"""Profile service for points, streaks, reliability and badges."""

import logging
from typing import Any

from studylock.core import db_client
from studylock.core.config import constants
from studylock.core.db_client import sanitize_param
from studylock.core.logging import span
from studylock.domain.profile import Badge, Profile


logger = logging.getLogger(__name__)

COLLECTION = "profiles"

BADGES: tuple[Badge, ...] = (
    Badge(name="First Step", description="Complete your first task", points_required=10),
    Badge(name="Week Warrior", description="7 tasks in a row", points_required=70),
    Badge(name="Reliable", description="90%+ reliability score", points_required=100),
    Badge(name="Streak Master", description="30-day streak", points_required=300),
    Badge(name="Productivity Pro", description="Complete 50 tasks", points_required=500),
)


async def _get_profile_record(*, user_id: str) -> dict[str, Any]:
    record = await db_client.get_first_record(
        collection=COLLECTION,
        filter_query=f'user_id = "{sanitize_param(user_id)}"',
    )
    if record is not None:
        return record

    logger.info("Creating profile", extra={"user_id": user_id})
    return await db_client.create_record(
        collection=COLLECTION,
        data={
            "user_id": user_id,
            "reliability_score": constants.DEFAULT_RELIABILITY_SCORE,
            "streak_count": 0,
            "total_completed": 0,
            "total_points": 0,
        },
    )


async def get_or_create_profile(*, user_id: str) -> Profile:
    """Fetch a user's profile, creating it with defaults on first use."""
    with span("profile_service.get_or_create_profile"):
        return Profile.model_validate(await _get_profile_record(user_id=user_id))


async def record_completion(*, user_id: str, points: int) -> Profile:
    """Credit an approved task: one more completion, one longer streak, and the points.

    Args:
        user_id: User whose task was approved
        points: Points earned by the task

    Returns:
        Updated profile
    """
    with span("profile_service.record_completion"):
        record = await _get_profile_record(user_id=user_id)
        updated = await db_client.update_record(
            collection=COLLECTION,
            record_id=record["id"],
            data={
                "total_completed": int(record.get("total_completed") or 0) + 1,
                "streak_count": int(record.get("streak_count") or 0) + 1,
                "total_points": int(record.get("total_points") or 0) + points,
            },
        )
        logger.info("Recorded completion", extra={"user_id": user_id, "points": points})
        return Profile.model_validate(updated)


async def apply_focus_penalty(*, user_id: str, reset_streak: bool) -> Profile:
    """Lower reliability after a focus break, optionally breaking the streak.

    Reliability never drops below 0.
    """
    with span("profile_service.apply_focus_penalty"):
        record = await _get_profile_record(user_id=user_id)
        current = record.get("reliability_score")
        if current is None:
            current = constants.DEFAULT_RELIABILITY_SCORE

        data: dict[str, Any] = {
            "reliability_score": max(0, int(current) - constants.FOCUS_RELIABILITY_PENALTY),
        }
        if reset_streak:
            data["streak_count"] = 0

        updated = await db_client.update_record(collection=COLLECTION, record_id=record["id"], data=data)
        logger.info(
            "Applied focus penalty",
            extra={"user_id": user_id, "reliability_score": data["reliability_score"], "reset_streak": reset_streak},
        )
        return Profile.model_validate(updated)


def badges_for_points(total_points: int) -> list[Badge]:
    """Badges whose points threshold is met."""
    return [badge for badge in BADGES if total_points >= badge.points_required]


async def get_unlocked_badges(*, user_id: str) -> list[Badge]:
    """Badges the user has unlocked with their total points."""
    profile = await get_or_create_profile(user_id=user_id)
    return badges_for_points(profile.total_points)
