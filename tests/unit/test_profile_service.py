"""Tests for profile points, streaks, reliability and badges."""

import pytest

from studylock.services import profile_service


@pytest.mark.unit
class TestProfileService:
    async def test_profile_created_with_defaults(self, patched_db):
        profile = await profile_service.get_or_create_profile(user_id="user-1")

        assert profile.reliability_score == 100
        assert profile.streak_count == 0
        assert profile.total_points == 0
        assert len(patched_db.all_records("profiles")) == 1

    async def test_profile_is_reused(self, patched_db):
        first = await profile_service.get_or_create_profile(user_id="user-1")
        second = await profile_service.get_or_create_profile(user_id="user-1")

        assert first.id == second.id
        assert len(patched_db.all_records("profiles")) == 1

    async def test_record_completion(self, patched_db):
        await profile_service.record_completion(user_id="user-1", points=10)
        profile = await profile_service.record_completion(user_id="user-1", points=10)

        assert profile.total_completed == 2
        assert profile.streak_count == 2
        assert profile.total_points == 20

    async def test_focus_penalty_lowers_reliability(self, patched_db):
        await profile_service.record_completion(user_id="user-1", points=10)

        profile = await profile_service.apply_focus_penalty(user_id="user-1", reset_streak=False)

        assert profile.reliability_score == 98
        assert profile.streak_count == 1

    async def test_focus_penalty_can_reset_streak(self, patched_db):
        await profile_service.record_completion(user_id="user-1", points=10)

        profile = await profile_service.apply_focus_penalty(user_id="user-1", reset_streak=True)

        assert profile.streak_count == 0

    async def test_reliability_never_negative(self, patched_db):
        record = await patched_db.create_record("profiles", {"user_id": "user-1", "reliability_score": 1})

        profile = await profile_service.apply_focus_penalty(user_id="user-1", reset_streak=False)

        assert profile.id == record["id"]
        assert profile.reliability_score == 0


@pytest.mark.unit
class TestBadges:
    @pytest.mark.parametrize(
        ("points", "expected"),
        [
            (0, []),
            (10, ["First Step"]),
            (99, ["First Step", "Week Warrior"]),
            (500, ["First Step", "Week Warrior", "Reliable", "Streak Master", "Productivity Pro"]),
        ],
    )
    def test_badges_for_points(self, points, expected):
        assert [b.name for b in profile_service.badges_for_points(points)] == expected

    async def test_unlocked_badges(self, patched_db):
        for _ in range(7):
            await profile_service.record_completion(user_id="user-1", points=10)

        badges = await profile_service.get_unlocked_badges(user_id="user-1")

        assert [b.name for b in badges] == ["First Step", "Week Warrior"]
