"""Profile domain model."""

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """Per-user progress and reliability counters."""

    id: str | None = Field(default=None, description="Unique profile ID from database")
    user_id: str = Field(..., description="Owner user ID")
    reliability_score: int = Field(default=100, ge=0, le=100, description="Reliability on a 0-100 scale")
    streak_count: int = Field(default=0, ge=0, description="Consecutive approved tasks")
    total_completed: int = Field(default=0, ge=0, description="Approved tasks overall")
    total_points: int = Field(default=0, description="Points earned overall")


class Badge(BaseModel):
    """Reward unlocked at a points threshold."""

    name: str
    description: str
    points_required: int
