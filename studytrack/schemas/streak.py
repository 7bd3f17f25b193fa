"""
Streak summary schema.

GET /streak → StreakSummaryResponse
"""
from typing import Optional

from pydantic import Field

from studytrack.schemas.achievements import (
    AchievementOut,
    AchievementProgressOut,
    MilestoneProgressOut,
)
from studytrack.schemas.common import CamelModel


class StreakSummaryResponse(CamelModel):
    current_streak: int
    longest_streak: int
    last_completed_at: Optional[str] = Field(
        default=None, description="UTC midnight of the last completion day."
    )
    total_plans_completed: int
    total_7day_completed: int = Field(alias="total7DayCompleted")
    total_21day_completed: int = Field(alias="total21DayCompleted")
    total_days_studied: int
    total_verses_from_plans: int
    total_prayers_from_plans: int
    unlocked_achievements: list[AchievementOut]
    achievement_tracking: bool = Field(
        description="False while the store cannot persist unlocked achievements."
    )
    next_achievements: list[AchievementProgressOut]
    milestone_progress: MilestoneProgressOut
