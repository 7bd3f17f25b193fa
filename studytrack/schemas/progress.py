"""
Day progress schemas.

PATCH /plans/{plan_id}/days/{day_number} → DayProgressRequest → DayProgressResponse
"""
from typing import Optional

from pydantic import Field, StrictBool

from studytrack.schemas.achievements import AchievementOut, StreakMilestoneOut
from studytrack.schemas.common import CamelModel


class EngagementIn(CamelModel):
    """Omitted fields leave the day unchanged; flags are never cleared."""
    verse_saved: Optional[StrictBool] = None
    prayer_generated: Optional[StrictBool] = None
    chat_engaged: Optional[StrictBool] = None


class DayProgressRequest(CamelModel):
    completed: StrictBool = Field(description="True to check the day off, false to undo.")
    engagement: Optional[EngagementIn] = None


class StudyDayOut(CamelModel):
    id: int
    day_number: int
    title: Optional[str] = None
    verse_reference: Optional[str] = None
    completed: bool
    completed_at: Optional[str] = None
    verse_saved: bool
    prayer_generated: bool
    chat_engaged: bool
    engagement_score: int = Field(description="0-100 score for this day.")


class ProgressOut(CamelModel):
    completed_days: int
    total_days: int
    percent_complete: int
    engagement_score: int = Field(description="0-100 score across the whole plan.")


class StreakOut(CamelModel):
    current_streak: int
    longest_streak: int
    new_milestone: Optional[StreakMilestoneOut] = None


class DayProgressResponse(CamelModel):
    day: StudyDayOut
    progress: ProgressOut
    streak: StreakOut
    new_achievements: list[AchievementOut]
    plan_completed: bool
