"""
Circle statistics and milestone schemas.

GET /circles/{circle_id}/stats      → CircleStatsResponse
GET /circles/{circle_id}/milestones → CircleMilestonesResponse
"""
from typing import Optional

from pydantic import Field

from studytrack.schemas.common import CamelModel


class CircleStatsOut(CamelModel):
    total_days_completed: int
    average_progress: int = Field(description="0-100 mean progress over active circle plans.")
    total_reflections: int
    total_prayers: int
    total_verses: int
    active_days: int
    member_count: int
    completed_studies: int
    longest_streak: int = Field(
        description="Longest run of consecutive days on which every member completed a day."
    )
    total_comments: int
    total_support: int


class MilestoneOut(CamelModel):
    id: str
    name: str
    description: str
    icon: str
    category: str = Field(description='"study" | "community" | "prayer" | "scripture"')
    threshold: int
    celebration_message: str
    color: str


class NextMilestoneOut(CamelModel):
    milestone: MilestoneOut
    progress: int = Field(description="0-100, clamped.")


class CircleStatsResponse(CamelModel):
    circle_id: int
    stats: CircleStatsOut
    new_milestones: list[MilestoneOut]
    celebration_message: str
    next_milestone: Optional[NextMilestoneOut] = None


class CircleMilestonesResponse(CamelModel):
    circle_id: int
    achieved: list[MilestoneOut]
    next_by_category: dict[str, Optional[NextMilestoneOut]]
