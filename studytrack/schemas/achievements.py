"""
Achievement and streak-milestone schemas.

GET /achievements → AchievementCatalogResponse
"""
from typing import Optional

from pydantic import Field

from studytrack.schemas.common import CamelModel


class AchievementOut(CamelModel):
    id: str
    title: str
    description: str
    icon: str
    category: str = Field(description='"streak" | "completion" | "engagement" | "depth"')
    tier: str = Field(description='"bronze" | "silver" | "gold" | "platinum"')
    tier_name: str = Field(description="Display name of the tier, e.g. Gold.")
    tier_color: str = Field(description="Hex color for the tier badge.")
    threshold: int


class AchievementProgressOut(AchievementOut):
    progress: int = Field(description="Current value of the metric the achievement reads.")
    total: int = Field(description="Target value; 0 when the metric is not derivable.")
    percent_progress: float


class AchievementCatalogResponse(CamelModel):
    total: int
    items: list[AchievementOut]


class StreakMilestoneOut(CamelModel):
    days: int
    title: str
    message: str
    icon: str


class MilestoneProgressOut(CamelModel):
    current: int
    next: Optional[StreakMilestoneOut] = None
    days_remaining: int
    percent_progress: int
