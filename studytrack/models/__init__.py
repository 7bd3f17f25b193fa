from .study_plan import StudyPlan, StudyPlanDay, PlanStatus
from .study_streak import StudyStreak
from .circle import (
    StudyCircle,
    CircleMember,
    CircleRole,
    CirclePlan,
    CircleMemberPlan,
    CircleReflection,
    ReflectionComment,
    CirclePrayer,
    PrayerSupport,
    SharedVerse,
)
from .circle_stats_snapshot import CircleStatsSnapshot

__all__ = [
    "StudyPlan",
    "StudyPlanDay",
    "PlanStatus",
    "StudyStreak",
    "StudyCircle",
    "CircleMember",
    "CircleRole",
    "CirclePlan",
    "CircleMemberPlan",
    "CircleReflection",
    "ReflectionComment",
    "CirclePrayer",
    "PrayerSupport",
    "SharedVerse",
    "CircleStatsSnapshot",
]
