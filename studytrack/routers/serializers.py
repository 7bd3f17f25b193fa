"""
ORM / service dataclass -> response model helpers shared by the routers.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from studytrack.core.calendar import as_utc
from studytrack.models.study_plan import StudyPlan, StudyPlanDay
from studytrack.schemas.achievements import (
    AchievementOut,
    AchievementProgressOut,
    MilestoneProgressOut,
    StreakMilestoneOut,
)
from studytrack.schemas.plans import PlanDetailResponse, PlanOut
from studytrack.schemas.progress import ProgressOut, StudyDayOut
from studytrack.services.achievements import (
    Achievement,
    AchievementProgress,
    get_tier_color,
    get_tier_name,
)
from studytrack.services.engagement import PlanProgress, score_day
from studytrack.services.plans import PlanDetail
from studytrack.services.streak_engine import MilestoneProgress, StreakMilestone


def _ev(v) -> str:
    """Extract bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def iso(ts: Optional[datetime]) -> Optional[str]:
    return as_utc(ts).isoformat() if ts is not None else None


# ---------------------------------------------------------------------------
# Achievements / streak milestones
# ---------------------------------------------------------------------------

def achievement_to_response(a: Achievement) -> AchievementOut:
    return AchievementOut(
        id=a.id,
        title=a.title,
        description=a.description,
        icon=a.icon,
        category=_ev(a.category),
        tier=_ev(a.tier),
        tier_name=get_tier_name(a.tier),
        tier_color=get_tier_color(a.tier),
        threshold=a.threshold,
    )


def achievement_progress_to_response(p: AchievementProgress) -> AchievementProgressOut:
    base = achievement_to_response(p.achievement)
    return AchievementProgressOut(
        **base.model_dump(),
        progress=p.progress,
        total=p.total,
        percent_progress=p.percent_progress,
    )


def streak_milestone_to_response(m: Optional[StreakMilestone]) -> Optional[StreakMilestoneOut]:
    if m is None:
        return None
    return StreakMilestoneOut(days=m.days, title=m.title, message=m.message, icon=m.icon)


def milestone_progress_to_response(mp: MilestoneProgress) -> MilestoneProgressOut:
    return MilestoneProgressOut(
        current=mp.current,
        next=streak_milestone_to_response(mp.next),
        days_remaining=mp.days_remaining,
        percent_progress=mp.percent_progress,
    )


# ---------------------------------------------------------------------------
# Plans / days
# ---------------------------------------------------------------------------

def day_to_response(day: StudyPlanDay) -> StudyDayOut:
    return StudyDayOut(
        id=day.id,
        day_number=day.day_number,
        title=day.title,
        verse_reference=day.verse_reference,
        completed=bool(day.completed),
        completed_at=iso(day.completed_at),
        verse_saved=bool(day.verse_saved),
        prayer_generated=bool(day.prayer_generated),
        chat_engaged=bool(day.chat_engaged),
        engagement_score=score_day(day),
    )


def progress_to_response(p: PlanProgress) -> ProgressOut:
    return ProgressOut(
        completed_days=p.completed_days,
        total_days=p.total_days,
        percent_complete=p.percent_complete,
        engagement_score=p.engagement_score,
    )


def plan_to_response(plan: StudyPlan) -> PlanOut:
    return PlanOut(
        id=plan.id,
        title=plan.title,
        description=plan.description,
        duration=plan.duration,
        source=plan.source,
        status=_ev(plan.status),
        created_at=iso(plan.created_at) or "",
        completed_at=iso(plan.completed_at),
    )


def plan_detail_to_response(detail: PlanDetail) -> PlanDetailResponse:
    return PlanDetailResponse(
        plan=plan_to_response(detail.plan),
        days=[day_to_response(d) for d in detail.days],
        progress=progress_to_response(detail.progress),
    )
