"""
Streak & achievements router.

GET /streak         — the caller's counters, unlocked achievements and next goals
GET /achievements   — the full achievement catalog
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studytrack.core.auth import get_current_user_id
from studytrack.core.config import settings
from studytrack.db.base import get_db
from studytrack.db.capabilities import StoreCapabilities, get_capabilities
from studytrack.routers.serializers import (
    achievement_progress_to_response,
    achievement_to_response,
    iso,
    milestone_progress_to_response,
)
from studytrack.schemas.achievements import AchievementCatalogResponse
from studytrack.schemas.streak import StreakSummaryResponse
from studytrack.services.achievements import ACHIEVEMENTS, AchievementCategory
from studytrack.services.streak_store import get_streak_summary

router = APIRouter(tags=["streak"])


@router.get(
    "/streak",
    response_model=StreakSummaryResponse,
    summary="Personal streak, counters and achievements",
)
def read_streak(
    user_id: str = Depends(get_current_user_id),
    capabilities: StoreCapabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    """
    A user without a streak record gets one with all counters at zero.
    `unlockedAchievements` is empty and `achievementTracking` false while the
    store cannot persist unlocked achievements.
    """
    summary = get_streak_summary(
        db=db,
        user_id=user_id,
        capabilities=capabilities,
        limit=settings.NEXT_ACHIEVEMENTS_LIMIT,
    )
    s = summary.snapshot
    return StreakSummaryResponse(
        current_streak=s.current_streak,
        longest_streak=s.longest_streak,
        last_completed_at=iso(s.last_completed_at),
        total_plans_completed=s.total_plans_completed,
        total_7day_completed=s.total_7day_completed,
        total_21day_completed=s.total_21day_completed,
        total_days_studied=s.total_days_studied,
        total_verses_from_plans=s.total_verses_from_plans,
        total_prayers_from_plans=s.total_prayers_from_plans,
        unlocked_achievements=[achievement_to_response(a) for a in summary.unlocked],
        achievement_tracking=summary.achievement_tracking,
        next_achievements=[achievement_progress_to_response(p) for p in summary.next_achievements],
        milestone_progress=milestone_progress_to_response(summary.milestone),
    )


@router.get(
    "/achievements",
    response_model=AchievementCatalogResponse,
    summary="Achievement catalog",
)
def list_achievements(
    category: Optional[AchievementCategory] = Query(
        default=None,
        description='Filter by category: "streak", "completion", "engagement", "depth".',
        examples=["streak"],
    ),
):
    items = [a for a in ACHIEVEMENTS if category is None or a.category == category]
    return AchievementCatalogResponse(
        total=len(items),
        items=[achievement_to_response(a) for a in items],
    )
