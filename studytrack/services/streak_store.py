"""
StudyStreak persistence helpers and the read-side streak summary.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studytrack.db.capabilities import StoreCapabilities
from studytrack.models.study_streak import StudyStreak
from studytrack.services.achievements import (
    Achievement,
    AchievementProgress,
    get_next_achievements,
    unlocked_catalog_entries,
)
from studytrack.services.streak_engine import (
    MilestoneProgress,
    StreakSnapshot,
    get_milestone_progress,
)


_COUNTER_COLUMNS = (
    "current_streak",
    "longest_streak",
    "total_plans_completed",
    "total_7day_completed",
    "total_21day_completed",
    "total_days_studied",
    "total_verses_from_plans",
    "total_prayers_from_plans",
)


def get_or_create_streak(db: Session, user_id: str) -> StudyStreak:
    """
    Upsert: return the user's streak row, creating it with zeroed counters.

    The row is inserted through Core with an explicit column list so the
    INSERT never names `unlocked_achievements`; a store that has not run the
    migration adding that column can still create streaks.
    """
    streak = db.query(StudyStreak).filter(StudyStreak.user_id == user_id).first()
    if streak is not None:
        return streak
    values = {name: 0 for name in _COUNTER_COLUMNS}
    try:
        with db.begin_nested():
            db.execute(
                insert(StudyStreak.__table__).values(user_id=user_id, version=1, **values)
            )
    except IntegrityError:
        # Created concurrently by another request for the same user
        pass
    return db.query(StudyStreak).filter(StudyStreak.user_id == user_id).one()
    try:
        with db.begin_nested():
            streak = StudyStreak(
                user_id=user_id,
                current_streak=0,
                longest_streak=0,
                total_plans_completed=0,
                total_7day_completed=0,
                total_21day_completed=0,
                total_days_studied=0,
                total_verses_from_plans=0,
                total_prayers_from_plans=0,
            )
            db.add(streak)
    except IntegrityError:
        # Created concurrently by another request for the same user
        streak = db.query(StudyStreak).filter(StudyStreak.user_id == user_id).one()
    return streak


@dataclass
class StreakSummary:
    snapshot: StreakSnapshot
    unlocked: list[Achievement]
    next_achievements: list[AchievementProgress]
    milestone: MilestoneProgress
    achievement_tracking: bool


def get_streak_summary(
    db: Session,
    user_id: str,
    capabilities: StoreCapabilities,
    limit: int = 3,
) -> StreakSummary:
    streak = get_or_create_streak(db, user_id)
    db.commit()
    snapshot = StreakSnapshot.from_record(streak)
    unlocked: list[Achievement] = []
    if capabilities.achievement_tracking:
        unlocked = unlocked_catalog_entries(streak.unlocked_ids())
    return StreakSummary(
        snapshot=snapshot,
        unlocked=unlocked,
        next_achievements=get_next_achievements(snapshot, limit=limit),
        milestone=get_milestone_progress(snapshot.current_streak),
        achievement_tracking=capabilities.achievement_tracking,
    )

