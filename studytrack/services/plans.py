"""
Study plan lifecycle: start, read, soft-delete.

A user has at most one active, non-deleted plan. Days are created densely
(1..duration) together with the plan in one commit.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from studytrack.core.calendar import utcnow
from studytrack.core.errors import ActivePlanExistsError, InvalidPayloadError, PlanNotFoundError
from studytrack.models.study_plan import PLAN_DURATIONS, PlanStatus, StudyPlan, StudyPlanDay
from studytrack.services.engagement import PlanProgress, summarize_progress
from studytrack.services.streak_engine import StreakSnapshot
from studytrack.services.streak_store import get_or_create_streak


@dataclass
class DaySpec:
    title: Optional[str] = None
    verse_reference: Optional[str] = None


@dataclass
class PlanDetail:
    plan: StudyPlan
    days: list[StudyPlanDay]
    progress: PlanProgress


@dataclass
class CurrentPlan:
    plan: Optional[PlanDetail]
    stats: StreakSnapshot = field(default_factory=StreakSnapshot)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def load_days(db: Session, plan_id: int) -> list[StudyPlanDay]:
    return (
        db.query(StudyPlanDay)
        .filter(StudyPlanDay.plan_id == plan_id)
        .order_by(StudyPlanDay.day_number.asc())
        .all()
    )


def load_owned_plan(
    db: Session,
    user_id: str,
    plan_id: int,
    active_only: bool = False,
) -> StudyPlan:
    """Owned, non-deleted plan (optionally active only) or PlanNotFoundError."""
    q = db.query(StudyPlan).filter(
        StudyPlan.id == plan_id,
        StudyPlan.user_id == user_id,
        StudyPlan.deleted_at.is_(None),
    )
    if active_only:
        q = q.filter(StudyPlan.status == PlanStatus.active)
    plan = q.first()
    if plan is None:
        raise PlanNotFoundError(plan_id)
    return plan


def _find_active_plan(db: Session, user_id: str) -> Optional[StudyPlan]:
    return (
        db.query(StudyPlan)
        .filter(
            StudyPlan.user_id == user_id,
            StudyPlan.status == PlanStatus.active,
            StudyPlan.deleted_at.is_(None),
        )
        .first()
    )


def _detail(db: Session, plan: StudyPlan) -> PlanDetail:
    days = load_days(db, plan.id)
    return PlanDetail(plan=plan, days=days, progress=summarize_progress(days))


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def start_plan(
    db: Session,
    user_id: str,
    title: str,
    duration: int,
    description: Optional[str] = None,
    source: str = "custom",
    days: Optional[Sequence[DaySpec]] = None,
) -> PlanDetail:
    if duration not in PLAN_DURATIONS:
        raise InvalidPayloadError(
            "Valid duration (7 or 21) required",
            details={"duration": duration},
        )
    if days is not None and len(days) != duration:
        raise InvalidPayloadError(
            f"Expected {duration} day entries, received {len(days)}",
            details={"duration": duration, "received": len(days)},
        )

    existing = _find_active_plan(db, user_id)
    if existing is not None:
        raise ActivePlanExistsError(existing.id)

    plan = StudyPlan(
        user_id=user_id,
        title=title,
        description=description,
        duration=duration,
        source=source,
        status=PlanStatus.active,
    )
    db.add(plan)
    db.flush()  # get plan.id

    specs = list(days) if days is not None else [DaySpec() for _ in range(duration)]
    for number, spec in enumerate(specs, start=1):
        db.add(StudyPlanDay(
            plan_id=plan.id,
            day_number=number,
            title=spec.title or f"Day {number}",
            verse_reference=spec.verse_reference,
            completed=False,
            verse_saved=False,
            prayer_generated=False,
            chat_engaged=False,
        ))
    db.commit()
    db.refresh(plan)
    return _detail(db, plan)


def get_plan(db: Session, user_id: str, plan_id: int) -> PlanDetail:
    return _detail(db, load_owned_plan(db, user_id, plan_id))


def get_current_plan(db: Session, user_id: str) -> CurrentPlan:
    """Active plan, else the most recently completed one, plus the user's stats."""
    plan = _find_active_plan(db, user_id)
    if plan is None:
        plan = (
            db.query(StudyPlan)
            .filter(
                StudyPlan.user_id == user_id,
                StudyPlan.status == PlanStatus.completed,
                StudyPlan.deleted_at.is_(None),
            )
            .order_by(StudyPlan.completed_at.desc())
            .first()
        )
    streak = get_or_create_streak(db, user_id)
    db.commit()
    return CurrentPlan(
        plan=_detail(db, plan) if plan is not None else None,
        stats=StreakSnapshot.from_record(streak),
    )


def delete_plan(
    db: Session,
    user_id: str,
    plan_id: int,
    now: Optional[datetime] = None,
) -> StudyPlan:
    plan = load_owned_plan(db, user_id, plan_id)
    plan.deleted_at = now or utcnow()
    db.commit()
    return plan
