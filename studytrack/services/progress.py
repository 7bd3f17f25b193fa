"""
Progress Orchestrator — one "mark day complete / incomplete" request.

Flow
----
  1. Validate  plan owned by the caller, active, not soft-deleted; day exists.
               Nothing is mutated when this fails.
  2. Load      plan days + the caller's StudyStreak (created if missing).
  3. Mutate    day flags -> streak event -> engagement counters ->
               plan completion (+ completion counters) -> achievement diff.
               Plan completion is applied before the diff so completion
               achievements fire in the same response.
  4. Persist   day, streak and plan status in one transaction, one commit.
               The unlocked-achievements list is written only when the store
               has the column (StoreCapabilities); otherwise it is logged and
               the computed achievements are still returned.
  5. Respond   ProgressResult.

Semantics
---------
- A streak event fires only when the day's `completed` flag actually changes:
  false -> true is a completion, true -> false an un-completion. Re-sending the
  current state only applies engagement flags.
- Engagement flags are monotonic. An absent flag leaves the day unchanged and
  so does an explicit false; only true sets a flag. A flag that goes
  false -> true on this request bumps the verse / prayer counters once.

Concurrency
-----------
Requests for the same (user, plan) are serialized in-process by a per-key
lock. Across worker processes the StudyStreak version column makes the later
commit fail (StaleDataError) and the whole request rolls back.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studytrack.core.calendar import utcnow
from studytrack.core.errors import InvalidDayError, InvalidPayloadError
from studytrack.db.capabilities import StoreCapabilities
from studytrack.models.study_plan import PlanStatus, StudyPlanDay
from studytrack.services.achievements import Achievement, check_new_achievements
from studytrack.services.engagement import PlanProgress, score_day, summarize_progress
from studytrack.services.plans import load_days, load_owned_plan
from studytrack.services.streak_engine import (
    StreakMilestone,
    StreakOutcome,
    StreakSnapshot,
    apply_completion_event,
    record_engagement,
    record_plan_completion,
)
from studytrack.services.streak_store import get_or_create_streak

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input / output types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngagementUpdate:
    """None means "not present in the request"."""
    verse_saved: Optional[bool] = None
    prayer_generated: Optional[bool] = None
    chat_engaged: Optional[bool] = None


@dataclass
class ProgressResult:
    day: StudyPlanDay
    day_score: int
    progress: PlanProgress
    current_streak: int
    longest_streak: int
    new_milestone: Optional[StreakMilestone]
    new_achievements: list[Achievement]
    plan_completed: bool


# ---------------------------------------------------------------------------
# Per-(user, plan) serialization
# ---------------------------------------------------------------------------

# key -> (lock, number of requests holding or waiting on it)
_locks_guard = threading.Lock()
_plan_locks: dict[tuple[str, int], tuple[threading.Lock, int]] = {}


@contextmanager
def _plan_lock(user_id: str, plan_id: int) -> Iterator[None]:
    key = (user_id, plan_id)
    with _locks_guard:
        lock, users = _plan_locks.get(key, (None, 0))
        if lock is None:
            lock = threading.Lock()
        _plan_locks[key] = (lock, users + 1)
    try:
        with lock:
            yield
    finally:
        with _locks_guard:
            lock, users = _plan_locks[key]
            if users == 1:
                del _plan_locks[key]
            else:
                _plan_locks[key] = (lock, users - 1)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def _apply_flags(day: StudyPlanDay, engagement: EngagementUpdate) -> tuple[bool, bool]:
    """Set requested flags on the day; return (verse newly saved, prayer newly generated)."""
    verse_added = bool(engagement.verse_saved) and not day.verse_saved
    prayer_added = bool(engagement.prayer_generated) and not day.prayer_generated
    if engagement.verse_saved:
        day.verse_saved = True
    if engagement.prayer_generated:
        day.prayer_generated = True
    if engagement.chat_engaged:
        day.chat_engaged = True
    return verse_added, prayer_added


def _apply_completion(
    day: StudyPlanDay,
    completed: bool,
    previous: StreakSnapshot,
    now: datetime,
) -> StreakOutcome:
    if bool(day.completed) == completed:
        return StreakOutcome(snapshot=previous, is_new_day=False, new_milestone=None)
    day.completed = completed
    day.completed_at = now if completed else None
    return apply_completion_event(previous, completed, now=now)


def _mutate(
    db: Session,
    user_id: str,
    plan_id: int,
    day_number: int,
    completed: bool,
    engagement: EngagementUpdate,
    capabilities: StoreCapabilities,
    now: datetime,
) -> ProgressResult:
    # 1. Validate
    plan = load_owned_plan(db, user_id, plan_id, active_only=True)
    days = load_days(db, plan.id)
    day = next((d for d in days if d.day_number == day_number), None)
    if day is None:
        raise InvalidDayError(plan_id, day_number)

    # 2. Load
    streak = get_or_create_streak(db, user_id)
    previous = StreakSnapshot.from_record(streak)
    unlocked = streak.unlocked_ids() if capabilities.achievement_tracking else []

    # 3. Mutate
    verse_added, prayer_added = _apply_flags(day, engagement)
    outcome = _apply_completion(day, completed, previous, now)
    snapshot = record_engagement(outcome.snapshot, verse_added, prayer_added)

    progress = summarize_progress(days)
    plan_completed = progress.completed_days == progress.total_days
    if plan_completed:
        plan.status = PlanStatus.completed
        plan.completed_at = now
        snapshot = record_plan_completion(snapshot, plan.duration)

    new_achievements = check_new_achievements(previous, snapshot, unlocked)

    # 4. Persist (flushed on commit by the caller)
    snapshot.apply_to(streak)
    if new_achievements:
        if capabilities.achievement_tracking:
            streak.set_unlocked_ids(unlocked + [a.id for a in new_achievements])
        else:
            logger.warning(
                "Achievement tracking not available; not storing %s for user %s",
                [a.id for a in new_achievements], user_id,
            )

    return ProgressResult(
        day=day,
        day_score=score_day(day),
        progress=progress,
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        new_milestone=outcome.new_milestone,
        new_achievements=new_achievements,
        plan_completed=plan_completed,
    )


# ---------------------------------------------------------------------------
# Public — main entry point
# ---------------------------------------------------------------------------

def update_day_progress(
    db: Session,
    user_id: str,
    plan_id: int,
    day_number: int,
    completed: bool,
    engagement: Optional[EngagementUpdate] = None,
    capabilities: Optional[StoreCapabilities] = None,
    now: Optional[datetime] = None,
) -> ProgressResult:
    """
    Apply one completion / un-completion (plus engagement flags) to a plan day
    and return the consolidated progress, streak and achievement result.
    Commits once; any persistence failure rolls everything back.
    """
    if not day_number or day_number < 1:
        raise InvalidPayloadError("Day number required", details={"day_number": day_number})

    engagement = engagement or EngagementUpdate()
    capabilities = capabilities or StoreCapabilities(achievement_tracking=True)
    now = now or utcnow()

    logger.info(
        "Updating study plan progress: plan=%s day=%s completed=%s engagement=%s",
        plan_id, day_number, completed, engagement,
    )

    with _plan_lock(user_id, plan_id):
        try:
            result = _mutate(
                db, user_id, plan_id, day_number, completed, engagement, capabilities, now,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    logger.info(
        "Progress updated: plan=%s streak=%d/%d achievements=%s plan_completed=%s",
        plan_id, result.current_streak, result.longest_streak,
        [a.title for a in result.new_achievements], result.plan_completed,
    )
    return result
