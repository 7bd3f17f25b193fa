"""
Streak Engine — current/longest streak bookkeeping for one user.

Completion event (a day checked off "now")
------------------------------------------
  today = UTC midnight of now
  no previous completion      -> current = 1,               new day
  delta == 0 (same UTC day)   -> current = max(current, 1), not a new day
  delta == 1 (next UTC day)   -> current += 1,              new day
  delta  > 1 or delta < 0     -> current = 1,               new day
  then: longest = max(longest, current); last_completed_at = today;
        new day -> total_days_studied += 1

Un-completion event (a day un-checked)
--------------------------------------
  current and total_days_studied drop by one, floored at 0.
  longest and last_completed_at are left alone: undo is a correction,
  not a rewind of the date history.

After a completion the resulting streak is matched exactly against the
celebrated milestone days (3, 7, 14, 21, 30). The match is a response-time
signal only and is never persisted.

Pure: no DB, no clock reads unless `now` is omitted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Optional

from studytrack.core.calendar import day_distance, normalize_day, utcnow
from studytrack.core.rounding import percent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

STAT_FIELDS = (
    "current_streak",
    "longest_streak",
    "total_plans_completed",
    "total_7day_completed",
    "total_21day_completed",
    "total_days_studied",
    "total_verses_from_plans",
    "total_prayers_from_plans",
)


@dataclass(frozen=True)
class StreakSnapshot:
    """Immutable copy of a StudyStreak row; also the achievement input."""
    current_streak: int = 0
    longest_streak: int = 0
    total_plans_completed: int = 0
    total_7day_completed: int = 0
    total_21day_completed: int = 0
    total_days_studied: int = 0
    total_verses_from_plans: int = 0
    total_prayers_from_plans: int = 0
    last_completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Any) -> StreakSnapshot:
        values = {name: getattr(record, name) or 0 for name in STAT_FIELDS}
        return cls(last_completed_at=record.last_completed_at, **values)

    def apply_to(self, record: Any) -> None:
        for name in STAT_FIELDS:
            setattr(record, name, getattr(self, name))
        record.last_completed_at = self.last_completed_at

    def stats(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in STAT_FIELDS}


# ---------------------------------------------------------------------------
# Milestone table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StreakMilestone:
    days: int
    title: str
    message: str
    icon: str


STREAK_MILESTONES: tuple[StreakMilestone, ...] = (
    StreakMilestone(3, "Building Momentum", "3-day streak! You're building a habit.", "🌱"),
    StreakMilestone(7, "Week of Devotion", "One full week of consistent study!", "🔥"),
    StreakMilestone(14, "Two Weeks Strong", "Your dedication is inspiring!", "💪"),
    StreakMilestone(21, "Three Weeks Faithful", "You've built a lasting habit!", "⭐"),
    StreakMilestone(30, "Month of Faithfulness", "A full month of growth!", "🏆"),
    StreakMilestone(50, "Halfway to 100", "You're unstoppable!", "🚀"),
    StreakMilestone(100, "Century of Devotion", "100 days! Incredible dedication!", "👑"),
    StreakMilestone(365, "Year of Transformation", "A full year of daily study!", "🌟"),
)

# Streak lengths that produce a celebration on the completion response.
CELEBRATED_STREAK_DAYS = frozenset({3, 7, 14, 21, 30})


def check_milestone(current_streak: int) -> Optional[StreakMilestone]:
    """Return the celebrated milestone whose day count equals the streak exactly."""
    if current_streak not in CELEBRATED_STREAK_DAYS:
        return None
    return next((m for m in STREAK_MILESTONES if m.days == current_streak), None)


def get_next_milestone(current_streak: int) -> Optional[StreakMilestone]:
    return next((m for m in STREAK_MILESTONES if m.days > current_streak), None)


@dataclass
class MilestoneProgress:
    current: int
    next: Optional[StreakMilestone]
    days_remaining: int
    percent_progress: int


def get_milestone_progress(current_streak: int) -> MilestoneProgress:
    nxt = get_next_milestone(current_streak)
    if nxt is None:
        return MilestoneProgress(
            current=current_streak, next=None, days_remaining=0, percent_progress=100,
        )
    return MilestoneProgress(
        current=current_streak,
        next=nxt,
        days_remaining=nxt.days - current_streak,
        percent_progress=percent(current_streak, nxt.days),
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass
class StreakOutcome:
    snapshot: StreakSnapshot
    is_new_day: bool
    new_milestone: Optional[StreakMilestone]


def _apply_completion(snapshot: StreakSnapshot, now: datetime) -> StreakOutcome:
    today = normalize_day(now)
    current = snapshot.current_streak

    if snapshot.last_completed_at is None:
        current = 1
        is_new_day = True
    else:
        delta = day_distance(today, snapshot.last_completed_at)
        logger.debug(
            "Streak delta: today=%s last=%s delta=%d current=%d",
            today.isoformat(), normalize_day(snapshot.last_completed_at).isoformat(),
            delta, current,
        )
        if delta == 0:
            current = max(current, 1)
            is_new_day = False
        elif delta == 1:
            current += 1
            is_new_day = True
        else:
            # gap, or a clock that went backwards
            current = 1
            is_new_day = True

    updated = replace(
        snapshot,
        current_streak=current,
        longest_streak=max(snapshot.longest_streak, current),
        last_completed_at=today,
        total_days_studied=snapshot.total_days_studied + (1 if is_new_day else 0),
    )
    return StreakOutcome(
        snapshot=updated,
        is_new_day=is_new_day,
        new_milestone=check_milestone(current),
    )


def _apply_uncompletion(snapshot: StreakSnapshot) -> StreakOutcome:
    updated = replace(
        snapshot,
        current_streak=max(0, snapshot.current_streak - 1),
        total_days_studied=max(0, snapshot.total_days_studied - 1),
    )
    return StreakOutcome(snapshot=updated, is_new_day=False, new_milestone=None)


def apply_completion_event(
    snapshot: StreakSnapshot,
    is_completion: bool,
    now: Optional[datetime] = None,
) -> StreakOutcome:
    """Apply one completion (True) or un-completion (False) event."""
    if is_completion:
        return _apply_completion(snapshot, now or utcnow())
    return _apply_uncompletion(snapshot)


# ---------------------------------------------------------------------------
# Counter helpers used by the progress orchestrator
# ---------------------------------------------------------------------------

def record_engagement(
    snapshot: StreakSnapshot,
    verse_saved: bool,
    prayer_generated: bool,
) -> StreakSnapshot:
    """Count a newly saved verse / generated prayer (flags already de-duplicated)."""
    return replace(
        snapshot,
        total_verses_from_plans=snapshot.total_verses_from_plans + int(verse_saved),
        total_prayers_from_plans=snapshot.total_prayers_from_plans + int(prayer_generated),
    )


def record_plan_completion(snapshot: StreakSnapshot, duration: int) -> StreakSnapshot:
    return replace(
        snapshot,
        total_plans_completed=snapshot.total_plans_completed + 1,
        total_7day_completed=snapshot.total_7day_completed + (1 if duration == 7 else 0),
        total_21day_completed=snapshot.total_21day_completed + (1 if duration == 21 else 0),
    )
