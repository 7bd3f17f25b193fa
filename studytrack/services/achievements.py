"""
Achievement Evaluator — individual, permanently unlockable achievements.

The catalog is a fixed table of tagged records. Each record names a `kind`
of condition, the snapshot `metric` it reads and a numeric `threshold`;
`requirement_met` dispatches on `kind` through `_CONDITIONS`. Categories are
for display only: every entry is evaluated independently and several may fire
from the same event.

Unlock rule (check_new_achievements)
------------------------------------
An achievement is newly unlocked iff
  1. its id is not already in the user's unlocked list, AND
  2. its condition holds for the new snapshot, AND
  3. its condition did NOT hold for the previous snapshot.
Condition 3 keeps an achievement whose threshold was already passed from
firing again on unrelated updates. Unlocks are never revoked.

Snapshots are any object exposing the StreakSnapshot counter attributes. A
metric missing from the snapshot reads as "not met" and 0/0 progress.
"""
from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Iterable, Optional


class AchievementCategory(str, enum.Enum):
    streak = "streak"
    completion = "completion"
    engagement = "engagement"
    depth = "depth"


class Tier(str, enum.Enum):
    bronze = "bronze"
    silver = "silver"
    gold = "gold"
    platinum = "platinum"


class ConditionKind(str, enum.Enum):
    at_least = "at_least"


# kind -> (metric value, threshold) -> met?
_CONDITIONS: dict[ConditionKind, Callable[[int, int], bool]] = {
    ConditionKind.at_least: lambda value, threshold: value >= threshold,
}


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    tier: Tier
    metric: str
    threshold: int
    kind: ConditionKind = ConditionKind.at_least


def _a(id, title, description, icon, category, tier, metric, threshold) -> Achievement:
    return Achievement(
        id=id, title=title, description=description, icon=icon,
        category=AchievementCategory(category), tier=Tier(tier),
        metric=metric, threshold=threshold,
    )


ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Streak
    _a("week_of_devotion", "Week of Devotion", "Maintained a 7-day study streak",
       "🔥", "streak", "bronze", "current_streak", 7),
    _a("fortnight_faithful", "Fortnight Faithful", "Maintained a 14-day study streak",
       "⚡", "streak", "silver", "current_streak", 14),
    _a("three_weeks_strong", "Three Weeks Strong", "Maintained a 21-day study streak",
       "⭐", "streak", "silver", "current_streak", 21),
    _a("month_of_faithfulness", "Month of Faithfulness", "Maintained a 30-day study streak",
       "🏆", "streak", "gold", "current_streak", 30),
    _a("unwavering_dedication", "Unwavering Dedication", "Maintained a 100-day study streak",
       "👑", "streak", "platinum", "current_streak", 100),
    _a("longest_streak_10", "Consistency Builder", "Achieved a 10-day longest streak",
       "💪", "streak", "bronze", "longest_streak", 10),
    _a("longest_streak_50", "Steadfast Spirit", "Achieved a 50-day longest streak",
       "🌟", "streak", "gold", "longest_streak", 50),

    # Completion
    _a("first_journey", "First Journey", "Completed your first 7-Day Journey",
       "🎯", "completion", "bronze", "total_7day_completed", 1),
    _a("journey_explorer", "Journey Explorer", "Completed 5 seven-day journeys",
       "🗺️", "completion", "silver", "total_7day_completed", 5),
    _a("deep_diver", "Deep Diver", "Completed your first 21-Day Deep Dive",
       "🏊", "completion", "silver", "total_21day_completed", 1),
    _a("depth_seeker", "Depth Seeker", "Completed 3 twenty-one-day deep dives",
       "🔍", "completion", "gold", "total_21day_completed", 3),
    _a("dedicated_scholar", "Dedicated Scholar", "Completed 10 study plans total",
       "📚", "completion", "gold", "total_plans_completed", 10),
    _a("master_student", "Master Student", "Completed 25 study plans total",
       "🎓", "completion", "platinum", "total_plans_completed", 25),

    # Engagement
    _a("scripture_collector", "Scripture Collector", "Saved 25 verses from study plans",
       "💎", "engagement", "silver", "total_verses_from_plans", 25),
    _a("word_treasure", "Word Treasure", "Saved 100 verses from study plans",
       "📜", "engagement", "gold", "total_verses_from_plans", 100),
    _a("prayer_warrior", "Prayer Warrior", "Generated 50 prayers from study plans",
       "🙏", "engagement", "gold", "total_prayers_from_plans", 50),
    _a("intercessor", "Faithful Intercessor", "Generated 100 prayers from study plans",
       "🕊️", "engagement", "platinum", "total_prayers_from_plans", 100),

    # Depth
    _a("fifty_days_strong", "50 Days of Growth", "Studied the Bible for 50 days total",
       "🌱", "depth", "silver", "total_days_studied", 50),
    _a("hundred_days_strong", "100 Days of Growth", "Studied the Bible for 100 days total",
       "🌳", "depth", "gold", "total_days_studied", 100),
    _a("year_of_study", "Year of Transformation", "Studied the Bible for 365 days total",
       "🌟", "depth", "platinum", "total_days_studied", 365),
)

ACHIEVEMENTS_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

TIER_COLORS: dict[str, str] = {
    Tier.bronze.value: "#cd7f32",
    Tier.silver.value: "#c0c0c0",
    Tier.gold.value: "#ffd700",
    Tier.platinum.value: "#e5e4e2",
}
_DEFAULT_TIER_COLOR = "#888"


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _metric_value(stats: Any, metric: str) -> Optional[int]:
    value = getattr(stats, metric, None)
    return value if isinstance(value, int) else None


def requirement_met(achievement: Achievement, stats: Any) -> bool:
    value = _metric_value(stats, achievement.metric)
    if value is None:
        return False
    condition = _CONDITIONS.get(achievement.kind)
    return condition is not None and condition(value, achievement.threshold)


def check_new_achievements(
    previous: Any,
    new: Any,
    unlocked_ids: Iterable[str],
) -> list[Achievement]:
    """Achievements that cross from not-met to met between the two snapshots."""
    already = set(unlocked_ids)
    return [
        a for a in ACHIEVEMENTS
        if a.id not in already
        and requirement_met(a, new)
        and not requirement_met(a, previous)
    ]


def get_unlocked_achievements(stats: Any) -> list[Achievement]:
    return [a for a in ACHIEVEMENTS if requirement_met(a, stats)]


@dataclass
class AchievementProgress:
    achievement: Achievement
    progress: int
    total: int
    percent_progress: float


def progress_for(achievement: Achievement, stats: Any) -> tuple[int, int]:
    """(progress, total) toward one achievement; (0, 0) when not derivable."""
    value = _metric_value(stats, achievement.metric)
    if value is None:
        return 0, 0
    return value, achievement.threshold


def get_next_achievements(stats: Any, limit: int = 3) -> list[AchievementProgress]:
    """Not-yet-met achievements closest to completion, best first."""
    pending = []
    for achievement in ACHIEVEMENTS:
        if requirement_met(achievement, stats):
            continue
        progress, total = progress_for(achievement, stats)
        ratio = (progress / total) * 100 if total > 0 else 0.0
        pending.append(AchievementProgress(
            achievement=achievement,
            progress=progress,
            total=total,
            percent_progress=ratio,
        ))
    # sorted() is stable: ties keep catalog order
    pending = sorted(pending, key=lambda p: p.percent_progress, reverse=True)
    return pending[:max(limit, 0)]


def get_tier_color(tier: Tier | str) -> str:
    key = tier.value if isinstance(tier, Tier) else str(tier)
    return TIER_COLORS.get(key, _DEFAULT_TIER_COLOR)


def get_tier_name(tier: Tier | str) -> str:
    key = tier.value if isinstance(tier, Tier) else str(tier)
    return key[:1].upper() + key[1:]


def unlocked_catalog_entries(ids: Iterable[str]) -> list[Achievement]:
    """Resolve stored ids to catalog entries, dropping ids the catalog no longer has."""
    return [ACHIEVEMENTS_BY_ID[i] for i in ids if i in ACHIEVEMENTS_BY_ID]
