"""
Circle Milestone Evaluator — collective milestones over CircleStats.

Same table-of-tagged-records shape as achievements.py, keyed to circle-wide
counters. `threshold` drives both the condition and the progress display.

get_new_milestones(previous, current) is a plain set difference of met
milestones. Unlike achievements there is no "was not met before" guard and
no unlocked-id list: every CircleStats counter only grows. If a counter ever
becomes reversible (e.g. deleting reflections lowers totalReflections), this
needs the same three-condition rule as check_new_achievements, otherwise a
milestone re-fires every time the counter crosses back over its threshold.
"""
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

from studytrack.core.rounding import percent


@dataclass
class CircleStats:
    total_days_completed: int = 0
    average_progress: int = 0
    total_reflections: int = 0
    total_prayers: int = 0
    total_verses: int = 0
    active_days: int = 0
    member_count: int = 0
    completed_studies: int = 0
    longest_streak: int = 0
    total_comments: int = 0
    total_support: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CircleStats:
        """Tolerant load: unknown keys are ignored, missing or bad ones read as 0."""
        values = {}
        for f in fields(cls):
            raw = data.get(f.name, 0)
            values[f.name] = raw if isinstance(raw, int) else 0
        return cls(**values)


class MilestoneCategory(str, enum.Enum):
    study = "study"
    community = "community"
    prayer = "prayer"
    scripture = "scripture"


@dataclass(frozen=True)
class Milestone:
    id: str
    name: str
    description: str
    icon: str
    category: MilestoneCategory
    metric: str
    threshold: int
    celebration_message: str
    color: str


def _m(id, name, description, icon, category, metric, threshold, message, color) -> Milestone:
    return Milestone(
        id=id, name=name, description=description, icon=icon,
        category=MilestoneCategory(category), metric=metric, threshold=threshold,
        celebration_message=message, color=color,
    )


MILESTONES: tuple[Milestone, ...] = (
    # Study
    _m("first_study", "First Study Together", "Complete your first study as a circle",
       "📚", "study", "completed_studies", 1,
       "Your circle completed its first study together! This is just the beginning "
       "of your shared journey through Scripture.", "#3b82f6"),
    _m("unified_week", "Unified Week", "All members complete the same 7 days",
       "🤝", "study", "longest_streak", 7,
       "Every member completed 7 days! Your unity in Scripture study is inspiring.",
       "#8b5cf6"),
    _m("century_club", "Century Club", "100 total days completed across all members",
       "💯", "study", "total_days_completed", 100,
       "100 days of collective Bible study! Your dedication to Scripture is bearing fruit.",
       "#10b981"),
    _m("marathon_readers", "Marathon Readers", "500 total days completed",
       "🏃", "study", "total_days_completed", 500,
       "500 days! Your circle has run the race with endurance, growing together in faith.",
       "#f59e0b"),

    # Community
    _m("first_reflection", "First Shared Reflection", "Someone shares their first reflection",
       "💭", "community", "total_reflections", 1,
       "Your first reflection shared! Opening up and sharing insights is the heart "
       "of circle life.", "#667eea"),
    _m("thoughtful_circle", "Thoughtful Circle", "50 reflections shared",
       "🧠", "community", "total_reflections", 50,
       "50 reflections! Your circle values deep thinking about Scripture and learning "
       "from each other.", "#667eea"),
    _m("wisdom_keepers", "Wisdom Keepers", "100 reflections shared",
       "📝", "community", "total_reflections", 100,
       "100 reflections! The wisdom your circle shares is a treasure that enriches everyone.",
       "#667eea"),
    _m("engaged_community", "Engaged Community", "100 comments on reflections",
       "💬", "community", "total_comments", 100,
       "100 comments! Your circle actively engages with each other's insights.",
       "#ec4899"),

    # Prayer
    _m("prayer_warriors", "Prayer Warriors", "50 prayer requests shared",
       "🙏", "prayer", "total_prayers", 50,
       "50 prayers shared! Your circle carries each other's burdens in prayer.",
       "#f59e0b"),
    _m("faithful_intercessors", "Faithful Intercessors", "100 prayer requests",
       "⛪", "prayer", "total_prayers", 100,
       "100 prayers! Your circle demonstrates faithful intercession for one another.",
       "#f59e0b"),
    _m("supporting_circle", "Supporting Circle", "200 prayer supports (\"I'm praying\")",
       "🤲", "prayer", "total_support", 200,
       "200 prayer supports! Your circle actively prays for each other's needs.",
       "#f59e0b"),

    # Scripture
    _m("scripture_seekers", "Scripture Seekers", "25 verses shared",
       "📖", "scripture", "total_verses", 25,
       "25 verses shared! Your circle finds and celebrates meaningful Scripture together.",
       "#8b5cf6"),
    _m("word_treasurers", "Word Treasurers", "100 verses shared",
       "💎", "scripture", "total_verses", 100,
       "100 verses! Your circle treasures God's Word and shares it generously.",
       "#8b5cf6"),
    _m("consistent_circle", "Consistent Circle", "30 active days",
       "🔥", "study", "active_days", 30,
       "30 active days! Your circle maintains regular engagement with Scripture and "
       "each other.", "#ef4444"),
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _current(milestone: Milestone, stats: CircleStats) -> int:
    value = getattr(stats, milestone.metric, 0)
    return value if isinstance(value, int) else 0


def check_condition(milestone: Milestone, stats: CircleStats) -> bool:
    return _current(milestone, stats) >= milestone.threshold


def check_milestones(stats: CircleStats) -> list[Milestone]:
    """Every milestone the circle has reached."""
    return [m for m in MILESTONES if check_condition(m, stats)]


def get_new_milestones(previous: CircleStats, current: CircleStats) -> list[Milestone]:
    previous_ids = {m.id for m in check_milestones(previous)}
    return [m for m in check_milestones(current) if m.id not in previous_ids]


@dataclass
class NextMilestone:
    milestone: Milestone
    progress: int  # 0-100


def get_next_milestone(
    stats: CircleStats,
    category: Optional[MilestoneCategory | str] = None,
) -> Optional[NextMilestone]:
    """Nearest unreached milestone (lowest threshold), optionally within one category."""
    wanted = MilestoneCategory(category) if category else None
    upcoming = [
        m for m in MILESTONES
        if not check_condition(m, stats)
        and (wanted is None or m.category == wanted)
    ]
    if not upcoming:
        return None
    nxt = min(upcoming, key=lambda m: m.threshold)
    progress = min(100, percent(_current(nxt, stats), nxt.threshold))
    return NextMilestone(milestone=nxt, progress=progress)


def get_multi_milestone_celebration(milestones: list[Milestone]) -> str:
    if not milestones:
        return ""
    if len(milestones) == 1:
        return milestones[0].celebration_message
    names = ", ".join(m.name for m in milestones)
    return (
        f"Incredible! Your circle just achieved {len(milestones)} milestones! "
        f"{names}. Keep growing together in faith!"
    )
