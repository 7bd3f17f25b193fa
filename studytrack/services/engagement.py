"""
Engagement Scorer.

Per day:  40 x completed + 20 x verse_saved + 20 x prayer_generated + 20 x chat_engaged
Per plan: round(100 x sum(day scores) / (100 x total days))

Always recomputed from the full list of days so an out-of-order flag change
on any day is reflected on the next call.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from studytrack.core.rounding import percent

COMPLETED_WEIGHT = 40
VERSE_SAVED_WEIGHT = 20
PRAYER_GENERATED_WEIGHT = 20
CHAT_ENGAGED_WEIGHT = 20
MAX_DAY_SCORE = 100


@dataclass
class PlanProgress:
    completed_days: int
    total_days: int
    percent_complete: int
    engagement_score: int


def score_day(day: Any) -> int:
    score = 0
    if day.completed:
        score += COMPLETED_WEIGHT
    if day.verse_saved:
        score += VERSE_SAVED_WEIGHT
    if day.prayer_generated:
        score += PRAYER_GENERATED_WEIGHT
    if day.chat_engaged:
        score += CHAT_ENGAGED_WEIGHT
    return score


def score_plan(days: Iterable[Any]) -> int:
    days = list(days)
    return percent(sum(score_day(d) for d in days), MAX_DAY_SCORE * len(days))


def summarize_progress(days: Sequence[Any]) -> PlanProgress:
    completed = sum(1 for d in days if d.completed)
    return PlanProgress(
        completed_days=completed,
        total_days=len(days),
        percent_complete=percent(completed, len(days)),
        engagement_score=score_plan(days),
    )
