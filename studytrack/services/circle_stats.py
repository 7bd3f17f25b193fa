"""
Circle statistics service.

Aggregates one circle's CircleStats from its members, shared plans, the
members' linked personal plans and the content posted to the circle, then
diffs milestones against the previously stored snapshot.

Public API
----------
ensure_circle_member(db, circle_id, user_id) -> CircleMember
compute_circle_stats(db, circle_id)          -> CircleStats       (read only)
get_circle_stats_report(db, circle_id)       -> CircleStatsReport (read only)
refresh_circle_stats(db, circle_id)          -> CircleStatsReport (upserts snapshot)

Only refresh_circle_stats writes, and it commits once at the end.
"""
from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studytrack.core.calendar import utc_date
from studytrack.core.errors import CircleAccessDeniedError, CircleNotFoundError
from studytrack.core.rounding import round_half_up
from studytrack.models.circle import (
    CircleMember,
    CircleMemberPlan,
    CirclePlan,
    CirclePrayer,
    CircleReflection,
    PrayerSupport,
    ReflectionComment,
    SharedVerse,
    StudyCircle,
)
from studytrack.models.circle_stats_snapshot import CircleStatsSnapshot
from studytrack.models.study_plan import PlanStatus, StudyPlanDay
from studytrack.services.circle_milestones import (
    CircleStats,
    Milestone,
    NextMilestone,
    get_multi_milestone_celebration,
    get_new_milestones,
    get_next_milestone,
)

logger = logging.getLogger(__name__)


@dataclass
class CircleStatsReport:
    circle_id: int
    stats: CircleStats
    new_milestones: list[Milestone]
    celebration_message: str
    next_milestone: Optional[NextMilestone]


# ---------------------------------------------------------------------------
# Access
# ---------------------------------------------------------------------------

def ensure_circle_member(db: Session, circle_id: int, user_id: str) -> CircleMember:
    if db.get(StudyCircle, circle_id) is None:
        raise CircleNotFoundError(circle_id)
    member = (
        db.query(CircleMember)
        .filter(CircleMember.circle_id == circle_id, CircleMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise CircleAccessDeniedError(circle_id)
    return member


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _longest_unified_run(member_ids: set[str], days_by_user: dict[str, set[date]]) -> int:
    """Longest run of consecutive days on which every member completed a day."""
    if not member_ids:
        return 0
    shared: Optional[set[date]] = None
    for user_id in member_ids:
        user_days = days_by_user.get(user_id, set())
        shared = set(user_days) if shared is None else shared & user_days
        if not shared:
            return 0

    longest = run = 0
    previous: Optional[date] = None
    for d in sorted(shared):
        run = run + 1 if previous is not None and d - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = d
    return longest


def _average_progress(
    plans: Iterable[CirclePlan],
    member_plans_by_plan: dict[int, list[CircleMemberPlan]],
    completed_by_study_plan: dict[int, int],
) -> int:
    active = [p for p in plans if p.status == PlanStatus.active]
    if not active:
        return 0
    plan_sum = 0.0
    for plan in active:
        links = member_plans_by_plan.get(plan.id, [])
        member_sum = sum(
            completed_by_study_plan.get(link.study_plan_id, 0) / plan.duration * 100
            for link in links
        )
        plan_sum += member_sum / max(len(links), 1)
    return round_half_up(plan_sum / len(active))


def compute_circle_stats(db: Session, circle_id: int) -> CircleStats:
    member_ids = {
        row.user_id
        for row in db.query(CircleMember.user_id).filter(CircleMember.circle_id == circle_id)
    }
    plans = db.query(CirclePlan).filter(CirclePlan.circle_id == circle_id).all()
    plan_ids = [p.id for p in plans]

    links: list[CircleMemberPlan] = []
    if plan_ids:
        links = (
            db.query(CircleMemberPlan)
            .filter(CircleMemberPlan.circle_plan_id.in_(plan_ids))
            .all()
        )
    member_plans_by_plan: dict[int, list[CircleMemberPlan]] = defaultdict(list)
    for link in links:
        member_plans_by_plan[link.circle_plan_id].append(link)

    # Completed days of every linked personal plan
    study_plan_ids = sorted({link.study_plan_id for link in links})
    completed_rows = []
    if study_plan_ids:
        completed_rows = (
            db.query(StudyPlanDay.plan_id, StudyPlanDay.completed_at)
            .filter(
                StudyPlanDay.plan_id.in_(study_plan_ids),
                StudyPlanDay.completed.is_(True),
            )
            .all()
        )
    completed_by_study_plan: dict[int, int] = defaultdict(int)
    completion_dates_by_plan: dict[int, set[date]] = defaultdict(set)
    for row in completed_rows:
        completed_by_study_plan[row.plan_id] += 1
        if row.completed_at is not None:
            completion_dates_by_plan[row.plan_id].add(utc_date(row.completed_at))

    total_days_completed = sum(
        completed_by_study_plan.get(link.study_plan_id, 0) for link in links
    )

    days_by_user: dict[str, set[date]] = defaultdict(set)
    for link in links:
        days_by_user[link.user_id] |= completion_dates_by_plan.get(link.study_plan_id, set())

    # Shared content
    reflections = []
    if plan_ids:
        reflections = (
            db.query(CircleReflection.id, CircleReflection.created_at)
            .filter(CircleReflection.circle_plan_id.in_(plan_ids))
            .all()
        )
    reflection_ids = [r.id for r in reflections]
    total_comments = 0
    if reflection_ids:
        total_comments = (
            db.query(func.count(ReflectionComment.id))
            .filter(ReflectionComment.reflection_id.in_(reflection_ids))
            .scalar()
            or 0
        )

    prayers = (
        db.query(CirclePrayer.id, CirclePrayer.created_at)
        .filter(CirclePrayer.circle_id == circle_id)
        .all()
    )
    prayer_ids = [p.id for p in prayers]
    total_support = 0
    if prayer_ids:
        total_support = (
            db.query(func.count(PrayerSupport.id))
            .filter(PrayerSupport.prayer_id.in_(prayer_ids))
            .scalar()
            or 0
        )

    verses = (
        db.query(SharedVerse.created_at)
        .filter(SharedVerse.circle_id == circle_id)
        .all()
    )

    # Distinct UTC days with any activity
    activity: set[date] = set()
    activity.update(utc_date(r.created_at) for r in reflections)
    activity.update(utc_date(p.created_at) for p in prayers)
    activity.update(utc_date(v.created_at) for v in verses)
    for dates in completion_dates_by_plan.values():
        activity |= dates

    return CircleStats(
        total_days_completed=total_days_completed,
        average_progress=(
            _average_progress(plans, member_plans_by_plan, completed_by_study_plan)
            if member_ids else 0
        ),
        total_reflections=len(reflections),
        total_prayers=len(prayers),
        total_verses=len(verses),
        active_days=len(activity),
        member_count=len(member_ids),
        completed_studies=sum(
            1 for p in plans if p.status == PlanStatus.completed
        ),
        longest_streak=_longest_unified_run(member_ids, days_by_user),
        total_comments=total_comments,
        total_support=total_support,
    )


# ---------------------------------------------------------------------------
# Snapshot + milestone diff
# ---------------------------------------------------------------------------

def _load_previous(snapshot: Optional[CircleStatsSnapshot]) -> CircleStats:
    if snapshot is None or not snapshot.stats:
        return CircleStats()
    try:
        data = json.loads(snapshot.stats)
    except (ValueError, TypeError):
        return CircleStats()
    return CircleStats.from_dict(data) if isinstance(data, dict) else CircleStats()


def _stored_snapshot(db: Session, circle_id: int) -> Optional[CircleStatsSnapshot]:
    return (
        db.query(CircleStatsSnapshot)
        .filter(CircleStatsSnapshot.circle_id == circle_id)
        .first()
    )


def _report(circle_id: int, previous: CircleStats, current: CircleStats) -> CircleStatsReport:
    new_milestones = get_new_milestones(previous, current)
    return CircleStatsReport(
        circle_id=circle_id,
        stats=current,
        new_milestones=new_milestones,
        celebration_message=get_multi_milestone_celebration(new_milestones),
        next_milestone=get_next_milestone(current),
    )


def get_circle_stats_report(db: Session, circle_id: int) -> CircleStatsReport:
    """
    Current stats and the milestones reached since the stored snapshot.
    Writes nothing, so repeated reads report the same milestones until the
    snapshot is refreshed. A circle without a snapshot is compared against
    zeroed stats.
    """
    current = compute_circle_stats(db, circle_id)
    previous = _load_previous(_stored_snapshot(db, circle_id))
    return _report(circle_id, previous, current)


def refresh_circle_stats(db: Session, circle_id: int) -> CircleStatsReport:
    """
    Same report as get_circle_stats_report, then store the new stats as the
    next comparison point.
    """
    current = compute_circle_stats(db, circle_id)
    snapshot = _stored_snapshot(db, circle_id)
    report = _report(circle_id, _load_previous(snapshot), current)

    payload = json.dumps(current.to_dict())
    if snapshot is not None:
        snapshot.stats = payload
    else:
        db.add(CircleStatsSnapshot(circle_id=circle_id, stats=payload))
    try:
        db.commit()
    except IntegrityError:
        # Another request created the snapshot first; its stats are as fresh as ours
        db.rollback()

    if report.new_milestones:
        logger.info(
            "Circle %s reached milestones: %s",
            circle_id, ", ".join(m.id for m in report.new_milestones),
        )
    return report
