"""
Study circles router.

GET  /circles/{circle_id}/stats           — stats + milestones reached since the last refresh
POST /circles/{circle_id}/stats/refresh   — same report, then store the stats as the comparison point
GET  /circles/{circle_id}/milestones      — reached milestones + next goal per category

All endpoints are members-only.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from studytrack.core.auth import get_current_user_id
from studytrack.db.base import get_db
from studytrack.schemas.common import ErrorResponse
from studytrack.schemas.circles import (
    CircleMilestonesResponse,
    CircleStatsOut,
    CircleStatsResponse,
    MilestoneOut,
    NextMilestoneOut,
)
from studytrack.services.circle_milestones import (
    CircleStats,
    Milestone,
    MilestoneCategory,
    NextMilestone,
    check_milestones,
    get_next_milestone,
)
from studytrack.services.circle_stats import (
    CircleStatsReport,
    compute_circle_stats,
    ensure_circle_member,
    get_circle_stats_report,
    refresh_circle_stats,
)

router = APIRouter(prefix="/circles", tags=["circles"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _milestone_to_response(m: Milestone) -> MilestoneOut:
    return MilestoneOut(
        id=m.id,
        name=m.name,
        description=m.description,
        icon=m.icon,
        category=m.category.value,
        threshold=m.threshold,
        celebration_message=m.celebration_message,
        color=m.color,
    )


def _next_to_response(nxt: Optional[NextMilestone]) -> Optional[NextMilestoneOut]:
    if nxt is None:
        return None
    return NextMilestoneOut(milestone=_milestone_to_response(nxt.milestone), progress=nxt.progress)


def _stats_to_response(stats: CircleStats) -> CircleStatsOut:
    return CircleStatsOut(**stats.to_dict())


def _report_to_response(report: CircleStatsReport) -> CircleStatsResponse:
    return CircleStatsResponse(
        circle_id=report.circle_id,
        stats=_stats_to_response(report.stats),
        new_milestones=[_milestone_to_response(m) for m in report.new_milestones],
        celebration_message=report.celebration_message,
        next_milestone=_next_to_response(report.next_milestone),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

_MEMBER_ERRORS = {
    403: {"model": ErrorResponse, "description": "Caller is not a member of the circle."},
    404: {"model": ErrorResponse, "description": "Circle not found."},
}


@router.get(
    "/{circle_id}/stats",
    response_model=CircleStatsResponse,
    summary="Circle statistics and milestones reached since the last refresh",
    responses=_MEMBER_ERRORS,
)
def circle_stats(
    circle_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Read only. `newMilestones` holds milestones reached since the stored
    comparison point and keeps reporting them until `POST .../stats/refresh`
    moves it; `celebrationMessage` is empty when there are none.
    """
    ensure_circle_member(db, circle_id, user_id)
    return _report_to_response(get_circle_stats_report(db, circle_id))


@router.post(
    "/{circle_id}/stats/refresh",
    response_model=CircleStatsResponse,
    summary="Celebrate new circle milestones and store the stats",
    responses=_MEMBER_ERRORS,
)
def refresh_stats(
    circle_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Same body as `GET .../stats`, then the current stats become the comparison
    point, so each milestone is celebrated by exactly one refresh.
    """
    ensure_circle_member(db, circle_id, user_id)
    return _report_to_response(refresh_circle_stats(db, circle_id))


@router.get(
    "/{circle_id}/milestones",
    response_model=CircleMilestonesResponse,
    summary="Reached milestones and the next goal in each category",
    responses=_MEMBER_ERRORS,
)
def circle_milestones(
    circle_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Read only: does not move the comparison point used by `/stats`."""
    ensure_circle_member(db, circle_id, user_id)
    stats = compute_circle_stats(db, circle_id)
    return CircleMilestonesResponse(
        circle_id=circle_id,
        achieved=[_milestone_to_response(m) for m in check_milestones(stats)],
        next_by_category={
            c.value: _next_to_response(get_next_milestone(stats, c))
            for c in MilestoneCategory
        },
    )
