"""
Study plans router.

POST   /plans                               — start a 7- or 21-day plan
GET    /plans/current                       — active (or latest completed) plan + stats
GET    /plans/{plan_id}                     — one owned plan with its days
DELETE /plans/{plan_id}                     — soft delete
PATCH  /plans/{plan_id}/days/{day_number}   — mark a day complete / incomplete
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from studytrack.core.auth import get_current_user_id
from studytrack.db.base import get_db
from studytrack.db.capabilities import StoreCapabilities, get_capabilities
from studytrack.routers.serializers import (
    achievement_to_response,
    day_to_response,
    plan_detail_to_response,
    progress_to_response,
    streak_milestone_to_response,
)
from studytrack.schemas.common import ErrorResponse
from studytrack.schemas.plans import (
    CurrentPlanResponse,
    PlanDeletedResponse,
    PlanDetailResponse,
    PlanStatsOut,
    StartPlanRequest,
)
from studytrack.schemas.progress import DayProgressRequest, DayProgressResponse, StreakOut
from studytrack.services.plans import (
    DaySpec,
    delete_plan,
    get_current_plan,
    get_plan,
    start_plan,
)
from studytrack.services.progress import EngagementUpdate, update_day_progress

router = APIRouter(prefix="/plans", tags=["plans"])


# ---------------------------------------------------------------------------
# POST /plans
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=PlanDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a new study plan",
    responses={
        201: {"description": "Plan created with all of its days."},
        400: {"model": ErrorResponse, "description": "Duration is not 7 or 21, or the day list has the wrong length."},
        409: {"model": ErrorResponse, "description": "The caller already has an active plan."},
    },
)
def create_plan(
    payload: StartPlanRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    days = None
    if payload.days is not None:
        days = [DaySpec(title=d.title, verse_reference=d.verse_reference) for d in payload.days]
    detail = start_plan(
        db=db,
        user_id=user_id,
        title=payload.title,
        duration=payload.duration,
        description=payload.description,
        source=payload.source,
        days=days,
    )
    return plan_detail_to_response(detail)


# ---------------------------------------------------------------------------
# GET /plans/current
# ---------------------------------------------------------------------------

@router.get(
    "/current",
    response_model=CurrentPlanResponse,
    summary="Current plan and personal study stats",
)
def current_plan(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Returns the caller's active plan, or the most recently completed one when
    nothing is active. `activePlan` is null for a user who never started a plan.
    """
    current = get_current_plan(db=db, user_id=user_id)
    stats = current.stats
    return CurrentPlanResponse(
        active_plan=plan_detail_to_response(current.plan) if current.plan else None,
        stats=PlanStatsOut(
            total_completed=stats.total_plans_completed,
            total_days_studied=stats.total_days_studied,
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
        ),
    )


# ---------------------------------------------------------------------------
# GET / DELETE /plans/{plan_id}
# ---------------------------------------------------------------------------

@router.get(
    "/{plan_id}",
    response_model=PlanDetailResponse,
    summary="Get one study plan",
    responses={404: {"model": ErrorResponse, "description": "Plan not found or not owned by the caller."}},
)
def read_plan(
    plan_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return plan_detail_to_response(get_plan(db=db, user_id=user_id, plan_id=plan_id))


@router.delete(
    "/{plan_id}",
    response_model=PlanDeletedResponse,
    summary="Soft-delete a study plan",
    responses={404: {"model": ErrorResponse, "description": "Plan not found or not owned by the caller."}},
)
def remove_plan(
    plan_id: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    plan = delete_plan(db=db, user_id=user_id, plan_id=plan_id)
    return PlanDeletedResponse(id=plan.id)


# ---------------------------------------------------------------------------
# PATCH /plans/{plan_id}/days/{day_number}
# ---------------------------------------------------------------------------

@router.patch(
    "/{plan_id}/days/{day_number}",
    response_model=DayProgressResponse,
    summary="Mark a plan day complete or incomplete",
    responses={
        200: {"description": "Updated day, plan progress, streak and newly unlocked achievements."},
        400: {"model": ErrorResponse, "description": "Malformed body, day number < 1, or day not in plan."},
        401: {"model": ErrorResponse, "description": "No caller identity."},
        404: {"model": ErrorResponse, "description": "Plan missing, not owned, not active, or deleted."},
    },
)
def update_day(
    payload: DayProgressRequest,
    plan_id: int = Path(...),
    day_number: int = Path(...),
    user_id: str = Depends(get_current_user_id),
    capabilities: StoreCapabilities = Depends(get_capabilities),
    db: Session = Depends(get_db),
):
    """
    ### Effects
    | Change | Effect |
    |---|---|
    | `completed` false → true | streak advances (same day: unchanged), `totalDaysStudied` +1 on a new day |
    | `completed` true → false | streak and `totalDaysStudied` decrease by one, floored at 0 |
    | engagement flag false → true | flag set; verse / prayer counters +1 |
    | last open day completed | plan → completed, completion counters +1 |

    Engagement flags are never cleared; sending `false` leaves them as they are.
    `newAchievements` lists only achievements unlocked by this request.
    """
    engagement = None
    if payload.engagement is not None:
        engagement = EngagementUpdate(
            verse_saved=payload.engagement.verse_saved,
            prayer_generated=payload.engagement.prayer_generated,
            chat_engaged=payload.engagement.chat_engaged,
        )
    result = update_day_progress(
        db=db,
        user_id=user_id,
        plan_id=plan_id,
        day_number=day_number,
        completed=payload.completed,
        engagement=engagement,
        capabilities=capabilities,
    )
    return DayProgressResponse(
        day=day_to_response(result.day),
        progress=progress_to_response(result.progress),
        streak=StreakOut(
            current_streak=result.current_streak,
            longest_streak=result.longest_streak,
            new_milestone=streak_milestone_to_response(result.new_milestone),
        ),
        new_achievements=[achievement_to_response(a) for a in result.new_achievements],
        plan_completed=result.plan_completed,
    )
