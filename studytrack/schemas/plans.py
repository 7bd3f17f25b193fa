"""
Study plan schemas.

POST   /plans            → StartPlanRequest → PlanDetailResponse
GET    /plans/current    → CurrentPlanResponse
GET    /plans/{plan_id}  → PlanDetailResponse
DELETE /plans/{plan_id}  → PlanDeletedResponse
"""
from typing import Annotated, Optional

from pydantic import Field, field_validator

from studytrack.schemas.common import CamelModel
from studytrack.schemas.progress import ProgressOut, StudyDayOut


class DaySpecIn(CamelModel):
    title: Optional[str] = Field(default=None, max_length=256)
    verse_reference: Optional[str] = Field(default=None, max_length=128)


class StartPlanRequest(CamelModel):
    title: Annotated[str, Field(min_length=1, max_length=256, examples=["7-Day Journey: Psalms"])]
    description: Optional[str] = None
    duration: int = Field(description="7 or 21 days.", examples=[7])
    source: str = Field(default="custom", max_length=64)
    days: Optional[list[DaySpecIn]] = Field(
        default=None,
        description="Optional per-day titles / verse references; length must equal duration.",
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("title must not be empty after stripping whitespace")
        return stripped


class PlanOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    duration: int
    source: str
    status: str = Field(description='"active" | "completed"')
    created_at: str
    completed_at: Optional[str] = None


class PlanDetailResponse(CamelModel):
    plan: PlanOut
    days: list[StudyDayOut]
    progress: ProgressOut


class PlanStatsOut(CamelModel):
    total_completed: int
    total_days_studied: int
    current_streak: int
    longest_streak: int


class CurrentPlanResponse(CamelModel):
    active_plan: Optional[PlanDetailResponse] = None
    stats: PlanStatsOut


class PlanDeletedResponse(CamelModel):
    id: int
    deleted: bool = True
