"""
StudyPlan / StudyPlanDay — one user's 7- or 21-day reading plan.

Days are dense (1..duration) and unique per plan. `status` moves
active -> completed exactly once, when every day is completed.
`deleted_at` is a soft delete; deleted plans are invisible to every endpoint.
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from studytrack.db.base import Base

PLAN_DURATIONS = (7, 21)


class PlanStatus(str, enum.Enum):
    active = "active"
    completed = "completed"


class StudyPlan(Base):
    __tablename__ = "study_plans"
    __table_args__ = (
        CheckConstraint("duration IN (7, 21)", name="ck_study_plans_duration"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(64), nullable=False, default="custom")
    status: Mapped[str] = mapped_column(
        Enum(PlanStatus, name="plan_status_enum"),
        nullable=False,
        default=PlanStatus.active,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class StudyPlanDay(Base):
    __tablename__ = "study_plan_days"
    __table_args__ = (
        UniqueConstraint("plan_id", "day_number", name="uq_study_plan_day_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(256), nullable=True)
    verse_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # null iff not completed
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    verse_saved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prayer_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    chat_engaged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
