"""
Study circles — shared study groups and the content members post to them.

Only what circle statistics read is modelled here: membership, shared plans
and the link from a shared plan to each member's personal study_plans row,
reflections (+ comments), prayers (+ supports) and shared verses.
"""
from datetime import datetime
import enum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from studytrack.db.base import Base
from studytrack.models.study_plan import PlanStatus


class CircleRole(str, enum.Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


class StudyCircle(Base):
    __tablename__ = "study_circles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CircleMember(Base):
    __tablename__ = "circle_members"
    __table_args__ = (
        UniqueConstraint("circle_id", "user_id", name="uq_circle_member"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    role: Mapped[str] = mapped_column(
        Enum(CircleRole, name="circle_role_enum"),
        nullable=False,
        default=CircleRole.member,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CirclePlan(Base):
    """A study the whole circle goes through together."""

    __tablename__ = "circle_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(PlanStatus, name="circle_plan_status_enum"),
        nullable=False,
        default=PlanStatus.active,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CircleMemberPlan(Base):
    """Links a member's personal study plan to a circle plan."""

    __tablename__ = "circle_member_plans"
    __table_args__ = (
        UniqueConstraint("circle_plan_id", "user_id", name="uq_circle_member_plan"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("circle_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    study_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )


class CircleReflection(Base):
    __tablename__ = "circle_reflections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_plan_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("circle_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    day_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ReflectionComment(Base):
    __tablename__ = "reflection_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    reflection_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("circle_reflections.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class CirclePrayer(Base):
    __tablename__ = "circle_prayers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class PrayerSupport(Base):
    """One "I'm praying" from a member on a prayer request."""

    __tablename__ = "prayer_supports"
    __table_args__ = (
        UniqueConstraint("prayer_id", "user_id", name="uq_prayer_support"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    prayer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("circle_prayers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class SharedVerse(Base):
    __tablename__ = "shared_verses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    reference: Mapped[str] = mapped_column(String(128), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
