"""initial schema: study plans, plan days, study streaks

Revision ID: 0001
Revises:
Create Date: 2026-03-02 00:00:00.000000

study_streaks ships without unlocked_achievements; 0002 adds it.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    plan_status_enum = sa.Enum("active", "completed", name="plan_status_enum")
    plan_status_enum.create(op.get_bind(), checkfirst=True)

    # --- study_plans ---
    op.create_table(
        "study_plans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(64), nullable=False, server_default="custom"),
        sa.Column("status", sa.Enum(
            "active", "completed", name="plan_status_enum", create_type=False,
        ), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("duration IN (7, 21)", name="ck_study_plans_duration"),
    )
    op.create_index("ix_study_plans_id", "study_plans", ["id"])
    op.create_index("ix_study_plans_user_id", "study_plans", ["user_id"])

    # --- study_plan_days ---
    op.create_table(
        "study_plan_days",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("plan_id", sa.Integer(), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("verse_reference", sa.String(128), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verse_saved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("prayer_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chat_engaged", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["plan_id"], ["study_plans.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("plan_id", "day_number", name="uq_study_plan_day_number"),
    )
    op.create_index("ix_study_plan_days_id", "study_plan_days", ["id"])
    op.create_index("ix_study_plan_days_plan_id", "study_plan_days", ["plan_id"])

    # --- study_streaks ---
    op.create_table(
        "study_streaks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_plans_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_7day_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_21day_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_days_studied", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_verses_from_plans", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_prayers_from_plans", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_study_streaks_id", "study_streaks", ["id"])
    op.create_index("ix_study_streaks_user_id", "study_streaks", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_table("study_streaks")
    op.drop_table("study_plan_days")
    op.drop_table("study_plans")

    op.execute("DROP TYPE IF EXISTS plan_status_enum")
