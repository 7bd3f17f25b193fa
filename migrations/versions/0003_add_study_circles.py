"""add study circles

Revision ID: 0003
Revises: 0002
Create Date: 2026-03-16

Circles, membership, shared circle plans (linked to each member's personal
study_plans row), reflections + comments, prayers + supports, shared verses.
"""
from alembic import op
import sqlalchemy as sa

revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    circle_role_enum = sa.Enum("owner", "admin", "member", name="circle_role_enum")
    circle_role_enum.create(op.get_bind(), checkfirst=True)
    circle_plan_status_enum = sa.Enum("active", "completed", name="circle_plan_status_enum")
    circle_plan_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "study_circles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(128), nullable=False),
        _created_at(),
    )

    op.create_table(
        "circle_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_id", sa.Integer(),
            sa.ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("role", sa.Enum(
            "owner", "admin", "member", name="circle_role_enum", create_type=False,
        ), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("circle_id", "user_id", name="uq_circle_member"),
    )
    op.create_index("ix_circle_members_circle_id", "circle_members", ["circle_id"])
    op.create_index("ix_circle_members_user_id", "circle_members", ["user_id"])

    op.create_table(
        "circle_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_id", sa.Integer(),
            sa.ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("status", sa.Enum(
            "active", "completed", name="circle_plan_status_enum", create_type=False,
        ), nullable=False),
        _created_at(),
    )
    op.create_index("ix_circle_plans_circle_id", "circle_plans", ["circle_id"])

    op.create_table(
        "circle_member_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_plan_id", sa.Integer(),
            sa.ForeignKey("circle_plans.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column(
            "study_plan_id", sa.Integer(),
            sa.ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.UniqueConstraint("circle_plan_id", "user_id", name="uq_circle_member_plan"),
    )
    op.create_index("ix_circle_member_plans_circle_plan_id", "circle_member_plans", ["circle_plan_id"])
    op.create_index("ix_circle_member_plans_study_plan_id", "circle_member_plans", ["study_plan_id"])

    op.create_table(
        "circle_reflections",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_plan_id", sa.Integer(),
            sa.ForeignKey("circle_plans.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_circle_reflections_circle_plan_id", "circle_reflections", ["circle_plan_id"])

    op.create_table(
        "reflection_comments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "reflection_id", sa.Integer(),
            sa.ForeignKey("circle_reflections.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_reflection_comments_reflection_id", "reflection_comments", ["reflection_id"])

    op.create_table(
        "circle_prayers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_id", sa.Integer(),
            sa.ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_circle_prayers_circle_id", "circle_prayers", ["circle_id"])

    op.create_table(
        "prayer_supports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "prayer_id", sa.Integer(),
            sa.ForeignKey("circle_prayers.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        _created_at(),
        sa.UniqueConstraint("prayer_id", "user_id", name="uq_prayer_support"),
    )
    op.create_index("ix_prayer_supports_prayer_id", "prayer_supports", ["prayer_id"])

    op.create_table(
        "shared_verses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_id", sa.Integer(),
            sa.ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("reference", sa.String(128), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_shared_verses_circle_id", "shared_verses", ["circle_id"])


def downgrade() -> None:
    op.drop_table("shared_verses")
    op.drop_table("prayer_supports")
    op.drop_table("circle_prayers")
    op.drop_table("reflection_comments")
    op.drop_table("circle_reflections")
    op.drop_table("circle_member_plans")
    op.drop_table("circle_plans")
    op.drop_table("circle_members")
    op.drop_table("study_circles")

    op.execute("DROP TYPE IF EXISTS circle_plan_status_enum")
    op.execute("DROP TYPE IF EXISTS circle_role_enum")
