"""add circle_stats_snapshots table

Revision ID: 0004
Revises: 0003
Create Date: 2026-03-23

Last computed stats per circle; the comparison point for milestone
celebrations. One row per circle (unique circle_id), overwritten in place.
"""
from alembic import op
import sqlalchemy as sa

revision = "0004"
down_revision = "0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "circle_stats_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "circle_id", sa.Integer(),
            sa.ForeignKey("study_circles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("stats", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_circle_stats_snapshots_circle_id",
        "circle_stats_snapshots",
        ["circle_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_circle_stats_snapshots_circle_id", table_name="circle_stats_snapshots")
    op.drop_table("circle_stats_snapshots")
