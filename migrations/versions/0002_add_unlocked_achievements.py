"""add study_streaks.unlocked_achievements

Revision ID: 0002
Revises: 0001
Create Date: 2026-03-09

JSON-encoded list of achievement ids, append-only. Nullable so existing rows
need no backfill; NULL reads as "nothing unlocked yet". Until this runs the
API reports achievementTracking=false and does not store unlocks.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "study_streaks",
        sa.Column("unlocked_achievements", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    op.drop_column("study_streaks", "unlocked_achievements")
