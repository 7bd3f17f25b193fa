"""
CircleStatsSnapshot — last computed CircleStats for a circle.

A derived cache: the circle tables remain the source of truth. The stored
stats are the "previous" side of the milestone diff on the next refresh.

stats: JSON-encoded dict stored as Text.
"""
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from studytrack.db.base import Base


class CircleStatsSnapshot(Base):
    __tablename__ = "circle_stats_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    circle_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("study_circles.id", ondelete="CASCADE"),
        nullable=False, unique=True, index=True,
    )
    stats: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
