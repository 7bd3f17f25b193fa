"""
StudyStreak — per-user cumulative study counters (one row per user_id).

Created on first use with zeroed counters. `version` is the optimistic
concurrency column: SQLAlchemy bumps it on every UPDATE and a writer holding a
stale copy fails with StaleDataError instead of silently overwriting.

`unlocked_achievements` holds a JSON-encoded list of achievement ids
(append-only). It was added by a later migration, so it is deferred and only
touched when the store reports the capability (see db/capabilities.py).
"""
from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from studytrack.db.base import Base


class StudyStreak(Base):
    __tablename__ = "study_streaks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
        comment="UTC midnight of the most recent completion day",
    )
    total_plans_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_7day_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_21day_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_days_studied: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_verses_from_plans: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_prayers_from_plans: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unlocked_achievements: Mapped[str | None] = mapped_column(
        Text, nullable=True, deferred=True, comment="JSON list of achievement ids"
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    def unlocked_ids(self) -> list[str]:
        raw = self.unlocked_achievements
        if not raw:
            return []
        try:
            result = json.loads(raw)
            return result if isinstance(result, list) else []
        except (ValueError, TypeError):
            return []

    def set_unlocked_ids(self, ids: list[str]) -> None:
        self.unlocked_achievements = json.dumps(ids)
