"""
Store capabilities — schema features that may lag behind the code.

Resolved once per process on first use and cached on the app state, so the
progress orchestrator gets an explicit flag instead of probing the store with
a write and swallowing the failure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from studytrack.core.config import settings
from studytrack.db.base import get_db

logger = logging.getLogger(__name__)

ACHIEVEMENTS_TABLE = "study_streaks"
ACHIEVEMENTS_COLUMN = "unlocked_achievements"


@dataclass(frozen=True)
class StoreCapabilities:
    achievement_tracking: bool


def detect_capabilities(bind: Engine | Connection) -> StoreCapabilities:
    if settings.ACHIEVEMENT_TRACKING is not None:
        return StoreCapabilities(achievement_tracking=settings.ACHIEVEMENT_TRACKING)

    inspector = inspect(bind)
    if not inspector.has_table(ACHIEVEMENTS_TABLE):
        tracking = False
    else:
        columns = {c["name"] for c in inspector.get_columns(ACHIEVEMENTS_TABLE)}
        tracking = ACHIEVEMENTS_COLUMN in columns

    if not tracking:
        logger.warning(
            "%s.%s is missing; unlocked achievements will be returned but not stored",
            ACHIEVEMENTS_TABLE, ACHIEVEMENTS_COLUMN,
        )
    return StoreCapabilities(achievement_tracking=tracking)


def get_capabilities(request: Request, db: Session = Depends(get_db)) -> StoreCapabilities:
    caps = getattr(request.app.state, "store_capabilities", None)
    if caps is None:
        caps = detect_capabilities(db.connection())
        request.app.state.store_capabilities = caps
    return caps
