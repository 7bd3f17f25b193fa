"""
Tests for the Progress Orchestrator (update_day_progress).

Covered scenarios:
  A) first completion with every engagement flag → streak 1, day 100, plan 14
  B) 6-day streak, last completion 25h ago → streak 7, 7-day milestone, achievement
  C) re-sending the same state changes nothing
  D) un-completion walks the streak back and clears completed_at
  E) completing every day completes the plan exactly once
  F) validation failures mutate nothing
  G) achievement persistence follows the store capability flag
  H) a store without the achievements column still creates streaks
  I) a failed commit leaves day and streak untouched
  J) concurrent writers: per-plan lock and stale streak versions

`now` is injected so streak math never depends on the wall clock.
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from studytrack.core.config import settings
from studytrack.core.errors import InvalidDayError, InvalidPayloadError, PlanNotFoundError
from studytrack.db.base import Base
from studytrack.db.capabilities import StoreCapabilities, detect_capabilities
from studytrack.models import PlanStatus, StudyPlan, StudyPlanDay, StudyStreak
from studytrack.services.plans import delete_plan, start_plan
from studytrack.services import progress
from studytrack.services.progress import EngagementUpdate, update_day_progress
from studytrack.services.streak_store import get_or_create_streak, get_streak_summary

UTC = timezone.utc
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

ALL_FLAGS = EngagementUpdate(verse_saved=True, prayer_generated=True, chat_engaged=True)
TRACKING = StoreCapabilities(achievement_tracking=True)
NO_TRACKING = StoreCapabilities(achievement_tracking=False)


def _plan(db, user_id: str, duration: int = 7) -> int:
    return start_plan(db, user_id, title="Psalms", duration=duration).plan.id


def _streak(db, user_id: str) -> StudyStreak:
    db.expire_all()
    return db.query(StudyStreak).filter(StudyStreak.user_id == user_id).one()


def _day(db, plan_id: int, day_number: int) -> StudyPlanDay:
    db.expire_all()
    return (
        db.query(StudyPlanDay)
        .filter(StudyPlanDay.plan_id == plan_id, StudyPlanDay.day_number == day_number)
        .one()
    )


class TestFirstCompletion:
    def test_all_flags_on_day_one(self, db, user_id):
        plan_id = _plan(db, user_id)
        result = update_day_progress(
            db, user_id, plan_id, 1, completed=True, engagement=ALL_FLAGS,
            capabilities=TRACKING, now=NOW,
        )
        assert result.current_streak == 1
        assert result.longest_streak == 1
        assert result.day_score == 100
        assert result.progress.completed_days == 1
        assert result.progress.total_days == 7
        assert result.progress.percent_complete == 14
        assert result.progress.engagement_score == 14
        assert result.new_milestone is None
        assert result.plan_completed is False

        streak = _streak(db, user_id)
        assert streak.total_days_studied == 1
        assert streak.total_verses_from_plans == 1
        assert streak.total_prayers_from_plans == 1

        day = _day(db, plan_id, 1)
        assert day.completed is True
        assert day.completed_at is not None

    def test_engagement_only_does_not_touch_streak(self, db, user_id):
        plan_id = _plan(db, user_id)
        result = update_day_progress(
            db, user_id, plan_id, 2, completed=False,
            engagement=EngagementUpdate(verse_saved=True), capabilities=TRACKING, now=NOW,
        )
        assert result.current_streak == 0
        assert result.day_score == 20
        assert _streak(db, user_id).total_verses_from_plans == 1


class TestStreakMilestone:
    def test_sixth_to_seventh_day(self, db, user_id):
        streak = get_or_create_streak(db, user_id)
        streak.current_streak = 6
        streak.longest_streak = 10
        streak.total_days_studied = 6
        streak.last_completed_at = NOW - timedelta(hours=25)
        db.commit()

        plan_id = _plan(db, user_id)
        result = update_day_progress(
            db, user_id, plan_id, 1, completed=True, capabilities=TRACKING, now=NOW,
        )
        assert result.current_streak == 7
        assert result.longest_streak == 10
        assert result.new_milestone is not None
        assert result.new_milestone.days == 7
        assert [a.id for a in result.new_achievements] == ["week_of_devotion"]
        assert _streak(db, user_id).unlocked_ids() == ["week_of_devotion"]


class TestIdempotentToggle:
    def test_same_state_twice(self, db, user_id):
        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, ALL_FLAGS, TRACKING, now=NOW)
        again = update_day_progress(
            db, user_id, plan_id, 1, True, ALL_FLAGS, TRACKING, now=NOW + timedelta(hours=1),
        )
        assert again.current_streak == 1
        assert again.new_achievements == []
        streak = _streak(db, user_id)
        assert streak.total_days_studied == 1
        assert streak.total_verses_from_plans == 1
        assert streak.total_prayers_from_plans == 1

    def test_explicit_false_keeps_flags(self, db, user_id):
        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, ALL_FLAGS, TRACKING, now=NOW)
        result = update_day_progress(
            db, user_id, plan_id, 1, True,
            EngagementUpdate(verse_saved=False, prayer_generated=False, chat_engaged=False),
            TRACKING, now=NOW,
        )
        assert result.day_score == 100
        day = _day(db, plan_id, 1)
        assert day.verse_saved and day.prayer_generated and day.chat_engaged


class TestUncompletion:
    def test_undo_same_day(self, db, user_id):
        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        result = update_day_progress(db, user_id, plan_id, 1, False, capabilities=TRACKING, now=NOW)
        assert result.current_streak == 0
        assert result.longest_streak == 1
        assert result.progress.completed_days == 0
        assert _day(db, plan_id, 1).completed_at is None
        assert _streak(db, user_id).total_days_studied == 0

    def test_redo_same_day_restores_one(self, db, user_id):
        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        update_day_progress(db, user_id, plan_id, 1, False, capabilities=TRACKING, now=NOW)
        result = update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        assert result.current_streak == 1
        # same study day: not counted again
        assert _streak(db, user_id).total_days_studied == 0


class TestPlanCompletion:
    def test_seven_consecutive_days(self, db, user_id):
        plan_id = _plan(db, user_id)
        results = [
            update_day_progress(
                db, user_id, plan_id, n, True, capabilities=TRACKING,
                now=NOW + timedelta(days=n - 1),
            )
            for n in range(1, 8)
        ]
        assert [r.plan_completed for r in results] == [False] * 6 + [True]
        last = results[-1]
        assert last.current_streak == 7
        assert last.progress.percent_complete == 100
        assert {a.id for a in last.new_achievements} == {"week_of_devotion", "first_journey"}
        assert results[2].new_milestone.days == 3

        db.expire_all()
        plan = db.get(StudyPlan, plan_id)
        assert plan.status == PlanStatus.completed
        assert plan.completed_at is not None

        streak = _streak(db, user_id)
        assert streak.total_plans_completed == 1
        assert streak.total_7day_completed == 1
        assert streak.total_days_studied == 7

        # completed plans accept no further updates, so counters cannot move twice
        with pytest.raises(PlanNotFoundError):
            update_day_progress(db, user_id, plan_id, 7, True, capabilities=TRACKING,
                                now=NOW + timedelta(days=7))
        assert _streak(db, user_id).total_plans_completed == 1

    def test_twenty_one_day_plan_counts_separately(self, db, user_id):
        plan_id = _plan(db, user_id, duration=21)
        for n in range(1, 22):
            result = update_day_progress(
                db, user_id, plan_id, n, True, capabilities=TRACKING,
                now=NOW + timedelta(days=n - 1),
            )
        assert result.plan_completed is True
        assert "deep_diver" in {a.id for a in result.new_achievements}
        streak = _streak(db, user_id)
        assert streak.total_21day_completed == 1
        assert streak.total_7day_completed == 0


class TestValidation:
    def test_day_zero(self, db, user_id):
        plan_id = _plan(db, user_id)
        with pytest.raises(InvalidPayloadError):
            update_day_progress(db, user_id, plan_id, 0, True, now=NOW)

    def test_day_out_of_range(self, db, user_id):
        plan_id = _plan(db, user_id)
        with pytest.raises(InvalidDayError):
            update_day_progress(db, user_id, plan_id, 8, True, now=NOW)
        assert db.query(StudyStreak).filter(StudyStreak.user_id == user_id).count() == 0

    def test_someone_elses_plan(self, db, user_id):
        plan_id = _plan(db, user_id)
        with pytest.raises(PlanNotFoundError):
            update_day_progress(db, "intruder-" + user_id, plan_id, 1, True, now=NOW)
        assert _day(db, plan_id, 1).completed is False

    def test_deleted_plan(self, db, user_id):
        plan_id = _plan(db, user_id)
        delete_plan(db, user_id, plan_id, now=NOW)
        with pytest.raises(PlanNotFoundError):
            update_day_progress(db, user_id, plan_id, 1, True, now=NOW)


class TestAchievementCapability:
    def test_not_stored_without_capability(self, db, user_id):
        streak = get_or_create_streak(db, user_id)
        streak.current_streak = 6
        streak.longest_streak = 6
        streak.last_completed_at = NOW - timedelta(days=1)
        db.commit()

        plan_id = _plan(db, user_id)
        result = update_day_progress(
            db, user_id, plan_id, 1, True, capabilities=NO_TRACKING, now=NOW,
        )
        assert [a.id for a in result.new_achievements] == ["week_of_devotion"]
        assert result.current_streak == 7
        assert _streak(db, user_id).unlocked_achievements is None

    def test_unlocks_are_appended(self, db, user_id):
        streak = get_or_create_streak(db, user_id)
        streak.set_unlocked_ids(["first_journey"])
        streak.current_streak = 6
        streak.longest_streak = 6
        streak.last_completed_at = NOW - timedelta(days=1)
        db.commit()

        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        assert _streak(db, user_id).unlocked_ids() == ["first_journey", "week_of_devotion"]


@pytest.fixture()
def store_without_achievements(monkeypatch):
    """A store at the first migration: study_streaks has no unlocked_achievements."""
    monkeypatch.setattr(settings, "ACHIEVEMENT_TRACKING", None)
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        conn.execute(text("ALTER TABLE study_streaks DROP COLUMN unlocked_achievements"))
    session = Session(bind=engine)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


class TestStoreWithoutAchievementColumn:
    def test_new_user_first_completion(self, store_without_achievements, user_id):
        db = store_without_achievements
        caps = detect_capabilities(db.get_bind())
        assert caps.achievement_tracking is False

        plan_id = _plan(db, user_id)
        result = update_day_progress(db, user_id, plan_id, 1, True, capabilities=caps, now=NOW)
        assert result.current_streak == 1
        assert _streak(db, user_id).total_days_studied == 1
        assert _day(db, plan_id, 1).completed is True

    def test_unlocks_are_returned_not_stored(self, store_without_achievements, user_id):
        db = store_without_achievements
        caps = detect_capabilities(db.get_bind())
        plan_id = _plan(db, user_id)
        for n in range(1, 8):
            result = update_day_progress(
                db, user_id, plan_id, n, True,
                capabilities=caps, now=NOW + timedelta(days=n - 1),
            )
        assert result.plan_completed is True
        assert {a.id for a in result.new_achievements} == {"week_of_devotion", "first_journey"}
        assert _streak(db, user_id).total_7day_completed == 1

    def test_streak_summary_for_new_user(self, store_without_achievements, user_id):
        db = store_without_achievements
        caps = detect_capabilities(db.get_bind())
        summary = get_streak_summary(db, user_id, caps)
        assert summary.achievement_tracking is False
        assert summary.unlocked == []
        assert summary.snapshot.current_streak == 0


class TestCommitFailure:
    def test_rolls_back_day_and_streak(self, db, user_id, monkeypatch):
        plan_id = _plan(db, user_id)
        update_day_progress(
            db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW - timedelta(days=1),
        )

        def failing_commit():
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(SQLAlchemyError):
            update_day_progress(
                db, user_id, plan_id, 2, True, engagement=ALL_FLAGS,
                capabilities=TRACKING, now=NOW,
            )
        monkeypatch.undo()

        day = _day(db, plan_id, 2)
        assert day.completed is False
        assert day.completed_at is None
        assert day.verse_saved is False
        streak = _streak(db, user_id)
        assert streak.current_streak == 1
        assert streak.total_days_studied == 1
        assert streak.total_verses_from_plans == 0
        assert (user_id, plan_id) not in progress._plan_locks

    def test_new_user_gets_no_streak_row(self, db, user_id, monkeypatch):
        plan_id = _plan(db, user_id)

        def failing_commit():
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(SQLAlchemyError):
            update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        monkeypatch.undo()

        db.expire_all()
        assert db.query(StudyStreak).filter(StudyStreak.user_id == user_id).count() == 0
        assert _day(db, plan_id, 1).completed is False


class TestConcurrentWriters:
    def test_stale_streak_version_rolls_back(self, db, user_id):
        plan_id = _plan(db, user_id)
        get_or_create_streak(db, user_id)
        db.commit()

        # A second worker reads the streak before the first one writes it
        other = Session(bind=db.get_bind())
        try:
            other_streak = get_or_create_streak(other, user_id)  # noqa: F841 keep it in the session
            update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
            with pytest.raises(StaleDataError):
                update_day_progress(
                    other, user_id, plan_id, 2, True, capabilities=TRACKING, now=NOW,
                )
        finally:
            other.close()

        assert _day(db, plan_id, 2).completed is False
        streak = _streak(db, user_id)
        assert streak.total_days_studied == 1
        assert streak.version == 2

    def test_same_plan_requests_wait(self):
        key = ("lock-user", 1)
        entered = threading.Event()
        release = threading.Event()
        order: list[str] = []

        def first():
            with progress._plan_lock(*key):
                entered.set()
                release.wait(5)
                order.append("first")

        def second():
            with progress._plan_lock(*key):
                order.append("second")

        t1 = threading.Thread(target=first)
        t1.start()
        assert entered.wait(5)
        t2 = threading.Thread(target=second)
        t2.start()
        t2.join(0.2)
        assert t2.is_alive()
        assert progress._plan_locks[key][1] == 2

        release.set()
        t1.join(5)
        t2.join(5)
        assert order == ["first", "second"]
        assert key not in progress._plan_locks

    def test_other_plans_do_not_wait(self):
        done = threading.Event()

        def other_plan():
            with progress._plan_lock("lock-user", 2):
                done.set()

        with progress._plan_lock("lock-user", 1):
            t = threading.Thread(target=other_plan)
            t.start()
            t.join(5)
            assert done.is_set()
        assert ("lock-user", 1) not in progress._plan_locks
        assert ("lock-user", 2) not in progress._plan_locks

    def test_lock_entry_dropped_after_request(self, db, user_id):
        plan_id = _plan(db, user_id)
        update_day_progress(db, user_id, plan_id, 1, True, capabilities=TRACKING, now=NOW)
        assert (user_id, plan_id) not in progress._plan_locks
