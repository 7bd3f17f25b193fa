"""
Tests for the study plan lifecycle service.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from studytrack.core.errors import ActivePlanExistsError, InvalidPayloadError, PlanNotFoundError
from studytrack.db.capabilities import StoreCapabilities
from studytrack.models import PlanStatus
from studytrack.services.plans import (
    DaySpec,
    delete_plan,
    get_current_plan,
    get_plan,
    start_plan,
)
from studytrack.services.progress import update_day_progress

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestStartPlan:
    def test_creates_dense_days(self, db, user_id):
        detail = start_plan(db, user_id, title="Psalms", duration=7)
        assert detail.plan.status == PlanStatus.active
        assert detail.plan.source == "custom"
        assert [d.day_number for d in detail.days] == list(range(1, 8))
        assert detail.days[0].title == "Day 1"
        assert detail.progress.completed_days == 0
        assert detail.progress.engagement_score == 0

    def test_custom_days(self, db, user_id):
        days = [DaySpec(title=f"Psalm {n}", verse_reference=f"Ps {n}") for n in range(1, 8)]
        detail = start_plan(db, user_id, title="Psalms", duration=7, source="ai", days=days)
        assert detail.days[6].title == "Psalm 7"
        assert detail.days[6].verse_reference == "Ps 7"
        assert detail.plan.source == "ai"

    @pytest.mark.parametrize("duration", [0, 3, 14, 30])
    def test_rejects_other_durations(self, db, user_id, duration):
        with pytest.raises(InvalidPayloadError):
            start_plan(db, user_id, title="x", duration=duration)

    def test_rejects_wrong_day_count(self, db, user_id):
        with pytest.raises(InvalidPayloadError) as exc:
            start_plan(db, user_id, title="x", duration=7, days=[DaySpec()] * 6)
        assert exc.value.details == {"duration": 7, "received": 6}

    def test_one_active_plan_per_user(self, db, user_id):
        first = start_plan(db, user_id, title="A", duration=7)
        with pytest.raises(ActivePlanExistsError) as exc:
            start_plan(db, user_id, title="B", duration=21)
        assert exc.value.details["active_plan_id"] == first.plan.id

    def test_new_plan_allowed_after_delete(self, db, user_id):
        first = start_plan(db, user_id, title="A", duration=7)
        delete_plan(db, user_id, first.plan.id)
        second = start_plan(db, user_id, title="B", duration=21)
        assert second.plan.id != first.plan.id
        assert len(second.days) == 21


class TestReadPlans:
    def test_get_plan_is_owner_only(self, db, user_id):
        detail = start_plan(db, user_id, title="A", duration=7)
        assert get_plan(db, user_id, detail.plan.id).plan.title == "A"
        with pytest.raises(PlanNotFoundError):
            get_plan(db, "someone-else", detail.plan.id)

    def test_deleted_plan_is_invisible(self, db, user_id):
        detail = start_plan(db, user_id, title="A", duration=7)
        deleted = delete_plan(db, user_id, detail.plan.id)
        assert deleted.deleted_at is not None
        with pytest.raises(PlanNotFoundError):
            get_plan(db, user_id, detail.plan.id)
        with pytest.raises(PlanNotFoundError):
            delete_plan(db, user_id, detail.plan.id)

    def test_current_plan_for_new_user(self, db, user_id):
        current = get_current_plan(db, user_id)
        assert current.plan is None
        assert current.stats.current_streak == 0
        assert current.stats.total_plans_completed == 0

    def test_current_plan_prefers_active(self, db, user_id):
        detail = start_plan(db, user_id, title="A", duration=7)
        assert get_current_plan(db, user_id).plan.plan.id == detail.plan.id

    def test_current_plan_falls_back_to_latest_completed(self, db, user_id):
        detail = start_plan(db, user_id, title="Done", duration=7)
        caps = StoreCapabilities(achievement_tracking=True)
        for n in range(1, 8):
            update_day_progress(db, user_id, detail.plan.id, n, True,
                                capabilities=caps, now=NOW + timedelta(days=n - 1))
        current = get_current_plan(db, user_id)
        assert current.plan.plan.id == detail.plan.id
        assert current.plan.plan.status == PlanStatus.completed
        assert current.stats.total_plans_completed == 1
        assert current.stats.current_streak == 7
