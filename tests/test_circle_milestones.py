"""
Tests for the Circle Milestone Evaluator.
"""
from dataclasses import replace

from studytrack.services.circle_milestones import (
    MILESTONES,
    CircleStats,
    MilestoneCategory,
    check_condition,
    check_milestones,
    get_multi_milestone_celebration,
    get_new_milestones,
    get_next_milestone,
)

_BY_ID = {m.id: m for m in MILESTONES}


class TestCatalog:
    def test_fourteen_unique_entries(self):
        assert len(MILESTONES) == 14
        assert len(_BY_ID) == 14

    def test_consistent_circle_is_a_study_milestone(self):
        assert _BY_ID["consistent_circle"].category == MilestoneCategory.study
        assert _BY_ID["consistent_circle"].metric == "active_days"


class TestNewMilestones:
    def test_century_club_crossing(self):
        prev = CircleStats(total_days_completed=99, total_reflections=3, completed_studies=1)
        curr = replace(prev, total_days_completed=100)
        new = get_new_milestones(prev, curr)
        assert [m.id for m in new] == ["century_club"]

    def test_nothing_new_when_unchanged(self):
        stats = CircleStats(total_days_completed=150, total_reflections=60)
        assert get_new_milestones(stats, stats) == []

    def test_from_zero_reports_everything_met(self):
        curr = CircleStats(completed_studies=1, total_reflections=1)
        ids = {m.id for m in get_new_milestones(CircleStats(), curr)}
        assert ids == {"first_study", "first_reflection"}

    def test_check_milestones(self):
        stats = CircleStats(longest_streak=7, total_verses=25)
        assert {m.id for m in check_milestones(stats)} == {"unified_week", "scripture_seekers"}
        assert check_condition(_BY_ID["unified_week"], stats)


class TestNextMilestone:
    def test_lowest_threshold_first(self):
        nxt = get_next_milestone(CircleStats())
        assert nxt is not None
        assert nxt.milestone.threshold == 1
        assert nxt.progress == 0

    def test_by_category_with_progress(self):
        nxt = get_next_milestone(CircleStats(total_prayers=20), MilestoneCategory.prayer)
        assert nxt.milestone.id == "prayer_warriors"
        assert nxt.progress == 40

    def test_category_as_string(self):
        nxt = get_next_milestone(CircleStats(total_verses=30), "scripture")
        assert nxt.milestone.id == "word_treasurers"
        assert nxt.progress == 30

    def test_none_when_category_done(self):
        stats = CircleStats(total_verses=100)
        assert get_next_milestone(stats, MilestoneCategory.scripture) is None


class TestCelebration:
    def test_empty(self):
        assert get_multi_milestone_celebration([]) == ""

    def test_single_uses_its_message(self):
        m = _BY_ID["century_club"]
        assert get_multi_milestone_celebration([m]) == m.celebration_message

    def test_several(self):
        msg = get_multi_milestone_celebration([_BY_ID["first_study"], _BY_ID["first_reflection"]])
        assert msg.startswith("Incredible! Your circle just achieved 2 milestones!")
        assert "First Study Together, First Shared Reflection" in msg


class TestCircleStatsDict:
    def test_round_trip_tolerates_junk(self):
        stats = CircleStats.from_dict({"total_prayers": 4, "member_count": "x", "extra": 1})
        assert stats.total_prayers == 4
        assert stats.member_count == 0
        assert CircleStats.from_dict(stats.to_dict()) == stats
