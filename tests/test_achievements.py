"""
Tests for the Achievement Evaluator.

Covered:
  - catalog shape (20 entries, unique ids, four categories)
  - crossing rule: new iff not unlocked, met now, not met before
  - persistent-true predicates never re-fire
  - several achievements may fire from one event
  - next-achievements ordering, limit and tolerance of missing metrics
  - tier helpers
"""
from dataclasses import dataclass

from studytrack.services.achievements import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    AchievementCategory,
    Tier,
    check_new_achievements,
    get_next_achievements,
    get_tier_color,
    get_tier_name,
    get_unlocked_achievements,
    progress_for,
    requirement_met,
    unlocked_catalog_entries,
)
from studytrack.services.streak_engine import StreakSnapshot


def _ids(achievements) -> list[str]:
    return [a.id for a in achievements]


class TestCatalog:
    def test_twenty_unique_entries(self):
        assert len(ACHIEVEMENTS) == 20
        assert len(ACHIEVEMENTS_BY_ID) == 20

    def test_every_category_is_used(self):
        assert {a.category for a in ACHIEVEMENTS} == set(AchievementCategory)

    def test_week_of_devotion(self):
        a = ACHIEVEMENTS_BY_ID["week_of_devotion"]
        assert a.metric == "current_streak"
        assert a.threshold == 7
        assert a.tier == Tier.bronze


class TestCheckNewAchievements:
    def test_crossing_unlocks(self):
        prev = StreakSnapshot(current_streak=6, longest_streak=6)
        new = StreakSnapshot(current_streak=7, longest_streak=7)
        assert _ids(check_new_achievements(prev, new, [])) == ["week_of_devotion"]

    def test_already_unlocked_is_skipped(self):
        prev = StreakSnapshot(current_streak=6)
        new = StreakSnapshot(current_streak=7)
        assert check_new_achievements(prev, new, ["week_of_devotion"]) == []

    def test_met_in_both_snapshots_does_not_fire(self):
        # unlocked list lost, but the predicate was already true before
        snap = StreakSnapshot(current_streak=9, longest_streak=12)
        assert check_new_achievements(snap, snap, []) == []

    def test_rerun_with_same_snapshots_is_idempotent(self):
        prev = StreakSnapshot(total_7day_completed=0)
        new = StreakSnapshot(total_7day_completed=1, total_plans_completed=1)
        first = check_new_achievements(prev, new, [])
        assert _ids(first) == ["first_journey"]
        assert check_new_achievements(new, new, _ids(first)) == []

    def test_multiple_fire_from_one_event(self):
        prev = StreakSnapshot(current_streak=9, longest_streak=9, total_days_studied=49)
        new = StreakSnapshot(current_streak=10, longest_streak=10, total_days_studied=50)
        assert set(_ids(check_new_achievements(prev, new, []))) == {
            "longest_streak_10", "fifty_days_strong",
        }

    def test_dropping_below_threshold_never_fires(self):
        prev = StreakSnapshot(current_streak=7)
        new = StreakSnapshot(current_streak=6)
        assert check_new_achievements(prev, new, []) == []


class TestRequirementMet:
    def test_missing_metric_is_not_met(self):
        @dataclass
        class Partial:
            current_streak: int = 500

        assert requirement_met(ACHIEVEMENTS_BY_ID["unwavering_dedication"], Partial())
        assert not requirement_met(ACHIEVEMENTS_BY_ID["master_student"], Partial())

    def test_get_unlocked_achievements(self):
        snap = StreakSnapshot(total_21day_completed=1, total_plans_completed=1)
        assert _ids(get_unlocked_achievements(snap)) == ["deep_diver"]


class TestNextAchievements:
    def test_sorted_by_ratio_descending(self):
        snap = StreakSnapshot(current_streak=6, longest_streak=6, total_days_studied=6)
        nxt = get_next_achievements(snap, limit=3)
        assert len(nxt) == 3
        # 6/7 is the closest goal
        assert nxt[0].achievement.id == "week_of_devotion"
        assert nxt[0].progress == 6
        assert nxt[0].total == 7
        ratios = [p.percent_progress for p in nxt]
        assert ratios == sorted(ratios, reverse=True)

    def test_excludes_met(self):
        snap = StreakSnapshot(current_streak=7, longest_streak=7)
        nxt = get_next_achievements(snap, limit=20)
        assert "week_of_devotion" not in _ids(p.achievement for p in nxt)

    def test_limit(self):
        assert get_next_achievements(StreakSnapshot(), limit=0) == []
        assert len(get_next_achievements(StreakSnapshot(), limit=5)) == 5

    def test_tolerates_underivable_metric(self):
        class Empty:
            pass

        nxt = get_next_achievements(Empty(), limit=20)
        assert len(nxt) == 20
        assert all(p.progress == 0 and p.total == 0 for p in nxt)
        assert progress_for(ACHIEVEMENTS[0], Empty()) == (0, 0)


class TestTierHelpers:
    def test_colors(self):
        assert get_tier_color(Tier.gold) == "#ffd700"
        assert get_tier_color("bronze") == "#cd7f32"
        assert get_tier_color("mythic") == "#888"

    def test_names(self):
        assert get_tier_name(Tier.platinum) == "Platinum"
        assert get_tier_name("silver") == "Silver"

    def test_unlocked_catalog_entries_drops_unknown_ids(self):
        entries = unlocked_catalog_entries(["deep_diver", "retired_badge"])
        assert _ids(entries) == ["deep_diver"]
