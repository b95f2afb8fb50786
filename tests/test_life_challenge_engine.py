"""Tests for LifeChallengeEngine - predicates, status and reward planning.

Uses a fixed "today" of 2026-03-15 carried in the snapshot; the engine never
reads the clock.
"""

from __future__ import annotations

from datetime import date, timedelta
import logging
from typing import Any

import pytest

from custom_components.habitrush import const
from custom_components.habitrush.engines.life_challenge_engine import (
    ONCE_CHALLENGE_IDS,
    LifeChallengeEngine,
)
from tests.helpers import make_completion, make_habit, make_streak

TODAY = date(2026, 3, 15)


def build_snapshot(**overrides: Any) -> dict[str, Any]:
    """HistorySnapshot with no history and 3 of 5 lives."""
    snapshot: dict[str, Any] = {
        "today": TODAY.isoformat(),
        "timezone": "UTC",
        "lives": 3,
        "max_lives": 5,
        "habits": [],
        "completions": [],
        "redemption_counts": {},
    }
    snapshot.update(overrides)
    return snapshot


def definition(life_challenge_id: str) -> dict[str, Any]:
    for item in const.LIFE_CHALLENGE_DEFINITIONS:
        if item[const.DATA_LIFE_CHALLENGE_ID] == life_challenge_id:
            return item
    raise KeyError(life_challenge_id)


def week_snapshot(offsets: range | list[int], **overrides: Any) -> dict[str, Any]:
    """One active habit with completed records on the given day offsets."""
    return build_snapshot(
        habits=[make_habit("habit-1")],
        completions=make_streak("habit-1", TODAY, offsets),
        **overrides,
    )


# ============================================================================
# Streak predicates
# ============================================================================


class TestStreakPredicates:
    """Tests for week, month and three-habit streak predicates."""

    def test_seven_days_before_today(self) -> None:
        snapshot = week_snapshot(range(1, 8))
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES, snapshot
        )

    def test_gap_breaks_the_run(self) -> None:
        snapshot = week_snapshot([1, 2, 3, 5, 6, 7, 8])
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES, snapshot
        )

    def test_today_counts_when_completed(self) -> None:
        snapshot = week_snapshot(range(0, 7))
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES, snapshot
        )

    def test_incomplete_records_do_not_count(self) -> None:
        completions = make_streak("habit-1", TODAY, range(1, 8))
        completions[3]["completed"] = False
        snapshot = build_snapshot(habits=[make_habit("habit-1")], completions=completions)
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES, snapshot
        )

    def test_paused_habit_is_ignored(self) -> None:
        snapshot = build_snapshot(
            habits=[make_habit("habit-1", active_by_user=False)],
            completions=make_streak("habit-1", TODAY, range(1, 8)),
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES, snapshot
        )

    def test_month_needs_thirty_days(self) -> None:
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_MONTH_WITHOUT_LOSING_LIVES, week_snapshot(range(1, 31))
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_MONTH_WITHOUT_LOSING_LIVES, week_snapshot(range(1, 30))
        )

    def test_three_habits_each_need_their_own_week(self) -> None:
        habits = [make_habit(f"habit-{n}") for n in range(1, 4)]
        completions = [
            record
            for n in range(1, 4)
            for record in make_streak(f"habit-{n}", TODAY, range(1, 8))
        ]
        snapshot = build_snapshot(habits=habits, completions=completions)
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_THREE_HABITS_WEEK, snapshot
        )

        snapshot["completions"] = completions[:-1]
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_THREE_HABITS_WEEK, snapshot
        )

    def test_count_streak_days_window(self) -> None:
        days = {TODAY - timedelta(days=n) for n in range(1, 40)}
        assert LifeChallengeEngine.count_streak_days(days, TODAY, 7) == 7
        assert LifeChallengeEngine.count_streak_days(set(), TODAY, 7) == 0


# ============================================================================
# Time-of-day predicates
# ============================================================================


class TestTimeOfDayPredicates:
    """Tests for last-hour and early-bird predicates."""

    def test_last_hour_save(self) -> None:
        snapshot = build_snapshot(
            completions=[
                make_completion("habit-1", TODAY, completed_at="2026-03-15T23:30:00Z")
            ]
        )
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_LAST_HOUR_SAVE, snapshot
        )

    def test_before_last_hour(self) -> None:
        snapshot = build_snapshot(
            completions=[
                make_completion("habit-1", TODAY, completed_at="2026-03-15T22:59:00Z")
            ]
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_LAST_HOUR_SAVE, snapshot
        )

    def test_last_hour_uses_local_timezone(self) -> None:
        """03:30 UTC on the 16th is 23:30 on the 15th in New York (EDT)."""
        snapshot = build_snapshot(
            timezone="America/New_York",
            completions=[
                make_completion("habit-1", TODAY, completed_at="2026-03-16T03:30:00Z")
            ],
        )
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_LAST_HOUR_SAVE, snapshot
        )

    def test_last_hour_needs_record_for_today(self) -> None:
        yesterday = TODAY - timedelta(days=1)
        snapshot = build_snapshot(
            completions=[
                make_completion(
                    "habit-1", yesterday, completed_at="2026-03-14T23:30:00Z"
                )
            ]
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_LAST_HOUR_SAVE, snapshot
        )

    def test_early_bird(self) -> None:
        snapshot = build_snapshot(
            completions=[
                make_completion("habit-1", TODAY, completed_at="2026-03-10T00:40:00Z")
            ]
        )
        assert LifeChallengeEngine.evaluate_predicate(const.VERIFY_EARLY_BIRD, snapshot)

    def test_one_am_is_too_late(self) -> None:
        snapshot = build_snapshot(
            completions=[
                make_completion("habit-1", TODAY, completed_at="2026-03-10T01:00:00Z")
            ]
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_EARLY_BIRD, snapshot
        )


# ============================================================================
# Aggregate predicates
# ============================================================================


class TestAggregatePredicates:
    """Tests for target date, once-count, lives, hours and notes predicates."""

    def test_target_date_reached_with_live_streak(self) -> None:
        habit = make_habit(
            start_date="2025-11-01", target_date="2026-03-01", current_streak=12
        )
        snapshot = build_snapshot(habits=[habit])
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_TARGET_DATE_REACHED, snapshot
        )

    def test_target_date_needs_live_streak(self) -> None:
        habit = make_habit(
            start_date="2025-11-01", target_date="2026-03-01", current_streak=0
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_TARGET_DATE_REACHED, build_snapshot(habits=[habit])
        )

    def test_target_date_too_short_or_not_reached(self) -> None:
        short = make_habit(
            start_date="2026-01-01", target_date="2026-03-01", current_streak=5
        )
        future = make_habit(
            "habit-2", start_date="2025-12-01", target_date="2026-06-01", current_streak=5
        )
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_TARGET_DATE_REACHED, build_snapshot(habits=[short, future])
        )

    def test_five_once_challenges(self) -> None:
        once_ids = sorted(ONCE_CHALLENGE_IDS)
        counts = {challenge_id: 1 for challenge_id in once_ids[:5]}
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_FIVE_ONCE_CHALLENGES, build_snapshot(redemption_counts=counts)
        )

        counts = {challenge_id: 1 for challenge_id in once_ids[:4]}
        counts[const.LIFE_CHALLENGE_TWO_MONTHS_ALIVE] = 3
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_FIVE_ONCE_CHALLENGES, build_snapshot(redemption_counts=counts)
        )

    @pytest.mark.parametrize(("lives", "expected"), [(1, True), (0, False)])
    def test_two_months_alive(self, lives: int, expected: bool) -> None:
        assert (
            LifeChallengeEngine.evaluate_predicate(
                const.VERIFY_TWO_MONTHS_ALIVE, build_snapshot(lives=lives)
            )
            is expected
        )

    def test_1000_hours_on_one_habit(self) -> None:
        completions = [
            make_completion(
                "habit-1",
                TODAY - timedelta(days=n),
                progress_type=const.PROGRESS_TYPE_TIME,
                progress_value=600,
            )
            for n in range(100)
        ]
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_1000_HOURS, build_snapshot(completions=completions)
        )

    def test_1000_hours_not_summed_across_habits(self) -> None:
        completions = [
            make_completion(
                f"habit-{n % 2}",
                TODAY - timedelta(days=n),
                progress_type=const.PROGRESS_TYPE_TIME,
                progress_value=600,
            )
            for n in range(100)
        ]
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_1000_HOURS, build_snapshot(completions=completions)
        )

    def test_200_notes(self) -> None:
        completions = [
            make_completion("habit-1", TODAY - timedelta(days=n), notes="felt good")
            for n in range(200)
        ]
        assert LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_200_NOTES, build_snapshot(completions=completions)
        )

        completions[0]["notes"] = "   "
        assert not LifeChallengeEngine.evaluate_predicate(
            const.VERIFY_200_NOTES, build_snapshot(completions=completions)
        )

    def test_unknown_predicate_is_not_satisfied(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert not LifeChallengeEngine.evaluate_predicate(
                "verifySomethingNew", build_snapshot()
            )
        assert "verifySomethingNew" in caplog.text


# ============================================================================
# Status and redeemable flag
# ============================================================================


class TestEvaluate:
    """Tests for status derivation."""

    def test_satisfied_is_obtained_and_redeemable(self) -> None:
        result = LifeChallengeEngine.evaluate(
            definition(const.LIFE_CHALLENGE_WEEK_NO_LIVES), week_snapshot(range(1, 8))
        )
        assert result["status"] == const.LIFE_CHALLENGE_STATUS_OBTAINED
        assert result["redeemable"] is True
        assert result["reward"] == 1

    def test_unsatisfied_is_pending(self) -> None:
        result = LifeChallengeEngine.evaluate(
            definition(const.LIFE_CHALLENGE_WEEK_NO_LIVES), build_snapshot()
        )
        assert result["status"] == const.LIFE_CHALLENGE_STATUS_PENDING
        assert result["redeemable"] is False

    def test_once_redeemed_is_never_redeemable_again(self) -> None:
        snapshot = week_snapshot(
            range(1, 8), redemption_counts={const.LIFE_CHALLENGE_WEEK_NO_LIVES: 1}
        )
        result = LifeChallengeEngine.evaluate(
            definition(const.LIFE_CHALLENGE_WEEK_NO_LIVES), snapshot
        )
        assert result["status"] == const.LIFE_CHALLENGE_STATUS_REDEEMED
        assert result["redeemable"] is False

    def test_unlimited_stays_redeemable_after_redemption(self) -> None:
        snapshot = build_snapshot(
            redemption_counts={const.LIFE_CHALLENGE_TWO_MONTHS_ALIVE: 4}
        )
        result = LifeChallengeEngine.evaluate(
            definition(const.LIFE_CHALLENGE_TWO_MONTHS_ALIVE), snapshot
        )
        assert result["status"] == const.LIFE_CHALLENGE_STATUS_OBTAINED
        assert result["redeemable"] is True

    def test_unlimited_redeemed_and_no_longer_satisfied(self) -> None:
        snapshot = build_snapshot(
            lives=0, redemption_counts={const.LIFE_CHALLENGE_TWO_MONTHS_ALIVE: 1}
        )
        result = LifeChallengeEngine.evaluate(
            definition(const.LIFE_CHALLENGE_TWO_MONTHS_ALIVE), snapshot
        )
        assert result["status"] == const.LIFE_CHALLENGE_STATUS_REDEEMED
        assert result["redeemable"] is False

    def test_evaluate_all_covers_every_definition(self) -> None:
        results = LifeChallengeEngine.evaluate_all(
            const.LIFE_CHALLENGE_DEFINITIONS, build_snapshot()
        )
        assert len(results) == len(const.LIFE_CHALLENGE_DEFINITIONS)
        assert {r["life_challenge_id"] for r in results} == {
            d[const.DATA_LIFE_CHALLENGE_ID] for d in const.LIFE_CHALLENGE_DEFINITIONS
        }


# ============================================================================
# Reward planning
# ============================================================================


class TestPlanReward:
    """Tests for capping rewards by empty life slots."""

    def test_full_reward_fits(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 2, const.REDEEMABLE_UNLIMITED, 1, 5)
        assert (plan.granted, plan.shortfall, plan.outcome) == (2, 0, "full")
        assert not plan.requires_confirmation

    def test_partial_reward_is_capped(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 2, const.REDEEMABLE_UNLIMITED, 4, 5)
        assert (plan.granted, plan.shortfall, plan.outcome) == (1, 1, "partial")
        assert plan.available_slots == 1
        assert plan.requires_confirmation

    def test_no_empty_slots(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 2, const.REDEEMABLE_UNLIMITED, 5, 5)
        assert (plan.granted, plan.shortfall, plan.outcome) == (0, 2, "none")

    def test_over_capacity_counts_as_no_slots(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 3, const.REDEEMABLE_UNLIMITED, 7, 5)
        assert plan.available_slots == 0
        assert plan.outcome == const.REWARD_OUTCOME_NONE

    def test_once_is_planned_at_nominal(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 1, const.REDEEMABLE_ONCE, 5, 5)
        assert (plan.granted, plan.outcome) == (1, "full")

    def test_as_dict(self) -> None:
        plan = LifeChallengeEngine.plan_reward("c", 2, const.REDEEMABLE_UNLIMITED, 4, 5)
        assert plan.as_dict() == {
            "life_challenge_id": "c",
            "nominal": 2,
            "granted": 1,
            "shortfall": 1,
            "available_slots": 1,
            "outcome": "partial",
        }
