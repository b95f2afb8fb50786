"""Life Challenge Engine - Pure predicate evaluation for bonus life rewards.

This engine provides stateless, pure Python functions for:
- A registry mapping verification-function names to predicates
- Per-challenge status (pending / obtained / redeemed) and redeemable flag
- Reward planning: capping unlimited rewards by empty life slots

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static or class methods that operate on passed-in data.
The snapshot is built by LifeChallengeManager; redemption side effects
(API call, ledger persistence, refresh) belong to the manager.

PURITY CONTRACT:
- All data comes via the `snapshot` parameter
- No network, no storage access, no mutation of the snapshot
- "Today" and the local timezone are part of the snapshot, never read from the clock
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from .. import const
from ..utils.dt_utils import as_local, dt_parse, dt_parse_date

if TYPE_CHECKING:
    from ..type_defs import (
        CompletionData,
        HistorySnapshot,
        LifeChallengeDefinition,
        LifeChallengeEvaluation,
    )


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Predicate signature: (snapshot) -> satisfied
PredicateHandler = Callable[["HistorySnapshot"], bool]

ONCE_CHALLENGE_IDS: frozenset[str] = frozenset(
    str(definition[const.DATA_LIFE_CHALLENGE_ID])
    for definition in const.LIFE_CHALLENGE_DEFINITIONS
    if definition[const.DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE] == const.REDEEMABLE_ONCE
)


# =============================================================================
# REWARD PLAN
# =============================================================================


@dataclass(frozen=True)
class RewardPlan:
    """How many lives a redemption would actually grant.

    Attributes:
        life_challenge_id: Challenge being redeemed
        nominal: Reward stated by the challenge
        granted: Lives that fit in the empty slots (what will be granted)
        shortfall: nominal - granted
        available_slots: max_lives - current_lives, floored at zero
        outcome: full, partial or none
    """

    life_challenge_id: str
    nominal: int
    granted: int
    shortfall: int
    available_slots: int
    outcome: str

    @property
    def requires_confirmation(self) -> bool:
        """A partial grant must be confirmed by the caller before redeeming."""
        return self.outcome == const.REWARD_OUTCOME_PARTIAL

    def as_dict(self) -> dict[str, Any]:
        """Serializable form for service responses and events."""
        return asdict(self)


# =============================================================================
# LIFE CHALLENGE ENGINE
# =============================================================================


class LifeChallengeEngine:
    """Pure logic engine for life-challenge evaluation.

    Evaluation Flow:
        1. Manager builds a HistorySnapshot (habits, completions, lives,
           prior redemption counts, today, timezone)
        2. Engine looks up the predicate by verification-function name;
           unknown names evaluate to False
        3. Engine derives status and the redeemable flag
        4. Manager plans the reward, calls the server and records the redemption
    """

    # =========================================================================
    # PREDICATE REGISTRY
    # =========================================================================

    _PREDICATES: dict[str, PredicateHandler] = {}

    @classmethod
    def _register_predicates(cls) -> None:
        """Populate _PREDICATES once."""
        if cls._PREDICATES:
            return

        cls._PREDICATES = {
            const.VERIFY_WEEK_WITHOUT_LOSING_LIVES: cls._verify_week_without_losing_lives,
            const.VERIFY_MONTH_WITHOUT_LOSING_LIVES: (
                cls._verify_month_without_losing_lives
            ),
            const.VERIFY_LAST_HOUR_SAVE: cls._verify_last_hour_save,
            const.VERIFY_EARLY_BIRD: cls._verify_early_bird,
            const.VERIFY_THREE_HABITS_WEEK: cls._verify_three_habits_week,
            const.VERIFY_TARGET_DATE_REACHED: cls._verify_target_date_reached,
            const.VERIFY_FIVE_ONCE_CHALLENGES: cls._verify_five_once_challenges,
            const.VERIFY_TWO_MONTHS_ALIVE: cls._verify_two_months_alive,
            const.VERIFY_1000_HOURS: cls._verify_1000_hours,
            const.VERIFY_200_NOTES: cls._verify_200_notes,
        }

    @classmethod
    def get_predicate(cls, name: str | None) -> PredicateHandler | None:
        """Return the predicate registered under name, or None."""
        cls._register_predicates()
        if not name:
            return None
        return cls._PREDICATES.get(name)

    @classmethod
    def evaluate_predicate(cls, name: str | None, snapshot: HistorySnapshot) -> bool:
        """Run a predicate by name. Unknown names are not satisfiable.

        Args:
            name: Verification-function name from the challenge definition
            snapshot: Aggregate history

        Returns:
            True if the predicate is satisfied.
        """
        handler = cls.get_predicate(name)
        if handler is None:
            const.LOGGER.warning(
                "WARNING: Unknown life challenge verification function: %s", name
            )
            return False
        return handler(snapshot)

    # =========================================================================
    # EVALUATION
    # =========================================================================

    @classmethod
    def evaluate(
        cls,
        definition: LifeChallengeDefinition,
        snapshot: HistorySnapshot,
    ) -> LifeChallengeEvaluation:
        """Compute status and redeemable flag for one challenge.

        - A `once` challenge redeemed at least once is `redeemed` and never
          redeemable again, whatever the snapshot says.
        - Otherwise a satisfied predicate yields `obtained` and redeemable.
        - An unsatisfied `unlimited` challenge redeemed before reports
          `redeemed`; anything else is `pending`.
        """
        challenge_id = definition[const.DATA_LIFE_CHALLENGE_ID]  # type: ignore[literal-required]
        redeemable_type = definition[const.DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE]  # type: ignore[literal-required]
        times_redeemed = snapshot["redemption_counts"].get(challenge_id, 0)

        if redeemable_type == const.REDEEMABLE_ONCE and times_redeemed > 0:
            status = const.LIFE_CHALLENGE_STATUS_REDEEMED
            redeemable = False
        elif cls.evaluate_predicate(
            definition.get(const.DATA_LIFE_CHALLENGE_VERIFICATION),  # type: ignore[arg-type]
            snapshot,
        ):
            status = const.LIFE_CHALLENGE_STATUS_OBTAINED
            redeemable = True
        elif times_redeemed > 0:
            status = const.LIFE_CHALLENGE_STATUS_REDEEMED
            redeemable = False
        else:
            status = const.LIFE_CHALLENGE_STATUS_PENDING
            redeemable = False

        return {
            "life_challenge_id": challenge_id,
            "title": definition.get(const.DATA_LIFE_CHALLENGE_TITLE, ""),  # type: ignore[typeddict-item]
            "description": definition.get(const.DATA_LIFE_CHALLENGE_DESCRIPTION, ""),  # type: ignore[typeddict-item]
            "reward": int(definition.get(const.DATA_LIFE_CHALLENGE_REWARD, 0)),  # type: ignore[call-overload]
            "redeemable_type": redeemable_type,
            "icon": definition.get(const.DATA_LIFE_CHALLENGE_ICON, ""),  # type: ignore[typeddict-item]
            "status": status,  # type: ignore[typeddict-item]
            "redeemable": redeemable,
        }

    @classmethod
    def evaluate_all(
        cls,
        definitions: list[LifeChallengeDefinition],
        snapshot: HistorySnapshot,
    ) -> list[LifeChallengeEvaluation]:
        """Evaluate every definition against the same snapshot."""
        return [cls.evaluate(definition, snapshot) for definition in definitions]

    # =========================================================================
    # REWARD PLANNING
    # =========================================================================

    @staticmethod
    def plan_reward(
        life_challenge_id: str,
        reward: int,
        redeemable_type: str,
        current_lives: int,
        max_lives: int,
    ) -> RewardPlan:
        """Plan how many lives a redemption grants.

        Unlimited challenges are capped by the empty life slots. Once-only
        challenges are planned at their nominal reward; the server rejects them
        with INSUFFICIENT_LIFE_SLOTS when they do not fit.

        Args:
            life_challenge_id: Challenge being redeemed
            reward: Nominal reward
            redeemable_type: once or unlimited
            current_lives: Lives the user has now
            max_lives: Life capacity

        Returns:
            RewardPlan with granted, shortfall and outcome.
        """
        available_slots = max(0, max_lives - current_lives)

        if redeemable_type != const.REDEEMABLE_UNLIMITED:
            granted = reward
        else:
            granted = min(reward, available_slots)

        if granted <= 0:
            outcome = const.REWARD_OUTCOME_NONE
        elif granted < reward:
            outcome = const.REWARD_OUTCOME_PARTIAL
        else:
            outcome = const.REWARD_OUTCOME_FULL

        return RewardPlan(
            life_challenge_id=life_challenge_id,
            nominal=reward,
            granted=max(0, granted),
            shortfall=max(0, reward - granted),
            available_slots=available_slots,
            outcome=outcome,
        )

    # =========================================================================
    # SNAPSHOT HELPERS
    # =========================================================================

    @staticmethod
    def _today(snapshot: HistorySnapshot) -> date:
        today = dt_parse_date(snapshot["today"])
        if today is None:
            raise ValueError(f"Invalid snapshot date: {snapshot['today']}")
        return today

    @staticmethod
    def _timezone(snapshot: HistorySnapshot) -> ZoneInfo:
        return ZoneInfo(snapshot.get("timezone") or "UTC")

    @staticmethod
    def _active_habit_ids(snapshot: HistorySnapshot) -> list[str]:
        return [
            habit[const.DATA_HABIT_ID]  # type: ignore[literal-required]
            for habit in snapshot["habits"]
            if habit.get(const.DATA_HABIT_ACTIVE_BY_USER)
        ]

    @staticmethod
    def _completed_days_by_habit(snapshot: HistorySnapshot) -> dict[str, set[date]]:
        """Calendar dates with a completed record, per habit."""
        days: dict[str, set[date]] = {}
        for completion in snapshot["completions"]:
            if not completion.get(const.DATA_COMPLETION_COMPLETED):
                continue
            completion_date = dt_parse_date(completion.get(const.DATA_COMPLETION_DATE))
            if completion_date is None:
                continue
            habit_id = completion.get(const.DATA_COMPLETION_HABIT_ID)
            days.setdefault(habit_id, set()).add(completion_date)  # type: ignore[arg-type]
        return days

    @staticmethod
    def count_streak_days(completed_days: set[date], today: date, window: int) -> int:
        """Count consecutive completed days backwards, up to window days.

        Today counts when it already has a completed record. When it does not,
        the day is still open and the scan starts at yesterday instead. The scan
        stops at the first day with no completed record.

        Args:
            completed_days: Dates with a completed record for one habit
            today: Local date of evaluation
            window: Maximum number of days to scan

        Returns:
            Length of the run, 0..window.
        """
        start = today if today in completed_days else today - timedelta(days=1)
        streak = 0
        for offset in range(window):
            if start - timedelta(days=offset) in completed_days:
                streak += 1
            else:
                break
        return streak

    @classmethod
    def _habits_with_full_streak(cls, snapshot: HistorySnapshot, window: int) -> int:
        """Number of user-active habits with a full window-day run."""
        today = cls._today(snapshot)
        days_by_habit = cls._completed_days_by_habit(snapshot)
        return sum(
            1
            for habit_id in cls._active_habit_ids(snapshot)
            if cls.count_streak_days(days_by_habit.get(habit_id, set()), today, window)
            >= window
        )

    @staticmethod
    def _completion_local_time(
        completion: CompletionData, tz: ZoneInfo
    ) -> datetime | None:
        """Local wall-clock time a completion was recorded, if known."""
        stamp = completion.get(const.DATA_COMPLETION_COMPLETED_AT) or completion.get(
            const.DATA_COMPLETION_CREATED_AT
        )
        parsed = dt_parse(stamp)
        if parsed is None:
            return None
        return as_local(parsed, tz)

    # =========================================================================
    # PREDICATES
    # =========================================================================

    @classmethod
    def _verify_week_without_losing_lives(cls, snapshot: HistorySnapshot) -> bool:
        """Any active habit with 7 consecutive completed days."""
        return cls._habits_with_full_streak(snapshot, const.STREAK_WEEK_DAYS) >= 1

    @classmethod
    def _verify_month_without_losing_lives(cls, snapshot: HistorySnapshot) -> bool:
        """Any active habit with 30 consecutive completed days."""
        return cls._habits_with_full_streak(snapshot, const.STREAK_MONTH_DAYS) >= 1

    @classmethod
    def _verify_three_habits_week(cls, snapshot: HistorySnapshot) -> bool:
        """At least 3 active habits each with their own 7-day run."""
        return (
            cls._habits_with_full_streak(snapshot, const.STREAK_WEEK_DAYS)
            >= const.THREE_HABITS_REQUIRED
        )

    @classmethod
    def _verify_last_hour_save(cls, snapshot: HistorySnapshot) -> bool:
        """A completed record for today logged during the last hour of today."""
        today = cls._today(snapshot)
        tz = cls._timezone(snapshot)
        for completion in snapshot["completions"]:
            if not completion.get(const.DATA_COMPLETION_COMPLETED):
                continue
            if dt_parse_date(completion.get(const.DATA_COMPLETION_DATE)) != today:
                continue
            logged_at = cls._completion_local_time(completion, tz)
            if (
                logged_at is not None
                and logged_at.date() == today
                and logged_at.hour >= const.LAST_HOUR_START
            ):
                return True
        return False

    @classmethod
    def _verify_early_bird(cls, snapshot: HistorySnapshot) -> bool:
        """Any completed record logged between midnight and 1 AM local time."""
        tz = cls._timezone(snapshot)
        for completion in snapshot["completions"]:
            if not completion.get(const.DATA_COMPLETION_COMPLETED):
                continue
            logged_at = cls._completion_local_time(completion, tz)
            if logged_at is not None and logged_at.hour < const.EARLY_BIRD_END_HOUR:
                return True
        return False

    @classmethod
    def _verify_target_date_reached(cls, snapshot: HistorySnapshot) -> bool:
        """A long-term habit (target >= ~4 months after start) that reached its
        target date with its streak still alive."""
        today = cls._today(snapshot)
        min_days = const.TARGET_DATE_MIN_MONTHS * const.DAYS_PER_MONTH_APPROX
        for habit in snapshot["habits"]:
            if not habit.get(const.DATA_HABIT_ACTIVE_BY_USER):
                continue
            target = dt_parse_date(habit.get(const.DATA_HABIT_TARGET_DATE))
            start = dt_parse_date(habit.get(const.DATA_HABIT_START_DATE))
            if target is None or start is None:
                continue
            if (target - start).days < min_days:
                continue
            if today >= target and (habit.get(const.DATA_HABIT_CURRENT_STREAK) or 0) > 0:
                return True
        return False

    @staticmethod
    def _verify_five_once_challenges(snapshot: HistorySnapshot) -> bool:
        """At least 5 distinct once-only challenges already redeemed."""
        redeemed = sum(
            1
            for challenge_id, count in snapshot["redemption_counts"].items()
            if challenge_id in ONCE_CHALLENGE_IDS and count > 0
        )
        return redeemed >= const.ONCE_CHALLENGES_THRESHOLD

    @staticmethod
    def _verify_two_months_alive(snapshot: HistorySnapshot) -> bool:
        """Still has lives left."""
        return snapshot["lives"] > 0

    @staticmethod
    def _verify_1000_hours(snapshot: HistorySnapshot) -> bool:
        """One habit with 1000 hours of time-typed progress on completed records."""
        minutes_by_habit: dict[str, float] = {}
        for completion in snapshot["completions"]:
            if not completion.get(const.DATA_COMPLETION_COMPLETED):
                continue
            if (
                completion.get(const.DATA_COMPLETION_PROGRESS_TYPE)
                != const.PROGRESS_TYPE_TIME
            ):
                continue
            habit_id = completion.get(const.DATA_COMPLETION_HABIT_ID)
            minutes_by_habit[habit_id] = minutes_by_habit.get(habit_id, 0.0) + float(  # type: ignore[index]
                completion.get(const.DATA_COMPLETION_PROGRESS_VALUE) or 0
            )
        return any(
            minutes / 60 >= const.HOURS_THRESHOLD for minutes in minutes_by_habit.values()
        )

    @staticmethod
    def _verify_200_notes(snapshot: HistorySnapshot) -> bool:
        """200 completions carrying a non-blank note."""
        notes = sum(
            1
            for completion in snapshot["completions"]
            if (completion.get(const.DATA_COMPLETION_NOTES) or "").strip()
        )
        return notes >= const.NOTES_THRESHOLD
