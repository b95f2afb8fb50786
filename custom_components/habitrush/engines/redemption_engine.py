"""Redemption Engine - Pure logic for the pending-redemption lifecycle.

This engine provides stateless, pure Python functions for:
- Status transition validation (monotonic lifecycle graph)
- Local countdown ticks floored at zero
- Reconciling a fresh server list with the locally-known list
- Derived views (actionable, urgent, challenge-assigned, most urgent)

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data and return new
objects; input lists and dicts are never mutated.
State management and timers belong in RedemptionManager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.time_utils import is_urgent

if TYPE_CHECKING:
    from ..type_defs import ChallengeData, PendingRedemptionData


class InvalidTransitionError(ValueError):
    """Raised when a redemption status change would break the lifecycle graph."""

    def __init__(self, redemption_id: str, from_status: str, to_status: str) -> None:
        self.redemption_id = redemption_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Redemption {redemption_id}: transition {from_status} -> {to_status} "
            "is not allowed"
        )


class RedemptionEngine:
    """Pure logic engine for pending redemptions.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.
    """

    # Valid status transitions. Terminal statuses have no outgoing edges.
    VALID_TRANSITIONS: dict[str, list[str]] = {
        const.REDEMPTION_STATUS_PENDING: [
            const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED,
            const.REDEMPTION_STATUS_REDEEMED_LIFE,
            const.REDEMPTION_STATUS_EXPIRED,
        ],
        const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED: [
            const.REDEMPTION_STATUS_COMPLETED,
            const.REDEMPTION_STATUS_REDEEMED_LIFE,  # Fallback: accept the penalty
            const.REDEMPTION_STATUS_EXPIRED,
        ],
        const.REDEMPTION_STATUS_REDEEMED_LIFE: [],
        const.REDEMPTION_STATUS_COMPLETED: [],
        const.REDEMPTION_STATUS_EXPIRED: [],
    }

    ACTIONABLE_STATUSES: frozenset[str] = frozenset(
        {
            const.REDEMPTION_STATUS_PENDING,
            const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED,
        }
    )

    TERMINAL_STATUSES: frozenset[str] = frozenset(
        {
            const.REDEMPTION_STATUS_REDEEMED_LIFE,
            const.REDEMPTION_STATUS_COMPLETED,
            const.REDEMPTION_STATUS_EXPIRED,
        }
    )

    # =========================================================================
    # STATUS TRANSITIONS
    # =========================================================================

    @staticmethod
    def can_transition(from_status: str, to_status: str) -> bool:
        """Check whether a status change follows the lifecycle graph.

        Staying in the same status is always allowed (a refresh that reports no
        change is not a transition).

        Args:
            from_status: Current status
            to_status: Proposed status

        Returns:
            True if the change is allowed.
        """
        if from_status == to_status:
            return True
        return to_status in RedemptionEngine.VALID_TRANSITIONS.get(from_status, [])

    @staticmethod
    def is_terminal(status: str) -> bool:
        """Return True for redeemed_life, completed and expired."""
        return status in RedemptionEngine.TERMINAL_STATUSES

    @staticmethod
    def is_actionable(redemption: PendingRedemptionData) -> bool:
        """Return True when the redemption still needs a user decision."""
        return (
            redemption.get(const.DATA_REDEMPTION_STATUS)
            in RedemptionEngine.ACTIONABLE_STATUSES
        )

    @staticmethod
    def has_active(redemptions: list[PendingRedemptionData]) -> bool:
        """Return True when at least one redemption is non-terminal."""
        return any(RedemptionEngine.is_actionable(r) for r in redemptions)

    @staticmethod
    def mark_challenge_assigned(
        redemption: PendingRedemptionData, challenge: ChallengeData
    ) -> PendingRedemptionData:
        """Return a copy of the redemption moved to challenge_assigned.

        Args:
            redemption: Local redemption record
            challenge: The challenge confirmed by the server

        Returns:
            New redemption dict with status, challenge_id and assigned_challenge set.

        Raises:
            InvalidTransitionError: If the redemption is not in a status that
                can move to challenge_assigned.
        """
        current = redemption[const.DATA_REDEMPTION_STATUS]
        target = const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
        if current == target or not RedemptionEngine.can_transition(current, target):
            raise InvalidTransitionError(
                redemption[const.DATA_REDEMPTION_ID], current, target
            )

        updated: dict[str, Any] = dict(redemption)
        updated[const.DATA_REDEMPTION_STATUS] = target
        updated[const.DATA_REDEMPTION_CHALLENGE_ID] = challenge[const.DATA_CHALLENGE_ID]
        updated[const.DATA_REDEMPTION_ASSIGNED_CHALLENGE] = dict(challenge)
        return updated  # type: ignore[return-value]

    @staticmethod
    def mark_life_redeemed(redemption: PendingRedemptionData) -> PendingRedemptionData:
        """Return a copy of the redemption moved to redeemed_life.

        Raises:
            InvalidTransitionError: If the redemption is already resolved.
        """
        current = redemption[const.DATA_REDEMPTION_STATUS]
        target = const.REDEMPTION_STATUS_REDEEMED_LIFE
        if current == target or not RedemptionEngine.can_transition(current, target):
            raise InvalidTransitionError(
                redemption[const.DATA_REDEMPTION_ID], current, target
            )

        updated: dict[str, Any] = dict(redemption)
        updated[const.DATA_REDEMPTION_STATUS] = target
        return updated  # type: ignore[return-value]

    @staticmethod
    def find_challenge(
        redemption: PendingRedemptionData, challenge_id: str
    ) -> ChallengeData | None:
        """Find an offered challenge by id."""
        for challenge in redemption.get(const.DATA_REDEMPTION_AVAILABLE_CHALLENGES) or []:
            if challenge.get(const.DATA_CHALLENGE_ID) == challenge_id:
                return challenge
        return None

    # =========================================================================
    # COUNTDOWN AND RECONCILIATION
    # =========================================================================

    @staticmethod
    def apply_countdown_tick(
        redemptions: list[PendingRedemptionData], interval_ms: int
    ) -> list[PendingRedemptionData]:
        """Decrement every remaining-time budget by one tick, floored at zero.

        Args:
            redemptions: Current list
            interval_ms: Tick length in milliseconds

        Returns:
            New list with new dicts; input is not mutated.
        """
        ticked: list[PendingRedemptionData] = []
        for redemption in redemptions:
            updated: dict[str, Any] = dict(redemption)
            remaining = redemption.get(const.DATA_REDEMPTION_TIME_REMAINING_MS) or 0
            updated[const.DATA_REDEMPTION_TIME_REMAINING_MS] = max(
                0, remaining - interval_ms
            )
            ticked.append(updated)  # type: ignore[arg-type]
        return ticked

    @staticmethod
    def reconcile_fetch(
        local: list[PendingRedemptionData],
        fetched: list[PendingRedemptionData],
    ) -> list[PendingRedemptionData]:
        """Replace the local list with a fresh server list.

        Remaining time and every other field are taken from the server as-is
        (a fetch overwrites, it never merges with the countdown), with time
        floored at zero. The one exception is status: a fetched status that
        would move a redemption backwards in the lifecycle graph keeps the
        locally-known status and assigned challenge. This happens when a fetch
        that started before a local challenge assignment completes after it.

        Redemptions the server no longer returns are dropped.

        Args:
            local: Locally-known list
            fetched: List returned by the server

        Returns:
            The reconciled list, in server order.
        """
        local_by_id = {r.get(const.DATA_REDEMPTION_ID): r for r in local}
        reconciled: list[PendingRedemptionData] = []

        for item in fetched:
            updated: dict[str, Any] = dict(item)
            updated[const.DATA_REDEMPTION_TIME_REMAINING_MS] = max(
                0, int(item.get(const.DATA_REDEMPTION_TIME_REMAINING_MS) or 0)
            )
            updated.setdefault(const.DATA_REDEMPTION_AVAILABLE_CHALLENGES, [])

            previous = local_by_id.get(item.get(const.DATA_REDEMPTION_ID))
            if previous is not None:
                old_status = previous[const.DATA_REDEMPTION_STATUS]
                new_status = item[const.DATA_REDEMPTION_STATUS]
                if not RedemptionEngine.can_transition(old_status, new_status):
                    updated[const.DATA_REDEMPTION_STATUS] = old_status
                    updated[const.DATA_REDEMPTION_CHALLENGE_ID] = previous.get(
                        const.DATA_REDEMPTION_CHALLENGE_ID
                    )
                    updated[const.DATA_REDEMPTION_ASSIGNED_CHALLENGE] = previous.get(
                        const.DATA_REDEMPTION_ASSIGNED_CHALLENGE
                    )

            if (
                updated[const.DATA_REDEMPTION_STATUS]
                == const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
                and not updated.get(const.DATA_REDEMPTION_ASSIGNED_CHALLENGE)
            ):
                # Server sent only the id; resolve it from the offered list
                challenge_id = updated.get(const.DATA_REDEMPTION_CHALLENGE_ID)
                if challenge_id:
                    updated[const.DATA_REDEMPTION_ASSIGNED_CHALLENGE] = (
                        RedemptionEngine.find_challenge(
                            updated,  # type: ignore[arg-type]
                            challenge_id,
                        )
                    )

            reconciled.append(updated)  # type: ignore[arg-type]

        return reconciled

    @staticmethod
    def detect_regressions(
        local: list[PendingRedemptionData],
        fetched: list[PendingRedemptionData],
    ) -> list[tuple[str, str, str]]:
        """List (id, local_status, fetched_status) for backwards fetched statuses."""
        local_by_id = {r.get(const.DATA_REDEMPTION_ID): r for r in local}
        regressions: list[tuple[str, str, str]] = []
        for item in fetched:
            previous = local_by_id.get(item.get(const.DATA_REDEMPTION_ID))
            if previous is None:
                continue
            old_status = previous[const.DATA_REDEMPTION_STATUS]
            new_status = item[const.DATA_REDEMPTION_STATUS]
            if not RedemptionEngine.can_transition(old_status, new_status):
                regressions.append(
                    (item[const.DATA_REDEMPTION_ID], old_status, new_status)
                )
        return regressions

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    @staticmethod
    def get_actionable(
        redemptions: list[PendingRedemptionData],
    ) -> list[PendingRedemptionData]:
        """Redemptions in pending or challenge_assigned."""
        return [r for r in redemptions if RedemptionEngine.is_actionable(r)]

    @staticmethod
    def get_urgent(
        redemptions: list[PendingRedemptionData], threshold_ms: int
    ) -> list[PendingRedemptionData]:
        """Actionable redemptions with remaining time below the threshold."""
        return [
            r
            for r in RedemptionEngine.get_actionable(redemptions)
            if is_urgent(r.get(const.DATA_REDEMPTION_TIME_REMAINING_MS) or 0, threshold_ms)
        ]

    @staticmethod
    def get_all_with_challenge(
        redemptions: list[PendingRedemptionData],
    ) -> list[PendingRedemptionData]:
        """All redemptions currently in challenge_assigned."""
        return [
            r
            for r in redemptions
            if r.get(const.DATA_REDEMPTION_STATUS)
            == const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
        ]

    @staticmethod
    def get_with_challenge(
        redemptions: list[PendingRedemptionData],
    ) -> PendingRedemptionData | None:
        """The redemption in challenge_assigned, if any (first one wins)."""
        assigned = RedemptionEngine.get_all_with_challenge(redemptions)
        return assigned[0] if assigned else None

    @staticmethod
    def get_most_urgent(
        redemptions: list[PendingRedemptionData],
    ) -> PendingRedemptionData | None:
        """Actionable redemption with the least remaining time."""
        actionable = RedemptionEngine.get_actionable(redemptions)
        if not actionable:
            return None
        return min(
            actionable,
            key=lambda r: r.get(const.DATA_REDEMPTION_TIME_REMAINING_MS) or 0,
        )
