"""Life Challenge Manager - Evaluation and redemption of bonus life challenges.

Builds the HistorySnapshot from coordinator data and the local ledger, asks
LifeChallengeEngine which challenges are redeemable, and runs the redemption
flow:

    evaluate -> plan reward (slot capping) -> POST redeem -> record -> refresh

A once-only challenge recorded in the ledger is never offered again, even if
the server's status list lags behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError

from .. import const
from ..engines.life_challenge_engine import LifeChallengeEngine, RewardPlan
from ..utils.dt_utils import dt_today_local
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..api import HabitRushApiClient
    from ..coordinator import HabitRushDataCoordinator
    from ..storage_manager import HabitRushStorageManager
    from ..type_defs import (
        HistorySnapshot,
        LifeChallengeDefinition,
        LifeChallengeEvaluation,
    )


class LifeChallengeNotRedeemableError(HomeAssistantError):
    """Raised when a life challenge is unknown or its requirements are not met."""

    def __init__(self, life_challenge_id: str, status: str | None = None) -> None:
        self.life_challenge_id = life_challenge_id
        self.status = status
        super().__init__(
            f"Life challenge {life_challenge_id} is not redeemable"
            + (f" (status: {status})" if status else "")
        )


class LifeSlotsFullError(HomeAssistantError):
    """Raised when redeeming would grant zero lives because every slot is full."""

    def __init__(self, plan: RewardPlan) -> None:
        self.plan = plan
        super().__init__(
            f"No empty life slots: redeeming {plan.life_challenge_id} would grant "
            f"0 of {plan.nominal} lives"
        )


class PartialRewardNotConfirmedError(HomeAssistantError):
    """Raised when only part of the reward fits and the caller did not confirm."""

    def __init__(self, plan: RewardPlan) -> None:
        self.plan = plan
        super().__init__(
            f"Only {plan.granted} of {plan.nominal} lives fit for "
            f"{plan.life_challenge_id}; confirm_partial is required to redeem"
        )


class LifeChallengeManager(BaseManager):
    """Evaluates and redeems life challenges."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitRushDataCoordinator,
        api: HabitRushApiClient,
        storage_manager: HabitRushStorageManager,
    ) -> None:
        super().__init__(hass, coordinator)
        self.api = api
        self.storage_manager = storage_manager

    async def async_setup(self) -> None:
        """Nothing to arm; evaluation runs on demand."""
        const.LOGGER.debug(
            "DEBUG: LifeChallengeManager ready with %s definitions",
            len(self.definitions),
        )

    @property
    def definitions(self) -> list[LifeChallengeDefinition]:
        return const.LIFE_CHALLENGE_DEFINITIONS  # type: ignore[return-value]

    def get_definition(self, life_challenge_id: str) -> LifeChallengeDefinition | None:
        for definition in self.definitions:
            if definition[const.DATA_LIFE_CHALLENGE_ID] == life_challenge_id:  # type: ignore[literal-required]
                return definition
        return None

    def _redemption_counts(self) -> dict[str, int]:
        """Ledger counts, with server-side `redeemed` rows counted at least once."""
        counts = dict(self.storage_manager.get_redemption_counts())
        data = self.coordinator.data or {}
        for row in data.get(const.DATA_LIFE_CHALLENGES) or []:
            challenge_id = row.get(const.DATA_LIFE_CHALLENGE_ID)
            if (
                challenge_id
                and row.get(const.DATA_LIFE_CHALLENGE_STATUS)
                == const.LIFE_CHALLENGE_STATUS_REDEEMED
            ):
                counts[challenge_id] = max(counts.get(challenge_id, 0), 1)
        return counts

    def build_snapshot(self) -> HistorySnapshot:
        """Aggregate the current user, habit and completion state."""
        data = self.coordinator.data or {}
        user = data.get(const.DATA_USER) or {}
        return {
            "today": dt_today_local().isoformat(),
            "timezone": str(self.hass.config.time_zone),
            "lives": int(user.get(const.DATA_USER_LIVES) or 0),
            "max_lives": int(user.get(const.DATA_USER_MAX_LIVES) or 0),
            "habits": list(data.get(const.DATA_HABITS) or []),
            "completions": list(data.get(const.DATA_COMPLETIONS) or []),
            "redemption_counts": self._redemption_counts(),
        }

    def get_evaluations(self) -> list[LifeChallengeEvaluation]:
        """Evaluate every standing life challenge."""
        return LifeChallengeEngine.evaluate_all(self.definitions, self.build_snapshot())

    def get_redeemable(self) -> list[LifeChallengeEvaluation]:
        return [item for item in self.get_evaluations() if item["redeemable"]]

    def plan(self, life_challenge_id: str) -> RewardPlan:
        """Plan the reward for a challenge against the current life count.

        Raises:
            LifeChallengeNotRedeemableError: If the challenge is unknown.
        """
        definition = self.get_definition(life_challenge_id)
        if definition is None:
            raise LifeChallengeNotRedeemableError(life_challenge_id)
        snapshot = self.build_snapshot()
        return LifeChallengeEngine.plan_reward(
            life_challenge_id,
            int(definition[const.DATA_LIFE_CHALLENGE_REWARD]),  # type: ignore[literal-required]
            definition[const.DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE],  # type: ignore[literal-required]
            snapshot["lives"],
            snapshot["max_lives"],
        )

    async def async_redeem(
        self, life_challenge_id: str, confirm_partial: bool = False
    ) -> dict[str, Any]:
        """Redeem a life challenge.

        Args:
            life_challenge_id: Challenge to redeem
            confirm_partial: Accept a capped reward when not every life fits

        Returns:
            lives_gained, current_lives, nominal_reward, shortfall, outcome.

        Raises:
            LifeChallengeNotRedeemableError: Unknown or not currently redeemable.
            LifeSlotsFullError: No life would be granted.
            PartialRewardNotConfirmedError: Partial grant without confirmation.
            HabitRushApiError: If the server rejects the redemption.
        """
        definition = self.get_definition(life_challenge_id)
        if definition is None:
            raise LifeChallengeNotRedeemableError(life_challenge_id)

        evaluation = LifeChallengeEngine.evaluate(definition, self.build_snapshot())
        if not evaluation["redeemable"]:
            raise LifeChallengeNotRedeemableError(
                life_challenge_id, evaluation["status"]
            )

        plan = self.plan(life_challenge_id)
        if plan.outcome == const.REWARD_OUTCOME_NONE:
            const.LOGGER.info(
                "INFO: Life challenge %s not redeemed, no empty life slots",
                life_challenge_id,
            )
            raise LifeSlotsFullError(plan)
        if plan.requires_confirmation and not confirm_partial:
            raise PartialRewardNotConfirmedError(plan)

        response = await self.api.async_redeem_life_challenge(life_challenge_id)
        count = await self.storage_manager.async_record_redemption(life_challenge_id)

        lives_gained = response.get(const.API_FIELD_LIVES_GAINED, plan.granted)
        current_lives = response.get(const.API_FIELD_CURRENT_LIVES_CAMEL)
        const.LOGGER.info(
            "INFO: Life challenge %s redeemed (+%s lives, redemption #%s)",
            life_challenge_id,
            lives_gained,
            count,
        )

        await self.coordinator.async_refresh()

        result = {
            const.RESULT_LIVES_GAINED: lives_gained,
            const.RESULT_CURRENT_LIVES: current_lives,
            const.RESULT_NOMINAL_REWARD: plan.nominal,
            const.RESULT_SHORTFALL: plan.shortfall,
            const.RESULT_OUTCOME: plan.outcome,
        }
        self.emit(
            const.SIGNAL_SUFFIX_LIFE_CHALLENGE_REDEEMED,
            life_challenge_id=life_challenge_id,
            **result,
        )
        self.hass.bus.async_fire(
            const.EVENT_LIFE_CHALLENGE_REDEEMED,
            {const.FIELD_LIFE_CHALLENGE_ID: life_challenge_id, **result},
        )
        return result
