# File: coordinator.py
"""Coordinator for the HabitRush integration.

Refreshes the user profile, habits, completions and the server's life-challenge
status list on the configured interval, and owns the managers that handle
pending redemptions, proof validation and life-challenge redemption.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from . import const
from .api import HabitRushApiError
from .managers import LifeChallengeManager, RedemptionManager, ValidationManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .api import HabitRushApiClient
    from .storage_manager import HabitRushStorageManager
    from .type_defs import CompletionData, CoordinatorData, HabitData


class HabitRushDataCoordinator(DataUpdateCoordinator):
    """Coordinator for HabitRush integration.

    Data shape: {user, habits, completions, life_challenges}.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        api: HabitRushApiClient,
        storage_manager: HabitRushStorageManager,
    ) -> None:
        """Initialize the HabitRushDataCoordinator."""
        update_interval_minutes = config_entry.options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        )

        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )
        self.api = api
        self.storage_manager = storage_manager

        self.redemption_manager = RedemptionManager(hass, self, api)
        self.validation_manager = ValidationManager(hass, self, api)
        self.life_challenge_manager = LifeChallengeManager(
            hass, self, api, storage_manager
        )

    async def async_setup_managers(self) -> None:
        """Set up managers after the first refresh."""
        await self.validation_manager.async_setup()
        await self.redemption_manager.async_setup()
        await self.life_challenge_manager.async_setup()

    async def async_shutdown(self) -> None:
        """Cancel every timer owned by the managers."""
        await self.redemption_manager.async_teardown()
        await self.validation_manager.async_teardown()
        await self.life_challenge_manager.async_teardown()
        await super().async_shutdown()

    # -------------------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """Fetch profile, habits, completions and life-challenge statuses."""
        try:
            user, habits, life_challenges = await asyncio.gather(
                self.api.async_get_user_profile(),
                self.api.async_get_habits(),
                self.api.async_get_life_challenges(),
            )
            completions = await self._async_fetch_completions(habits)
        except HabitRushApiError as err:
            raise UpdateFailed(f"Error updating HabitRush data: {err}") from err

        const.LOGGER.debug(
            "DEBUG: HabitRush data refreshed: %s habits, %s completions",
            len(habits),
            len(completions),
        )

        # Discovers redemptions created since the last list poll
        await self.redemption_manager.async_refresh(visible=False)

        return {
            const.DATA_USER: user,
            const.DATA_HABITS: habits,
            const.DATA_COMPLETIONS: completions,
            const.DATA_LIFE_CHALLENGES: life_challenges,
        }

    async def _async_fetch_completions(
        self, habits: list[HabitData]
    ) -> list[CompletionData]:
        """Fetch completions for every habit, tagged with their habit id."""
        habit_ids = [
            habit[const.DATA_HABIT_ID] for habit in habits if habit.get(const.DATA_HABIT_ID)
        ]
        results = await asyncio.gather(
            *(self.api.async_get_habit_completions(habit_id) for habit_id in habit_ids)
        )
        completions: list[CompletionData] = []
        for habit_id, habit_completions in zip(habit_ids, results):
            for completion in habit_completions:
                completion.setdefault(const.DATA_COMPLETION_HABIT_ID, habit_id)  # type: ignore[misc]
                completions.append(completion)
        return completions

    async def async_refresh_profile_and_redemptions(self) -> None:
        """Refresh the redemption list and the user profile in parallel."""
        await asyncio.gather(
            self.redemption_manager.async_refresh(visible=False),
            self.async_refresh(),
        )
