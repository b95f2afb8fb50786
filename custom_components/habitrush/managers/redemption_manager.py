"""Redemption Manager - Pending-redemption store and scheduler.

Holds the active-redemption list and everything that writes to it:
- list refresh (visible or background) with an in-flight guard
- a 1-second local countdown, armed only while something is non-terminal
- a fixed-interval list poll that checks the latest list at fire time
- user actions: accept the penalty, choose a challenge, submit proof

Ordering: every fetch is tagged with the current generation. Local optimistic
transitions and teardown bump the generation, so a fetch that started earlier
and completes later is discarded instead of overwriting newer state.

Decisions (transition graph, tick arithmetic, reconciliation, views) live in
RedemptionEngine; this module only owns state, timers and side effects.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_time_interval

from .. import const
from ..api import HabitRushApiError
from ..engines.redemption_engine import RedemptionEngine
from ..utils.dt_utils import dt_now_utc
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..api import HabitRushApiClient
    from ..coordinator import HabitRushDataCoordinator
    from ..type_defs import PendingRedemptionData


class RedemptionManager(BaseManager):
    """Store and scheduler for pending redemptions."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: HabitRushDataCoordinator,
        api: HabitRushApiClient,
    ) -> None:
        """Initialize the manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator
            api: HabitRush API client
        """
        super().__init__(hass, coordinator)
        self.api = api
        self._redemptions: list[PendingRedemptionData] = []
        self.loading: bool = False
        self.error: str | None = None
        self.action_in_progress: str | None = None
        self.last_refresh: datetime | None = None

        self._is_fetching = False
        self._generation = 0
        self._running = False
        self._unsub_countdown: CALLBACK_TYPE | None = None
        self._unsub_poll: CALLBACK_TYPE | None = None
        self._poll_interval = timedelta(
            seconds=coordinator.config_entry.options.get(
                const.CONF_REDEMPTION_POLL_INTERVAL,
                const.DEFAULT_REDEMPTION_POLL_INTERVAL,
            )
        )

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    async def async_setup(self) -> None:
        """Arm the list poll and register deterministic teardown."""
        self._running = True
        self._unsub_poll = async_track_time_interval(
            self.hass, self._async_poll, self._poll_interval
        )
        self.coordinator.config_entry.async_on_unload(self.stop)
        self._sync_countdown_timer()
        const.LOGGER.debug(
            "DEBUG: RedemptionManager started (poll every %s)", self._poll_interval
        )

    @callback
    def stop(self) -> None:
        """Cancel both timers and discard any fetch still in flight."""
        if self._unsub_poll is not None:
            self._unsub_poll()
            self._unsub_poll = None
        if self._unsub_countdown is not None:
            self._unsub_countdown()
            self._unsub_countdown = None
        if self._running:
            const.LOGGER.debug("DEBUG: RedemptionManager stopped")
        self._running = False
        self._generation += 1

    async def async_teardown(self) -> None:
        """Stop all timers."""
        self.stop()

    @property
    def is_running(self) -> bool:
        """True between setup and teardown."""
        return self._running

    @property
    def countdown_active(self) -> bool:
        """True while the 1-second countdown timer is armed."""
        return self._unsub_countdown is not None

    # -------------------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------------------

    @property
    def redemptions(self) -> list[PendingRedemptionData]:
        """Latest known list (server order)."""
        return self._redemptions

    @property
    def actionable(self) -> list[PendingRedemptionData]:
        """Redemptions in pending or challenge_assigned."""
        return RedemptionEngine.get_actionable(self._redemptions)

    @property
    def urgent(self) -> list[PendingRedemptionData]:
        """Actionable redemptions below the urgent threshold."""
        return RedemptionEngine.get_urgent(
            self._redemptions, const.URGENT_THRESHOLD_MS
        )

    @property
    def with_challenge(self) -> PendingRedemptionData | None:
        """The redemption currently in challenge_assigned, if any."""
        return RedemptionEngine.get_with_challenge(self._redemptions)

    @property
    def most_urgent(self) -> PendingRedemptionData | None:
        """Actionable redemption with the least time left."""
        return RedemptionEngine.get_most_urgent(self._redemptions)

    @property
    def has_active(self) -> bool:
        """True when at least one redemption is non-terminal."""
        return RedemptionEngine.has_active(self._redemptions)

    def get_redemption(self, redemption_id: str) -> PendingRedemptionData | None:
        """Find a redemption by id in the latest list."""
        for redemption in self._redemptions:
            if redemption.get(const.DATA_REDEMPTION_ID) == redemption_id:
                return redemption
        return None

    # -------------------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------------------

    async def async_refresh(self, visible: bool = False) -> bool:
        """Fetch the full active-redemption list.

        A call made while another fetch is in flight is skipped, not queued.

        Args:
            visible: True for a user-initiated refresh: exposes `loading` and
                raises on failure. False for a background refresh: failures keep
                the last known list and are only logged.

        Returns:
            True when a fetched list was applied.

        Raises:
            HabitRushApiError: Only for visible refreshes.
        """
        if not self._running:
            const.LOGGER.debug("DEBUG: Redemption refresh ignored, manager not running")
            return False
        if self._is_fetching:
            const.LOGGER.debug("DEBUG: Redemption refresh skipped, fetch in flight")
            return False

        self._is_fetching = True
        request_generation = self._generation
        if visible:
            self.loading = True
            self.error = None
            self._notify()

        try:
            fetched = await self.api.async_get_pending_redemptions()
        except HabitRushApiError as err:
            if request_generation != self._generation:
                const.LOGGER.debug("DEBUG: Dropping failure of a superseded fetch")
                return False
            if visible:
                self.error = str(err)
                raise
            const.LOGGER.warning(
                "WARNING: Background redemption refresh failed, keeping last list: %s",
                err,
            )
            if not self._redemptions:
                self.error = str(err)
            return False
        finally:
            self._is_fetching = False
            if visible:
                self.loading = False
                self._notify()

        if request_generation != self._generation:
            const.LOGGER.debug(
                "DEBUG: Discarding superseded redemption list (generation %s < %s)",
                request_generation,
                self._generation,
            )
            return False

        self._apply_fetch(fetched)
        return True

    def _apply_fetch(self, fetched: list[PendingRedemptionData]) -> None:
        """Replace the list with a fresh server read."""
        for redemption_id, local_status, fetched_status in (
            RedemptionEngine.detect_regressions(self._redemptions, fetched)
        ):
            const.LOGGER.debug(
                "DEBUG: Keeping status %s for redemption %s (server sent %s)",
                local_status,
                redemption_id,
                fetched_status,
            )
        self._redemptions = RedemptionEngine.reconcile_fetch(self._redemptions, fetched)
        self.error = None
        self.last_refresh = dt_now_utc()
        self._sync_countdown_timer()
        self._notify()

    # -------------------------------------------------------------------------------------
    # Timers
    # -------------------------------------------------------------------------------------

    @callback
    def _sync_countdown_timer(self) -> None:
        """Arm the countdown while anything is active, cancel it otherwise."""
        should_run = self._running and self.has_active
        if should_run and self._unsub_countdown is None:
            self._unsub_countdown = async_track_time_interval(
                self.hass,
                self._countdown_tick,
                timedelta(milliseconds=const.COUNTDOWN_INTERVAL_MS),
            )
        elif not should_run and self._unsub_countdown is not None:
            self._unsub_countdown()
            self._unsub_countdown = None

    @callback
    def _countdown_tick(self, _now: datetime) -> None:
        """Decrement every remaining time by one tick. Never touches the network."""
        self._redemptions = RedemptionEngine.apply_countdown_tick(
            self._redemptions, const.COUNTDOWN_INTERVAL_MS
        )
        self._notify()

    async def _async_poll(self, _now: datetime) -> None:
        """List poll. Reads the latest list at fire time."""
        if not RedemptionEngine.has_active(self._redemptions):
            return
        await self.async_refresh(visible=False)

    # -------------------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------------------

    def _require_actionable(self, redemption_id: str) -> PendingRedemptionData:
        redemption = self.get_redemption(redemption_id)
        if redemption is None or not RedemptionEngine.is_actionable(redemption):
            raise HomeAssistantError(
                f"Redemption {redemption_id} is not awaiting a decision"
            )
        return redemption

    async def async_accept_penalty(self, redemption_id: str) -> dict[str, Any]:
        """Accept losing a life for a redemption.

        On success the local copy moves to redeemed_life, fetches started
        before the action are superseded, and the list and the user profile
        are refreshed in parallel.
        When the server reports the user has no lives left, the user-depleted
        signal and bus event fire and the result carries user_depleted=True.

        Raises:
            HomeAssistantError: If the redemption is unknown or already resolved.
            HabitRushApiError: If the server rejects the action.
        """
        self._require_actionable(redemption_id)

        self.action_in_progress = redemption_id
        self.error = None
        self._notify()
        try:
            response = await self.api.async_redeem_life(redemption_id)
        except HabitRushApiError as err:
            self.error = str(err)
            const.LOGGER.warning(
                "WARNING: Accept penalty failed for redemption %s: %s",
                redemption_id,
                err,
            )
            raise
        finally:
            self.action_in_progress = None
            self._notify()

        # Re-read: the list may have changed while the request was in flight
        current = self.get_redemption(redemption_id)
        if current is not None and RedemptionEngine.is_actionable(current):
            self._generation += 1
            resolved = RedemptionEngine.mark_life_redeemed(current)
            self._redemptions = [
                resolved if r is current else r for r in self._redemptions
            ]
            self._sync_countdown_timer()
            self._notify()

        await self.coordinator.async_refresh_profile_and_redemptions()

        current_lives = response.get(const.API_FIELD_CURRENT_LIVES)
        user_depleted = bool(response.get(const.API_FIELD_IS_DEAD))
        const.LOGGER.info(
            "INFO: Penalty accepted for redemption %s (lives left: %s)",
            redemption_id,
            current_lives,
        )
        if user_depleted:
            const.LOGGER.warning("WARNING: HabitRush user has no lives left")
            self.emit(
                const.SIGNAL_SUFFIX_USER_DEPLETED,
                redemption_id=redemption_id,
                current_lives=current_lives,
            )
            self.hass.bus.async_fire(
                const.EVENT_USER_DEPLETED,
                {
                    const.ATTR_REDEMPTION_ID: redemption_id,
                    const.RESULT_CURRENT_LIVES: current_lives,
                },
            )

        return {
            const.RESULT_CURRENT_LIVES: current_lives,
            const.RESULT_USER_DEPLETED: user_depleted,
            const.RESULT_MESSAGE: response.get(const.API_FIELD_MESSAGE),
        }

    async def async_choose_challenge(
        self, redemption_id: str, challenge_id: str
    ) -> dict[str, Any]:
        """Assign a substitute challenge to a pending redemption.

        On success the local copy moves to challenge_assigned, fetches started
        before the assignment are superseded, and a background refresh runs.

        Raises:
            HomeAssistantError: If the redemption is not pending.
            HabitRushApiError: If the server rejects the assignment.
        """
        redemption = self._require_actionable(redemption_id)
        if (
            redemption[const.DATA_REDEMPTION_STATUS]
            != const.REDEMPTION_STATUS_PENDING
        ):
            raise HomeAssistantError(
                f"Redemption {redemption_id} already has a challenge assigned"
            )

        self.action_in_progress = redemption_id
        self.error = None
        self._notify()
        try:
            response = await self.api.async_redeem_challenge(redemption_id, challenge_id)
        except HabitRushApiError as err:
            self.error = str(err)
            const.LOGGER.warning(
                "WARNING: Choosing challenge %s for redemption %s failed: %s",
                challenge_id,
                redemption_id,
                err,
            )
            raise
        finally:
            self.action_in_progress = None
            self._notify()

        challenge = (
            response.get(const.API_FIELD_CHALLENGE)
            or RedemptionEngine.find_challenge(redemption, challenge_id)
            or {const.DATA_CHALLENGE_ID: challenge_id}
        )

        # Re-read: the list may have changed while the request was in flight
        current = self.get_redemption(redemption_id)
        if (
            current is not None
            and current[const.DATA_REDEMPTION_STATUS] == const.REDEMPTION_STATUS_PENDING
        ):
            self._generation += 1
            assigned = RedemptionEngine.mark_challenge_assigned(current, challenge)  # type: ignore[arg-type]
            self._redemptions = [
                assigned if r is current else r for r in self._redemptions
            ]
        self._notify()

        const.LOGGER.info(
            "INFO: Challenge %s assigned to redemption %s", challenge_id, redemption_id
        )
        await self.async_refresh(visible=False)

        return {
            const.API_FIELD_CHALLENGE: challenge,
            const.API_FIELD_USER_CHALLENGE: response.get(const.API_FIELD_USER_CHALLENGE),
            const.RESULT_HABIT_STILL_BLOCKED: response.get(
                const.API_FIELD_HABIT_STILL_BLOCKED
            ),
        }

    async def async_submit_proof(
        self,
        redemption_id: str,
        proof_text: str,
        proof_image_urls: list[str],
    ) -> dict[str, Any]:
        """Submit proof through the redemption's validation workflow.

        On success the list and the user profile are refreshed together.

        Raises:
            ProofValidationError: If the proof fails client-side checks.
            HomeAssistantError: If the redemption is not in the active list.
            HabitRushApiError: If no challenge is assigned or the server rejects
                the submission.
        """
        redemption = self.get_redemption(redemption_id)
        if redemption is None:
            raise HomeAssistantError(f"Unknown redemption {redemption_id}")
        if (
            redemption[const.DATA_REDEMPTION_STATUS]
            != const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
        ):
            raise HabitRushApiError(const.ERROR_NO_CHALLENGE_ASSIGNED)

        workflow = self.coordinator.validation_manager.get_workflow(redemption_id)

        self.action_in_progress = redemption_id
        self.error = None
        self._notify()
        try:
            result = await workflow.async_submit_proof(proof_text, proof_image_urls)
        except HabitRushApiError as err:
            self.error = str(err)
            raise
        finally:
            self.action_in_progress = None
            self._notify()

        await self.coordinator.async_refresh_profile_and_redemptions()
        return result

    # -------------------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------------------

    @callback
    def _notify(self) -> None:
        """Tell entities and the validation manager the list changed."""
        self.emit(
            const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED,
            redemption_ids=[r.get(const.DATA_REDEMPTION_ID) for r in self._redemptions],
            assigned_ids=[
                r.get(const.DATA_REDEMPTION_ID)
                for r in RedemptionEngine.get_all_with_challenge(self._redemptions)
            ],
        )
