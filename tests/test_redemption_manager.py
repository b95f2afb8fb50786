"""Tests for RedemptionManager - the pending-redemption store and scheduler.

Scenario: scenario_redemptions.yaml
- r1: pending, 20h left, two challenges on offer
- r2: challenge_assigned (ch-3), 2h left
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names

import asyncio
from collections.abc import AsyncGenerator
from datetime import timedelta
from unittest.mock import MagicMock

from freezegun.api import FrozenDateTimeFactory
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_connect
import pytest
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_capture_events,
    async_fire_time_changed,
)

from custom_components.habitrush import const
from custom_components.habitrush.api import HabitRushApiError
from custom_components.habitrush.helpers.entity_helpers import get_event_signal
from custom_components.habitrush.managers import RedemptionManager
from tests.helpers import (
    HOUR_MS,
    SetupResult,
    make_challenge,
    make_redemption,
    make_submit_response,
    setup_from_yaml,
    setup_scenario,
    unload_scenario,
)

SCENARIO = "tests/scenarios/scenario_redemptions.yaml"
VALID_PROOF = "Did all twenty push-ups before breakfast"


@pytest.fixture
async def scenario_redemptions(
    hass: HomeAssistant,
    freezer: FrozenDateTimeFactory,
    mock_config_entry: MockConfigEntry,
    mock_api: MagicMock,
) -> AsyncGenerator[SetupResult]:
    """Integration loaded with two pending redemptions, time frozen."""
    result = await setup_from_yaml(hass, mock_config_entry, mock_api, SCENARIO)
    yield result
    await unload_scenario(hass, result)


def manager_of(result: SetupResult) -> RedemptionManager:
    return result.coordinator.redemption_manager


async def tick(hass: HomeAssistant, freezer: FrozenDateTimeFactory, seconds: float) -> None:
    """Advance the frozen clock and run due timers."""
    freezer.tick(timedelta(seconds=seconds))
    async_fire_time_changed(hass)
    await hass.async_block_till_done()


# ============================================================================
# Setup and derived views
# ============================================================================


class TestSetup:
    """The list is loaded once managers are armed."""

    async def test_list_loaded_and_countdown_armed(
        self, scenario_redemptions: SetupResult
    ) -> None:
        manager = manager_of(scenario_redemptions)

        assert manager.is_running
        assert [r["id"] for r in manager.redemptions] == ["r1", "r2"]
        assert manager.countdown_active
        assert manager.last_refresh is not None

    async def test_assigned_challenge_resolved_from_offer(
        self, scenario_redemptions: SetupResult
    ) -> None:
        r2 = manager_of(scenario_redemptions).get_redemption("r2")
        assert r2 is not None
        assert r2["assigned_challenge"]["title"] == "Clean the kitchen"

    async def test_views(self, scenario_redemptions: SetupResult) -> None:
        manager = manager_of(scenario_redemptions)

        assert [r["id"] for r in manager.urgent] == ["r2"]
        assert manager.most_urgent["id"] == "r2"
        assert manager.with_challenge["id"] == "r2"
        assert manager.has_active

    async def test_workflow_created_for_assigned_redemption(
        self, scenario_redemptions: SetupResult
    ) -> None:
        validation_manager = scenario_redemptions.coordinator.validation_manager

        assert set(validation_manager.workflows) == {"r2"}
        scenario_redemptions.api.async_get_validation_status.assert_any_await("r2")


# ============================================================================
# Countdown and poll timers
# ============================================================================


class TestTimers:
    """Tests for the 1-second countdown and the 30-second list poll."""

    async def test_countdown_ticks_without_network(
        self,
        hass: HomeAssistant,
        freezer: FrozenDateTimeFactory,
        scenario_redemptions: SetupResult,
    ) -> None:
        api = scenario_redemptions.api
        api.async_get_pending_redemptions.reset_mock()

        await tick(hass, freezer, 1)

        manager = manager_of(scenario_redemptions)
        assert manager.get_redemption("r1")["time_remaining_ms"] == 20 * HOUR_MS - 1000
        assert manager.get_redemption("r2")["time_remaining_ms"] == 2 * HOUR_MS - 1000
        api.async_get_pending_redemptions.assert_not_awaited()

    async def test_countdown_floors_at_zero(
        self,
        hass: HomeAssistant,
        freezer: FrozenDateTimeFactory,
        mock_config_entry: MockConfigEntry,
        mock_api: MagicMock,
    ) -> None:
        result = await setup_scenario(
            hass,
            mock_config_entry,
            mock_api,
            {"redemptions": [make_redemption("r1", time_remaining_ms=1500)]},
        )
        manager = manager_of(result)

        await tick(hass, freezer, 1)
        assert manager.get_redemption("r1")["time_remaining_ms"] == 500
        await tick(hass, freezer, 1)
        await tick(hass, freezer, 1)
        assert manager.get_redemption("r1")["time_remaining_ms"] == 0
        # Only the server decides expiry
        assert manager.get_redemption("r1")["status"] == const.REDEMPTION_STATUS_PENDING

        await unload_scenario(hass, result)

    async def test_countdown_stops_when_everything_is_terminal(
        self, scenario_redemptions: SetupResult
    ) -> None:
        api = scenario_redemptions.api
        api.async_get_pending_redemptions.return_value = [
            make_redemption("r1", status="expired", time_remaining_ms=0),
            make_redemption("r2", status="completed", time_remaining_ms=0),
        ]
        manager = manager_of(scenario_redemptions)

        assert await manager.async_refresh(visible=True)

        assert not manager.has_active
        assert not manager.countdown_active

    async def test_poll_fetches_while_active(
        self,
        hass: HomeAssistant,
        freezer: FrozenDateTimeFactory,
        scenario_redemptions: SetupResult,
    ) -> None:
        api = scenario_redemptions.api
        api.async_get_pending_redemptions.reset_mock()
        api.async_get_pending_redemptions.return_value = [
            make_redemption("r1", time_remaining_ms=5 * HOUR_MS)
        ]

        await tick(hass, freezer, const.DEFAULT_REDEMPTION_POLL_INTERVAL)

        api.async_get_pending_redemptions.assert_awaited_once()
        manager = manager_of(scenario_redemptions)
        assert [r["id"] for r in manager.redemptions] == ["r1"]
        assert manager.get_redemption("r1")["time_remaining_ms"] == 5 * HOUR_MS

    async def test_poll_skipped_when_nothing_active(
        self,
        hass: HomeAssistant,
        freezer: FrozenDateTimeFactory,
        mock_config_entry: MockConfigEntry,
        mock_api: MagicMock,
    ) -> None:
        result = await setup_scenario(hass, mock_config_entry, mock_api)
        assert not manager_of(result).countdown_active
        mock_api.async_get_pending_redemptions.reset_mock()

        await tick(hass, freezer, const.DEFAULT_REDEMPTION_POLL_INTERVAL)

        mock_api.async_get_pending_redemptions.assert_not_awaited()
        await unload_scenario(hass, result)

    async def test_unload_cancels_timers(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        manager = manager_of(scenario_redemptions)

        await unload_scenario(hass, scenario_redemptions)

        assert not manager.is_running
        assert not manager.countdown_active
        assert await manager.async_refresh() is False


# ============================================================================
# Refresh
# ============================================================================


class TestRefresh:
    """Tests for visible and background refreshes."""

    async def test_background_failure_keeps_last_list(
        self, scenario_redemptions: SetupResult
    ) -> None:
        scenario_redemptions.api.async_get_pending_redemptions.side_effect = (
            HabitRushApiError(const.ERROR_NETWORK)
        )
        manager = manager_of(scenario_redemptions)

        assert await manager.async_refresh() is False

        assert [r["id"] for r in manager.redemptions] == ["r1", "r2"]
        assert manager.error is None

    async def test_visible_failure_raises_and_sets_error(
        self, scenario_redemptions: SetupResult
    ) -> None:
        scenario_redemptions.api.async_get_pending_redemptions.side_effect = (
            HabitRushApiError(const.ERROR_NETWORK)
        )
        manager = manager_of(scenario_redemptions)

        with pytest.raises(HabitRushApiError):
            await manager.async_refresh(visible=True)

        assert manager.error == const.ERROR_MESSAGES[const.ERROR_NETWORK]
        assert not manager.loading
        assert len(manager.redemptions) == 2

    async def test_refresh_while_fetch_in_flight_is_skipped(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        api = scenario_redemptions.api
        release = asyncio.Event()

        async def slow_fetch() -> list[dict]:
            await release.wait()
            return [make_redemption("r1", time_remaining_ms=HOUR_MS)]

        api.async_get_pending_redemptions.reset_mock()
        api.async_get_pending_redemptions.side_effect = slow_fetch
        manager = manager_of(scenario_redemptions)

        first = hass.async_create_task(manager.async_refresh())
        await asyncio.sleep(0)
        assert await manager.async_refresh() is False

        release.set()
        assert await first is True
        assert api.async_get_pending_redemptions.await_count == 1

    async def test_fetch_started_before_choice_is_discarded(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        """A list read that began before a challenge was chosen cannot undo it."""
        api = scenario_redemptions.api
        release = asyncio.Event()

        async def stale_fetch() -> list[dict]:
            await release.wait()
            return [make_redemption("r1", time_remaining_ms=HOUR_MS)]

        api.async_get_pending_redemptions.side_effect = stale_fetch
        api.async_redeem_challenge.return_value = {
            "success": True,
            "challenge": make_challenge("ch-2", "Meditate 10 minutes"),
        }
        manager = manager_of(scenario_redemptions)

        in_flight = hass.async_create_task(manager.async_refresh())
        await asyncio.sleep(0)
        await manager.async_choose_challenge("r1", "ch-2")
        release.set()

        assert await in_flight is False
        r1 = manager.get_redemption("r1")
        assert r1["status"] == const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
        assert r1["assigned_challenge"]["id"] == "ch-2"
        assert len(manager.redemptions) == 2

    async def test_fetch_started_before_penalty_is_discarded(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        """A list read that began before the penalty cannot reopen the redemption."""
        api = scenario_redemptions.api
        release = asyncio.Event()

        async def stale_fetch() -> list[dict]:
            await release.wait()
            return [make_redemption("r1", time_remaining_ms=HOUR_MS)]

        api.async_get_pending_redemptions.side_effect = stale_fetch
        api.async_redeem_life.return_value = {
            "success": True,
            "current_lives": 1,
            "is_dead": False,
        }
        manager = manager_of(scenario_redemptions)

        in_flight = hass.async_create_task(manager.async_refresh())
        await asyncio.sleep(0)
        await manager.async_accept_penalty("r1")
        release.set()

        assert await in_flight is False
        r1 = manager.get_redemption("r1")
        assert r1["status"] == const.REDEMPTION_STATUS_REDEEMED_LIFE
        assert [r["id"] for r in manager.actionable] == ["r2"]
        assert len(manager.redemptions) == 2


# ============================================================================
# Actions
# ============================================================================


class TestActions:
    """Tests for accept penalty, choose challenge and submit proof."""

    async def test_accept_penalty_user_depleted(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        api = scenario_redemptions.api
        api.async_redeem_life.return_value = {
            "success": True,
            "current_lives": 0,
            "is_dead": True,
            "message": "Life lost",
        }
        api.async_get_user_profile.reset_mock()
        events = async_capture_events(hass, const.EVENT_USER_DEPLETED)

        result = await manager_of(scenario_redemptions).async_accept_penalty("r1")
        await hass.async_block_till_done()

        assert result == {
            const.RESULT_CURRENT_LIVES: 0,
            const.RESULT_USER_DEPLETED: True,
            const.RESULT_MESSAGE: "Life lost",
        }
        assert len(events) == 1
        assert events[0].data[const.ATTR_REDEMPTION_ID] == "r1"
        api.async_redeem_life.assert_awaited_once_with("r1")
        api.async_get_user_profile.assert_awaited()

    async def test_accept_penalty_with_lives_left_fires_nothing(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        scenario_redemptions.api.async_redeem_life.return_value = {
            "success": True,
            "current_lives": 1,
            "is_dead": False,
        }
        events = async_capture_events(hass, const.EVENT_USER_DEPLETED)

        result = await manager_of(scenario_redemptions).async_accept_penalty("r1")
        await hass.async_block_till_done()

        assert result[const.RESULT_USER_DEPLETED] is False
        assert events == []

    async def test_accept_penalty_failure_leaves_list(
        self, scenario_redemptions: SetupResult
    ) -> None:
        scenario_redemptions.api.async_redeem_life.side_effect = HabitRushApiError(
            const.ERROR_REDEMPTION_EXPIRED
        )
        manager = manager_of(scenario_redemptions)
        before = list(manager.redemptions)

        with pytest.raises(HabitRushApiError):
            await manager.async_accept_penalty("r1")

        assert manager.redemptions == before
        assert manager.action_in_progress is None
        assert manager.error == const.ERROR_MESSAGES[const.ERROR_REDEMPTION_EXPIRED]

    async def test_unknown_redemption_is_rejected(
        self, scenario_redemptions: SetupResult
    ) -> None:
        with pytest.raises(HomeAssistantError):
            await manager_of(scenario_redemptions).async_accept_penalty("missing")
        scenario_redemptions.api.async_redeem_life.assert_not_awaited()

    async def test_choose_challenge(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        api = scenario_redemptions.api
        api.async_redeem_challenge.return_value = {
            "success": True,
            "challenge": make_challenge("ch-1", "Do 20 push-ups"),
            "habit_still_blocked": True,
        }
        manager = manager_of(scenario_redemptions)

        result = await manager.async_choose_challenge("r1", "ch-1")
        await hass.async_block_till_done()

        assert result[const.RESULT_HABIT_STILL_BLOCKED] is True
        # The server list still says pending; the local assignment wins
        assert (
            manager.get_redemption("r1")["status"]
            == const.REDEMPTION_STATUS_CHALLENGE_ASSIGNED
        )
        validation_manager = scenario_redemptions.coordinator.validation_manager
        assert set(validation_manager.workflows) == {"r1", "r2"}

    async def test_choose_challenge_twice_is_rejected(
        self, scenario_redemptions: SetupResult
    ) -> None:
        with pytest.raises(HomeAssistantError):
            await manager_of(scenario_redemptions).async_choose_challenge("r2", "ch-3")
        scenario_redemptions.api.async_redeem_challenge.assert_not_awaited()

    async def test_choose_challenge_failure_clears_action(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        """Entities hear that the action ended even when the server refuses it."""
        scenario_redemptions.api.async_redeem_challenge.side_effect = (
            HabitRushApiError(const.ERROR_REDEMPTION_EXPIRED)
        )
        manager = manager_of(scenario_redemptions)
        seen: list[str | None] = []

        @callback
        def record_action(_payload: dict) -> None:
            seen.append(manager.action_in_progress)

        unsub = async_dispatcher_connect(
            hass,
            get_event_signal(
                scenario_redemptions.config_entry.entry_id,
                const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED,
            ),
            record_action,
        )

        with pytest.raises(HabitRushApiError):
            await manager.async_choose_challenge("r1", "ch-1")
        await hass.async_block_till_done()

        assert manager.action_in_progress is None
        assert seen[0] == "r1"
        assert seen[-1] is None
        assert manager.get_redemption("r1")["status"] == const.REDEMPTION_STATUS_PENDING
        unsub()

    async def test_submit_proof_for_unknown_redemption(
        self, scenario_redemptions: SetupResult
    ) -> None:
        with pytest.raises(HomeAssistantError):
            await manager_of(scenario_redemptions).async_submit_proof(
                "missing", VALID_PROOF, ["https://img/1.jpg"]
            )

        validation_manager = scenario_redemptions.coordinator.validation_manager
        assert validation_manager.find_workflow("missing") is None
        scenario_redemptions.api.async_submit_challenge_proof.assert_not_awaited()

    async def test_submit_proof_needs_assigned_challenge(
        self, scenario_redemptions: SetupResult
    ) -> None:
        with pytest.raises(HabitRushApiError) as err:
            await manager_of(scenario_redemptions).async_submit_proof(
                "r1", VALID_PROOF, ["https://img/1.jpg"]
            )

        assert err.value.error_code == const.ERROR_NO_CHALLENGE_ASSIGNED
        scenario_redemptions.api.async_submit_challenge_proof.assert_not_awaited()

    async def test_submit_proof(
        self, hass: HomeAssistant, scenario_redemptions: SetupResult
    ) -> None:
        api = scenario_redemptions.api
        api.async_submit_challenge_proof.return_value = make_submit_response("v1")

        result = await manager_of(scenario_redemptions).async_submit_proof(
            "r2", VALID_PROOF, ["https://img/1.jpg"]
        )
        await hass.async_block_till_done()

        assert result[const.RESULT_VALIDATION_ID] == "v1"
        assert result[const.RESULT_STATE] == const.WORKFLOW_STATE_PENDING_REVIEW
        api.async_submit_challenge_proof.assert_awaited_once_with(
            "r2", VALID_PROOF, ["https://img/1.jpg"]
        )
        workflow = scenario_redemptions.coordinator.validation_manager.find_workflow("r2")
        assert workflow is not None
        assert workflow.is_polling
