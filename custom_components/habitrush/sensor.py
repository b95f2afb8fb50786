# File: sensor.py
"""Sensors for the HabitRush integration.

Sensors Defined in This File (5):

01. LivesSensor
02. PendingRedemptionsSensor
03. MostUrgentRedemptionSensor
04. ValidationStatusSensor
05. RedeemableLifeChallengesSensor

Redemption and validation sensors follow dispatcher signals from the managers,
so they update on every countdown tick and poll result without waiting for the
coordinator interval.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from . import const
from .coordinator import HabitRushDataCoordinator
from .entity import HabitRushCoordinatorEntity
from .helpers.entity_helpers import get_event_signal
from .type_defs import PendingRedemptionData
from .utils.time_utils import format_time_remaining, get_urgency_level


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for HabitRush integration."""
    coordinator: HabitRushDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    async_add_entities(
        [
            LivesSensor(coordinator, entry),
            PendingRedemptionsSensor(coordinator, entry),
            MostUrgentRedemptionSensor(coordinator, entry),
            ValidationStatusSensor(coordinator, entry),
            RedeemableLifeChallengesSensor(coordinator, entry),
        ]
    )


def _redemption_attributes(redemption: PendingRedemptionData) -> dict[str, Any]:
    """Display view of one redemption."""
    remaining = redemption.get(const.DATA_REDEMPTION_TIME_REMAINING_MS, 0)
    challenge = redemption.get(const.DATA_REDEMPTION_ASSIGNED_CHALLENGE) or {}
    return {
        const.ATTR_REDEMPTION_ID: redemption.get(const.DATA_REDEMPTION_ID),
        const.ATTR_HABIT_NAME: redemption.get(const.DATA_REDEMPTION_HABIT_NAME),
        const.ATTR_STATUS: redemption.get(const.DATA_REDEMPTION_STATUS),
        const.ATTR_TIME_REMAINING: format_time_remaining(remaining),
        const.ATTR_URGENCY: get_urgency_level(remaining),
        const.ATTR_CHALLENGE_TITLE: challenge.get(const.DATA_CHALLENGE_TITLE),
    }


class HabitRushSignalSensor(HabitRushCoordinatorEntity, SensorEntity):
    """Sensor that also refreshes on instance-scoped dispatcher signals."""

    _signal_suffixes: tuple[str, ...] = ()

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry, key: str
    ) -> None:
        super().__init__(coordinator, entry, key)
        self._entry_id = entry.entry_id

    async def async_added_to_hass(self) -> None:
        """Subscribe to manager signals."""
        await super().async_added_to_hass()
        for suffix in self._signal_suffixes:
            self.async_on_remove(
                async_dispatcher_connect(
                    self.hass,
                    get_event_signal(self._entry_id, suffix),
                    self._handle_signal,
                )
            )

    @callback
    def _handle_signal(self, _payload: dict[str, Any]) -> None:
        self.async_write_ha_state()


class LivesSensor(HabitRushCoordinatorEntity, SensorEntity):
    """Current number of lives of the HabitRush user."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_LIVES
    _attr_icon = const.SENSOR_ICON_LIVES
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry
    ) -> None:
        super().__init__(coordinator, entry, const.SENSOR_KEY_LIVES)

    @property
    def _user(self) -> dict[str, Any]:
        return (self.coordinator.data or {}).get(const.DATA_USER) or {}

    @property
    def native_value(self) -> int | None:
        """Return the user's lives."""
        return self._user.get(const.DATA_USER_LIVES)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            const.ATTR_MAX_LIVES: self._user.get(const.DATA_USER_MAX_LIVES),
            const.ATTR_XP: self._user.get(const.DATA_USER_XP),
            const.ATTR_USERNAME: self._user.get(const.DATA_USER_USERNAME),
        }


class PendingRedemptionsSensor(HabitRushSignalSensor):
    """Number of redemptions awaiting a decision.

    Attributes list every active redemption with its formatted remaining time
    and urgency tier.
    """

    _attr_translation_key = const.TRANS_KEY_SENSOR_PENDING_REDEMPTIONS
    _attr_icon = const.SENSOR_ICON_PENDING_REDEMPTIONS
    _unrecorded_attributes = frozenset({const.ATTR_REDEMPTIONS})
    _signal_suffixes = (const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED,)

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry
    ) -> None:
        super().__init__(coordinator, entry, const.SENSOR_KEY_PENDING_REDEMPTIONS)

    @property
    def native_value(self) -> int:
        return len(self.coordinator.redemption_manager.actionable)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        manager = self.coordinator.redemption_manager
        return {
            const.ATTR_REDEMPTIONS: [
                _redemption_attributes(redemption)
                for redemption in manager.actionable
            ],
            const.ATTR_URGENT_COUNT: len(manager.urgent),
            const.ATTR_LOADING: manager.loading,
            const.ATTR_ERROR: manager.error,
        }


class MostUrgentRedemptionSensor(HabitRushSignalSensor):
    """Remaining time of the redemption closest to expiry."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_MOST_URGENT_REDEMPTION
    _attr_icon = const.SENSOR_ICON_MOST_URGENT
    _signal_suffixes = (const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED,)

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry
    ) -> None:
        super().__init__(coordinator, entry, const.SENSOR_KEY_MOST_URGENT_REDEMPTION)

    @property
    def native_value(self) -> str | None:
        redemption = self.coordinator.redemption_manager.most_urgent
        if redemption is None:
            return None
        return format_time_remaining(
            redemption.get(const.DATA_REDEMPTION_TIME_REMAINING_MS, 0)
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        redemption = self.coordinator.redemption_manager.most_urgent
        if redemption is None:
            return {}
        return _redemption_attributes(redemption)


class ValidationStatusSensor(HabitRushSignalSensor):
    """Workflow state of the redemption that has a challenge assigned."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_VALIDATION_STATUS
    _attr_icon = const.SENSOR_ICON_VALIDATION
    _signal_suffixes = (
        const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED,
        const.SIGNAL_SUFFIX_VALIDATION_UPDATED,
    )

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry
    ) -> None:
        super().__init__(coordinator, entry, const.SENSOR_KEY_VALIDATION_STATUS)

    def _workflow_view(self) -> dict[str, Any] | None:
        redemption = self.coordinator.redemption_manager.with_challenge
        if redemption is None:
            return None
        workflow = self.coordinator.validation_manager.find_workflow(
            redemption[const.DATA_REDEMPTION_ID]
        )
        view = (
            workflow.as_dict()
            if workflow
            else {const.RESULT_STATE: const.WORKFLOW_STATE_IDLE}
        )
        view[const.ATTR_REDEMPTION_ID] = redemption[const.DATA_REDEMPTION_ID]
        return view

    @property
    def native_value(self) -> str | None:
        view = self._workflow_view()
        return view[const.RESULT_STATE] if view else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        view = self._workflow_view()
        if not view:
            return {}
        view.pop(const.RESULT_STATE, None)
        return view


class RedeemableLifeChallengesSensor(HabitRushSignalSensor):
    """Number of life challenges that can be redeemed right now."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_REDEEMABLE_LIFE_CHALLENGES
    _attr_icon = const.SENSOR_ICON_LIFE_CHALLENGES
    _unrecorded_attributes = frozenset({const.ATTR_LIFE_CHALLENGES})
    _signal_suffixes = (const.SIGNAL_SUFFIX_LIFE_CHALLENGE_REDEEMED,)

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry
    ) -> None:
        super().__init__(
            coordinator, entry, const.SENSOR_KEY_REDEEMABLE_LIFE_CHALLENGES
        )

    @property
    def native_value(self) -> int:
        return len(self.coordinator.life_challenge_manager.get_redeemable())

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {
            const.ATTR_LIFE_CHALLENGES: [
                {
                    const.FIELD_LIFE_CHALLENGE_ID: item["life_challenge_id"],
                    const.DATA_LIFE_CHALLENGE_TITLE: item["title"],
                    const.DATA_LIFE_CHALLENGE_REWARD: item["reward"],
                    const.DATA_LIFE_CHALLENGE_REDEEMABLE_TYPE: item["redeemable_type"],
                    const.ATTR_STATUS: item["status"],
                    const.ATTR_REDEEMABLE: item["redeemable"],
                }
                for item in self.coordinator.life_challenge_manager.get_evaluations()
            ]
        }
