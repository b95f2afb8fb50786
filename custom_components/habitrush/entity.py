"""Base entity classes for HabitRush integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import HabitRushDataCoordinator
from .helpers.device_helpers import create_account_device_info

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


class HabitRushCoordinatorEntity(CoordinatorEntity[HabitRushDataCoordinator]):
    """Base entity class for HabitRush sensors with typed coordinator access.

    All HabitRush entities belong to the account device of their config entry
    and use translated names.
    """

    _attr_has_entity_name = True

    def __init__(
        self, coordinator: HabitRushDataCoordinator, entry: ConfigEntry, key: str
    ) -> None:
        """Initialize the entity.

        Args:
            coordinator: HabitRushDataCoordinator instance for data access.
            entry: ConfigEntry for this integration instance.
            key: Sensor key, used for the unique id.
        """
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}_{key}"
        self._attr_device_info = create_account_device_info(entry)

    @property
    def coordinator(self) -> HabitRushDataCoordinator:
        """Return typed coordinator.

        Uses object.__getattribute__ to access the private _coordinator attribute
        set by the parent CoordinatorEntity class.
        """
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: HabitRushDataCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)
