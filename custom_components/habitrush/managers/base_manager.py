"""Base manager class for HabitRush managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitRushDataCoordinator


class BaseManager(ABC):
    """Base class for all HabitRush managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen)
    - Automatic cleanup via coordinator's config_entry.async_on_unload

    Subclasses must implement:
    - async_setup(): Subscribe to events, arm timers
    Subclasses owning timers override:
    - async_teardown(): Cancel every timer and drop late results
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: HabitRushDataCoordinator
    ) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator managing this integration instance
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers and entities.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_REDEMPTIONS_UPDATED)
            **payload: Event data dict passed to listeners

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_USER_DEPLETED,
                redemption_id=redemption_id,
                current_lives=0,
            )
        """
        signal = get_event_signal(self.entry_id, suffix)
        # Pass payload as single dict argument (dispatcher only supports *args)
        async_dispatcher_send(self.hass, signal, payload)

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Subscribe to instance-scoped event with automatic cleanup.

        The subscription is automatically cleaned up when the config entry is unloaded.

        Args:
            suffix: Signal suffix constant to listen for
            callback: Function called when event fires (receives payload dict as arg)
        """
        signal = get_event_signal(self.entry_id, suffix)
        unsub = async_dispatcher_connect(self.hass, signal, callback)
        self.coordinator.config_entry.async_on_unload(unsub)
        const.LOGGER.debug(
            "DEBUG: Manager %s listening to event '%s' for instance %s",
            self.__class__.__name__,
            suffix,
            self.entry_id,
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, arm timers).

        Called once after the coordinator's first refresh.
        """

    async def async_teardown(self) -> None:
        """Release timers and subscriptions owned by the manager."""
