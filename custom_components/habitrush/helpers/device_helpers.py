# File: helpers/device_helpers.py
"""Device registry helper functions for HabitRush.

Functions that construct DeviceInfo objects for Home Assistant's device registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo

from .. import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


def create_account_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info for the HabitRush account behind a config entry.

    Args:
        config_entry: Config entry for this integration instance

    Returns:
        DeviceInfo dict for the account device
    """
    return DeviceInfo(
        identifiers={(const.DOMAIN, config_entry.unique_id or config_entry.entry_id)},
        name=config_entry.title,
        manufacturer=const.HABITRUSH_TITLE,
        model="HabitRush Account",
        entry_type=DeviceEntryType.SERVICE,
        configuration_url=config_entry.data.get(const.CONF_BASE_URL),
    )
