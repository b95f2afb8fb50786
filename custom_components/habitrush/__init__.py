# File: __init__.py
"""Initialization file for the HabitRush integration.

Handles setting up the integration, including loading configuration entries,
initializing the redemption ledger, and preparing the coordinator and its
managers.

Key Features:
- Config entry setup, unload and removal support.
- Coordinator initialization for profile and habit synchronization.
- Redemption scheduler and validation workflows armed after the first refresh.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .api import HabitRushApiClient, HabitRushApiError
from .coordinator import HabitRushDataCoordinator
from .services import async_setup_services, async_unload_services
from .storage_manager import HabitRushStorageManager, entry_storage_key
from .utils import dt_utils


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for HabitRush entry: %s", entry.entry_id)

    # Must be done early before any components that use datetime helpers
    const.set_default_timezone(hass)
    dt_utils.set_default_timezone(const.DEFAULT_TIME_ZONE)

    # Each entry keeps its own life-challenge ledger.
    storage_manager = HabitRushStorageManager(hass, entry_storage_key(entry.entry_id))
    await storage_manager.async_initialize()

    api = HabitRushApiClient(
        hass, entry.data[const.CONF_BASE_URL], entry.data[const.CONF_API_TOKEN]
    )

    # Create the data coordinator for managing updates and synchronization.
    coordinator = HabitRushDataCoordinator(hass, entry, api, storage_manager)

    try:
        # Perform the first refresh to load data.
        await coordinator.async_config_entry_first_refresh()
    except ConfigEntryNotReady as e:
        const.LOGGER.error("ERROR: Failed to refresh coordinator data: %s", e)
        raise

    # Store the coordinator and data manager in hass.data.
    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORAGE_MANAGER: storage_manager,
        const.API_CLIENT: api,
    }

    # Arm the redemption scheduler and validation workflows.
    await coordinator.async_setup_managers()
    try:
        await coordinator.redemption_manager.async_refresh(visible=True)
    except HabitRushApiError as err:
        const.LOGGER.warning(
            "WARNING: Initial pending redemption fetch failed: %s", err
        )

    # Set up services required by the integration.
    async_setup_services(hass)

    # Forward the setup to supported platforms.
    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    # Reload when options change so intervals take effect.
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    const.LOGGER.info("INFO: HabitRush setup complete for entry: %s", entry.entry_id)
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after an options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading HabitRush entry: %s", entry.entry_id)

    # Unload platforms
    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
        coordinator: HabitRushDataCoordinator = entry_data[const.COORDINATOR]
        await coordinator.async_shutdown()

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("INFO: Removing HabitRush entry: %s", entry.entry_id)

    storage_manager = HabitRushStorageManager(hass, entry_storage_key(entry.entry_id))
    await storage_manager.async_delete_storage()

    const.LOGGER.info("INFO: HabitRush entry data cleared: %s", entry.entry_id)
