# File: storage_manager.py
"""Handles persistent data storage for the HabitRush integration.

Uses Home Assistant's Storage helper to keep the local life-challenge
redemption ledger across restarts. The ledger guarantees that a once-only
challenge stays redeemed even if the server status list is temporarily
unavailable or lags behind a redemption.
"""

from __future__ import annotations

from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from . import const
from .utils.dt_utils import dt_now_iso


def entry_storage_key(entry_id: str) -> str:
    """Storage key of the ledger owned by one config entry (one account)."""
    return f"{const.STORAGE_KEY}.{entry_id}"


class HabitRushStorageManager:
    """Manages loading, saving, and accessing the redemption ledger."""

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the storage manager.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).
        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    def _get_default_structure(self) -> dict[str, Any]:
        """Get the default empty data structure."""
        return {const.DATA_LEDGER_REDEEMED: {}}

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure.
        """
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("INFO: No existing HabitRush ledger found. Initializing")
            self._data = self._get_default_structure()
        else:
            self._data = existing_data
            self._data.setdefault(const.DATA_LEDGER_REDEEMED, {})
            const.LOGGER.debug(
                "DEBUG: Loaded HabitRush ledger with %s redeemed challenges",
                len(self._data[const.DATA_LEDGER_REDEEMED]),
            )

    @property
    def storage_key(self) -> str:
        """Key of the underlying Store."""
        return self._storage_key

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def get_redemption_counts(self) -> dict[str, int]:
        """Return life_challenge_id -> number of recorded redemptions."""
        return {
            challenge_id: int(entry.get(const.DATA_LEDGER_COUNT, 0))
            for challenge_id, entry in self._data.get(
                const.DATA_LEDGER_REDEEMED, {}
            ).items()
        }

    async def async_record_redemption(self, life_challenge_id: str) -> int:
        """Record one successful redemption and persist it.

        Returns:
            The new redemption count for the challenge.
        """
        ledger = self._data.setdefault(const.DATA_LEDGER_REDEEMED, {})
        entry = ledger.setdefault(
            life_challenge_id,
            {const.DATA_LEDGER_COUNT: 0, const.DATA_LEDGER_LAST_REDEEMED_AT: None},
        )
        entry[const.DATA_LEDGER_COUNT] = int(entry.get(const.DATA_LEDGER_COUNT, 0)) + 1
        entry[const.DATA_LEDGER_LAST_REDEEMED_AT] = dt_now_iso()
        await self.async_save()
        return entry[const.DATA_LEDGER_COUNT]

    async def async_save(self) -> None:
        """Save the current data to storage."""
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: HabitRush ledger saved")
        except OSError as err:
            const.LOGGER.error("ERROR: Failed to save HabitRush ledger: %s", err)

    async def async_delete_storage(self) -> None:
        """Delete the stored ledger (called when the entry is removed)."""
        await self._store.async_remove()
        self._data = self._get_default_structure()
        const.LOGGER.info("INFO: HabitRush ledger removed: %s", self._storage_key)
