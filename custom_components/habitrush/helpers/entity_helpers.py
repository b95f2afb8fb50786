# File: helpers/entity_helpers.py
"""Lookup helpers shared by managers, entities and services."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError

from .. import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import HabitRushDataCoordinator


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Each config entry (one per HabitRush account) gets its own signal namespace
    so managers and entities of different accounts never cross-talk.

    Format: 'habitrush_{entry_id}_{suffix}'

    Example:
        get_event_signal("abc123", "redemptions_updated")
        → "habitrush_abc123_redemptions_updated"
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


def get_first_habitrush_entry(hass: HomeAssistant) -> str | None:
    """Retrieve the first loaded HabitRush config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def get_coordinator(
    hass: HomeAssistant, entry_id: str | None = None
) -> HabitRushDataCoordinator:
    """Return the coordinator for entry_id, or for the first loaded entry.

    Raises:
        HomeAssistantError: If no matching HabitRush entry is loaded.
    """
    entry_id = entry_id or get_first_habitrush_entry(hass)
    entry_data = hass.data.get(const.DOMAIN, {}).get(entry_id) if entry_id else None
    if not entry_data:
        raise HomeAssistantError("No loaded HabitRush entry found")
    return entry_data[const.COORDINATOR]
