"""Diagnostics support for HabitRush integration.

Exports the config entry (token redacted), the last coordinator snapshot, the
redemption store, every validation workflow, life-challenge evaluations and the
local redemption ledger for troubleshooting.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import HabitRushDataCoordinator

TO_REDACT = {const.CONF_API_TOKEN, const.DATA_USER_EMAIL}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: HabitRushDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    redemption_manager = coordinator.redemption_manager

    return {
        const.DIAG_KEY_ENTRY: async_redact_data(
            {"data": dict(entry.data), "options": dict(entry.options)}, TO_REDACT
        ),
        const.DIAG_KEY_DATA: async_redact_data(coordinator.data or {}, TO_REDACT),
        const.DIAG_KEY_REDEMPTIONS: {
            const.ATTR_REDEMPTIONS: redemption_manager.redemptions,
            const.ATTR_LOADING: redemption_manager.loading,
            const.ATTR_ERROR: redemption_manager.error,
            "last_refresh": (
                redemption_manager.last_refresh.isoformat()
                if redemption_manager.last_refresh
                else None
            ),
            "countdown_active": redemption_manager.countdown_active,
        },
        const.DIAG_KEY_VALIDATIONS: {
            redemption_id: workflow.as_dict()
            for redemption_id, workflow in coordinator.validation_manager.workflows.items()
        },
        const.DIAG_KEY_LIFE_CHALLENGES: (
            coordinator.life_challenge_manager.get_evaluations()
        ),
        const.DIAG_KEY_LEDGER: coordinator.storage_manager.data,
    }
