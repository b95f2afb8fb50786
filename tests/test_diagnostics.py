"""Tests for HabitRush diagnostics export."""

# pylint: disable=redefined-outer-name  # Pytest fixtures shadow names

from homeassistant.core import HomeAssistant

from custom_components.habitrush import const
from custom_components.habitrush.diagnostics import async_get_config_entry_diagnostics
from tests.helpers import SetupResult


async def test_config_entry_diagnostics(
    hass: HomeAssistant, init_integration: SetupResult
) -> None:
    """Token and email are redacted; runtime state is included."""
    diagnostics = await async_get_config_entry_diagnostics(
        hass, init_integration.config_entry
    )

    entry = diagnostics[const.DIAG_KEY_ENTRY]
    assert entry["data"][const.CONF_API_TOKEN] == "**REDACTED**"
    assert entry["data"][const.CONF_BASE_URL] == "http://habitrush.test/api"

    user = diagnostics[const.DIAG_KEY_DATA][const.DATA_USER]
    assert user[const.DATA_USER_EMAIL] == "**REDACTED**"
    assert user[const.DATA_USER_LIVES] == 3

    assert diagnostics[const.DIAG_KEY_REDEMPTIONS][const.ATTR_REDEMPTIONS] == []
    assert diagnostics[const.DIAG_KEY_VALIDATIONS] == {}
    assert len(diagnostics[const.DIAG_KEY_LIFE_CHALLENGES]) == len(
        const.LIFE_CHALLENGE_DEFINITIONS
    )
    assert diagnostics[const.DIAG_KEY_LEDGER] == {const.DATA_LEDGER_REDEEMED: {}}
