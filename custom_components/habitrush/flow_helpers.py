# File: flow_helpers.py
"""Helpers for the HabitRush integration's Config and Options flow.

Provides schema builders, input normalization and credential validation:
- build_<step>_schema(default) -> vol.Schema
- build_<step>_data(user_input) -> dict stored on the config entry
- async_validate_credentials(hass, user_input) -> (profile, errors_dict)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const
from .api import HabitRushApiClient, HabitRushApiError, HabitRushAuthError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import UserProfileData


# ----------------------------------------------------------------------------------
# CONNECTION
# ----------------------------------------------------------------------------------


def build_user_schema(default: dict[str, Any] | None = None) -> vol.Schema:
    """Build schema for the server URL and API token."""
    default = default or {}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_BASE_URL,
                default=default.get(const.CONF_BASE_URL, const.DEFAULT_BASE_URL),
            ): selector.TextSelector(
                selector.TextSelectorConfig(type=selector.TextSelectorType.URL)
            ),
            vol.Required(const.CONF_API_TOKEN): selector.TextSelector(
                selector.TextSelectorConfig(type=selector.TextSelectorType.PASSWORD)
            ),
        }
    )


def build_user_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Normalize connection input for storage on the config entry."""
    return {
        const.CONF_BASE_URL: str(user_input[const.CONF_BASE_URL]).strip().rstrip("/"),
        const.CONF_API_TOKEN: str(user_input[const.CONF_API_TOKEN]).strip(),
    }


async def async_validate_credentials(
    hass: HomeAssistant, data: dict[str, Any]
) -> tuple[UserProfileData | None, dict[str, str]]:
    """Fetch the user profile to check the URL and token.

    Returns:
        (profile, errors). errors is empty when the credentials work.
    """
    api = HabitRushApiClient(
        hass, data[const.CONF_BASE_URL], data[const.CONF_API_TOKEN]
    )
    try:
        profile = await api.async_get_user_profile()
    except HabitRushAuthError:
        return None, {"base": const.CFOP_ERROR_INVALID_AUTH}
    except HabitRushApiError as err:
        const.LOGGER.warning("WARNING: Unable to reach HabitRush server: %s", err)
        return None, {"base": const.CFOP_ERROR_CANNOT_CONNECT}

    if not isinstance(profile, dict) or not profile.get(const.DATA_USER_ID):
        const.LOGGER.warning("WARNING: Unexpected HabitRush profile response")
        return None, {"base": const.CFOP_ERROR_UNKNOWN}
    return profile, {}


# ----------------------------------------------------------------------------------
# OPTIONS
# ----------------------------------------------------------------------------------


def build_options_schema(default: dict[str, Any] | None = None) -> vol.Schema:
    """Build schema for refresh and poll intervals."""
    default = default or {}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_UPDATE_INTERVAL,
                default=default.get(
                    const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
                ),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    mode=selector.NumberSelectorMode.BOX,
                    min=const.MIN_UPDATE_INTERVAL,
                    max=const.MAX_UPDATE_INTERVAL,
                    step=1,
                )
            ),
            vol.Required(
                const.CONF_REDEMPTION_POLL_INTERVAL,
                default=default.get(
                    const.CONF_REDEMPTION_POLL_INTERVAL,
                    const.DEFAULT_REDEMPTION_POLL_INTERVAL,
                ),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    mode=selector.NumberSelectorMode.BOX,
                    min=const.MIN_POLL_INTERVAL,
                    max=const.MAX_POLL_INTERVAL,
                    step=1,
                )
            ),
            vol.Required(
                const.CONF_VALIDATION_POLL_INTERVAL,
                default=default.get(
                    const.CONF_VALIDATION_POLL_INTERVAL,
                    const.DEFAULT_VALIDATION_POLL_INTERVAL,
                ),
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    mode=selector.NumberSelectorMode.BOX,
                    min=const.MIN_POLL_INTERVAL,
                    max=const.MAX_POLL_INTERVAL,
                    step=1,
                )
            ),
        }
    )


def build_options_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Number selectors return floats; intervals are stored as ints."""
    return {
        const.CONF_UPDATE_INTERVAL: int(
            user_input.get(const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL)
        ),
        const.CONF_REDEMPTION_POLL_INTERVAL: int(
            user_input.get(
                const.CONF_REDEMPTION_POLL_INTERVAL,
                const.DEFAULT_REDEMPTION_POLL_INTERVAL,
            )
        ),
        const.CONF_VALIDATION_POLL_INTERVAL: int(
            user_input.get(
                const.CONF_VALIDATION_POLL_INTERVAL,
                const.DEFAULT_VALIDATION_POLL_INTERVAL,
            )
        ),
    }
