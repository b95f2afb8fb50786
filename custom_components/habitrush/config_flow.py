# File: config_flow.py
"""Config flow for the HabitRush integration.

A single step asks for the server URL and an API token, checks them against
GET /users/me and creates one entry per remote user.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import HabitRushOptionsFlowHandler


class HabitRushConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for HabitRush."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Ask for the server URL and API token."""
        errors: dict[str, str] = {}

        if user_input is not None:
            data = fh.build_user_data(user_input)
            profile, errors = await fh.async_validate_credentials(self.hass, data)
            if not errors and profile is not None:
                await self.async_set_unique_id(str(profile[const.DATA_USER_ID]))
                self._abort_if_unique_id_configured()

                title = (
                    profile.get(const.DATA_USER_USERNAME)
                    or profile.get(const.DATA_USER_NAME)
                    or const.HABITRUSH_TITLE
                )
                const.LOGGER.info("INFO: Creating HabitRush entry for %s", title)
                return self.async_create_entry(
                    title=title,
                    data=data,
                    options=fh.build_options_data({}),
                )

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=fh.build_user_schema(user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return HabitRushOptionsFlowHandler(config_entry)
