# File: options_flow.py
"""Options Flow for the HabitRush integration.

Edits the coordinator refresh interval and the redemption and validation poll
intervals. The entry reloads on save so the new intervals take effect.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class HabitRushOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for refresh and poll intervals."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""
        self._entry_options: dict[str, Any] = {}

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show and save the interval options."""
        self._entry_options = dict(self.config_entry.options)

        if user_input is not None:
            new_options = fh.build_options_data(user_input)
            const.LOGGER.debug("DEBUG: Saving HabitRush options: %s", new_options)
            return self.async_create_entry(title="", data=new_options)

        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=fh.build_options_schema(self._entry_options),
        )
