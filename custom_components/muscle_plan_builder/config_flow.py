"""Config flow for Muscle Plan Builder."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    CONF_AUTOSAVE_DELAY,
    CONF_COACH_ID,
    CONF_HISTORY_LIMIT,
    CONF_NAME,
    CONF_SAVE_TIMEOUT,
    DEFAULT_AUTOSAVE_DELAY,
    DEFAULT_COACH_ID,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_NAME,
    DEFAULT_SAVE_TIMEOUT,
    DOMAIN,
)


class MusclePlanBuilderConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Muscle Plan Builder."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        if user_input is not None:
            name = str(user_input.get(CONF_NAME, DEFAULT_NAME)).strip() or DEFAULT_NAME
            await self.async_set_unique_id(name.lower())
            self._abort_if_unique_id_configured()

            return self.async_create_entry(
                title=name,
                data={
                    CONF_NAME: name,
                    CONF_COACH_ID: str(user_input.get(CONF_COACH_ID) or "").strip(),
                },
            )

        schema = vol.Schema(
            {
                vol.Required(CONF_NAME, default=DEFAULT_NAME): str,
                vol.Optional(CONF_COACH_ID, default=DEFAULT_COACH_ID): str,
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        return MusclePlanBuilderOptionsFlow(config_entry)


class MusclePlanBuilderOptionsFlow(config_entries.OptionsFlow):
    """Handle autosave and history options."""

    def __init__(self, config_entry) -> None:
        self._entry = config_entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        if user_input is not None:
            return self.async_create_entry(title="", data=dict(user_input))

        opts = self._entry.options
        schema = vol.Schema(
            {
                vol.Required(
                    CONF_AUTOSAVE_DELAY,
                    default=float(opts.get(CONF_AUTOSAVE_DELAY, DEFAULT_AUTOSAVE_DELAY)),
                ): vol.All(vol.Coerce(float), vol.Range(min=0.5, max=60)),
                vol.Required(
                    CONF_SAVE_TIMEOUT,
                    default=float(opts.get(CONF_SAVE_TIMEOUT, DEFAULT_SAVE_TIMEOUT)),
                ): vol.All(vol.Coerce(float), vol.Range(min=1, max=120)),
                vol.Required(
                    CONF_HISTORY_LIMIT,
                    default=int(opts.get(CONF_HISTORY_LIMIT, DEFAULT_HISTORY_LIMIT)),
                ): vol.All(vol.Coerce(int), vol.Range(min=1, max=500)),
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
