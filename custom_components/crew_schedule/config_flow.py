"""Config and options flow for Crew Schedule."""
from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry, ConfigFlow, ConfigFlowResult, OptionsFlow
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv

from .const import (
    CONF_REQUEST_TIMEOUT,
    CONF_SCAN_INTERVAL,
    CONF_SYNC_BUDGET,
    CONF_TRACKED_DAY,
    CONF_URL,
    CONF_USER_ID,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_SYNC_BUDGET,
    DEFAULT_URL,
    DOMAIN,
)


def _options_schema(current: dict[str, Any]) -> vol.Schema:
    return vol.Schema(
        {
            vol.Optional(CONF_URL, default=current.get(CONF_URL, DEFAULT_URL)): cv.url,
            vol.Optional(
                CONF_TRACKED_DAY,
                description={"suggested_value": current.get(CONF_TRACKED_DAY)},
            ): cv.string,
            vol.Optional(
                CONF_SCAN_INTERVAL, default=current.get(CONF_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL)
            ): vol.All(vol.Coerce(int), vol.Range(min=5, max=24 * 60)),
            vol.Optional(
                CONF_SYNC_BUDGET, default=current.get(CONF_SYNC_BUDGET, DEFAULT_SYNC_BUDGET)
            ): vol.All(vol.Coerce(int), vol.Range(min=5, max=120)),
            vol.Optional(
                CONF_REQUEST_TIMEOUT, default=current.get(CONF_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT)
            ): vol.All(vol.Coerce(int), vol.Range(min=1, max=120)),
        }
    )


class CrewScheduleConfigFlow(ConfigFlow, domain=DOMAIN):
    """Ask for the schedule endpoint and the user it belongs to."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        if user_input is not None:
            user_id = user_input[CONF_USER_ID].strip()
            await self.async_set_unique_id(user_id)
            self._abort_if_unique_id_configured()
            return self.async_create_entry(
                title=f"Crew Schedule ({user_id})",
                data={**user_input, CONF_USER_ID: user_id},
            )

        schema = vol.Schema(
            {
                vol.Required(CONF_USER_ID): cv.string,
                vol.Optional(CONF_URL, default=DEFAULT_URL): cv.url,
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        return CrewScheduleOptionsFlow()


class CrewScheduleOptionsFlow(OptionsFlow):
    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(step_id="init", data_schema=_options_schema(current))
