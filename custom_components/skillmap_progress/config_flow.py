# File: config_flow.py
"""Config and options flow for the SkillMap Progress integration.

The config flow asks for the cloud backend URL and an optional access token
(signed out when empty). The options flow tunes the sign-in sync timeout.
"""

from typing import Any, Optional

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv

from . import const


def _build_user_schema(defaults: dict[str, Any]) -> vol.Schema:
    return vol.Schema(
        {
            vol.Required(
                const.CONF_API_URL,
                default=defaults.get(const.CONF_API_URL, const.DEFAULT_API_URL),
            ): cv.string,
            vol.Optional(
                const.CONF_ACCESS_TOKEN,
                default=defaults.get(const.CONF_ACCESS_TOKEN, ""),
            ): cv.string,
        }
    )


class SkillMapProgressConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for SkillMap Progress."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Ask for the cloud backend and credentials."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            api_url = user_input[const.CONF_API_URL].strip().rstrip("/")
            try:
                cv.url(api_url)
            except vol.Invalid:
                errors[const.CONF_API_URL] = const.TRANS_KEY_ERROR_INVALID_URL
            else:
                data = {const.CONF_API_URL: api_url}
                token = user_input.get(const.CONF_ACCESS_TOKEN, "").strip()
                if token:
                    data[const.CONF_ACCESS_TOKEN] = token
                return self.async_create_entry(title=const.SKILLMAP_TITLE, data=data)

        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=_build_user_schema(user_input or {}),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        """Return the options flow handler."""
        return SkillMapProgressOptionsFlowHandler()


class SkillMapProgressOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for the sync timeout."""

    async def async_step_init(self, user_input: Optional[dict[str, Any]] = None):
        """Show and save the sync options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        current_timeout = self.config_entry.options.get(
            const.CONF_SYNC_TIMEOUT, const.DEFAULT_SYNC_TIMEOUT
        )
        schema = vol.Schema(
            {
                vol.Required(const.CONF_SYNC_TIMEOUT, default=current_timeout): vol.All(
                    vol.Coerce(int),
                    vol.Range(min=const.MIN_SYNC_TIMEOUT, max=const.MAX_SYNC_TIMEOUT),
                ),
            }
        )
        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT, data_schema=schema
        )
