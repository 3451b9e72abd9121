"""Diagnostics support for SkillMap Progress integration.

Exports the published snapshot (sync state, sign-in state, ledger, badge
state, page source) together with the config entry, access token redacted.
"""

from typing import Any

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import SkillMapProgressCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: SkillMapProgressCoordinator = hass.data[const.DOMAIN][
        entry.entry_id
    ][const.COORDINATOR]

    return {
        "entry": async_redact_data(
            {"data": dict(entry.data), "options": dict(entry.options)},
            const.DIAGNOSTICS_TO_REDACT,
        ),
        "snapshot": coordinator.snapshot,
    }
