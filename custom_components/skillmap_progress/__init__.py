# File: __init__.py
"""Initialization file for the SkillMap Progress integration.

Handles setting up the integration: loading the local ledger, creating the
cloud client and coordinator, registering services and starting the
sign-in sync for the session.

Key Features:
- Config entry setup, unload and removal.
- Options changes reload the entry, which starts a new session.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .api import SkillMapCloudClient
from .coordinator import SkillMapProgressCoordinator
from .services import async_setup_services, async_unload_services
from .store import LedgerStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for SkillMap Progress entry: %s", entry.entry_id)

    store = LedgerStore(hass)
    await store.async_initialize()

    client = SkillMapCloudClient(
        hass,
        entry.data.get(const.CONF_API_URL, const.DEFAULT_API_URL),
        entry.data.get(const.CONF_ACCESS_TOKEN),
    )

    coordinator = SkillMapProgressCoordinator(hass, entry, store, client)
    await coordinator.async_initialize()
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    # One sign-in transition per session
    entry.async_create_background_task(
        hass,
        coordinator.sync_manager.async_start(),
        name=f"{const.DOMAIN}_sync_start_{entry.entry_id}",
    )

    const.LOGGER.info("INFO: SkillMap Progress setup complete for entry: %s", entry.entry_id)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry when options change."""
    const.LOGGER.debug("DEBUG: Options changed, reloading entry %s", entry.entry_id)
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading SkillMap Progress entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("INFO: Removing SkillMap Progress entry: %s", entry.entry_id)

    store = LedgerStore(hass)
    await store.async_delete_storage()

    const.LOGGER.info("INFO: SkillMap Progress local ledger cleared: %s", entry.entry_id)
