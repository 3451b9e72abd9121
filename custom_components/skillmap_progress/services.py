# File: services.py
"""Defines custom services for the SkillMap Progress integration.

These services are the store-change surface: the page-source collaborator
loads maps, activity events complete activities or attach saved work, and
the debug service resets or completes the current source.
"""

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import SkillMapProgressCoordinator
from .helpers.event_helpers import get_loaded_coordinator

# --- Map Definition Schemas ---
BADGE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_BADGE_ID): cv.string,
        vol.Optional(
            const.DATA_BADGE_TYPE, default=const.BADGE_TYPE_SKILLMAP_COMPLETION
        ): cv.string,
        vol.Optional(const.DATA_BADGE_TITLE): cv.string,
        vol.Optional(const.DATA_BADGE_IMAGE): cv.string,
        vol.Optional(const.DATA_BADGE_SOURCE_URL): cv.string,
    }
)

REWARD_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_REWARD_TYPE): vol.In(
            [const.REWARD_TYPE_BADGE, const.REWARD_TYPE_CERTIFICATE]
        ),
        vol.Optional(const.DATA_REWARD_BADGE): BADGE_SCHEMA,
    },
    extra=vol.ALLOW_EXTRA,
)

ACTIVITY_DEF_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_ACTIVITY_ID): cv.string,
        vol.Optional(
            const.DATA_ACTIVITY_DEF_KIND, default=const.ACTIVITY_KIND_ACTIVITY
        ): vol.In(const.ACTIVITY_KINDS),
        vol.Optional(const.DATA_ACTIVITY_DEF_TAGS, default=list): vol.All(
            cv.ensure_list, [cv.string]
        ),
        vol.Optional(const.DATA_ACTIVITY_DEF_PREREQUISITES, default=list): vol.All(
            cv.ensure_list, [cv.string]
        ),
        vol.Optional(const.DATA_ACTIVITY_DEF_REWARDS, default=list): vol.All(
            cv.ensure_list, [REWARD_SCHEMA]
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

MAP_DEF_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_MAP_ID): cv.string,
        vol.Optional(const.DATA_MAP_DEF_TITLE): cv.string,
        vol.Required(const.DATA_MAP_DEF_ACTIVITIES): {cv.string: ACTIVITY_DEF_SCHEMA},
    },
    extra=vol.ALLOW_EXTRA,
)

# --- Service Schemas ---
SET_PAGE_SOURCE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_SOURCE): cv.string,
        vol.Optional(
            const.FIELD_STATUS, default=const.SOURCE_STATUS_UNKNOWN
        ): vol.In(const.SOURCE_STATUSES),
        vol.Optional(const.FIELD_MAPS, default=list): vol.All(
            cv.ensure_list, [MAP_DEF_SCHEMA]
        ),
    }
)

RECORD_ACTIVITY_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MAP_ID): cv.string,
        vol.Required(const.FIELD_ACTIVITY_ID): cv.string,
        vol.Optional(const.FIELD_HEADER_ID): cv.string,
    }
)

SAVE_ACTIVITY_PROJECT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MAP_ID): cv.string,
        vol.Required(const.FIELD_ACTIVITY_ID): cv.string,
        vol.Required(const.FIELD_HEADER_ID): cv.string,
    }
)

DEBUG_PROGRESS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_MODE): vol.In(const.DEBUG_MODES),
    }
)


def _get_coordinator(hass: HomeAssistant) -> SkillMapProgressCoordinator:
    coordinator = get_loaded_coordinator(hass)
    if coordinator is None:
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_NOT_LOADED,
        )
    return coordinator


def async_setup_services(hass: HomeAssistant):
    """Register SkillMap Progress services."""

    async def handle_set_page_source(call: ServiceCall):
        """Handle loading a page source and its maps."""
        coordinator = _get_coordinator(hass)
        coordinator.progress_manager.set_page_source(
            call.data[const.FIELD_SOURCE],
            call.data[const.FIELD_STATUS],
            call.data[const.FIELD_MAPS],
        )

    async def handle_record_activity(call: ServiceCall):
        """Handle an activity completion."""
        coordinator = _get_coordinator(hass)
        coordinator.progress_manager.record_activity(
            call.data[const.FIELD_MAP_ID],
            call.data[const.FIELD_ACTIVITY_ID],
            call.data.get(const.FIELD_HEADER_ID),
        )

    async def handle_save_activity_project(call: ServiceCall):
        """Handle attaching saved work to an activity."""
        coordinator = _get_coordinator(hass)
        coordinator.progress_manager.save_activity_project(
            call.data[const.FIELD_MAP_ID],
            call.data[const.FIELD_ACTIVITY_ID],
            call.data[const.FIELD_HEADER_ID],
        )

    async def handle_debug_progress(call: ServiceCall):
        """Handle the debug progress reset."""
        coordinator = _get_coordinator(hass)
        coordinator.progress_manager.apply_debug_progress(call.data[const.FIELD_MODE])

    services = (
        (const.SERVICE_SET_PAGE_SOURCE, handle_set_page_source, SET_PAGE_SOURCE_SCHEMA),
        (const.SERVICE_RECORD_ACTIVITY, handle_record_activity, RECORD_ACTIVITY_SCHEMA),
        (
            const.SERVICE_SAVE_ACTIVITY_PROJECT,
            handle_save_activity_project,
            SAVE_ACTIVITY_PROJECT_SCHEMA,
        ),
        (const.SERVICE_DEBUG_PROGRESS, handle_debug_progress, DEBUG_PROGRESS_SCHEMA),
    )
    for service, handler, schema in services:
        hass.services.async_register(const.DOMAIN, service, handler, schema=schema)

    const.LOGGER.info("INFO: SkillMap Progress services have been registered")


async def async_unload_services(hass: HomeAssistant):
    """Unregister SkillMap Progress services when unloading the integration."""
    services = [
        const.SERVICE_SET_PAGE_SOURCE,
        const.SERVICE_RECORD_ACTIVITY,
        const.SERVICE_SAVE_ACTIVITY_PROJECT,
        const.SERVICE_DEBUG_PROGRESS,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: SkillMap Progress services have been unregistered")
