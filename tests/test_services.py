"""Tests for SkillMap Progress services.

Services are the store-change surface: each call publishes a ledger, which is
saved and, on an approved source in cloud scope, checked for new badges.
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures shadow names
# pylint: disable=unused-argument  # Some fixtures needed for setup only

from typing import Any
from unittest.mock import MagicMock

import pytest
import voluptuous as vol
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ServiceValidationError
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_capture_events,
)

from custom_components.skillmap_progress import const
from custom_components.skillmap_progress.api import SkillMapCloudError
from tests.helpers import (
    TEST_SOURCE,
    get_coordinator,
    make_map_def,
    setup_integration,
)

MP = const.DATA_LEDGER_MAP_PROGRESS


async def _call(hass: HomeAssistant, service: str, data: dict[str, Any]) -> None:
    await hass.services.async_call(const.DOMAIN, service, data, blocking=True)
    await hass.async_block_till_done()


async def _load_source(
    hass: HomeAssistant, status: str = const.SOURCE_STATUS_APPROVED
) -> None:
    await _call(
        hass,
        const.SERVICE_SET_PAGE_SOURCE,
        {
            const.FIELD_SOURCE: TEST_SOURCE,
            const.FIELD_STATUS: status,
            const.FIELD_MAPS: [make_map_def("map1")],
        },
    )


async def _complete(hass: HomeAssistant, *activity_ids: str) -> None:
    for activity_id in activity_ids:
        await _call(
            hass,
            const.SERVICE_RECORD_ACTIVITY,
            {const.FIELD_MAP_ID: "map1", const.FIELD_ACTIVITY_ID: activity_id},
        )


def _granted_ids(client: MagicMock) -> list[list[str]]:
    return [
        [badge[const.DATA_BADGE_ID] for badge in call.args[0]]
        for call in client.async_grant_badges.await_args_list
    ]


# =============================================================================
# SET PAGE SOURCE
# =============================================================================


async def test_set_page_source_loads_maps(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Maps are keyed by id and the ledger gains a bucket for the source."""
    await _load_source(hass)
    coordinator = get_coordinator(hass, init_integration)

    assert coordinator.source_url == TEST_SOURCE
    assert coordinator.source_status == const.SOURCE_STATUS_APPROVED
    assert list(coordinator.maps) == ["map1"]
    assert coordinator.ledger[MP][TEST_SOURCE] == {}
    assert coordinator.data[const.SNAPSHOT_SOURCE_URL] == TEST_SOURCE


async def test_set_page_source_rejects_unknown_status(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Status must be one of the known page source statuses."""
    with pytest.raises(vol.Invalid):
        await hass.services.async_call(
            const.DOMAIN,
            const.SERVICE_SET_PAGE_SOURCE,
            {const.FIELD_SOURCE: TEST_SOURCE, const.FIELD_STATUS: "trusted"},
            blocking=True,
        )


# =============================================================================
# RECORD ACTIVITY AND BADGES
# =============================================================================


async def test_completing_map_grants_badge_once(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """The map badge is granted when its completion node is reached."""
    coordinator = get_coordinator(hass, init_integration)
    client = coordinator.client
    events = async_capture_events(hass, const.EVENT_BADGES_GRANTED)
    await _load_source(hass)

    await _complete(hass, "a1")
    client.async_grant_badges.assert_not_awaited()

    await _complete(hass, "a2", "a2")

    assert _granted_ids(client) == [["map1-badge"]]
    assert client.async_grant_badges.await_args.args[1] == []
    assert coordinator.preferences == {"reader": "default"}
    assert len(events) == 1
    record = coordinator.ledger[MP][TEST_SOURCE]["map1"]
    assert record[const.DATA_MAP_COMPLETION_STATE] == const.MAP_STATE_COMPLETED
    assert coordinator.ledger[const.DATA_LEDGER_COMPLETED_TAGS][TEST_SOURCE] == {
        "intro": 2,
        "loops": 1,
    }


async def test_record_activity_saves_to_cloud(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Each activity event persists the new ledger version."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass)

    await _call(
        hass,
        const.SERVICE_RECORD_ACTIVITY,
        {
            const.FIELD_MAP_ID: "map1",
            const.FIELD_ACTIVITY_ID: "a1",
            const.FIELD_HEADER_ID: "h1",
        },
    )

    coordinator.client.async_save_ledger.assert_awaited_with(coordinator.ledger)
    activity = coordinator.ledger[MP][TEST_SOURCE]["map1"][
        const.DATA_MAP_ACTIVITY_STATE
    ]["a1"]
    assert activity[const.DATA_ACTIVITY_HEADER_ID] == "h1"


@pytest.mark.parametrize(
    "status",
    [
        const.SOURCE_STATUS_UNKNOWN,
        const.SOURCE_STATUS_BANNED,
        const.SOURCE_STATUS_NOT_APPROVED,
    ],
)
async def test_unapproved_source_grants_nothing(
    hass: HomeAssistant, init_integration: MockConfigEntry, status: str
) -> None:
    """Badges are only issued for approved page sources."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass, status)

    await _complete(hass, "a1", "a2")

    coordinator.client.async_grant_badges.assert_not_awaited()


async def test_signed_out_grants_nothing(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    signed_out_client: MagicMock,
) -> None:
    """Local-scope progress never reaches the badge backend."""
    await setup_integration(hass, mock_config_entry, signed_out_client)
    await _load_source(hass)

    await _complete(hass, "a1", "a2")

    signed_out_client.async_grant_badges.assert_not_awaited()
    signed_out_client.async_save_ledger.assert_not_awaited()


async def test_badges_held_on_server_are_not_requested_again(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_cloud_client: MagicMock,
) -> None:
    """A failed sign-in badge fetch does not cause held badges to be re-granted."""
    held = {
        const.DATA_BADGE_ID: "map1-badge",
        const.DATA_BADGE_SOURCE_URL: TEST_SOURCE,
        const.DATA_BADGE_TYPE: const.BADGE_TYPE_SKILLMAP_COMPLETION,
    }
    mock_cloud_client.server_badges.append(held)
    fetch_results = [SkillMapCloudError("badge service down")]

    async def _fetch_badge_state() -> dict[str, Any]:
        if fetch_results:
            raise fetch_results.pop()
        return {const.DATA_BADGES: list(mock_cloud_client.server_badges)}

    mock_cloud_client.async_fetch_badge_state.side_effect = _fetch_badge_state
    await setup_integration(hass, mock_config_entry, mock_cloud_client)
    coordinator = get_coordinator(hass, mock_config_entry)
    assert coordinator.badge_state == {const.DATA_BADGES: []}
    await _load_source(hass)

    await _call(
        hass,
        const.SERVICE_DEBUG_PROGRESS,
        {const.FIELD_MODE: const.DEBUG_MODE_COMPLETED},
    )

    mock_cloud_client.async_grant_badges.assert_not_awaited()
    assert coordinator.badge_state == {const.DATA_BADGES: [held]}


async def test_record_activity_without_source(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Activity events need a loaded page source."""
    with pytest.raises(ServiceValidationError) as err:
        await _complete(hass, "a1")

    assert err.value.translation_key == const.TRANS_KEY_ERROR_NO_SOURCE


async def test_record_activity_unknown_map(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Maps outside the page source are rejected."""
    await _load_source(hass)

    with pytest.raises(ServiceValidationError) as err:
        await _call(
            hass,
            const.SERVICE_RECORD_ACTIVITY,
            {const.FIELD_MAP_ID: "nope", const.FIELD_ACTIVITY_ID: "a1"},
        )

    assert err.value.translation_key == const.TRANS_KEY_ERROR_UNKNOWN_MAP


async def test_record_activity_unknown_activity(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Activities outside the map are rejected and the ledger is untouched."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass)
    before = coordinator.ledger

    with pytest.raises(ServiceValidationError) as err:
        await _complete(hass, "nope")

    assert err.value.translation_key == const.TRANS_KEY_ERROR_UNKNOWN_ACTIVITY
    assert coordinator.ledger is before


# =============================================================================
# SAVE ACTIVITY PROJECT
# =============================================================================


async def test_save_activity_project_attaches_header(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Saved work is attached without completing the activity."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass)

    await _call(
        hass,
        const.SERVICE_SAVE_ACTIVITY_PROJECT,
        {
            const.FIELD_MAP_ID: "map1",
            const.FIELD_ACTIVITY_ID: "a2",
            const.FIELD_HEADER_ID: "h2",
        },
    )

    activity = coordinator.ledger[MP][TEST_SOURCE]["map1"][
        const.DATA_MAP_ACTIVITY_STATE
    ]["a2"]
    assert activity[const.DATA_ACTIVITY_HEADER_ID] == "h2"
    assert activity[const.DATA_ACTIVITY_IS_COMPLETED] is False


# =============================================================================
# DEBUG PROGRESS
# =============================================================================


async def test_debug_completed_grants_badges(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Completing everything earns every map badge."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass)

    await _call(
        hass,
        const.SERVICE_DEBUG_PROGRESS,
        {const.FIELD_MODE: const.DEBUG_MODE_COMPLETED},
    )

    assert _granted_ids(coordinator.client) == [["map1-badge"]]


async def test_debug_new_user_resets_source(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """new_user drops all progress but keeps identity and bumps the version."""
    coordinator = get_coordinator(hass, init_integration)
    await _load_source(hass)
    await _complete(hass, "a1")
    version = coordinator.ledger[const.DATA_LEDGER_VERSION]

    await _call(
        hass,
        const.SERVICE_DEBUG_PROGRESS,
        {const.FIELD_MODE: const.DEBUG_MODE_NEW_USER},
    )

    assert coordinator.ledger[MP] == {TEST_SOURCE: {}}
    assert coordinator.ledger[const.DATA_LEDGER_COMPLETED_TAGS] == {TEST_SOURCE: {}}
    assert coordinator.ledger[const.DATA_LEDGER_VERSION] == version + 1
    assert coordinator.ledger[const.DATA_LEDGER_ID] == coordinator.session_user_id
