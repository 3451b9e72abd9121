"""Shared fixtures for SkillMap Progress tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.skillmap_progress.const import (
    CONF_ACCESS_TOKEN,
    CONF_API_URL,
    CONF_SYNC_TIMEOUT,
    DATA_BADGES,
    DATA_PROFILE_ID,
    DATA_PROFILE_USERNAME,
    DOMAIN,
)
from tests.helpers import TEST_USER_ID, setup_integration

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

TEST_API_URL = "https://skillmap.test"
TEST_TOKEN = "secret-token"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="SkillMap Progress",
        data={CONF_API_URL: TEST_API_URL, CONF_ACCESS_TOKEN: TEST_TOKEN},
        options={CONF_SYNC_TIMEOUT: 10},
        entry_id="test_entry_id",
    )


@pytest.fixture
def mock_cloud_client() -> MagicMock:
    """Return a cloud client for a signed-in user with an untouched cloud ledger."""
    client = MagicMock()
    # Badges held by the backend; grants add to it
    client.server_badges = []

    async def _fetch_badge_state() -> dict[str, Any]:
        return {DATA_BADGES: list(client.server_badges)}

    async def _grant_badges(new_badges: list, _already_granted: list) -> None:
        client.server_badges.extend(new_badges)

    client.async_is_signed_in = AsyncMock(return_value=True)
    client.async_get_profile = AsyncMock(
        return_value={DATA_PROFILE_ID: TEST_USER_ID, DATA_PROFILE_USERNAME: "ada"}
    )
    client.async_load_ledger = AsyncMock(return_value=None)
    client.async_save_ledger = AsyncMock()
    client.async_transfer_local_work = AsyncMock(return_value={})
    client.async_fetch_badge_state = AsyncMock(side_effect=_fetch_badge_state)
    client.async_grant_badges = AsyncMock(side_effect=_grant_badges)
    client.async_fetch_user_preferences = AsyncMock(return_value={"reader": "default"})
    client.async_request_project_cloud_status = AsyncMock(return_value={})
    return client


@pytest.fixture
def signed_out_client(
    mock_cloud_client: MagicMock,  # pylint: disable=redefined-outer-name
) -> MagicMock:
    """Return a cloud client without a signed-in user."""
    mock_cloud_client.async_is_signed_in.return_value = False
    mock_cloud_client.async_get_profile.return_value = None
    return mock_cloud_client


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_cloud_client: MagicMock,  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the integration signed in, with the sign-in sync finished."""
    return await setup_integration(hass, mock_config_entry, mock_cloud_client)
