# File: api.py
"""Cloud backend client for the SkillMap Progress integration.

Thin aiohttp wrapper around the signed-in user's cloud account: profile,
progress ledger, saved-work transfer, badge state and badge grants. Uses Home
Assistant's shared client session.

Every failure is translated into a SkillMapCloudError subclass so managers can
recover at well-defined seams:
- TransferFailedError: the local -> cloud work transfer failed or timed out
- GrantFailedError: the badge backend rejected or timed out a grant
- SkillMapAuthError: the access token is missing, expired or rejected
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import aiohttp
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import BadgeData, BadgeState, HeaderIdMap, LedgerData, Profile


class SkillMapCloudError(HomeAssistantError):
    """Error talking to the cloud backend."""


class SkillMapAuthError(SkillMapCloudError):
    """The cloud backend rejected our credentials."""


class TransferFailedError(SkillMapCloudError):
    """Transferring local work to cloud storage failed."""


class GrantFailedError(SkillMapCloudError):
    """The badge backend did not accept a grant request."""


class SkillMapCloudClient:
    """Client for the skill map cloud account API."""

    def __init__(
        self,
        hass: HomeAssistant,
        api_url: str,
        access_token: str | None = None,
        timeout: float = const.DEFAULT_API_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            hass: Home Assistant core object.
            api_url: Base URL of the cloud backend.
            access_token: Bearer token of the signed-in user, if any.
            timeout: Per-request timeout in seconds.
        """
        self.hass = hass
        self._api_url = api_url.rstrip("/")
        self._access_token = access_token
        self._timeout = timeout
        self._profile: Profile | None = None

    @property
    def has_credentials(self) -> bool:
        """Return True if an access token is configured."""
        return bool(self._access_token)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def _async_request(
        self, method: str, path: str, payload: Any = None
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        session = async_get_clientsession(self.hass)
        url = f"{self._api_url}{path}"
        try:
            async with asyncio.timeout(self._timeout):
                async with session.request(
                    method, url, json=payload, headers=self._headers()
                ) as response:
                    if response.status in (401, 403):
                        raise SkillMapAuthError(
                            f"HTTP {response.status} from {method} {url}"
                        )
                    if response.status >= 400:
                        raise SkillMapCloudError(
                            f"HTTP {response.status} from {method} {url}"
                        )
                    if response.status == 204:
                        return None
                    try:
                        return await response.json(content_type=None)
                    except ValueError as err:
                        raise SkillMapCloudError(
                            f"Invalid JSON from {method} {url}: {err}"
                        ) from err
        except TimeoutError as err:
            raise SkillMapCloudError(f"Timeout calling {method} {url}") from err
        except aiohttp.ClientError as err:
            raise SkillMapCloudError(f"Error calling {method} {url}: {err}") from err

    # -------------------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------------------

    async def async_get_profile(self) -> Profile | None:
        """Return the signed-in user's profile, or None when signed out."""
        if self._profile is not None:
            return self._profile
        if not self.has_credentials:
            return None

        try:
            payload = await self._async_request("GET", const.API_PATH_PROFILE)
        except SkillMapAuthError:
            const.LOGGER.info("INFO: Cloud access token rejected, treating as signed out")
            return None

        if not isinstance(payload, dict) or not payload.get(const.DATA_PROFILE_ID):
            const.LOGGER.warning("WARNING: Unexpected profile response: %s", payload)
            return None

        self._profile = payload  # type: ignore[assignment]
        return self._profile

    async def async_is_signed_in(self) -> bool:
        """Return True if the configured credentials identify a user."""
        return await self.async_get_profile() is not None

    # -------------------------------------------------------------------------------------
    # Saved work
    # -------------------------------------------------------------------------------------

    async def async_transfer_local_work(self, header_ids: list[str]) -> HeaderIdMap:
        """Copy locally saved work into cloud storage.

        Returns:
            Mapping of old header id -> new header id (may be partial).

        Raises:
            TransferFailedError: The transfer could not be completed.
        """
        try:
            payload = await self._async_request(
                "POST",
                const.API_PATH_TRANSFER_PROJECTS,
                {const.API_KEY_HEADER_IDS: header_ids},
            )
        except SkillMapCloudError as err:
            raise TransferFailedError(str(err)) from err

        if not isinstance(payload, dict):
            return {}
        header_map = payload.get(const.API_KEY_HEADER_ID_MAP)
        if not isinstance(header_map, dict):
            return {}
        return {
            str(old): str(new) for old, new in header_map.items() if old and new
        }

    async def async_request_project_cloud_status(
        self, header_ids: list[str]
    ) -> dict[str, Any]:
        """Ask the backend for the cloud status of saved work."""
        payload = await self._async_request(
            "POST",
            const.API_PATH_PROJECT_CLOUD_STATUS,
            {const.API_KEY_HEADER_IDS: header_ids},
        )
        return payload if isinstance(payload, dict) else {}

    # -------------------------------------------------------------------------------------
    # Progress ledger
    # -------------------------------------------------------------------------------------

    async def async_load_ledger(self) -> dict[str, Any] | None:
        """Return the cloud copy of the progress ledger (None if never saved)."""
        payload = await self._async_request("GET", const.API_PATH_PROGRESS)
        return payload if isinstance(payload, dict) else None

    async def async_save_ledger(self, ledger: LedgerData) -> None:
        """Replace the cloud copy of the progress ledger."""
        await self._async_request("PUT", const.API_PATH_PROGRESS, ledger)

    # -------------------------------------------------------------------------------------
    # Badges and preferences
    # -------------------------------------------------------------------------------------

    async def async_fetch_badge_state(self) -> BadgeState:
        """Return the badges already granted to the user.

        Raises:
            SkillMapCloudError: The request failed or the body is not a badge state.
        """
        payload = await self._async_request("GET", const.API_PATH_BADGES)
        if payload is None:
            return {const.DATA_BADGES: []}
        if not isinstance(payload, dict):
            raise SkillMapCloudError(f"Unexpected badge state response: {payload!r}")
        badges = payload.get(const.DATA_BADGES)
        if not isinstance(badges, list):
            return {const.DATA_BADGES: []}
        return {const.DATA_BADGES: [b for b in badges if isinstance(b, dict)]}

    async def async_grant_badges(
        self, new_badges: list[BadgeData], already_granted: list[BadgeData]
    ) -> None:
        """Ask the badge backend to grant new_badges.

        Raises:
            GrantFailedError: The grant was rejected or timed out.
        """
        try:
            await self._async_request(
                "POST",
                const.API_PATH_GRANT_BADGES,
                {
                    const.API_KEY_NEW_BADGES: new_badges,
                    const.API_KEY_GRANTED_BADGES: already_granted,
                },
            )
        except SkillMapCloudError as err:
            raise GrantFailedError(str(err)) from err

    async def async_fetch_user_preferences(self) -> dict[str, Any] | None:
        """Return the user's preferences as stored by the backend."""
        payload = await self._async_request("GET", const.API_PATH_PREFERENCES)
        return payload if isinstance(payload, dict) else None
