"""Sync Manager - sign-in reconciliation and store-change handling.

State machine, once per session (config entry load):

    idle -> checking_auth -> (not_signed_in | syncing_cloud) -> done

When signed in, the cloud sync (load cloud ledger, transfer local work, merge,
publish) runs as a background task raced against the configured sync
timeout. Whichever settles first moves the session to "done". A merge that
finishes after the timeout is still published, but "done" is never
re-entered.

The manager also reacts to every published ledger, page source change and the
settled signal: it saves the active ledger and, once the session is settled
in cloud scope on an approved source, asks the BadgeManager to issue badges.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from .. import const
from ..api import SkillMapCloudError, TransferFailedError
from ..engines import ProgressEngine, ReconciliationEngine
from ..utils import async_first_to_settle
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import SkillMapProgressCoordinator
    from ..type_defs import HeaderIdMap, LedgerData, Profile


class SyncManager(BaseManager):
    """Drives the sign-in sync and persists published ledgers."""

    def __init__(
        self, hass: HomeAssistant, coordinator: SkillMapProgressCoordinator
    ) -> None:
        """Initialize the sync manager."""
        super().__init__(hass, coordinator)
        self._state = const.SYNC_STATE_IDLE
        self._sync_task: asyncio.Task | None = None

    async def async_setup(self) -> None:
        """Subscribe to store-change signals."""
        self.listen(const.SIGNAL_SUFFIX_LEDGER_CHANGED, self._async_on_store_change)
        self.listen(
            const.SIGNAL_SUFFIX_PAGE_SOURCE_CHANGED, self._async_on_store_change
        )
        self.listen(const.SIGNAL_SUFFIX_SYNC_SETTLED, self._async_on_store_change)

    # -------------------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------------------

    @property
    def state(self) -> str:
        """Return the current sync state."""
        return self._state

    @property
    def settled(self) -> bool:
        """Return True once the session's sync has reached "done"."""
        return self._state == const.SYNC_STATE_DONE

    @property
    def sync_task(self) -> asyncio.Task | None:
        """Return the background cloud sync task, if one was started."""
        return self._sync_task

    def _set_state(self, state: str) -> None:
        const.LOGGER.debug("DEBUG: Sync state %s -> %s", self._state, state)
        self._state = state
        self.coordinator.publish_snapshot()

    def _mark_done(self) -> None:
        """Enter "done" once; later calls are no-ops."""
        if self._state == const.SYNC_STATE_DONE:
            return
        self._set_state(const.SYNC_STATE_DONE)
        self.emit(const.SIGNAL_SUFFIX_SYNC_SETTLED, sync_state=self._state)

    # -------------------------------------------------------------------------------------
    # Sign-in transition
    # -------------------------------------------------------------------------------------

    async def async_start(self) -> None:
        """Run the sign-in transition for this session."""
        if self._state != const.SYNC_STATE_IDLE:
            const.LOGGER.debug("DEBUG: Sync already started (state %s)", self._state)
            return

        self._set_state(const.SYNC_STATE_CHECKING_AUTH)
        client = self.coordinator.client
        profile: Profile | None = None
        try:
            if await client.async_is_signed_in():
                profile = await client.async_get_profile()
        except SkillMapCloudError as err:
            const.LOGGER.warning(
                "WARNING: Auth check failed, continuing signed out: %s", err
            )
            profile = None

        if profile is None:
            self.coordinator.set_signed_in(False, None)
            self._set_state(const.SYNC_STATE_NOT_SIGNED_IN)
            self._mark_done()
            return

        self.coordinator.set_signed_in(True, profile)
        self._set_state(const.SYNC_STATE_SYNCING_CLOUD)
        self._sync_task = self.coordinator.config_entry.async_create_background_task(
            self.hass,
            self._async_cloud_sync(profile),
            name=f"{const.DOMAIN}_cloud_sync_{self.entry_id}",
        )

        timeout = self.coordinator.sync_timeout
        if not await async_first_to_settle(self._sync_task, timeout):
            const.LOGGER.warning(
                "WARNING: Cloud sync did not finish within %s seconds; "
                "continuing in the background",
                timeout,
            )
        self._mark_done()

    async def _async_transfer(self, header_ids: list[str]) -> HeaderIdMap:
        """Transfer local work; fall back to identity remapping on failure."""
        if not header_ids:
            return {}
        try:
            return await self.coordinator.client.async_transfer_local_work(header_ids)
        except TransferFailedError as err:
            const.LOGGER.warning(
                "WARNING: Transfer of %s local projects failed, keeping local "
                "header ids: %s",
                len(header_ids),
                err,
            )
            return {}

    async def _async_cloud_sync(self, profile: Profile) -> None:
        """Merge local progress into the signed-in user's cloud ledger."""
        client = self.coordinator.client
        user_id = profile[const.DATA_PROFILE_ID]

        try:
            raw_cloud = await client.async_load_ledger()
        except SkillMapCloudError as err:
            const.LOGGER.warning(
                "WARNING: Could not load cloud ledger, keeping local progress: %s", err
            )
            return

        cloud = ProgressEngine.normalize(raw_cloud, user_id)
        cloud[const.DATA_LEDGER_ID] = user_id

        header_ids = ProgressEngine.collect_header_ids(
            self.coordinator.ledger, skip_started_in=cloud
        )
        header_map = await self._async_transfer(header_ids)

        # Badge state must be current before the merged ledger is published
        await self._async_refresh_badge_state()

        local = self.coordinator.ledger
        if local[const.DATA_LEDGER_ID] == user_id:
            const.LOGGER.debug("DEBUG: Ledger already merged for user %s", user_id)
            return

        merged = ReconciliationEngine.merge_ledgers(local, cloud, header_map)
        self.coordinator.enter_cloud_scope(user_id, cloud[const.DATA_LEDGER_VERSION])
        merged = self.coordinator.publish_ledger(merged)
        const.LOGGER.info(
            "INFO: Merged local progress into cloud ledger for user %s", user_id
        )

        await self._async_request_cloud_status(merged)

    async def _async_refresh_badge_state(self) -> None:
        try:
            badge_state = await self.coordinator.client.async_fetch_badge_state()
        except SkillMapCloudError as err:
            const.LOGGER.warning("WARNING: Could not fetch badge state: %s", err)
            return
        self.coordinator.set_badge_state(badge_state)

    async def _async_request_cloud_status(self, ledger: LedgerData) -> None:
        header_ids = ProgressEngine.collect_header_ids(
            ledger, source=self.coordinator.source_url
        )
        if not header_ids:
            return
        try:
            await self.coordinator.client.async_request_project_cloud_status(
                header_ids
            )
        except SkillMapCloudError as err:
            const.LOGGER.warning(
                "WARNING: Project cloud status request failed: %s", err
            )

    # -------------------------------------------------------------------------------------
    # Store changes
    # -------------------------------------------------------------------------------------

    @property
    def badges_allowed(self) -> bool:
        """Return True if badge issuance may run for the current state."""
        coordinator = self.coordinator
        return (
            self.settled
            and coordinator.signed_in
            and coordinator.scope == const.SCOPE_CLOUD
            and coordinator.source_url is not None
            and coordinator.source_status == const.SOURCE_STATUS_APPROVED
        )

    async def _async_on_store_change(self, payload: dict[str, Any]) -> None:
        """Save the active ledger and issue any newly earned badges."""
        await self.coordinator.async_save_ledger()
        if self.badges_allowed:
            await self.coordinator.badge_manager.async_issue_badges()
