# File: coordinator.py
"""Coordinator for the SkillMap Progress integration.

Owns the published progress snapshot: the active ledger, the loaded page
source and its maps, sign-in state, badge state and preferences. Managers
never hand ledgers to each other directly; every change goes through
publish_ledger(), which replaces the ledger as a whole, bumps its version and
broadcasts the instance-scoped "ledger changed" signal.

Persistence is ordered by version: async_save_ledger() serializes saves and
only writes a ledger newer than the last one persisted for the session.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .api import SkillMapCloudError
from .engines import ProgressEngine
from .helpers.event_helpers import get_event_signal
from .managers import BadgeManager, ProgressManager, SyncManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .api import SkillMapCloudClient
    from .store import LedgerStore
    from .type_defs import (
        BadgeState,
        LedgerData,
        MapDefinition,
        Profile,
        ProgressSnapshot,
    )


class SkillMapProgressCoordinator(DataUpdateCoordinator):
    """Coordinator for SkillMap Progress.

    Data is pushed (async_set_updated_data); there is no polling interval.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: LedgerStore,
        client: SkillMapCloudClient,
    ) -> None:
        """Initialize the SkillMapProgressCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.config_entry = config_entry
        self.store = store
        self.client = client

        self.ledger: LedgerData = ProgressEngine.new_ledger()
        self.maps: dict[str, MapDefinition] = {}
        self.source_url: str | None = None
        self.source_status: str | None = None
        self.signed_in = False
        self.profile: Profile | None = None
        self.badge_state: BadgeState = {const.DATA_BADGES: []}
        self.preferences: dict[str, Any] = {}
        self.scope = const.SCOPE_LOCAL
        self.session_user_id = const.LOCAL_USER_ID

        self._persisted_version: int | None = None
        self._save_lock = asyncio.Lock()

        self.sync_manager = SyncManager(hass, self)
        self.badge_manager = BadgeManager(hass, self)
        self.progress_manager = ProgressManager(hass, self)

    # -------------------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------------------

    @property
    def sync_timeout(self) -> float:
        """Seconds the sign-in sync may run before the session is marked settled."""
        return self.config_entry.options.get(
            const.CONF_SYNC_TIMEOUT, const.DEFAULT_SYNC_TIMEOUT
        )

    async def async_initialize(self) -> None:
        """Load the local ledger and set up managers."""
        stored = self.store.data
        self.ledger = ProgressEngine.normalize(stored)
        self._persisted_version = (
            self.ledger[const.DATA_LEDGER_VERSION] if stored is not None else None
        )
        for manager in (self.sync_manager, self.badge_manager, self.progress_manager):
            await manager.async_setup()
        const.LOGGER.debug(
            "DEBUG: Coordinator initialized with local ledger version %s",
            self.ledger[const.DATA_LEDGER_VERSION],
        )

    async def _async_update_data(self) -> ProgressSnapshot:
        """Return the current snapshot (nothing to poll)."""
        return self.snapshot

    # -------------------------------------------------------------------------------------
    # Published snapshot
    # -------------------------------------------------------------------------------------

    @property
    def snapshot(self) -> ProgressSnapshot:
        """Return the state consumed by listeners and diagnostics."""
        return {
            const.SNAPSHOT_LEDGER: self.ledger,
            const.SNAPSHOT_BADGE_STATE: self.badge_state,
            const.SNAPSHOT_PREFERENCES: self.preferences,
            const.SNAPSHOT_MAPS: self.maps,
            const.SNAPSHOT_SOURCE_URL: self.source_url,
            const.SNAPSHOT_SOURCE_STATUS: self.source_status,
            const.SNAPSHOT_SIGNED_IN: self.signed_in,
            const.SNAPSHOT_PROFILE: self.profile,
            const.SNAPSHOT_SYNC_STATE: self.sync_manager.state,
            const.SNAPSHOT_SCOPE: self.scope,
        }

    def publish_snapshot(self) -> None:
        """Push the current snapshot to listeners."""
        self.async_set_updated_data(self.snapshot)

    def _send(self, suffix: str, **payload: Any) -> None:
        async_dispatcher_send(
            self.hass, get_event_signal(self.config_entry.entry_id, suffix), payload
        )

    def publish_ledger(self, ledger: LedgerData) -> LedgerData:
        """Replace the active ledger and notify listeners.

        The published copy's version is strictly greater than both the
        current ledger's and the incoming ledger's version.
        """
        version = (
            max(
                self.ledger.get(const.DATA_LEDGER_VERSION, const.DEFAULT_ZERO),
                ledger.get(const.DATA_LEDGER_VERSION, const.DEFAULT_ZERO),
            )
            + 1
        )
        published: LedgerData = {**ledger, const.DATA_LEDGER_VERSION: version}
        self.ledger = published
        const.LOGGER.debug(
            "DEBUG: Published ledger '%s' version %s",
            published[const.DATA_LEDGER_ID],
            version,
        )
        self.publish_snapshot()
        self._send(const.SIGNAL_SUFFIX_LEDGER_CHANGED, version=version)
        return published

    def set_page_source(
        self,
        source: str,
        status: str,
        maps: dict[str, MapDefinition],
    ) -> None:
        """Record the loaded page source and its parsed maps."""
        self.source_url = source
        self.source_status = status
        self.maps = maps
        self.publish_snapshot()
        self._send(
            const.SIGNAL_SUFFIX_PAGE_SOURCE_CHANGED, source=source, status=status
        )

    def set_signed_in(self, signed_in: bool, profile: Profile | None) -> None:
        """Record the outcome of the auth check."""
        self.signed_in = signed_in
        self.profile = profile
        self.publish_snapshot()

    def enter_cloud_scope(self, user_id: str, cloud_version: int) -> None:
        """Switch persistence to the cloud copy owned by user_id."""
        self.scope = const.SCOPE_CLOUD
        self.session_user_id = user_id
        self._persisted_version = cloud_version

    def set_badge_state(self, badge_state: BadgeState) -> None:
        """Replace the cached badge state."""
        self.badge_state = badge_state
        self.publish_snapshot()

    def set_preferences(self, preferences: dict[str, Any]) -> None:
        """Replace the cached user preferences."""
        self.preferences = preferences
        self.publish_snapshot()

    # -------------------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------------------

    def _can_save(self, ledger: LedgerData) -> bool:
        if self.signed_in and not self.sync_manager.settled:
            const.LOGGER.debug("DEBUG: Save skipped, sign-in sync not settled")
            return False
        if ledger[const.DATA_LEDGER_ID] != self.session_user_id:
            const.LOGGER.debug(
                "DEBUG: Save skipped, ledger '%s' does not belong to session user '%s'",
                ledger[const.DATA_LEDGER_ID],
                self.session_user_id,
            )
            return False
        version = ledger[const.DATA_LEDGER_VERSION]
        if self._persisted_version is not None and version <= self._persisted_version:
            return False
        return True

    async def async_save_ledger(self) -> bool:
        """Persist the active ledger to the scope of the session.

        Saves are serialized; a ledger is only written when its version is
        newer than the last one persisted, so a stale save never lands after
        a fresher one.

        Returns:
            True if a write happened.
        """
        async with self._save_lock:
            ledger = self.ledger
            if not self._can_save(ledger):
                return False

            if self.scope == const.SCOPE_CLOUD:
                try:
                    await self.client.async_save_ledger(ledger)
                except SkillMapCloudError as err:
                    const.LOGGER.warning(
                        "WARNING: Failed to save ledger version %s to cloud: %s",
                        ledger[const.DATA_LEDGER_VERSION],
                        err,
                    )
                    return False
            else:
                self.store.set_data(ledger)
                await self.store.async_save()

            self._persisted_version = ledger[const.DATA_LEDGER_VERSION]
            return True
