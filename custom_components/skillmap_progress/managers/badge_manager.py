"""Badge Manager - issues earned badges exactly once.

Candidates come from the configured evaluator (BadgeEngine.evaluate by
default) run over every loaded map of the current source. The badge state is
fetched from the backend on every issuance, never trusted from the cache;
candidates it already holds are dropped and, if anything is left, the grant
runs under the issuance lock. A failed badge state fetch skips issuance.

The lock is skip-on-contention: a call that finds it held returns
immediately without queueing, and the next store change recomputes the
candidates. The lock is released on every exit path, so a failed grant can be
retried later. A failed grant never adds badges to the badge state.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from .. import const
from ..api import GrantFailedError, SkillMapCloudError
from ..engines import BadgeEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import SkillMapProgressCoordinator
    from ..type_defs import BadgeData, BadgeEvaluator, LedgerData, MapDefinition


class BadgeManager(BaseManager):
    """Serializes badge grants for one integration instance."""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: SkillMapProgressCoordinator,
        evaluator: BadgeEvaluator = BadgeEngine.evaluate,
    ) -> None:
        """Initialize the badge manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator
            evaluator: Rule engine returning the badges a ledger qualifies for
        """
        super().__init__(hass, coordinator)
        self.evaluator = evaluator
        self._issuance_lock = asyncio.Lock()

    async def async_setup(self) -> None:
        """Nothing to subscribe to; issuance is driven by the SyncManager."""

    @property
    def issuance_lock(self) -> asyncio.Lock:
        """Return the lock held while a grant request is in flight."""
        return self._issuance_lock

    def evaluate_candidates(
        self,
        ledger: LedgerData,
        source: str,
        maps: dict[str, MapDefinition],
    ) -> list[BadgeData]:
        """Union of the evaluator's results across all maps."""
        candidates: list[BadgeData] = []
        for map_def in maps.values():
            candidates.extend(self.evaluator(ledger, source, map_def))
        return candidates

    async def async_issue_badges(self) -> list[BadgeData]:
        """Grant badges the active ledger has earned but the user does not hold.

        Returns:
            The badges granted by this call (empty when nothing was granted).
        """
        coordinator = self.coordinator
        source = coordinator.source_url
        if not source or not coordinator.maps:
            return []

        candidates = self.evaluate_candidates(coordinator.ledger, source, coordinator.maps)
        if not candidates:
            return []

        try:
            badge_state = await coordinator.client.async_fetch_badge_state()
        except SkillMapCloudError as err:
            const.LOGGER.warning(
                "WARNING: Could not fetch badge state, skipping issuance: %s", err
            )
            return []
        coordinator.set_badge_state(badge_state)

        new_badges = BadgeEngine.filter_new_badges(candidates, badge_state)
        if not new_badges:
            return []

        if self._issuance_lock.locked():
            const.LOGGER.debug(
                "DEBUG: Badge issuance already in progress, skipping %s badges",
                len(new_badges),
            )
            return []

        async with self._issuance_lock:
            granted = list(badge_state.get(const.DATA_BADGES, []))
            try:
                await coordinator.client.async_grant_badges(new_badges, granted)
            except GrantFailedError as err:
                const.LOGGER.warning(
                    "WARNING: Granting %s badges failed, will retry on next change: %s",
                    len(new_badges),
                    err,
                )
                return []

            coordinator.set_badge_state({const.DATA_BADGES: [*granted, *new_badges]})
            const.LOGGER.info(
                "INFO: Granted badges %s",
                [badge.get(const.DATA_BADGE_ID) for badge in new_badges],
            )

            try:
                preferences = await coordinator.client.async_fetch_user_preferences()
            except SkillMapCloudError as err:
                const.LOGGER.warning(
                    "WARNING: Could not refresh user preferences: %s", err
                )
            else:
                if preferences is not None:
                    coordinator.set_preferences(preferences)

        self.emit(const.SIGNAL_SUFFIX_BADGES_GRANTED, badges=new_badges)
        self.hass.bus.async_fire(
            const.EVENT_BADGES_GRANTED,
            {
                const.SNAPSHOT_SOURCE_URL: source,
                const.DATA_BADGES: new_badges,
            },
        )
        return new_badges
