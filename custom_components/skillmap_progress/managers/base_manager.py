"""Base manager class for SkillMap Progress managers.

Managers talk to each other only through entry-scoped dispatcher signals:

    ProgressManager --ledger_changed / page_source_changed--> SyncManager
    SyncManager     --sync_settled--------------------------> SyncManager
    BadgeManager    --badges_granted------------------------> (listeners)

The coordinator is the only shared state; a signal carries a small payload
(e.g. the published ledger version), never a ledger.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.event_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import SkillMapProgressCoordinator


class BaseManager(ABC):
    """Shared plumbing for the sync, badge and progress managers.

    Subclasses implement async_setup(); subscriptions made there through
    listen() are dropped when the config entry unloads, so a reloaded entry
    starts a new session with fresh listeners.
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: SkillMapProgressCoordinator
    ) -> None:
        """Initialize manager."""
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send a signal scoped to this config entry.

        Example:
            self.emit(const.SIGNAL_SUFFIX_SYNC_SETTLED, sync_state="done")
            -> listeners of 'skillmap_progress_<entry_id>_sync_settled'
               receive {"sync_state": "done"}
        """
        const.LOGGER.debug(
            "DEBUG: %s sending '%s' (%s)",
            self.__class__.__name__,
            suffix,
            ", ".join(payload) or "no payload",
        )
        async_dispatcher_send(
            self.hass, get_event_signal(self.entry_id, suffix), payload
        )

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Receive signals of this config entry until it unloads.

        Example:
            self.listen(const.SIGNAL_SUFFIX_LEDGER_CHANGED, self._async_on_store_change)
            -> called with {"version": 7} after every publish_ledger()
        """
        unsub = async_dispatcher_connect(
            self.hass, get_event_signal(self.entry_id, suffix), callback
        )
        self.coordinator.config_entry.async_on_unload(unsub)

    @abstractmethod
    async def async_setup(self) -> None:
        """Subscribe to signals; called once from coordinator initialization."""
