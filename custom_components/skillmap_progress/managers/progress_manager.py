"""Progress Manager - page source loading and activity events.

Translates service calls into ProgressEngine operations on the active ledger
and publishes the result through the coordinator. Every publish is a store
change, which the SyncManager turns into a save and a badge check.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import ServiceValidationError

from .. import const
from ..engines import ProgressEngine, UnknownActivityError
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import LedgerData, MapDefinition


class ProgressManager(BaseManager):
    """Applies progress events to the active ledger."""

    async def async_setup(self) -> None:
        """Nothing to subscribe to; driven by services."""

    def _require_source(self) -> str:
        source = self.coordinator.source_url
        if source is None:
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_NO_SOURCE,
            )
        return source

    def _require_map(self, map_id: str) -> MapDefinition:
        map_def = self.coordinator.maps.get(map_id)
        if map_def is None:
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_UNKNOWN_MAP,
                translation_placeholders={"map_id": map_id},
            )
        return map_def

    def _publish_if_changed(self, ledger: LedgerData) -> None:
        if ledger is not self.coordinator.ledger:
            self.coordinator.publish_ledger(ledger)

    def set_page_source(
        self, source: str, status: str, maps: list[dict[str, Any]]
    ) -> None:
        """Load a page source and make sure the ledger has a bucket for it."""
        map_defs: dict[str, MapDefinition] = {
            map_def[const.DATA_MAP_ID]: map_def  # type: ignore[misc]
            for map_def in maps
        }
        const.LOGGER.debug(
            "DEBUG: Page source %s (%s) loaded with %s maps",
            source,
            status,
            len(map_defs),
        )
        self.coordinator.set_page_source(source, status, map_defs)
        self._publish_if_changed(
            ProgressEngine.ensure_source(self.coordinator.ledger, source)
        )

    def record_activity(
        self, map_id: str, activity_id: str, header_id: str | None = None
    ) -> None:
        """Mark an activity of the current source completed."""
        source = self._require_source()
        map_def = self._require_map(map_id)
        try:
            ledger = ProgressEngine.record_activity_completion(
                self.coordinator.ledger, source, map_def, activity_id, header_id
            )
        except UnknownActivityError as err:
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_UNKNOWN_ACTIVITY,
                translation_placeholders={"activity_id": activity_id, "map_id": map_id},
            ) from err
        self.coordinator.publish_ledger(ledger)

    def save_activity_project(
        self, map_id: str, activity_id: str, header_id: str
    ) -> None:
        """Attach saved work to an activity of the current source."""
        source = self._require_source()
        map_def = self._require_map(map_id)
        try:
            ledger = ProgressEngine.set_activity_header(
                self.coordinator.ledger, source, map_def, activity_id, header_id
            )
        except UnknownActivityError as err:
            raise ServiceValidationError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_UNKNOWN_ACTIVITY,
                translation_placeholders={"activity_id": activity_id, "map_id": map_id},
            ) from err
        self.coordinator.publish_ledger(ledger)

    def apply_debug_progress(self, mode: str) -> None:
        """Reset the current source to a new user, or complete everything."""
        source = self._require_source()
        if mode == const.DEBUG_MODE_NEW_USER:
            ledger = ProgressEngine.reset_to_new_user(self.coordinator.ledger, source)
        else:
            ledger = ProgressEngine.complete_all(
                self.coordinator.ledger, source, self.coordinator.maps
            )
        const.LOGGER.info("INFO: Debug progress '%s' applied to %s", mode, source)
        self.coordinator.publish_ledger(ledger)
