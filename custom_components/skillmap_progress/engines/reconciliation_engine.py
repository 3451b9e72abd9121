"""Reconciliation Engine - merge a local ledger into a cloud ledger on sign-in.

The cloud ledger is the durable, cross-device source of truth. Local progress
that was accumulated while signed out is copied in only for sources the cloud
identity has not started yet; everything else comes from the cloud.

Per-source precedence:
    1. Cloud has started the source  -> cloud entry, in full
    2. Local has the source          -> local entry with header ids remapped
    3. Otherwise                     -> cloud entry (possibly empty)

A source is never assembled field by field from both sides. Tag counters of a
locally-copied source are never lowered below what the cloud already holds.

ARCHITECTURE: Pure logic, no Home Assistant dependencies. Inputs are never
mutated; a new ledger is returned.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from .. import const
from .header_remapper import remap_source_progress
from .progress_engine import ProgressEngine

if TYPE_CHECKING:
    from ..type_defs import HeaderIdMap, LedgerData

RESOLUTION_CLOUD = "cloud"
RESOLUTION_LOCAL = "local"


class ReconciliationEngine:
    """Pure logic engine for local/cloud ledger reconciliation."""

    @staticmethod
    def _sources(ledger: LedgerData) -> list[str]:
        """Return a ledger's sources in first-seen order."""
        seen: dict[str, None] = {}
        for key in (const.DATA_LEDGER_MAP_PROGRESS, const.DATA_LEDGER_COMPLETED_TAGS):
            for source in ledger.get(key, {}):
                seen.setdefault(source, None)
        return list(seen)

    @staticmethod
    def _has_source(ledger: LedgerData, source: str) -> bool:
        return source in ledger.get(
            const.DATA_LEDGER_MAP_PROGRESS, {}
        ) or source in ledger.get(const.DATA_LEDGER_COMPLETED_TAGS, {})

    @staticmethod
    def merge_tag_counts(
        cloud_tags: dict[str, int] | None, local_tags: dict[str, int] | None
    ) -> dict[str, int] | None:
        """Combine two tag counters, keeping the larger count for every tag."""
        if cloud_tags is None and local_tags is None:
            return None
        merged = dict(cloud_tags or {})
        for tag, count in (local_tags or {}).items():
            merged[tag] = max(merged.get(tag, 0), count)
        return merged

    @staticmethod
    def resolve_sources(local: LedgerData, cloud: LedgerData) -> dict[str, str]:
        """Decide, per source, which side the merged entry comes from."""
        resolution: dict[str, str] = {}
        for source in ReconciliationEngine._sources(cloud) + ReconciliationEngine._sources(
            local
        ):
            if source in resolution:
                continue
            if ProgressEngine.is_source_started(cloud, source):
                resolution[source] = RESOLUTION_CLOUD
            elif ReconciliationEngine._has_source(local, source):
                resolution[source] = RESOLUTION_LOCAL
            else:
                resolution[source] = RESOLUTION_CLOUD
        return resolution

    @staticmethod
    def merge_ledgers(
        local: LedgerData,
        cloud: LedgerData,
        header_map: HeaderIdMap | None = None,
    ) -> LedgerData:
        """Produce the authoritative ledger from a local and a cloud ledger.

        Args:
            local: Ledger accumulated while signed out
            cloud: Ledger of the signed-in identity
            header_map: old -> new header ids from the work transfer; None or
                empty when the transfer failed (identity remapping)

        Returns:
            New ledger owned by the cloud identity. Running the merge again
            against the same cloud ledger yields an equal ledger.
        """
        result: LedgerData = {
            const.DATA_LEDGER_ID: cloud.get(const.DATA_LEDGER_ID, const.LOCAL_USER_ID),
            const.DATA_LEDGER_VERSION: cloud.get(
                const.DATA_LEDGER_VERSION, const.DEFAULT_ZERO
            ),
            const.DATA_LEDGER_MAP_PROGRESS: {},
            const.DATA_LEDGER_COMPLETED_TAGS: {},
        }
        cloud_progress = cloud.get(const.DATA_LEDGER_MAP_PROGRESS, {})
        cloud_tags = cloud.get(const.DATA_LEDGER_COMPLETED_TAGS, {})
        local_progress = local.get(const.DATA_LEDGER_MAP_PROGRESS, {})
        local_tags = local.get(const.DATA_LEDGER_COMPLETED_TAGS, {})

        for source, side in ReconciliationEngine.resolve_sources(local, cloud).items():
            if side == RESOLUTION_CLOUD:
                if source in cloud_progress:
                    result[const.DATA_LEDGER_MAP_PROGRESS][source] = copy.deepcopy(
                        cloud_progress[source]
                    )
                if source in cloud_tags:
                    result[const.DATA_LEDGER_COMPLETED_TAGS][source] = dict(
                        cloud_tags[source]
                    )
                const.LOGGER.debug("DEBUG: Reconcile: source %s kept from cloud", source)
                continue

            if source in local_progress:
                result[const.DATA_LEDGER_MAP_PROGRESS][source] = remap_source_progress(
                    local_progress[source], header_map
                )
            elif source in cloud_progress:
                result[const.DATA_LEDGER_MAP_PROGRESS][source] = copy.deepcopy(
                    cloud_progress[source]
                )
            tags = ReconciliationEngine.merge_tag_counts(
                cloud_tags.get(source), local_tags.get(source)
            )
            if tags is not None:
                result[const.DATA_LEDGER_COMPLETED_TAGS][source] = tags
            const.LOGGER.debug("DEBUG: Reconcile: source %s copied from local", source)

        return result
