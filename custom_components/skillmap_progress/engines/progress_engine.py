"""Progress Engine - pure ledger operations.

Provides stateless helpers that build, inspect and update progress ledgers:
- Ledger construction and lazy per-source initialization
- "Started" detection used by reconciliation
- Activity completion with first-time tag counting
- Header id collection for local-to-cloud transfer
- Debug resets (new user / everything completed)

ARCHITECTURE: Every function returns a NEW ledger (copy-on-write). Callers
publish the returned object as a full replacement, never mutate in place.
No Home Assistant dependencies.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import (
        ActivityDefinition,
        LedgerData,
        MapDefinition,
        MapProgress,
    )


class UnknownActivityError(ValueError):
    """Raised when an activity id is not part of the given map definition."""


class ProgressEngine:
    """Pure logic engine for ledger bookkeeping.

    All methods are static - no instance state.
    """

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @staticmethod
    def new_ledger(user_id: str = const.LOCAL_USER_ID) -> LedgerData:
        """Return an empty ledger owned by user_id."""
        return {
            const.DATA_LEDGER_ID: user_id,
            const.DATA_LEDGER_VERSION: const.DEFAULT_ZERO,
            const.DATA_LEDGER_MAP_PROGRESS: {},
            const.DATA_LEDGER_COMPLETED_TAGS: {},
        }

    @staticmethod
    def normalize(raw: dict | None, user_id: str = const.LOCAL_USER_ID) -> LedgerData:
        """Coerce a stored or remote payload into a well-formed ledger."""
        if not isinstance(raw, dict):
            return ProgressEngine.new_ledger(user_id)

        map_progress = raw.get(const.DATA_LEDGER_MAP_PROGRESS)
        completed_tags = raw.get(const.DATA_LEDGER_COMPLETED_TAGS)
        return {
            const.DATA_LEDGER_ID: raw.get(const.DATA_LEDGER_ID) or user_id,
            const.DATA_LEDGER_VERSION: int(
                raw.get(const.DATA_LEDGER_VERSION) or const.DEFAULT_ZERO
            ),
            const.DATA_LEDGER_MAP_PROGRESS: copy.deepcopy(map_progress)
            if isinstance(map_progress, dict)
            else {},
            const.DATA_LEDGER_COMPLETED_TAGS: copy.deepcopy(completed_tags)
            if isinstance(completed_tags, dict)
            else {},
        }

    @staticmethod
    def ensure_source(ledger: LedgerData, source: str) -> LedgerData:
        """Return a ledger with empty progress and tag buckets for source.

        Returns the SAME object when the source is already present, so callers
        can skip publishing when nothing changed.
        """
        if source in ledger[const.DATA_LEDGER_MAP_PROGRESS] and source in (
            ledger[const.DATA_LEDGER_COMPLETED_TAGS]
        ):
            return ledger

        result = copy.deepcopy(ledger)
        result[const.DATA_LEDGER_MAP_PROGRESS].setdefault(source, {})
        result[const.DATA_LEDGER_COMPLETED_TAGS].setdefault(source, {})
        return result

    # =========================================================================
    # QUERIES
    # =========================================================================

    @staticmethod
    def is_source_started(ledger: LedgerData | None, source: str) -> bool:
        """Return True if any map under source has non-empty activity state."""
        if not ledger:
            return False
        source_progress = ledger.get(const.DATA_LEDGER_MAP_PROGRESS, {}).get(source)
        if not source_progress:
            return False
        return any(
            record.get(const.DATA_MAP_ACTIVITY_STATE)
            for record in source_progress.values()
        )

    @staticmethod
    def collect_header_ids(
        ledger: LedgerData,
        source: str | None = None,
        skip_started_in: LedgerData | None = None,
    ) -> list[str]:
        """Return the sorted, de-duplicated header ids referenced by a ledger.

        Args:
            ledger: Ledger to scan
            source: Limit the scan to one source (all sources when None)
            skip_started_in: Ignore sources this other ledger has already started
        """
        header_ids: set[str] = set()
        for src, source_progress in ledger.get(
            const.DATA_LEDGER_MAP_PROGRESS, {}
        ).items():
            if source is not None and src != source:
                continue
            if skip_started_in is not None and ProgressEngine.is_source_started(
                skip_started_in, src
            ):
                continue
            for record in source_progress.values():
                for activity in record.get(const.DATA_MAP_ACTIVITY_STATE, {}).values():
                    header_id = activity.get(const.DATA_ACTIVITY_HEADER_ID)
                    if header_id:
                        header_ids.add(header_id)
        return sorted(header_ids)

    @staticmethod
    def compute_completion_state(
        record: MapProgress, map_def: MapDefinition
    ) -> str:
        """Derive a map's completion state from its activity state."""
        activity_state = record.get(const.DATA_MAP_ACTIVITY_STATE, {})
        if not activity_state:
            return const.MAP_STATE_NOT_STARTED

        required = [
            activity_id
            for activity_id, activity_def in map_def.get(
                const.DATA_MAP_DEF_ACTIVITIES, {}
            ).items()
            if activity_def.get(const.DATA_ACTIVITY_DEF_KIND, const.ACTIVITY_KIND_ACTIVITY)
            == const.ACTIVITY_KIND_ACTIVITY
        ]
        if required and all(
            activity_state.get(activity_id, {}).get(const.DATA_ACTIVITY_IS_COMPLETED)
            for activity_id in required
        ):
            return const.MAP_STATE_COMPLETED
        return const.MAP_STATE_IN_PROGRESS

    # =========================================================================
    # UPDATES (copy-on-write)
    # =========================================================================

    @staticmethod
    def _get_activity_def(
        map_def: MapDefinition, activity_id: str
    ) -> ActivityDefinition:
        activities = map_def.get(const.DATA_MAP_DEF_ACTIVITIES, {})
        if activity_id not in activities:
            raise UnknownActivityError(
                f"Activity '{activity_id}' is not part of map "
                f"'{map_def.get(const.DATA_MAP_ID)}'"
            )
        return activities[activity_id]

    @staticmethod
    def _ensure_map_record(
        ledger: LedgerData, source: str, map_id: str
    ) -> MapProgress:
        """Return the (mutable) map record inside an already-copied ledger."""
        source_progress = ledger[const.DATA_LEDGER_MAP_PROGRESS].setdefault(source, {})
        ledger[const.DATA_LEDGER_COMPLETED_TAGS].setdefault(source, {})
        return source_progress.setdefault(
            map_id,
            {
                const.DATA_MAP_ID: map_id,
                const.DATA_MAP_COMPLETION_STATE: const.MAP_STATE_NOT_STARTED,
                const.DATA_MAP_ACTIVITY_STATE: {},
            },
        )

    @staticmethod
    def record_activity_completion(
        ledger: LedgerData,
        source: str,
        map_def: MapDefinition,
        activity_id: str,
        header_id: str | None = None,
    ) -> LedgerData:
        """Mark an activity completed and count its tags on first completion.

        Raises:
            UnknownActivityError: activity_id is not in map_def
        """
        activity_def = ProgressEngine._get_activity_def(map_def, activity_id)
        result = copy.deepcopy(ledger)
        record = ProgressEngine._ensure_map_record(
            result, source, map_def[const.DATA_MAP_ID]
        )
        activity_state = record[const.DATA_MAP_ACTIVITY_STATE]

        existing = activity_state.get(activity_id)
        first_time = not existing or not existing.get(const.DATA_ACTIVITY_IS_COMPLETED)

        updated = dict(existing) if existing else {}
        updated[const.DATA_ACTIVITY_ID] = activity_id
        updated[const.DATA_ACTIVITY_IS_COMPLETED] = True
        if header_id:
            updated[const.DATA_ACTIVITY_HEADER_ID] = header_id
        activity_state[activity_id] = updated  # type: ignore[assignment]

        kind = activity_def.get(const.DATA_ACTIVITY_DEF_KIND, const.ACTIVITY_KIND_ACTIVITY)
        if first_time and kind == const.ACTIVITY_KIND_ACTIVITY:
            tags = result[const.DATA_LEDGER_COMPLETED_TAGS][source]
            for tag in activity_def.get(const.DATA_ACTIVITY_DEF_TAGS, []):
                tags[tag] = tags.get(tag, 0) + 1

        record[const.DATA_MAP_COMPLETION_STATE] = (
            ProgressEngine.compute_completion_state(record, map_def)
        )
        return result

    @staticmethod
    def set_activity_header(
        ledger: LedgerData,
        source: str,
        map_def: MapDefinition,
        activity_id: str,
        header_id: str,
    ) -> LedgerData:
        """Attach saved work to an activity without touching its completion flag.

        Raises:
            UnknownActivityError: activity_id is not in map_def
        """
        ProgressEngine._get_activity_def(map_def, activity_id)
        result = copy.deepcopy(ledger)
        record = ProgressEngine._ensure_map_record(
            result, source, map_def[const.DATA_MAP_ID]
        )
        activity_state = record[const.DATA_MAP_ACTIVITY_STATE]
        updated = dict(activity_state.get(activity_id) or {})
        updated.setdefault(const.DATA_ACTIVITY_ID, activity_id)
        updated.setdefault(const.DATA_ACTIVITY_IS_COMPLETED, False)
        updated[const.DATA_ACTIVITY_HEADER_ID] = header_id
        activity_state[activity_id] = updated  # type: ignore[assignment]

        record[const.DATA_MAP_COMPLETION_STATE] = (
            ProgressEngine.compute_completion_state(record, map_def)
        )
        return result

    # =========================================================================
    # DEBUG RESETS
    # =========================================================================

    @staticmethod
    def reset_to_new_user(ledger: LedgerData, source: str) -> LedgerData:
        """Drop all progress and tags, keeping an empty bucket for source."""
        result = ProgressEngine.new_ledger(ledger[const.DATA_LEDGER_ID])
        result[const.DATA_LEDGER_VERSION] = ledger[const.DATA_LEDGER_VERSION]
        return ProgressEngine.ensure_source(result, source)

    @staticmethod
    def complete_all(
        ledger: LedgerData, source: str, maps: dict[str, MapDefinition]
    ) -> LedgerData:
        """Mark every map and activity of source completed.

        Progress for the source is rebuilt from scratch; tag counters for the
        source are incremented once per tagged activity.
        """
        result = copy.deepcopy(ledger)
        result[const.DATA_LEDGER_MAP_PROGRESS][source] = {}
        tags = result[const.DATA_LEDGER_COMPLETED_TAGS].setdefault(source, {})

        for map_id, map_def in maps.items():
            activity_state = {}
            for activity_id, activity_def in map_def.get(
                const.DATA_MAP_DEF_ACTIVITIES, {}
            ).items():
                activity_state[activity_id] = {
                    const.DATA_ACTIVITY_ID: activity_id,
                    const.DATA_ACTIVITY_IS_COMPLETED: True,
                }
                if (
                    activity_def.get(
                        const.DATA_ACTIVITY_DEF_KIND, const.ACTIVITY_KIND_ACTIVITY
                    )
                    == const.ACTIVITY_KIND_ACTIVITY
                ):
                    for tag in activity_def.get(const.DATA_ACTIVITY_DEF_TAGS, []):
                        tags[tag] = tags.get(tag, 0) + 1

            result[const.DATA_LEDGER_MAP_PROGRESS][source][map_id] = {
                const.DATA_MAP_ID: map_id,
                const.DATA_MAP_COMPLETION_STATE: const.MAP_STATE_COMPLETED,
                const.DATA_MAP_ACTIVITY_STATE: activity_state,
            }
        return result
