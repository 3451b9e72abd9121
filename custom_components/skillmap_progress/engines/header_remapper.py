"""Header Remapper - translate transient header ids into durable ones.

When locally saved work is transferred to cloud storage, the transfer returns
a mapping of old header id -> new header id. Activity state that points at an
old id must be rewritten to point at the new one before it is merged into the
cloud ledger.

Pure functions, no Home Assistant dependencies. Inputs are never mutated.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import ActivityState, HeaderIdMap, MapProgress


def remap_activity(
    activity: ActivityState, header_map: HeaderIdMap | None
) -> ActivityState:
    """Return a copy of activity with its header id substituted when mapped.

    An absent or empty mapping is the identity transform. Activities without a
    header id, or whose header id has no mapping, keep their value.
    """
    remapped = dict(activity)
    header_id = activity.get(const.DATA_ACTIVITY_HEADER_ID)
    if header_id and header_map and header_id in header_map:
        remapped[const.DATA_ACTIVITY_HEADER_ID] = header_map[header_id]
    return remapped  # type: ignore[return-value]


def remap_map_progress(
    record: MapProgress, header_map: HeaderIdMap | None
) -> MapProgress:
    """Return a copy of a map record with every activity remapped."""
    remapped = copy.deepcopy(record)
    activity_state = record.get(const.DATA_MAP_ACTIVITY_STATE)
    if activity_state:
        remapped[const.DATA_MAP_ACTIVITY_STATE] = {
            activity_id: remap_activity(activity, header_map)
            for activity_id, activity in activity_state.items()
        }
    return remapped


def remap_source_progress(
    source_progress: dict[str, MapProgress], header_map: HeaderIdMap | None
) -> dict[str, MapProgress]:
    """Return a copy of one source's map progress with all header ids remapped."""
    return {
        map_id: remap_map_progress(record, header_map)
        for map_id, record in source_progress.items()
    }
