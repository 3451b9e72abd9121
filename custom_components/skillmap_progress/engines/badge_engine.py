"""Badge Engine - pure logic for badge evaluation and de-duplication.

Provides:
- evaluate(): default rule set deriving earned badges from a ledger snapshot
- badge_key(): badge identity, (source_url, id)
- filter_new_badges(): candidates minus already-granted badges

Evaluation rules are per map: every reward or completion node carries a list
of rewards, and its badge rewards are earned once the node is reached, i.e.
all of its prerequisite activities are completed, or the whole map is
completed. Certificates are never badges.

The evaluator is a capability: managers accept any callable with the same
signature as BadgeEngine.evaluate, so map-specific rule engines can be
plugged in. No Home Assistant dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import (
        ActivityDefinition,
        BadgeData,
        BadgeState,
        LedgerData,
        MapDefinition,
    )

_REWARD_NODE_KINDS = (const.ACTIVITY_KIND_REWARD, const.ACTIVITY_KIND_COMPLETION)


class BadgeEngine:
    """Pure logic engine for badges. All methods are static."""

    @staticmethod
    def badge_key(badge: BadgeData) -> tuple[str, str]:
        """Return the identity of a badge."""
        return (
            badge.get(const.DATA_BADGE_SOURCE_URL, ""),
            badge.get(const.DATA_BADGE_ID, ""),
        )

    @staticmethod
    def filter_new_badges(
        candidates: Iterable[BadgeData], badge_state: BadgeState | None
    ) -> list[BadgeData]:
        """Return candidates not yet granted, first occurrence only, in order."""
        granted = {
            BadgeEngine.badge_key(badge)
            for badge in (badge_state or {}).get(const.DATA_BADGES, [])
        }
        new_badges: list[BadgeData] = []
        for badge in candidates:
            key = BadgeEngine.badge_key(badge)
            if key in granted:
                continue
            granted.add(key)
            new_badges.append(badge)
        return new_badges

    @staticmethod
    def _is_node_reached(
        activity_def: ActivityDefinition,
        activity_state: dict,
        map_completed: bool,
    ) -> bool:
        if map_completed:
            return True
        prerequisites = activity_def.get(const.DATA_ACTIVITY_DEF_PREREQUISITES, [])
        return bool(prerequisites) and all(
            activity_state.get(prerequisite, {}).get(const.DATA_ACTIVITY_IS_COMPLETED)
            for prerequisite in prerequisites
        )

    @staticmethod
    def evaluate(
        ledger: LedgerData, source: str, map_def: MapDefinition
    ) -> list[BadgeData]:
        """Return the badges the ledger currently qualifies for under map_def.

        Pure function: safe to call repeatedly and in any order across maps.
        """
        map_id = map_def.get(const.DATA_MAP_ID)
        record = (
            ledger.get(const.DATA_LEDGER_MAP_PROGRESS, {}).get(source, {}).get(map_id)
        )
        if not record:
            return []

        activity_state = record.get(const.DATA_MAP_ACTIVITY_STATE, {})
        map_completed = (
            record.get(const.DATA_MAP_COMPLETION_STATE) == const.MAP_STATE_COMPLETED
        )

        earned: list[BadgeData] = []
        for activity_def in map_def.get(const.DATA_MAP_DEF_ACTIVITIES, {}).values():
            if activity_def.get(const.DATA_ACTIVITY_DEF_KIND) not in _REWARD_NODE_KINDS:
                continue
            if not BadgeEngine._is_node_reached(
                activity_def, activity_state, map_completed
            ):
                continue
            for reward in activity_def.get(const.DATA_ACTIVITY_DEF_REWARDS, []):
                badge = reward.get(const.DATA_REWARD_BADGE)
                if reward.get(const.DATA_REWARD_TYPE) != const.REWARD_TYPE_BADGE or (
                    not badge
                ):
                    continue
                earned_badge = dict(badge)
                earned_badge.setdefault(const.DATA_BADGE_SOURCE_URL, source)
                earned_badge.setdefault(
                    const.DATA_BADGE_TYPE, const.BADGE_TYPE_SKILLMAP_COMPLETION
                )
                earned.append(earned_badge)  # type: ignore[arg-type]
        return earned
