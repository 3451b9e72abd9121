"""Type definitions for SkillMap Progress data structures.

TypedDict is used for the structures whose keys are fixed (ledger records,
badges, map definitions). Keys that are runtime identifiers (sources, map ids,
activity ids, tag names) are expressed as plain ``dict[str, ...]`` mappings.

IMPORTANT: This file must NOT import from coordinator.py or any module that
imports the coordinator, to avoid circular dependencies.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime code still uses ``.get()``
with defaults when reading stored or remote payloads.
"""

from collections.abc import Callable
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

Source = str  # Opaque content origin, e.g. a document URL
MapId = str
ActivityId = str
HeaderId = str  # Durable reference to saved user work
TagName = str
HeaderIdMap = dict[HeaderId, HeaderId]


# =============================================================================
# Progress Ledger
# =============================================================================


class ActivityState(TypedDict):
    """Progress for one activity inside a map.

    header_id is absent until the user's work for the activity is saved.
    """

    activity_id: ActivityId
    is_completed: bool
    header_id: NotRequired[HeaderId]


class MapProgress(TypedDict):
    """Progress record for a single map under one source."""

    map_id: MapId
    completion_state: str  # notstarted | inprogress | completed
    activity_state: dict[ActivityId, ActivityState]


class LedgerData(TypedDict):
    """A user's progress across all sources.

    map_progress: source -> map_id -> MapProgress
    completed_tags: source -> tag -> first-time completion count
    version: bumped on every publish; used to order saves
    """

    id: str
    version: int
    map_progress: dict[Source, dict[MapId, MapProgress]]
    completed_tags: dict[Source, dict[TagName, int]]


# =============================================================================
# Badges
# =============================================================================


class BadgeData(TypedDict):
    """An awardable achievement. Identity is (source_url, id)."""

    id: str
    type: str
    title: NotRequired[str]
    image: NotRequired[str]
    source_url: NotRequired[str]


class BadgeState(TypedDict):
    """Badges already granted to the signed-in user."""

    badges: list[BadgeData]


# =============================================================================
# Skill Map Definitions (parsed page source)
# =============================================================================


class RewardDefinition(TypedDict):
    """Reward attached to a reward/completion node."""

    type: str  # badge | certificate
    badge: NotRequired[BadgeData]


class ActivityDefinition(TypedDict):
    """One node of a skill map."""

    activity_id: ActivityId
    kind: str  # activity | reward | completion
    tags: NotRequired[list[TagName]]
    prerequisites: NotRequired[list[ActivityId]]
    rewards: NotRequired[list[RewardDefinition]]


class MapDefinition(TypedDict):
    """A parsed skill map."""

    map_id: MapId
    title: NotRequired[str]
    activities: dict[ActivityId, ActivityDefinition]


# =============================================================================
# Cloud Collaborator Payloads
# =============================================================================


class Profile(TypedDict):
    """Signed-in user profile."""

    id: str
    username: NotRequired[str]


class ProgressSnapshot(TypedDict):
    """Published coordinator data consumed by listeners and diagnostics."""

    ledger: LedgerData
    badge_state: BadgeState
    preferences: dict[str, Any]
    maps: dict[MapId, MapDefinition]
    source_url: Source | None
    source_status: str | None
    signed_in: bool
    profile: Profile | None
    sync_state: str
    scope: str


# Rule engine capability: (ledger, source, map definition) -> badges earned
BadgeEvaluator = Callable[[LedgerData, Source, MapDefinition], list[BadgeData]]
