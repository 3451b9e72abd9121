"""Ledger and map definition builders for SkillMap Progress tests."""

from typing import Any

from custom_components.skillmap_progress import const

TEST_USER_ID = "user-1"
TEST_SOURCE = "https://example.com/skillmaps/space.md"


def make_map_def(map_id: str = "map1") -> dict[str, Any]:
    """Return a two-activity map with a badge behind both activities."""
    return {
        const.DATA_MAP_ID: map_id,
        const.DATA_MAP_DEF_TITLE: "Space Explorer",
        const.DATA_MAP_DEF_ACTIVITIES: {
            "a1": {
                const.DATA_ACTIVITY_ID: "a1",
                const.DATA_ACTIVITY_DEF_KIND: const.ACTIVITY_KIND_ACTIVITY,
                const.DATA_ACTIVITY_DEF_TAGS: ["intro"],
            },
            "a2": {
                const.DATA_ACTIVITY_ID: "a2",
                const.DATA_ACTIVITY_DEF_KIND: const.ACTIVITY_KIND_ACTIVITY,
                const.DATA_ACTIVITY_DEF_TAGS: ["intro", "loops"],
                const.DATA_ACTIVITY_DEF_PREREQUISITES: ["a1"],
            },
            "finish": {
                const.DATA_ACTIVITY_ID: "finish",
                const.DATA_ACTIVITY_DEF_KIND: const.ACTIVITY_KIND_COMPLETION,
                const.DATA_ACTIVITY_DEF_PREREQUISITES: ["a1", "a2"],
                const.DATA_ACTIVITY_DEF_REWARDS: [
                    {
                        const.DATA_REWARD_TYPE: const.REWARD_TYPE_BADGE,
                        const.DATA_REWARD_BADGE: {
                            const.DATA_BADGE_ID: f"{map_id}-badge",
                            const.DATA_BADGE_TITLE: "Space Explorer",
                        },
                    },
                    {const.DATA_REWARD_TYPE: const.REWARD_TYPE_CERTIFICATE},
                ],
            },
        },
    }


def make_activity(
    activity_id: str, completed: bool = True, header_id: str | None = None
) -> dict[str, Any]:
    """Return an ActivityState."""
    activity: dict[str, Any] = {
        const.DATA_ACTIVITY_ID: activity_id,
        const.DATA_ACTIVITY_IS_COMPLETED: completed,
    }
    if header_id is not None:
        activity[const.DATA_ACTIVITY_HEADER_ID] = header_id
    return activity


def make_map_progress(
    map_id: str, state: str, *activities: dict[str, Any]
) -> dict[str, Any]:
    """Return a MapProgress record."""
    return {
        const.DATA_MAP_ID: map_id,
        const.DATA_MAP_COMPLETION_STATE: state,
        const.DATA_MAP_ACTIVITY_STATE: {
            activity[const.DATA_ACTIVITY_ID]: activity for activity in activities
        },
    }


def make_ledger(
    user_id: str = const.LOCAL_USER_ID,
    version: int = 0,
    map_progress: dict[str, Any] | None = None,
    completed_tags: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a ledger."""
    return {
        const.DATA_LEDGER_ID: user_id,
        const.DATA_LEDGER_VERSION: version,
        const.DATA_LEDGER_MAP_PROGRESS: map_progress or {},
        const.DATA_LEDGER_COMPLETED_TAGS: completed_tags or {},
    }
