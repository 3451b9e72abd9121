# File: helpers/event_helpers.py
"""Dispatcher and config entry helpers for SkillMap Progress.

Functions here build instance-scoped signal names and locate the loaded
coordinator. Anything needing a `hass` object belongs in this package,
not in utils/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import SkillMapProgressCoordinator


# ==============================================================================
# Event Signal Helpers (Manager Communication)
# ==============================================================================


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Each config entry gets its own signal namespace, so two loaded entries
    never see each other's ledger or badge events.

    Format: 'skillmap_progress_{entry_id}_{suffix}'

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_LEDGER_CHANGED)
        'skillmap_progress_abc123_ledger_changed'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


# ==============================================================================
# Coordinator Access
# ==============================================================================


def get_loaded_coordinator(
    hass: HomeAssistant,
) -> SkillMapProgressCoordinator | None:
    """Return the coordinator of the first loaded entry, or None."""
    entries = hass.data.get(const.DOMAIN, {})
    for entry_data in entries.values():
        coordinator = entry_data.get(const.COORDINATOR)
        if coordinator is not None:
            return coordinator
    return None
