# File: helpers/__init__.py
"""Home Assistant-bound helper functions for SkillMap Progress.

NOTE: Functions that need `hass` object belong here, NOT in utils/.

Submodules:
    - event_helpers: Instance-scoped dispatcher signals, coordinator lookup
"""

from . import event_helpers

__all__ = ["event_helpers"]
