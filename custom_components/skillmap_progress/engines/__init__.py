"""Engine modules for SkillMap Progress integration.

Contains pure computation engines (no Home Assistant state):
- header_remapper: local -> durable header id substitution
- progress_engine: ledger construction, activity completion, header collection
- reconciliation_engine: local/cloud ledger merge on sign-in
- badge_engine: badge evaluation and de-duplication
"""

# Use relative imports within package to avoid mypy module resolution issues
from .badge_engine import BadgeEngine
from .header_remapper import remap_activity, remap_map_progress, remap_source_progress
from .progress_engine import ProgressEngine, UnknownActivityError
from .reconciliation_engine import (
    RESOLUTION_CLOUD,
    RESOLUTION_LOCAL,
    ReconciliationEngine,
)

__all__ = [
    "RESOLUTION_CLOUD",
    "RESOLUTION_LOCAL",
    "BadgeEngine",
    "ProgressEngine",
    "ReconciliationEngine",
    "UnknownActivityError",
    "remap_activity",
    "remap_map_progress",
    "remap_source_progress",
]
