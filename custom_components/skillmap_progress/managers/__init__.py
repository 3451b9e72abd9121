"""Managers for SkillMap Progress.

Managers hold per-instance state and talk to each other through
instance-scoped dispatcher signals (BaseManager.emit / listen).
"""

from .badge_manager import BadgeManager
from .base_manager import BaseManager
from .progress_manager import ProgressManager
from .sync_manager import SyncManager

__all__ = ["BadgeManager", "BaseManager", "ProgressManager", "SyncManager"]
