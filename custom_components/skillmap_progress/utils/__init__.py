# File: utils/__init__.py
"""Pure Python utilities for SkillMap Progress.

This module contains functions with ZERO Home Assistant dependencies.

Submodules:
    - async_utils: first-to-settle race between a task and a timeout
"""

from . import async_utils
from .async_utils import async_first_to_settle

__all__ = ["async_first_to_settle", "async_utils"]
