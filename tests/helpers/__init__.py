"""Test helpers for SkillMap Progress integration tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import (
        # Setup
        setup_integration, get_coordinator, store_local_ledger,

        # Builders
        make_ledger, make_map_progress, make_activity, make_map_def,
    )

See individual modules for full documentation:
- setup.py: Integration setup with a mocked cloud client
- builders.py: Ledger and map definition builders
"""

from tests.helpers.builders import (
    TEST_SOURCE,
    TEST_USER_ID,
    make_activity,
    make_ledger,
    make_map_def,
    make_map_progress,
)
from tests.helpers.setup import get_coordinator, setup_integration, store_local_ledger

__all__ = [
    "TEST_SOURCE",
    "TEST_USER_ID",
    "get_coordinator",
    "make_activity",
    "make_ledger",
    "make_map_def",
    "make_map_progress",
    "setup_integration",
    "store_local_ledger",
]
