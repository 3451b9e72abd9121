# File: utils/async_utils.py
"""Asyncio helpers for SkillMap Progress.

No Home Assistant imports in this module.
"""

from __future__ import annotations

import asyncio
from typing import Any


async def async_first_to_settle(task: asyncio.Future[Any], timeout: float) -> bool:
    """Race task against a timeout and report whether the task settled first.

    The losing branch is never cancelled: when the timeout wins, task keeps
    running and its side effects still happen when it finishes. Only the
    caller's decision is affected by the outcome of the race.

    Args:
        task: Already-scheduled task or future
        timeout: Seconds to wait before giving up on the task

    Returns:
        True if task finished (successfully or not) within timeout.
    """
    done, _pending = await asyncio.wait({task}, timeout=timeout)
    return task in done
