"""Bounded polling wait.

Waits for a host condition to become true without ever raising on timeout:
the caller gets a boolean and decides whether a timeout matters.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


async def wait_until(
    condition: Callable[[], bool],
    *,
    timeout_s: float,
    interval_s: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> bool:
    """Poll *condition* every *interval_s* until it holds or *timeout_s* passes.

    The condition is checked once before any sleep, so an already-true
    condition returns immediately.

    Returns:
        True if the condition held within the bound, False on timeout.
    """
    if timeout_s < 0 or interval_s <= 0:
        raise ValueError("timeout_s must be >= 0 and interval_s must be > 0")
    deadline = clock() + timeout_s
    while True:
        if condition():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        await sleep(min(interval_s, remaining))
