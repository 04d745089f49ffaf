"""Test helpers (small, reusable doubles).

Keep this file tiny: time doubles shared by the wait, session and
controller suites.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field


@dataclass
class FakeClock:
    """Monotonic clock advanced only by its own ``sleep``."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@dataclass
class RecordingSleep:
    """Async sleep that returns at once and records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@dataclass
class BlockingSleep:
    """Async sleep that waits until ``release()`` is called."""

    delays: list[float] = field(default_factory=list)
    _event: asyncio.Event = field(default_factory=asyncio.Event)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await self._event.wait()

    def release(self) -> None:
        self._event.set()
