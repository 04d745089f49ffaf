"""Single-flight guard around generation service calls.

At most one suggestion request may be in flight. Competing callers are
rejected with `AlreadyBusyError` rather than queued; they are expected to
trigger again later.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING, TypeVar

from cyoa.errors import AlreadyBusyError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

T = TypeVar("T")

log = logging.getLogger(__name__)


class GenerationGate:
    """Busy flag with scoped acquisition.

    The check and the set happen without an intervening await, so on a single
    event loop two coroutines can never both acquire the gate.
    """

    def __init__(self) -> None:
        """Create an idle gate."""
        self._busy = False

    @property
    def busy(self) -> bool:
        """Whether a request currently holds the gate."""
        return self._busy

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[GenerationGate]:
        """Hold the gate for the duration of the ``async with`` block.

        Raises:
            AlreadyBusyError: If another holder is active.
        """
        if self._busy:
            raise AlreadyBusyError()
        self._busy = True
        try:
            yield self
        finally:
            self._busy = False

    async def run_exclusive(self, action: Callable[[], Awaitable[T]]) -> T:
        """Run *action* while holding the gate and return its result.

        *action* is not invoked when the gate is already held. The gate is
        released whether *action* returns, raises or is cancelled.

        Raises:
            AlreadyBusyError: If the gate is already held.
        """
        async with self.hold():
            return await action()

    def __repr__(self) -> str:
        return f"GenerationGate(busy={self._busy})"
