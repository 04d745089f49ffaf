"""Auto-trigger controller: decides when to request suggestions.

The controller observes turn-appended and context-changed notifications from
the chat host. For each new tail turn it runs an ordered eligibility check
and, when the turn qualifies, records the turn as processed and schedules a
single delayed `SuggestionSession.run()`.

The processed marker is written before anything is awaited, so a second
notification for the same turn is rejected even if it arrives while the
first one's delay is still running.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING

from cyoa.host import HostEvent
from cyoa.session import SessionOutcome
from cyoa.timing import FIXED_DELAY_MS, estimate_delay_ms
from cyoa.turns import Role, identity_of

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from cyoa.config import FrozenConfig
    from cyoa.host import ChatHost
    from cyoa.session import SuggestionSession
    from cyoa.turns import Turn, TurnIdentity

log = logging.getLogger(__name__)


class Eligibility(str, Enum):
    """Result of evaluating the tail turn, in check order."""

    ELIGIBLE = "eligible"
    AUTO_GENERATE_DISABLED = "auto_generate_disabled"
    NO_SELECTION = "no_selection"
    EMPTY_HISTORY = "empty_history"
    ALREADY_PROCESSED = "already_processed"
    NOT_ASSISTANT = "not_assistant"
    MISSING_SPEAKER = "missing_speaker"
    FIRST_TURN = "first_turn"
    LONE_ASSISTANT_TURN = "lone_assistant_turn"
    SUGGESTION_BATCH = "suggestion_batch"
    GATE_HELD = "gate_held"


@dataclass
class ControllerState:
    """Dedup state owned by one controller."""

    last_processed: TurnIdentity | None = None

    def reset(self) -> None:
        self.last_processed = None


class AutoTriggerController:
    """Event-driven scheduler for automatic suggestion sessions.

    Attributes:
        config: Settings read on every evaluation; reassign to apply edits.
        state: Dedup state. Independent per controller instance.
    """

    def __init__(
        self,
        host: ChatHost,
        session: SuggestionSession,
        *,
        config: FrozenConfig,
        state: ControllerState | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        estimator: Callable[[str], int] = estimate_delay_ms,
    ) -> None:
        """Create a controller sharing *session*'s generation gate."""
        self.host = host
        self.session = session
        self.gate = session.gate
        self.config = config
        self.state = state if state is not None else ControllerState()
        self._sleep = sleep
        self._estimator = estimator
        self._pending: asyncio.Task[SessionOutcome | None] | None = None
        self._tasks: set[asyncio.Task[SessionOutcome | None]] = set()

    @property
    def pending(self) -> asyncio.Task[SessionOutcome | None] | None:
        """The scheduled trigger still waiting out its delay, if any."""
        return self._pending

    # --- Eligibility ---

    def evaluate(self) -> Eligibility:
        """Check whether the current tail turn should trigger suggestions.

        Checks run in a fixed order and stop at the first failure.
        """
        if not self.config.auto_generate:
            return Eligibility.AUTO_GENERATE_DISABLED
        if not self.host.has_selection:
            return Eligibility.NO_SELECTION

        turns = self.host.turns
        if not turns:
            return Eligibility.EMPTY_HISTORY

        tail = turns[-1]
        if identity_of(tail) == self.state.last_processed:
            return Eligibility.ALREADY_PROCESSED
        if tail.role is not Role.ASSISTANT:
            return Eligibility.NOT_ASSISTANT
        if not (tail.name or "").strip():
            return Eligibility.MISSING_SPEAKER
        if len(turns) < 2:
            return Eligibility.FIRST_TURN
        if not any(turn.role is Role.ASSISTANT for turn in turns[:-1]):
            return Eligibility.LONE_ASSISTANT_TURN
        if tail.is_suggestion_batch:
            return Eligibility.SUGGESTION_BATCH
        if self.gate.busy:
            return Eligibility.GATE_HELD
        return Eligibility.ELIGIBLE

    def delay_for(self, turn: Turn) -> int:
        """Return the wait in milliseconds before suggesting after *turn*."""
        if self.config.dynamic_timeout:
            return self._estimator(turn.text)
        return FIXED_DELAY_MS

    # --- Notifications ---

    def on_turn_appended(
        self, *_args: object, **_kwargs: object
    ) -> asyncio.Task[SessionOutcome | None] | None:
        """Handle a turn-appended notification.

        Must be called from inside the running event loop. Extra arguments
        from the host's event payload are ignored; the tail is read fresh.

        Returns:
            The scheduled task, or None when the tail turn is not eligible.
        """
        verdict = self.evaluate()
        if verdict is not Eligibility.ELIGIBLE:
            log.debug("Not scheduling suggestions: %s", verdict.value)
            return None

        tail = self.host.turns[-1]
        self.state.last_processed = identity_of(tail)
        delay_ms = self.delay_for(tail)

        if self._pending is not None and not self._pending.done():
            log.debug("Replacing pending trigger with one for turn %r", tail.id)
            self._pending.cancel()

        task = asyncio.get_running_loop().create_task(
            self._run_after(delay_ms), name=f"cyoa-auto-trigger:{tail.id}"
        )
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        log.debug("Scheduled suggestions for turn %r in %d ms", tail.id, delay_ms)
        return task

    def on_context_changed(self, *_args: object, **_kwargs: object) -> None:
        """Forget the processed turn and drop a trigger still in its delay."""
        self.state.reset()
        if self.cancel_pending():
            log.debug("Context changed; cancelled pending trigger")

    async def force_trigger(self) -> SessionOutcome:
        """Run a session now, bypassing the auto-generate and dedup checks.

        Selection and history are still required (the session enforces them)
        and a held gate turns this into a no-op. ``last_processed`` is left
        untouched.
        """
        if self.gate.busy:
            log.debug("Manual trigger ignored; suggestion request already in flight")
            return SessionOutcome.BUSY
        self.cancel_pending()
        return await self.session.run()

    def cancel_pending(self) -> bool:
        """Cancel a trigger that has not started its session yet."""
        task = self._pending
        self._pending = None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    # --- Host wiring ---

    def attach(self) -> None:
        """Subscribe to the host's notifications."""
        self.host.subscribe(HostEvent.TURN_APPENDED, self.on_turn_appended)
        self.host.subscribe(HostEvent.CONTEXT_CHANGED, self.on_context_changed)

    def detach(self) -> None:
        """Unsubscribe from the host and cancel a pending trigger."""
        self.host.unsubscribe(HostEvent.TURN_APPENDED, self.on_turn_appended)
        self.host.unsubscribe(HostEvent.CONTEXT_CHANGED, self.on_context_changed)
        self.cancel_pending()

    async def _run_after(self, delay_ms: int) -> SessionOutcome | None:
        await self._sleep(delay_ms / 1000)
        # Past the delay the session is no longer cancellable by context changes.
        if self._pending is asyncio.current_task():
            self._pending = None
        try:
            return await self.session.run()
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("Auto-generated suggestions failed")
            return None
