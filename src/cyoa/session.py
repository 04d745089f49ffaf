"""One end-to-end suggestion cycle and the selection callbacks.

`SuggestionSession.run()` removes a stale batch, takes the generation gate,
waits (bounded) for unrelated host generation, asks the generation service
for suggestions, parses them and hands them to the presentation layer. Every
failure is recovered here and reported through a notice; the gate is always
released.
"""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
import time
from typing import TYPE_CHECKING

from cyoa._wait import wait_until
from cyoa.errors import EmptyHistoryError, GenerationServiceFailure, NoSelectionError
from cyoa.gate import GenerationGate
from cyoa.host import NoticeLevel
from cyoa.parsing import SuggestionParser
from cyoa.prompts import build_impersonate_prompt, build_suggestion_prompt
from cyoa.turns import SUGGESTION_BATCH_NAME, SUGGESTION_BATCH_TAG, Role, tail_turn

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from cyoa.config import FrozenConfig
    from cyoa.host import ChatHost, GenerationService, Presentation

log = logging.getLogger(__name__)

GENERATION_LABEL = "Suggestion List"

# Bounded waits for unrelated generation: group tier, then general tier.
GROUP_WAIT_TIMEOUT_S = 1.0
GROUP_WAIT_INTERVAL_S = 0.01
GENERAL_WAIT_TIMEOUT_S = 30.0
GENERAL_WAIT_INTERVAL_S = 0.1


class SessionOutcome(str, Enum):
    """How a call to `SuggestionSession.run` ended."""

    DISPLAYED = "displayed"
    PARSE_FAILED = "parse_failed"
    FAILED = "failed"
    BUSY = "busy"
    SKIPPED = "skipped"


class SuggestionSession:
    """Orchestrates suggestion generation against the host collaborators.

    Attributes:
        config: Settings read at the start of each cycle; reassign to apply
            user edits.
        gate: Single-flight guard shared with the controller.
        parser: Strategy chain used on generated text.
    """

    def __init__(
        self,
        host: ChatHost,
        service: GenerationService,
        presentation: Presentation,
        *,
        config: FrozenConfig,
        gate: GenerationGate | None = None,
        parser: SuggestionParser | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Wire the session to its collaborators.

        Args:
            host: Chat host owning the turn history.
            service: Generation service producing suggestion text.
            presentation: Receives suggestions and notices.
            config: Active settings.
            gate: Shared gate; a private one is created when omitted.
            parser: Parser to use; defaults to the built-in strategy chain.
            clock: Monotonic clock for bounded waits.
            sleep: Async sleep for bounded waits.
        """
        self.host = host
        self.service = service
        self.presentation = presentation
        self.config = config
        self.gate = gate if gate is not None else GenerationGate()
        self.parser = parser if parser is not None else SuggestionParser()
        self._clock = clock
        self._sleep = sleep

    # --- Preconditions ---

    def ensure_ready(self) -> None:
        """Raise when the host has nothing to generate suggestions for.

        Raises:
            NoSelectionError: No character or group is selected.
            EmptyHistoryError: The chat has no turns.
        """
        if not self.host.has_selection:
            raise NoSelectionError("No character or group selected")
        if not self.host.turns:
            raise EmptyHistoryError("Chat history is empty")

    def remove_stale_batch(self) -> bool:
        """Remove a suggestion batch sitting at the tail; return True if removed."""
        tail = tail_turn(self.host.turns)
        if tail is None or not tail.is_suggestion_batch:
            return False
        log.debug("Removing stale suggestion batch %r", tail.id)
        self.host.remove_turn(tail.id)
        return True

    async def wait_for_idle(self) -> bool:
        """Wait, within bounds, for unrelated host generation to finish.

        A timeout is not an error: the caller proceeds anyway.

        Returns:
            True if the host went idle within both bounds.
        """
        idle = True
        if self.host.group_selected:
            group_idle = await wait_until(
                lambda: not self.host.is_group_generating,
                timeout_s=GROUP_WAIT_TIMEOUT_S,
                interval_s=GROUP_WAIT_INTERVAL_S,
                clock=self._clock,
                sleep=self._sleep,
            )
            if not group_idle:
                log.debug(
                    "Group still generating after %.1fs; proceeding",
                    GROUP_WAIT_TIMEOUT_S,
                )
                idle = False

        host_idle = await wait_until(
            lambda: not self.host.is_generating,
            timeout_s=GENERAL_WAIT_TIMEOUT_S,
            interval_s=GENERAL_WAIT_INTERVAL_S,
            clock=self._clock,
            sleep=self._sleep,
        )
        if not host_idle:
            log.debug(
                "Host still generating after %.1fs; proceeding",
                GENERAL_WAIT_TIMEOUT_S,
            )
            idle = False
        return idle

    # --- Cycle ---

    async def run(self) -> SessionOutcome:
        """Generate and display one batch of suggestions.

        Never raises except for cancellation.
        """
        try:
            self.ensure_ready()
        except (NoSelectionError, EmptyHistoryError) as e:
            log.debug("Skipping suggestion session: %s", e)
            return SessionOutcome.SKIPPED

        try:
            self.remove_stale_batch()
            if self.gate.busy:
                log.debug("Suggestion request already in flight; skipping")
                return SessionOutcome.BUSY
            async with self.gate.hold():
                return await self._generate_and_display()
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("Suggestion session failed")
            self._notify(NoticeLevel.ERROR, "CYOA: Failed to generate options")
            return SessionOutcome.FAILED

    async def _generate_and_display(self) -> SessionOutcome:
        cfg = self.config
        await self.wait_for_idle()

        self._notify(NoticeLevel.INFO, "CYOA: Generating response...")
        prompt = build_suggestion_prompt(cfg.suggestion_prompt, cfg.num_suggestions)
        try:
            raw = await self.service.generate(
                prompt,
                quiet_to_loud=False,
                skip_world_info=not cfg.apply_world_info,
                response_length=cfg.response_length,
                label=GENERATION_LABEL,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            failure = GenerationServiceFailure("Suggestion generation failed", e)
            log.error("%s", failure, exc_info=e)
            self._notify(NoticeLevel.ERROR, "CYOA: Failed to generate options")
            return SessionOutcome.FAILED

        result, diagnostics = self.parser.parse_with_diagnostics(
            raw, cfg.num_suggestions
        )
        if result is None:
            log.warning(
                "Could not parse suggestions (tried %s)",
                ", ".join(diagnostics.attempted_strategies) or "nothing",
            )
            self._notify(NoticeLevel.ERROR, "CYOA: Failed to parse response")
            return SessionOutcome.PARSE_FAILED

        log.debug(
            "Parsed %d suggestions with %s", len(result.suggestions), result.strategy
        )
        # The host may have appended a batch of its own while we waited.
        self.remove_stale_batch()
        batch = self.host.append_turn(
            role=Role.USER,
            name=SUGGESTION_BATCH_NAME,
            text="\n".join(result.suggestions),
            tag=SUGGESTION_BATCH_TAG,
            suggestions=result.suggestions,
        )
        try:
            self.presentation.display(list(result.suggestions))
        except Exception:
            # No buttons were shown, so the batch must not linger in history.
            self.host.remove_turn(batch.id)
            raise
        self._notify(NoticeLevel.SUCCESS, "CYOA: Options generated successfully")
        return SessionOutcome.DISPLAYED

    # --- Selection callbacks ---

    async def on_select(self, text: str) -> bool:
        """Impersonate the user along the chosen suggestion.

        Returns:
            True if a prompt was forwarded to the host.
        """
        suggestion = (text or "").strip()
        if not suggestion:
            return False
        await self.wait_for_idle()
        self.remove_stale_batch()
        prompt = build_impersonate_prompt(self.config.impersonate_prompt, suggestion)
        try:
            await self.host.generate_as_user(prompt)
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("Impersonation request failed")
            self._notify(NoticeLevel.ERROR, "CYOA: Failed to send the selected option")
            return False
        return True

    async def on_edit(self, text: str) -> bool:
        """Put the raw suggestion in the composing buffer for manual revision.

        Returns:
            True if the buffer was filled.
        """
        suggestion = (text or "").strip()
        if not suggestion:
            return False
        self.remove_stale_batch()
        self.host.set_compose_text(suggestion)
        return True

    def _notify(self, level: NoticeLevel, message: str) -> None:
        try:
            self.presentation.notify(level, message)
        except Exception as e:
            log.error("Presentation notice failed: %s", e, exc_info=True)
