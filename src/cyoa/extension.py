"""Extension bootstrap: wires the core into a chat host.

`SuggestionExtension` builds the gate, parser, session and controller around
the host's collaborators, subscribes to host notifications, and registers the
``cyoa`` command and the ``suggestionNumber`` macro.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from cyoa.config import default_config
from cyoa.controller import AutoTriggerController
from cyoa.gate import GenerationGate
from cyoa.parsing import SuggestionParser, create_strategy_registry
from cyoa.prompts import SUGGESTION_NUMBER_MACRO
from cyoa.session import SuggestionSession

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from cyoa.config import FrozenConfig
    from cyoa.host import ChatHost, GenerationService, Presentation
    from cyoa.session import SessionOutcome

log = logging.getLogger(__name__)

COMMAND_NAME = "cyoa"
COMMAND_HELP = "Triggers CYOA responses generation."


def default_parser() -> SuggestionParser:
    """Return the parser used by the extension: every built-in strategy.

    Adds ``Suggestion N: text`` lines to the default chain so models that
    ignore the tag format still produce choices.
    """
    return SuggestionParser(create_strategy_registry().values())


class SuggestionExtension:
    """Owns one controller/session pair for a chat host.

    Example:
        ext = SuggestionExtension(host, service, presentation)
        ext.install()
        ext.update_config(auto_generate=True)
    """

    def __init__(
        self,
        host: ChatHost,
        service: GenerationService,
        presentation: Presentation,
        *,
        config: FrozenConfig | None = None,
        parser: SuggestionParser | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Build the core components around the host collaborators.

        *parser* defaults to `default_parser()`. *sleep* is used for the
        auto-trigger delay.
        """
        self.host = host
        self._config = config if config is not None else default_config()
        self.gate = GenerationGate()
        self.session = SuggestionSession(
            host,
            service,
            presentation,
            config=self._config,
            gate=self.gate,
            parser=parser if parser is not None else default_parser(),
        )
        self.controller = AutoTriggerController(
            host, self.session, config=self._config, sleep=sleep
        )
        self._installed = False

    @property
    def config(self) -> FrozenConfig:
        return self._config

    def update_config(self, **changes: Any) -> FrozenConfig:
        """Apply user edits and push the new settings to every component.

        Raises:
            ConfigurationError: If the edits fail validation; nothing changes.
        """
        updated = self._config.with_changes(**changes)
        self.set_config(updated)
        return updated

    def set_config(self, config: FrozenConfig) -> None:
        """Replace the active settings."""
        self._config = config
        self.session.config = config
        self.controller.config = config
        if not config.auto_generate and self.controller.cancel_pending():
            log.debug("Auto-generation disabled; cancelled pending trigger")
        log.debug("Applied %s", config)

    def install(self) -> None:
        """Subscribe to host events and register the command and macro."""
        if self._installed:
            return
        self.controller.attach()
        self.host.register_command(COMMAND_NAME, self.regenerate, COMMAND_HELP)
        self.host.register_macro(SUGGESTION_NUMBER_MACRO, self._suggestion_number)
        self._installed = True

    def uninstall(self) -> None:
        """Unsubscribe from host events and cancel any pending trigger."""
        if not self._installed:
            return
        self.controller.detach()
        self._installed = False

    async def regenerate(self) -> SessionOutcome:
        """Generate suggestions now (the ``/cyoa`` command and menu button)."""
        return await self.controller.force_trigger()

    async def on_select(self, text: str) -> bool:
        return await self.session.on_select(text)

    async def on_edit(self, text: str) -> bool:
        return await self.session.on_edit(text)

    def _suggestion_number(self) -> str:
        return str(self._config.num_suggestions)
