"""In-memory collaborators for tests and demos.

Small, deterministic stand-ins for the chat host, generation service and
presentation layer. They record every call so tests can assert on behavior
without a real chat application.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import itertools
from typing import TYPE_CHECKING, Any

from cyoa.host import HostEvent, NoticeLevel
from cyoa.turns import Role, Turn

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence

_DEFAULT_NAMES = {Role.USER: "You", Role.ASSISTANT: "Narrator", Role.SYSTEM: "System"}


class InMemoryChatHost:
    """Chat host keeping turns in a list.

    ``append_turn`` stores silently (like the host adding a synthetic turn);
    ``receive`` stores and emits ``TURN_APPENDED`` like a real incoming message.
    """

    def __init__(
        self,
        turns: Iterable[Turn] = (),
        *,
        has_selection: bool = True,
        group_selected: bool = False,
    ) -> None:
        """Create a host with optional initial *turns*."""
        self._turns: list[Turn] = list(turns)
        self._ids = itertools.count(len(self._turns))
        self.has_selection = has_selection
        self.group_selected = group_selected
        self.is_generating = False
        self.is_group_generating = False
        self.impersonated: list[str] = []
        self.compose_text: str = ""
        self.removed: list[Hashable] = []
        self.commands: dict[str, tuple[Callable[[], Awaitable[Any]], str]] = {}
        self.macros: dict[str, Callable[[], str]] = {}
        self._subscribers: dict[HostEvent, list[Callable[..., Any]]] = {}

    @property
    def turns(self) -> Sequence[Turn]:
        return tuple(self._turns)

    def append_turn(
        self,
        *,
        role: Role,
        name: str,
        text: str,
        tag: str | None = None,
        suggestions: tuple[str, ...] = (),
    ) -> Turn:
        turn = Turn(
            id=next(self._ids),
            role=role,
            text=text,
            name=name,
            tag=tag,
            suggestions=suggestions,
        )
        self._turns.append(turn)
        return turn

    def remove_turn(self, turn_id: Hashable) -> None:
        self._turns = [t for t in self._turns if t.id != turn_id]
        self.removed.append(turn_id)

    async def generate_as_user(self, prompt: str) -> None:
        self.impersonated.append(prompt)

    def set_compose_text(self, text: str) -> None:
        self.compose_text = text

    def subscribe(self, event: HostEvent, callback: Callable[..., Any]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: HostEvent, callback: Callable[..., Any]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def register_command(
        self, name: str, callback: Callable[[], Awaitable[Any]], help_text: str
    ) -> None:
        self.commands[name] = (callback, help_text)

    def register_macro(self, name: str, provider: Callable[[], str]) -> None:
        self.macros[name] = provider

    # --- Driving helpers ---

    def emit(self, event: HostEvent, *args: Any) -> list[Any]:
        """Call every subscriber of *event* and return their results."""
        return [callback(*args) for callback in list(self._subscribers.get(event, []))]

    def receive(self, role: Role, text: str, *, name: str | None = None) -> list[Any]:
        """Append an incoming turn and emit ``TURN_APPENDED``."""
        if name is None:
            name = _DEFAULT_NAMES[role]
        turn = self.append_turn(role=role, name=name, text=text)
        return self.emit(HostEvent.TURN_APPENDED, turn.id)

    def load_chat(self, turns: Iterable[Turn] = ()) -> list[Any]:
        """Replace the history (new chat or character) and emit ``CONTEXT_CHANGED``."""
        self._turns = list(turns)
        self._ids = itertools.count(len(self._turns))
        return self.emit(HostEvent.CONTEXT_CHANGED)


@dataclass
class ScriptedGenerationService:
    """Generation service returning a scripted sequence of texts or errors.

    When ``release`` is set, each call blocks until the event is set, which
    lets tests hold a request in flight.
    """

    script: list[str | BaseException] = field(default_factory=list)
    default_text: str = "<suggestion>Look around</suggestion>"
    release: asyncio.Event | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def generate(
        self,
        prompt: str,
        *,
        quiet_to_loud: bool = False,
        skip_world_info: bool = False,
        response_length: int | None = None,
        label: str | None = None,
    ) -> str:
        self.calls.append(
            {
                "prompt": prompt,
                "quiet_to_loud": quiet_to_loud,
                "skip_world_info": skip_world_info,
                "response_length": response_length,
                "label": label,
            }
        )
        if self.release is not None:
            await self.release.wait()
        if not self.script:
            return self.default_text
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


@dataclass
class RecordingPresentation:
    """Presentation layer that records what it was asked to show."""

    displayed: list[list[str]] = field(default_factory=list)
    notices: list[tuple[NoticeLevel, str]] = field(default_factory=list)

    def display(self, suggestions: Sequence[str]) -> None:
        self.displayed.append(list(suggestions))

    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append((level, message))

    def levels(self) -> list[NoticeLevel]:
        return [level for level, _ in self.notices]


def make_turn(
    turn_id: Hashable,
    role: Role,
    text: str = "",
    *,
    name: str | None = None,
    tag: str | None = None,
) -> Turn:
    """Build a turn with a sensible default speaker name for its role."""
    if name is None:
        name = _DEFAULT_NAMES[role]
    return Turn(id=turn_id, role=role, text=text, name=name, tag=tag)
