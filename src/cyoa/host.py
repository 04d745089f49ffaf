"""Protocols for the collaborators around the suggestion core.

The chat host, generation service and presentation layer live outside this
library. These protocols list only what the core calls; `cyoa.testing` has
in-memory implementations.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Hashable, Sequence

    from cyoa.turns import Role, Turn

#: Longest button label shown for a suggestion; the full text is still used.
MAX_DISPLAY_LENGTH = 120


class HostEvent(str, Enum):
    """Notifications a chat host emits."""

    TURN_APPENDED = "turn_appended"
    CONTEXT_CHANGED = "context_changed"


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@runtime_checkable
class ChatHost(Protocol):
    """The chat application holding the turn history."""

    @property
    def turns(self) -> Sequence[Turn]:
        """Current turns, oldest first."""
        ...

    @property
    def has_selection(self) -> bool:
        """Whether a character or group is selected."""
        ...

    @property
    def group_selected(self) -> bool:
        """Whether the active chat is a multi-participant group."""
        ...

    @property
    def is_generating(self) -> bool:
        """Whether the host is generating a reply of its own."""
        ...

    @property
    def is_group_generating(self) -> bool:
        """Whether a group member is generating a reply."""
        ...

    def append_turn(
        self,
        *,
        role: Role,
        name: str,
        text: str,
        tag: str | None = None,
        suggestions: tuple[str, ...] = (),
    ) -> Turn:
        """Append a turn, assign its id and return it."""
        ...

    def remove_turn(self, turn_id: Hashable) -> None:
        """Remove the turn with *turn_id*."""
        ...

    async def generate_as_user(self, prompt: str) -> None:
        """Send *prompt* through the host's impersonation pathway."""
        ...

    def set_compose_text(self, text: str) -> None:
        """Replace the contents of the user's composing buffer."""
        ...

    def subscribe(self, event: HostEvent, callback: Callable[..., Any]) -> None:
        """Call *callback* whenever *event* fires."""
        ...

    def unsubscribe(self, event: HostEvent, callback: Callable[..., Any]) -> None:
        """Stop calling *callback* for *event*."""
        ...

    def register_command(
        self, name: str, callback: Callable[[], Awaitable[Any]], help_text: str
    ) -> None:
        """Expose *callback* to the host's scripting layer as ``/name``."""
        ...

    def register_macro(self, name: str, provider: Callable[[], str]) -> None:
        """Resolve ``{{name}}`` in host prompts with *provider()*."""
        ...


@runtime_checkable
class GenerationService(Protocol):
    """Produces text for a prompt in the current chat context."""

    async def generate(
        self,
        prompt: str,
        *,
        quiet_to_loud: bool = False,
        skip_world_info: bool = False,
        response_length: int | None = None,
        label: str | None = None,
    ) -> str:
        """Return generated text or raise."""
        ...


@runtime_checkable
class Presentation(Protocol):
    """Displays suggestions and notices to the user."""

    def display(self, suggestions: Sequence[str]) -> None:
        """Show *suggestions* as selectable choices."""
        ...

    def notify(self, level: NoticeLevel, message: str) -> None:
        """Show a transient notice."""
        ...


def display_label(text: str, max_length: int = MAX_DISPLAY_LENGTH) -> str:
    """Return *text* shortened for a button label.

    Only the label is shortened; selection always hands back the full text.
    """
    if max_length < 4:
        raise ValueError(f"max_length must be >= 4, got {max_length}")
    text = text.strip()
    if len(text) <= max_length:
        return text
    return text[: max_length - 3].rstrip() + "..."
