"""Turn model and dedup identity.

Turns are owned by the chat host; this module only describes the shape the
core reads and the identity it derives for dedup.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Hashable, Sequence

SUGGESTION_BATCH_TAG = "suggestion-batch"
#: Speaker name given to synthetic suggestion-batch turns.
SUGGESTION_BATCH_NAME = "CYOA Suggestions"
#: Number of leading text characters folded into a turn's identity.
IDENTITY_PREFIX_CHARS = 50


class Role(str, Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Turn:
    """One message in the chat history.

    Attributes:
        id: Host-assigned identifier. Hosts may reuse ids after edits or
            regenerations, so never dedup on it alone.
        role: Who authored the turn.
        text: Message body.
        name: Speaker name; empty for malformed turns.
        tag: Optional marker, ``SUGGESTION_BATCH_TAG`` for suggestion batches.
        suggestions: Payload of a suggestion-batch turn.
    """

    id: Hashable
    role: Role
    text: str = ""
    name: str = ""
    tag: str | None = None
    suggestions: tuple[str, ...] = ()

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER

    @property
    def is_assistant(self) -> bool:
        return self.role is Role.ASSISTANT

    @property
    def is_suggestion_batch(self) -> bool:
        return self.tag == SUGGESTION_BATCH_TAG


@dataclass(frozen=True)
class TurnIdentity:
    """Dedup key for a turn: id, role and a prefix of its text."""

    turn_id: Any
    role: Role
    text_prefix: str


def identity_of(turn: Turn) -> TurnIdentity:
    """Return the dedup identity of *turn*.

    The text prefix guards against hosts reusing an id for different content.
    """
    return TurnIdentity(
        turn_id=turn.id,
        role=turn.role,
        text_prefix=(turn.text or "")[:IDENTITY_PREFIX_CHARS],
    )


def tail_turn(turns: Sequence[Turn]) -> Turn | None:
    """Return the last turn, or None for an empty history."""
    return turns[-1] if turns else None
