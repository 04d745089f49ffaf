"""Exception hierarchy for cyoa.

Every failure mode of a suggestion cycle maps to one type here. The session
boundary recovers all of them; callers using the lower-level pieces (gate,
parser, readiness checks) catch them directly.
"""

from __future__ import annotations


class CyoaError(Exception):
    """Base exception for all cyoa errors."""

    def __init__(self, message: str | None, *, hint: str | None = None) -> None:
        """Initialize with an optional actionable hint."""
        self.hint = hint
        super().__init__(str(message) if message is not None else "None")

    def __str__(self) -> str:
        """Return the message followed by the hint, when present."""
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


# --- Actionable Hints ---

HINTS = {
    "invalid_count": "num_suggestions and response_length must be integers >= 1.",
    "empty_template": (
        "Prompt templates cannot be blank. Reset suggestion_prompt or "
        "impersonate_prompt to the defaults in cyoa.prompts."
    ),
    "parse_failure": (
        "Ask the model to wrap each item in <suggestion> tags, or lower "
        "num_suggestions."
    ),
    "unknown_setting": (
        "Valid settings are auto_generate, dynamic_timeout, apply_world_info, "
        "num_suggestions, response_length, suggestion_prompt and impersonate_prompt."
    ),
    "busy": "Another suggestion request is in flight; trigger again once it finishes.",
}


class ConfigurationError(CyoaError):
    """Raised for invalid configuration values."""


class NoSelectionError(CyoaError):
    """No character or group is selected in the host."""


class EmptyHistoryError(CyoaError):
    """The chat history has no turns yet."""


class AlreadyBusyError(CyoaError):
    """The generation gate is already held by another request."""

    def __init__(self, message: str = "Generation gate is busy") -> None:
        """Create a busy error carrying the standard hint."""
        super().__init__(message, hint=HINTS["busy"])


class ParseFailure(CyoaError):
    """No extraction strategy produced a suggestion."""

    def __init__(self, message: str, *, attempted: tuple[str, ...] = ()) -> None:
        """Record which strategies were attempted before giving up."""
        self.attempted = attempted
        super().__init__(message, hint=HINTS["parse_failure"])


class GenerationServiceFailure(CyoaError):
    """The generation service raised while producing suggestion text.

    The original exception is kept both as ``underlying_error`` and as the
    ``__cause__`` when raised with ``from``.
    """

    def __init__(self, message: str, underlying_error: BaseException) -> None:
        """Wrap *underlying_error* with a readable message."""
        self.underlying_error = underlying_error
        super().__init__(f"{message}: {underlying_error}")
