"""Reading-time delay heuristic for auto-triggered suggestions.

Estimates how long a person needs to read the last turn before new choices
appear. Pure and deterministic.
"""

from __future__ import annotations

WORDS_PER_MINUTE = 200
BASE_DELAY_MS = 1500
MS_PER_CHAR = 10
MAX_LENGTH_DELAY_MS = 5000
MIN_DELAY_MS = 2000
MAX_DELAY_MS = 15000
#: Returned by `reading_delay_ms` for empty text, below MIN_DELAY_MS.
EMPTY_TEXT_DELAY_MS = 1000
#: Delay used when dynamic timeout is switched off.
FIXED_DELAY_MS = 2000

_MS_PER_WORD = 60_000 / WORDS_PER_MINUTE


def clamp_delay_ms(delay_ms: float) -> int:
    """Clamp *delay_ms* into ``[MIN_DELAY_MS, MAX_DELAY_MS]``."""
    return int(min(max(delay_ms, MIN_DELAY_MS), MAX_DELAY_MS))


def _raw_delay_ms(text: str) -> float:
    word_count = len(text.split())
    reading_time = word_count * _MS_PER_WORD
    length_time = min(len(text) * MS_PER_CHAR, MAX_LENGTH_DELAY_MS)
    return BASE_DELAY_MS + reading_time + length_time


def reading_delay_ms(text: str | None) -> int:
    """Return the unclamped reading delay for *text* in milliseconds.

    Empty or absent text yields the fixed ``EMPTY_TEXT_DELAY_MS`` floor.
    Callers that schedule work should use `estimate_delay_ms` instead.
    """
    if not text:
        return EMPTY_TEXT_DELAY_MS
    return int(_raw_delay_ms(text))


def estimate_delay_ms(text: str | None) -> int:
    """Return the clamped delay before surfacing suggestions after *text*.

    ``1500 + words * 300 + min(chars * 10, 5000)``, clamped to
    ``[2000, 15000]``. Non-decreasing as text is appended.
    """
    return clamp_delay_ms(_raw_delay_ms(text or ""))
