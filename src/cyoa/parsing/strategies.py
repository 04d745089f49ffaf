"""Built-in, pure extraction strategies used by `SuggestionParser`.

Each factory returns a `StrategySpec` whose extractor maps raw generated text
to a list of suggestion strings, or None when the strategy does not apply.
Consumers can reuse these factories or hand their own `StrategySpec`s to
`SuggestionParser`.
"""

from __future__ import annotations

import re
import unicodedata

from .extraction import StrategySpec, clean_items

# --- Patterns ---

_TAG_PATTERN = re.compile(
    r"<\s*suggestion\s*>(.*?)<\s*/\s*suggestion\s*>", re.IGNORECASE | re.DOTALL
)

# Tried in order; the first one with a hit anywhere in the text wins.
_NUMBERED_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("dot", re.compile(r"^[ \t]*\d+\.(?!\d)[ \t]*(.+)$", re.MULTILINE)),
    ("paren", re.compile(r"^[ \t]*\d+\)[ \t]*(.+)$", re.MULTILINE)),
    ("colon", re.compile(r"^[ \t]*\d+:(?!\d)[ \t]*(.+)$", re.MULTILINE)),
    ("dash", re.compile(r"^[ \t]*\d+[ \t]*-[ \t]+(.+)$", re.MULTILINE)),
)

_LABELLED_PATTERN = re.compile(
    r"^[ \t]*suggestion[ \t_]*\d+[ \t]*:[ \t]*(.+)$", re.IGNORECASE | re.MULTILINE
)

# Lines mentioning these are commentary about the list, not list content.
_META_WORDS = ("suggestion", "response", "option")
_PREAMBLES = ("here", "i ")
_MIN_LINE_LENGTH = 10


# --- Built-in Strategies ---


def tag_strategy() -> StrategySpec:
    """Return a `StrategySpec` for ``<suggestion>...</suggestion>`` items.

    This is the canonical format requested from the generation service. Tags
    match case-insensitively, may span lines, and are matched non-greedily so
    adjacent tags stay separate.
    """

    def extractor(text: str, _expected_count: int) -> list[str] | None:
        items = clean_items(_TAG_PATTERN.findall(text))
        return items or None

    return StrategySpec(name="tag", extractor=extractor, priority=90)


def labelled_line_strategy() -> StrategySpec:
    """Return a `StrategySpec` for ``Suggestion 1: text`` style lines.

    Not part of `default_strategies`, which mirrors the canonical chain. The
    extension's parser adds it ahead of the numbered list, since the
    heuristic strategy rejects these lines for mentioning "suggestion".
    """

    def extractor(text: str, _expected_count: int) -> list[str] | None:
        items = clean_items(_LABELLED_PATTERN.findall(text))
        return items or None

    return StrategySpec(name="labelled_line", extractor=extractor, priority=80)


def numbered_list_strategy() -> StrategySpec:
    """Return a `StrategySpec` for numbered lists.

    Patterns are tried in order: ``N. text``, ``N) text``, ``N: text`` and
    ``N - text``. Each is line-anchored with one match per line, and the first
    pattern producing at least one item across the whole text is used alone.
    """

    def extractor(text: str, _expected_count: int) -> list[str] | None:
        for _name, pattern in _NUMBERED_PATTERNS:
            items = clean_items(pattern.findall(text))
            if items:
                return items
        return None

    return StrategySpec(name="numbered_list", extractor=extractor, priority=70)


_ANGLE_BRACKETS = frozenset("<>")


def _is_punctuation(ch: str) -> bool:
    # Unicode P* covers most brackets; symbols and emoji (S*) are content.
    return ch in _ANGLE_BRACKETS or unicodedata.category(ch).startswith("P")


def _is_content_line(line: str) -> bool:
    if len(line) <= _MIN_LINE_LENGTH:
        return False
    # Single tokens are labels or stray words, not story beats.
    if not any(ch.isspace() for ch in line):
        return False
    lowered = line.lower()
    if any(word in lowered for word in _META_WORDS):
        return False
    if all(ch.isspace() or _is_punctuation(ch) for ch in line):
        return False
    return not lowered.startswith(_PREAMBLES)


def heuristic_line_strategy() -> StrategySpec:
    """Return a `StrategySpec` that keeps plausible free-text lines.

    A trimmed line survives when it is longer than 10 characters, has an
    interior space, does not mention "suggestion", "response" or "option",
    is not only brackets and punctuation, and does not open with "here" or
    "i ". At most ``expected_count`` lines are returned.
    """

    def extractor(text: str, expected_count: int) -> list[str] | None:
        lines = [line.strip() for line in text.splitlines()]
        kept = [line for line in lines if _is_content_line(line)]
        return kept[:expected_count] or None

    return StrategySpec(name="heuristic_line", extractor=extractor, priority=20)


# --- Default Strategy Collection ---


def default_strategies() -> list[StrategySpec]:
    """Get the default strategy chain, most specific first."""
    return [
        tag_strategy(),
        numbered_list_strategy(),
        heuristic_line_strategy(),
    ]


def create_strategy_registry() -> dict[str, StrategySpec]:
    """Create a registry of all built-in strategies by name."""
    return {
        spec.name: spec for spec in (*default_strategies(), labelled_line_strategy())
    }
