"""Types used by the suggestion extraction chain.

Provides the strategy specification consumed by `SuggestionParser` plus the
result and diagnostics records it produces. Useful for callers writing their
own strategies or inspecting why a parse failed.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


# --- Strategy Specification ---


@dataclasses.dataclass(frozen=True)
class StrategySpec:
    """Specification for a pure extraction strategy.

    Attributes:
        name: Unique strategy name.
        extractor: Callable returning extracted items, or None when the
            strategy does not apply to the text.
        priority: Higher values run before lower ones.
    """

    name: str
    extractor: Callable[[str, int], list[str] | None]
    priority: int = 0

    def __post_init__(self) -> None:
        """Validate strategy specification at construction time."""
        if not self.name or not isinstance(self.name, str):
            raise ValueError(f"Strategy name must be non-empty string, got {self.name}")

        if not callable(self.extractor):
            raise ValueError(f"Strategy {self.name}: extractor must be callable")


# --- Results ---


@dataclasses.dataclass(frozen=True)
class ParseResult:
    """Suggestions produced by the winning strategy.

    Attributes:
        suggestions: Trimmed, non-empty suggestion strings in source order.
        strategy: Name of the strategy that produced them.
    """

    suggestions: tuple[str, ...]
    strategy: str

    def __post_init__(self) -> None:
        """Reject empty or untrimmed results at the source."""
        if not self.suggestions:
            raise ValueError("ParseResult requires at least one suggestion")
        for item in self.suggestions:
            if not item or item != item.strip():
                raise ValueError(f"Suggestion must be trimmed and non-empty: {item!r}")


@dataclasses.dataclass
class ParseDiagnostics:
    """Record of one pass through the strategy chain."""

    attempted_strategies: list[str] = dataclasses.field(default_factory=list)
    successful_strategy: str | None = None
    strategy_errors: dict[str, str] = dataclasses.field(default_factory=dict)
    flags: set[str] = dataclasses.field(default_factory=set)


def clean_items(items: list[str]) -> list[str]:
    """Trim each item and drop the ones left empty."""
    cleaned = []
    for item in items:
        stripped = item.strip() if isinstance(item, str) else ""
        if stripped:
            cleaned.append(stripped)
    return cleaned
