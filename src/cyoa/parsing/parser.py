"""Suggestion parser: raw generated text to an ordered list of suggestions.

`SuggestionParser` runs its strategies in priority order and stops at the
first one that yields at least one non-empty item. Results from different
strategies are never mixed. When nothing matches the parser returns None and
leaves recovery to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cyoa.errors import ParseFailure

from .extraction import ParseDiagnostics, ParseResult, StrategySpec, clean_items
from .strategies import default_strategies

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)


class SuggestionParser:
    """Apply a prioritized strategy chain to generated text.

    Attributes:
        strategies: Strategies in the order they are tried.
        max_text_size: Longer inputs are truncated before parsing.
    """

    def __init__(
        self,
        strategies: Iterable[StrategySpec] | None = None,
        *,
        max_text_size: int = 100_000,
    ) -> None:
        """Initialize the parser.

        Args:
            strategies: Optional strategies. Defaults to `default_strategies()`.
            max_text_size: Max text length to process.
        """
        specs = tuple(strategies if strategies is not None else default_strategies())
        names = [spec.name for spec in specs]
        if len(set(names)) != len(names):
            raise ValueError(f"Strategy names must be unique, got {names}")
        if max_text_size < 1:
            raise ValueError(f"max_text_size must be >= 1, got {max_text_size}")
        # Higher priority first, name as a deterministic tiebreaker.
        self.strategies: tuple[StrategySpec, ...] = tuple(
            sorted(specs, key=lambda s: (-s.priority, s.name))
        )
        self.max_text_size = max_text_size

    def parse(self, raw_text: str | None, expected_count: int) -> list[str] | None:
        """Return suggestions extracted from *raw_text*, or None."""
        result, _ = self.parse_with_diagnostics(raw_text, expected_count)
        return list(result.suggestions) if result is not None else None

    def parse_with_diagnostics(
        self, raw_text: str | None, expected_count: int
    ) -> tuple[ParseResult | None, ParseDiagnostics]:
        """Run the strategy chain and report what happened.

        A strategy that raises is recorded in the diagnostics and skipped.

        Args:
            raw_text: Generated text; None is treated as empty.
            expected_count: Number of suggestions requested from the model.

        Returns:
            The winning `ParseResult` (or None) and the `ParseDiagnostics`.
        """
        if expected_count < 1:
            raise ValueError(f"expected_count must be >= 1, got {expected_count}")

        diagnostics = ParseDiagnostics()
        text = raw_text or ""
        if not text.strip():
            diagnostics.flags.add("empty_input")
            return None, diagnostics

        if len(text) > self.max_text_size:
            text = text[: self.max_text_size]
            diagnostics.flags.add("truncated_input")

        for spec in self.strategies:
            diagnostics.attempted_strategies.append(spec.name)
            try:
                items = spec.extractor(text, expected_count)
            except Exception as e:
                log.debug("Strategy %s failed: %s", spec.name, e)
                diagnostics.strategy_errors[spec.name] = str(e)
                continue

            cleaned = clean_items(items or [])
            if cleaned:
                diagnostics.successful_strategy = spec.name
                return ParseResult(tuple(cleaned), spec.name), diagnostics

        log.debug(
            "No strategy matched (%d chars, tried %s)",
            len(text),
            ", ".join(diagnostics.attempted_strategies),
        )
        return None, diagnostics


_DEFAULT_PARSER = SuggestionParser()


def parse_suggestions(raw_text: str | None, expected_count: int) -> list[str] | None:
    """Parse *raw_text* with the default strategy chain.

    Returns:
        Suggestions in source order, or None when no strategy matched.

    Example:
        parse_suggestions("1. Open the door\\n2. Run away", 5)
        # ['Open the door', 'Run away']
    """
    return _DEFAULT_PARSER.parse(raw_text, expected_count)


def parse_suggestions_or_raise(
    raw_text: str | None,
    expected_count: int,
    *,
    parser: SuggestionParser | None = None,
) -> list[str]:
    """Like `parse_suggestions` but raise `ParseFailure` instead of returning None."""
    active = parser or _DEFAULT_PARSER
    result, diagnostics = active.parse_with_diagnostics(raw_text, expected_count)
    if result is None:
        raise ParseFailure(
            "No suggestions found in generated text",
            attempted=tuple(diagnostics.attempted_strategies),
        )
    return list(result.suggestions)
