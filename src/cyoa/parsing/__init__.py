"""Suggestion extraction: strategy types, built-in strategies and the parser."""

from .extraction import ParseDiagnostics, ParseResult, StrategySpec
from .parser import SuggestionParser, parse_suggestions, parse_suggestions_or_raise
from .strategies import (
    create_strategy_registry,
    default_strategies,
    heuristic_line_strategy,
    labelled_line_strategy,
    numbered_list_strategy,
    tag_strategy,
)

__all__ = [
    "ParseDiagnostics",
    "ParseResult",
    "StrategySpec",
    "SuggestionParser",
    "create_strategy_registry",
    "default_strategies",
    "heuristic_line_strategy",
    "labelled_line_strategy",
    "numbered_list_strategy",
    "parse_suggestions",
    "parse_suggestions_or_raise",
    "tag_strategy",
]
