"""cyoa: next-beat suggestions for turn-based chat.

Public API:
    - parse_suggestions(): Extract suggestions from generated text
    - estimate_delay_ms(): Reading-time delay before auto-suggesting
    - SuggestionSession: One generate-parse-display cycle
    - AutoTriggerController: Decides when to run a session
    - SuggestionExtension: Wires both into a chat host
"""

from __future__ import annotations

import logging

from cyoa.config import FrozenConfig, Settings, default_config, resolve_config
from cyoa.controller import AutoTriggerController, ControllerState, Eligibility
from cyoa.errors import (
    AlreadyBusyError,
    ConfigurationError,
    CyoaError,
    EmptyHistoryError,
    GenerationServiceFailure,
    NoSelectionError,
    ParseFailure,
)
from cyoa.extension import SuggestionExtension
from cyoa.gate import GenerationGate
from cyoa.host import (
    ChatHost,
    GenerationService,
    HostEvent,
    NoticeLevel,
    Presentation,
    display_label,
)
from cyoa.parsing import SuggestionParser, parse_suggestions
from cyoa.session import SessionOutcome, SuggestionSession
from cyoa.timing import estimate_delay_ms, reading_delay_ms
from cyoa.turns import SUGGESTION_BATCH_TAG, Role, Turn, TurnIdentity, identity_of

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("cyoa-suggestions")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("cyoa").addHandler(logging.NullHandler())

__all__ = [
    "SUGGESTION_BATCH_TAG",
    "AlreadyBusyError",
    "AutoTriggerController",
    "ChatHost",
    "ConfigurationError",
    "ControllerState",
    "CyoaError",
    "Eligibility",
    "EmptyHistoryError",
    "FrozenConfig",
    "GenerationGate",
    "GenerationService",
    "GenerationServiceFailure",
    "HostEvent",
    "NoSelectionError",
    "NoticeLevel",
    "ParseFailure",
    "Presentation",
    "Role",
    "SessionOutcome",
    "Settings",
    "SuggestionExtension",
    "SuggestionParser",
    "SuggestionSession",
    "Turn",
    "TurnIdentity",
    "default_config",
    "display_label",
    "estimate_delay_ms",
    "identity_of",
    "parse_suggestions",
    "reading_delay_ms",
    "resolve_config",
]
