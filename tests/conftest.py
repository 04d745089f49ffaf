"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and the in-memory
collaborators most tests need. Isolation fixtures are autouse.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from cyoa.config import default_config
from cyoa.gate import GenerationGate
from cyoa.session import SuggestionSession
from cyoa.testing import (
    InMemoryChatHost,
    RecordingPresentation,
    ScriptedGenerationService,
    make_turn,
)
from cyoa.turns import Role

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_cyoa_env(monkeypatch):
    """Clear CYOA_* variables so settings tests start from defaults."""
    for key in list(os.environ.keys()):
        if key.startswith("CYOA_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def config():
    """Defaults with auto-generation switched on."""
    return default_config().with_changes(auto_generate=True)


@pytest.fixture
def story_turns():
    """Opening narration, a user reply and a fresh assistant turn."""
    return [
        make_turn(0, Role.ASSISTANT, "The tavern door creaks open."),
        make_turn(1, Role.USER, "I step inside and look around."),
        make_turn(2, Role.ASSISTANT, "A hooded figure beckons from the corner."),
    ]


@pytest.fixture
def host(story_turns):
    return InMemoryChatHost(story_turns)


@pytest.fixture
def service():
    return ScriptedGenerationService()


@pytest.fixture
def presentation():
    return RecordingPresentation()


@pytest.fixture
def gate():
    return GenerationGate()


@pytest.fixture
def session(host, service, presentation, config, gate):
    return SuggestionSession(host, service, presentation, config=config, gate=gate)
