from __future__ import annotations

import pytest

import cyoa
from cyoa.host import ChatHost, GenerationService, Presentation, display_label
from cyoa.testing import (
    InMemoryChatHost,
    RecordingPresentation,
    ScriptedGenerationService,
)

pytestmark = pytest.mark.unit


def test_in_memory_doubles_satisfy_protocols() -> None:
    assert isinstance(InMemoryChatHost(), ChatHost)
    assert isinstance(ScriptedGenerationService(), GenerationService)
    assert isinstance(RecordingPresentation(), Presentation)


def test_display_label_keeps_short_text() -> None:
    assert display_label("  Go north  ") == "Go north"


def test_display_label_truncates_long_text() -> None:
    label = display_label("Climb the tower and ring the bell", max_length=15)
    assert label == "Climb the to..."
    assert len(label) <= 15


def test_display_label_rejects_tiny_width() -> None:
    with pytest.raises(ValueError):
        display_label("anything", max_length=3)


def test_public_api_exports() -> None:
    for name in cyoa.__all__:
        assert hasattr(cyoa, name), name
    assert isinstance(cyoa.__version__, str)
