"""Configuration resolution, aliases and validation."""

from __future__ import annotations

import pytest

from cyoa.config import (
    FrozenConfig,
    default_config,
    load_env,
    resolve_config,
)
from cyoa.errors import HINTS, ConfigurationError
from cyoa.prompts import DEFAULT_IMPERSONATE_PROMPT, DEFAULT_SUGGESTION_PROMPT

pytestmark = pytest.mark.unit


def test_defaults() -> None:
    cfg = default_config()
    assert cfg.auto_generate is False
    assert cfg.dynamic_timeout is True
    assert cfg.apply_world_info is True
    assert cfg.num_suggestions == 5
    assert cfg.response_length == 500
    assert cfg.suggestion_prompt == DEFAULT_SUGGESTION_PROMPT
    assert cfg.impersonate_prompt == DEFAULT_IMPERSONATE_PROMPT


def test_default_config_ignores_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CYOA_NUM_SUGGESTIONS", "9")
    assert default_config().num_suggestions == 5


def test_env_values_are_coerced(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CYOA_AUTO_GENERATE", "true")
    monkeypatch.setenv("CYOA_NUM_SUGGESTIONS", "3")
    cfg = resolve_config()
    assert cfg.auto_generate is True
    assert cfg.num_suggestions == 3


def test_overrides_beat_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CYOA_NUM_SUGGESTIONS", "3")
    cfg = resolve_config({"num_suggestions": 7})
    assert cfg.num_suggestions == 7


def test_load_env_skips_unknown_keys() -> None:
    env = {
        "CYOA_RESPONSE_LENGTH": "250",
        "CYOA_NOT_A_FIELD": "x",
        "OTHER_NUM_SUGGESTIONS": "2",
    }
    assert load_env(env) == {"response_length": "250"}


def test_legacy_keys_are_accepted() -> None:
    cfg = resolve_config(
        {
            "num_responses": 4,
            "apply_wi_an": False,
            "llm_prompt": "Give {{suggestionNumber}} ideas",
            "llm_prompt_impersonate": "Write: {{suggestionText}}",
        },
        use_env=False,
    )
    assert cfg.num_suggestions == 4
    assert cfg.apply_world_info is False
    assert cfg.suggestion_prompt == "Give {{suggestionNumber}} ideas"
    assert cfg.impersonate_prompt == "Write: {{suggestionText}}"


def test_with_changes_returns_new_instance() -> None:
    cfg = default_config()
    updated = cfg.with_changes(auto_generate=True, num_suggestions=2)
    assert updated.auto_generate is True
    assert updated.num_suggestions == 2
    assert cfg.auto_generate is False
    assert isinstance(updated, FrozenConfig)


def test_with_changes_accepts_legacy_keys() -> None:
    cfg = default_config().with_changes(
        num_responses=3,
        llm_prompt="Give {{suggestionNumber}} ideas",
        apply_wi_an=False,
    )
    assert cfg.num_suggestions == 3
    assert cfg.suggestion_prompt == "Give {{suggestionNumber}} ideas"
    assert cfg.apply_world_info is False


def test_with_changes_rejects_unknown_keys() -> None:
    with pytest.raises(ConfigurationError, match="auto_generte") as excinfo:
        default_config().with_changes(auto_generte=True)
    assert excinfo.value.hint == HINTS["unknown_setting"]


def test_frozen() -> None:
    cfg = default_config()
    with pytest.raises(AttributeError):
        cfg.num_suggestions = 3  # type: ignore[misc]


@pytest.mark.parametrize("field", ["num_suggestions", "response_length"])
@pytest.mark.parametrize("value", [0, -1])
def test_invalid_counts(field: str, value: int) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        default_config().with_changes(**{field: value})
    assert field in str(excinfo.value)
    assert excinfo.value.hint == HINTS["invalid_count"]


@pytest.mark.parametrize("field", ["suggestion_prompt", "impersonate_prompt"])
def test_blank_templates_rejected(field: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        default_config().with_changes(**{field: "   \n"})
    assert "must not be blank" in str(excinfo.value)
    assert excinfo.value.hint == HINTS["empty_template"]


def test_invalid_env_value_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CYOA_NUM_SUGGESTIONS", "lots")
    with pytest.raises(ConfigurationError, match="num_suggestions"):
        resolve_config()


def test_str_hides_prompt_bodies() -> None:
    cfg = default_config()
    text = str(cfg)
    assert "auto_generate=False" in text
    assert f"suggestion_prompt=<{len(DEFAULT_SUGGESTION_PROMPT)} chars>" in text
    assert "Stop the roleplay" not in text


def test_to_dict_round_trips() -> None:
    cfg = default_config().with_changes(response_length=42)
    assert resolve_config(cfg.to_dict(), use_env=False) == cfg
