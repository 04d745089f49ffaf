"""Configuration schema and resolution.

Values flow through a Pydantic `Settings` schema (fields, defaults,
validation) and are frozen into an immutable `FrozenConfig` that the
controller and session read. Resolution precedence is
defaults < environment (``CYOA_*``) < explicit overrides.

Legacy setting keys (``llm_prompt``, ``num_responses``, ...) are accepted
as aliases so previously saved settings load as-is.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
import os
from typing import TYPE_CHECKING, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from cyoa.errors import HINTS, ConfigurationError
from cyoa.prompts import DEFAULT_IMPERSONATE_PROMPT, DEFAULT_SUGGESTION_PROMPT

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

ENV_PREFIX = "CYOA_"

_DOTENV_LOADED: bool = False

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Pydantic schema for suggestion settings.

    Single source of truth for field names, types, defaults and validation.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    auto_generate: bool = Field(default=False)
    dynamic_timeout: bool = Field(default=True)
    apply_world_info: bool = Field(
        default=True,
        validation_alias=AliasChoices("apply_world_info", "apply_wi_an"),
    )
    num_suggestions: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("num_suggestions", "num_responses"),
    )
    response_length: int = Field(default=500, ge=1)
    suggestion_prompt: str = Field(
        default=DEFAULT_SUGGESTION_PROMPT,
        validation_alias=AliasChoices("suggestion_prompt", "llm_prompt"),
    )
    impersonate_prompt: str = Field(
        default=DEFAULT_IMPERSONATE_PROMPT,
        validation_alias=AliasChoices("impersonate_prompt", "llm_prompt_impersonate"),
    )

    @field_validator("suggestion_prompt", "impersonate_prompt")
    @classmethod
    def reject_blank_template(cls, v: str) -> str:
        """Templates must contain something besides whitespace."""
        if not v.strip():
            raise ValueError("prompt template must not be blank")
        return v


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenConfig:
    """Validated, immutable settings read by the controller and session."""

    auto_generate: bool
    dynamic_timeout: bool
    apply_world_info: bool
    num_suggestions: int
    response_length: int
    suggestion_prompt: str
    impersonate_prompt: str

    def with_changes(self, **changes: Any) -> FrozenConfig:
        """Return a re-validated copy with *changes* applied.

        Legacy keys are mapped to their field names before merging.

        Raises:
            ConfigurationError: If a key names no setting or the edited values
                fail validation.
        """
        edits = {_canonical_key(key): value for key, value in changes.items()}
        unknown = sorted(set(edits) - set(Settings.model_fields))
        if unknown:
            raise ConfigurationError(
                f"Unknown setting(s): {', '.join(unknown)}",
                hint=HINTS["unknown_setting"],
            )
        return _validate({**asdict(self), **edits})

    def to_dict(self) -> dict[str, Any]:
        """Return the settings as a plain key-value mapping."""
        return asdict(self)

    def __str__(self) -> str:
        """Summarize without dumping the full prompt templates."""
        fields = []
        for name, value in asdict(self).items():
            if name.endswith("_prompt"):
                fields.append(f"{name}=<{len(value)} chars>")
            else:
                fields.append(f"{name}={value!r}")
        return f"FrozenConfig({', '.join(fields)})"

    __repr__ = __str__


# --- Loading ---


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once per process."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


def load_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Return ``CYOA_*`` variables keyed by lowercase field name.

    Values stay strings; the schema coerces ``"true"``/``"5"`` and friends.
    Variables that do not name a settings field are skipped.
    """
    source = os.environ if environ is None else environ
    known = set(Settings.model_fields)
    config: dict[str, Any] = {}
    for key, value in source.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in known:
            config[field_name] = value
    return config


# --- Public resolution API ---


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    *,
    use_env: bool = True,
) -> FrozenConfig:
    """Resolve settings from defaults, environment and overrides.

    Args:
        overrides: Programmatic values; legacy extension keys are accepted.
        use_env: Read ``CYOA_*`` environment variables (and ``.env``).

    Returns:
        A validated `FrozenConfig`.

    Raises:
        ConfigurationError: If validation fails.
    """
    merged: dict[str, Any] = {}
    if use_env:
        _try_load_dotenv()
        merged.update(load_env())
    for key, value in (overrides or {}).items():
        merged[_canonical_key(key)] = value
    return _validate(merged)


def default_config() -> FrozenConfig:
    """Return the built-in defaults, ignoring the environment."""
    return resolve_config(use_env=False)


# --- Internal helpers ---


def _canonical_key(key: str) -> str:
    for name, info in Settings.model_fields.items():
        alias = info.validation_alias
        if isinstance(alias, AliasChoices) and key in alias.choices:
            return name
    return key


def _validate(data: Mapping[str, Any]) -> FrozenConfig:
    try:
        settings = Settings.model_validate(dict(data))
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        # Strip Pydantic's standard wrapper prefix
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]

        hint = None
        if field in {"num_suggestions", "response_length"}:
            hint = HINTS["invalid_count"]
        elif field.endswith("_prompt"):
            hint = HINTS["empty_template"]

        raise ConfigurationError(
            f"Configuration validation failed for {field or 'settings'}: {msg}",
            hint=hint,
        ) from e

    frozen = FrozenConfig(**settings.model_dump())
    log.debug("Resolved %s", frozen)
    return frozen
