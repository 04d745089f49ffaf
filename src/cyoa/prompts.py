"""Default prompt templates and macro substitution.

Templates use ``{{name}}`` placeholders. Only the macros this library owns are
substituted here; anything else (``{{user}}``, ``{{char}}``) is left intact
for the chat host to resolve.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

SUGGESTION_NUMBER_MACRO = "suggestionNumber"
SUGGESTION_TEXT_MACRO = "suggestionText"

DEFAULT_SUGGESTION_PROMPT = """\
Stop the roleplay now and provide a response with {{suggestionNumber}} brief distinct single-sentence suggestions for the next story beat on {{user}} perspective. Ensure each suggestion aligns with its corresponding description:
1. Eases tension and improves the protagonist's situation
2. Creates or increases tension and worsens the protagonist's situation
3. Leads directly but believably to a wild twist or super weird event
4. Slowly moves the story forward without ending the current scene
5. Pushes the story forward, potentially ending the current scene if feasible

Each suggestion surrounded by `<suggestion>` tags. E.g:
<suggestion>suggestion_1</suggestion>
<suggestion>suggestion_2</suggestion>
...

Do not include any other content in your response."""

DEFAULT_IMPERSONATE_PROMPT = """\
[Event Direction for the next story beat on {{user}} perspective: `{{suggestionText}}`]
[Based on the expected events, write the user response]"""

_MACRO_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def substitute_macros(template: str, values: Mapping[str, object]) -> str:
    """Replace ``{{name}}`` placeholders whose name is in *values*.

    Unknown placeholders are kept verbatim. Substituted text is inserted
    literally and is not scanned again for placeholders.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in values:
            return str(values[name])
        return match.group(0)

    return _MACRO_PATTERN.sub(_replace, template)


def build_suggestion_prompt(template: str, num_suggestions: int) -> str:
    """Render the suggestion-request prompt."""
    return substitute_macros(template, {SUGGESTION_NUMBER_MACRO: num_suggestions})


def build_impersonate_prompt(template: str, suggestion_text: str) -> str:
    """Render the impersonation prompt for a chosen suggestion."""
    return substitute_macros(template, {SUGGESTION_TEXT_MACRO: suggestion_text})
