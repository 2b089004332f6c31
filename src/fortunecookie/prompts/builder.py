"""Build the system/user prompt pair for a theme."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Protocol

from fortunecookie.models.fortune import MAX_WORDS, Candidate, Theme
from fortunecookie.prompts.loader import PromptLoader

DEFAULT_TEMPLATE = "fortune"

_VAR_PATTERN = re.compile(r"\{\{\s*([a-z_]+)\s*\}\}")


@dataclass(frozen=True)
class Prompt:
    """Prompt content for one generation, stable across all attempts."""

    system_prompt: str
    user_prompt: str


class PromptBuilder(Protocol):
    """Anything that turns a theme into a Prompt."""

    def build(self, theme: Theme) -> Prompt: ...


def response_schema() -> dict[str, Any]:
    """JSON schema the model is asked to follow (by alias, as sent on the wire)."""
    return Candidate.model_json_schema(by_alias=True)


def _substitute(text: str, context: dict[str, str]) -> str:
    """Replace ``{{ name }}`` placeholders; unknown names are left as-is."""

    def replace_match(match: re.Match[str]) -> str:
        return context.get(match.group(1), match.group(0))

    return _VAR_PATTERN.sub(replace_match, text)


class TemplatePromptBuilder:
    """Renders prompts from a YAML template.

    The template provides ``system`` and ``user`` texts plus per-theme
    guidance. Available placeholders: ``theme``, ``theme_guidance``,
    ``schema`` and ``max_words``.
    """

    def __init__(
        self,
        loader: PromptLoader | None = None,
        template_name: str = DEFAULT_TEMPLATE,
    ) -> None:
        self._loader = loader or PromptLoader()
        self._template_name = template_name

    def build(self, theme: Theme) -> Prompt:
        """Render the prompt for a theme.

        Raises:
            TemplateNotFoundError: If the template file doesn't exist.
            TemplateParseError: If the template cannot be parsed.
            KeyError: If the template has no guidance for the theme.
        """
        template = self._loader.load(self._template_name)
        if theme.value not in template.themes:
            raise KeyError(f"Template '{template.name}' has no guidance for theme '{theme}'")

        context = {
            "theme": theme.value,
            "theme_guidance": template.themes[theme.value].strip(),
            "schema": json.dumps(response_schema(), indent=4),
            "max_words": str(MAX_WORDS),
        }
        return Prompt(
            system_prompt=_substitute(template.system, context).strip(),
            user_prompt=_substitute(template.user, context).strip(),
        )
