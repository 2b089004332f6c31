"""Prompt templates and the default prompt builder."""

from fortunecookie.prompts.builder import (
    DEFAULT_TEMPLATE,
    Prompt,
    PromptBuilder,
    TemplatePromptBuilder,
    response_schema,
)
from fortunecookie.prompts.loader import (
    PromptLoader,
    PromptTemplate,
    TemplateNotFoundError,
    TemplateParseError,
)

__all__ = [
    "DEFAULT_TEMPLATE",
    "Prompt",
    "PromptBuilder",
    "PromptLoader",
    "PromptTemplate",
    "TemplateNotFoundError",
    "TemplateParseError",
    "TemplatePromptBuilder",
    "response_schema",
]
