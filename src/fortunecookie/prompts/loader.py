"""Template loading for fortune prompts."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

# Packaged templates live next to this module
DEFAULT_PROMPTS_PATH = Path(__file__).parent


@dataclass(frozen=True)
class PromptTemplate:
    """A loaded prompt template.

    Attributes:
        name: Template name.
        description: What the template is for.
        system: System prompt text with ``{{ variable }}`` placeholders.
        user: User prompt text with ``{{ variable }}`` placeholders.
        themes: Theme name -> theme-specific guidance text.
    """

    name: str
    description: str
    system: str
    user: str
    themes: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str) -> PromptTemplate:
        """Create a template from dictionary data.

        Args:
            data: Dictionary containing template fields.
            name: Template name (usually from filename).

        Returns:
            PromptTemplate instance.
        """
        themes = data.get("themes") or {}
        return cls(
            name=data.get("name", name),
            description=data.get("description", ""),
            system=str(data.get("system", "")),
            user=str(data.get("user", "")),
            themes={str(k): str(v) for k, v in dict(themes).items()},
        )


class TemplateNotFoundError(Exception):
    """Raised when a template file cannot be found."""

    def __init__(self, template_name: str, path: Path) -> None:
        self.template_name = template_name
        self.path = path
        super().__init__(f"Template not found: {template_name} at {path}")


class TemplateParseError(Exception):
    """Raised when a template file cannot be parsed."""

    def __init__(self, template_name: str, reason: str) -> None:
        self.template_name = template_name
        self.reason = reason
        super().__init__(f"Failed to parse template '{template_name}': {reason}")


class PromptLoader:
    """Load prompt templates from disk.

    Templates are YAML files in the templates/ subdirectory. Loaded
    templates are cached; the cache is safe to share between concurrent
    generations.

    Attributes:
        prompts_path: Path to the prompts directory.
    """

    def __init__(self, prompts_path: Path = DEFAULT_PROMPTS_PATH) -> None:
        """Initialize the loader.

        Args:
            prompts_path: Path to the prompts directory.
        """
        self.prompts_path = prompts_path
        self.templates_path = prompts_path / "templates"
        self._cache: dict[str, PromptTemplate] = {}
        self._lock = threading.Lock()

    def _get_template_path(self, template_name: str) -> Path:
        return self.templates_path / f"{template_name}.yaml"

    def load(self, template_name: str) -> PromptTemplate:
        """Load a template by name.

        Args:
            template_name: Name of the template (without .yaml extension).

        Returns:
            Loaded PromptTemplate.

        Raises:
            TemplateNotFoundError: If the template file doesn't exist.
            TemplateParseError: If the template cannot be parsed.
        """
        with self._lock:
            if template_name in self._cache:
                return self._cache[template_name]

            path = self._get_template_path(template_name)
            if not path.exists():
                raise TemplateNotFoundError(template_name, path)

            try:
                with path.open("r", encoding="utf-8") as f:
                    data = YAML(typ="safe").load(f)

                if data is None:
                    raise TemplateParseError(template_name, "Empty file")

                template = PromptTemplate.from_dict(dict(data), template_name)
            except Exception as e:
                if isinstance(e, TemplateParseError):
                    raise
                raise TemplateParseError(template_name, str(e)) from e

            self._cache[template_name] = template
            return template

    def exists(self, template_name: str) -> bool:
        """Check if a template exists."""
        return self._get_template_path(template_name).exists()

    def list_templates(self) -> list[str]:
        """List available template names (without .yaml extension)."""
        if not self.templates_path.exists():
            return []

        return sorted(p.stem for p in self.templates_path.glob("*.yaml") if p.is_file())

    def clear_cache(self) -> None:
        """Clear the template cache."""
        with self._lock:
            self._cache.clear()
