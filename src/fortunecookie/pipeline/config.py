"""Process-wide configuration loading.

Resolution order for every setting (highest first):
1. Environment variable (e.g., FORTUNE_MAX_ATTEMPTS)
2. YAML config file (``--config`` or ./fortune.yaml when present)
3. Built-in defaults

Configuration is read once at startup and never changes afterwards.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from fortunecookie.pipeline.ladder import LadderError, ModelLadder
from fortunecookie.pipeline.retry import RetryPolicy
from fortunecookie.providers.factory import normalize_provider

DEFAULT_PROVIDER = "groq"
DEFAULT_CONFIG_FILE = Path("fortune.yaml")

# Environment variable -> config field
ENV_VARS: dict[str, str] = {
    "FORTUNE_PROVIDER": "provider",
    "FORTUNE_MODELS": "models",
    "FORTUNE_MAX_ATTEMPTS": "max_attempts_per_model",
    "FORTUNE_MAX_PASSES": "max_passes",
    "FORTUNE_PASS_DELAY": "pass_delay",
    "FORTUNE_DEADLINE": "deadline",
    "FORTUNE_TEMPERATURE": "temperature",
    "FORTUNE_FALLBACKS": "fallbacks_path",
}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid configuration ({path}): {reason}")


@dataclass(frozen=True)
class FortuneConfig:
    """Configuration for fortune generation.

    Attributes:
        provider: Provider name (groq, openai, anthropic, google, ollama).
        models: Model ladder; empty means the provider's default ladder.
        max_attempts_per_model: Attempts per model before moving on.
        max_passes: Full passes over the ladder.
        pass_delay: Seconds to pause between passes.
        deadline: Optional overall time budget per generation, in seconds.
        temperature: Sampling temperature.
        timeout: Per-request HTTP timeout in seconds.
        fallbacks_path: Custom fallback YAML; None uses the packaged file.
        api_key: Provider credential; None reads the provider's env var.
    """

    provider: str = DEFAULT_PROVIDER
    models: tuple[str, ...] = field(default_factory=tuple)
    max_attempts_per_model: int = 3
    max_passes: int = 1
    pass_delay: float = 1.0
    deadline: float | None = None
    temperature: float = 1.0
    timeout: float = 30.0
    fallbacks_path: Path | None = None
    api_key: str | None = field(default=None, repr=False)

    @property
    def ladder(self) -> ModelLadder:
        """Effective model ladder."""
        if self.models:
            return ModelLadder.of(self.models)
        return ModelLadder.default_for(self.provider)

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy built from this config."""
        return RetryPolicy(
            max_attempts_per_model=self.max_attempts_per_model,
            max_passes=self.max_passes,
            pass_delay=self.pass_delay,
            deadline=self.deadline,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: Path | str = "<dict>") -> FortuneConfig:
        """Create config from a dictionary.

        Args:
            data: Mapping with any of the config fields. ``retry`` may hold
                a nested mapping of the retry fields.
            source: Where the data came from, for error messages.

        Returns:
            FortuneConfig instance.

        Raises:
            ConfigError: If a value has the wrong type or range.
        """
        flat = dict(data)
        retry = flat.pop("retry", None) or {}
        if not isinstance(retry, Mapping):
            raise ConfigError(source, "'retry' must be a mapping")
        flat.update(retry)

        unknown = set(flat) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(source, f"unknown keys: {', '.join(sorted(unknown))}")

        return _coerce(cls(), flat, source)


def _coerce(base: FortuneConfig, values: Mapping[str, Any], source: Path | str) -> FortuneConfig:
    """Apply raw values onto a config, converting and validating each field."""
    changes: dict[str, Any] = {}
    try:
        for key, value in values.items():
            if key == "provider":
                changes[key] = normalize_provider(str(value))
            elif key == "models":
                if isinstance(value, str):
                    value = [m for m in value.split(",") if m.strip()]
                changes[key] = tuple(str(m).strip() for m in value)
            elif key in ("max_attempts_per_model", "max_passes"):
                changes[key] = int(value)
            elif key in ("pass_delay", "temperature", "timeout"):
                changes[key] = float(value)
            elif key == "deadline":
                changes[key] = None if value in (None, "", "none") else float(value)
            elif key == "fallbacks_path":
                changes[key] = Path(value) if value else None
            elif key == "api_key":
                changes[key] = str(value) if value else None
    except (TypeError, ValueError) as e:
        raise ConfigError(source, f"bad value for '{key}': {e}") from e

    config = replace(base, **changes)
    try:
        config.retry_policy  # noqa: B018 - validates ranges
        if config.models:
            config.ladder  # noqa: B018 - validates models
    except (LadderError, ValueError) as e:
        raise ConfigError(source, str(e)) from e
    if config.timeout <= 0:
        raise ConfigError(source, "timeout must be positive")
    return config


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> FortuneConfig:
    """Load configuration from YAML and environment.

    Args:
        path: Config file. If None, ./fortune.yaml is used when it exists.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        FortuneConfig instance.

    Raises:
        ConfigError: If the file is missing (when given explicitly),
            unparsable, or holds invalid values.
    """
    environ = os.environ if environ is None else environ
    config = FortuneConfig()

    if path is None and DEFAULT_CONFIG_FILE.exists():
        path = DEFAULT_CONFIG_FILE

    if path is not None:
        if not path.exists():
            raise ConfigError(path, "File not found")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = YAML(typ="safe").load(f)
        except Exception as e:
            raise ConfigError(path, str(e)) from e
        if data is not None:
            if not isinstance(data, dict):
                raise ConfigError(path, "expected a mapping at top level")
            config = FortuneConfig.from_dict(data, source=path)

    overrides = {
        field_name: environ[var]
        for var, field_name in ENV_VARS.items()
        if environ.get(var, "").strip()
    }
    if overrides:
        config = _coerce(config, overrides, "environment")

    return config
