"""Ordered model fallback ladders.

Models on one provider usually sit in separate rate-limit buckets, so a
throttled call can often succeed on the next model. Ladders list the
cheapest, fastest model first.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from fortunecookie.providers.factory import normalize_provider

# Provider default ladders - first entry is tried first
DEFAULT_LADDERS: dict[str, tuple[str, ...]] = {
    "groq": (
        "llama-3.1-8b-instant",
        "llama-3.3-70b-versatile",
        "gemma2-9b-it",
        "meta-llama/llama-4-scout-17b-16e-instruct",
        "qwen/qwen3-32b",
    ),
    "openai": ("gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"),
    "anthropic": ("claude-3-5-haiku-latest", "claude-sonnet-4-20250514"),
    "google": ("gemini-2.5-flash-lite", "gemini-2.5-flash"),
    "ollama": ("qwen3:4b-instruct-32k", "llama3.1:8b"),
}


class LadderError(ValueError):
    """Raised when a model ladder is empty or malformed."""


@dataclass(frozen=True)
class ModelLadder:
    """Immutable, ordered sequence of model identifiers.

    Attributes:
        models: Model ids, tried left to right.
    """

    models: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.models:
            raise LadderError("Model ladder must contain at least one model")
        for model in self.models:
            if not isinstance(model, str) or not model.strip():
                raise LadderError(f"Invalid model identifier: {model!r}")
        if len(set(self.models)) != len(self.models):
            raise LadderError(f"Model ladder contains duplicates: {list(self.models)}")

    @classmethod
    def of(cls, models: Sequence[str]) -> ModelLadder:
        """Build a ladder from any sequence, stripping whitespace."""
        return cls(tuple(m.strip() if isinstance(m, str) else m for m in models))

    @classmethod
    def default_for(cls, provider: str) -> ModelLadder:
        """Return the default ladder for a provider (aliases such as "gemini" resolve).

        Raises:
            LadderError: If the provider has no default ladder.
        """
        try:
            return cls(DEFAULT_LADDERS[normalize_provider(provider)])
        except KeyError:
            raise LadderError(f"No default model ladder for provider: {provider}") from None

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[str]:
        return iter(self.models)

    def __getitem__(self, index: int) -> str:
        return self.models[index]
