"""Fortune models: themes, validated candidates and generation results."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# A final message must have strictly fewer words than this
MAX_WORDS = 15


class InvalidThemeError(ValueError):
    """Raised when a theme value is not one of the known themes."""

    def __init__(self, value: object) -> None:
        self.value = value
        allowed = ", ".join(t.value for t in Theme)
        super().__init__(f"Invalid theme {value!r}: must be one of {allowed}")


class Theme(StrEnum):
    """Emotional register of the generated message."""

    WHOLESOME = "wholesome"
    DARK = "dark"

    @classmethod
    def parse(cls, value: object) -> Theme:
        """Convert a raw value into a Theme.

        Args:
            value: Theme instance or exact theme name ("wholesome", "dark").

        Returns:
            The matching Theme.

        Raises:
            InvalidThemeError: If the value is not a known theme.
        """
        if isinstance(value, Theme):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise InvalidThemeError(value)


def count_words(text: str) -> int:
    """Count maximal runs of non-whitespace characters."""
    return len(text.split())


class Candidate(BaseModel):
    """A decoded, schema-valid fortune produced by the model.

    The JSON contract uses ``finalMessage``; Python code uses ``final_message``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    reasoning: str = Field(description="How the message was chosen")
    score: float = Field(description="Self-assessed quality score")
    final_message: str = Field(
        alias="finalMessage",
        description=f"The fortune itself, fewer than {MAX_WORDS} words",
    )

    @property
    def word_count(self) -> int:
        return count_words(self.final_message)


class ValidatedFortune(BaseModel):
    """A fortune generated live by a model and accepted by the validator."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["validated"] = "validated"
    candidate: Candidate
    system_prompt: str
    user_prompt: str
    model: str

    @property
    def message(self) -> str:
        return self.candidate.final_message

    def to_payload(self) -> dict[str, Any]:
        """Build the response body returned to callers."""
        return {
            "finalMessage": self.candidate.final_message,
            "reasoning": self.candidate.reasoning,
            "score": self.candidate.score,
            "model": self.model,
            "source": "llm",
        }


class FallbackFortune(BaseModel):
    """A canned fortune used after every live attempt failed.

    Carries no prompts, score or reasoning.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["fallback"] = "fallback"
    message: str

    def to_payload(self) -> dict[str, Any]:
        """Build the response body returned to callers."""
        return {"finalMessage": self.message, "source": "fallback"}


GenerationResult = Annotated[ValidatedFortune | FallbackFortune, Field(discriminator="kind")]
