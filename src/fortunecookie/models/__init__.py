"""Data models for fortunes."""

from fortunecookie.models.fortune import (
    MAX_WORDS,
    Candidate,
    FallbackFortune,
    GenerationResult,
    InvalidThemeError,
    Theme,
    ValidatedFortune,
    count_words,
)

__all__ = [
    "MAX_WORDS",
    "Candidate",
    "FallbackFortune",
    "GenerationResult",
    "InvalidThemeError",
    "Theme",
    "ValidatedFortune",
    "count_words",
]
