"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from fortunecookie.models.fortune import Theme
from fortunecookie.pipeline import FallbackBank, ModelLadder, RetryPolicy
from fortunecookie.pipeline.config import ENV_VARS
from fortunecookie.prompts.builder import Prompt

WHOLESOME_FALLBACKS = (
    "Your houseplants forgive you for every missed watering.",
    "Someone still smiles at the memory of your laugh.",
)
DARK_FALLBACKS = (
    "Your five-year plan is three vibes in a trench coat.",
    "Your inbox zero lasted exactly as long as your resolve.",
)


@pytest.fixture(autouse=True)
def clean_fortune_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep FORTUNE_* settings from the developer's shell out of tests."""
    for var in (*ENV_VARS, "FORTUNE_CONFIG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fallback_bank() -> FallbackBank:
    """Small, seeded fallback bank."""
    return FallbackBank(
        {Theme.WHOLESOME: WHOLESOME_FALLBACKS, Theme.DARK: DARK_FALLBACKS},
        rng=random.Random(7),
    )


@pytest.fixture
def three_model_ladder() -> ModelLadder:
    return ModelLadder.of(["model-a", "model-b", "model-c"])


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Default bounds with no pause between passes."""
    return RetryPolicy(max_attempts_per_model=3, max_passes=1, pass_delay=0.0)


@pytest.fixture
def static_prompt() -> Prompt:
    return Prompt(system_prompt="Answer in JSON.", user_prompt="Write a fortune.")
