"""Generation pipeline: ladder, retry policy, fallbacks and orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fortunecookie.models.fortune import Theme
from fortunecookie.pipeline.config import ConfigError, FortuneConfig, load_config
from fortunecookie.pipeline.fallback import FallbackBank, FallbackBankError, load_fallback_bank
from fortunecookie.pipeline.ladder import DEFAULT_LADDERS, LadderError, ModelLadder
from fortunecookie.pipeline.orchestrator import FortuneOrchestrator
from fortunecookie.pipeline.retry import (
    AttemptOutcome,
    LadderCursor,
    RateLimited,
    RetryPolicy,
    Success,
    TransportError,
)
from fortunecookie.prompts.builder import TemplatePromptBuilder
from fortunecookie.providers.factory import create_provider

if TYPE_CHECKING:
    from fortunecookie.observability import CallLogger
    from fortunecookie.prompts.builder import PromptBuilder
    from fortunecookie.providers import CompletionProvider


def build_orchestrator(
    config: FortuneConfig,
    provider: CompletionProvider | None = None,
    prompt_builder: PromptBuilder | None = None,
    call_logger: CallLogger | None = None,
) -> FortuneOrchestrator:
    """Wire an orchestrator from configuration.

    Everything that can be checked up front is checked here, so bad
    fallback data or a broken prompt template fails at startup rather
    than on the first request.

    Args:
        config: Loaded configuration.
        provider: Provider to use; created from config when None.
        prompt_builder: Prompt builder; the packaged template when None.
        call_logger: Records every provider call when given.

    Returns:
        Ready-to-use FortuneOrchestrator.

    Raises:
        ProviderError: If the provider cannot be created.
        FallbackBankError: If the fallback data is invalid.
        LadderError: If the provider has no default ladder and none is set.
    """
    ladder = config.ladder
    fallback_bank = load_fallback_bank(config.fallbacks_path)
    builder = prompt_builder or TemplatePromptBuilder()
    for theme in Theme:
        builder.build(theme)

    if provider is None:
        provider = create_provider(
            config.provider,
            api_key=config.api_key,
            call_logger=call_logger,
            timeout=config.timeout,
        )

    return FortuneOrchestrator(
        provider=provider,
        ladder=ladder,
        fallback_bank=fallback_bank,
        policy=config.retry_policy,
        prompt_builder=builder,
        temperature=config.temperature,
    )


__all__ = [
    "DEFAULT_LADDERS",
    "AttemptOutcome",
    "ConfigError",
    "FallbackBank",
    "FallbackBankError",
    "FortuneConfig",
    "FortuneOrchestrator",
    "LadderCursor",
    "LadderError",
    "ModelLadder",
    "RateLimited",
    "RetryPolicy",
    "Success",
    "TransportError",
    "build_orchestrator",
    "load_config",
    "load_fallback_bank",
]
