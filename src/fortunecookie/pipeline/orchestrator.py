"""Fortune orchestrator: the resilient generate() entry point.

Walks the model ladder under the retry policy, cleaning and validating
every raw completion, and degrades to the static fallback bank once all
attempts are used up. Provider faults never escape ``generate``; only an
unknown theme does.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from fortunecookie.models.fortune import FallbackFortune, Theme, ValidatedFortune
from fortunecookie.observability.logging import get_logger
from fortunecookie.pipeline.retry import (
    AttemptOutcome,
    LadderCursor,
    RateLimited,
    RetryPolicy,
    Success,
    TransportError,
)
from fortunecookie.prompts.builder import Prompt, PromptBuilder, TemplatePromptBuilder
from fortunecookie.providers.base import (
    CompletionRequest,
    ProviderError,
    ProviderRateLimitError,
)
from fortunecookie.validation.candidate import Invalid, decode_candidate

if TYPE_CHECKING:
    from fortunecookie.pipeline.fallback import FallbackBank
    from fortunecookie.pipeline.ladder import ModelLadder
    from fortunecookie.providers.base import CompletionProvider

log = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]
PromptSource = PromptBuilder | Callable[[Theme], Prompt]


class FortuneOrchestrator:
    """Turns an unreliable completion provider into a dependable generator.

    All collaborators are passed in; the orchestrator holds no mutable
    state between calls, so one instance can serve many concurrent
    ``generate`` calls.

    Attributes:
        ladder: Models to try, in order.
        policy: Attempt, pass and backoff bounds.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        ladder: ModelLadder,
        fallback_bank: FallbackBank,
        policy: RetryPolicy | None = None,
        prompt_builder: PromptSource | None = None,
        temperature: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Completion provider used for every attempt.
            ladder: Model fallback ladder.
            fallback_bank: Canned fortunes for total exhaustion.
            policy: Retry policy; defaults to RetryPolicy().
            prompt_builder: PromptBuilder or plain ``theme -> Prompt``
                callable; defaults to the packaged template.
            temperature: Sampling temperature for every request.
            sleep: Awaitable sleep used for the inter-pass pause.
        """
        self._provider = provider
        self.ladder = ladder
        self._fallback_bank = fallback_bank
        self.policy = policy or RetryPolicy()
        self._prompt_builder = prompt_builder or TemplatePromptBuilder()
        self._temperature = temperature
        self._sleep = sleep

    def build_prompt(self, theme: Theme) -> Prompt:
        """Build the prompt for a theme with the configured builder."""
        builder = self._prompt_builder
        if hasattr(builder, "build"):
            return builder.build(theme)
        return builder(theme)

    async def generate(self, theme: Theme | str) -> ValidatedFortune | FallbackFortune:
        """Generate one fortune for a theme.

        Args:
            theme: Theme, or its name.

        Returns:
            ValidatedFortune from the first successful attempt, or
            FallbackFortune when every attempt failed or the deadline passed.

        Raises:
            InvalidThemeError: If the theme is unknown. No provider call is
                made in that case.
        """
        theme = Theme.parse(theme)
        prompt = self.build_prompt(theme)
        with structlog.contextvars.bound_contextvars(
            theme=theme.value, provider=self._provider.name
        ):
            return await self._generate(theme, prompt)

    async def _generate(self, theme: Theme, prompt: Prompt) -> ValidatedFortune | FallbackFortune:
        started = time.perf_counter()
        log.info(
            "generation_started",
            models=len(self.ladder),
            max_calls=self.policy.max_calls(len(self.ladder)),
        )

        result: ValidatedFortune | None
        if self.policy.deadline is None:
            result = await self._walk_ladder(prompt)
        else:
            try:
                async with asyncio.timeout(self.policy.deadline):
                    result = await self._walk_ladder(prompt)
            except TimeoutError:
                log.warning("generation_deadline_exceeded", deadline=self.policy.deadline)
                result = None

        elapsed = time.perf_counter() - started
        if result is not None:
            log.info("generation_succeeded", model=result.model, duration_seconds=elapsed)
            return result

        message = self._fallback_bank.pick(theme)
        log.warning("generation_fell_back", duration_seconds=elapsed)
        return FallbackFortune(message=message)

    async def _walk_ladder(self, prompt: Prompt) -> ValidatedFortune | None:
        """Run attempts until success or exhaustion.

        Returns:
            The validated fortune, or None when the ladder is exhausted.
        """
        cursor: LadderCursor | None = LadderCursor()

        while cursor is not None:
            model = self.ladder[cursor.model_index]
            outcome = await self._attempt(prompt, model)

            if isinstance(outcome, Success):
                return ValidatedFortune(
                    candidate=outcome.candidate,
                    system_prompt=prompt.system_prompt,
                    user_prompt=prompt.user_prompt,
                    model=model,
                )

            log.info(
                "attempt_failed",
                model=model,
                attempt=cursor.attempt,
                pass_number=cursor.pass_number,
                outcome=type(outcome).__name__,
                reason=_describe(outcome),
            )

            next_cursor = self.policy.next_cursor(cursor, outcome, len(self.ladder))
            if next_cursor is not None and self.policy.starts_new_pass(cursor, next_cursor):
                log.info(
                    "ladder_pass_exhausted",
                    pass_number=cursor.pass_number,
                    delay=self.policy.pass_delay,
                )
                await self._sleep(self.policy.pass_delay)
            cursor = next_cursor

        return None

    async def _attempt(self, prompt: Prompt, model: str) -> AttemptOutcome:
        """Make one provider call and classify its outcome."""
        request = CompletionRequest(
            system_prompt=prompt.system_prompt,
            user_prompt=prompt.user_prompt,
            model=model,
            temperature=self._temperature,
        )
        try:
            raw = await self._provider.complete(request)
        except ProviderRateLimitError as e:
            return RateLimited(retry_after=e.retry_after)
        except ProviderError as e:
            return TransportError(str(e))
        except Exception as e:
            log.exception("provider_unexpected_error", model=model)
            return TransportError(f"{type(e).__name__}: {e}")

        checked = decode_candidate(raw)
        if isinstance(checked, Invalid):
            log.debug("candidate_rejected", model=model, kind=checked.kind, raw=raw)
            return checked
        return Success(checked)


def _describe(outcome: AttemptOutcome) -> str | None:
    if isinstance(outcome, Invalid | TransportError):
        return outcome.reason
    if isinstance(outcome, RateLimited) and outcome.retry_after is not None:
        return f"retry after {outcome.retry_after}s"
    return None
