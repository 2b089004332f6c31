"""Logging wrapper for completion providers."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fortunecookie.observability import CallLogger
    from fortunecookie.providers.base import CompletionProvider, CompletionRequest


class LoggingProvider:
    """Wrapper that records every provider call to a CallLogger.

    Errors are logged and re-raised unchanged so the orchestrator still
    sees the original exception type.
    """

    def __init__(self, provider: CompletionProvider, logger: CallLogger) -> None:
        """Initialize logging wrapper.

        Args:
            provider: Underlying provider to wrap.
            logger: CallLogger instance for recording calls.
        """
        self._provider = provider
        self._logger = logger

    @property
    def name(self) -> str:
        """Return the wrapped provider's name."""
        return self._provider.name

    async def complete(self, request: CompletionRequest) -> str:
        """Generate completion and log the call."""
        start_time = time.perf_counter()

        try:
            content = await self._provider.complete(request)
        except Exception as e:
            entry = self._logger.create_entry(
                provider=self.name,
                model=request.model,
                system_prompt=request.system_prompt,
                user_prompt=request.user_prompt,
                content="",
                duration_seconds=time.perf_counter() - start_time,
                temperature=request.temperature,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._logger.log(entry)
            raise

        entry = self._logger.create_entry(
            provider=self.name,
            model=request.model,
            system_prompt=request.system_prompt,
            user_prompt=request.user_prompt,
            content=content,
            duration_seconds=time.perf_counter() - start_time,
            temperature=request.temperature,
        )
        self._logger.log(entry)
        return content

    async def close(self) -> None:
        """Close underlying provider."""
        await self._provider.close()

    async def __aenter__(self) -> LoggingProvider:
        """Enter async context."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context."""
        await self.close()
