"""Deterministic provider double that replays scripted outcomes."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from fortunecookie.providers.base import (
    ProviderConnectionError,
    ProviderEmptyResponseError,
    ProviderRateLimitError,
)

if TYPE_CHECKING:
    from fortunecookie.providers.base import CompletionRequest

# A script step is either raw text to return or an exception to raise
Step = str | Exception
Script = Callable[["CompletionRequest", int], Step]


def valid_json(message: str = "Your kettle sings because it knows who makes the tea.") -> str:
    """Return a contract-conforming completion."""
    return json.dumps(
        {"reasoning": "picked the warmest one", "score": 4.5, "finalMessage": message}
    )


def rate_limited(retry_after: float | None = None) -> ProviderRateLimitError:
    return ProviderRateLimitError("scripted", "429 Too Many Requests", retry_after=retry_after)


def transport_error(detail: str = "connection reset") -> ProviderConnectionError:
    return ProviderConnectionError("scripted", detail)


def empty_response() -> ProviderEmptyResponseError:
    return ProviderEmptyResponseError("scripted", "Empty response content")


class ScriptedProvider:
    """Replays a fixed sequence of outcomes and records every request.

    Either pass a list of steps (consumed in order; the last step repeats
    once the list runs out) or a function ``(request, call_index) -> step``.
    """

    def __init__(self, steps: Iterable[Step] | Script) -> None:
        if callable(steps):
            self._script: Script = steps
        else:
            items = list(steps)
            if not items:
                raise ValueError("ScriptedProvider needs at least one step")
            self._script = lambda _request, index: items[min(index, len(items) - 1)]
        self.requests: list[CompletionRequest] = []
        self.closed = False

    @property
    def name(self) -> str:
        return "scripted"

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def models_called(self) -> list[str]:
        return [r.model for r in self.requests]

    async def complete(self, request: CompletionRequest) -> str:
        index = len(self.requests)
        self.requests.append(request)
        step = self._script(request, index)
        if isinstance(step, Exception):
            raise step
        return step

    async def close(self) -> None:
        self.closed = True
