"""Base protocol and types for completion providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, TypedDict


class Message(TypedDict):
    """A single chat message.

    Attributes:
        role: Message role - "system" or "user".
        content: Message content text.
    """

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class CompletionRequest:
    """One completion attempt against one model.

    A fresh request is built for every attempt; only ``model`` changes as
    the orchestrator walks the ladder.

    Attributes:
        system_prompt: System instructions (may be empty).
        user_prompt: User prompt text.
        model: Model identifier to call.
        temperature: Sampling temperature.
        response_format: Requested output format.
    """

    system_prompt: str
    user_prompt: str
    model: str
    temperature: float = 1.0
    response_format: Literal["json"] = "json"

    def messages(self) -> list[Message]:
        """Render the request as a chat message list."""
        messages: list[Message] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": self.user_prompt})
        return messages


class CompletionProvider(Protocol):
    """Protocol for completion providers.

    A provider performs exactly one network round trip per ``complete``
    call: no retries, no cleaning, no validation.
    """

    @property
    def name(self) -> str:
        """Return the provider name used in logs and errors."""
        ...

    async def complete(self, request: CompletionRequest) -> str:
        """Generate a raw completion for the request.

        Args:
            request: The completion request.

        Returns:
            Raw completion text, possibly wrapped in formatting noise.

        Raises:
            ProviderRateLimitError: If the provider throttled the call.
            ProviderEmptyResponseError: If the response carried no text.
            ProviderConnectionError: For network and other provider faults.
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ProviderConnectionError(ProviderError):
    """Raised when the call fails at the transport or provider level."""

    pass


class ProviderEmptyResponseError(ProviderError):
    """Raised when a well-formed response carries no text payload."""

    pass


class ProviderRateLimitError(ProviderError):
    """Raised when rate limit is exceeded.

    Attributes:
        retry_after: Seconds the provider asked us to wait, if it said.
    """

    def __init__(self, provider: str, message: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(provider, message)
