"""LangChain adapter for the completion provider protocol."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from fortunecookie.providers.base import (
    CompletionRequest,
    ProviderConnectionError,
    ProviderEmptyResponseError,
    ProviderRateLimitError,
)

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

ModelFactory = Callable[[str, float], "BaseChatModel"]


def _is_rate_limit(error: BaseException) -> bool:
    """Detect provider SDK rate-limit errors without importing every SDK."""
    if getattr(error, "status_code", None) == 429:
        return True
    response = getattr(error, "response", None)
    if getattr(response, "status_code", None) == 429:
        return True
    return "ratelimit" in type(error).__name__.lower()


class LangChainProvider:
    """Adapts LangChain chat models to the CompletionProvider protocol.

    LangChain binds the model name at construction, so one chat model is
    built per (model, temperature) pair and cached.
    """

    def __init__(self, provider_name: str, model_factory: ModelFactory) -> None:
        """Initialize with a chat model factory.

        Args:
            provider_name: Provider name for logs and errors.
            model_factory: Builds a chat model from (model, temperature).
        """
        self._name = provider_name
        self._factory = model_factory
        self._models: dict[tuple[str, float], BaseChatModel] = {}

    @property
    def name(self) -> str:
        """Return the provider name."""
        return self._name

    def _get_model(self, model: str, temperature: float) -> BaseChatModel:
        key = (model, temperature)
        if key not in self._models:
            self._models[key] = self._factory(model, temperature)
        return self._models[key]

    async def complete(self, request: CompletionRequest) -> str:
        """Generate a completion through LangChain.

        Args:
            request: The completion request.

        Returns:
            Raw completion text.

        Raises:
            ProviderRateLimitError: If the SDK reports throttling.
            ProviderEmptyResponseError: If the model returned no text.
            ProviderConnectionError: For any other failure.
        """
        lc_messages: list[Any] = []
        if request.system_prompt:
            lc_messages.append(SystemMessage(content=request.system_prompt))
        lc_messages.append(HumanMessage(content=request.user_prompt))

        try:
            chat_model = self._get_model(request.model, request.temperature)
            response: AIMessage = await chat_model.ainvoke(lc_messages)
        except Exception as e:
            if _is_rate_limit(e):
                raise ProviderRateLimitError(
                    self._name, f"Rate limit exceeded for model {request.model}: {e}"
                ) from e
            raise ProviderConnectionError(self._name, f"Completion failed: {e}") from e

        # Content can be str or a list of content blocks
        content = response.content
        if isinstance(content, list):
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )

        if not content or not str(content).strip():
            raise ProviderEmptyResponseError(self._name, "Empty response content")
        return str(content)

    async def close(self) -> None:
        """Drop cached chat models."""
        self._models.clear()

    async def __aenter__(self) -> LangChainProvider:
        """Enter async context."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context."""
        await self.close()
