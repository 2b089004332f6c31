"""OpenAI-compatible chat completions provider (Groq by default)."""

from __future__ import annotations

import os

import httpx

from fortunecookie.providers.base import (
    CompletionRequest,
    ProviderConnectionError,
    ProviderEmptyResponseError,
    ProviderError,
    ProviderRateLimitError,
)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
OPENAI_BASE_URL = "https://api.openai.com/v1"

# Provider name -> (base URL, API key environment variable)
ENDPOINTS: dict[str, tuple[str, str]] = {
    "groq": (GROQ_BASE_URL, "GROQ_API_KEY"),
    "openai": (OPENAI_BASE_URL, "OPENAI_API_KEY"),
}


def _parse_retry_after(value: str | None) -> float | None:
    """Parse a ``retry-after`` header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class GroqProvider:
    """Chat completions over an OpenAI-compatible HTTP API.

    Speaks to Groq unless another ``provider_name``/``base_url`` is given.
    Requires an API key.

    Attributes:
        name: Provider name used in logs and errors.
    """

    def __init__(
        self,
        api_key: str | None = None,
        provider_name: str = "groq",
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: API key. Defaults to the provider's env var
                (GROQ_API_KEY or OPENAI_API_KEY).
            provider_name: Key into ENDPOINTS ("groq" or "openai").
            base_url: Custom API base URL (for other compatible endpoints).
            timeout: Per-request timeout in seconds.
            client: Pre-built HTTP client (tests); headers are still applied.
        """
        default_url, key_var = ENDPOINTS.get(provider_name, (GROQ_BASE_URL, "GROQ_API_KEY"))
        self._name = provider_name
        self._api_key = api_key or os.getenv(key_var)
        if not self._api_key:
            raise ProviderError(
                provider_name,
                f"API key required. Set {key_var} environment variable.",
            )

        self._base_url = (base_url or default_url).rstrip("/")
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if client is None:
            client = httpx.AsyncClient(timeout=timeout)
        client.headers.update(headers)
        self._client = client

    @property
    def name(self) -> str:
        """Return the provider name."""
        return self._name

    @property
    def base_url(self) -> str:
        """Return the API base URL."""
        return self._base_url

    async def complete(self, request: CompletionRequest) -> str:
        """Run one chat completion.

        Args:
            request: The completion request.

        Returns:
            Raw message content from the first choice.

        Raises:
            ProviderRateLimitError: On HTTP 429.
            ProviderEmptyResponseError: If the first choice has no content.
            ProviderConnectionError: For network errors, bad status codes
                and undecodable or malformed responses.
        """
        url = f"{self._base_url}/chat/completions"
        payload = {
            "model": request.model,
            "messages": request.messages(),
            "temperature": request.temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await self._client.post(url, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(
                self._name,
                f"Request timed out: {e}",
            ) from e
        except httpx.HTTPError as e:
            raise ProviderConnectionError(
                self._name,
                f"Failed to connect: {e}",
            ) from e

        if response.status_code == 429:
            raise ProviderRateLimitError(
                self._name,
                f"Rate limit exceeded for model {request.model}",
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
            )

        if response.status_code != 200:
            raise ProviderConnectionError(
                self._name,
                f"API error (status {response.status_code}): {response.text}",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderConnectionError(
                self._name,
                f"Invalid JSON response: {e}",
            ) from e

        if not isinstance(data, dict):
            raise ProviderConnectionError(self._name, "Unexpected response shape: body")
        choices = data.get("choices")
        if choices is not None and not isinstance(choices, list):
            raise ProviderConnectionError(self._name, "Unexpected response shape: choices")
        if not choices:
            raise ProviderEmptyResponseError(self._name, "Response has no choices")

        choice = choices[0]
        if not isinstance(choice, dict):
            raise ProviderConnectionError(self._name, "Unexpected response shape: choice")
        message = choice.get("message") or {}
        if not isinstance(message, dict):
            raise ProviderConnectionError(self._name, "Unexpected response shape: message")

        content = message.get("content")
        if not content or not str(content).strip():
            raise ProviderEmptyResponseError(self._name, "Empty response content")

        return str(content)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GroqProvider:
        """Enter async context."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Exit async context and close client."""
        await self.close()
