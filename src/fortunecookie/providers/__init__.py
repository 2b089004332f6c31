"""Completion provider integrations."""

from fortunecookie.providers.base import (
    CompletionProvider,
    CompletionRequest,
    Message,
    ProviderConnectionError,
    ProviderEmptyResponseError,
    ProviderError,
    ProviderRateLimitError,
)
from fortunecookie.providers.factory import (
    KNOWN_PROVIDERS,
    create_provider,
    credential_env_var,
    normalize_provider,
)
from fortunecookie.providers.groq_provider import GroqProvider
from fortunecookie.providers.langchain_provider import LangChainProvider
from fortunecookie.providers.logging_wrapper import LoggingProvider

__all__ = [
    "KNOWN_PROVIDERS",
    "CompletionProvider",
    "CompletionRequest",
    "GroqProvider",
    "LangChainProvider",
    "LoggingProvider",
    "Message",
    "ProviderConnectionError",
    "ProviderEmptyResponseError",
    "ProviderError",
    "ProviderRateLimitError",
    "create_provider",
    "credential_env_var",
    "normalize_provider",
]
