"""Factory for creating completion providers.

Groq and OpenAI are spoken to directly over their OpenAI-compatible HTTP
API. Anthropic, Google and Ollama go through LangChain's init_chat_model.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from fortunecookie.observability.logging import get_logger
from fortunecookie.providers.base import ProviderError
from fortunecookie.providers.groq_provider import ENDPOINTS, GroqProvider
from fortunecookie.providers.langchain_provider import LangChainProvider
from fortunecookie.providers.logging_wrapper import LoggingProvider

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from fortunecookie.observability import CallLogger
    from fortunecookie.providers.base import CompletionProvider

log = get_logger(__name__)

# Providers reached through LangChain, with the env var holding their key/host
_LANGCHAIN_PROVIDERS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "ollama": "OLLAMA_HOST",
}

KNOWN_PROVIDERS = frozenset(ENDPOINTS) | frozenset(_LANGCHAIN_PROVIDERS)


def normalize_provider(provider_name: str) -> str:
    """Normalize provider name, resolving aliases.

    Args:
        provider_name: Raw provider name (e.g., "gemini", "Groq").

    Returns:
        Canonical lowercase provider name.
    """
    name = provider_name.strip().lower()
    if name == "gemini":
        return "google"
    return name


def credential_env_var(provider_name: str) -> str:
    """Return the environment variable holding a provider's credential or host."""
    provider = normalize_provider(provider_name)
    if provider in ENDPOINTS:
        return ENDPOINTS[provider][1]
    return _LANGCHAIN_PROVIDERS.get(provider, f"{provider.upper()}_API_KEY")


def create_provider(
    provider_name: str,
    api_key: str | None = None,
    call_logger: CallLogger | None = None,
    **kwargs: Any,
) -> CompletionProvider:
    """Create a completion provider.

    Args:
        provider_name: Provider identifier (groq, openai, anthropic, google, ollama).
        api_key: Credential (or Ollama host); defaults to the provider env var.
        call_logger: If given, wrap the provider so every call is recorded.
        **kwargs: Provider-specific options (base_url, timeout, ...).

    Returns:
        Configured provider.

    Raises:
        ProviderError: If provider unknown or misconfigured.
    """
    provider = normalize_provider(provider_name)

    if provider not in KNOWN_PROVIDERS:
        log.error("provider_unknown", provider=provider)
        raise ProviderError(provider, f"Unknown provider: {provider}")

    result: CompletionProvider
    if provider in ENDPOINTS:
        result = GroqProvider(api_key=api_key, provider_name=provider, **kwargs)
    else:
        credential = api_key or os.getenv(_LANGCHAIN_PROVIDERS[provider])
        if not credential:
            missing = _LANGCHAIN_PROVIDERS[provider]
            log.error("provider_config_error", provider=provider, missing=missing)
            raise ProviderError(provider, f"{missing} not configured.")
        result = LangChainProvider(provider, _chat_model_factory(provider, credential, kwargs))

    log.info("provider_created", provider=provider, logged=call_logger is not None)
    if call_logger is not None:
        return LoggingProvider(result, call_logger)
    return result


def _chat_model_factory(provider: str, credential: str, extra: dict[str, Any]) -> Any:
    """Build a (model, temperature) -> BaseChatModel factory for a LangChain provider."""
    options = dict(extra)
    if provider == "ollama":
        options["base_url"] = credential
        # ChatOllama takes HTTP settings through client_kwargs
        if "timeout" in options:
            options["client_kwargs"] = {"timeout": options.pop("timeout")}
    else:
        options["api_key"] = credential

    def factory(model: str, temperature: float) -> BaseChatModel:
        return _init_chat_model_safe(provider, model, temperature=temperature, **options)

    return factory


def _init_chat_model_safe(provider: str, model: str, **kwargs: Any) -> BaseChatModel:
    """Call init_chat_model, turning missing integrations into ProviderError.

    Raises:
        ProviderError: If the LangChain integration package is not installed.
    """
    try:
        from langchain.chat_models import init_chat_model

        result: BaseChatModel = init_chat_model(
            model=model, model_provider=_map_provider_for_init(provider), **kwargs
        )
    except ImportError as e:
        package = _get_package_for_provider(provider)
        log.error("provider_import_error", provider=provider, package=package)
        raise ProviderError(provider, f"{package} not installed. Run: pip install {package}") from e
    return result


def _map_provider_for_init(provider: str) -> str:
    """Map internal provider name to init_chat_model's expected name."""
    # init_chat_model expects 'google_genai' not 'google'
    if provider == "google":
        return "google_genai"
    return provider


def _get_package_for_provider(provider: str) -> str:
    """Get the LangChain package name for a provider."""
    packages = {
        "ollama": "langchain-ollama",
        "anthropic": "langchain-anthropic",
        "google": "langchain-google-genai",
    }
    return packages.get(provider, f"langchain-{provider}")
