"""Tests for completion providers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from fortunecookie.observability import CallLogger
from fortunecookie.providers import (
    CompletionRequest,
    GroqProvider,
    LangChainProvider,
    LoggingProvider,
    ProviderConnectionError,
    ProviderEmptyResponseError,
    ProviderError,
    ProviderRateLimitError,
)
from fortunecookie.providers.groq_provider import GROQ_BASE_URL, OPENAI_BASE_URL
from tests.fixtures.scripted_provider import ScriptedProvider, transport_error

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

REQUEST = CompletionRequest(
    system_prompt="Answer in JSON.",
    user_prompt="Write a fortune.",
    model="llama-3.1-8b-instant",
    temperature=0.7,
)


def _completion(content: str | None) -> dict[str, object]:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def _groq(handler: Callable[[httpx.Request], httpx.Response], **kwargs: object) -> GroqProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GroqProvider(api_key="gsk_test_key", client=client, **kwargs)  # type: ignore[arg-type]


# --- CompletionRequest ---


def test_request_messages_include_system_prompt() -> None:
    assert REQUEST.messages() == [
        {"role": "system", "content": "Answer in JSON."},
        {"role": "user", "content": "Write a fortune."},
    ]


def test_request_messages_skip_empty_system_prompt() -> None:
    request = CompletionRequest(system_prompt="", user_prompt="u", model="m")
    assert request.messages() == [{"role": "user", "content": "u"}]


def test_provider_error_message_includes_provider() -> None:
    error = ProviderConnectionError("groq", "boom")
    assert str(error) == "[groq] boom"
    assert error.provider == "groq"
    assert isinstance(ProviderRateLimitError("groq", "slow down"), ProviderError)


# --- GroqProvider ---


def test_groq_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="GROQ_API_KEY"):
        GroqProvider()


def test_groq_reads_api_key_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "gsk_from_env")
    provider = GroqProvider()
    assert provider.name == "groq"
    assert provider.base_url == GROQ_BASE_URL


def test_openai_uses_openai_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    provider = GroqProvider(provider_name="openai")
    assert provider.name == "openai"
    assert provider.base_url == OPENAI_BASE_URL


@pytest.mark.asyncio
async def test_groq_complete_sends_chat_request() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=_completion('{"finalMessage": "hi"}'))

    provider = _groq(handler)
    content = await provider.complete(REQUEST)
    await provider.close()

    assert content == '{"finalMessage": "hi"}'
    assert len(captured) == 1
    sent = captured[0]
    assert str(sent.url) == f"{GROQ_BASE_URL}/chat/completions"
    assert sent.headers["Authorization"] == "Bearer gsk_test_key"
    body = json.loads(sent.content)
    assert body["model"] == "llama-3.1-8b-instant"
    assert body["temperature"] == 0.7
    assert body["response_format"] == {"type": "json_object"}
    assert body["messages"][0]["role"] == "system"


@pytest.mark.asyncio
async def test_groq_custom_base_url() -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json=_completion("ok"))

    provider = _groq(handler, base_url="http://localhost:9999/v1/")
    await provider.complete(REQUEST)
    assert urls == ["http://localhost:9999/v1/chat/completions"]


@pytest.mark.asyncio
async def test_groq_rate_limit_with_retry_after() -> None:
    provider = _groq(lambda _r: httpx.Response(429, headers={"retry-after": "7"}, text="slow"))
    with pytest.raises(ProviderRateLimitError) as exc_info:
        await provider.complete(REQUEST)
    assert exc_info.value.retry_after == 7.0
    assert "llama-3.1-8b-instant" in str(exc_info.value)


@pytest.mark.asyncio
async def test_groq_rate_limit_without_retry_after() -> None:
    provider = _groq(lambda _r: httpx.Response(429, headers={"retry-after": "soon"}))
    with pytest.raises(ProviderRateLimitError) as exc_info:
        await provider.complete(REQUEST)
    assert exc_info.value.retry_after is None


@pytest.mark.asyncio
async def test_groq_server_error() -> None:
    provider = _groq(lambda _r: httpx.Response(503, text="over capacity"))
    with pytest.raises(ProviderConnectionError, match="status 503"):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_groq_undecodable_body() -> None:
    provider = _groq(lambda _r: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(ProviderConnectionError, match="Invalid JSON"):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"choices": []}, {}, _completion(None), _completion("   ")],
)
async def test_groq_empty_content(body: dict[str, object]) -> None:
    provider = _groq(lambda _r: httpx.Response(200, json=body))
    with pytest.raises(ProviderEmptyResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        ["not", "an", "object"],
        {"choices": {"0": {"message": {"content": "x"}}}},
        {"choices": ["just text"]},
        {"choices": [{"message": "just text"}]},
    ],
)
async def test_groq_malformed_envelope(body: object) -> None:
    """Unexpected response shapes surface as connection errors, not crashes."""
    provider = _groq(lambda _r: httpx.Response(200, json=body))
    with pytest.raises(ProviderConnectionError, match="Unexpected response shape"):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_groq_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    provider = _groq(handler)
    with pytest.raises(ProviderConnectionError, match="timed out"):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_groq_connection_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _groq(handler)
    with pytest.raises(ProviderConnectionError, match="Failed to connect"):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_groq_context_manager_closes_client() -> None:
    provider = _groq(lambda _r: httpx.Response(200, json=_completion("ok")))
    async with provider as entered:
        assert entered is provider
    assert provider._client.is_closed


# --- LangChainProvider ---


def _chat_model(response: object = None, error: Exception | None = None) -> MagicMock:
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=response, side_effect=error)
    return model


@pytest.mark.asyncio
async def test_langchain_complete_builds_messages() -> None:
    chat_model = _chat_model(AIMessage(content='{"a": 1}'))
    factory = MagicMock(return_value=chat_model)
    provider = LangChainProvider("anthropic", factory)

    content = await provider.complete(REQUEST)

    assert content == '{"a": 1}'
    factory.assert_called_once_with("llama-3.1-8b-instant", 0.7)
    messages = chat_model.ainvoke.await_args.args[0]
    assert isinstance(messages[0], SystemMessage)
    assert isinstance(messages[1], HumanMessage)
    assert messages[1].content == "Write a fortune."


@pytest.mark.asyncio
async def test_langchain_caches_models_per_model_and_temperature() -> None:
    factory = MagicMock(side_effect=lambda _m, _t: _chat_model(AIMessage(content="ok")))
    provider = LangChainProvider("google", factory)

    await provider.complete(REQUEST)
    await provider.complete(REQUEST)
    await provider.complete(CompletionRequest("s", "u", model="other"))

    assert factory.call_count == 2

    await provider.close()
    await provider.complete(REQUEST)
    assert factory.call_count == 3


@pytest.mark.asyncio
async def test_langchain_joins_content_blocks() -> None:
    message = AIMessage(content=[{"type": "text", "text": '{"a":'}, {"type": "text", "text": "1}"}])
    provider = LangChainProvider("anthropic", MagicMock(return_value=_chat_model(message)))
    assert await provider.complete(REQUEST) == '{"a":1}'


@pytest.mark.asyncio
async def test_langchain_empty_content() -> None:
    provider = LangChainProvider(
        "anthropic", MagicMock(return_value=_chat_model(AIMessage(content="")))
    )
    with pytest.raises(ProviderEmptyResponseError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_langchain_rate_limit_by_class_name() -> None:
    class RateLimitError(Exception):
        pass

    provider = LangChainProvider(
        "anthropic", MagicMock(return_value=_chat_model(error=RateLimitError("429")))
    )
    with pytest.raises(ProviderRateLimitError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_langchain_rate_limit_by_status_code() -> None:
    error = Exception("too many requests")
    error.status_code = 429  # type: ignore[attr-defined]
    provider = LangChainProvider("google", MagicMock(return_value=_chat_model(error=error)))
    with pytest.raises(ProviderRateLimitError):
        await provider.complete(REQUEST)


@pytest.mark.asyncio
async def test_langchain_other_errors_are_connection_errors() -> None:
    provider = LangChainProvider(
        "ollama", MagicMock(return_value=_chat_model(error=OSError("refused")))
    )
    with pytest.raises(ProviderConnectionError, match="Completion failed"):
        await provider.complete(REQUEST)


# --- LoggingProvider ---


@pytest.mark.asyncio
async def test_logging_provider_records_success(tmp_path: Path) -> None:
    call_logger = CallLogger(tmp_path)
    provider = LoggingProvider(ScriptedProvider(['{"ok": true}']), call_logger)

    content = await provider.complete(REQUEST)

    assert content == '{"ok": true}'
    assert provider.name == "scripted"
    [entry] = call_logger.read_entries()
    assert entry.provider == "scripted"
    assert entry.model == "llama-3.1-8b-instant"
    assert entry.user_prompt == "Write a fortune."
    assert entry.content == '{"ok": true}'
    assert entry.temperature == 0.7
    assert entry.error is None


@pytest.mark.asyncio
async def test_logging_provider_records_and_reraises_errors(tmp_path: Path) -> None:
    call_logger = CallLogger(tmp_path)
    provider = LoggingProvider(ScriptedProvider([transport_error("reset")]), call_logger)

    with pytest.raises(ProviderConnectionError):
        await provider.complete(REQUEST)

    [entry] = call_logger.read_entries()
    assert entry.content == ""
    assert entry.error == "[scripted] reset"
    assert entry.metadata == {"error_type": "ProviderConnectionError"}


@pytest.mark.asyncio
async def test_logging_provider_close_delegates(tmp_path: Path) -> None:
    inner = ScriptedProvider(["x"])
    await LoggingProvider(inner, CallLogger(tmp_path)).close()
    assert inner.closed
