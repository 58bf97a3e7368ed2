"""AI provider clients against httpx.MockTransport.

Invariants:
    - Provider errors map to LLMException with the status the API answers with
    - Each attempt is bounded; a hung provider becomes a 504
    - Exactly one re-attempt, and only after a connection reset
    - A streamed reply is relayed decoded, whatever Content-Encoding the provider used
"""

import asyncio
import gzip
import json

import httpx
import pytest

from src.config import settings
from src.core import ConfigurationException, LLMException, LLMFailureKind
from src.infrastructure.llm import (
    GeminiLLMClient,
    MockLLMClient,
    OpenAILLMClient,
    call_with_policy,
    extract_gemini_text,
    is_connection_reset,
    to_gemini_contents,
)

GEMINI_REPLY = {
    "candidates": [{"content": {"role": "model", "parts": [{"text": "Hi "}, {"text": "there"}]}}],
    "usageMetadata": {"promptTokenCount": 7, "candidatesTokenCount": 2},
}

OPENAI_REPLY = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-3.5-turbo",
    "choices": [{
        "index": 0,
        "message": {"role": "assistant", "content": "Which browser?"},
        "finish_reason": "stop",
    }],
    "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
}

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Site down"},
    {"role": "assistant", "content": "Since when?"},
    {"role": "user", "content": "Today"},
]


def _gemini(handler) -> GeminiLLMClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiLLMClient(api_key="test-key", model="gemini-test", http_client=http)


def _openai(handler) -> OpenAILLMClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAILLMClient(api_key="sk-test", http_client=http)


# -- Gemini --------------------------------------------------------------------

def test_gemini_body_moves_system_prompt_and_renames_assistant():
    body = to_gemini_contents(MESSAGES)

    assert body["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]


def test_extract_text_joins_parts_and_chunks():
    assert extract_gemini_text(GEMINI_REPLY) == "Hi there"
    assert extract_gemini_text([GEMINI_REPLY, {"candidates": []}, GEMINI_REPLY]) == "Hi thereHi there"


def test_gemini_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    with pytest.raises(ConfigurationException):
        GeminiLLMClient()


async def test_gemini_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=GEMINI_REPLY)

    result = await _gemini(handler).chat_completion(MESSAGES, temperature=0.2, max_tokens=400)

    assert result.content == "Hi there"
    assert result.prompt_tokens == 7
    assert seen["url"].path.endswith("/models/gemini-test:generateContent")
    assert seen["url"].params["key"] == "test-key"
    assert seen["body"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 400}


@pytest.mark.parametrize("status, body, kind", [
    (401, "unauthorized", LLMFailureKind.INVALID_KEY),
    (403, "forbidden", LLMFailureKind.INVALID_KEY),
    (400, '{"error": {"details": [{"reason": "API_KEY_INVALID"}]}}', LLMFailureKind.INVALID_KEY),
    (429, "quota", LLMFailureKind.RATE_LIMITED),
    (500, "boom", LLMFailureKind.UPSTREAM),
])
async def test_gemini_status_is_passed_through(status, body, kind):
    client = _gemini(lambda request: httpx.Response(status, text=body))

    with pytest.raises(LLMException) as exc_info:
        await client.chat_completion(MESSAGES)

    assert exc_info.value.status_code == status
    assert exc_info.value.kind == kind


async def test_gemini_stream_relays_raw_events():
    events = b'data: {"candidates": []}\r\n\r\ndata: {"candidates": []}\r\n\r\n'
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, content=events, headers={"content-type": "text/event-stream"})

    reply = await _gemini(handler).stream_chat(MESSAGES)
    received = b"".join([chunk async for chunk in reply])

    assert received == events
    assert reply.content_type == "text/event-stream"
    assert seen["params"] == {"key": "test-key", "alt": "sse"}


async def test_gemini_stream_decodes_gzip_body():
    events = b'data: {"candidates": [{"content": {"parts": [{"text": "Hi"}]}}]}\r\n\r\n'
    compressed = gzip.compress(events)

    async def body():
        yield compressed[:10]
        yield compressed[10:]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=body(),
            headers={"content-type": "text/event-stream", "content-encoding": "gzip"},
        )

    reply = await _gemini(handler).stream_chat(MESSAGES)
    received = b"".join([chunk async for chunk in reply])

    assert received == events


async def test_gemini_stream_error_raises_before_streaming():
    client = _gemini(lambda request: httpx.Response(429, text="quota"))

    with pytest.raises(LLMException) as exc_info:
        await client.stream_chat(MESSAGES)

    assert exc_info.value.status_code == 429


async def test_hung_provider_times_out_with_504(monkeypatch):
    monkeypatch.setattr(settings, "llm_timeout_seconds", 0.05)

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json=GEMINI_REPLY)

    with pytest.raises(LLMException) as exc_info:
        await _gemini(handler).chat_completion(MESSAGES)

    assert exc_info.value.status_code == 504
    assert exc_info.value.kind == LLMFailureKind.TIMEOUT


async def test_connection_reset_is_retried_once():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ReadError("Connection reset by peer", request=request)
        return httpx.Response(200, json=GEMINI_REPLY)

    result = await _gemini(handler).chat_completion(MESSAGES)

    assert result.content == "Hi there"
    assert len(attempts) == 2


async def test_second_connection_reset_fails_with_502():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ReadError("Connection reset by peer", request=request)

    with pytest.raises(LLMException) as exc_info:
        await _gemini(handler).chat_completion(MESSAGES)

    assert len(attempts) == 2
    assert exc_info.value.status_code == 502
    assert exc_info.value.kind == LLMFailureKind.CONNECTION


async def test_other_transport_errors_are_not_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(LLMException):
        await _gemini(handler).chat_completion(MESSAGES)

    assert len(attempts) == 1


# -- Call policy -----------------------------------------------------------------

def test_connection_reset_found_in_cause_chain():
    try:
        try:
            raise ConnectionResetError(104, "peer went away")
        except ConnectionResetError as inner:
            raise RuntimeError("request failed") from inner
    except RuntimeError as outer:
        assert is_connection_reset(outer) is True

    assert is_connection_reset(ValueError("ECONNRESET")) is True
    assert is_connection_reset(ValueError("bad gateway")) is False


async def test_policy_retry_can_be_disabled():
    calls = []

    async def operation():
        calls.append(1)
        raise ConnectionResetError("connection reset")

    with pytest.raises(LLMException):
        await call_with_policy(
            operation,
            lambda e: LLMException(str(e), kind=LLMFailureKind.CONNECTION, status_code=502),
            provider="Test",
            retry_on_reset=False,
        )

    assert len(calls) == 1


# -- OpenAI --------------------------------------------------------------------

def test_openai_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", None)
    with pytest.raises(ConfigurationException, match="OpenAI API key is not set."):
        OpenAILLMClient()


async def test_openai_chat_completion():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=OPENAI_REPLY)

    result = await _openai(handler).chat_completion(MESSAGES, temperature=0.7, max_tokens=512)

    assert result.content == "Which browser?"
    assert result.total_tokens == 15
    assert seen["body"]["model"] == "gpt-3.5-turbo"
    assert seen["body"]["max_tokens"] == 512


@pytest.mark.parametrize("status, kind", [
    (401, LLMFailureKind.INVALID_KEY),
    (429, LLMFailureKind.RATE_LIMITED),
    (503, LLMFailureKind.UPSTREAM),
])
async def test_openai_errors_are_translated(status, kind):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(status, json={"error": {"message": "nope", "type": "error"}})

    with pytest.raises(LLMException) as exc_info:
        await _openai(handler).chat_completion(MESSAGES)

    assert exc_info.value.status_code == status
    assert exc_info.value.kind == kind
    assert len(attempts) == 1


# -- Mock ----------------------------------------------------------------------

async def test_mock_client_asks_then_closes():
    client = MockLLMClient()

    first = await client.chat_completion([{"role": "user", "content": "hi"}])
    second = await client.chat_completion([
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": first.content},
        {"role": "user", "content": "yesterday"},
    ])

    assert first.content == MockLLMClient.CLARIFYING_QUESTION
    assert second.content == MockLLMClient.CLOSING_MESSAGE
