"""Chat relay routes: Gemini pass-through stream and OpenAI full reply.

Invariants:
    - Missing userInfo or an empty message list is a 400 and never reaches the provider
    - The Gemini body is relayed byte for byte with its content type
    - A provider failure carries a canned answer only when the last user message
      matches the keyword table; otherwise the envelope carries just the error
    - A missing provider key is a 500 that still carries the canned answer when one matches
"""

import pytest

from src.core import ConfigurationException, LLMException, LLMFailureKind

SSE_CHUNKS = [
    b'data: {"candidates": [{"content": {"parts": [{"text": "Hello"}]}}]}\r\n\r\n',
    b'data: {"candidates": [{"content": {"parts": [{"text": " there"}]}}]}\r\n\r\n',
]


@pytest.mark.parametrize("path", ["/api/gemini-chat", "/api/openai-chat"])
@pytest.mark.parametrize("body", [
    {"messages": [{"role": "user", "content": "hi"}]},
    {"userInfo": {"name": "Jane"}},
    {"userInfo": {"name": "Jane"}, "messages": []},
])
async def test_relay_rejects_missing_fields(client, llm, path, body):
    res = await client.post(path, json=body)

    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "Missing userInfo or messages."}
    assert llm.calls == []


async def test_gemini_stream_is_passed_through(client, llm, user_info):
    llm.stream_chunks = SSE_CHUNKS

    res = await client.post(
        "/api/gemini-chat",
        json={"userInfo": user_info, "messages": [
            {"role": "user", "content": "hi"},
            {"role": "ai", "content": "How can I help?"},
            {"role": "user", "content": "My site is down"},
        ]},
    )

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/event-stream")
    assert res.headers["cache-control"] == "no-cache"
    assert res.content == b"".join(SSE_CHUNKS)
    assert llm.stream_closed is True
    assert [m["role"] for m in llm.calls[0]["messages"]] == ["user", "assistant", "user"]


async def test_gemini_failure_with_keyword_returns_fallback(client, llm, user_info):
    llm.error = LLMException("Gemini rate limit exceeded", kind=LLMFailureKind.RATE_LIMITED, status_code=429)

    res = await client.post(
        "/api/gemini-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "I forgot my PASSWORD"}]},
    )

    assert res.status_code == 429
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "Gemini rate limit exceeded"
    assert body["fallback"] is True
    assert "password" in body["answer"].lower()


async def test_gemini_failure_without_keyword_returns_error_only(client, llm, user_info):
    llm.error = LLMException("Gemini did not respond within 30s", kind=LLMFailureKind.TIMEOUT, status_code=504)

    res = await client.post(
        "/api/gemini-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "Hello there"}]},
    )

    assert res.status_code == 504
    assert res.json() == {"success": False, "error": "Gemini did not respond within 30s"}


async def test_fallback_uses_last_user_message(client, llm, user_info):
    llm.error = LLMException("Gemini API error: Status 500", status_code=500)

    res = await client.post(
        "/api/gemini-chat",
        json={"userInfo": user_info, "messages": [
            {"role": "user", "content": "question about my invoice"},
            {"role": "ai", "content": "Sure"},
            {"role": "user", "content": "and nothing else"},
        ]},
    )

    assert res.status_code == 500
    assert "fallback" not in res.json()


async def test_openai_chat_returns_full_reply(client, llm, user_info):
    llm._replies = ["Have you tried restarting the app?"]

    res = await client.post(
        "/api/openai-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "App crashes"}]},
    )

    assert res.status_code == 200
    assert res.json() == {"success": True, "ai": "Have you tried restarting the app?"}
    assert llm.calls[0]["temperature"] == 0.7
    assert llm.calls[0]["max_tokens"] == 512


async def test_openai_missing_key_is_500(client, user_info):
    from src.assistant.application import ChatRelayService
    from src.assistant.interfaces import get_chat_relay_service
    from src.main import app

    def missing_key(provider):
        raise ConfigurationException("OpenAI API key is not set.")

    app.dependency_overrides[get_chat_relay_service] = lambda: ChatRelayService(missing_key)

    res = await client.post(
        "/api/openai-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "hi"}]},
    )

    assert res.status_code == 500
    assert res.json() == {"success": False, "error": "OpenAI API key is not set."}


async def test_openai_failure_with_keyword_returns_fallback(client, llm, user_info):
    llm.error = LLMException("OpenAI rejected the API key", kind=LLMFailureKind.INVALID_KEY, status_code=401)

    res = await client.post(
        "/api/openai-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "Post on Instagram please"}]},
    )

    assert res.status_code == 401
    body = res.json()
    assert body["fallback"] is True
    assert "social media" in body["answer"].lower()


async def test_gemini_missing_key_with_keyword_returns_fallback(client, user_info):
    from src.assistant.application import ChatRelayService
    from src.assistant.interfaces import get_chat_relay_service
    from src.main import app

    def missing_key(provider):
        raise ConfigurationException("Gemini API key is not set.")

    app.dependency_overrides[get_chat_relay_service] = lambda: ChatRelayService(missing_key)

    res = await client.post(
        "/api/gemini-chat",
        json={"userInfo": user_info, "messages": [{"role": "user", "content": "I can't log in"}]},
    )

    assert res.status_code == 500
    body = res.json()
    assert body["error"] == "Gemini API key is not set."
    assert body["fallback"] is True
    assert "password" in body["answer"].lower()
