"""
LLM Client Infrastructure
==========================

Wrappers for the AI providers (OpenAI, Gemini) behind one interface.

Every provider call goes through the same policy:
- one bounded wait per attempt, cancelled when it expires
- at most one re-attempt, and only after a connection reset
- provider errors translated to LLMException with a failure kind and the
  HTTP status the API should answer with
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx
import openai
from openai import AsyncOpenAI

from src.config import settings, LLMProvider, MessageRole
from src.core import ConfigurationException, LLMException, LLMFailureKind
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

T = TypeVar("T")


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class StreamedReply:
    """
    An open upstream response whose body is relayed chunk by chunk.

    Iterating yields the decoded body (any Content-Encoding removed) and
    always closes the upstream response.
    """

    def __init__(self, content_type: str, chunks: AsyncIterator[bytes], close: Callable[[], Awaitable[None]]):
        self.content_type = content_type
        self._chunks = chunks
        self._close = close

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._chunks:
                yield chunk
        except httpx.HTTPError as e:
            # Headers are already sent; the client sees a truncated stream.
            logger.error("Upstream stream interrupted", extra={"error": str(e)})
        finally:
            await self._close()

    async def aclose(self) -> None:
        await self._close()


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    ``messages`` use the OpenAI shape: dicts with ``role`` in
    (system, user, assistant) and ``content``.
    """

    provider: str = ""
    model: str = ""

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 512,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate a full chat completion."""

    async def stream_chat(self, messages: List[dict]) -> StreamedReply:
        """Open a streamed completion. Providers without streaming don't override this."""
        raise NotImplementedError(f"{self.provider} does not support streaming")

    async def close(self) -> None:
        """Release HTTP resources."""


# ========== Call policy ==========

def is_connection_reset(exc: BaseException) -> bool:
    """True when ``exc`` or anything in its cause chain is a connection reset."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionResetError):
            return True
        text = str(current).lower()
        if "connection reset" in text or "econnreset" in text:
            return True
        current = current.__cause__ or current.__context__
    return False


async def call_with_policy(
    operation: Callable[[], Awaitable[T]],
    translate: Callable[[Exception], LLMException],
    provider: str,
    timeout: Optional[float] = None,
    retry_on_reset: Optional[bool] = None,
) -> T:
    """
    Run a provider call under the bounded-wait / single-retry policy.

    Args:
        operation: Zero-argument factory returning a fresh awaitable per attempt
        translate: Maps provider exceptions to LLMException
        provider: Provider name for messages and logs
        timeout: Seconds per attempt (defaults to settings)
        retry_on_reset: Allow one re-attempt after a connection reset

    Raises:
        LLMException: On timeout or any provider failure
    """
    timeout = settings.llm_timeout_seconds if timeout is None else timeout
    retry_on_reset = settings.llm_retry_on_reset if retry_on_reset is None else retry_on_reset
    retried = False

    while True:
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.TimeoutError:
            raise LLMException(
                f"{provider} did not respond within {timeout:g}s",
                kind=LLMFailureKind.TIMEOUT,
                status_code=504
            )
        except LLMException:
            raise
        except Exception as e:
            if retry_on_reset and not retried and is_connection_reset(e):
                logger.warning(
                    "Connection reset by AI provider, retrying once",
                    extra={"provider": provider}
                )
                retried = True
                continue
            raise translate(e) from e


# ========== OpenAI ==========

class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation for GPT models.

    SDK retries are disabled; the call policy above owns retrying.
    """

    provider = LLMProvider.OPENAI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key or settings.openai_api_key
        if not self._api_key:
            raise ConfigurationException("OpenAI API key is not set.")

        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=settings.openai_base_url,
            max_retries=0,
            http_client=http_client,
        )
        self.model = model or settings.openai_model

    @staticmethod
    def translate_error(exc: Exception) -> LLMException:
        """Map OpenAI SDK errors to LLMException."""
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return LLMException(
                "OpenAI rejected the API key",
                kind=LLMFailureKind.INVALID_KEY,
                status_code=exc.status_code
            )
        if isinstance(exc, openai.RateLimitError):
            return LLMException(
                "OpenAI rate limit exceeded",
                kind=LLMFailureKind.RATE_LIMITED,
                status_code=429
            )
        if isinstance(exc, openai.APITimeoutError):
            return LLMException("OpenAI request timed out", kind=LLMFailureKind.TIMEOUT, status_code=504)
        if isinstance(exc, openai.APIConnectionError):
            return LLMException(
                f"OpenAI connection failed: {exc}",
                kind=LLMFailureKind.CONNECTION,
                status_code=502
            )
        if isinstance(exc, openai.APIStatusError):
            return LLMException(
                f"OpenAI API error: Status {exc.status_code}",
                kind=LLMFailureKind.UPSTREAM,
                status_code=exc.status_code,
                details={"body": exc.response.text}
            )
        return LLMException(f"OpenAI API error: {exc}", status_code=502)

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 512,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion using OpenAI GPT.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            operation: Operation name for logs (triage, relay)

        Returns:
            ChatCompletionResult with generated text

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        with log_latency(logger, f"openai_{operation}", model=self.model):
            response = await call_with_policy(
                lambda: self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens
                ),
                self.translate_error,
                provider="OpenAI",
            )

        content = response.choices[0].message.content if response.choices else None
        usage = response.usage

        return ChatCompletionResult(
            content=content or "",
            model=self.model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )

    async def close(self) -> None:
        await self._client.close()


# ========== Gemini ==========

def to_gemini_contents(messages: List[dict]) -> Dict[str, object]:
    """
    Convert OpenAI-shaped messages to a Gemini request body.

    System messages become ``systemInstruction``; assistant turns use the
    ``model`` role.
    """
    system_parts = [{"text": m["content"]} for m in messages if m["role"] == MessageRole.SYSTEM]
    contents = [
        {
            "role": "model" if m["role"] in (MessageRole.ASSISTANT, MessageRole.AI) else "user",
            "parts": [{"text": m["content"]}],
        }
        for m in messages
        if m["role"] != MessageRole.SYSTEM
    ]
    body: Dict[str, object] = {"contents": contents}
    if system_parts:
        body["systemInstruction"] = {"parts": system_parts}
    return body


def extract_gemini_text(payload: object) -> str:
    """Concatenate candidate text from a generateContent payload (or a list of chunks)."""
    chunks = payload if isinstance(payload, list) else [payload]
    text = []
    for chunk in chunks:
        candidates = (chunk.get("candidates") or []) if isinstance(chunk, dict) else []
        if not candidates:
            continue
        for part in (candidates[0].get("content") or {}).get("parts") or []:
            if isinstance(part.get("text"), str):
                text.append(part["text"])
    return "".join(text)


class GeminiLLMClient(ILLMClient):
    """
    Gemini REST client.

    Talks to the public Generative Language API with httpx so the
    streamed body can be relayed to the browser without re-encoding.
    """

    provider = LLMProvider.GEMINI

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key or settings.gemini_api_key
        if not self._api_key:
            raise ConfigurationException("Gemini API key is not set.")

        self.model = model or settings.gemini_model
        self._base_url = settings.gemini_api_base.rstrip("/")
        self._http_client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.llm_timeout_seconds)
        return self._http_client

    def _url(self, method: str) -> str:
        return f"{self._base_url}/models/{self.model}:{method}"

    @staticmethod
    def translate_error(exc: Exception) -> LLMException:
        """Map transport errors to LLMException."""
        if isinstance(exc, httpx.TimeoutException):
            return LLMException("Gemini request timed out", kind=LLMFailureKind.TIMEOUT, status_code=504)
        if isinstance(exc, httpx.TransportError):
            return LLMException(
                f"Gemini connection failed: {exc}",
                kind=LLMFailureKind.CONNECTION,
                status_code=502
            )
        return LLMException(f"Gemini API error: {exc}", status_code=502)

    @staticmethod
    def status_error(status_code: int, body: str) -> LLMException:
        """Map a non-2xx Gemini response to LLMException."""
        if status_code in (401, 403) or (status_code == 400 and "API_KEY_INVALID" in body):
            kind = LLMFailureKind.INVALID_KEY
            message = "Gemini rejected the API key"
        elif status_code == 429:
            kind = LLMFailureKind.RATE_LIMITED
            message = "Gemini rate limit exceeded"
        else:
            kind = LLMFailureKind.UPSTREAM
            message = f"Gemini API error: Status {status_code}"
        return LLMException(message, kind=kind, status_code=status_code, details={"body": body})

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 512,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate a full (non-streamed) completion with generateContent."""
        start_time = time.perf_counter()
        body = to_gemini_contents(messages)
        body["generationConfig"] = {"temperature": temperature, "maxOutputTokens": max_tokens}

        async def send() -> dict:
            response = await self._get_client().post(
                self._url("generateContent"),
                params={"key": self._api_key},
                json=body,
            )
            if response.status_code >= 400:
                raise self.status_error(response.status_code, response.text)
            return response.json()

        with log_latency(logger, f"gemini_{operation}", model=self.model):
            payload = await call_with_policy(send, self.translate_error, provider="Gemini")

        usage = payload.get("usageMetadata") or {}
        return ChatCompletionResult(
            content=extract_gemini_text(payload),
            model=self.model,
            prompt_tokens=usage.get("promptTokenCount", 0),
            completion_tokens=usage.get("candidatesTokenCount", 0),
            latency_ms=int((time.perf_counter() - start_time) * 1000)
        )

    async def stream_chat(self, messages: List[dict]) -> StreamedReply:
        """
        Open streamGenerateContent and hand back the live response.

        Requests server-sent events framing (``data: {...}`` lines). The
        bounded wait covers connecting and receiving the response headers;
        the body is then relayed as it arrives.
        """
        client = self._get_client()
        body = to_gemini_contents(messages)

        async def open_stream() -> httpx.Response:
            request = client.build_request(
                "POST",
                self._url("streamGenerateContent"),
                params={"key": self._api_key, "alt": "sse"},
                json=body,
            )
            response = await client.send(request, stream=True)
            if response.status_code >= 400:
                text = (await response.aread()).decode("utf-8", errors="replace")
                await response.aclose()
                raise self.status_error(response.status_code, text)
            return response

        logger.info(
            "Opening Gemini stream",
            extra={"model": self.model, "turns": len(body["contents"])}
        )
        response = await call_with_policy(open_stream, self.translate_error, provider="Gemini")

        return StreamedReply(
            content_type=response.headers.get("content-type", "text/event-stream"),
            chunks=response.aiter_bytes(),
            close=response.aclose,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


# ========== Mock ==========

class MockLLMClient(ILLMClient):
    """
    Mock LLM client for local runs and tests.

    Returns predictable responses without calling external APIs: asks one
    clarifying question, then closes the conversation.
    """

    CLARIFYING_QUESTION = "Thanks for reaching out. When did you first notice the issue?"
    CLOSING_MESSAGE = "Thank you, that's all I need for now. Our team will follow up soon."

    def __init__(self, provider: str = "mock"):
        self.provider = provider
        self.model = "mock-model"

    def _reply_for(self, messages: List[dict]) -> str:
        user_turns = [m for m in messages if m["role"] == MessageRole.USER]
        return self.CLARIFYING_QUESTION if len(user_turns) < 2 else self.CLOSING_MESSAGE

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.7,
        max_tokens: int = 512,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        content = self._reply_for(messages)
        return ChatCompletionResult(
            content=content,
            model=self.model,
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=1
        )

    async def stream_chat(self, messages: List[dict]) -> StreamedReply:
        words = self._reply_for(messages).split(" ")

        async def chunks() -> AsyncIterator[bytes]:
            for i, word in enumerate(words):
                text = word if i == 0 else f" {word}"
                chunk = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
                yield f"data: {json.dumps(chunk)}\r\n\r\n".encode()

        async def close() -> None:
            return None

        return StreamedReply("text/event-stream", chunks(), close)


# ========== Registry ==========

_clients: Dict[str, ILLMClient] = {}


def get_llm_client(provider: str) -> ILLMClient:
    """
    Get the process-wide client for a provider, creating it on first use.

    Raises:
        ConfigurationException: If the provider's API key is missing
    """
    if provider not in _clients:
        if settings.mock_llm:
            _clients[provider] = MockLLMClient(provider)
        elif provider == LLMProvider.OPENAI:
            _clients[provider] = OpenAILLMClient()
        elif provider == LLMProvider.GEMINI:
            _clients[provider] = GeminiLLMClient()
        else:
            raise ConfigurationException(f"Unknown LLM provider: {provider}")
    return _clients[provider]


async def close_llm_clients() -> None:
    """Close every client created by get_llm_client."""
    for client in list(_clients.values()):
        await client.close()
    _clients.clear()
