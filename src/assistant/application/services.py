"""
Assistant Application Services
===============================

Relays chat turns to an AI provider.

Provider failures are re-raised as AssistantUnavailableException, carrying
a canned answer when the user's last message matches the keyword table.
"""

from typing import Callable, List, Optional

from src.assistant.domain import find_fallback_answer
from src.config import settings, LLMProvider, MessageRole
from src.core import (
    AssistantUnavailableException,
    ConfigurationException,
    LLMException,
    LLMFailureKind,
)
from src.infrastructure.llm import ILLMClient, StreamedReply
from src.shared.api.schemas import ChatTurn
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def to_llm_messages(turns: List[ChatTurn]) -> List[dict]:
    return [
        {"role": MessageRole.USER if t.is_user else MessageRole.ASSISTANT, "content": t.content}
        for t in turns
    ]


def last_user_message(turns: List[ChatTurn]) -> Optional[str]:
    for turn in reversed(turns):
        if turn.is_user:
            return turn.content
    return None


class ChatRelayService:
    """
    Service relaying the support chat to Gemini (streamed) or OpenAI (full reply).

    ``client_factory`` resolves a provider name to a client.
    """

    def __init__(self, client_factory: Callable[[str], ILLMClient]):
        self._client_factory = client_factory

    def _client(self, provider: str) -> ILLMClient:
        """Resolve a provider client; a missing key fails like an outage (500)."""
        try:
            return self._client_factory(provider)
        except ConfigurationException as e:
            raise LLMException(e.message, kind=LLMFailureKind.NOT_CONFIGURED, status_code=500) from e

    def _unavailable(self, exc: LLMException, turns: List[ChatTurn]) -> AssistantUnavailableException:
        fallback = find_fallback_answer(last_user_message(turns))
        logger.warning(
            "AI provider unavailable",
            extra={
                "failure_kind": exc.kind,
                "status_code": exc.status_code,
                "fallback_topic": fallback.topic if fallback else None
            }
        )
        return AssistantUnavailableException(exc, fallback.answer if fallback else None)

    async def stream_gemini(self, turns: List[ChatTurn]) -> StreamedReply:
        """
        Open a Gemini stream for the conversation.

        Raises:
            AssistantUnavailableException: If the stream could not be opened
        """
        try:
            client = self._client(LLMProvider.GEMINI)
            return await client.stream_chat(to_llm_messages(turns))
        except LLMException as e:
            raise self._unavailable(e, turns) from e

    async def complete_openai(self, turns: List[ChatTurn]) -> str:
        """
        Get a full OpenAI reply for the conversation.

        Raises:
            AssistantUnavailableException: If the provider call failed
        """
        try:
            client = self._client(LLMProvider.OPENAI)
            result = await client.chat_completion(
                messages=to_llm_messages(turns),
                temperature=settings.chat_temperature,
                max_tokens=settings.chat_max_tokens,
                operation="relay"
            )
        except LLMException as e:
            raise self._unavailable(e, turns) from e
        return result.content
