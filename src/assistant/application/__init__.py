"""
Assistant Application Layer
============================

Contains:
- Services: ChatRelayService
- DTOs: relay request and reply models
"""

from src.assistant.application.dto import ChatRelayRequest, ChatReplyResponse
from src.assistant.application.services import ChatRelayService, to_llm_messages, last_user_message

__all__ = [
    "ChatRelayRequest",
    "ChatReplyResponse",
    "ChatRelayService",
    "to_llm_messages",
    "last_user_message",
]
