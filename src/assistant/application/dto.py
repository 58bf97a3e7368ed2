"""
Assistant Application DTOs
===========================

Request/response models for the chat relay endpoints.
"""

from typing import List, Optional

from src.core import ValidationException
from src.shared.api.schemas import CamelModel, ChatTurn, UserInfo


class ChatRelayRequest(CamelModel):
    """A chat turn to relay: contact details plus the conversation so far."""
    user_info: Optional[UserInfo] = None
    messages: Optional[List[ChatTurn]] = None

    def validated_turns(self) -> List[ChatTurn]:
        if self.user_info is None or not self.messages:
            raise ValidationException("Missing userInfo or messages.")
        return self.messages


class ChatReplyResponse(CamelModel):
    """Full (non-streamed) assistant reply."""
    success: bool = True
    ai: str
