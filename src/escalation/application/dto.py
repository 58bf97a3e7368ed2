"""
Escalation Application DTOs
============================

Request models for escalation and review.
"""

from typing import List, Optional

from pydantic import Field

from src.core import ValidationException
from src.escalation.domain import Contact, TranscriptLine
from src.shared.api.schemas import CamelModel, ChatTurn, UserInfo


def to_contact(user_info: UserInfo) -> Contact:
    return Contact(
        name=user_info.name,
        email=user_info.email,
        phone=user_info.phone,
        category=user_info.category,
        message=user_info.message,
    )


class EscalateRequest(CamelModel):
    """Hand the conversation to a human."""
    user_info: Optional[UserInfo] = None
    transcript: Optional[List[ChatTurn]] = None
    urgency: Optional[str] = Field(None, description="'urgent' adds a red URGENT marker")

    def validated(self) -> tuple:
        """Contact and transcript lines; an empty transcript is allowed."""
        if self.user_info is None or self.transcript is None:
            raise ValidationException("Missing userInfo or transcript.")
        lines = [TranscriptLine(is_user=t.is_user, content=t.content) for t in self.transcript]
        return to_contact(self.user_info), lines


class ReviewDTO(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=5000)


class ReviewRequest(CamelModel):
    """End-of-chat review."""
    user_info: Optional[UserInfo] = None
    review: Optional[ReviewDTO] = None

    def validated(self) -> tuple:
        if self.user_info is None or self.review is None:
            raise ValidationException("Missing userInfo or review.")
        return to_contact(self.user_info), self.review


class SuccessResponse(CamelModel):
    success: bool = True
