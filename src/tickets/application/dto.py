"""
Ticket Application DTOs
========================

Data Transfer Objects for the ticket API layer.

Pydantic models for request/response validation. JSON keys are camelCase
(``ticketId``) to match the browser client; Python attributes stay snake_case.

Request fields that carry their own user-facing messages are typed loosely
and checked by the domain, so a wrong type gets the same message as a
missing value.
"""

from typing import Any, List, Literal, Optional

from pydantic import Field, ValidationError, TypeAdapter

from src.core import ValidationException
from src.shared.api.schemas import CamelModel, ChatTurn
from src.tickets.domain import ConversationTurn


# ========== Request DTOs ==========

class TicketInitiateRequest(CamelModel):
    """Contact form submitted to open a ticket."""
    name: Any = None
    email: Any = None
    phone: Any = None
    category: Any = None
    message: Optional[str] = Field(None, max_length=10000, description="Initial issue description")


class ChatTurnDTO(ChatTurn):
    """One conversation turn as the browser sends it."""

    def to_domain(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, content=self.content)


class TicketRespondRequest(CamelModel):
    """Conversation so far for a ticket."""
    ticket_id: Any = None
    response: Any = None

    def validated_ticket_id(self) -> str:
        if not isinstance(self.ticket_id, str) or not self.ticket_id.strip():
            raise ValidationException("ticketId is required.")
        return self.ticket_id

    def validated_turns(self) -> List[ChatTurnDTO]:
        if not isinstance(self.response, list):
            raise ValidationException("Messages array required.")
        try:
            return _TURNS.validate_python(self.response)
        except ValidationError as e:
            errors = {
                ".".join(["response", *(str(p) for p in err["loc"])]): err["msg"]
                for err in e.errors()
            }
            raise ValidationException("Invalid message in response array.", errors=errors)


_TURNS = TypeAdapter(List[ChatTurnDTO])


# ========== Response DTOs ==========

class TicketContact(CamelModel):
    name: str
    email: str
    phone: str
    category: str


class TriageSeed(CamelModel):
    """Initial triage state handed to the chat page."""
    category: str
    questions: List[str] = Field(default_factory=list)


class TicketInitiateResponse(CamelModel):
    success: bool = True
    ticket_id: str
    data: TicketContact
    ai: TriageSeed


class NextMessage(CamelModel):
    role: Literal["assistant"] = "assistant"
    message: str
    done: bool


class TicketRespondResponse(CamelModel):
    success: bool = True
    next: NextMessage
    messages: List[ChatTurnDTO]


class CategoriesResponse(CamelModel):
    categories: List[str]
