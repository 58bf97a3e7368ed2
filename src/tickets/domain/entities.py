"""
Ticket Domain Entities
======================

Domain entities for the ticket module.

Contains pure Python business objects: the ticket record, its chat
messages, form validation, the triage prompt and the heuristic that
decides when the triage conversation is over.
"""

import html
import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.config import TicketStatus, MessageRole

TICKET_ID_ALPHABET = "useandom-26T198340PX75pxJACKVERYMINDBUSHWOLF_GQZbfghjklqvwyzrict"
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def generate_ticket_id(size: int = 10) -> str:
    """Random URL-safe identifier (64-symbol alphabet, 6 bits per character)."""
    return "".join(secrets.choice(TICKET_ID_ALPHABET) for _ in range(size))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Ticket:
    """
    Support ticket entity.

    Created once per submitted form. ``ticket_id`` is assigned at
    creation and never changes.
    """
    ticket_id: str
    name: str
    email: str
    phone: str
    category: str
    status: str = TicketStatus.OPEN
    message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "ticketId": self.ticket_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "category": self.category,
            "status": self.status,
            "createdAt": self.created_at,
        }
        if self.message:
            doc["message"] = self.message
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Ticket":
        return cls(
            ticket_id=doc["ticketId"],
            name=doc.get("name", ""),
            email=doc.get("email", ""),
            phone=doc.get("phone", ""),
            category=doc.get("category", ""),
            status=doc.get("status", TicketStatus.OPEN),
            message=doc.get("message"),
            created_at=doc.get("createdAt") or utcnow(),
        )


@dataclass
class TicketMessage:
    """One stored turn of a ticket's triage conversation."""
    ticket_id: str
    role: str  # user | assistant
    message: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_document(self) -> Dict[str, Any]:
        return {
            "ticketId": self.ticket_id,
            "role": self.role,
            "message": self.message,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "TicketMessage":
        return cls(
            ticket_id=doc["ticketId"],
            role=doc["role"],
            message=doc.get("message", ""),
            timestamp=doc["timestamp"],
        )


@dataclass
class ConversationTurn:
    """A turn as the browser sends it: role ``user`` or ``ai``."""
    role: str
    content: str

    @property
    def is_user(self) -> bool:
        return self.role == MessageRole.USER

    def to_llm_message(self) -> Dict[str, str]:
        role = MessageRole.USER if self.is_user else MessageRole.ASSISTANT
        return {"role": role, "content": self.content}


def validate_ticket_form(name: Any, email: Any, phone: Any, category: Any) -> Dict[str, str]:
    """
    Validate the contact form.

    Returns:
        Field-keyed error messages; empty when the form is valid
    """
    def blank(value: Any) -> bool:
        return not isinstance(value, str) or not value.strip()

    errors = {}
    if blank(name):
        errors["name"] = "Full name is required."
    if not isinstance(email, str) or not EMAIL_PATTERN.match(email):
        errors["email"] = "Valid email is required."
    if blank(phone):
        errors["phone"] = "Phone number is required."
    if blank(category):
        errors["category"] = "Category is required."
    return errors


# Phrases the assistant is instructed to close with.
CLOSING_PHRASES = (
    "no further questions",
    "that is all",
    "thank you",
    "i have all the information",
    "our team will follow up soon",
    "that's all",
)
_CLOSING_PATTERN = re.compile(
    "|".join(re.escape(p).replace("'", "['’]") for p in CLOSING_PHRASES),
    re.IGNORECASE,
)


def is_conversation_complete(reply: str) -> bool:
    """True when the assistant's reply contains a closing phrase."""
    return bool(_CLOSING_PATTERN.search(reply or ""))


class TriagePromptBuilder:
    """
    Builds prompts for the triage conversation.

    Following DRY principle - all prompt logic in one place.
    """

    SYSTEM_PROMPT = """You are a professional, friendly Support-Triage Assistant for a technology company. When given a user's initial support request and their selected category, your job is to:
- Politely and concisely ask up to 3 clarifying questions, only if absolutely necessary, to diagnose the issue.
- Never ask for information the user has already provided.
- End the conversation with a friendly closing when you have all the information you need (e.g., "Thank you, that's all I need for now. Our team will follow up soon.").
- If the user says "no" or "that's all", end the chat politely.
- Keep your responses short and clear.
- Do not answer questions unrelated to support triage.
- Always reply as the assistant in a helpful, concise, and professional way."""

    @classmethod
    def build_messages(cls, turns: List[ConversationTurn]) -> List[Dict[str, str]]:
        """System prompt followed by the conversation so far."""
        return [{"role": MessageRole.SYSTEM, "content": cls.SYSTEM_PROMPT}] + [
            turn.to_llm_message() for turn in turns
        ]


class TicketEmailBuilder:
    """Renders the staff notification sent when triage completes."""

    @staticmethod
    def subject(ticket: Ticket) -> str:
        return f"New Support Ticket [{ticket.ticket_id}] - {ticket.category}"

    @staticmethod
    def html(ticket: Ticket, transcript: List[TicketMessage]) -> str:
        e = html.escape
        lines = "".join(
            f"<div><b>{'Client' if m.role == MessageRole.USER else 'Assistant'}:</b> {e(m.message)}</div>"
            for m in transcript
        )
        return f"""
        <h2>New Support Ticket</h2>
        <p><b>Ticket ID:</b> {e(ticket.ticket_id)}</p>
        <p><b>Name:</b> {e(ticket.name)}</p>
        <p><b>Email:</b> {e(ticket.email)}</p>
        <p><b>Phone:</b> {e(ticket.phone)}</p>
        <p><b>Category:</b> {e(ticket.category)}</p>
        <p><b>Status:</b> {e(ticket.status)}</p>
        <p><b>Created At:</b> {ticket.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")}</p>
        <h3>Conversation Transcript</h3>
        <div style="background:#f5f6fa;padding:12px;border-radius:8px;">
          {lines}
        </div>
        """
