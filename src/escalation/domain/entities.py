"""
Escalation Domain Entities
==========================

Renders the emails sent when a client asks for a human or leaves a review.

All user-provided text is HTML-escaped before it reaches the template.
"""

import html
from dataclasses import dataclass
from typing import List, Optional

from src.config import UrgencyLevel

URGENT_MARKER = '<p style="color:#ff2222;font-weight:bold;font-size:18px;">URGENT</p>'


@dataclass(frozen=True)
class Contact:
    """Contact details from the support form."""
    name: str
    email: str
    phone: str
    category: str
    message: str = ""


@dataclass(frozen=True)
class TranscriptLine:
    """One chat turn as shown to staff."""
    is_user: bool
    content: str

    @property
    def label(self) -> str:
        return "Client" if self.is_user else "AI"


def _contact_rows(contact: Contact) -> str:
    e = html.escape
    return (
        f"<p><b>Name:</b> {e(contact.name)}</p>"
        f"<p><b>Email:</b> {e(contact.email)}</p>"
        f"<p><b>Phone:</b> {e(contact.phone)}</p>"
        f"<p><b>Category:</b> {e(contact.category)}</p>"
    )


class EscalationEmailBuilder:
    """Email handing a conversation to a human agent."""

    @staticmethod
    def is_urgent(urgency: Optional[str]) -> bool:
        return urgency == UrgencyLevel.URGENT

    @staticmethod
    def subject(contact: Contact) -> str:
        return f"Escalated Support Ticket from {contact.name}"

    @classmethod
    def html(cls, contact: Contact, transcript: List[TranscriptLine], urgency: Optional[str] = None) -> str:
        e = html.escape
        lines = "".join(
            f"<div><b>{line.label}:</b> {e(line.content)}</div>"
            for line in transcript
        )
        marker = URGENT_MARKER if cls.is_urgent(urgency) else ""
        return f"""
        <h2>Escalated Support Ticket</h2>
        {marker}
        {_contact_rows(contact)}
        <p><b>Original Message:</b> {e(contact.message)}</p>
        <h3>Chat Transcript</h3>
        <div style="background:#f5f6fa;padding:12px;border-radius:8px;">
          {lines}
        </div>
        """


class ReviewEmailBuilder:
    """Email carrying a client's end-of-chat review."""

    @staticmethod
    def subject(contact: Contact) -> str:
        return f"New Support Review from {contact.name}"

    @staticmethod
    def html(contact: Contact, rating: Optional[int], comment: Optional[str]) -> str:
        e = html.escape
        rating_text = f"{rating} / 5" if rating is not None else "Not given"
        return f"""
        <h2>New Support Review</h2>
        {_contact_rows(contact)}
        <p><b>Original Message:</b> {e(contact.message)}</p>
        <p><b>Rating:</b> {rating_text}</p>
        <p><b>Comment:</b> {e(comment or "")}</p>
        """
