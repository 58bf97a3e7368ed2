"""
Escalation Domain Layer
=======================

Contains:
- Value objects: Contact, TranscriptLine
- Email builders for escalations and reviews
"""

from src.escalation.domain.entities import (
    URGENT_MARKER,
    Contact,
    TranscriptLine,
    EscalationEmailBuilder,
    ReviewEmailBuilder,
)

__all__ = [
    "URGENT_MARKER",
    "Contact",
    "TranscriptLine",
    "EscalationEmailBuilder",
    "ReviewEmailBuilder",
]
