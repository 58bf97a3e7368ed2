"""
Ticket Domain Layer
===================

Contains:
- Entities: Ticket, TicketMessage, ConversationTurn
- Rules: form validation, closing-phrase detection
- Builders: triage prompt, staff notification email

This layer is framework-agnostic and contains pure business logic.
"""

from src.tickets.domain.entities import (
    Ticket,
    TicketMessage,
    ConversationTurn,
    TriagePromptBuilder,
    TicketEmailBuilder,
    CLOSING_PHRASES,
    generate_ticket_id,
    validate_ticket_form,
    is_conversation_complete,
)

__all__ = [
    "Ticket",
    "TicketMessage",
    "ConversationTurn",
    "TriagePromptBuilder",
    "TicketEmailBuilder",
    "CLOSING_PHRASES",
    "generate_ticket_id",
    "validate_ticket_form",
    "is_conversation_complete",
]
