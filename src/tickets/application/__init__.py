"""
Ticket Application Layer
=========================

Contains:
- Services: ticket creation and triage orchestration
- DTOs: Data transfer objects for API serialization
"""

from src.tickets.application.dto import (
    TicketInitiateRequest,
    TicketInitiateResponse,
    TicketRespondRequest,
    TicketRespondResponse,
    TicketContact,
    TriageSeed,
    NextMessage,
    ChatTurnDTO,
    CategoriesResponse,
)
from src.tickets.application.services import (
    TicketService,
    ITicketRepository,
    ITicketMessageRepository,
)

__all__ = [
    # DTOs
    "TicketInitiateRequest",
    "TicketInitiateResponse",
    "TicketRespondRequest",
    "TicketRespondResponse",
    "TicketContact",
    "TriageSeed",
    "NextMessage",
    "ChatTurnDTO",
    "CategoriesResponse",
    # Services
    "TicketService",
    # Repository Interfaces
    "ITicketRepository",
    "ITicketMessageRepository",
]
