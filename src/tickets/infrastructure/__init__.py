"""
Ticket Infrastructure Layer
============================

Contains:
- Repositories: MongoDB data access implementations
"""

from src.tickets.infrastructure.repositories import (
    MongoTicketRepository,
    MongoTicketMessageRepository,
)

__all__ = [
    "MongoTicketRepository",
    "MongoTicketMessageRepository",
]
