"""
Ticket Interfaces Layer
========================

Interface adapters (controllers) for the ticket module.
"""

from src.tickets.interfaces.controllers import ticket_router, get_ticket_service

__all__ = ["ticket_router", "get_ticket_service"]
