"""
Assistant Interfaces Layer
===========================

FastAPI routes for the chat relay.
"""

from src.assistant.interfaces.controllers import assistant_router, get_chat_relay_service

__all__ = ["assistant_router", "get_chat_relay_service"]
