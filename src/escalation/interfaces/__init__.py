"""
Escalation Interfaces Layer
===========================

FastAPI routes for escalation and reviews.
"""

from src.escalation.interfaces.controllers import (
    escalation_router,
    get_escalation_service,
    get_review_service,
)

__all__ = ["escalation_router", "get_escalation_service", "get_review_service"]
