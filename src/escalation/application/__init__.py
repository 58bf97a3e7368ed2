"""
Escalation Application Layer
============================

Contains:
- Services: EscalationService, ReviewService
- DTOs: escalation and review requests
"""

from src.escalation.application.dto import (
    EscalateRequest,
    ReviewDTO,
    ReviewRequest,
    SuccessResponse,
)
from src.escalation.application.services import EscalationService, ReviewService

__all__ = [
    "EscalateRequest",
    "ReviewDTO",
    "ReviewRequest",
    "SuccessResponse",
    "EscalationService",
    "ReviewService",
]
