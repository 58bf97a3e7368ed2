"""
Escalation Controllers (API Routes)
====================================

FastAPI routes for handing a chat to a human and collecting reviews.
"""

from fastapi import APIRouter, Depends, Request

from src.escalation.application import (
    EscalationService,
    ReviewService,
    EscalateRequest,
    ReviewRequest,
    SuccessResponse,
)
from src.infrastructure.email import get_email_sender
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Escalation"])


# ========== Example payloads for Swagger ==========

ESCALATE_REQUEST_EXAMPLE = {
    "userInfo": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+27 82 555 0100",
        "category": "Website changes & support",
        "message": "The contact page is blank."
    },
    "transcript": [
        {"role": "user", "content": "The contact page is blank since this morning."},
        {"role": "ai", "content": "Does it happen in every browser?"}
    ],
    "urgency": "urgent"
}

UNAUTHORIZED_EXAMPLE = {
    "success": False,
    "error": "Unauthorized: Check SENDGRID_API_KEY is valid and has Mail send permission.",
    "details": {"response": "{\"errors\":[{\"message\":\"The provided authorization grant is invalid\"}]}"}
}


# ========== Dependencies ==========

def get_escalation_service() -> EscalationService:
    return EscalationService(email_sender=get_email_sender())


def get_review_service() -> ReviewService:
    return ReviewService(email_sender=get_email_sender())


# ========== Route Handlers ==========

@router.post(
    "/escalate",
    response_model=SuccessResponse,
    summary="Escalate to a human",
    description="""
    Email the support inbox the contact details and chat transcript.

    `urgency: "urgent"` adds a red URGENT marker to the email. The email is
    attempted once; SendGrid's status code is passed through on failure.
    """,
    responses={
        400: {"description": "Missing userInfo or transcript"},
        401: {"content": {"application/json": {"example": UNAUTHORIZED_EXAMPLE}}},
        500: {"description": "SENDGRID_API_KEY is not set"},
        502: {"description": "SendGrid unreachable"}
    }
)
async def escalate(
    request: Request,
    payload: EscalateRequest,
    service: EscalationService = Depends(get_escalation_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    service.ensure_configured()
    contact, transcript = payload.validated()

    logger.info(
        "Escalating conversation",
        extra={"correlation_id": correlation_id, "urgency": payload.urgency}
    )
    await service.escalate(contact, transcript, payload.urgency)
    return SuccessResponse()


@router.post(
    "/review",
    response_model=SuccessResponse,
    summary="Submit a review",
    description="Email the support inbox the client's rating (1 to 5) and comment.",
    responses={
        400: {"description": "Missing userInfo or review"},
        500: {"description": "Failed to send review"}
    }
)
async def submit_review(
    request: Request,
    payload: ReviewRequest,
    service: ReviewService = Depends(get_review_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    contact, review = payload.validated()

    logger.info("Submitting review", extra={"correlation_id": correlation_id, "rating": review.rating})
    await service.submit_review(contact, review.rating, review.comment)
    return SuccessResponse()


# Export router for inclusion in main app
escalation_router = router
