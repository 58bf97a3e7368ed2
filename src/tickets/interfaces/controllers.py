"""
Ticket Controllers (API Routes)
================================

FastAPI routes for opening tickets and running the triage conversation.

Controllers delegate to application services.
"""

from fastapi import APIRouter, Depends, Request

from src.config import settings, SUPPORT_CATEGORIES
from src.infrastructure.database import get_collection
from src.infrastructure.email import get_email_sender
from src.infrastructure.llm import get_llm_client
from src.shared.infrastructure.logging import get_logger
from src.tickets.application import (
    TicketService,
    TicketInitiateRequest, TicketInitiateResponse,
    TicketRespondRequest, TicketRespondResponse,
    TicketContact, TriageSeed, NextMessage,
    CategoriesResponse,
)
from src.tickets.infrastructure import MongoTicketRepository, MongoTicketMessageRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/api/ticket", tags=["Tickets"])


# ========== Example payloads for Swagger ==========

INITIATE_RESPONSE_EXAMPLE = {
    "success": True,
    "ticketId": "V1StGXR8_Z",
    "data": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+27 82 555 0100",
        "category": "Email issues & mailbox setup"
    },
    "ai": {"category": "Email issues & mailbox setup", "questions": []}
}

RESPOND_RESPONSE_EXAMPLE = {
    "success": True,
    "next": {
        "role": "assistant",
        "message": "Thank you, that's all I need for now. Our team will follow up soon.",
        "done": True
    },
    "messages": [
        {"role": "user", "content": "My mailbox stopped syncing on my phone."},
        {"role": "ai", "content": "Which mail app are you using?"},
        {"role": "user", "content": "The built-in iOS Mail app."}
    ]
}


# ========== Dependencies ==========

def get_ticket_service() -> TicketService:
    """Build the ticket service over the shared MongoDB client."""
    return TicketService(
        tickets=MongoTicketRepository(get_collection(settings.tickets_collection)),
        messages=MongoTicketMessageRepository(get_collection(settings.ticket_messages_collection)),
        llm_factory=lambda: get_llm_client(settings.triage_provider),
        email_sender=get_email_sender(),
    )


# ========== Route Handlers ==========

@router.post(
    "/initiate",
    response_model=TicketInitiateResponse,
    summary="Open a support ticket",
    description="""
    Validate the contact form and create an open ticket.

    Every invalid field is reported at once:

    ```json
    {"success": false, "errors": {"email": "Valid email is required."}}
    ```

    Nothing is stored when validation fails.
    """,
    responses={
        200: {"content": {"application/json": {"example": INITIATE_RESPONSE_EXAMPLE}}},
        400: {"description": "Missing or invalid fields"}
    }
)
async def initiate_ticket(
    request: Request,
    payload: TicketInitiateRequest,
    service: TicketService = Depends(get_ticket_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info("Opening ticket", extra={"correlation_id": correlation_id})

    ticket = await service.create_ticket(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        category=payload.category,
        message=payload.message
    )

    return TicketInitiateResponse(
        ticket_id=ticket.ticket_id,
        data=TicketContact(
            name=ticket.name,
            email=ticket.email,
            phone=ticket.phone,
            category=ticket.category
        ),
        ai=TriageSeed(category=ticket.category)
    )


@router.post(
    "/respond",
    response_model=TicketRespondResponse,
    summary="Advance the triage conversation",
    description="""
    Send the conversation so far and receive the assistant's next message.

    `next.done` is true once the assistant closes the conversation; staff
    are then emailed the full transcript.
    """,
    responses={
        200: {"content": {"application/json": {"example": RESPOND_RESPONSE_EXAMPLE}}},
        400: {"description": "Missing ticketId or messages"},
        404: {"description": "Unknown ticket"},
        502: {"description": "AI provider failed"},
        504: {"description": "AI provider timed out"}
    }
)
async def respond_to_ticket(
    request: Request,
    payload: TicketRespondRequest,
    service: TicketService = Depends(get_ticket_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    ticket_id = payload.validated_ticket_id()
    turns = payload.validated_turns()

    logger.info(
        "Advancing triage",
        extra={"correlation_id": correlation_id, "ticket_id": ticket_id, "turns": len(turns)}
    )

    reply, done = await service.respond(ticket_id, [t.to_domain() for t in turns])

    return TicketRespondResponse(
        next=NextMessage(message=reply, done=done),
        messages=turns
    )


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="List support categories"
)
async def list_categories():
    return CategoriesResponse(categories=SUPPORT_CATEGORIES)


# Export router for inclusion in main app
ticket_router = router
