"""
Assistant Controllers (API Routes)
===================================

FastAPI routes relaying the support chat to Gemini or OpenAI.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from src.assistant.application import ChatRelayService, ChatRelayRequest, ChatReplyResponse
from src.infrastructure.llm import get_llm_client
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["Assistant"])


# ========== Example payloads for Swagger ==========

RELAY_REQUEST_EXAMPLE = {
    "userInfo": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+27 82 555 0100",
        "category": "Email issues & mailbox setup"
    },
    "messages": [
        {"role": "user", "content": "My Outlook keeps asking for my password."}
    ]
}

FALLBACK_RESPONSE_EXAMPLE = {
    "success": False,
    "error": "Rate limited by Gemini",
    "fallback": True,
    "answer": "For email issues, first confirm you can sign in to webmail. ..."
}


# ========== Dependencies ==========

def get_chat_relay_service() -> ChatRelayService:
    return ChatRelayService(client_factory=get_llm_client)


# ========== Route Handlers ==========

@router.post(
    "/gemini-chat",
    summary="Stream a Gemini reply",
    description="""
    Relay the conversation to Gemini and pass its event stream through
    unchanged (`text/event-stream`, one JSON payload per `data:` line).

    When Gemini is unavailable and the last user message mentions a known
    topic, the error body carries `fallback: true` and a canned `answer`.
    """,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"description": "Missing userInfo or messages"},
        429: {"content": {"application/json": {"example": FALLBACK_RESPONSE_EXAMPLE}}},
        502: {"description": "Gemini failed"},
        504: {"description": "Gemini timed out"}
    }
)
async def gemini_chat(
    request: Request,
    payload: ChatRelayRequest,
    service: ChatRelayService = Depends(get_chat_relay_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    turns = payload.validated_turns()
    logger.info("Relaying chat to Gemini", extra={"correlation_id": correlation_id, "turns": len(turns)})

    reply = await service.stream_gemini(turns)
    return StreamingResponse(
        reply,
        media_type=reply.content_type,
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"}
    )


@router.post(
    "/openai-chat",
    response_model=ChatReplyResponse,
    summary="Get an OpenAI reply",
    description="Relay the conversation to OpenAI and return the full reply.",
    responses={
        200: {"content": {"application/json": {"example": {"success": True, "ai": "Which mail app are you using?"}}}},
        400: {"description": "Missing userInfo or messages"},
        500: {"description": "OpenAI API key is not set"}
    }
)
async def openai_chat(
    request: Request,
    payload: ChatRelayRequest,
    service: ChatRelayService = Depends(get_chat_relay_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    turns = payload.validated_turns()
    logger.info("Relaying chat to OpenAI", extra={"correlation_id": correlation_id, "turns": len(turns)})

    reply = await service.complete_openai(turns)
    return ChatReplyResponse(ai=reply)


# Export router for inclusion in main app
assistant_router = router
