"""API test fixtures: FastAPI app over in-memory collaborators.

Invariants:
    - No test touches MongoDB, an AI provider or SendGrid
    - Every service dependency is overridden; overrides are cleared after each test

Design Decisions:
    - ASGITransport does not run the lifespan, so no database client is created
    - One ScriptedLLMClient serves every provider; tests reconfigure it per case
"""

import pytest
from httpx import ASGITransport, AsyncClient

from src.assistant.application import ChatRelayService
from src.assistant.interfaces import get_chat_relay_service
from src.escalation.application import EscalationService, ReviewService
from src.escalation.interfaces import get_escalation_service, get_review_service
from src.main import app
from src.tickets.application import TicketService
from src.tickets.interfaces import get_ticket_service

from tests.fakes import (
    InMemoryTicketMessageRepository,
    InMemoryTicketRepository,
    RecordingEmailSender,
    ScriptedLLMClient,
)


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def message_repo():
    return InMemoryTicketMessageRepository()


@pytest.fixture
def llm():
    return ScriptedLLMClient()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
async def client(ticket_repo, message_repo, llm, email_sender):
    """FastAPI test client with every service dependency overridden."""
    app.dependency_overrides[get_ticket_service] = lambda: TicketService(
        tickets=ticket_repo,
        messages=message_repo,
        llm_factory=lambda: llm,
        email_sender=email_sender,
    )
    app.dependency_overrides[get_chat_relay_service] = lambda: ChatRelayService(
        client_factory=lambda provider: llm
    )
    app.dependency_overrides[get_escalation_service] = lambda: EscalationService(email_sender)
    app.dependency_overrides[get_review_service] = lambda: ReviewService(email_sender)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def user_info():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+27 82 555 0100",
        "category": "Email issues & mailbox setup",
        "message": "Outlook keeps asking for my password.",
    }
