"""
Ticket Application Services
============================

Application services for ticket creation and the triage conversation.

Orchestrates business logic between domain entities, repositories, the
triage LLM and the notification email.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from src.config import settings, TicketStatus, MessageRole
from src.core import (
    ApplicationException,
    DuplicateKeyException,
    ResourceNotFoundException,
    ValidationException,
)
from src.infrastructure.email import EmailMessage, IEmailSender
from src.infrastructure.llm import ILLMClient
from src.shared.infrastructure.logging import get_logger
from src.tickets.domain import (
    ConversationTurn,
    Ticket,
    TicketEmailBuilder,
    TicketMessage,
    TriagePromptBuilder,
    generate_ticket_id,
    is_conversation_complete,
    validate_ticket_form,
)

logger = get_logger(__name__)

MAX_ID_ATTEMPTS = 3


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """
        Insert a new ticket.

        Raises:
            DuplicateKeyException: If the ticket id is taken
        """

    @abstractmethod
    async def get_by_ticket_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by its public id."""

    @abstractmethod
    async def update_status(self, ticket_id: str, status: str) -> None:
        """Set the ticket status."""


class ITicketMessageRepository(ABC):
    """Interface for per-ticket chat messages."""

    @abstractmethod
    async def append(self, message: TicketMessage) -> None:
        """Store one message."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: str) -> List[TicketMessage]:
        """All messages of a ticket, oldest first."""


# ========== Application Services ==========

class TicketService:
    """
    Service for opening tickets and advancing their triage conversation.

    The LLM client is resolved lazily so opening a ticket never depends on
    AI provider configuration.
    """

    def __init__(
        self,
        tickets: ITicketRepository,
        messages: ITicketMessageRepository,
        llm_factory: Callable[[], ILLMClient],
        email_sender: IEmailSender,
    ):
        self._tickets = tickets
        self._messages = messages
        self._llm_factory = llm_factory
        self._email = email_sender

    async def create_ticket(
        self,
        name,
        email,
        phone,
        category,
        message: Optional[str] = None
    ) -> Ticket:
        """
        Validate the contact form and store a new open ticket.

        Raises:
            ValidationException: With a field-keyed error map; nothing is stored
        """
        errors = validate_ticket_form(name, email, phone, category)
        if errors:
            raise ValidationException("Invalid ticket details.", errors=errors)

        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            ticket = Ticket(
                ticket_id=generate_ticket_id(settings.ticket_id_length),
                name=name.strip(),
                email=email.strip(),
                phone=phone.strip(),
                category=category.strip(),
                message=message.strip() if message else None,
            )
            try:
                await self._tickets.create(ticket)
                break
            except DuplicateKeyException:
                if attempt == MAX_ID_ATTEMPTS:
                    raise
                logger.warning("Ticket id collision, regenerating", extra={"attempt": attempt})

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.ticket_id, "category": ticket.category}
        )
        return ticket

    async def respond(
        self,
        ticket_id: str,
        turns: List[ConversationTurn]
    ) -> Tuple[str, bool]:
        """
        Produce the assistant's next triage message.

        Stores the latest user turn and the reply. When the reply closes the
        conversation the ticket is marked triaged and staff are emailed.

        Returns:
            (assistant message, conversation complete)

        Raises:
            ResourceNotFoundException: If the ticket does not exist
            LLMException: If the AI provider fails
        """
        ticket = await self._tickets.get_by_ticket_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        if turns and turns[-1].is_user:
            await self._messages.append(
                TicketMessage(ticket_id=ticket_id, role=MessageRole.USER, message=turns[-1].content)
            )

        llm = self._llm_factory()
        completion = await llm.chat_completion(
            messages=TriagePromptBuilder.build_messages(turns),
            temperature=settings.triage_temperature,
            max_tokens=settings.triage_max_tokens,
            operation="triage"
        )
        reply = completion.content

        await self._messages.append(
            TicketMessage(ticket_id=ticket_id, role=MessageRole.ASSISTANT, message=reply)
        )

        done = is_conversation_complete(reply)
        logger.info(
            "Triage reply generated",
            extra={"ticket_id": ticket_id, "done": done, "latency_ms": completion.latency_ms}
        )

        if done:
            await self._tickets.update_status(ticket_id, TicketStatus.TRIAGED)
            ticket.status = TicketStatus.TRIAGED
            await self._notify_staff(ticket)

        return reply, done

    async def _notify_staff(self, ticket: Ticket) -> None:
        """Email the completed transcript. Failures are logged, never raised."""
        try:
            transcript = await self._messages.list_for_ticket(ticket.ticket_id)
            await self._email.send(EmailMessage(
                to=settings.support_inbox_email,
                subject=TicketEmailBuilder.subject(ticket),
                html=TicketEmailBuilder.html(ticket, transcript),
            ))
        except ApplicationException as e:
            logger.error(
                "Failed to send ticket notification",
                extra={"ticket_id": ticket.ticket_id, "error": e.message}
            )
