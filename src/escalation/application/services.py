"""
Escalation Application Services
================================

Sends escalation and review emails to the support inbox.
"""

from typing import List, Optional

from src.config import settings
from src.core import (
    ApplicationException,
    ConfigurationException,
    EmailDeliveryException,
)
from src.escalation.domain import (
    Contact,
    TranscriptLine,
    EscalationEmailBuilder,
    ReviewEmailBuilder,
)
from src.infrastructure.email import EmailMessage, IEmailSender
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class EscalationService:
    """Service emailing staff when a client asks for a human."""

    def __init__(self, email_sender: IEmailSender, inbox: Optional[str] = None):
        self._sender = email_sender
        self._inbox = inbox or settings.support_inbox_email

    def ensure_configured(self) -> None:
        """
        Raises:
            ConfigurationException: If no SendGrid key is configured
        """
        if not self._sender.is_configured:
            raise ConfigurationException("SENDGRID_API_KEY is not set")

    async def escalate(
        self,
        contact: Contact,
        transcript: List[TranscriptLine],
        urgency: Optional[str] = None
    ) -> None:
        """
        Send the escalation email. Attempted exactly once.

        Raises:
            ConfigurationException: If no SendGrid key is configured
            EmailDeliveryException: If SendGrid rejects or cannot be reached
        """
        self.ensure_configured()
        urgent = EscalationEmailBuilder.is_urgent(urgency)

        await self._sender.send(EmailMessage(
            to=self._inbox,
            subject=EscalationEmailBuilder.subject(contact),
            html=EscalationEmailBuilder.html(contact, transcript, urgency),
        ))

        logger.info(
            "Conversation escalated",
            extra={"category": contact.category, "urgent": urgent, "turns": len(transcript)}
        )


class ReviewService:
    """Service forwarding client reviews to the support inbox."""

    def __init__(self, email_sender: IEmailSender, inbox: Optional[str] = None):
        self._sender = email_sender
        self._inbox = inbox or settings.support_inbox_email

    async def submit_review(self, contact: Contact, rating: Optional[int], comment: Optional[str]) -> None:
        """
        Send the review email.

        Raises:
            ApplicationException: "Failed to send review." with the provider reason in details
        """
        message = EmailMessage(
            to=self._inbox,
            subject=ReviewEmailBuilder.subject(contact),
            html=ReviewEmailBuilder.html(contact, rating, comment),
        )
        try:
            await self._sender.send(message)
        except EmailDeliveryException as e:
            raise ApplicationException(
                "Failed to send review.",
                details={"reason": e.reason, "status_code": e.status_code, **e.details}
            ) from e
        except ConfigurationException as e:
            raise ApplicationException("Failed to send review.", details={"reason": e.message}) from e

        logger.info("Review submitted", extra={"rating": rating})
