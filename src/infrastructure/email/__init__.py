"""
Email Infrastructure
====================

Transactional email through the SendGrid v3 Mail Send API.

Each notification is attempted exactly once; failures surface as
EmailDeliveryException carrying SendGrid's status code, with 401 reported
as an authorization problem.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from src.config import settings
from src.core import ConfigurationException, EmailDeliveryException
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized: Check SENDGRID_API_KEY is valid and has Mail send permission."


@dataclass
class EmailMessage:
    """A rendered notification email."""
    to: str
    subject: str
    html: str
    text: Optional[str] = None


class IEmailSender(ABC):
    """Interface for sending notification emails."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """
        Send one email.

        Raises:
            ConfigurationException: If the sender has no credentials
            EmailDeliveryException: If the provider rejects or cannot be reached
        """

    async def close(self) -> None:
        """Release HTTP resources."""


class SendGridClient(IEmailSender):
    """SendGrid Mail Send client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self._sender = sender or settings.email_from
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.email_timeout_seconds)
        return self._http_client

    def _build_payload(self, message: EmailMessage) -> Dict[str, Any]:
        """Build the v3 mail/send body. text/plain must precede text/html."""
        content = []
        if message.text:
            content.append({"type": "text/plain", "value": message.text})
        content.append({"type": "text/html", "value": message.html})

        return {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self._sender},
            "subject": message.subject,
            "content": content,
        }

    async def send(self, message: EmailMessage) -> None:
        if not self.is_configured:
            raise ConfigurationException("SENDGRID_API_KEY is not set")

        try:
            response = await self._get_client().post(
                settings.sendgrid_api_url,
                json=self._build_payload(message),
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(
                "SendGrid request failed",
                extra={"error": str(e), "subject": message.subject}
            )
            raise EmailDeliveryException(f"SendGrid unreachable: {e}", status_code=502)

        if response.status_code >= 400:
            logger.error(
                "SendGrid rejected email",
                extra={"status_code": response.status_code, "subject": message.subject}
            )
            reason = (
                UNAUTHORIZED_MESSAGE if response.status_code == 401
                else f"SendGrid rejected the message (HTTP {response.status_code})"
            )
            raise EmailDeliveryException(
                reason,
                status_code=response.status_code,
                details={"response": response.text}
            )

        logger.info(
            "Notification email sent",
            extra={"subject": message.subject, "status_code": response.status_code}
        )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


_sender: Optional[SendGridClient] = None


def get_email_sender() -> IEmailSender:
    """Get the process-wide SendGrid client."""
    global _sender
    if _sender is None:
        _sender = SendGridClient()
    return _sender


async def close_email_sender() -> None:
    global _sender
    if _sender is not None:
        await _sender.close()
        _sender = None
