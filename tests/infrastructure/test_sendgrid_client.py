"""SendGrid client against httpx.MockTransport.

Invariants:
    - One POST per send, never retried
    - 401 is reported with the permission hint; other statuses pass through
    - Network failures become a 502
"""

import json

import httpx
import pytest

from src.core import ConfigurationException, EmailDeliveryException
from src.infrastructure.email import UNAUTHORIZED_MESSAGE, EmailMessage, SendGridClient

MESSAGE = EmailMessage(
    to="support@example.test",
    subject="Escalated Support Ticket from Jane",
    html="<p>hi</p>",
    text="hi",
)


def _client(handler, api_key="SG.key") -> SendGridClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SendGridClient(api_key=api_key, sender="no-reply@example.test", http_client=http)


async def test_send_posts_v3_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202)

    await _client(handler).send(MESSAGE)

    assert len(seen) == 1
    request = seen[0]
    assert request.headers["authorization"] == "Bearer SG.key"
    assert json.loads(request.content) == {
        "personalizations": [{"to": [{"email": "support@example.test"}]}],
        "from": {"email": "no-reply@example.test"},
        "subject": "Escalated Support Ticket from Jane",
        "content": [
            {"type": "text/plain", "value": "hi"},
            {"type": "text/html", "value": "<p>hi</p>"},
        ],
    }


async def test_missing_key_is_configuration_error():
    client = _client(lambda request: httpx.Response(202), api_key="")

    assert client.is_configured is False
    with pytest.raises(ConfigurationException, match="SENDGRID_API_KEY is not set"):
        await client.send(MESSAGE)


async def test_unauthorized_has_permission_hint():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(401, json={"errors": [{"message": "bad key"}]})

    with pytest.raises(EmailDeliveryException) as exc_info:
        await _client(handler).send(MESSAGE)

    assert exc_info.value.status_code == 401
    assert exc_info.value.reason == UNAUTHORIZED_MESSAGE
    assert "bad key" in exc_info.value.details["response"]
    assert len(seen) == 1


async def test_other_rejections_pass_status_through():
    with pytest.raises(EmailDeliveryException) as exc_info:
        await _client(lambda request: httpx.Response(413, text="too large")).send(MESSAGE)

    assert exc_info.value.status_code == 413
    assert exc_info.value.reason == "SendGrid rejected the message (HTTP 413)"


async def test_network_failure_is_502():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EmailDeliveryException) as exc_info:
        await _client(handler).send(MESSAGE)

    assert exc_info.value.status_code == 502
