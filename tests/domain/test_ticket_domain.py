"""Ticket domain rules: form validation, ids, closing-phrase detection, prompt."""

import pytest

from src.tickets.domain import (
    ConversationTurn,
    TriagePromptBuilder,
    generate_ticket_id,
    is_conversation_complete,
    validate_ticket_form,
)
from src.tickets.domain.entities import TICKET_ID_ALPHABET


def test_valid_form_has_no_errors():
    assert validate_ticket_form("Jane", "jane@example.com", "555", "Social media requests") == {}


@pytest.mark.parametrize("email", ["", "jane", "jane@", "jane@example", "ja ne@example.com", None, 7])
def test_invalid_emails_are_rejected(email):
    errors = validate_ticket_form("Jane", email, "555", "Social media requests")
    assert errors == {"email": "Valid email is required."}


def test_whitespace_only_fields_are_missing():
    errors = validate_ticket_form("   ", "jane@example.com", "\t", " ")
    assert set(errors) == {"name", "phone", "category"}


def test_ticket_ids_use_url_safe_alphabet():
    ticket_id = generate_ticket_id(10)
    assert len(ticket_id) == 10
    assert set(ticket_id) <= set(TICKET_ID_ALPHABET)
    assert len(set(TICKET_ID_ALPHABET)) == 64


@pytest.mark.parametrize("reply", [
    "Thank you, that's all I need for now. Our team will follow up soon.",
    "THANK YOU for the details!",
    "I have all the information I need.",
    "That’s all for now.",
    "No further questions.",
])
def test_closing_phrases_end_the_conversation(reply):
    assert is_conversation_complete(reply) is True


@pytest.mark.parametrize("reply", [
    "Which device are you using?",
    "Can you share a screenshot?",
    "",
])
def test_questions_do_not_end_the_conversation(reply):
    assert is_conversation_complete(reply) is False


def test_prompt_starts_with_system_instructions():
    messages = TriagePromptBuilder.build_messages([
        ConversationTurn("user", "Website is down"),
        ConversationTurn("ai", "Since when?"),
    ])

    assert messages[0]["role"] == "system"
    assert "Support-Triage Assistant" in messages[0]["content"]
    assert messages[1:] == [
        {"role": "user", "content": "Website is down"},
        {"role": "assistant", "content": "Since when?"},
    ]
