"""
Assistant Domain Entities
=========================

Static answers served when the AI provider is unavailable.

The table is matched against the user's last message by case-insensitive
substring; the first entry with a matching keyword wins, so more specific
topics come first.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class FallbackAnswer:
    """A canned answer and the keywords that select it."""
    topic: str
    keywords: Tuple[str, ...]
    answer: str

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(keyword in lowered for keyword in self.keywords)


FALLBACK_ANSWERS: Tuple[FallbackAnswer, ...] = (
    FallbackAnswer(
        topic="password",
        keywords=("password", "locked out", "log in", "login", "sign in", "2fa"),
        answer=(
            "For login or password problems, use the 'Forgot password' link on the sign-in page "
            "and check your spam folder for the reset email. If you are still locked out, "
            "press 'Escalate to human' and our team will reset access for you."
        ),
    ),
    FallbackAnswer(
        topic="email",
        keywords=("email", "e-mail", "mailbox", "outlook", "inbox", "imap", "smtp"),
        answer=(
            "For email issues, first confirm you can sign in to webmail. If webmail works, "
            "remove and re-add the account on your device using the server settings we sent "
            "at setup. Let us know the exact error message if it persists."
        ),
    ),
    FallbackAnswer(
        topic="website",
        keywords=("website", "web site", "wordpress", "domain", "hosting", "web page"),
        answer=(
            "For website changes, please describe the page address and exactly what should "
            "change (text, images or layout). If the site is down, try clearing your browser "
            "cache first; our web team will pick up your request during business hours."
        ),
    ),
    FallbackAnswer(
        topic="social",
        keywords=("social media", "facebook", "instagram", "linkedin", "tiktok", "twitter"),
        answer=(
            "For social media requests, send the platform, the post content and your preferred "
            "publishing date. Our team schedules posts within two business days."
        ),
    ),
    FallbackAnswer(
        topic="billing",
        keywords=("invoice", "billing", "payment", "quote", "statement", "refund"),
        answer=(
            "For invoices and account questions, include your invoice or account number. "
            "Our administration team answers billing requests within one business day."
        ),
    ),
)


def find_fallback_answer(
    text: Optional[str],
    answers: Sequence[FallbackAnswer] = FALLBACK_ANSWERS
) -> Optional[FallbackAnswer]:
    """First canned answer whose keywords occur in ``text``, or None."""
    if not text:
        return None
    for answer in answers:
        if answer.matches(text):
            return answer
    return None
