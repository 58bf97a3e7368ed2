"""
Escalation Module
=================

Bounded Context for handing conversations to staff.

Responsibilities:
- Email the support inbox a transcript when a client asks for a human
- Flag urgent escalations
- Forward end-of-chat reviews
"""

__version__ = "1.0.0"
