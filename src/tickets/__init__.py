"""
Tickets Module
==============

Bounded Context for support tickets and their AI triage conversation.

Responsibilities:
- Validate the contact form and open tickets
- Run the triage conversation against the configured AI provider
- Store every turn in arrival order per ticket
- Email staff the transcript once the assistant closes the conversation
"""

__version__ = "1.0.0"
