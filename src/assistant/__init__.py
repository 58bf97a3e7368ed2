"""
Assistant Module
================

Bounded Context for the live support chat.

Responsibilities:
- Relay the conversation to Gemini as a pass-through event stream
- Relay the conversation to OpenAI and return the full reply
- Answer from a keyword table when the provider is unavailable
"""

__version__ = "1.0.0"
