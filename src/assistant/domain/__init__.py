"""
Assistant Domain Layer
======================

Contains the keyword table of canned answers used when the AI provider
is unavailable.
"""

from src.assistant.domain.entities import FallbackAnswer, FALLBACK_ANSWERS, find_fallback_answer

__all__ = ["FallbackAnswer", "FALLBACK_ANSWERS", "find_fallback_answer"]
