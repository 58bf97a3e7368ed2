"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded contexts
(tickets, assistant, escalation).

Architecture Pattern: Modular Monolith
- Each module is a bounded context with its own routes
- Shared kernel contains only generic infrastructure (logging, middleware)

DO NOT add ticket, chat or escalation logic to the shared kernel.
"""

__version__ = "1.0.0"
