"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. Every exception carries the HTTP
status it maps to, so the API layer can render a single JSON envelope.
"""

from typing import Optional, Dict


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class DuplicateKeyException(RepositoryException):
    """A document with the same unique key already exists."""

    status_code = 409


class ValidationException(ApplicationException):
    """
    Exception for validation errors.

    ``errors`` maps request field names to human readable messages.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        errors: Optional[Dict[str, str]] = None,
        details: Optional[dict] = None
    ):
        self.errors = errors or {}
        super().__init__(message, details)


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    status_code = 502

    def __init__(
        self,
        service_name: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        self.reason = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(f"{service_name}: {message}", details)


class LLMFailureKind(str):
    """How an AI provider call failed."""
    INVALID_KEY = "invalid_key"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    UPSTREAM = "upstream"
    NOT_CONFIGURED = "not_configured"


class LLMException(ExternalServiceException):
    """Exception for LLM API failures."""

    def __init__(
        self,
        message: str,
        kind: str = LLMFailureKind.UPSTREAM,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.kind = kind
        super().__init__("LLM Service", message, status_code, details)


class AssistantUnavailableException(LLMException):
    """
    Raised by the chat relay when the provider failed.

    Carries a canned ``fallback_answer`` when the user's last message matched
    a known keyword, so the chat never dead-ends.
    """

    def __init__(self, cause: LLMException, fallback_answer: Optional[str] = None):
        self.fallback_answer = fallback_answer
        super().__init__(
            cause.reason,
            kind=cause.kind,
            status_code=cause.status_code,
            details=cause.details
        )

    @property
    def has_fallback(self) -> bool:
        return bool(self.fallback_answer)


class EmailDeliveryException(ExternalServiceException):
    """Exception for transactional email failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        super().__init__("Email Service", message, status_code, details)
