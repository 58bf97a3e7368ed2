"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="support-desk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== MongoDB ==========
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017/support",
        description="MongoDB connection string"
    )
    mongodb_database: str = Field(
        default="support",
        description="Database used when the URI does not name one"
    )
    mongodb_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout in milliseconds",
        ge=100
    )
    tickets_collection: str = Field(default="tickets", description="Ticket documents")
    ticket_messages_collection: str = Field(
        default="ticket_messages",
        description="Per-ticket chat message documents"
    )
    ticket_id_length: int = Field(default=10, description="Generated ticket id length", ge=6, le=32)

    # ========== SendGrid Email ==========
    sendgrid_api_key: Optional[str] = Field(
        default=None,
        description="SendGrid API key with Mail Send permission"
    )
    sendgrid_api_url: str = Field(
        default="https://api.sendgrid.com/v3/mail/send",
        description="SendGrid v3 mail send endpoint"
    )
    email_from: str = Field(
        default="no-reply@yourdomain.com",
        description="Sender address for notification emails"
    )
    support_inbox_email: str = Field(
        default="support@yourdomain.com",
        description="Staff inbox receiving tickets, escalations and reviews"
    )
    email_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for SendGrid API calls",
        ge=0.1,
        le=60
    )

    # ========== OpenAI ==========
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-3.5-turbo", description="OpenAI chat model")
    openai_base_url: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints"
    )

    # ========== Gemini ==========
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    gemini_model: str = Field(default="gemini-2.5-pro", description="Gemini model")
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1",
        description="Gemini REST API base URL"
    )

    # ========== LLM Call Policy ==========
    llm_timeout_seconds: float = Field(
        default=30.0,
        description="Bounded wait for a single AI provider attempt",
        gt=0,
        le=300
    )
    llm_retry_on_reset: bool = Field(
        default=True,
        description="Re-attempt an AI call once after a connection reset"
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )

    # ========== Triage Conversation ==========
    triage_provider: Literal["openai", "gemini"] = Field(
        default="openai",
        description="Provider driving the ticket triage conversation"
    )
    triage_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    triage_max_tokens: int = Field(default=400, ge=1, le=8000)

    # ========== Chat Relay ==========
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    chat_max_tokens: int = Field(default=512, ge=1, le=8000)

    # ========== Frontend ==========
    static_dir: Path = Field(
        default=Path(__file__).resolve().parents[2] / "static",
        description="Directory holding the support frontend"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    TRIAGED = "triaged"


class MessageRole(str):
    """Roles used on the wire and in storage."""
    USER = "user"
    AI = "ai"                 # client-side name for assistant turns
    ASSISTANT = "assistant"   # stored name for assistant turns
    SYSTEM = "system"


class UrgencyLevel(str):
    """Escalation urgency flags."""
    URGENT = "urgent"
    NOT_URGENT = "not_urgent"


class LLMProvider(str):
    """Supported AI backends."""
    OPENAI = "openai"
    GEMINI = "gemini"


# ========== Lists for validation ==========

SUPPORT_CATEGORIES = [
    "Website changes & support",
    "Email issues & mailbox setup",
    "Social media requests",
    "Administrative requests (invoicing, accounts, etc.)",
]
