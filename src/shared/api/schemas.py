"""
Shared API Schemas
==================

Wire shapes the browser sends to more than one module. JSON keys are
camelCase (``userInfo``); Python attributes stay snake_case.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatTurn(CamelModel):
    """One conversation turn: ``user`` or ``ai`` (``assistant`` accepted)."""
    role: Literal["user", "ai", "assistant"]
    content: str = Field(..., max_length=10000)

    @property
    def is_user(self) -> bool:
        return self.role == "user"


class UserInfo(CamelModel):
    """Contact details captured by the support form."""
    name: str = ""
    email: str = ""
    phone: str = ""
    category: str = ""
    message: str = ""
