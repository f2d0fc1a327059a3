"""Chat request and response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Client-held conversation turn, used as context when nothing is stored."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=32000)


class ChatRequest(BaseModel):
    """Chat API request schema."""

    message: str = Field(..., min_length=1, max_length=4000)
    session_id: int | None = None
    context: list[ChatMessage] = Field(default_factory=list, max_length=100)


class ChatResponse(BaseModel):
    """Chat API response schema.

    ``saved`` is False when the turn was answered but not stored, e.g. because
    the user disabled history saving.
    """

    message: str
    session_id: int | None = None
    saved: bool
    user_message_id: int | None = None
    assistant_message_id: int | None = None
    created_at: datetime
