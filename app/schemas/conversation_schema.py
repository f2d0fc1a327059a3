"""Conversation (chat session) API schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConversationSummary(BaseModel):
    """Single conversation entry in the list response."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    title: str | None = None
    archived: bool = False
    last_message_preview: str | None = None
    created_at: datetime
    updated_at: datetime


class CreateConversationRequest(BaseModel):
    """Request to open a new conversation."""

    title: str | None = Field(default=None, max_length=255)


class UpdateConversationRequest(BaseModel):
    """Rename and/or archive a conversation."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    archived: bool | None = None

    @model_validator(mode="after")
    def require_change(self) -> "UpdateConversationRequest":
        if self.title is None and self.archived is None:
            raise ValueError("Provide title and/or archived")
        return self


class AppendMessageRequest(BaseModel):
    """Request to store one message in a conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1, max_length=32000)


class MessageResponse(BaseModel):
    """Single message within a conversation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    session_id: int
    role: str
    content: str
    created_at: datetime


class ConversationMessagesResponse(BaseModel):
    """All messages for a conversation."""

    model_config = ConfigDict(frozen=True)

    session_id: int
    messages: list[MessageResponse]


class ConversationListResponse(BaseModel):
    """Paginated conversation list with cursor metadata."""

    model_config = ConfigDict(frozen=True)

    conversations: list[ConversationSummary]
    next_cursor: str | None = None
    has_next: bool = False
    history_enabled: bool = True


class DeletedResponse(BaseModel):
    """Number of sessions removed by a delete, clear or sweep."""

    model_config = ConfigDict(frozen=True)

    deleted_sessions: int
