"""Statistics response schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SessionStats(BaseModel):
    """Summary of a user's currently stored history."""

    model_config = ConfigDict(frozen=True)

    session_count: int = 0
    archived_count: int = 0
    message_count: int = 0
    estimated_bytes: int = Field(
        default=0,
        description="Approximate size: sum of message content lengths",
    )


class StatsResponse(BaseModel):
    """Statistics together with the retention policy that shaped them."""

    model_config = ConfigDict(frozen=True)

    stats: SessionStats
    save_chat_history: bool
    auto_delete_days: int | None = Field(
        default=None, description="Active retention window, null when auto-delete is off"
    )
    swept_sessions: int = 0
