"""User settings request/response schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Theme = Literal["light", "dark", "system"]


class SettingsResponse(BaseModel):
    """User settings representation."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    save_chat_history: bool
    auto_delete_history: bool
    auto_delete_days: int
    theme: str
    language: str
    notifications: bool
    updated_at: datetime


class SettingsUpdate(BaseModel):
    """Partial settings update. Omitted fields are left unchanged.

    ``auto_delete_days`` is range-checked by the settings service so that the
    rejection is reported the same way for HTTP and in-process callers.
    """

    save_chat_history: bool | None = None
    auto_delete_history: bool | None = None
    auto_delete_days: int | None = None
    theme: Theme | None = None
    language: str | None = Field(default=None, min_length=2, max_length=16)
    notifications: bool | None = None

    def changes(self) -> dict:
        """Fields explicitly set to a non-null value."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }
