"""Per-user settings database model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, utc_now

DEFAULT_AUTO_DELETE_DAYS = 30


class UserSettings(Base):
    """Durable preference record, one per user, never deleted."""

    __tablename__ = "user_settings"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    save_chat_history: Mapped[bool] = mapped_column(Boolean, default=True)
    auto_delete_history: Mapped[bool] = mapped_column(Boolean, default=False)
    auto_delete_days: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_AUTO_DELETE_DAYS
    )
    theme: Mapped[str] = mapped_column(String(16), default="system")
    language: Mapped[str] = mapped_column(String(16), default="en")
    notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
    )
