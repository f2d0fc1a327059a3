"""Retention policy evaluation.

Pure functions over a settings record: no I/O and no state, so every write
path and sweep can share one definition of "may persist" and "expired".
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol


class RetentionSettings(Protocol):
    """The settings fields that drive retention decisions."""

    save_chat_history: bool
    auto_delete_history: bool
    auto_delete_days: int


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def can_persist(settings: RetentionSettings) -> bool:
    """Return True if new sessions and messages may be stored."""
    return bool(settings.save_chat_history)


def retention_window(settings: RetentionSettings) -> timedelta | None:
    """Maximum age a record may reach, or None when auto-delete is off."""
    if not settings.auto_delete_history:
        return None
    return timedelta(days=settings.auto_delete_days)


def is_expired(
    settings: RetentionSettings,
    created_at: datetime,
    now: datetime | None = None,
) -> bool:
    """Return True if a record created at ``created_at`` must be deleted.

    A record exactly ``auto_delete_days`` old is kept; only strictly older
    records expire.
    """
    window = retention_window(settings)
    if window is None:
        return False
    current = _as_utc(now) if now is not None else datetime.now(UTC)
    return current - _as_utc(created_at) > window


def expiry_cutoff(
    settings: RetentionSettings, now: datetime | None = None
) -> datetime | None:
    """Creation instant before which records are expired."""
    window = retention_window(settings)
    if window is None:
        return None
    current = _as_utc(now) if now is not None else datetime.now(UTC)
    return current - window
