"""User settings repository for database operations."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_settings import UserSettings


class SettingsRepository:
    """Encapsulates user settings queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_user_id(self, user_id: int) -> UserSettings | None:
        """Find the settings record of a user."""
        result = await self._session.execute(
            select(UserSettings).where(UserSettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(self, user_id: int) -> UserSettings:
        """Insert and commit a default settings record."""
        record = UserSettings(user_id=user_id)
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        await self._session.commit()
        return record

    async def rollback(self) -> None:
        """Discard the current unit of work."""
        await self._session.rollback()

    async def update(self, record: UserSettings, values: dict[str, Any]) -> UserSettings:
        """Apply already-validated field values to a settings record."""
        for field, value in values.items():
            setattr(record, field, value)
        await self._session.flush()
        await self._session.refresh(record)
        return record

    async def find_user_ids_with_auto_delete(self) -> list[int]:
        """List users whose policy enables age-based expiry."""
        result = await self._session.execute(
            select(UserSettings.user_id)
            .where(UserSettings.auto_delete_history.is_(True))
            .order_by(UserSettings.user_id.asc())
        )
        return list(result.scalars().all())
