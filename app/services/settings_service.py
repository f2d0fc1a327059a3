"""Service for reading and updating per-user settings."""

import structlog
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import InputValidationError
from app.models.user_settings import UserSettings
from app.repositories.settings_repo import SettingsRepository
from app.schemas.settings_schema import SettingsUpdate

logger = structlog.get_logger()

MIN_AUTO_DELETE_DAYS = 1
MAX_AUTO_DELETE_DAYS = 365


def validate_auto_delete_days(days: int) -> None:
    """Reject (never clamp) an out-of-range expiry threshold."""
    if isinstance(days, bool) or not isinstance(days, int):
        raise InputValidationError("auto_delete_days must be an integer")
    if not MIN_AUTO_DELETE_DAYS <= days <= MAX_AUTO_DELETE_DAYS:
        raise InputValidationError(
            f"auto_delete_days must be between {MIN_AUTO_DELETE_DAYS} "
            f"and {MAX_AUTO_DELETE_DAYS}, got {days}"
        )


class SettingsService:
    """Owns the single settings record of each user."""

    def __init__(self, settings_repo: SettingsRepository) -> None:
        self._settings_repo = settings_repo

    async def get(self, user_id: int) -> UserSettings:
        """Return the user's settings, creating the default record if absent."""
        record = await self._settings_repo.find_by_user_id(user_id)
        if record is not None:
            return record
        try:
            record = await self._settings_repo.create(user_id)
        except IntegrityError:
            # Another request created it first.
            await self._settings_repo.rollback()
            record = await self._settings_repo.find_by_user_id(user_id)
            if record is None:
                raise
            return record
        logger.info("Default settings created", user_id=user_id)
        return record

    async def update(self, user_id: int, patch: SettingsUpdate) -> UserSettings:
        """Validate and apply a partial update."""
        changes = patch.changes()
        if "auto_delete_days" in changes:
            validate_auto_delete_days(changes["auto_delete_days"])

        record = await self.get(user_id)
        if not changes:
            return record
        record = await self._settings_repo.update(record, changes)
        logger.info("Settings updated", user_id=user_id, fields=sorted(changes))
        return record
