"""Unit tests for SettingsService."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InputValidationError
from app.models.user_settings import UserSettings
from app.schemas.settings_schema import SettingsUpdate
from app.services.settings_service import SettingsService, validate_auto_delete_days


class TestGet:
    """Tests for lazy creation of the settings record."""

    @pytest.mark.asyncio
    async def test_creates_defaults_on_first_access(
        self, settings_service: SettingsService
    ) -> None:
        record = await settings_service.get(1)

        assert record.user_id == 1
        assert record.save_chat_history is True
        assert record.auto_delete_history is False
        assert record.auto_delete_days == 30
        assert record.theme == "system"
        assert record.language == "en"
        assert record.notifications is True

    @pytest.mark.asyncio
    async def test_second_access_reuses_record(
        self, settings_service: SettingsService, db_session: AsyncSession
    ) -> None:
        await settings_service.get(1)
        await settings_service.get(1)

        count = await db_session.scalar(select(func.count(UserSettings.user_id)))
        assert count == 1

    @pytest.mark.asyncio
    async def test_records_are_per_user(self, settings_service: SettingsService) -> None:
        await settings_service.update(1, SettingsUpdate(save_chat_history=False))
        other = await settings_service.get(2)
        assert other.save_chat_history is True


class TestUpdate:
    """Tests for validated partial updates."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, 366, -5])
    async def test_rejects_out_of_range_days(
        self, settings_service: SettingsService, days: int
    ) -> None:
        with pytest.raises(InputValidationError) as exc_info:
            await settings_service.update(
                1, SettingsUpdate(auto_delete_history=True, auto_delete_days=days)
            )
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_rejection_leaves_record_untouched(
        self, settings_service: SettingsService
    ) -> None:
        with pytest.raises(InputValidationError):
            await settings_service.update(
                1, SettingsUpdate(auto_delete_history=True, auto_delete_days=366)
            )

        record = await settings_service.get(1)
        assert record.auto_delete_history is False
        assert record.auto_delete_days == 30

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [1, 365])
    async def test_accepts_boundary_days(
        self, settings_service: SettingsService, days: int
    ) -> None:
        record = await settings_service.update(
            1, SettingsUpdate(auto_delete_history=True, auto_delete_days=days)
        )
        assert record.auto_delete_history is True
        assert record.auto_delete_days == days

    @pytest.mark.asyncio
    async def test_days_validated_even_without_auto_delete(
        self, settings_service: SettingsService
    ) -> None:
        with pytest.raises(InputValidationError):
            await settings_service.update(1, SettingsUpdate(auto_delete_days=0))

    @pytest.mark.asyncio
    async def test_omitted_fields_unchanged(
        self, settings_service: SettingsService
    ) -> None:
        await settings_service.update(
            1, SettingsUpdate(auto_delete_history=True, auto_delete_days=7)
        )
        record = await settings_service.update(1, SettingsUpdate(theme="dark"))

        assert record.theme == "dark"
        assert record.auto_delete_history is True
        assert record.auto_delete_days == 7

    @pytest.mark.asyncio
    async def test_empty_patch_returns_current(
        self, settings_service: SettingsService
    ) -> None:
        record = await settings_service.update(1, SettingsUpdate())
        assert record.save_chat_history is True


class TestValidateAutoDeleteDays:
    def test_rejects_bool(self) -> None:
        with pytest.raises(InputValidationError):
            validate_auto_delete_days(True)  # type: ignore[arg-type]

    def test_accepts_mid_range(self) -> None:
        validate_auto_delete_days(90)
