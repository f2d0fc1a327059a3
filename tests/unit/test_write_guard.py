"""Unit tests for WriteGuard."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import fakeredis.aioredis
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    HistoryDisabledError,
    InputValidationError,
    SessionNotFoundError,
)
from app.models.chat_message import ChatMessage
from app.models.chat_session import ChatSession
from app.repositories.chat_repo import ChatRepository
from app.schemas.settings_schema import SettingsUpdate
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsCache
from app.services.write_guard import WriteGuard


async def _count(db_session: AsyncSession, model: type) -> int:
    return int(await db_session.scalar(select(func.count()).select_from(model)))


class TestHistoryDisabled:
    """Writes are refused while save_chat_history is off."""

    @pytest.mark.asyncio
    async def test_create_session_denied(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        db_session: AsyncSession,
    ) -> None:
        await settings_service.update(1, SettingsUpdate(save_chat_history=False))

        with pytest.raises(HistoryDisabledError) as exc_info:
            await write_guard.create_session(1, title="nope")

        assert exc_info.value.code == "HISTORY_DISABLED"
        assert await _count(db_session, ChatSession) == 0

    @pytest.mark.asyncio
    async def test_append_denied_and_existing_data_kept(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
    ) -> None:
        s1 = await write_guard.create_session(1, title="S1")
        await write_guard.append_message(1, s1.id, "user", "M1")
        listed = await chat_repo.find_sessions_by_user(1, limit=10)
        assert len(listed) == 1

        await settings_service.update(1, SettingsUpdate(save_chat_history=False))
        with pytest.raises(HistoryDisabledError):
            await write_guard.append_message(1, s1.id, "user", "M2")

        messages = await chat_repo.find_messages_by_session_id(s1.id)
        assert [m.content for m in messages] == ["M1"]
        assert await chat_repo.find_session(1, s1.id) is not None

    @pytest.mark.asyncio
    async def test_policy_checked_before_ownership(
        self, write_guard: WriteGuard, settings_service: SettingsService
    ) -> None:
        await settings_service.update(1, SettingsUpdate(save_chat_history=False))
        with pytest.raises(HistoryDisabledError):
            await write_guard.append_message(1, 9999, "user", "hello")

    @pytest.mark.asyncio
    async def test_re_enabling_allows_writes_again(
        self, write_guard: WriteGuard, settings_service: SettingsService
    ) -> None:
        await settings_service.update(1, SettingsUpdate(save_chat_history=False))
        with pytest.raises(HistoryDisabledError):
            await write_guard.create_session(1)

        await settings_service.update(1, SettingsUpdate(save_chat_history=True))
        session = await write_guard.create_session(1)
        assert session.id is not None


class TestAppendMessage:
    @pytest.mark.asyncio
    async def test_append_to_other_users_session_is_not_found(
        self, write_guard: WriteGuard, db_session: AsyncSession
    ) -> None:
        session = await write_guard.create_session(1)

        with pytest.raises(SessionNotFoundError) as exc_info:
            await write_guard.append_message(2, session.id, "user", "intrusion")

        assert exc_info.value.status_code == 404
        assert await _count(db_session, ChatMessage) == 0

    @pytest.mark.asyncio
    async def test_invalid_role_rejected(self, write_guard: WriteGuard) -> None:
        session = await write_guard.create_session(1)
        with pytest.raises(InputValidationError):
            await write_guard.append_message(1, session.id, "system", "x")

    @pytest.mark.asyncio
    async def test_append_refreshes_updated_at(
        self,
        write_guard: WriteGuard,
        chat_repo: ChatRepository,
        db_session: AsyncSession,
    ) -> None:
        old = datetime.now(UTC) - timedelta(hours=5)
        session = await chat_repo.create_session(user_id=1, created_at=old)
        await chat_repo.commit()

        await write_guard.append_message(1, session.id, "user", "hi")

        await db_session.refresh(session)
        assert session.updated_at.replace(tzinfo=UTC) > old


class TestOpportunisticSweep:
    """The write path sweeps the same user's expired sessions."""

    @pytest.mark.asyncio
    async def test_write_sweeps_expired_sessions(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
    ) -> None:
        await settings_service.update(
            1, SettingsUpdate(auto_delete_history=True, auto_delete_days=7)
        )
        stale = await chat_repo.create_session(
            user_id=1, created_at=datetime.now(UTC) - timedelta(days=10)
        )
        await chat_repo.commit()

        fresh = await write_guard.create_session(1, title="fresh")

        assert await chat_repo.find_session(1, stale.id) is None
        assert await chat_repo.find_session(1, fresh.id) is not None

    @pytest.mark.asyncio
    async def test_append_to_expired_session_is_not_found(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
        db_session: AsyncSession,
    ) -> None:
        await settings_service.update(
            1, SettingsUpdate(auto_delete_history=True, auto_delete_days=7)
        )
        stale = await chat_repo.create_session(
            user_id=1, created_at=datetime.now(UTC) - timedelta(days=10)
        )
        await chat_repo.commit()

        with pytest.raises(SessionNotFoundError):
            await write_guard.append_message(1, stale.id, "user", "too late")

        assert await chat_repo.find_session(1, stale.id) is None
        assert await _count(db_session, ChatMessage) == 0

    @pytest.mark.asyncio
    async def test_append_to_session_within_window_is_kept(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
    ) -> None:
        await settings_service.update(
            1, SettingsUpdate(auto_delete_history=True, auto_delete_days=7)
        )
        recent = await chat_repo.create_session(
            user_id=1, created_at=datetime.now(UTC) - timedelta(days=3)
        )
        await chat_repo.commit()

        message = await write_guard.append_message(1, recent.id, "user", "on time")

        stored = await chat_repo.find_messages_by_session_id(recent.id)
        assert [m.id for m in stored] == [message.id]

    @pytest.mark.asyncio
    async def test_other_users_are_not_swept(
        self,
        write_guard: WriteGuard,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
    ) -> None:
        await settings_service.update(
            2, SettingsUpdate(auto_delete_history=True, auto_delete_days=1)
        )
        other = await chat_repo.create_session(
            user_id=2, created_at=datetime.now(UTC) - timedelta(days=30)
        )
        await chat_repo.commit()

        await write_guard.create_session(1)

        assert await chat_repo.find_session(2, other.id) is not None

    @pytest.mark.asyncio
    async def test_sweep_failure_does_not_undo_append(
        self,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
        stats_cache: StatsCache,
    ) -> None:
        failing_sweeper = AsyncMock(spec=RetentionSweeper)
        failing_sweeper.sweep.side_effect = RuntimeError("db hiccup")
        guard = WriteGuard(settings_service, chat_repo, failing_sweeper, stats_cache)

        session = await guard.create_session(1)
        message = await guard.append_message(1, session.id, "user", "still here")

        assert message.id is not None
        stored = await chat_repo.find_messages_by_session_id(session.id)
        assert [m.content for m in stored] == ["still here"]
        # create sweeps once; append sweeps before and after the write
        assert failing_sweeper.sweep.await_count == 3

    @pytest.mark.asyncio
    async def test_write_invalidates_stats_cache(
        self,
        write_guard: WriteGuard,
        fake_redis: fakeredis.aioredis.FakeRedis,
    ) -> None:
        key = settings.redis.key("stats", 1)
        await fake_redis.set(key, "{}")

        await write_guard.create_session(1)

        assert await fake_redis.get(key) is None
