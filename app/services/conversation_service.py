"""Service layer for reading and maintaining a user's conversations."""

import base64
import json
from datetime import UTC, datetime

import structlog

from app.core.exceptions import AppException, SessionNotFoundError
from app.repositories.chat_repo import ChatRepository
from app.schemas.conversation_schema import (
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationSummary,
    MessageResponse,
)
from app.services.retention_policy import can_persist
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsCache

logger = structlog.get_logger()


def encode_cursor(updated_at: datetime, session_id: int) -> str:
    """Encode pagination cursor as base64url JSON."""
    payload = {"u": updated_at.isoformat(), "i": session_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, int]:
    """Decode pagination cursor. Raises AppException on invalid input."""
    try:
        raw = base64.urlsafe_b64decode(cursor.encode())
        data = json.loads(raw)
        updated_at = datetime.fromisoformat(data["u"])
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)
        session_id = int(data["i"])
        return updated_at, session_id
    except Exception as exc:
        raise AppException(
            message=f"Invalid cursor: {exc}",
            code="INVALID_CURSOR",
            status_code=400,
        ) from exc


class ConversationService:
    """Read and maintenance operations on one user's conversations.

    Creating sessions and appending messages goes through WriteGuard instead.
    """

    def __init__(
        self,
        chat_repo: ChatRepository,
        settings_service: SettingsService,
        sweeper: RetentionSweeper,
        user_id: int,
        stats_cache: StatsCache | None = None,
    ) -> None:
        self._chat_repo = chat_repo
        self._settings_service = settings_service
        self._sweeper = sweeper
        self._user_id = user_id
        self._stats_cache = stats_cache

    async def list_conversations(
        self,
        limit: int = 20,
        cursor: str | None = None,
        archived: bool | None = False,
    ) -> ConversationListResponse:
        """Return a paginated list of the user's conversations.

        Archived conversations are hidden unless ``archived`` is True (archived
        only) or None (everything).
        """
        cursor_updated_at: datetime | None = None
        cursor_id: int | None = None

        if cursor is not None:
            cursor_updated_at, cursor_id = decode_cursor(cursor)

        settings = await self._settings_service.get(self._user_id)
        rows = await self._chat_repo.find_sessions_by_user(
            user_id=self._user_id,
            limit=limit + 1,
            archived=archived,
            cursor_updated_at=cursor_updated_at,
            cursor_id=cursor_id,
        )

        has_next = len(rows) > limit
        page_rows = rows[:limit]

        next_cursor: str | None = None
        if has_next and page_rows:
            last = page_rows[-1]
            next_cursor = encode_cursor(last.updated_at, last.id)

        return ConversationListResponse(
            conversations=[ConversationSummary.model_validate(r) for r in page_rows],
            next_cursor=next_cursor,
            has_next=has_next,
            history_enabled=can_persist(settings),
        )

    async def get_messages(self, session_id: int) -> ConversationMessagesResponse:
        """Retrieve all messages for a conversation owned by the current user."""
        session = await self._chat_repo.find_session(self._user_id, session_id)
        if session is None:
            raise SessionNotFoundError()
        messages = await self._chat_repo.find_messages_by_session_id(session.id)
        return ConversationMessagesResponse(
            session_id=session.id,
            messages=[MessageResponse.model_validate(msg) for msg in messages],
        )

    async def update(
        self,
        session_id: int,
        title: str | None = None,
        archived: bool | None = None,
    ) -> ConversationSummary:
        """Rename and/or (un)archive a conversation owned by the current user."""
        session = await self._chat_repo.update_session(
            self._user_id, session_id, title=title, archived=archived
        )
        if session is None:
            raise SessionNotFoundError()
        await self._chat_repo.commit()
        await self._invalidate_stats()
        return ConversationSummary.model_validate(session)

    async def delete(self, session_id: int) -> None:
        """Delete one conversation and all of its messages."""
        deleted = await self._chat_repo.delete_session(self._user_id, session_id)
        if not deleted:
            raise SessionNotFoundError()
        await self._chat_repo.commit()
        await self._invalidate_stats()
        logger.info("Chat session deleted", user_id=self._user_id, session_id=session_id)

    async def clear_history(self) -> int:
        """Delete every conversation of the user regardless of policy."""
        return await self._sweeper.sweep(self._user_id, force=True)

    async def sweep(self) -> int:
        """Run the retention sweep for the current user now."""
        return await self._sweeper.sweep(self._user_id)

    async def _invalidate_stats(self) -> None:
        if self._stats_cache is not None:
            await self._stats_cache.invalidate(self._user_id)
