"""Write-path guard for chat history persistence."""

import structlog

from app.core.exceptions import (
    HistoryDisabledError,
    InputValidationError,
    SessionNotFoundError,
)
from app.models.chat_message import ChatMessage
from app.models.chat_session import ChatSession
from app.repositories.chat_repo import ChatRepository
from app.services.retention_policy import can_persist
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsCache

logger = structlog.get_logger()

MESSAGE_ROLES = ("user", "assistant")


class WriteGuard:
    """Gates every session/message write on the user's current settings.

    The settings are re-read on each call, so a user who turns history saving
    off is refused starting with the very next write. After a successful write
    the same user's expired sessions are swept before returning. Appends also
    sweep before looking up the target session, so a message is never stored
    into a session that has already expired.
    """

    def __init__(
        self,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
        sweeper: RetentionSweeper,
        stats_cache: StatsCache | None = None,
    ) -> None:
        self._settings_service = settings_service
        self._chat_repo = chat_repo
        self._sweeper = sweeper
        self._stats_cache = stats_cache

    async def create_session(self, user_id: int, title: str | None = None) -> ChatSession:
        """Create a session if the user's policy allows persisting history."""
        await self._ensure_allowed(user_id, "create_session")
        session = await self._chat_repo.create_session(user_id=user_id, title=title)
        await self._chat_repo.commit()
        logger.info("Chat session created", user_id=user_id, session_id=session.id)
        await self._after_write(user_id)
        return session

    async def append_message(
        self,
        user_id: int,
        session_id: int,
        role: str,
        content: str,
    ) -> ChatMessage:
        """Append a message to one of the user's sessions if policy allows."""
        if role not in MESSAGE_ROLES:
            raise InputValidationError(
                f"role must be one of {', '.join(MESSAGE_ROLES)}, got {role!r}"
            )
        await self._ensure_allowed(user_id, "append_message")
        # Expired sessions are gone before the lookup, so they read as not found.
        await self._sweep(user_id)

        session = await self._chat_repo.find_session(user_id, session_id)
        if session is None:
            raise SessionNotFoundError()

        message = await self._chat_repo.create_message(
            session_id=session.id, role=role, content=content
        )
        await self._chat_repo.touch_session(session.id)
        await self._chat_repo.commit()
        await self._after_write(user_id)
        return message

    async def _ensure_allowed(self, user_id: int, operation: str) -> None:
        settings = await self._settings_service.get(user_id)
        if not can_persist(settings):
            logger.info("History write denied", user_id=user_id, operation=operation)
            raise HistoryDisabledError()

    async def _sweep(self, user_id: int) -> None:
        """Opportunistic cleanup. A failure never blocks or undoes a write."""
        try:
            await self._sweeper.sweep(user_id)
        except Exception:
            logger.exception("Opportunistic retention sweep failed", user_id=user_id)

    async def _after_write(self, user_id: int) -> None:
        await self._sweep(user_id)
        if self._stats_cache is not None:
            await self._stats_cache.invalidate(user_id)
