"""Chat repository for session and message database operations.

Has no retention knowledge. Every session lookup is scoped by owner; a session
owned by someone else behaves exactly like a missing one.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utc_now
from app.models.chat_message import ChatMessage
from app.models.chat_session import ChatSession


@dataclass(frozen=True)
class SessionWithPreview:
    """Immutable result object for session list queries."""

    id: int
    title: str | None
    archived: bool
    last_message_preview: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SessionRef:
    """Minimal session row used by the retention sweep."""

    id: int
    created_at: datetime


@dataclass(frozen=True)
class CorpusCounts:
    """Aggregate counts over one user's stored history."""

    session_count: int
    archived_count: int
    message_count: int
    content_length: int


class ChatRepository:
    """Encapsulates chat session and message database queries."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def commit(self) -> None:
        """Commit the current unit of work."""
        await self._session.commit()

    async def rollback(self) -> None:
        """Discard the current unit of work."""
        await self._session.rollback()

    async def create_session(
        self,
        user_id: int,
        title: str | None = None,
        created_at: datetime | None = None,
    ) -> ChatSession:
        """Create a new chat session."""
        session = ChatSession(user_id=user_id, title=title)
        if created_at is not None:
            session.created_at = created_at
            session.updated_at = created_at
        self._session.add(session)
        await self._session.flush()
        await self._session.refresh(session)
        return session

    async def find_session(self, user_id: int, session_id: int) -> ChatSession | None:
        """Find a session by id, only if it belongs to ``user_id``."""
        result = await self._session.execute(
            select(ChatSession).where(
                and_(ChatSession.id == session_id, ChatSession.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()

    async def find_sessions_by_user(
        self,
        user_id: int,
        limit: int,
        archived: bool | None = False,
        cursor_updated_at: datetime | None = None,
        cursor_id: int | None = None,
    ) -> list[SessionWithPreview]:
        """Fetch user sessions with keyset pagination (updated_at DESC, id DESC).

        ``archived=None`` returns both archived and active sessions. Returns
        ``limit`` rows; the caller should request ``limit + 1`` to detect
        whether a next page exists.
        """
        # Correlated scalar subquery: latest user message content per session
        preview_subq = (
            select(ChatMessage.content)
            .where(
                and_(
                    ChatMessage.session_id == ChatSession.id,
                    ChatMessage.role == "user",
                )
            )
            .order_by(ChatMessage.id.desc())
            .limit(1)
            .correlate(ChatSession)
            .scalar_subquery()
        )

        stmt = select(
            ChatSession.id,
            ChatSession.title,
            ChatSession.archived,
            preview_subq.label("last_message_preview"),
            ChatSession.created_at,
            ChatSession.updated_at,
        ).where(ChatSession.user_id == user_id)

        if archived is not None:
            stmt = stmt.where(ChatSession.archived == archived)

        if cursor_updated_at is not None and cursor_id is not None:
            stmt = stmt.where(
                or_(
                    ChatSession.updated_at < cursor_updated_at,
                    and_(
                        ChatSession.updated_at == cursor_updated_at,
                        ChatSession.id < cursor_id,
                    ),
                )
            )

        stmt = stmt.order_by(
            ChatSession.updated_at.desc(),
            ChatSession.id.desc(),
        ).limit(limit)

        result = await self._session.execute(stmt)
        return [
            SessionWithPreview(
                id=row.id,
                title=row.title,
                archived=row.archived,
                last_message_preview=row.last_message_preview,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in result
        ]

    async def list_session_refs(self, user_id: int) -> list[SessionRef]:
        """List id and creation time of every session the user owns, archived included."""
        result = await self._session.execute(
            select(ChatSession.id, ChatSession.created_at)
            .where(ChatSession.user_id == user_id)
            .order_by(ChatSession.created_at.asc(), ChatSession.id.asc())
        )
        return [SessionRef(id=row.id, created_at=row.created_at) for row in result]

    async def update_session(
        self,
        user_id: int,
        session_id: int,
        title: str | None = None,
        archived: bool | None = None,
    ) -> ChatSession | None:
        """Apply a title/archived patch. Returns None if the user does not own it."""
        session = await self.find_session(user_id, session_id)
        if session is None:
            return None
        if title is not None:
            session.title = title
        if archived is not None:
            session.archived = archived
        await self._session.flush()
        await self._session.refresh(session)
        return session

    async def update_session_title(self, session_id: int, title: str) -> bool:
        """Set the title of a session by id. Returns False if it no longer exists."""
        result = await self._session.execute(
            update(ChatSession).where(ChatSession.id == session_id).values(title=title)
        )
        return bool(result.rowcount)

    async def touch_session(self, session_id: int) -> None:
        """Refresh ``updated_at`` after a new message."""
        await self._session.execute(
            update(ChatSession)
            .where(ChatSession.id == session_id)
            .values(updated_at=utc_now())
        )

    async def delete_session(self, user_id: int, session_id: int) -> bool:
        """Delete a session and all of its messages.

        Returns False when nothing was deleted (absent, already deleted, or
        owned by someone else).
        """
        owned = await self._session.execute(
            select(ChatSession.id).where(
                and_(ChatSession.id == session_id, ChatSession.user_id == user_id)
            )
        )
        if owned.scalar_one_or_none() is None:
            return False
        await self._session.execute(
            delete(ChatMessage).where(ChatMessage.session_id == session_id)
        )
        result = await self._session.execute(
            delete(ChatSession).where(
                and_(ChatSession.id == session_id, ChatSession.user_id == user_id)
            )
        )
        return bool(result.rowcount)

    async def create_message(
        self,
        session_id: int,
        role: str,
        content: str,
    ) -> ChatMessage:
        """Create a single chat message."""
        message = ChatMessage(session_id=session_id, role=role, content=content)
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def find_messages_by_session_id(
        self, session_id: int, limit: int | None = None
    ) -> list[ChatMessage]:
        """Retrieve messages for a session in insertion order.

        With ``limit``, only the most recent ``limit`` messages are returned,
        still oldest first.
        """
        if limit is None:
            result = await self._session.execute(
                select(ChatMessage)
                .where(ChatMessage.session_id == session_id)
                .order_by(ChatMessage.id.asc())
            )
            return list(result.scalars().all())

        result = await self._session.execute(
            select(ChatMessage)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.id.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def count_corpus(self, user_id: int) -> CorpusCounts:
        """Count sessions, messages and content length for one user."""
        session_row = (
            await self._session.execute(
                select(
                    func.count(ChatSession.id),
                    func.coalesce(
                        func.sum(case((ChatSession.archived.is_(True), 1), else_=0)),
                        0,
                    ),
                ).where(ChatSession.user_id == user_id)
            )
        ).one()
        message_row = (
            await self._session.execute(
                select(
                    func.count(ChatMessage.id),
                    func.coalesce(func.sum(func.length(ChatMessage.content)), 0),
                )
                .join(ChatSession, ChatMessage.session_id == ChatSession.id)
                .where(ChatSession.user_id == user_id)
            )
        ).one()
        return CorpusCounts(
            session_count=int(session_row[0]),
            archived_count=int(session_row[1]),
            message_count=int(message_row[0]),
            content_length=int(message_row[1]),
        )
