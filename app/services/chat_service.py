"""Chat turn orchestration: guarded persistence around reply generation."""

from collections.abc import Sequence

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.core.database import utc_now
from app.core.exceptions import HistoryDisabledError, SessionNotFoundError
from app.models.chat_message import ChatMessage
from app.repositories.chat_repo import ChatRepository
from app.schemas.chat_schema import ChatRequest, ChatResponse
from app.services.reply_service import ContextMessage, ReplyService
from app.services.write_guard import WriteGuard

logger = structlog.get_logger()

INITIAL_TITLE_LENGTH = 50


def initial_title(message: str) -> str:
    """Placeholder title until the generated one arrives."""
    first_line = message.strip().splitlines()[0] if message.strip() else ""
    if len(first_line) <= INITIAL_TITLE_LENGTH:
        return first_line
    return first_line[: INITIAL_TITLE_LENGTH - 1].rstrip() + "…"


class ChatService:
    """Handles one chat turn for the current user.

    The user's message goes through the write guard before the reply is
    generated, so a provider failure never affects whether it was stored. A
    refused or failed write only drops the storage side effect; the reply is
    still returned with ``saved`` False.
    """

    def __init__(
        self,
        reply_service: ReplyService,
        write_guard: WriteGuard,
        chat_repo: ChatRepository,
        user_id: int,
        max_context_messages: int = 20,
    ) -> None:
        self._reply_service = reply_service
        self._write_guard = write_guard
        self._chat_repo = chat_repo
        self._user_id = user_id
        self._max_context_messages = max_context_messages

    async def chat(self, request: ChatRequest) -> tuple[ChatResponse, bool]:
        """Process a chat turn.

        Returns:
            Tuple of (ChatResponse, is_new_session).
        """
        context = await self._load_context(request)

        session_id = request.session_id
        is_new = False
        user_message: ChatMessage | None = None
        try:
            if session_id is None:
                session = await self._write_guard.create_session(
                    self._user_id, title=initial_title(request.message)
                )
                session_id = session.id
                is_new = True
            user_message = await self._write_guard.append_message(
                self._user_id, session_id, "user", request.message
            )
        except HistoryDisabledError:
            logger.info(
                "Chat turn answered without persistence",
                user_id=self._user_id,
                session_id=session_id,
            )
        except SessionNotFoundError:
            # Deleted or swept after the context was loaded.
            logger.warning(
                "Chat session vanished before the turn was stored",
                user_id=self._user_id,
                session_id=session_id,
            )
            session_id = None
        except SQLAlchemyError:
            await self._chat_repo.rollback()
            logger.exception(
                "Storing the user message failed",
                user_id=self._user_id,
                session_id=session_id,
            )

        reply = await self._reply_service.generate(request.message, context)

        assistant_message: ChatMessage | None = None
        if user_message is not None and session_id is not None:
            try:
                assistant_message = await self._write_guard.append_message(
                    self._user_id, session_id, "assistant", reply
                )
            except (HistoryDisabledError, SessionNotFoundError) as exc:
                logger.warning(
                    "Reply not persisted",
                    user_id=self._user_id,
                    session_id=session_id,
                    reason=type(exc).__name__,
                )
                if isinstance(exc, SessionNotFoundError):
                    # The stored user message went with the session.
                    session_id = None
                    user_message = None
            except SQLAlchemyError:
                await self._chat_repo.rollback()
                logger.exception(
                    "Storing the reply failed",
                    user_id=self._user_id,
                    session_id=session_id,
                )

        response = ChatResponse(
            message=reply,
            session_id=session_id,
            saved=assistant_message is not None,
            user_message_id=user_message.id if user_message else None,
            assistant_message_id=assistant_message.id if assistant_message else None,
            created_at=utc_now(),
        )
        return response, is_new and user_message is not None

    async def _load_context(self, request: ChatRequest) -> Sequence[ContextMessage]:
        """Stored turns of an existing session, otherwise the client's context."""
        limit = self._max_context_messages
        if request.session_id is None:
            return request.context[-limit:] if limit else []

        session = await self._chat_repo.find_session(self._user_id, request.session_id)
        if session is None:
            raise SessionNotFoundError()
        return await self._chat_repo.find_messages_by_session_id(session.id, limit=limit)
