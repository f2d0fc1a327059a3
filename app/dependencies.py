"""Global dependencies for the application."""

from functools import lru_cache

from fastapi import Depends, Request
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import AuthenticationError
from app.core.redis import get_redis
from app.repositories.chat_repo import ChatRepository
from app.repositories.settings_repo import SettingsRepository
from app.services.chat_service import ChatService
from app.services.conversation_service import ConversationService
from app.services.reply_service import ReplyService
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.speech_service import SpeechService
from app.services.stats_service import StatsCache, StatsService
from app.services.write_guard import WriteGuard

# --- External clients ---


@lru_cache
def get_llm() -> BaseChatModel:
    """Get the LLM instance based on the configured provider."""
    llm_config = settings.llm
    match llm_config.provider:
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                temperature=llm_config.temperature,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                temperature=llm_config.temperature,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


@lru_cache
def get_openai_client() -> AsyncOpenAI:
    """Get the OpenAI client used for speech rendering."""
    return AsyncOpenAI(api_key=settings.speech.api_key.get_secret_value())


# --- Auth ---


class CurrentUser(BaseModel):
    """Authenticated user extracted from request state."""

    model_config = ConfigDict(frozen=True)

    id: int


def get_current_user(request: Request) -> CurrentUser:
    """Extract the authenticated user from middleware-populated state."""
    state = getattr(request, "state", None)
    user_id = getattr(state, "user_id", None) if state else None
    if user_id is None:
        raise AuthenticationError(message="Not authenticated")
    return CurrentUser(id=user_id)


# --- Repositories and cache ---


def get_chat_repository(
    session: AsyncSession = Depends(get_async_session),
) -> ChatRepository:
    """Get ChatRepository bound to the current session."""
    return ChatRepository(session)


def get_settings_repository(
    session: AsyncSession = Depends(get_async_session),
) -> SettingsRepository:
    """Get SettingsRepository bound to the current session."""
    return SettingsRepository(session)


def get_stats_cache() -> StatsCache:
    """Get the statistics cache backed by the active Redis client."""
    return StatsCache(
        get_redis(),
        settings.redis,
        settings.retention.stats_cache_ttl_seconds,
    )


# --- Retention engine ---


def get_settings_service(
    settings_repo: SettingsRepository = Depends(get_settings_repository),
) -> SettingsService:
    """Get SettingsService for the current request."""
    return SettingsService(settings_repo)


def get_retention_sweeper(
    settings_service: SettingsService = Depends(get_settings_service),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    stats_cache: StatsCache = Depends(get_stats_cache),
) -> RetentionSweeper:
    """Get RetentionSweeper sharing the request's DB session."""
    return RetentionSweeper(settings_service, chat_repo, stats_cache)


def get_write_guard(
    settings_service: SettingsService = Depends(get_settings_service),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    sweeper: RetentionSweeper = Depends(get_retention_sweeper),
    stats_cache: StatsCache = Depends(get_stats_cache),
) -> WriteGuard:
    """Get WriteGuard wrapping every history write of the request."""
    return WriteGuard(settings_service, chat_repo, sweeper, stats_cache)


# --- Services ---


def get_conversation_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    settings_service: SettingsService = Depends(get_settings_service),
    sweeper: RetentionSweeper = Depends(get_retention_sweeper),
    stats_cache: StatsCache = Depends(get_stats_cache),
    current_user: CurrentUser = Depends(get_current_user),
) -> ConversationService:
    """Get ConversationService for the authenticated user."""
    return ConversationService(
        chat_repo=chat_repo,
        settings_service=settings_service,
        sweeper=sweeper,
        user_id=current_user.id,
        stats_cache=stats_cache,
    )


def get_stats_service(
    chat_repo: ChatRepository = Depends(get_chat_repository),
    stats_cache: StatsCache = Depends(get_stats_cache),
) -> StatsService:
    """Get StatsService backed by the statistics cache."""
    return StatsService(chat_repo, stats_cache)


def get_reply_service(llm: BaseChatModel = Depends(get_llm)) -> ReplyService:
    """Get ReplyService over the configured LLM."""
    return ReplyService(llm)


def get_chat_service(
    reply_service: ReplyService = Depends(get_reply_service),
    write_guard: WriteGuard = Depends(get_write_guard),
    chat_repo: ChatRepository = Depends(get_chat_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> ChatService:
    """Get ChatService with guarded persistence and user context."""
    return ChatService(
        reply_service=reply_service,
        write_guard=write_guard,
        chat_repo=chat_repo,
        user_id=current_user.id,
        max_context_messages=settings.llm.max_context_messages,
    )


def get_speech_service() -> SpeechService:
    """Get SpeechService over the OpenAI audio API."""
    return SpeechService(get_openai_client(), settings.speech)
