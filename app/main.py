"""FastAPI application entry point."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1.chat_router import router as chat_router
from app.api.v1.conversation_router import router as conversation_router
from app.api.v1.settings_router import router as settings_router
from app.api.v1.speech_router import router as speech_router
from app.api.v1.stats_router import router as stats_router
from app.core.config import settings
from app.core.database import Base, engine
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    error_body,
    validation_exception_handler,
)
from app.core.middleware import AuthMiddleware
from app.core.rate_limit import limiter
from app.core.redis import close_redis, init_redis
from app.dependencies import get_stats_cache
from app.models.chat_message import ChatMessage  # noqa: F401
from app.models.chat_session import ChatSession  # noqa: F401
from app.models.user_settings import UserSettings  # noqa: F401
from app.schemas.response_schema import ApiResponse, success_response
from app.services.retention_task import run_periodic_sweep

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        llm_provider=settings.llm.provider,
    )
    await init_redis()
    if settings.app.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    sweep_task: asyncio.Task[None] | None = None
    if settings.retention.periodic_sweep_enabled:
        sweep_task = asyncio.create_task(
            run_periodic_sweep(
                settings.retention.sweep_interval_seconds, get_stats_cache()
            )
        )
        logger.info(
            "Periodic retention sweep scheduled",
            interval_seconds=settings.retention.sweep_interval_seconds,
        )
    yield
    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    await close_redis()
    await engine.dispose()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="Voice chat backend with per-user chat history retention",
    version=settings.app.version,
    lifespan=lifespan,
    debug=settings.app.debug,
)

app.state.limiter = limiter


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content=error_body("Rate limit exceeded", "RATE_LIMIT_EXCEEDED"),
    )


# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(AuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.app.is_development else settings.server.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(chat_router)
app.include_router(conversation_router)
app.include_router(settings_router)
app.include_router(stats_router)
app.include_router(speech_router)
