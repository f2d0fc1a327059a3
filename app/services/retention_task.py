"""Timer-driven retention sweep, independent of request traffic."""

import asyncio

import structlog

from app.core.database import async_session_factory
from app.repositories.chat_repo import ChatRepository
from app.repositories.settings_repo import SettingsRepository
from app.services.retention_sweeper import RetentionSweeper
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsCache

logger = structlog.get_logger()


async def sweep_all_users(stats_cache: StatsCache | None = None) -> int:
    """Sweep every user with auto-delete enabled, one DB session per user.

    A failure for one user is logged and does not stop the others.
    """
    async with async_session_factory() as session:
        user_ids = await SettingsRepository(session).find_user_ids_with_auto_delete()

    total = 0
    for user_id in user_ids:
        try:
            async with async_session_factory() as session:
                sweeper = RetentionSweeper(
                    SettingsService(SettingsRepository(session)),
                    ChatRepository(session),
                    stats_cache,
                )
                total += await sweeper.sweep(user_id)
        except Exception:
            logger.exception("Periodic retention sweep failed", user_id=user_id)

    logger.info("Periodic retention sweep finished", users=len(user_ids), deleted=total)
    return total


async def run_periodic_sweep(
    interval_seconds: int, stats_cache: StatsCache | None = None
) -> None:
    """Sweep all users forever, every ``interval_seconds``. Cancel to stop."""
    while True:
        try:
            await sweep_all_users(stats_cache)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Periodic retention sweep pass failed")
        await asyncio.sleep(interval_seconds)
