"""Retention sweep: deletes sessions that outlived the user's policy."""

from datetime import datetime

import structlog

from app.core.database import utc_now
from app.repositories.chat_repo import ChatRepository
from app.services.retention_policy import is_expired
from app.services.settings_service import SettingsService
from app.services.stats_service import StatsCache

logger = structlog.get_logger()


class RetentionSweeper:
    """Enforces age-based expiry for one user at a time.

    Called from the write path after every guarded write, from the stats and
    clear-history endpoints, and from the periodic task. Each expired session is
    deleted and committed together with its messages, so an interrupted sweep
    keeps its progress and the next run picks up the rest.
    """

    def __init__(
        self,
        settings_service: SettingsService,
        chat_repo: ChatRepository,
        stats_cache: StatsCache | None = None,
    ) -> None:
        self._settings_service = settings_service
        self._chat_repo = chat_repo
        self._stats_cache = stats_cache

    async def sweep(
        self,
        user_id: int,
        force: bool = False,
        now: datetime | None = None,
    ) -> int:
        """Delete the user's expired sessions and return how many were removed.

        With ``force`` every session is deleted regardless of policy (clear
        all history).
        """
        settings = await self._settings_service.get(user_id)
        if not force and not settings.auto_delete_history:
            return 0

        current = now or utc_now()
        deleted = 0
        try:
            for ref in await self._chat_repo.list_session_refs(user_id):
                if not force and not is_expired(settings, ref.created_at, current):
                    continue
                if await self._chat_repo.delete_session(user_id, ref.id):
                    await self._chat_repo.commit()
                    deleted += 1
        except Exception:
            await self._chat_repo.rollback()
            raise
        finally:
            if deleted and self._stats_cache is not None:
                await self._stats_cache.invalidate(user_id)

        if deleted:
            logger.info(
                "Retention sweep deleted sessions",
                user_id=user_id,
                deleted=deleted,
                forced=force,
            )
        return deleted
