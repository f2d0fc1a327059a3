"""Statistics aggregation over a user's stored history."""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError, WatchError

from app.core.settings import RedisConfig
from app.repositories.chat_repo import ChatRepository
from app.schemas.stats_schema import SessionStats

logger = structlog.get_logger()


class StatsCache:
    """Short-lived Redis cache of per-user statistics.

    Cache trouble never fails the caller: reads fall back to the database and
    failed invalidations are logged and left to expire with the TTL.

    Every invalidation bumps a per-user version counter. A reader takes the
    version before counting and stores its result only if the version is
    unchanged, so numbers computed while a write was landing are never cached.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        config: RedisConfig,
        ttl_seconds: int,
    ) -> None:
        self._client = client
        self._config = config
        self._ttl_seconds = ttl_seconds

    def _key(self, user_id: int) -> str:
        return self._config.key("stats", user_id)

    def _version_key(self, user_id: int) -> str:
        return self._config.key("stats", user_id, "version")

    async def get(self, user_id: int) -> SessionStats | None:
        try:
            raw = await self._client.get(self._key(user_id))
        except RedisError:
            logger.warning("Stats cache read failed", user_id=user_id, exc_info=True)
            return None
        if raw is None:
            return None
        return SessionStats.model_validate_json(raw)

    async def version(self, user_id: int) -> int | None:
        """Current invalidation counter, or None when Redis is unavailable."""
        try:
            raw = await self._client.get(self._version_key(user_id))
        except RedisError:
            logger.warning("Stats cache read failed", user_id=user_id, exc_info=True)
            return None
        return int(raw or 0)

    async def set(
        self, user_id: int, stats: SessionStats, version: int | None = None
    ) -> None:
        """Store ``stats``; with ``version``, only if no invalidation happened since."""
        key = self._key(user_id)
        payload = stats.model_dump_json()
        try:
            if version is None:
                await self._client.set(key, payload, ex=self._ttl_seconds)
                return
            version_key = self._version_key(user_id)
            async with self._client.pipeline(transaction=True) as pipe:
                await pipe.watch(version_key)
                current = int(await pipe.get(version_key) or 0)
                if current != version:
                    logger.debug("Stale stats not cached", user_id=user_id)
                    return
                pipe.multi()
                pipe.set(key, payload, ex=self._ttl_seconds)
                await pipe.execute()
        except WatchError:
            logger.debug("Stale stats not cached", user_id=user_id)
        except RedisError:
            logger.warning("Stats cache write failed", user_id=user_id, exc_info=True)

    async def invalidate(self, user_id: int) -> None:
        try:
            await self._client.incr(self._version_key(user_id))
            await self._client.delete(self._key(user_id))
        except RedisError:
            logger.warning(
                "Stats cache invalidation failed", user_id=user_id, exc_info=True
            )


class StatsService:
    """Read-only summary of session count, message count and footprint."""

    def __init__(self, chat_repo: ChatRepository, cache: StatsCache | None = None) -> None:
        self._chat_repo = chat_repo
        self._cache = cache

    async def compute_stats(self, user_id: int) -> SessionStats:
        """Summarise the user's current corpus.

        Sessions not yet swept are counted; callers wanting a post-sweep view
        run the sweeper first. ``estimated_bytes`` is approximate.
        """
        version: int | None = None
        if self._cache is not None:
            cached = await self._cache.get(user_id)
            if cached is not None:
                return cached
            version = await self._cache.version(user_id)

        counts = await self._chat_repo.count_corpus(user_id)
        stats = SessionStats(
            session_count=counts.session_count,
            archived_count=counts.archived_count,
            message_count=counts.message_count,
            estimated_bytes=counts.content_length,
        )
        if self._cache is not None and version is not None:
            await self._cache.set(user_id, stats, version=version)
        return stats
