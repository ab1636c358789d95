import hashlib
import json
import logging

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import after_commit

logger = logging.getLogger(__name__)

LISTING_PREFIX = "articles:list"


def listing_key(limit: int, offset: int, tag: str | None, author: str | None,
                favorited: str | None) -> str:
    """
    Cache key for an anonymous listing page.

    The inputs are JSON-encoded before hashing, so values containing the
    ``:`` separator cannot make two different queries share a key.
    """
    payload = json.dumps([limit, offset, tag, author, favorited], separators=(",", ":"))
    return f"{LISTING_PREFIX}:{hashlib.sha256(payload.encode()).hexdigest()}"


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    Only anonymous article listings are cached: every viewer-specific
    response carries favorite/follow flags and is always read from the
    database.  All public methods are safe to call when Redis is
    unavailable: reads return None and writes are skipped.
    """

    def __init__(self, url: str | None = None) -> None:
        self._url = url or settings.REDIS_URL
        self._redis: redis.Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        client = redis.from_url(
            self._url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await client.ping()
        except redis.RedisError as exc:
            logger.warning("Redis unavailable at %s, listing cache disabled: %s", self._url, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Redis connected: %s", self._url)

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get(self, key: str) -> dict | None:
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
        except redis.RedisError as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        """A failed cache write is logged and never breaks the request."""
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except redis.RedisError as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching *pattern* using SCAN (avoids blocking KEYS)."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except redis.RedisError as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)

    async def invalidate_listings(self) -> None:
        """Purge every cached listing page; called after any write that shows in a listing."""
        await self.delete_pattern(f"{LISTING_PREFIX}:*")


class RequestCache:
    """
    Per-request view of a ``CacheManager``.

    Reads and writes go straight through; listing invalidation is queued on
    the request's session and runs only after it commits, so a concurrent
    anonymous listing cannot re-cache rows the write is about to replace.
    """

    def __init__(self, manager: CacheManager, session: AsyncSession) -> None:
        self._manager = manager
        self._session = session

    async def get(self, key: str) -> dict | None:
        return await self._manager.get(key)

    async def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        await self._manager.set(key, value, ttl=ttl)

    async def invalidate_listings(self) -> None:
        after_commit(self._session, self._manager.invalidate_listings)


# Shared connection pool, injected into services by app.dependencies.
cache = CacheManager()
