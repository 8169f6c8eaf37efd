"""Key-value price cache with TTL, in front of the durable price store."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class PriceCache(ABC):
    """Cache interface. Implementations report unavailability as a miss, never raise."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Cached value, or None on miss."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Store ``value`` for ``ttl_seconds``. Returns False if the write did not happen."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        ...

    async def close(self) -> None:
        return None


class RedisPriceCache(PriceCache):
    """Redis-backed cache. Connection errors degrade to a miss."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError:
            logger.warning("Redis GET failed for %s, treating as miss", key, exc_info=True)
            return None
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            await self._client.setex(key, ttl_seconds, value)
        except RedisError:
            logger.warning("Redis SETEX failed for %s", key, exc_info=True)
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            await self._client.delete(key)
        except RedisError:
            logger.warning("Redis DEL failed for %s", key, exc_info=True)
            return False
        return True

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryPriceCache(PriceCache):
    """Process-local TTL map. Used when no Redis is configured, and in tests.

    Holds at most ``max_entries`` keys. When full, expired entries are swept
    first and then the oldest writes are evicted.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 10_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        now = self._clock()
        self._entries.pop(key, None)
        if len(self._entries) >= self._max_entries:
            self._evict(now)
        self._entries[key] = (now + ttl_seconds, value)
        return True

    async def delete(self, key: str) -> bool:
        self._entries.pop(key, None)
        return True

    @property
    def size(self) -> int:
        return len(self._entries)

    def _evict(self, now: float) -> None:
        for key in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]
        # Insertion order is write order
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
