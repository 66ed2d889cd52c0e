"""
Result cache backends for dic.

Provides the `ResultCache` interface consumed by lookup tasks and two
implementations: an in-process TTL cache and a Redis cache. Both raise
`CacheError` for backend failures and return None for missing keys, so the
caller can tell "not found" apart from "broken".

`build_cache` picks the backend from settings and verifies Redis connectivity
up front, with retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from dic.config import Settings, get_settings
from dic.errors import CacheError
from dic.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_REDIS_PORT = 6379


@runtime_checkable
class ResultCache(Protocol):
    """String-keyed store shared by every task of a run."""

    async def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None when the key is not set."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store `value` under `key`."""
        ...


class MemoryResultCache:
    """
    In-process cache whose entries expire `ttl` seconds after their last
    write or read.

    Expired entries are evicted lazily on access and by `purge()`. A lock
    guards the dict so a single instance can be shared across threads too.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[str]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, touched = entry
            if now - touched >= self.ttl:
                del self._entries[key]
                return None
            self._entries[key] = (value, now)
            return value

    async def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def purge(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, touched) in self._entries.items() if now - touched >= self.ttl]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisResultCache:
    """Redis-backed cache; entries never expire."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = DEFAULT_REDIS_PORT,
        db: int = 0,
        client: Optional[aioredis.Redis] = None,
    ) -> None:
        self._host = host
        self._port = port
        self._db = db
        if client is None:
            client = aioredis.Redis(host=host, port=port, db=db, decode_responses=True)
        self._client = client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except Exception as exc:
            raise CacheError(f"Redis GET failed for key={key!r}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client.set(key, value)
        except Exception as exc:
            raise CacheError(f"Redis SET failed for key={key!r}: {exc}") from exc

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
        reraise=True,
    )
    async def _ping(self) -> None:
        await self._client.ping()

    async def ping(self) -> None:
        """
        Verify the server is reachable, retrying transient connection errors.

        Raises
        ------
        CacheError
            If the server is still unreachable after all retry attempts.
        """
        try:
            await self._ping()
        except RedisError as exc:
            raise CacheError(
                f"unable to connect to redis server {self._host}:{self._port}: {exc}"
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def parse_redis_addr(addr: str) -> Tuple[str, int]:
    """Split `host[:port]` into its parts."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, DEFAULT_REDIS_PORT
    try:
        return host or "localhost", int(port)
    except ValueError as exc:
        raise CacheError(f"invalid redis address {addr!r}") from exc


async def build_cache(settings: Optional[Settings] = None) -> Optional[ResultCache]:
    """
    Create the cache selected by settings, or None when caching is disabled.

    Redis wins over the local cache when both are requested. An unreachable
    Redis server is fatal here, because caching was explicitly requested.
    """
    settings = settings or get_settings()
    if settings.redis_addr:
        host, port = parse_redis_addr(settings.redis_addr)
        cache = RedisResultCache(host=host, port=port, db=settings.redis_db)
        try:
            await cache.ping()
        except CacheError:
            await cache.aclose()
            raise
        log.info(
            "using redis cache",
            extra={"redis_addr": settings.redis_addr, "redis_db": settings.redis_db},
        )
        return cache
    if settings.local_cache:
        log.info("using in-process cache", extra={"ttl_seconds": settings.local_cache_ttl})
        return MemoryResultCache(ttl=settings.local_cache_ttl)
    return None


async def close_cache(cache: Optional[ResultCache]) -> None:
    """Release backend connections held by `cache`, if any."""
    if isinstance(cache, RedisResultCache):
        await cache.aclose()


__all__ = [
    "ResultCache",
    "MemoryResultCache",
    "RedisResultCache",
    "parse_redis_addr",
    "build_cache",
    "close_cache",
]
