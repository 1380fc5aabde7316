"""Redis-based cache service (client adapter) for the back-office cache layer.

Provides async Redis caching with TTL classes, retries with exponential
backoff, batch reads/writes and pattern invalidation. A cache failure must
never fail the caller's business operation: every public method catches
store errors, logs them and degrades to None / False / 0 / all-None.
Integrates with app.infrastructure.cache.keys for key format (DRY).
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from pydantic_core import to_jsonable_python

from app.application.dtos.cache import CacheStats
from app.core.config import Settings, get_settings
from app.domain.enums import CacheDuration
from app.infrastructure.cache.cache_protocol import CacheEntry, Ttl

if TYPE_CHECKING:
    from app.infrastructure.cache.monitor import CacheMonitor

logger = logging.getLogger(__name__)

# Store-level failures: Redis errors, socket errors and timeouts.
STORE_ERRORS: tuple[type[BaseException], ...] = (redis.RedisError, OSError, asyncio.TimeoutError)

_SCAN_COUNT = 500


def _decode(key: str, raw: Any) -> Any:
    """JSON-decode a cached payload; a malformed payload is a miss (None)."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Cache payload for key %s is malformed; treating as miss", key)
        return None


def _info_field(info: Any, field: str) -> str | None:
    """Read one field from INFO output (raw text or the client's parsed dict)."""
    if isinstance(info, dict):
        value = info.get(field)
        return None if value is None else str(value)
    if isinstance(info, bytes):
        info = info.decode()
    if not isinstance(info, str):
        return None
    match = re.search(rf"^{re.escape(field)}:(\S+)", info, re.MULTILINE)
    return match.group(1) if match else None


def _info_int(info: Any, field: str) -> int:
    value = _info_field(info, field)
    try:
        return int(value) if value is not None else 0
    except ValueError:
        return 0


class CacheService:
    """Async Redis cache service with TTL classes, retries and batch operations.

    Call connect() at startup and disconnect() at shutdown, or pass a ready
    client (tests, DI). When a CacheMonitor is given, every store call
    reports its outcome to it for error-rate alerting.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
        monitor: CacheMonitor | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Optional settings; defaults to get_settings().
            monitor: Optional monitor receiving operation outcomes.
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.monitor = monitor
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=self.settings.redis_socket_timeout,
                    socket_timeout=self.settings.redis_socket_timeout,
                    socket_keepalive=True,
                )
                await self.redis.ping()
                self._connected = True
                logger.info(
                    "Redis cache connected: %s:%s",
                    self.settings.redis_host,
                    self.settings.redis_port,
                )
            except STORE_ERRORS as e:
                logger.warning(
                    "Redis connection failed: %s. Cache disabled.",
                    e,
                )
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    def ttl_seconds(self, ttl: Ttl | None) -> int | None:
        """Resolve a TTL class (or plain seconds) to seconds."""
        if ttl is None or isinstance(ttl, int):
            return ttl
        return {
            CacheDuration.SHORT: self.settings.cache_ttl_short,
            CacheDuration.MEDIUM: self.settings.cache_ttl_medium,
            CacheDuration.LONG: self.settings.cache_ttl_long,
        }[CacheDuration(ttl)]

    def _backoff_seconds(self, attempt: int) -> float:
        """Delay before retry number attempt + 1: base * 2**attempt."""
        return self.settings.cache_retry_backoff_ms * (2**attempt) / 1000

    def _record(self, ok: bool, operation: str) -> None:
        if self.monitor is not None:
            self.monitor.record_outcome(ok, operation)

    async def _get_raw(self, key: str) -> Any:
        """GET and decode; raises on store errors."""
        value = await self.redis.get(key)  # type: ignore[union-attr]
        if value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return _decode(key, value)

    async def _set_raw(self, key: str, serialized: str, ttl: int | None) -> None:
        """SETEX (or SET without expiry); raises on store errors."""
        if ttl:
            await self.redis.setex(key, ttl, serialized)  # type: ignore[union-attr]
        else:
            await self.redis.set(key, serialized)  # type: ignore[union-attr]
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)

    def _serialize(self, key: str, value: Any) -> str | None:
        """JSON-encode value; datetimes, UUIDs, Decimals and models go through pydantic."""
        try:
            return json.dumps(value, default=to_jsonable_python)
        except (TypeError, ValueError):
            logger.exception("Cache value for key %s is not JSON-serializable", key)
            return None

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable/malformed.

        Args:
            key: Cache key (use app.infrastructure.cache.keys builders).

        Returns:
            Cached value or None.
        """
        if not self.is_available():
            return None
        try:
            value = await self._get_raw(key)
        except STORE_ERRORS:
            logger.exception("Cache get error for key %s", key)
            self._record(False, "get")
            return None
        self._record(True, "get")
        return value

    async def set(self, key: str, value: Any, ttl: Ttl = CacheDuration.MEDIUM) -> bool:
        """Store value with TTL. Returns True on success.

        Args:
            key: Cache key.
            value: Value to cache (JSON-serializable).
            ttl: Seconds or CacheDuration class (default MEDIUM).

        Returns:
            True if stored, False otherwise.
        """
        if not self.is_available():
            return False
        serialized = self._serialize(key, value)
        if serialized is None:
            return False
        try:
            await self._set_raw(key, serialized, self.ttl_seconds(ttl))
        except STORE_ERRORS:
            logger.exception("Cache set error for key %s", key)
            self._record(False, "set")
            return False
        self._record(True, "set")
        return True

    async def get_with_retry(self, key: str, retries: int | None = None) -> Any | None:
        """get with up to `retries` attempts and exponential backoff between them.

        Returns None (the plain get fallback) once every attempt has failed.
        """
        if not self.is_available():
            return None
        attempts = retries or self.settings.cache_retry_attempts
        for attempt in range(attempts):
            try:
                value = await self._get_raw(key)
            except STORE_ERRORS as e:
                self._record(False, "get")
                if attempt == attempts - 1:
                    logger.error(
                        "Cache get failed after %s attempts for key %s: %s", attempts, key, e
                    )
                    return None
                await asyncio.sleep(self._backoff_seconds(attempt))
                continue
            self._record(True, "get")
            return value
        return None

    async def set_with_retry(
        self,
        key: str,
        value: Any,
        ttl: Ttl = CacheDuration.MEDIUM,
        retries: int | None = None,
    ) -> bool:
        """set with up to `retries` attempts and exponential backoff between them."""
        if not self.is_available():
            return False
        serialized = self._serialize(key, value)
        if serialized is None:
            return False
        seconds = self.ttl_seconds(ttl)
        attempts = retries or self.settings.cache_retry_attempts
        for attempt in range(attempts):
            try:
                await self._set_raw(key, serialized, seconds)
            except STORE_ERRORS as e:
                self._record(False, "set")
                if attempt == attempts - 1:
                    logger.error(
                        "Cache set failed after %s attempts for key %s: %s", attempts, key, e
                    )
                    return False
                await asyncio.sleep(self._backoff_seconds(attempt))
                continue
            self._record(True, "set")
            return True
        return False

    async def delete(self, *keys: str) -> bool:
        """Remove keys from cache in one DEL. Returns True if the command succeeded.

        Args:
            keys: Cache keys to delete (none is a no-op).

        Returns:
            True if deleted (or nothing to delete), False otherwise.
        """
        if not keys:
            return True
        if not self.is_available():
            return False
        try:
            await self.redis.delete(*keys)  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache delete error for keys %s", list(keys))
            self._record(False, "delete")
            return False
        self._record(True, "delete")
        logger.debug("Cache DELETE: %s", ", ".join(keys))
        return True

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern: SCAN to resolve, then one UNLINK.

        Uses scan_iter to avoid KEYS blocking the server. Zero matches is a
        no-op (no delete issued).

        Args:
            pattern: Redis SCAN match pattern (e.g. products:vendor:*).

        Returns:
            Number of keys deleted (0 on failure).
        """
        if not self.is_available():
            return 0
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern, count=_SCAN_COUNT)]  # type: ignore[union-attr]
            if not keys:
                self._record(True, "delete_pattern")
                return 0
            deleted = int(await self.redis.unlink(*keys) or 0)  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache delete_pattern error for %s", pattern)
            self._record(False, "delete_pattern")
            return 0
        self._record(True, "delete_pattern")
        logger.info("Cache INVALIDATE: %s (%s keys)", pattern, deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        """Return True if key is currently cached (False when unavailable)."""
        if not self.is_available():
            return False
        try:
            found = await self.redis.exists(key)  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache exists error for key %s", key)
            self._record(False, "exists")
            return False
        self._record(True, "exists")
        return bool(found)

    async def mget(self, keys: Sequence[str]) -> list[Any]:
        """Return decoded values for keys in order; all None if the batch fails."""
        if not keys:
            return []
        if not self.is_available():
            return [None] * len(keys)
        try:
            values = await self.redis.mget(list(keys))  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache mget error for %s keys", len(keys))
            self._record(False, "mget")
            return [None] * len(keys)
        self._record(True, "mget")
        return [_decode(key, value) for key, value in zip(keys, values)]

    async def mset(self, entries: Sequence[CacheEntry]) -> bool:
        """Write all entries in one pipelined round trip (SETEX with TTL, SET without).

        Partial failure of the batch is treated as total failure.
        """
        if not entries:
            return True
        if not self.is_available():
            return False
        serialized: list[tuple[str, str, int | None]] = []
        for entry in entries:
            data = self._serialize(entry.key, entry.value)
            if data is None:
                return False
            serialized.append((entry.key, data, self.ttl_seconds(entry.ttl)))
        try:
            async with self.redis.pipeline(transaction=False) as pipe:  # type: ignore[union-attr]
                for key, data, seconds in serialized:
                    if seconds:
                        pipe.setex(key, seconds, data)
                    else:
                        pipe.set(key, data)
                await pipe.execute()
        except STORE_ERRORS:
            logger.exception("Cache mset error for %s entries", len(entries))
            self._record(False, "mset")
            return False
        self._record(True, "mset")
        logger.debug("Cache MSET: %s entries", len(entries))
        return True

    async def warm(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        ttl: Ttl = CacheDuration.LONG,
    ) -> bool:
        """Fetch from the source of truth and store under key. Returns True if stored."""
        try:
            data = await fetch()
        except Exception:
            logger.exception("Cache warming fetch failed for key %s", key)
            return False
        if data is None:
            return False
        stored = await self.set(key, data, ttl)
        if stored:
            logger.info("Warmed cache for key: %s", key)
        return stored

    async def get_stats(self) -> CacheStats | None:
        """Return store introspection (INFO memory/stats/server + DBSIZE), or None."""
        if not self.is_available():
            return None
        try:
            info_memory = await self.redis.info("memory")  # type: ignore[union-attr]
            info_stats = await self.redis.info("stats")  # type: ignore[union-attr]
            info_server = await self.redis.info("server")  # type: ignore[union-attr]
            total_keys = await self.redis.dbsize()  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache stats error")
            self._record(False, "stats")
            return None
        self._record(True, "stats")
        return CacheStats(
            total_keys=int(total_keys or 0),
            memory_usage=_info_field(info_memory, "used_memory_human") or "unknown",
            evicted_keys=_info_int(info_stats, "evicted_keys"),
            uptime_seconds=_info_int(info_server, "uptime_in_seconds"),
            peak_memory_usage=(
                _info_field(info_memory, "peak_memory_human")
                or _info_field(info_memory, "used_memory_peak_human")
                or "unknown"
            ),
            max_memory_policy=_info_field(info_memory, "maxmemory_policy") or "unknown",
        )

    async def clear_all(self) -> bool:
        """Clear entire cache. Use with caution.

        Returns:
            True if cleared, False otherwise.
        """
        if not self.is_available():
            return False
        try:
            await self.redis.flushdb()  # type: ignore[union-attr]
        except STORE_ERRORS:
            logger.exception("Cache clear error")
            self._record(False, "clear_all")
            return False
        self._record(True, "clear_all")
        logger.warning("Cache CLEARED: all keys deleted")
        return True
