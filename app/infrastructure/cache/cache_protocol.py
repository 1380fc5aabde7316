"""Cache protocol for the application layer (DIP). Implemented by CacheService."""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, NamedTuple, Protocol

from app.domain.enums import CacheDuration

Ttl = int | CacheDuration


class CacheEntry(NamedTuple):
    """One write of a pipelined mset. ttl None stores without expiry."""

    key: str
    value: Any
    ttl: Ttl | None = None


class CacheProtocol(Protocol):
    """Protocol for cache backends (e.g. Redis).

    Every method is best-effort: store failures are logged and degrade to
    None / False / 0 / all-None results, never exceptions.
    """

    def is_available(self) -> bool:
        """Return True if cache is connected and usable."""
        ...

    async def get(self, key: str) -> Any:
        """Return cached value or None (missing, unavailable or malformed)."""
        ...

    async def set(self, key: str, value: Any, ttl: Ttl = CacheDuration.MEDIUM) -> bool:
        """Store value with TTL (seconds or duration class)."""
        ...

    async def delete(self, *keys: str) -> bool:
        """Remove keys from cache."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern; return count removed."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if key is currently cached."""
        ...

    async def mget(self, keys: Sequence[str]) -> list[Any]:
        """Return values for keys in order (None per miss)."""
        ...

    async def mset(self, entries: Sequence[CacheEntry]) -> bool:
        """Store all entries in one round trip; all-or-nothing."""
        ...

    async def get_with_retry(self, key: str, retries: int | None = None) -> Any:
        """get with exponential-backoff retries on store errors."""
        ...

    async def set_with_retry(
        self,
        key: str,
        value: Any,
        ttl: Ttl = CacheDuration.MEDIUM,
        retries: int | None = None,
    ) -> bool:
        """set with exponential-backoff retries on store errors."""
        ...

    async def warm(
        self, key: str, fetch: Callable[[], Awaitable[Any]], ttl: Ttl = CacheDuration.LONG
    ) -> bool:
        """Fetch from source of truth and store under key."""
        ...
