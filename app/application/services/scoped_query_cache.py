"""Role-scoped list/count read cache (cache-aside).

The requester's RoleScope is encoded into the key (see
keys.scoped_list_key), so an admin's full list and a vendor's filtered
list never share a slot. Misses run the caller's fetch against the
source of truth and store the result with the family's list TTL.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from app.core.constants import FAMILY_LIST_TTL
from app.domain.enums import EntityFamily
from app.infrastructure.cache import keys
from app.infrastructure.cache.monitor import with_monitoring
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.domain.value_objects.core import RoleScope
    from app.infrastructure.cache.cache_protocol import CacheProtocol, Ttl
    from app.infrastructure.cache.monitor import CacheMonitor

logger = get_logger(__name__)


class ScopedQueryCache:
    """List and count reads of one entity family, partitioned by role scope."""

    def __init__(
        self,
        family: EntityFamily,
        cache: CacheProtocol,
        monitor: CacheMonitor,
        ttl: Ttl | None = None,
    ) -> None:
        self.family = family
        self.cache = cache
        self.monitor = monitor
        self.ttl = ttl if ttl is not None else FAMILY_LIST_TTL[family]

    async def _read_through(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        start = time.perf_counter()
        cached = await self.cache.get(key)
        if cached is not None:
            self.monitor.record_hit((time.perf_counter() - start) * 1000)
            return cached
        data = await with_monitoring(self.monitor, fetch, key, is_hit=False)
        if data is not None:
            await self.cache.set(key, data, self.ttl)
        return data

    async def get_list(self, scope: RoleScope, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Return the list visible to scope, from cache or fetch().

        Args:
            scope: Requester's role scope.
            fetch: Source-of-truth query for that scope; its errors propagate.
        """
        try:
            key = keys.scoped_list_key(self.family, scope)
        except ValueError as e:
            logger.warning("Uncacheable %s list for scope %s: %s", self.family.value, scope, e)
            return await fetch()
        return await self._read_through(key, fetch)

    async def get_count(self, scope: RoleScope, fetch: Callable[[], Awaitable[int]]) -> int:
        """Return the row count visible to scope, from cache or fetch()."""
        try:
            key = keys.scoped_count_key(self.family, scope)
        except ValueError as e:
            logger.warning("Uncacheable %s count for scope %s: %s", self.family.value, scope, e)
            return await fetch()
        return await self._read_through(key, fetch)
