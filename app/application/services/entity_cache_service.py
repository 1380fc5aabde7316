"""Entity read cache: cache-aside lookups by id, slug, token or email.

Reads go through the retrying adapter calls; misses are fetched from the
family's IEntitySource and written back. Hits and misses are recorded on
the monitor. Source-of-truth errors propagate to the caller; cache errors
never do.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from app.core.constants import FAMILY_ENTITY_TTL
from app.domain.enums import CacheDuration, EntityFamily, KeySelector
from app.infrastructure.cache import keys
from app.infrastructure.cache.cache_protocol import CacheEntry
from app.infrastructure.cache.monitor import with_monitoring
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.interfaces.services import IEntitySource
    from app.infrastructure.cache.cache_protocol import CacheProtocol, Ttl
    from app.infrastructure.cache.monitor import CacheMonitor

logger = get_logger(__name__)

Entity = Mapping[str, Any]


class EntityCacheService:
    """Cached single-entity reads for one family."""

    def __init__(
        self,
        family: EntityFamily,
        cache: CacheProtocol,
        monitor: CacheMonitor,
        source: IEntitySource,
        ttl: Ttl | None = None,
    ) -> None:
        self.family = family
        self.cache = cache
        self.monitor = monitor
        self.source = source
        self.ttl = ttl if ttl is not None else FAMILY_ENTITY_TTL[family]

    async def get(self, selector: KeySelector, value: str) -> Entity | None:
        """Return the entity for (selector, value) from cache, else from the source.

        A value that cannot be a key component (empty, or containing the
        separator) is read from the source without caching.

        Raises:
            ValueError: If the family is not keyed by selector.
        """
        if selector not in keys.FAMILY_SELECTORS[self.family]:
            raise ValueError(f"{self.family.value} is not keyed by {selector.value}")
        try:
            key = keys.entity_key(self.family, selector, value)
        except ValueError as e:
            logger.warning("Uncacheable %s lookup %s=%r: %s", self.family.value, selector.value, value, e)
            return await self.source.fetch(selector, value)
        start = time.perf_counter()
        cached = await self.cache.get_with_retry(key)
        if cached is not None:
            self.monitor.record_hit((time.perf_counter() - start) * 1000)
            return cached
        entity = await with_monitoring(
            self.monitor, lambda: self.source.fetch(selector, value), key, is_hit=False
        )
        if entity is not None:
            await self.cache.set_with_retry(key, dict(entity), self.ttl)
        return entity

    async def get_by_id(self, entity_id: str) -> Entity | None:
        return await self.get(KeySelector.BY_ID, entity_id)

    async def get_by_slug(self, slug: str) -> Entity | None:
        return await self.get(KeySelector.BY_SLUG, slug)

    def _slug_key(self, slug: str) -> str | None:
        try:
            return keys.entity_key(self.family, KeySelector.BY_SLUG, slug)
        except ValueError as e:
            logger.warning("Uncacheable %s slug %r: %s", self.family.value, slug, e)
            return None

    async def get_many_by_slug(self, slugs: Sequence[str]) -> list[Entity | None]:
        """Batch read: one MGET, fetch the misses, one pipelined MSET for what was found.

        Slugs that cannot form a key are fetched from the source and not cached.

        Returns:
            Entities in the order of slugs (None where the source has none).
        """
        if not slugs:
            return []
        slug_keys = [self._slug_key(s) for s in slugs]
        cacheable = [i for i, key in enumerate(slug_keys) if key is not None]
        results: list[Entity | None] = [None] * len(slugs)
        start = time.perf_counter()
        if cacheable:
            cached = await self.cache.mget([slug_keys[i] for i in cacheable])
            for i, value in zip(cacheable, cached):
                results[i] = value
        latency = (time.perf_counter() - start) * 1000

        missing = [i for i, value in enumerate(results) if value is None]
        for _ in range(len(slugs) - len(missing)):
            self.monitor.record_hit(latency)
        if not missing:
            return results

        fetch_start = time.perf_counter()
        fetched = await asyncio.gather(
            *(self.source.fetch(KeySelector.BY_SLUG, slugs[i]) for i in missing)
        )
        fetch_latency = (time.perf_counter() - fetch_start) * 1000
        entries: list[CacheEntry] = []
        for i, entity in zip(missing, fetched):
            self.monitor.record_miss(fetch_latency)
            results[i] = entity
            key = slug_keys[i]
            if entity is not None and key is not None:
                entries.append(CacheEntry(key, dict(entity), self.ttl))
        if entries:
            await self.cache.mset(entries)
        logger.debug(
            "Batch %s read: %s cached, %s fetched",
            self.family.value,
            len(slugs) - len(missing),
            len(missing),
        )
        return results

    async def warm(self, slugs: Sequence[str]) -> int:
        """Pre-load popular entities by slug with the LONG TTL. Returns how many were stored."""
        warmed = 0
        for slug in slugs:
            key = self._slug_key(slug)
            if key is None:
                continue
            if await self.cache.warm(
                key, lambda s=slug: self.source.fetch(KeySelector.BY_SLUG, s), CacheDuration.LONG
            ):
                warmed += 1
        logger.info("Warmed %s of %s %s entries", warmed, len(slugs), self.family.value)
        return warmed

    async def clear_all(self) -> int:
        """Delete every entity and list key of the family. Returns keys removed."""
        removed = 0
        for pattern in keys.namespace_patterns(self.family):
            removed += await self.cache.delete_pattern(pattern)
        logger.info("Cleared %s %s cache keys", removed, self.family.value)
        return removed
