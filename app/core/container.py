"""Composition root for the cache layer.

build_container wires the adapter, monitor, output-cache hook, fan-out
engine and the per-family services once per process. The lifespan stores
the container on app.state; request handlers reach it through
app.api.v1.dependencies. Nothing here is a module-level singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx
import redis.asyncio as redis

from app.application.interfaces.services import IEntitySource, IOutputCache
from app.application.services.cache_admin_service import CacheAdminService
from app.application.services.cache_invalidation_service import CacheInvalidationService
from app.application.services.entity_cache_service import EntityCacheService
from app.application.services.optimistic_cache_service import OptimisticCacheService
from app.application.services.scoped_query_cache import ScopedQueryCache
from app.application.use_cases.cache_aware_mutation import CacheAwareMutation
from app.core.config import Settings, get_settings
from app.core.constants import FAMILY_ENTITY_TTL
from app.domain.enums import EntityFamily
from app.infrastructure.cache.monitor import CacheMonitor
from app.infrastructure.cache.output_cache import HttpOutputCache, LoggingOutputCache
from app.infrastructure.cache.redis_cache import CacheService

logger = logging.getLogger(__name__)


@dataclass
class FamilyCaches:
    """Per-family write and list-read services."""

    optimistic: OptimisticCacheService
    lists: ScopedQueryCache
    mutation: CacheAwareMutation


@dataclass
class CacheContainer:
    """Process-scoped cache services."""

    settings: Settings
    cache: CacheService
    monitor: CacheMonitor
    output_cache: IOutputCache
    invalidation: CacheInvalidationService
    admin: CacheAdminService
    families: dict[EntityFamily, FamilyCaches] = field(default_factory=dict)
    http_client: httpx.AsyncClient | None = None

    def for_family(self, family: EntityFamily) -> FamilyCaches:
        return self.families[family]

    def entity_cache(self, family: EntityFamily, source: IEntitySource) -> EntityCacheService:
        """Entity read cache bound to the host application's source of truth for family."""
        return EntityCacheService(family, self.cache, self.monitor, source)

    async def startup(self) -> None:
        """Connect to Redis when enabled. A failed connection leaves the cache disabled."""
        if self.settings.redis_enabled:
            await self.cache.connect()
        else:
            logger.info("Redis cache disabled by configuration")

    async def shutdown(self) -> None:
        await self.cache.disconnect()
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            logger.info("Output cache HTTP client closed")


def _build_output_cache(
    settings: Settings, http_client: httpx.AsyncClient | None
) -> tuple[IOutputCache, httpx.AsyncClient | None]:
    if not settings.output_cache_revalidate_url:
        return LoggingOutputCache(), http_client
    client = http_client or httpx.AsyncClient(timeout=settings.output_cache_timeout_seconds)
    secret = settings.output_cache_revalidate_secret
    hook = HttpOutputCache(
        client,
        settings.output_cache_revalidate_url,
        secret.get_secret_value() if secret else None,
    )
    return hook, client


def build_container(
    settings: Settings | None = None,
    redis_client: redis.Redis | None = None,
    output_cache: IOutputCache | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> CacheContainer:
    """Construct every cache service once.

    Args:
        settings: Defaults to get_settings().
        redis_client: Ready client (tests); otherwise CacheService.connect() creates one.
        output_cache: Output-cache hook; defaults to HTTP when a revalidate URL is set,
            else a logging no-op.
        http_client: Client for the HTTP hook; created when needed and closed on shutdown.
    """
    settings = settings or get_settings()
    monitor = CacheMonitor(
        max_samples=settings.cache_monitor_max_samples,
        alert_threshold=settings.cache_error_alert_threshold,
        alert_window=settings.cache_error_alert_window,
        alert_min_samples=settings.cache_error_alert_min_samples,
    )
    cache = CacheService(redis_client=redis_client, settings=settings, monitor=monitor)
    if output_cache is None:
        output_cache, http_client = _build_output_cache(settings, http_client)
    invalidation = CacheInvalidationService(cache, output_cache)

    families: dict[EntityFamily, FamilyCaches] = {}
    for family in EntityFamily:
        optimistic = OptimisticCacheService(
            family, cache, invalidation, ttl=FAMILY_ENTITY_TTL[family]
        )
        families[family] = FamilyCaches(
            optimistic=optimistic,
            lists=ScopedQueryCache(family, cache, monitor),
            mutation=CacheAwareMutation(optimistic, invalidation),
        )

    return CacheContainer(
        settings=settings,
        cache=cache,
        monitor=monitor,
        output_cache=output_cache,
        invalidation=invalidation,
        admin=CacheAdminService(cache, monitor, invalidation, settings),
        families=families,
        http_client=http_client,
    )
