"""Cache administration and diagnostics (the cache monitor surface).

Manual revalidation and full clears are destructive and only allowed in
the development environment. Stats, health and insights are read-only
and available everywhere.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.application.dtos.cache import (
    CacheHealth,
    CacheInsights,
    CacheMetrics,
    CacheOperationResult,
    CacheStats,
)
from app.domain.enums import EntityFamily, InvalidationScope, RevalidateTarget
from app.domain.exceptions import (
    CacheError,
    CacheOperationNotAllowedException,
    CacheUnavailableException,
    ValidationException,
)
from app.domain.value_objects.invalidation_event import InvalidationEvent, event_for
from app.infrastructure.cache import keys
from app.infrastructure.cache.monitor import get_cache_insights
from app.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from app.application.services.cache_invalidation_service import CacheInvalidationService
    from app.core.config import Settings
    from app.infrastructure.cache.monitor import CacheMonitor
    from app.infrastructure.cache.redis_cache import CacheService

logger = get_logger(__name__)

_TARGET_FAMILIES: dict[RevalidateTarget, EntityFamily] = {
    RevalidateTarget.COLLECTIONS: EntityFamily.COLLECTION,
    RevalidateTarget.PRODUCTS: EntityFamily.PRODUCT,
    RevalidateTarget.VENDOR_INVITATIONS: EntityFamily.VENDOR_INVITATION,
}


class CacheAdminService:
    """Revalidate, clear and inspect the cache."""

    def __init__(
        self,
        cache: CacheService,
        monitor: CacheMonitor,
        invalidation: CacheInvalidationService,
        settings: Settings,
    ) -> None:
        self.cache = cache
        self.monitor = monitor
        self.invalidation = invalidation
        self.settings = settings

    def _ensure_development(self, operation: str) -> None:
        if not self.settings.is_development:
            logger.warning(
                "Refused cache %s in %s environment", operation, self.settings.environment
            )
            raise CacheOperationNotAllowedException(operation, self.settings.environment)

    def _events_for(
        self, target: RevalidateTarget, entity_id: str | None, slug: str | None
    ) -> list[InvalidationEvent]:
        if target is RevalidateTarget.ALL:
            if entity_id or slug:
                raise ValidationException("Revalidating all caches takes no id or slug", "target")
            return [event_for(family, scope=InvalidationScope.ALL) for family in EntityFamily]
        try:
            return [event_for(_TARGET_FAMILIES[target], id=entity_id, slug=slug)]
        except ValueError as e:
            raise ValidationException(str(e), "slug") from e

    async def revalidate(
        self,
        target: RevalidateTarget,
        entity_id: str | None = None,
        slug: str | None = None,
    ) -> CacheOperationResult:
        """Run the fan-out for a target family (optionally one entity), or for every family.

        Raises:
            CacheOperationNotAllowedException: Outside development.
            ValidationException: If id/slug do not apply to the target.
        """
        self._ensure_development("revalidate")
        events = self._events_for(target, entity_id, slug)
        result = await self.invalidation.invalidate_many(events)
        if target is RevalidateTarget.ALL:
            await self.invalidation.invalidate_root()
        logger.info("Manual cache revalidation: %s (success=%s)", target.value, result.success)
        return result

    async def clear_all(self) -> CacheOperationResult:
        """Flush the store and revalidate every output-cache tag and route.

        Raises:
            CacheOperationNotAllowedException: Outside development.
        """
        self._ensure_development("clear_all")
        flushed = await self.cache.clear_all()
        for family in EntityFamily:
            for tag in keys.tags_for(family):
                await self.invalidation.output_cache.invalidate_tag(tag)
            for path, mode in keys.paths_for(family):
                await self.invalidation.output_cache.invalidate_path(path, mode)
        await self.invalidation.invalidate_root()
        if not flushed:
            return CacheOperationResult.failed(CacheError("clear_all", "store unavailable"))
        return CacheOperationResult.ok()

    async def get_stats(self) -> CacheStats:
        """Store introspection.

        Raises:
            CacheUnavailableException: If the store is disabled or unreachable.
        """
        stats = await self.cache.get_stats()
        if stats is None:
            raise CacheUnavailableException("Failed to get cache statistics")
        return stats

    async def get_metrics(self) -> CacheMetrics:
        """Monitor metrics with cache size and memory from the store when reachable."""
        return self.monitor.get_metrics(await self.cache.get_stats())

    async def get_insights(self) -> tuple[CacheMetrics, CacheInsights]:
        metrics = await self.get_metrics()
        return metrics, get_cache_insights(metrics)

    def reset_metrics(self) -> None:
        """Log the counters accumulated so far, then zero them."""
        self.monitor.log_metrics()
        self.monitor.reset()
        logger.info("Cache metrics reset")

    async def health_check(self) -> CacheHealth:
        """Availability, memory and key count, with metrics and insights."""
        stats = await self.cache.get_stats()
        metrics = self.monitor.get_metrics(stats)
        return CacheHealth(
            available=self.cache.is_available() and stats is not None,
            memory_usage=stats.memory_usage if stats else "unknown",
            total_keys=stats.total_keys if stats else 0,
            metrics=metrics,
            insights=get_cache_insights(metrics),
        )
