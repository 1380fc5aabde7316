"""Application services: invalidation fan-out, optimistic writes, read caches, admin."""

from app.application.services.cache_admin_service import CacheAdminService
from app.application.services.cache_invalidation_service import CacheInvalidationService
from app.application.services.entity_cache_service import EntityCacheService
from app.application.services.optimistic_cache_service import OptimisticCacheService
from app.application.services.scoped_query_cache import ScopedQueryCache

__all__ = [
    "CacheAdminService",
    "CacheInvalidationService",
    "EntityCacheService",
    "OptimisticCacheService",
    "ScopedQueryCache",
]
