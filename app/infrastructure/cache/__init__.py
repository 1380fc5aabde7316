"""Cache: Redis client adapter, key/tag registry, monitor and output-cache hooks.

Used by the application cache services (fan-out, optimistic updates,
scoped and entity read caches). Key format lives in keys.py (DRY).
"""

from app.infrastructure.cache.cache_protocol import CacheEntry, CacheProtocol
from app.infrastructure.cache.keys import (
    collection_key,
    collection_slug_key,
    invitation_email_key,
    invitation_token_key,
    key_for,
    product_key,
    product_slug_key,
    scoped_count_key,
    scoped_list_key,
    tags_for,
)
from app.infrastructure.cache.monitor import (
    CacheMonitor,
    get_cache_insights,
    with_monitoring,
    with_smart_monitoring,
)
from app.infrastructure.cache.output_cache import HttpOutputCache, LoggingOutputCache
from app.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheEntry",
    "CacheMonitor",
    "CacheProtocol",
    "CacheService",
    "HttpOutputCache",
    "LoggingOutputCache",
    "collection_key",
    "collection_slug_key",
    "get_cache_insights",
    "invitation_email_key",
    "invitation_token_key",
    "key_for",
    "product_key",
    "product_slug_key",
    "scoped_count_key",
    "scoped_list_key",
    "tags_for",
    "with_monitoring",
    "with_smart_monitoring",
]
