"""Domain enumerations for the back-office cache layer.

Enums represent fixed sets of domain values (entity families, cache
operations, role kinds, TTL classes).
"""

from enum import Enum


class EntityFamily(str, Enum):
    """Entity family whose cached reads and output-cache pages are coordinated.

    The value is the singular key namespace (``collection:id:<id>``);
    ``plural`` is the list namespace (``collections:all``).
    """

    COLLECTION = "collection"
    PRODUCT = "product"
    VENDOR_INVITATION = "vendor-invitation"

    @property
    def plural(self) -> str:
        """List/count namespace for the family."""
        return f"{self.value}s"

    @classmethod
    def values(cls) -> list[str]:
        """Return all family values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [family.value for family in cls]


class CacheOperation(str, Enum):
    """Mutation kind that drives an optimistic or result-cache update."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class CacheDuration(str, Enum):
    """TTL class assigned to a cache entry at write time.

    Seconds per class come from settings (cache_ttl_short / medium / long).
    """

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class InvalidationScope(str, Enum):
    """Whether an invalidation targets one entity or the whole family."""

    SINGLE = "single"
    ALL = "all"


class RoleKind(str, Enum):
    """Access partition a cached list/count result is valid for."""

    ADMIN = "admin"
    VENDOR = "vendor"
    USER = "user"
    ANONYMOUS = "anonymous"


class RevalidateMode(str, Enum):
    """Output-cache path revalidation mode (dynamic route segment type)."""

    PAGE = "page"
    LAYOUT = "layout"


class PerformanceLabel(str, Enum):
    """Qualitative cache performance derived from hit rate."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEEDS_IMPROVEMENT = "Needs Improvement"


class KeySelector(str, Enum):
    """Selector segment of a cache key (see app.infrastructure.cache.keys)."""

    BY_ID = "by-id"
    BY_SLUG = "by-slug"
    BY_TOKEN = "by-token"
    BY_EMAIL = "by-email"
    ALL = "all"
    COUNT = "count"
    METADATA = "metadata"


class RevalidateTarget(str, Enum):
    """Target of a manual revalidation from the admin surface."""

    ALL = "all"
    COLLECTIONS = "collections"
    PRODUCTS = "products"
    VENDOR_INVITATIONS = "vendor-invitations"
