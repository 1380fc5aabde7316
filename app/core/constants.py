"""Core constants: cache key segments, output-cache tags and routes.

Single source of truth for cache key structure (DRY). Used by the key/tag
registry in app.infrastructure.cache.keys; nothing else builds keys.
"""

from app.domain.enums import CacheDuration, EntityFamily, RevalidateMode

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Selector segments inside a family namespace
CACHE_SEGMENT_ID = "id"
CACHE_SEGMENT_TOKEN = "token"
CACHE_SEGMENT_EMAIL = "email"
CACHE_SEGMENT_ALL = "all"
CACHE_SEGMENT_COUNT = "count"
CACHE_SEGMENT_METADATA = "metadata"
CACHE_SEGMENT_ADMIN = "admin"
CACHE_SEGMENT_VENDOR = "vendor"
CACHE_SEGMENT_USER = "user"

# Glob wildcard used by pattern invalidation (Redis SCAN MATCH syntax)
CACHE_PATTERN_ANY = "*"

# Output-cache tags registered per family. Collections also implicate product
# and media pages because product listings embed collection titles.
FAMILY_TAGS: dict[EntityFamily, tuple[str, ...]] = {
    EntityFamily.COLLECTION: (
        "collection",
        "collections",
        "collection-drafts",
        "collection-active",
        "collection-archived",
        "collection-details",
        "product",
        "media",
    ),
    EntityFamily.PRODUCT: (
        "product",
        "products",
        "product-drafts",
        "product-active",
        "product-archived",
        "product-details",
        "collection",
        "media",
    ),
    EntityFamily.VENDOR_INVITATION: (
        "vendor",
        "vendors",
        "vendor-invitations",
        "vendor-status",
    ),
}

# Prefixes of id/slug/token/email-qualified tags ("<prefix>:<value>")
TAG_SUFFIX_BY_ID = "-by-id"
TAG_SUFFIX_BY_SLUG = "-by-slug"
TAG_SUFFIX_BY_TOKEN = "-by-token"
TAG_SUFFIX_BY_EMAIL = "-by-email"
TAG_VENDOR_BY_ID = "vendor-by-id"

# List and detail routes rendered from each family's data
FAMILY_PATHS: dict[EntityFamily, tuple[tuple[str, RevalidateMode | None], ...]] = {
    EntityFamily.COLLECTION: (
        ("/collections", None),
        ("/collections/[slug]", RevalidateMode.PAGE),
        ("/products", None),
        ("/products/[slug]", RevalidateMode.PAGE),
    ),
    EntityFamily.PRODUCT: (
        ("/products", None),
        ("/products/[slug]", RevalidateMode.PAGE),
    ),
    EntityFamily.VENDOR_INVITATION: (
        ("/vendors", None),
        ("/vendor", None),
        ("/vendor/[slug]", RevalidateMode.PAGE),
        ("/admin/vendors", None),
        ("/admin/invitations", None),
    ),
}

# Families whose list views embed another family's data
FAMILY_DEPENDENTS: dict[EntityFamily, tuple[EntityFamily, ...]] = {
    EntityFamily.COLLECTION: (EntityFamily.PRODUCT,),
    EntityFamily.PRODUCT: (),
    EntityFamily.VENDOR_INVITATION: (),
}

# TTL class for cached entity reads (by id, slug, token, email)
FAMILY_ENTITY_TTL: dict[EntityFamily, CacheDuration] = {
    EntityFamily.COLLECTION: CacheDuration.MEDIUM,
    EntityFamily.PRODUCT: CacheDuration.MEDIUM,
    EntityFamily.VENDOR_INVITATION: CacheDuration.MEDIUM,
}

# TTL class for cached list/count reads. Collections change rarely.
FAMILY_LIST_TTL: dict[EntityFamily, CacheDuration] = {
    EntityFamily.COLLECTION: CacheDuration.LONG,
    EntityFamily.PRODUCT: CacheDuration.MEDIUM,
    EntityFamily.VENDOR_INVITATION: CacheDuration.SHORT,
}

# Routes revalidated by a full clear from the admin surface
ROOT_PATH = "/"
