"""Domain layer: value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.enums import (
    CacheDuration,
    CacheOperation,
    EntityFamily,
    InvalidationScope,
    KeySelector,
    PerformanceLabel,
    RevalidateMode,
    RevalidateTarget,
    RoleKind,
)
from app.domain.exceptions import (
    BackofficeException,
    CacheError,
    CacheOperationNotAllowedException,
    CacheUnavailableException,
    ValidationException,
)
from app.domain.value_objects import (
    CollectionInvalidation,
    InvalidationEvent,
    ProductInvalidation,
    RoleScope,
    VendorInvitationInvalidation,
)

__all__ = [
    # Enums
    "CacheDuration",
    "CacheOperation",
    "EntityFamily",
    "InvalidationScope",
    "KeySelector",
    "PerformanceLabel",
    "RevalidateMode",
    "RevalidateTarget",
    "RoleKind",
    # Exceptions
    "BackofficeException",
    "CacheError",
    "CacheOperationNotAllowedException",
    "CacheUnavailableException",
    "ValidationException",
    # Value objects
    "CollectionInvalidation",
    "InvalidationEvent",
    "ProductInvalidation",
    "RoleScope",
    "VendorInvitationInvalidation",
]
