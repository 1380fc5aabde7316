"""Domain value objects and shared value types."""

from app.domain.value_objects.core import RoleScope
from app.domain.value_objects.invalidation_event import (
    CollectionInvalidation,
    InvalidationEvent,
    ProductInvalidation,
    VendorInvitationInvalidation,
    event_for,
    event_from_entity,
)

__all__ = [
    "CollectionInvalidation",
    "InvalidationEvent",
    "ProductInvalidation",
    "RoleScope",
    "VendorInvitationInvalidation",
    "event_for",
    "event_from_entity",
]
