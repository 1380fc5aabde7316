"""Invalidation events: the unit of work driving cache fan-out.

One frozen variant per entity family; together they form the
InvalidationEvent union. Each variant only carries the identifiers its
family is keyed by, and a family-wide (scope=ALL) event cannot carry any
identifier at all.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from app.domain.enums import EntityFamily, InvalidationScope, KeySelector


def _check_scope(scope: InvalidationScope, identifiers: dict[KeySelector, str]) -> None:
    """Raise ValueError if a family-wide event carries identifiers."""
    if scope is InvalidationScope.ALL and identifiers:
        raise ValueError(
            "Family-wide invalidation must not carry identifiers: "
            f"{sorted(s.value for s in identifiers)}"
        )


def _present(pairs: dict[KeySelector, str | None]) -> dict[KeySelector, str]:
    return {selector: value for selector, value in pairs.items() if value}


@dataclass(frozen=True)
class CollectionInvalidation:
    """A collection was created, updated, deleted or changed status."""

    family: ClassVar[EntityFamily] = EntityFamily.COLLECTION

    id: str | None = None
    slug: str | None = None
    scope: InvalidationScope = InvalidationScope.SINGLE

    def __post_init__(self) -> None:
        _check_scope(self.scope, self.identifiers())

    @classmethod
    def all(cls) -> "CollectionInvalidation":
        return cls(scope=InvalidationScope.ALL)

    def identifiers(self) -> dict[KeySelector, str]:
        """Selector -> value for every identifier present on the event."""
        return _present({KeySelector.BY_ID: self.id, KeySelector.BY_SLUG: self.slug})


@dataclass(frozen=True)
class ProductInvalidation:
    """A product was created, updated, deleted or changed status."""

    family: ClassVar[EntityFamily] = EntityFamily.PRODUCT

    id: str | None = None
    slug: str | None = None
    scope: InvalidationScope = InvalidationScope.SINGLE

    def __post_init__(self) -> None:
        _check_scope(self.scope, self.identifiers())

    @classmethod
    def all(cls) -> "ProductInvalidation":
        return cls(scope=InvalidationScope.ALL)

    def identifiers(self) -> dict[KeySelector, str]:
        return _present({KeySelector.BY_ID: self.id, KeySelector.BY_SLUG: self.slug})


@dataclass(frozen=True)
class VendorInvitationInvalidation:
    """A vendor invitation was sent, verified, revoked or changed status.

    Invitations are looked up by token (verification link) and by vendor
    email, so both are identifiers. vendor_id only affects output-cache tags.
    """

    family: ClassVar[EntityFamily] = EntityFamily.VENDOR_INVITATION

    id: str | None = None
    token: str | None = None
    email: str | None = None
    vendor_id: str | None = None
    scope: InvalidationScope = InvalidationScope.SINGLE

    def __post_init__(self) -> None:
        _check_scope(self.scope, self.identifiers())
        if self.scope is InvalidationScope.ALL and self.vendor_id:
            raise ValueError("Family-wide invalidation must not carry a vendor id")

    @classmethod
    def all(cls) -> "VendorInvitationInvalidation":
        return cls(scope=InvalidationScope.ALL)

    def identifiers(self) -> dict[KeySelector, str]:
        return _present(
            {
                KeySelector.BY_ID: self.id,
                KeySelector.BY_TOKEN: self.token,
                KeySelector.BY_EMAIL: self.email,
            }
        )


InvalidationEvent = Union[
    CollectionInvalidation, ProductInvalidation, VendorInvitationInvalidation
]


def event_for(
    family: EntityFamily,
    *,
    id: str | None = None,
    slug: str | None = None,
    token: str | None = None,
    email: str | None = None,
    vendor_id: str | None = None,
    scope: InvalidationScope = InvalidationScope.SINGLE,
) -> InvalidationEvent:
    """Build the event variant for a family.

    Raises:
        ValueError: If an identifier does not apply to the family (e.g. a
            slug for an invitation) or scope=ALL carries identifiers.
    """
    if family is EntityFamily.VENDOR_INVITATION:
        if slug:
            raise ValueError("Vendor invitations are not keyed by slug")
        return VendorInvitationInvalidation(
            id=id, token=token, email=email, vendor_id=vendor_id, scope=scope
        )
    if token or email or vendor_id:
        raise ValueError(f"{family.value} is keyed by id and slug only")
    if family is EntityFamily.COLLECTION:
        return CollectionInvalidation(id=id, slug=slug, scope=scope)
    return ProductInvalidation(id=id, slug=slug, scope=scope)


def event_from_entity(family: EntityFamily, entity: Mapping[str, Any]) -> InvalidationEvent:
    """Build a single-entity event from a committed entity snapshot."""

    def _str(field: str) -> str | None:
        value = entity.get(field)
        return str(value) if value not in (None, "") else None

    if family is EntityFamily.VENDOR_INVITATION:
        return VendorInvitationInvalidation(
            id=_str("id"),
            token=_str("token"),
            email=_str("vendor_email") or _str("email"),
            vendor_id=_str("vendor_id"),
        )
    return event_for(family, id=_str("id"), slug=_str("slug"))
