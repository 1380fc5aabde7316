"""Cache key and output-cache tag builders. Single place for key format (DRY).

Key components (ids, slugs, tokens, emails, scope subjects) must not
contain CACHE_KEY_SEP; that is what makes the scheme collision-free:
every key is a fixed sequence of separator-delimited segments.

Layout (``<ns>`` is the family, ``<list>`` its plural):
    <ns>:id:<id>            by id
    <ns>:<slug>             by slug (collections, products)
    <ns>:token:<token>      by token (vendor invitations)
    <ns>:email:<email>      by email (vendor invitations)
    <list>:all / <list>:count / <list>:all:metadata
    <list>:admin:all / <list>:admin:count
    <list>:vendor:<vendorId>[:count]
    <list>:user:<userId>[:count]
"""

from collections.abc import Mapping
from typing import Any

from app.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PATTERN_ANY,
    CACHE_SEGMENT_ADMIN,
    CACHE_SEGMENT_ALL,
    CACHE_SEGMENT_COUNT,
    CACHE_SEGMENT_EMAIL,
    CACHE_SEGMENT_ID,
    CACHE_SEGMENT_METADATA,
    CACHE_SEGMENT_TOKEN,
    CACHE_SEGMENT_USER,
    CACHE_SEGMENT_VENDOR,
    FAMILY_PATHS,
    FAMILY_TAGS,
    TAG_SUFFIX_BY_EMAIL,
    TAG_SUFFIX_BY_ID,
    TAG_SUFFIX_BY_SLUG,
    TAG_SUFFIX_BY_TOKEN,
    TAG_VENDOR_BY_ID,
)
from app.domain.enums import EntityFamily, KeySelector, RevalidateMode, RoleKind
from app.domain.value_objects.core import RoleScope
from app.domain.value_objects.invalidation_event import (
    InvalidationEvent,
    VendorInvitationInvalidation,
    event_from_entity,
)

# Identifier selectors each family is keyed by
FAMILY_SELECTORS: dict[EntityFamily, tuple[KeySelector, ...]] = {
    EntityFamily.COLLECTION: (KeySelector.BY_ID, KeySelector.BY_SLUG),
    EntityFamily.PRODUCT: (KeySelector.BY_ID, KeySelector.BY_SLUG),
    EntityFamily.VENDOR_INVITATION: (
        KeySelector.BY_ID,
        KeySelector.BY_TOKEN,
        KeySelector.BY_EMAIL,
    ),
}

_TAG_SUFFIXES: dict[KeySelector, str] = {
    KeySelector.BY_ID: TAG_SUFFIX_BY_ID,
    KeySelector.BY_SLUG: TAG_SUFFIX_BY_SLUG,
    KeySelector.BY_TOKEN: TAG_SUFFIX_BY_TOKEN,
    KeySelector.BY_EMAIL: TAG_SUFFIX_BY_EMAIL,
}


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value is empty or contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value is empty or contains CACHE_KEY_SEP.
    """
    if not value:
        raise ValueError(f"Cache key component {name!r} must be a non-empty string")
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def _join(*parts: str) -> str:
    return CACHE_KEY_SEP.join(parts)


def _family(family: EntityFamily | str) -> EntityFamily:
    return family if isinstance(family, EntityFamily) else EntityFamily(family)


def _selector(selector: KeySelector | str) -> KeySelector:
    return selector if isinstance(selector, KeySelector) else KeySelector(selector)


def entity_key(family: EntityFamily, selector: KeySelector, value: str) -> str:
    """Cache key for one entity looked up by an identifier selector.

    Raises:
        ValueError: If the family is not keyed by that selector or value is invalid.
    """
    if selector not in FAMILY_SELECTORS[family]:
        raise ValueError(f"{family.value} is not keyed by {selector.value}")
    _validate_key_component(value, selector.value)
    if selector is KeySelector.BY_ID:
        return _join(family.value, CACHE_SEGMENT_ID, value)
    if selector is KeySelector.BY_SLUG:
        return _join(family.value, value)
    if selector is KeySelector.BY_TOKEN:
        return _join(family.value, CACHE_SEGMENT_TOKEN, value)
    return _join(family.value, CACHE_SEGMENT_EMAIL, value)


def list_key(family: EntityFamily) -> str:
    """Global (unscoped) list key, e.g. collections:all."""
    return _join(family.plural, CACHE_SEGMENT_ALL)


def count_key(family: EntityFamily) -> str:
    """Global (unscoped) count key, e.g. collections:count."""
    return _join(family.plural, CACHE_SEGMENT_COUNT)


def metadata_key(family: EntityFamily) -> str:
    """Lightweight list metadata key (ids, titles), e.g. collections:all:metadata."""
    return _join(family.plural, CACHE_SEGMENT_ALL, CACHE_SEGMENT_METADATA)


def key_for(
    family: EntityFamily | str,
    selector: KeySelector | str,
    value: str | None = None,
) -> str:
    """Resolve (family, selector, value) to a cache key.

    Accepts enum members or their string values, e.g.
    ``key_for("collection", "by-id", "123") == "collection:id:123"``.

    Raises:
        ValueError: On unknown family/selector, missing value for an
            identifier selector, or a value for a list selector.
    """
    fam = _family(family)
    sel = _selector(selector)
    if sel in _TAG_SUFFIXES:
        if value is None:
            raise ValueError(f"Selector {sel.value!r} requires a value")
        return entity_key(fam, sel, value)
    if value is not None:
        raise ValueError(f"Selector {sel.value!r} does not take a value")
    if sel is KeySelector.ALL:
        return list_key(fam)
    if sel is KeySelector.COUNT:
        return count_key(fam)
    return metadata_key(fam)


def scoped_list_key(family: EntityFamily, scope: RoleScope) -> str:
    """List key for a role scope; anonymous reads share the global list key."""
    if scope.kind is RoleKind.ADMIN:
        return _join(family.plural, CACHE_SEGMENT_ADMIN, CACHE_SEGMENT_ALL)
    if scope.kind is RoleKind.ANONYMOUS:
        return list_key(family)
    subject = scope.subject_id or ""
    _validate_key_component(subject, f"{scope.kind.value}_id")
    segment = CACHE_SEGMENT_VENDOR if scope.kind is RoleKind.VENDOR else CACHE_SEGMENT_USER
    return _join(family.plural, segment, subject)


def scoped_count_key(family: EntityFamily, scope: RoleScope) -> str:
    """Count key for a role scope; anonymous reads share the global count key."""
    if scope.kind is RoleKind.ADMIN:
        return _join(family.plural, CACHE_SEGMENT_ADMIN, CACHE_SEGMENT_COUNT)
    if scope.kind is RoleKind.ANONYMOUS:
        return count_key(family)
    return _join(scoped_list_key(family, scope), CACHE_SEGMENT_COUNT)


def list_keys(family: EntityFamily) -> list[str]:
    """Every list/count key that is not per-subject (global, metadata, admin)."""
    admin = RoleScope.admin()
    return [
        list_key(family),
        count_key(family),
        metadata_key(family),
        scoped_list_key(family, admin),
        scoped_count_key(family, admin),
    ]


def scoped_patterns(family: EntityFamily) -> list[str]:
    """Glob patterns covering every vendor- and user-scoped list/count key."""
    return [
        _join(family.plural, CACHE_SEGMENT_USER, CACHE_PATTERN_ANY),
        _join(family.plural, CACHE_SEGMENT_VENDOR, CACHE_PATTERN_ANY),
    ]


def namespace_patterns(family: EntityFamily) -> list[str]:
    """Glob patterns covering the whole family (entity and list namespaces)."""
    return [
        _join(family.value, CACHE_PATTERN_ANY),
        _join(family.plural, CACHE_PATTERN_ANY),
    ]


def identifier_keys(family: EntityFamily, identifiers: Mapping[KeySelector, str]) -> list[str]:
    """Entity keys for the identifiers present on an event or entity."""
    return [entity_key(family, selector, value) for selector, value in identifiers.items()]


def entity_keys(family: EntityFamily, entity: Mapping[str, Any]) -> dict[KeySelector, str]:
    """Selector -> key for every identifier an entity snapshot carries."""
    identifiers = event_from_entity(family, entity).identifiers()
    return {
        selector: entity_key(family, selector, value)
        for selector, value in identifiers.items()
    }


def tags_for(family: EntityFamily | str) -> list[str]:
    """Static output-cache tags for a family (including cross-family tags)."""
    return list(FAMILY_TAGS[_family(family)])


def identifier_tag(family: EntityFamily, selector: KeySelector, value: str) -> str:
    """Id/slug/token/email-qualified tag, e.g. collection-by-id:123."""
    return f"{family.value}{_TAG_SUFFIXES[selector]}{CACHE_KEY_SEP}{value}"


def tags_for_event(event: InvalidationEvent) -> list[str]:
    """Static family tags plus one qualified tag per identifier on the event."""
    tags = tags_for(event.family)
    for selector, value in event.identifiers().items():
        tags.append(identifier_tag(event.family, selector, value))
    if isinstance(event, VendorInvitationInvalidation) and event.vendor_id:
        tags.append(f"{TAG_VENDOR_BY_ID}{CACHE_KEY_SEP}{event.vendor_id}")
    return tags


def paths_for(family: EntityFamily) -> list[tuple[str, RevalidateMode | None]]:
    """List and detail routes rendered from the family's data."""
    return list(FAMILY_PATHS[family])


def collection_key(collection_id: str) -> str:
    """Cache key for collection by ID."""
    return entity_key(EntityFamily.COLLECTION, KeySelector.BY_ID, collection_id)


def collection_slug_key(slug: str) -> str:
    """Cache key for collection by slug."""
    return entity_key(EntityFamily.COLLECTION, KeySelector.BY_SLUG, slug)


def product_key(product_id: str) -> str:
    """Cache key for product by ID."""
    return entity_key(EntityFamily.PRODUCT, KeySelector.BY_ID, product_id)


def product_slug_key(slug: str) -> str:
    """Cache key for product by slug."""
    return entity_key(EntityFamily.PRODUCT, KeySelector.BY_SLUG, slug)


def invitation_token_key(token: str) -> str:
    """Cache key for vendor invitation by verification token."""
    return entity_key(EntityFamily.VENDOR_INVITATION, KeySelector.BY_TOKEN, token)


def invitation_email_key(email: str) -> str:
    """Cache key for vendor invitation by vendor email."""
    return entity_key(EntityFamily.VENDOR_INVITATION, KeySelector.BY_EMAIL, email)
