"""Tests for the cache key and output-cache tag registry."""

import pytest

from app.domain.enums import EntityFamily, KeySelector, RevalidateMode
from app.domain.value_objects.core import RoleScope
from app.domain.value_objects.invalidation_event import (
    CollectionInvalidation,
    VendorInvitationInvalidation,
)
from app.infrastructure.cache import keys


class TestKeyFor:
    def test_is_deterministic(self) -> None:
        assert keys.key_for("collection", "by-id", "123") == "collection:id:123"
        assert keys.key_for("collection", "by-id", "123") == keys.key_for(
            EntityFamily.COLLECTION, KeySelector.BY_ID, "123"
        )

    def test_different_ids_give_different_keys(self) -> None:
        assert keys.key_for("collection", "by-id", "123") != keys.key_for(
            "collection", "by-id", "456"
        )

    def test_entity_selectors(self) -> None:
        assert keys.collection_slug_key("foo") == "collection:foo"
        assert keys.product_key("P1") == "product:id:P1"
        assert keys.product_slug_key("shoe") == "product:shoe"
        assert keys.invitation_token_key("tok") == "vendor-invitation:token:tok"
        assert keys.invitation_email_key("a@b.co") == "vendor-invitation:email:a@b.co"

    def test_list_selectors(self) -> None:
        assert keys.key_for("collection", "all") == "collections:all"
        assert keys.key_for("product", "count") == "products:count"
        assert keys.key_for("collection", "metadata") == "collections:all:metadata"

    def test_separator_in_component_rejected(self) -> None:
        with pytest.raises(ValueError, match="separator"):
            keys.collection_key("a:b")

    def test_empty_component_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            keys.collection_slug_key("")

    def test_selector_must_apply_to_family(self) -> None:
        with pytest.raises(ValueError, match="not keyed by"):
            keys.key_for("vendor-invitation", "by-slug", "x")
        with pytest.raises(ValueError, match="not keyed by"):
            keys.key_for("product", "by-token", "x")

    def test_value_required_for_identifier_selector(self) -> None:
        with pytest.raises(ValueError, match="requires a value"):
            keys.key_for("collection", "by-id")

    def test_value_rejected_for_list_selector(self) -> None:
        with pytest.raises(ValueError, match="does not take a value"):
            keys.key_for("collection", "all", "x")

    def test_unknown_family_rejected(self) -> None:
        with pytest.raises(ValueError):
            keys.key_for("media", "by-id", "1")


class TestScopedKeys:
    def test_admin_keys(self) -> None:
        admin = RoleScope.admin()
        assert keys.scoped_list_key(EntityFamily.COLLECTION, admin) == "collections:admin:all"
        assert keys.scoped_count_key(EntityFamily.COLLECTION, admin) == "collections:admin:count"

    def test_vendor_and_user_keys(self) -> None:
        vendor = RoleScope.vendor("V1")
        user = RoleScope.user("U1")
        assert keys.scoped_list_key(EntityFamily.PRODUCT, vendor) == "products:vendor:V1"
        assert keys.scoped_count_key(EntityFamily.PRODUCT, vendor) == "products:vendor:V1:count"
        assert keys.scoped_list_key(EntityFamily.PRODUCT, user) == "products:user:U1"
        assert keys.scoped_count_key(EntityFamily.PRODUCT, user) == "products:user:U1:count"

    def test_anonymous_uses_global_keys(self) -> None:
        anon = RoleScope.anonymous()
        assert keys.scoped_list_key(EntityFamily.PRODUCT, anon) == "products:all"
        assert keys.scoped_count_key(EntityFamily.PRODUCT, anon) == "products:count"

    def test_scopes_never_share_a_key(self) -> None:
        scopes = [
            RoleScope.admin(),
            RoleScope.vendor("V1"),
            RoleScope.vendor("V2"),
            RoleScope.user("V1"),
            RoleScope.anonymous(),
        ]
        list_keys = {keys.scoped_list_key(EntityFamily.PRODUCT, s) for s in scopes}
        count_keys = {keys.scoped_count_key(EntityFamily.PRODUCT, s) for s in scopes}
        assert len(list_keys) == len(scopes)
        assert len(count_keys) == len(scopes)
        assert not list_keys & count_keys

    def test_scoped_patterns_cover_scoped_keys(self) -> None:
        assert keys.scoped_patterns(EntityFamily.PRODUCT) == [
            "products:user:*",
            "products:vendor:*",
        ]

    def test_namespace_patterns(self) -> None:
        assert keys.namespace_patterns(EntityFamily.COLLECTION) == [
            "collection:*",
            "collections:*",
        ]


class TestTags:
    def test_collection_tags_include_dependents(self) -> None:
        tags = keys.tags_for("collection")
        assert {"collection", "collections", "product", "media"} <= set(tags)

    def test_tags_for_event_adds_qualified_tags(self) -> None:
        tags = keys.tags_for_event(CollectionInvalidation(id="C1", slug="foo"))
        assert "collection-by-id:C1" in tags
        assert "collection-by-slug:foo" in tags

    def test_invitation_tags(self) -> None:
        event = VendorInvitationInvalidation(token="tok", email="v@x.io", vendor_id="V9")
        tags = keys.tags_for_event(event)
        assert "vendor-invitations" in tags
        assert "vendor-invitation-by-token:tok" in tags
        assert "vendor-invitation-by-email:v@x.io" in tags
        assert "vendor-by-id:V9" in tags

    def test_paths_for_collection(self) -> None:
        paths = keys.paths_for(EntityFamily.COLLECTION)
        assert ("/collections", None) in paths
        assert ("/collections/[slug]", RevalidateMode.PAGE) in paths
        assert ("/products", None) in paths


def test_entity_keys_from_snapshot() -> None:
    result = keys.entity_keys(EntityFamily.COLLECTION, {"id": "C1", "slug": "foo", "title": "Foo"})
    assert result == {
        KeySelector.BY_ID: "collection:id:C1",
        KeySelector.BY_SLUG: "collection:foo",
    }


def test_entity_keys_for_invitation_uses_vendor_email() -> None:
    result = keys.entity_keys(
        EntityFamily.VENDOR_INVITATION,
        {"id": "I1", "token": "tok", "vendor_email": "v@x.io"},
    )
    assert result[KeySelector.BY_TOKEN] == "vendor-invitation:token:tok"
    assert result[KeySelector.BY_EMAIL] == "vendor-invitation:email:v@x.io"


def test_list_keys_cover_global_metadata_and_admin() -> None:
    assert keys.list_keys(EntityFamily.COLLECTION) == [
        "collections:all",
        "collections:count",
        "collections:all:metadata",
        "collections:admin:all",
        "collections:admin:count",
    ]
