"""Unit tests for RoleScope and the invalidation event variants."""

import dataclasses

import pytest

from app.domain.enums import EntityFamily, InvalidationScope, KeySelector, RoleKind
from app.domain.value_objects import (
    CollectionInvalidation,
    ProductInvalidation,
    RoleScope,
    VendorInvitationInvalidation,
    event_for,
    event_from_entity,
)


class TestRoleScope:
    @pytest.mark.parametrize(
        "role,user_id,vendor_id,expected",
        [
            ("admin", "U1", None, RoleScope.admin()),
            ("dev", None, None, RoleScope.admin()),
            ("vendor", "U1", "V1", RoleScope.vendor("V1")),
            ("vendor", "U1", None, RoleScope.vendor("U1")),
            ("user", "U1", None, RoleScope.user("U1")),
            (None, None, None, RoleScope.anonymous()),
        ],
    )
    def test_from_session(self, role, user_id, vendor_id, expected: RoleScope) -> None:
        assert RoleScope.from_session(role, user_id, vendor_id) == expected

    def test_subject_required_for_vendor_and_user(self) -> None:
        with pytest.raises(ValueError):
            RoleScope(RoleKind.VENDOR)
        with pytest.raises(ValueError):
            RoleScope(RoleKind.USER, "")

    def test_no_subject_for_admin(self) -> None:
        with pytest.raises(ValueError):
            RoleScope(RoleKind.ADMIN, "U1")

    @pytest.mark.parametrize("text", ["admin", "vendor:V1", "user:U1", "anonymous"])
    def test_parse_round_trips_str(self, text: str) -> None:
        assert str(RoleScope.parse(text)) == text

    def test_parse_empty_and_dev(self) -> None:
        assert RoleScope.parse("") == RoleScope.anonymous()
        assert RoleScope.parse("dev") == RoleScope.admin()

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(ValueError):
            RoleScope.parse("superuser")

    def test_immutable(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            RoleScope.admin().kind = RoleKind.USER  # type: ignore[misc]


class TestInvalidationEvents:
    def test_identifiers_skip_missing_values(self) -> None:
        event = CollectionInvalidation(id="C1")
        assert event.identifiers() == {KeySelector.BY_ID: "C1"}

    def test_family_wide_event_rejects_identifiers(self) -> None:
        with pytest.raises(ValueError):
            ProductInvalidation(id="P1", scope=InvalidationScope.ALL)
        with pytest.raises(ValueError):
            VendorInvitationInvalidation(vendor_id="V1", scope=InvalidationScope.ALL)

    def test_all_constructors(self) -> None:
        assert CollectionInvalidation.all().scope is InvalidationScope.ALL
        assert VendorInvitationInvalidation.all().identifiers() == {}

    def test_event_for_builds_family_variant(self) -> None:
        assert isinstance(event_for(EntityFamily.PRODUCT, slug="p1"), ProductInvalidation)
        invitation = event_for(EntityFamily.VENDOR_INVITATION, token="t", email="a@b.co")
        assert invitation.identifiers() == {
            KeySelector.BY_TOKEN: "t",
            KeySelector.BY_EMAIL: "a@b.co",
        }

    def test_event_for_rejects_foreign_identifiers(self) -> None:
        with pytest.raises(ValueError):
            event_for(EntityFamily.VENDOR_INVITATION, slug="foo")
        with pytest.raises(ValueError):
            event_for(EntityFamily.COLLECTION, token="t")

    def test_event_from_entity(self) -> None:
        event = event_from_entity(EntityFamily.COLLECTION, {"id": 7, "slug": "", "title": "x"})
        assert event == CollectionInvalidation(id="7")

    def test_invitation_from_entity_reads_vendor_email(self) -> None:
        event = event_from_entity(
            EntityFamily.VENDOR_INVITATION,
            {"id": "I1", "token": "t", "vendor_email": "a@b.co", "vendor_id": "V1"},
        )
        assert event == VendorInvitationInvalidation(
            id="I1", token="t", email="a@b.co", vendor_id="V1"
        )
