"""Domain value objects for the back-office cache layer.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

from dataclasses import dataclass

from app.domain.enums import RoleKind

# Roles that see every row (no per-owner filtering on list/count reads).
UNSCOPED_ROLES = frozenset({"admin", "dev"})


@dataclass(frozen=True)
class RoleScope:
    """Access partition a cached list/count read belongs to.

    ``admin`` and ``dev`` sessions are unscoped; vendors are scoped by vendor
    id, other signed-in users by user id; no session is anonymous. The scope
    is encoded into the cache key so partitions never share a slot.
    """

    kind: RoleKind
    subject_id: str | None = None

    def __post_init__(self) -> None:
        needs_subject = self.kind in (RoleKind.VENDOR, RoleKind.USER)
        if needs_subject and not self.subject_id:
            raise ValueError(f"{self.kind.value} scope requires a subject id")
        if not needs_subject and self.subject_id is not None:
            raise ValueError(f"{self.kind.value} scope must not carry a subject id")

    @classmethod
    def admin(cls) -> "RoleScope":
        return cls(RoleKind.ADMIN)

    @classmethod
    def vendor(cls, vendor_id: str) -> "RoleScope":
        return cls(RoleKind.VENDOR, vendor_id)

    @classmethod
    def user(cls, user_id: str) -> "RoleScope":
        return cls(RoleKind.USER, user_id)

    @classmethod
    def anonymous(cls) -> "RoleScope":
        return cls(RoleKind.ANONYMOUS)

    @classmethod
    def from_session(
        cls,
        role: str | None,
        user_id: str | None,
        vendor_id: str | None = None,
    ) -> "RoleScope":
        """Resolve the scope for a requester.

        Args:
            role: Session role (e.g. 'admin', 'dev', 'vendor', 'user') or None.
            user_id: Session user id, if signed in.
            vendor_id: Vendor id for vendor sessions; falls back to user_id.

        Returns:
            RoleScope matching the rows the requester may see.
        """
        if role in UNSCOPED_ROLES:
            return cls.admin()
        if role == RoleKind.VENDOR.value and (vendor_id or user_id):
            return cls.vendor(vendor_id or user_id)  # type: ignore[arg-type]
        if user_id:
            return cls.user(user_id)
        return cls.anonymous()

    @classmethod
    def parse(cls, value: str | None) -> "RoleScope":
        """Parse the textual form: 'admin', 'dev', 'vendor:<id>', 'user:<id>', '' or 'anonymous'."""
        if not value or value == RoleKind.ANONYMOUS.value:
            return cls.anonymous()
        if value in UNSCOPED_ROLES:
            return cls.admin()
        kind, sep, subject = value.partition(":")
        if sep and kind == RoleKind.VENDOR.value:
            return cls.vendor(subject)
        if sep and kind == RoleKind.USER.value:
            return cls.user(subject)
        raise ValueError(f"Unrecognized role scope: {value!r}")

    def __str__(self) -> str:
        if self.subject_id is None:
            return self.kind.value
        return f"{self.kind.value}:{self.subject_id}"
