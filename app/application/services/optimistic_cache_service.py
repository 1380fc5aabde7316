"""Optimistic update coordinator: speculative entity writes with an invalidation-based rollback.

apply_optimistic writes the best-known snapshot into the entity's by-id /
by-slug (or by-token / by-email) keys before the durable commit and drops
the list/count keys; update_with_result does the same with the committed
entity. revert re-runs the fan-out for the entity: there is no snapshot
undo, invalidation is the correction mechanism.

Every method is best-effort: errors are logged and reported in a
CacheOperationResult, never raised to the mutation path.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.application.dtos.cache import CacheOperationResult
from app.domain.enums import CacheDuration, CacheOperation, EntityFamily, KeySelector
from app.domain.exceptions import CacheError
from app.domain.value_objects.invalidation_event import event_for, event_from_entity
from app.infrastructure.cache import keys
from app.infrastructure.cache.cache_protocol import CacheEntry, Ttl
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from app.application.services.cache_invalidation_service import CacheInvalidationService
    from app.infrastructure.cache.cache_protocol import CacheProtocol

logger = get_logger(__name__)

# Event field carrying each identifier selector
_SELECTOR_FIELDS: dict[KeySelector, str] = {
    KeySelector.BY_ID: "id",
    KeySelector.BY_SLUG: "slug",
    KeySelector.BY_TOKEN: "token",
    KeySelector.BY_EMAIL: "email",
}


class OptimisticCacheService:
    """Optimistic and result-cache writes for one entity family."""

    def __init__(
        self,
        family: EntityFamily,
        cache: CacheProtocol,
        invalidation: CacheInvalidationService,
        ttl: Ttl = CacheDuration.MEDIUM,
    ) -> None:
        self.family = family
        self.cache = cache
        self.invalidation = invalidation
        self.ttl = ttl
        # identifier value -> identity of a pending optimistic write
        self._pending: dict[str, dict[KeySelector, str]] = {}

    def _remember(self, identifiers: dict[KeySelector, str]) -> None:
        for value in identifiers.values():
            self._pending[value] = identifiers

    def _forget(self, identifiers: Mapping[KeySelector, str]) -> None:
        for value in list(identifiers.values()):
            pending = self._pending.pop(value, None)
            for other in (pending or {}).values():
                self._pending.pop(other, None)

    def _fallback_identity(self, id_or_slug: str) -> dict[KeySelector, str]:
        """Identity for an unknown value: try it as id and, where keyed by slug, as slug."""
        identifiers = {KeySelector.BY_ID: id_or_slug}
        if KeySelector.BY_SLUG in keys.FAMILY_SELECTORS[self.family]:
            identifiers[KeySelector.BY_SLUG] = id_or_slug
        return identifiers

    async def _drop_lists(self) -> list[CacheError]:
        """Invalidate (not re-populate) list/count keys and their role-scoped variants."""
        errors: list[CacheError] = []
        if not await self.cache.delete(*keys.list_keys(self.family)):
            errors.append(CacheError("delete_lists", "store rejected the delete"))
        for pattern in keys.scoped_patterns(self.family):
            await self.cache.delete_pattern(pattern)
        return errors

    async def _write(
        self,
        step: str,
        entity: Mapping[str, Any],
        operation: CacheOperation,
    ) -> tuple[CacheOperationResult, dict[KeySelector, str]]:
        event = event_from_entity(self.family, entity)
        identifiers = event.identifiers()
        if not identifiers:
            raise ValueError(f"{self.family.value} entity carries no identifier")
        entity_keys = keys.identifier_keys(self.family, identifiers)

        errors: list[CacheError] = []
        if operation is CacheOperation.DELETE:
            ok = await self.cache.delete(*entity_keys)
        else:
            snapshot = dict(entity)
            ok = await self.cache.mset([CacheEntry(k, snapshot, self.ttl) for k in entity_keys])
        if not ok:
            errors.append(CacheError(step, "store rejected the write", ", ".join(entity_keys)))
        errors.extend(await self._drop_lists())

        if errors:
            for error in errors:
                logger.warning("%s (%s %s)", error.message, self.family.value, identifiers)
            return CacheOperationResult.failed(*errors), identifiers
        logger.debug(
            "Cache %s %s for %s: %s", step, operation.value, self.family.value, entity_keys
        )
        return CacheOperationResult.ok(), identifiers

    @traced("cache.optimistic.apply")
    async def apply_optimistic(
        self, entity: Mapping[str, Any], operation: CacheOperation
    ) -> CacheOperationResult:
        """Speculatively write (create/update) or delete the entity keys before commit.

        Args:
            entity: Best-known entity snapshot (JSON-serializable mapping with id/slug...).
            operation: create, update or delete.

        Returns:
            CacheOperationResult. Never raises.
        """
        add_span_attributes(entity_family=self.family.value, operation=operation.value)
        try:
            result, identifiers = await self._write("apply_optimistic", entity, operation)
        except Exception as e:
            logger.exception("Optimistic cache update failed for %s", self.family.value)
            return CacheOperationResult.failed(CacheError("apply_optimistic", str(e)))
        self._remember(identifiers)
        return result

    @traced("cache.optimistic.update_with_result")
    async def update_with_result(
        self, entity: Mapping[str, Any], operation: CacheOperation
    ) -> CacheOperationResult:
        """Write the committed entity into its keys (or delete them) and drop list/count keys."""
        add_span_attributes(entity_family=self.family.value, operation=operation.value)
        try:
            result, identifiers = await self._write("update_with_result", entity, operation)
        except Exception as e:
            logger.exception("Result cache update failed for %s", self.family.value)
            return CacheOperationResult.failed(CacheError("update_with_result", str(e)))
        self._forget(identifiers)
        return result

    @traced("cache.optimistic.revert")
    async def revert(self, id_or_slug: str) -> CacheOperationResult:
        """Undo an optimistic write by re-running the fan-out for that entity.

        Args:
            id_or_slug: Any identifier the optimistic write was applied with.

        Returns:
            The fan-out result. Never raises.
        """
        add_span_attributes(entity_family=self.family.value)
        identifiers = self._pending.get(id_or_slug) or self._fallback_identity(id_or_slug)
        try:
            event = event_for(
                self.family,
                **{_SELECTOR_FIELDS[selector]: value for selector, value in identifiers.items()},
            )
        except ValueError as e:
            logger.warning("Cannot revert %s %s: %s", self.family.value, id_or_slug, e)
            return CacheOperationResult.failed(CacheError("revert", str(e), id_or_slug))
        self._forget(identifiers)
        result = await self.invalidation.invalidate(event)
        logger.info("Reverted optimistic %s cache for %s", self.family.value, id_or_slug)
        return result
