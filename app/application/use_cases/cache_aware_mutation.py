"""Cache-aware mutation flow: the sequence every server-side write runs through.

(a) optional optimistic update, (b) commit against the source of truth,
(c) result-cache update with the committed entity, (d) fan-out
invalidation. The caller sees success or failure of the commit only:
cache steps are best-effort and their results are reported, never raised.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from app.application.dtos.cache import CacheOperationResult, MutationOutcome
from app.domain.enums import CacheOperation, EntityFamily, InvalidationScope
from app.domain.exceptions import CacheError
from app.domain.value_objects.invalidation_event import (
    InvalidationEvent,
    event_for,
    event_from_entity,
)
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced

if TYPE_CHECKING:
    from app.application.services.cache_invalidation_service import CacheInvalidationService
    from app.application.services.optimistic_cache_service import OptimisticCacheService

logger = get_logger(__name__)

Commit = Callable[[], Awaitable[Mapping[str, Any] | None]]


def _combine(*results: CacheOperationResult) -> CacheOperationResult:
    errors = [e for r in results for e in r.errors]
    return CacheOperationResult.failed(*errors) if errors else CacheOperationResult.ok()


class CacheAwareMutation:
    """Runs a commit with optimistic, result-cache and fan-out steps around it."""

    def __init__(
        self,
        optimistic: OptimisticCacheService,
        invalidation: CacheInvalidationService,
    ) -> None:
        self.optimistic = optimistic
        self.invalidation = invalidation

    @property
    def family(self) -> EntityFamily:
        return self.optimistic.family

    async def _revert(self, snapshot: Mapping[str, Any]) -> None:
        identifiers = event_from_entity(self.family, snapshot).identifiers()
        if not identifiers:
            return
        result = await self.optimistic.revert(next(iter(identifiers.values())))
        if not result.success:
            logger.warning("Optimistic revert incomplete for %s: %s", self.family.value, result.error)

    def _events(
        self, *snapshots: Mapping[str, Any] | None
    ) -> tuple[list[InvalidationEvent], CacheOperationResult]:
        """Distinct single-entity events for the snapshots that carry an identifier.

        Falls back to a family-wide event when no snapshot identifies the entity.
        """
        events: list[InvalidationEvent] = []
        errors: list[CacheError] = []
        for snapshot in snapshots:
            if snapshot is None:
                continue
            try:
                event = event_from_entity(self.family, snapshot)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Cannot build %s invalidation event: %s", self.family.value, e)
                errors.append(CacheError("resolve_event", str(e)))
                continue
            if event.identifiers() and event not in events:
                events.append(event)
        if not events:
            errors.append(CacheError("resolve_event", "no snapshot identifies the entity"))
            events.append(event_for(self.family, scope=InvalidationScope.ALL))
        return events, CacheOperationResult.failed(*errors) if errors else CacheOperationResult.ok()

    @traced("cache.mutation")
    async def execute(
        self,
        commit: Commit,
        operation: CacheOperation,
        optimistic: Mapping[str, Any] | None = None,
        previous: Mapping[str, Any] | None = None,
    ) -> MutationOutcome:
        """Run one mutation through the cache layer.

        Args:
            commit: Performs the durable write and returns the committed entity
                (for deletes, the deleted entity's last snapshot, or None).
            operation: create, update or delete.
            optimistic: Best-known snapshot to write before committing, if any.
            previous: Entity as it was before the mutation. Its identifiers are
                invalidated too, so a renamed slug does not leave a stale key.

        Returns:
            MutationOutcome with the committed entity and the combined cache result.

        Raises:
            Whatever commit raises, unchanged, after the optimistic write is reverted.
        """
        add_span_attributes(entity_family=self.family.value, operation=operation.value)
        pre = CacheOperationResult.ok()
        if optimistic is not None:
            pre = await self.optimistic.apply_optimistic(optimistic, operation)

        try:
            entity = await commit()
        except Exception:
            if optimistic is not None:
                await self._revert(optimistic)
            raise

        snapshot = entity if entity is not None else optimistic
        if snapshot is None:
            result = CacheOperationResult.failed(
                CacheError("update_with_result", "commit returned no entity")
            )
        else:
            result = await self.optimistic.update_with_result(snapshot, operation)
        events, resolved = self._events(entity, optimistic, previous)
        fan_out = await self.invalidation.invalidate_many(events)
        combined = _combine(pre, result, resolved, fan_out)
        if not combined.success:
            logger.warning(
                "%s %s committed with %s cache error(s): %s",
                self.family.value,
                operation.value,
                len(combined.errors),
                combined.error,
            )
        return MutationOutcome(entity=entity, cache_result=combined)
