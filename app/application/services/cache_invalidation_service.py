"""Invalidation fan-out: expand one committed mutation into every cache entry it affects.

Given an InvalidationEvent, invalidates the family's output-cache tags
(plus id/slug/token/email-qualified tags) and routes, deletes the list,
count and entity keys from the key-value store, and pattern-invalidates
role-scoped list/count variants, including those of dependent families
(product listings embed collection data).

Every unit of work (one tag, one path, one key batch, one pattern) runs
independently: a failure is logged and reported in the result while the
remaining units still run. Running the same event again yields the same
end state, so callers fire and do not verify.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from app.application.dtos.cache import CacheOperationResult
from app.core.constants import FAMILY_DEPENDENTS, ROOT_PATH
from app.domain.enums import EntityFamily, InvalidationScope, RevalidateMode
from app.domain.exceptions import CacheError
from app.infrastructure.cache import keys
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, add_span_event, traced

if TYPE_CHECKING:
    from app.application.interfaces.services import IOutputCache
    from app.domain.value_objects.invalidation_event import InvalidationEvent
    from app.infrastructure.cache.cache_protocol import CacheProtocol

logger = get_logger(__name__)


class CacheInvalidationService:
    """Fan-out engine shared by every mutation path (one instance per process)."""

    def __init__(self, cache: CacheProtocol, output_cache: IOutputCache) -> None:
        self.cache = cache
        self.output_cache = output_cache

    async def _run_step(
        self,
        operation: str,
        target: str,
        step: Callable[[], Awaitable[bool | None]],
        errors: list[CacheError],
    ) -> None:
        """Run one unit of work; log and collect its failure instead of aborting."""
        try:
            ok = await step()
        except Exception as e:
            logger.exception("Cache %s failed for %s", operation, target)
            add_span_event("cache.step_failed", {"operation": operation, "target": target})
            errors.append(CacheError(operation, str(e), target))
            return
        if ok is False:
            logger.warning("Cache %s rejected for %s", operation, target)
            errors.append(CacheError(operation, "store rejected the operation", target))

    async def _invalidate_tags(self, tags: list[str], errors: list[CacheError]) -> None:
        for tag in tags:
            await self._run_step(
                "invalidate_tag", tag, lambda t=tag: self.output_cache.invalidate_tag(t), errors
            )

    async def _invalidate_paths(self, family: EntityFamily, errors: list[CacheError]) -> None:
        for path, mode in keys.paths_for(family):
            await self._run_step(
                "invalidate_path",
                path,
                lambda p=path, m=mode: self.output_cache.invalidate_path(p, m),
                errors,
            )

    async def _delete_keys(self, key_list: list[str], errors: list[CacheError]) -> None:
        if not self.cache.is_available() or not key_list:
            return
        await self._run_step(
            "delete_keys", ", ".join(key_list), lambda: self.cache.delete(*key_list), errors
        )

    async def _delete_patterns(self, patterns: list[str], errors: list[CacheError]) -> None:
        if not self.cache.is_available():
            return
        for pattern in patterns:
            await self._run_step(
                "delete_pattern",
                pattern,
                lambda p=pattern: self._delete_pattern(p),
                errors,
            )

    async def _delete_pattern(self, pattern: str) -> None:
        await self.cache.delete_pattern(pattern)

    def _target_keys(self, event: InvalidationEvent) -> list[str]:
        """Global list/count/admin keys, entity keys, and dependents' list keys."""
        family = event.family
        key_list = keys.list_keys(family)
        key_list.extend(keys.identifier_keys(family, event.identifiers()))
        for dependent in FAMILY_DEPENDENTS[family]:
            key_list.extend(keys.list_keys(dependent))
        return key_list

    def _target_patterns(self, event: InvalidationEvent) -> list[str]:
        """Role-scoped patterns of the family and its dependents, or the whole namespace for ALL."""
        family = event.family
        if event.scope is InvalidationScope.ALL:
            patterns = keys.namespace_patterns(family)
        else:
            patterns = keys.scoped_patterns(family)
        for dependent in FAMILY_DEPENDENTS[family]:
            patterns.extend(keys.scoped_patterns(dependent))
        return patterns

    @traced("cache.invalidate")
    async def invalidate(self, event: InvalidationEvent) -> CacheOperationResult:
        """Invalidate every output-cache tag/route and store entry affected by event.

        Args:
            event: Committed mutation (family, identifiers, scope).

        Returns:
            CacheOperationResult; success is False if any unit failed. Never raises.
        """
        family = event.family
        add_span_attributes(entity_family=family.value, scope=event.scope.value)
        errors: list[CacheError] = []

        tags = keys.tags_for(family)
        if event.scope is InvalidationScope.SINGLE:
            tags = keys.tags_for_event(event)
        await self._invalidate_tags(tags, errors)
        await self._invalidate_paths(family, errors)

        if event.scope is InvalidationScope.ALL:
            dependent_keys = [k for d in FAMILY_DEPENDENTS[family] for k in keys.list_keys(d)]
            await self._delete_keys(dependent_keys, errors)
        else:
            try:
                target_keys = self._target_keys(event)
            except ValueError as e:
                logger.warning("Cannot resolve cache keys for %s: %s", event, e)
                errors.append(CacheError("resolve_keys", str(e)))
                target_keys = keys.list_keys(family)
            await self._delete_keys(target_keys, errors)
        await self._delete_patterns(self._target_patterns(event), errors)

        if errors:
            logger.warning(
                "Invalidated %s caches with %s failed step(s): %s",
                family.value,
                len(errors),
                event,
            )
            return CacheOperationResult.failed(*errors)
        logger.info("Invalidated %s caches: %s", family.value, event)
        return CacheOperationResult.ok()

    async def invalidate_many(self, events: list[InvalidationEvent]) -> CacheOperationResult:
        """Invalidate several events; result aggregates every failure."""
        failures: list[str] = []
        for event in events:
            result = await self.invalidate(event)
            failures.extend(result.errors)
        return CacheOperationResult.failed(*failures) if failures else CacheOperationResult.ok()

    async def invalidate_root(self) -> None:
        """Revalidate the landing route (used by full clears)."""
        await self.output_cache.invalidate_path(ROOT_PATH, RevalidateMode.LAYOUT)
