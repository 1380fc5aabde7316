"""DTOs for cache coordination results, metrics and diagnostics."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.domain.enums import PerformanceLabel

if TYPE_CHECKING:
    from app.domain.exceptions import CacheError


@dataclass(frozen=True)
class CacheOperationResult:
    """Outcome of a best-effort cache operation. Cache services return this instead of raising.

    error holds the message of the first failure; errors holds every failed
    step so a partial fan-out can be reported in full.
    """

    success: bool
    error: str | None = None
    errors: tuple[str, ...] = ()

    @classmethod
    def ok(cls) -> CacheOperationResult:
        return cls(success=True)

    @classmethod
    def failed(cls, *errors: CacheError | str) -> CacheOperationResult:
        """Build a failed result from one or more CacheError (or plain messages)."""
        messages = tuple(e if isinstance(e, str) else e.message for e in errors)
        return cls(
            success=False,
            error=messages[0] if messages else "Unknown cache error",
            errors=messages,
        )


@dataclass(frozen=True)
class CacheStats:
    """Store introspection (parsed from INFO memory/stats/server and DBSIZE)."""

    total_keys: int
    memory_usage: str
    evicted_keys: int
    uptime_seconds: int
    peak_memory_usage: str
    max_memory_policy: str


@dataclass(frozen=True)
class CacheMetrics:
    """Aggregated hit/miss metrics of this process (rates in percent, latency in ms)."""

    hit_rate: float
    miss_rate: float
    total_requests: int
    avg_latency: float
    cache_size: int
    memory_usage: str
    error_rate: float = 0.0
    alerting: bool = False


@dataclass(frozen=True)
class CacheInsights:
    """Advisory performance label and recommendations. Never acted on automatically."""

    performance: PerformanceLabel
    recommendations: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CacheHealth:
    """Cache health snapshot for the diagnostics surface."""

    available: bool
    memory_usage: str
    total_keys: int
    metrics: CacheMetrics | None = None
    insights: CacheInsights | None = None


@dataclass(frozen=True)
class MutationOutcome:
    """Committed entity plus the combined result of the cache steps that followed the commit.

    cache_result never affects whether the mutation succeeded.
    """

    entity: Mapping[str, Any] | None
    cache_result: CacheOperationResult
