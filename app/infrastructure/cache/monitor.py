"""In-process cache monitor: hit/miss counters, latency samples, error-rate alerting.

State is per process and unsynchronized; in a multi-instance deployment
each instance reports only its own traffic. Construct one CacheMonitor per
process (see app.core.container) and pass it to the services that read
through the cache.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from app.application.dtos.cache import CacheInsights, CacheMetrics, CacheStats
from app.domain.enums import PerformanceLabel

if TYPE_CHECKING:
    from app.infrastructure.cache.cache_protocol import CacheProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Insight thresholds
EXCELLENT_HIT_RATE = 80
GOOD_HIT_RATE = 60
SLOW_LATENCY_MS = 100
LARGE_CACHE_KEYS = 1000


def _round2(value: float) -> float:
    return round(value, 2)


class CacheMonitor:
    """Records hits, misses and latency; derives CacheMetrics on demand.

    Also tracks the outcome (ok / failed) of adapter operations over a
    rolling window. When the failure ratio reaches alert_threshold with at
    least alert_min_samples outcomes in the window, a single ERROR "alert"
    is logged and the monitor stays in the alerting state until the ratio
    drops below the threshold again.
    """

    def __init__(
        self,
        max_samples: int = 10_000,
        alert_threshold: float = 0.5,
        alert_window: int = 100,
        alert_min_samples: int = 20,
    ) -> None:
        self._latencies: deque[float] = deque(maxlen=max_samples)
        self._outcomes: deque[bool] = deque(maxlen=alert_window)
        self.alert_threshold = alert_threshold
        self.alert_min_samples = alert_min_samples
        self.hits = 0
        self.misses = 0
        self.alerting = False

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    def record_hit(self, latency_ms: float) -> None:
        self.hits += 1
        self._latencies.append(latency_ms)

    def record_miss(self, latency_ms: float) -> None:
        self.misses += 1
        self._latencies.append(latency_ms)

    @property
    def error_rate(self) -> float:
        """Failure ratio (0..1) of adapter operations in the current window."""
        if not self._outcomes:
            return 0.0
        return self._outcomes.count(False) / len(self._outcomes)

    def record_outcome(self, ok: bool, operation: str) -> None:
        """Record an adapter operation outcome and escalate on a sustained error rate.

        Args:
            ok: Whether the store call succeeded.
            operation: Adapter operation name (for the alert message).
        """
        self._outcomes.append(ok)
        if len(self._outcomes) < self.alert_min_samples:
            return
        rate = self.error_rate
        if rate >= self.alert_threshold and not self.alerting:
            self.alerting = True
            logger.error(
                "Cache error rate %.1f%% over last %s operations exceeds %.1f%% "
                "(latest failure: %s). Requests are falling back to the database.",
                rate * 100,
                len(self._outcomes),
                self.alert_threshold * 100,
                operation,
            )
        elif rate < self.alert_threshold and self.alerting:
            self.alerting = False
            logger.info("Cache error rate recovered: %.1f%%", rate * 100)

    def get_metrics(self, stats: CacheStats | None = None) -> CacheMetrics:
        """Aggregate counters into CacheMetrics (zeros when there is no traffic).

        Args:
            stats: Optional store stats for cache_size and memory_usage.
        """
        total = self.total_requests
        hit_rate = self.hits / total * 100 if total else 0.0
        miss_rate = self.misses / total * 100 if total else 0.0
        avg_latency = sum(self._latencies) / len(self._latencies) if self._latencies else 0.0
        return CacheMetrics(
            hit_rate=_round2(hit_rate),
            miss_rate=_round2(miss_rate),
            total_requests=total,
            avg_latency=_round2(avg_latency),
            cache_size=stats.total_keys if stats else 0,
            memory_usage=stats.memory_usage if stats else "unknown",
            error_rate=_round2(self.error_rate * 100),
            alerting=self.alerting,
        )

    def reset(self) -> None:
        """Clear counters, latency samples and alert state."""
        self.hits = 0
        self.misses = 0
        self._latencies.clear()
        self._outcomes.clear()
        self.alerting = False

    def log_metrics(self, stats: CacheStats | None = None) -> None:
        """Log a one-line metrics summary at INFO."""
        m = self.get_metrics(stats)
        logger.info(
            "Cache metrics: hit_rate=%s%% miss_rate=%s%% requests=%s avg_latency=%sms "
            "size=%s memory=%s error_rate=%s%%",
            m.hit_rate,
            m.miss_rate,
            m.total_requests,
            m.avg_latency,
            m.cache_size,
            m.memory_usage,
            m.error_rate,
        )


def get_cache_insights(metrics: CacheMetrics) -> CacheInsights:
    """Derive an advisory performance label and recommendations from metrics."""
    if metrics.hit_rate > EXCELLENT_HIT_RATE:
        performance = PerformanceLabel.EXCELLENT
    elif metrics.hit_rate > GOOD_HIT_RATE:
        performance = PerformanceLabel.GOOD
    else:
        performance = PerformanceLabel.NEEDS_IMPROVEMENT

    recommendations: list[str] = []
    if metrics.hit_rate < GOOD_HIT_RATE:
        recommendations.append("Consider increasing cache TTL for frequently accessed data")
        recommendations.append("Review cache invalidation strategy")
    if metrics.avg_latency > SLOW_LATENCY_MS:
        recommendations.append("Consider optimizing database queries")
        recommendations.append("Review cache key structure")
    if metrics.cache_size > LARGE_CACHE_KEYS:
        recommendations.append("Consider implementing cache eviction policies")
    return CacheInsights(performance=performance, recommendations=recommendations)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


async def with_monitoring(
    monitor: CacheMonitor,
    operation: Callable[[], Awaitable[T]],
    key: str,
    is_hit: bool,
) -> T:
    """Run operation, timing it and recording a hit or miss decided by the caller.

    A failing operation is recorded as a miss and its error re-raised.
    """
    start = time.perf_counter()
    try:
        result = await operation()
    except Exception:
        monitor.record_miss(_elapsed_ms(start))
        raise
    if is_hit:
        monitor.record_hit(_elapsed_ms(start))
    else:
        monitor.record_miss(_elapsed_ms(start))
    logger.debug("Monitored %s for %s", "HIT" if is_hit else "MISS", key)
    return result


async def with_smart_monitoring(
    monitor: CacheMonitor,
    cache: CacheProtocol,
    operation: Callable[[], Awaitable[T]],
    key: str,
) -> T:
    """Like with_monitoring, but classifies hit/miss by probing the key before running.

    Callers that serve either cached or fresh data need not know in advance
    which one this call will be.
    """
    is_hit = await cache.exists(key)
    return await with_monitoring(monitor, operation, key, is_hit)
