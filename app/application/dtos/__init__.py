"""Application DTOs (no infrastructure dependency)."""

from app.application.dtos.cache import (
    CacheHealth,
    CacheInsights,
    CacheMetrics,
    CacheOperationResult,
    CacheStats,
    MutationOutcome,
)

__all__ = [
    "CacheHealth",
    "CacheInsights",
    "CacheMetrics",
    "CacheOperationResult",
    "CacheStats",
    "MutationOutcome",
]
