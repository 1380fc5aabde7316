"""Application use cases: one entry point per workflow."""

from app.application.use_cases.cache_aware_mutation import CacheAwareMutation

__all__ = [
    "CacheAwareMutation",
]
