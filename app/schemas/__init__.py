"""API request/response schemas (pydantic)."""

from app.schemas.cache import (
    CacheHealthResponse,
    CacheMetricsResponse,
    CacheOperationResponse,
    CacheStatsResponse,
    RevalidateRequest,
)
from app.schemas.health import HealthResponse

__all__ = [
    "CacheHealthResponse",
    "CacheMetricsResponse",
    "CacheOperationResponse",
    "CacheStatsResponse",
    "HealthResponse",
    "RevalidateRequest",
]
