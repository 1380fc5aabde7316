"""Cache diagnostics and admin API: metrics, stats, health, revalidate, clear.

Revalidate and clear are development-only (403 elsewhere). Stats return
503 when Redis is disabled or unreachable.
"""

from dataclasses import asdict

from fastapi import APIRouter

from app.api.v1.dependencies import CacheAdminDep
from app.schemas.cache import (
    CacheHealthResponse,
    CacheMetricsResponse,
    CacheOperationResponse,
    CacheStatsResponse,
    RevalidateRequest,
)

router = APIRouter()


@router.get("/metrics", response_model=CacheMetricsResponse)
async def get_cache_metrics(admin: CacheAdminDep) -> CacheMetricsResponse:
    """Hit/miss metrics of this instance with performance insights."""
    metrics, insights = await admin.get_insights()
    return CacheMetricsResponse(metrics=asdict(metrics), insights=asdict(insights))


@router.post("/metrics/reset", status_code=204)
def reset_cache_metrics(admin: CacheAdminDep) -> None:
    """Clear hit/miss counters, latency samples and alert state."""
    admin.reset_metrics()


@router.get(
    "/stats",
    response_model=CacheStatsResponse,
    responses={503: {"description": "Redis disabled or unreachable"}},
)
async def get_cache_stats(admin: CacheAdminDep) -> CacheStatsResponse:
    """Redis memory, key count, evictions and uptime."""
    stats = await admin.get_stats()
    return CacheStatsResponse(**asdict(stats))


@router.get("/health", response_model=CacheHealthResponse)
async def get_cache_health(admin: CacheAdminDep) -> CacheHealthResponse:
    """Availability with metrics and insights; 200 even when Redis is down."""
    health = await admin.health_check()
    return CacheHealthResponse(**asdict(health))


@router.post(
    "/revalidate",
    response_model=CacheOperationResponse,
    responses={403: {"description": "Not in development environment"}},
)
async def revalidate_cache(
    body: RevalidateRequest, admin: CacheAdminDep
) -> CacheOperationResponse:
    """Run the invalidation fan-out for a family (optionally one entity) or everything."""
    result = await admin.revalidate(body.target, entity_id=body.id, slug=body.slug)
    return CacheOperationResponse(**asdict(result))


@router.post(
    "/clear",
    response_model=CacheOperationResponse,
    responses={403: {"description": "Not in development environment"}},
)
async def clear_cache(admin: CacheAdminDep) -> CacheOperationResponse:
    """Flush Redis and revalidate every output-cache tag and route."""
    result = await admin.clear_all()
    return CacheOperationResponse(**asdict(result))
