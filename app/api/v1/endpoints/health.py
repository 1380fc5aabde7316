"""Health check endpoint; used for liveness probes. Cache outages do not fail it."""

from fastapi import APIRouter

from app.api.v1.dependencies import ContainerDep
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check(container: ContainerDep) -> HealthResponse:
    """Return ok plus whether Redis is currently connected."""
    available = container.cache.is_available()
    return HealthResponse(cache="available" if available else "unavailable")
