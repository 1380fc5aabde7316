"""Presentation-layer dependency injection.

Provides FastAPI Depends() for the cache services. The container is built
once in the lifespan (app.core.container) and read from app.state here;
routes never construct services themselves.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.application.services.cache_admin_service import CacheAdminService
from app.core.container import CacheContainer
from app.domain.exceptions import CacheUnavailableException


def get_container(request: Request) -> CacheContainer:
    """Return the process-scoped cache container (set by the lifespan)."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise CacheUnavailableException("Cache container not initialized")
    return container


ContainerDep = Annotated[CacheContainer, Depends(get_container)]


def get_cache_admin(container: ContainerDep) -> CacheAdminService:
    return container.admin


CacheAdminDep = Annotated[CacheAdminService, Depends(get_cache_admin)]
