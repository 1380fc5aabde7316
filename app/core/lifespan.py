"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of the cache container. Telemetry is
set up in create_app (instrumentation adds middleware, which must happen
before the app starts); its spans are flushed here on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.core.container import build_container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: build the cache container (unless one is already on
    app.state, e.g. in tests) and connect Redis when enabled. Shutdown:
    disconnect Redis, close the output-cache HTTP client, flush telemetry.
    """
    # ---- Startup ----
    container = getattr(app.state, "container", None)
    if container is None:
        container = build_container(get_settings())
        app.state.container = container
    await container.startup()

    yield

    # ---- Shutdown ----
    await container.shutdown()
    logger.info("Cache container shut down")

    telemetry = getattr(app.state, "telemetry", None)
    if telemetry is not None:
        telemetry.shutdown()
