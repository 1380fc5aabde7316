"""Pytest configuration and fixtures for the cache service.

Stateful tests run against tests.fakes.FakeRedis through the real
CacheService; failure-path tests use AsyncMock clients. HTTP tests use
app.main:app through httpx ASGITransport with a container placed on
app.state (ASGITransport does not run the lifespan).
"""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from app.application.services.cache_invalidation_service import CacheInvalidationService
from app.core.config import Settings
from app.core.container import CacheContainer, build_container
from app.infrastructure.cache.monitor import CacheMonitor
from app.infrastructure.cache.redis_cache import CacheService
from app.main import app
from tests.fakes import FakeRedis, RecordingOutputCache


def make_settings(**overrides: object) -> Settings:
    """Settings independent of the developer's .env."""
    values: dict[str, object] = {"environment": "development", "redis_enabled": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def monitor() -> CacheMonitor:
    return CacheMonitor()


@pytest.fixture
def cache(fake_redis: FakeRedis, settings: Settings, monitor: CacheMonitor) -> CacheService:
    """CacheService over the in-memory Redis."""
    return CacheService(redis_client=fake_redis, settings=settings, monitor=monitor)


@pytest.fixture
def output_cache() -> RecordingOutputCache:
    return RecordingOutputCache()


@pytest.fixture
def invalidation(
    cache: CacheService, output_cache: RecordingOutputCache
) -> CacheInvalidationService:
    return CacheInvalidationService(cache, output_cache)


@pytest.fixture
def container(
    settings: Settings, fake_redis: FakeRedis, output_cache: RecordingOutputCache
) -> CacheContainer:
    return build_container(settings, redis_client=fake_redis, output_cache=output_cache)


@pytest.fixture
async def client(container: CacheContainer) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI) with the test container."""
    app.state.container = container
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        del app.state.container
