"""Unit tests for CacheService (Redis client adapter)."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
import redis.asyncio as redis

from app.core.config import Settings
from app.domain.enums import CacheDuration
from app.infrastructure.cache.cache_protocol import CacheEntry
from app.infrastructure.cache.monitor import CacheMonitor
from app.infrastructure.cache.redis_cache import CacheService
from tests.conftest import make_settings
from tests.fakes import FakeRedis


def _failing_client() -> MagicMock:
    """Client whose every command raises a connection error."""
    client = MagicMock()
    error = redis.ConnectionError("connection refused")
    for command in ("get", "set", "setex", "delete", "unlink", "exists", "mget", "flushdb", "info", "dbsize"):
        setattr(client, command, AsyncMock(side_effect=error))
    client.scan_iter = MagicMock(side_effect=error)
    client.pipeline = MagicMock(side_effect=error)
    return client


class TestGetSet:
    async def test_set_then_get_round_trips_json(self, cache: CacheService) -> None:
        assert await cache.set("collection:id:C1", {"id": "C1", "tags": ["a"]}) is True
        assert await cache.get("collection:id:C1") == {"id": "C1", "tags": ["a"]}

    async def test_ttl_class_resolved_from_settings(
        self, cache: CacheService, fake_redis: FakeRedis, settings: Settings
    ) -> None:
        await cache.set("k1", 1, CacheDuration.SHORT)
        await cache.set("k2", 1, CacheDuration.LONG)
        await cache.set("k3", 1, 42)
        assert fake_redis.ttls["k1"] == settings.cache_ttl_short
        assert fake_redis.ttls["k2"] == settings.cache_ttl_long
        assert fake_redis.ttls["k3"] == 42

    async def test_default_ttl_is_medium(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        await cache.set("k", "v")
        assert fake_redis.ttls["k"] == 300

    async def test_missing_key_is_none(self, cache: CacheService) -> None:
        assert await cache.get("nope") is None

    async def test_malformed_payload_is_a_miss(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        fake_redis.store["broken"] = "{not json"
        assert await cache.get("broken") is None

    async def test_set_encodes_datetime_uuid_and_decimal(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        value = {
            "created_at": datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
            "owner": UUID("12345678-1234-5678-1234-567812345678"),
            "price": Decimal("9.99"),
        }
        assert await cache.set("k", value, CacheDuration.SHORT) is True
        assert await cache.get("k") == {
            "created_at": "2024-05-01T12:30:00Z",
            "owner": "12345678-1234-5678-1234-567812345678",
            "price": "9.99",
        }

    async def test_unserializable_value_is_not_stored(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        assert await cache.set("k", object()) is False
        assert "k" not in fake_redis.store

    async def test_unavailable_cache_degrades(self, settings: Settings) -> None:
        service = CacheService(settings=settings)
        assert service.is_available() is False
        assert await service.get("k") is None
        assert await service.set("k", 1) is False
        assert await service.delete("k") is False
        assert await service.delete_pattern("k*") == 0
        assert await service.mget(["a", "b"]) == [None, None]
        assert await service.get_stats() is None


class TestNeverThrows:
    async def test_every_operation_degrades_when_store_raises(self, settings: Settings) -> None:
        service = CacheService(redis_client=_failing_client(), settings=settings)
        assert await service.get("k") is None
        assert await service.set("k", 1) is False
        assert await service.delete("a", "b") is False
        assert await service.delete_pattern("products:*") == 0
        assert await service.exists("k") is False
        assert await service.mget(["a", "b"]) == [None, None]
        assert await service.mset([CacheEntry("a", 1)]) is False
        assert await service.get_stats() is None
        assert await service.clear_all() is False

    async def test_failures_are_reported_to_monitor(self, settings: Settings) -> None:
        monitor = CacheMonitor(alert_min_samples=1, alert_window=10)
        service = CacheService(redis_client=_failing_client(), settings=settings, monitor=monitor)
        await service.get("k")
        await service.set("k", 1)
        assert monitor.error_rate == 1.0
        assert monitor.alerting is True


class TestRetry:
    async def test_get_with_retry_succeeds_on_third_attempt(self, settings: Settings) -> None:
        client = MagicMock()
        client.get = AsyncMock(
            side_effect=[redis.TimeoutError(), redis.ConnectionError(), json.dumps({"ok": 1})]
        )
        service = CacheService(redis_client=client, settings=settings)
        with patch(
            "app.infrastructure.cache.redis_cache.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            assert await service.get_with_retry("k", 3) == {"ok": 1}
        assert client.get.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [0.1, 0.2]

    async def test_get_with_retry_gives_up_after_attempts(self, settings: Settings) -> None:
        client = MagicMock()
        client.get = AsyncMock(side_effect=redis.ConnectionError())
        service = CacheService(redis_client=client, settings=settings)
        with patch(
            "app.infrastructure.cache.redis_cache.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            assert await service.get_with_retry("k", 3) is None
        assert client.get.await_count == 3
        assert sleep.await_count == 2

    async def test_retry_count_defaults_to_settings(self) -> None:
        client = MagicMock()
        client.get = AsyncMock(side_effect=OSError("reset"))
        service = CacheService(redis_client=client, settings=make_settings(cache_retry_attempts=5))
        with patch("app.infrastructure.cache.redis_cache.asyncio.sleep", new_callable=AsyncMock):
            assert await service.get_with_retry("k") is None
        assert client.get.await_count == 5

    async def test_set_with_retry_retries_store_errors(self, settings: Settings) -> None:
        client = MagicMock()
        client.setex = AsyncMock(side_effect=[redis.ConnectionError(), True])
        service = CacheService(redis_client=client, settings=settings)
        with patch(
            "app.infrastructure.cache.redis_cache.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            assert await service.set_with_retry("k", {"v": 1}, CacheDuration.SHORT) is True
        assert client.setex.await_count == 2
        sleep.assert_awaited_once_with(0.1)

    async def test_malformed_payload_is_not_retried(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        fake_redis.store["broken"] = "{"
        assert await cache.get_with_retry("broken", 3) is None
        assert len(fake_redis.commands("get")) == 1


class TestBatchAndPatterns:
    async def test_delete_pattern_scans_then_unlinks_once(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        fake_redis.store.update({"products:user:U1": "1", "products:user:U2": "2", "products:all": "3"})
        assert await cache.delete_pattern("products:user:*") == 2
        assert len(fake_redis.commands("unlink")) == 1
        assert set(fake_redis.store) == {"products:all"}

    async def test_delete_pattern_without_matches_is_noop(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        assert await cache.delete_pattern("products:vendor:*") == 0
        assert fake_redis.commands("unlink") == []

    async def test_delete_without_keys_is_noop(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        assert await cache.delete() is True
        assert fake_redis.commands("delete") == []

    async def test_mget_preserves_order_and_misses(self, cache: CacheService) -> None:
        await cache.set("a", 1)
        await cache.set("c", 3)
        assert await cache.mget(["a", "b", "c"]) == [1, None, 3]

    async def test_mset_writes_all_entries_in_one_pipeline(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        ok = await cache.mset(
            [CacheEntry("a", {"x": 1}, CacheDuration.SHORT), CacheEntry("b", [1, 2])]
        )
        assert ok is True
        assert len(fake_redis.commands("pipeline.execute")) == 1
        assert fake_redis.ttls == {"a": 60, "b": None}
        assert json.loads(fake_redis.store["b"]) == [1, 2]

    async def test_mset_batch_failure_is_total(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        fake_redis.fail_with = redis.ConnectionError("down")
        assert await cache.mset([CacheEntry("a", 1), CacheEntry("b", 2)]) is False
        assert fake_redis.store == {}


class TestAdmin:
    async def test_warm_stores_fetched_data_with_long_ttl(
        self, cache: CacheService, fake_redis: FakeRedis
    ) -> None:
        fetch = AsyncMock(return_value={"slug": "foo"})
        assert await cache.warm("collection:foo", fetch) is True
        assert fake_redis.ttls["collection:foo"] == 3600

    async def test_warm_fetch_failure_returns_false(self, cache: CacheService) -> None:
        fetch = AsyncMock(side_effect=RuntimeError("db down"))
        assert await cache.warm("collection:foo", fetch) is False

    async def test_get_stats_parses_info(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        fake_redis.store["a"] = "1"
        stats = await cache.get_stats()
        assert stats is not None
        assert stats.total_keys == 1
        assert stats.memory_usage == "1.50M"
        assert stats.peak_memory_usage == "2.00M"
        assert stats.max_memory_policy == "allkeys-lru"
        assert stats.evicted_keys == 3
        assert stats.uptime_seconds == 120

    async def test_get_stats_parses_raw_info_text(self, settings: Settings) -> None:
        client = MagicMock()
        client.info = AsyncMock(
            side_effect=[
                "# Memory\r\nused_memory_human:5.00M\r\npeak_memory_human:6.00M\r\nmaxmemory_policy:noeviction\r\n",
                "# Stats\r\nevicted_keys:7\r\n",
                "# Server\r\nuptime_in_seconds:99\r\n",
            ]
        )
        client.dbsize = AsyncMock(return_value=12)
        stats = await CacheService(redis_client=client, settings=settings).get_stats()
        assert stats is not None
        assert (stats.memory_usage, stats.peak_memory_usage) == ("5.00M", "6.00M")
        assert (stats.evicted_keys, stats.uptime_seconds, stats.total_keys) == (7, 99, 12)
        assert stats.max_memory_policy == "noeviction"

    async def test_clear_all_flushes(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        fake_redis.store["a"] = "1"
        assert await cache.clear_all() is True
        assert fake_redis.store == {}

    async def test_connect_failure_disables_cache(self, settings: Settings) -> None:
        service = CacheService(settings=settings)
        with patch("app.infrastructure.cache.redis_cache.redis.Redis") as redis_cls:
            redis_cls.return_value.ping = AsyncMock(side_effect=redis.ConnectionError("refused"))
            await service.connect()
        assert service.is_available() is False

    async def test_disconnect_closes_client(self, cache: CacheService, fake_redis: FakeRedis) -> None:
        await cache.disconnect()
        assert fake_redis.closed is True
        assert cache.is_available() is False


@pytest.mark.parametrize("duration,expected", [("short", 60), ("medium", 300), ("long", 3600)])
def test_ttl_seconds_accepts_duration_values(
    cache: CacheService, duration: str, expected: int
) -> None:
    assert cache.ttl_seconds(CacheDuration(duration)) == expected
