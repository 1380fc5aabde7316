"""In-memory test doubles: an async Redis subset and a recording output-cache hook."""

from __future__ import annotations

import fnmatch
from typing import Any

from app.domain.enums import RevalidateMode


class FakePipeline:
    """Buffers SET/SETEX and applies them on execute()."""

    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.ops: list[tuple[str, str, int | None, str]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.ops.clear()

    def set(self, key: str, value: str) -> FakePipeline:
        self.ops.append(("set", key, None, value))
        return self

    def setex(self, key: str, ttl: int, value: str) -> FakePipeline:
        self.ops.append(("setex", key, ttl, value))
        return self

    async def execute(self) -> list[bool]:
        self.redis._check("pipeline.execute", len(self.ops))
        for _, key, ttl, value in self.ops:
            self.redis.store[key] = value
            self.redis.ttls[key] = ttl
        return [True] * len(self.ops)


class FakeRedis:
    """Enough of redis.asyncio.Redis (decode_responses=True) for the cache adapter.

    Set fail_with to an exception to make every command raise it.
    """

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.fail_with: BaseException | None = None
        self.closed = False

    def _check(self, command: str, *args: Any) -> None:
        self.calls.append((command, *args))
        if self.fail_with is not None:
            raise self.fail_with

    def commands(self, name: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == name]

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def get(self, key: str) -> str | None:
        self._check("get", key)
        return self.store.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._check("set", key, value)
        self.store[key] = value
        self.ttls[key] = None
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._check("setex", key, ttl, value)
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def _remove(self, keys: tuple[str, ...]) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def delete(self, *keys: str) -> int:
        self._check("delete", *keys)
        return self._remove(keys)

    async def unlink(self, *keys: str) -> int:
        self._check("unlink", *keys)
        return self._remove(keys)

    async def exists(self, *keys: str) -> int:
        self._check("exists", *keys)
        return sum(1 for key in keys if key in self.store)

    async def mget(self, keys: list[str]) -> list[str | None]:
        self._check("mget", *keys)
        return [self.store.get(key) for key in keys]

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        self._check("scan", match)
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def info(self, section: str | None = None) -> dict[str, Any]:
        self._check("info", section)
        sections: dict[str, dict[str, Any]] = {
            "memory": {
                "used_memory_human": "1.50M",
                "used_memory_peak_human": "2.00M",
                "maxmemory_policy": "allkeys-lru",
            },
            "stats": {"evicted_keys": 3},
            "server": {"uptime_in_seconds": 120},
        }
        return sections.get(section or "", {})

    async def dbsize(self) -> int:
        self._check("dbsize")
        return len(self.store)

    async def flushdb(self) -> bool:
        self._check("flushdb")
        self.store.clear()
        self.ttls.clear()
        return True


class RecordingOutputCache:
    """Output-cache hook that records every invalidation."""

    def __init__(self) -> None:
        self.tags: list[str] = []
        self.paths: list[tuple[str, RevalidateMode | None]] = []

    async def invalidate_tag(self, tag: str) -> None:
        self.tags.append(tag)

    async def invalidate_path(self, path: str, mode: RevalidateMode | None = None) -> None:
        self.paths.append((path, mode))
