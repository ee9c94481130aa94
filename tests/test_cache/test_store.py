"""Tests for cache store backends."""

from __future__ import annotations

from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fleet_analytics.cache.store import InMemoryCacheStore, RedisCacheStore, TTLSentinel, glob_matches
from fleet_analytics.errors import DependencyError


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_in_memory_store_expires_entries() -> None:
    clock = _Clock()
    store = InMemoryCacheStore(time_fn=clock)
    await store.set("analytics:a", b"payload", timedelta(seconds=10))

    assert await store.get("analytics:a") == b"payload"
    assert await store.ttl_remaining("analytics:a") == timedelta(seconds=10)

    clock.now = 10.0

    assert await store.get("analytics:a") is None
    assert await store.ttl_remaining("analytics:a") is TTLSentinel.MISSING


@pytest.mark.asyncio
async def test_in_memory_store_pattern_matching_and_delete() -> None:
    store = InMemoryCacheStore()
    for key in ("analytics:company:C1:x", "analytics:company:C2:x", "other:company:C1:x"):
        await store.set(key, b"1", timedelta(minutes=1))

    assert await store.keys_matching("analytics:company:C1:*") == ["analytics:company:C1:x"]
    assert await store.delete("analytics:company:C1:x", "missing") == 1
    assert await store.keys_matching("analytics:*") == ["analytics:company:C2:x"]


@pytest.mark.asyncio
async def test_in_memory_store_zero_ttl_never_expires() -> None:
    store = InMemoryCacheStore()
    await store.set("k", b"v", timedelta(0))

    assert await store.ttl_remaining("k") is TTLSentinel.NO_EXPIRY


class _FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, bytes] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key: str) -> bytes | None:
        self._check()
        return self.values.get(key)

    async def set(self, key: str, value: bytes, px: int) -> None:
        self._check()
        self.values[key] = value
        self.ttls[key] = px

    async def delete(self, *keys: str) -> int:
        self._check()
        return sum(1 for key in keys if self.values.pop(key, None) is not None)

    async def scan_iter(self, match: str, count: int):
        self._check()
        for key in list(self.values):
            if key.startswith(match.rstrip("*")):
                yield key.encode("utf-8")

    async def pttl(self, key: str) -> int:
        self._check()
        if key not in self.values:
            return -2
        return self.ttls.get(key, -1)

    async def ping(self) -> bool:
        self._check()
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_redis_store_translates_client_calls() -> None:
    client = _FakeRedis()
    store = RedisCacheStore(client)  # type: ignore[arg-type]

    await store.set("analytics:a", b"v", timedelta(seconds=2))

    assert client.ttls["analytics:a"] == 2000
    assert await store.get("analytics:a") == b"v"
    assert await store.keys_matching("analytics:*") == ["analytics:a"]
    assert await store.ttl_remaining("analytics:a") == timedelta(seconds=2)
    assert await store.ttl_remaining("missing") is TTLSentinel.MISSING
    assert await store.delete("analytics:a") == 1
    assert await store.delete() == 0
    await store.close()
    assert client.closed


@pytest.mark.asyncio
async def test_redis_store_reports_no_expiry_sentinel() -> None:
    client = _FakeRedis()
    client.values["k"] = b"v"
    store = RedisCacheStore(client)  # type: ignore[arg-type]

    assert await store.ttl_remaining("k") is TTLSentinel.NO_EXPIRY


@pytest.mark.asyncio
async def test_redis_store_wraps_client_errors() -> None:
    client = _FakeRedis()
    client.fail = True
    store = RedisCacheStore(client)  # type: ignore[arg-type]

    with pytest.raises(DependencyError) as exc_info:
        await store.get("analytics:a")

    assert "GET analytics:a" in (exc_info.value.internal_detail or "")
    assert await store.ping() is False


@pytest.mark.parametrize(
    ("key", "pattern", "expected"),
    [
        ("analytics:C1:x", "analytics:*", True),
        ("analytics:C1", "analytics:C?", True),
        ("analytics:C12", "analytics:C?", False),
        ("a\\b", "a\\\\b", True),
        ("ab", "a\\\\b", False),
        ("a*b", "a\\*b", True),
        ("axb", "a\\*b", False),
        ("k5", "k[0-9]", True),
        ("k5", "k[9-0]", True),
        ("k5", "k[^0-9]", False),
        ("k]", "k[\\]]", True),
        ("k\\", "k[\\]]", False),
    ],
)
def test_glob_matches_follows_redis_rules(key: str, pattern: str, expected: bool) -> None:
    assert glob_matches(key, pattern) is expected


@pytest.mark.asyncio
async def test_in_memory_store_honours_backslash_escapes() -> None:
    store = InMemoryCacheStore()
    for key in ("analytics:company:ac\\me:x", "analytics:company:acme:x"):
        await store.set(key, b"1", timedelta(minutes=1))

    assert await store.keys_matching("analytics:company:ac\\\\me:*") == ["analytics:company:ac\\me:x"]
