"""Key-value store adapters over byte payloads."""

from __future__ import annotations

import re
import time
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from typing import Callable, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from fleet_analytics.errors import DependencyError


class TTLSentinel(str, Enum):
    NO_EXPIRY = "no_expiry"
    MISSING = "missing"


TTLRemaining = timedelta | TTLSentinel


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a Redis MATCH pattern into a regex.

    Follows Redis rules rather than fnmatch: a backslash escapes the next
    character both outside and inside ``[...]`` classes, ``[^...]`` negates a
    class and ``a-z`` ranges may be given in either order.
    """
    parts: list[str] = []
    index, length = 0, len(pattern)
    while index < length:
        char = pattern[index]
        index += 1
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "\\" and index < length:
            parts.append(re.escape(pattern[index]))
            index += 1
        elif char == "[":
            negate = index < length and pattern[index] == "^"
            if negate:
                index += 1
            members: list[str] = []
            while index < length and pattern[index] != "]":
                if pattern[index] == "\\" and index + 1 < length:
                    members.append(re.escape(pattern[index + 1]))
                    index += 2
                elif index + 2 < length and pattern[index + 1] == "-" and pattern[index + 2] != "]":
                    low, high = sorted((pattern[index], pattern[index + 2]))
                    members.append(f"{re.escape(low)}-{re.escape(high)}")
                    index += 3
                else:
                    members.append(re.escape(pattern[index]))
                    index += 1
            index += 1
            if members:
                parts.append(f"[{'^' if negate else ''}{''.join(members)}]")
            else:
                parts.append(r"[\s\S]" if negate else r"[^\s\S]")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def glob_matches(key: str, pattern: str) -> bool:
    """Return whether ``key`` matches ``pattern`` under Redis MATCH semantics."""
    return _compile_glob(pattern).fullmatch(key) is not None


class CacheStore(Protocol):
    """Byte-level key-value operations needed by the analytics cache."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None: ...

    async def delete(self, *keys: str) -> int: ...

    async def keys_matching(self, pattern: str) -> list[str]: ...

    async def ttl_remaining(self, key: str) -> TTLRemaining: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisCacheStore:
    """Redis-backed cache store using the asyncio client."""

    def __init__(self, client: redis.Redis, *, scan_count: int = 500):
        self.client = client
        self.scan_count = scan_count

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisCacheStore":
        return cls(redis.Redis.from_url(url, decode_responses=False, **kwargs))

    async def get(self, key: str) -> bytes | None:
        try:
            return await self.client.get(key)
        except RedisError as exc:
            raise DependencyError("Cache store is unavailable", internal_detail=f"GET {key}: {exc}") from exc

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        try:
            await self.client.set(key, value, px=max(int(ttl.total_seconds() * 1000), 1))
        except RedisError as exc:
            raise DependencyError("Cache store is unavailable", internal_detail=f"SET {key}: {exc}") from exc

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self.client.delete(*keys))
        except RedisError as exc:
            raise DependencyError("Cache store is unavailable", internal_detail=f"DEL: {exc}") from exc

    async def keys_matching(self, pattern: str) -> list[str]:
        try:
            keys = [key async for key in self.client.scan_iter(match=pattern, count=self.scan_count)]
        except RedisError as exc:
            raise DependencyError("Cache store is unavailable", internal_detail=f"SCAN {pattern}: {exc}") from exc
        return [key.decode("utf-8") if isinstance(key, bytes) else str(key) for key in keys]

    async def ttl_remaining(self, key: str) -> TTLRemaining:
        try:
            remaining_ms = int(await self.client.pttl(key))
        except RedisError as exc:
            raise DependencyError("Cache store is unavailable", internal_detail=f"PTTL {key}: {exc}") from exc
        if remaining_ms == -2:
            return TTLSentinel.MISSING
        if remaining_ms == -1:
            return TTLSentinel.NO_EXPIRY
        return timedelta(milliseconds=remaining_ms)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self.client.aclose()


class InMemoryCacheStore:
    """Process-local store with Redis glob matching and expiry.

    Suited to tests and single-process deployments.
    """

    def __init__(self, time_fn: Callable[[], float] | None = None):
        self._time_fn = time_fn or time.monotonic
        self._entries: dict[str, tuple[bytes, float | None]] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._live_entry(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: bytes, ttl: timedelta) -> None:
        expires_at = self._time_fn() + ttl.total_seconds() if ttl.total_seconds() > 0 else None
        self._entries[key] = (bytes(value), expires_at)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live_entry(key) is not None:
                del self._entries[key]
                removed += 1
        return removed

    async def keys_matching(self, pattern: str) -> list[str]:
        return sorted(key for key in list(self._entries) if self._live_entry(key) and glob_matches(key, pattern))

    async def ttl_remaining(self, key: str) -> TTLRemaining:
        entry = self._live_entry(key)
        if entry is None:
            return TTLSentinel.MISSING
        if entry[1] is None:
            return TTLSentinel.NO_EXPIRY
        return timedelta(seconds=entry[1] - self._time_fn())

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()

    def _live_entry(self, key: str) -> tuple[bytes, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] is not None and self._time_fn() >= entry[1]:
            del self._entries[key]
            return None
        return entry
