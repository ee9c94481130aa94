"""Collapse concurrent identical async calls into one in-flight execution."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Share one running task between callers that use the same key.

    Must be used from a single event loop. The shared task is shielded so a
    cancelled caller does not cancel the work other callers are waiting on.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[T]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run or join ``operation`` for ``key``. Returns (result, shared)."""
        future = self._inflight.get(key)
        shared = future is not None
        if future is None:
            future = asyncio.ensure_future(operation())
            self._inflight[key] = future
            future.add_done_callback(lambda _done, _key=key: self._forget(_key, _done))
        return await asyncio.shield(future), shared

    def _forget(self, key: str, future: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is future:
            del self._inflight[key]
        if not future.cancelled():
            # Mark the exception retrieved when every caller was cancelled.
            future.exception()
