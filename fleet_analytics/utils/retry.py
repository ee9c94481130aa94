"""Retry helpers for transient data store failures."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pymongo.errors import AutoReconnect, NetworkTimeout
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

T = TypeVar("T")

TRANSIENT_ERROR_TYPES: tuple[type[BaseException], ...] = (
    TimeoutError,
    asyncio.TimeoutError,
    ConnectionError,
    AutoReconnect,
    NetworkTimeout,
    RedisConnectionError,
    RedisTimeoutError,
)


def is_transient_error(error: Exception) -> bool:
    """Return True when an exception likely represents a retriable transient error."""
    if isinstance(error, TRANSIENT_ERROR_TYPES):
        return True

    message = str(error).lower()
    transient_tokens = ("timeout", "timed out", "temporarily", "connection reset", "not primary")
    return any(token in message for token in transient_tokens)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay_seconds: float = 0.2,
    should_retry: Callable[[Exception], bool] = is_transient_error,
) -> T:
    """Retry an async operation with exponential backoff."""
    if attempts <= 0:
        raise ValueError("attempts must be > 0")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as error:  # noqa: BLE001
            if attempt >= attempts or not should_retry(error):
                raise
            await asyncio.sleep(base_delay_seconds * (2 ** (attempt - 1)))

    raise RuntimeError("retry_async exhausted unexpectedly")
