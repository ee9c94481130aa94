"""In-memory circuit breaker guarding calls to the cache store."""

from __future__ import annotations

import time
from typing import Callable, Literal

BreakerState = Literal["closed", "open"]


class CircuitBreaker:
    """Open after consecutive failures and stay open for a recovery window."""

    def __init__(
        self,
        *,
        failure_threshold: int = 3,
        recovery_seconds: float = 30.0,
        time_fn: Callable[[], float] | None = None,
    ):
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be > 0")
        if recovery_seconds <= 0:
            raise ValueError("recovery_seconds must be > 0")

        self.failure_threshold = failure_threshold
        self.recovery_seconds = recovery_seconds
        self._time_fn = time_fn or time.monotonic
        self._consecutive_failures = 0
        self._opened_until: float | None = None

    @property
    def state(self) -> BreakerState:
        return "open" if self.is_open() else "closed"

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def is_open(self) -> bool:
        """Return True while the recovery window is running; closes itself once it elapses."""
        if self._opened_until is None:
            return False
        if self._time_fn() >= self._opened_until:
            self._opened_until = None
            self._consecutive_failures = 0
            return False
        return True

    def record_success(self) -> None:
        self._consecutive_failures = 0
        self._opened_until = None

    def record_failure(self) -> bool:
        """Count a failure. Returns True when this failure opened the breaker."""
        self._consecutive_failures += 1
        if self._opened_until is None and self._consecutive_failures >= self.failure_threshold:
            self._opened_until = self._time_fn() + self.recovery_seconds
            return True
        return False

    def seconds_until_close(self) -> float:
        if self._opened_until is None:
            return 0.0
        remaining = self._opened_until - self._time_fn()
        return remaining if remaining > 0 else 0.0
