"""Shared utility helpers."""

from fleet_analytics.utils.circuit_breaker import CircuitBreaker
from fleet_analytics.utils.retry import is_transient_error, retry_async
from fleet_analytics.utils.single_flight import SingleFlight

__all__ = [
    "CircuitBreaker",
    "SingleFlight",
    "is_transient_error",
    "retry_async",
]
