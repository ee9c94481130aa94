"""structlog configuration shared by the service and its components."""

from __future__ import annotations

import logging
from typing import Any

import structlog

_DEFAULT_LOGGER_NAME = "fleet_analytics"
_default_logger: Any | None = None


def configure_structured_logging() -> None:
    """Route structlog through stdlib logging with JSON output."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_default_logger() -> Any:
    """Return the process-wide logger, built once on first use.

    Components take an explicit ``logger`` argument; this is only the fallback
    for call sites that were not handed one.
    """
    global _default_logger
    if _default_logger is None:
        _default_logger = structlog.get_logger(_DEFAULT_LOGGER_NAME)
    return _default_logger


def silence_noisy_loggers(level: int = logging.WARNING) -> None:
    """Quiet chatty third-party loggers."""
    for name in ("apscheduler", "pymongo", "motor"):
        logging.getLogger(name).setLevel(level)
