"""Application configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fleet_analytics.cache.ttl import TTLPolicy

CacheBackend = Literal["redis", "memory"]


class Settings(BaseSettings):
    """Strongly typed settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Data stores
    mongodb_uri: str
    mongodb_database: str = "fleet"
    data_access_retry_attempts: int = 3

    # Cache
    cache_backend: CacheBackend = "redis"
    redis_url: str | None = None
    cache_namespace: str = "analytics"
    cache_write_queue_size: int = 1000
    cache_single_flight: bool = True
    cache_circuit_breaker_failure_threshold: int = 3
    cache_circuit_breaker_recovery_seconds: int = 30

    # Expired entry cleanup
    cache_cleanup_enabled: bool = True
    cache_cleanup_interval_seconds: int = 300
    cache_cleanup_threshold_seconds: int = 60

    # File-based configs
    ttl_policy_config_path: Path = Path("config/ttl_policy.yaml")

    @model_validator(mode="after")
    def validate_runtime_configuration(self) -> "Settings":
        """Validate cross-field configuration constraints."""
        if self.data_access_retry_attempts <= 0:
            raise ValueError("FLEET_DATA_ACCESS_RETRY_ATTEMPTS must be > 0")

        if self.cache_write_queue_size <= 0:
            raise ValueError("FLEET_CACHE_WRITE_QUEUE_SIZE must be > 0")

        if self.cache_circuit_breaker_failure_threshold <= 0:
            raise ValueError("FLEET_CACHE_CIRCUIT_BREAKER_FAILURE_THRESHOLD must be > 0")

        if self.cache_circuit_breaker_recovery_seconds <= 0:
            raise ValueError("FLEET_CACHE_CIRCUIT_BREAKER_RECOVERY_SECONDS must be > 0")

        if self.cache_cleanup_interval_seconds <= 0:
            raise ValueError("FLEET_CACHE_CLEANUP_INTERVAL_SECONDS must be > 0")

        if self.cache_cleanup_threshold_seconds <= 0:
            raise ValueError("FLEET_CACHE_CLEANUP_THRESHOLD_SECONDS must be > 0")

        if not self.cache_namespace.strip():
            raise ValueError("FLEET_CACHE_NAMESPACE must not be empty")

        if self.cache_backend == "redis" and not self.redis_url:
            raise ValueError("FLEET_REDIS_URL is required when FLEET_CACHE_BACKEND=redis")

        return self


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        parsed = yaml.safe_load(handle)

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ValueError(f"YAML config must be a mapping: {path}")

    return parsed


def load_ttl_policy(path: str | Path = "config/ttl_policy.yaml") -> TTLPolicy:
    """Load and validate the cache TTL table. A missing file yields the defaults."""
    config_path = Path(path)
    if not config_path.exists():
        return TTLPolicy()
    payload = _load_yaml(config_path)

    try:
        return TTLPolicy().with_overrides(
            payload.get("ttl_seconds") or {},
            default_ttl_seconds=payload.get("default_ttl_seconds"),
        )
    except (ValidationError, ValueError) as exc:
        raise ValueError(f"Invalid TTL policy config at {config_path}: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
