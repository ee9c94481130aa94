"""Read-through report cache with per-category TTLs and pattern invalidation."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import pydantic
from pydantic import BaseModel, Field

from fleet_analytics.audit import AuditEvent, AuditTrail
from fleet_analytics.cache.keys import (
    DEFAULT_NAMESPACE,
    company_pattern,
    company_report_pattern,
    derive_cache_key,
    namespace_pattern,
    report_type_pattern,
)
from fleet_analytics.cache.store import CacheStore
from fleet_analytics.cache.ttl import TTLPolicy
from fleet_analytics.errors import DependencyError
from fleet_analytics.logging_setup import get_default_logger
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.models.response import ReportResponse
from fleet_analytics.utils.circuit_breaker import CircuitBreaker

DEFAULT_CLEANUP_THRESHOLD = timedelta(minutes=1)


class CacheStats(BaseModel):
    """Key counts for the analytics namespace.

    Category counts are taken one pattern at a time, so under concurrent writes
    they need not add up to ``total_keys``.
    """

    total_keys: int = 0
    by_report_type: dict[str, int] = Field(default_factory=dict)
    circuit_state: str = "closed"


class AnalyticsCache:
    """Cache of serialized report responses keyed by request fingerprint."""

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_policy: TTLPolicy | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        circuit_breaker: CircuitBreaker | None = None,
        audit: AuditTrail | None = None,
        logger: Any | None = None,
    ):
        self.store = store
        self.namespace = namespace
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        base_logger = logger or get_default_logger()
        self.log = base_logger.bind(component="analytics_cache")
        self.audit = audit or AuditTrail(base_logger)
        self._ttl_policy = ttl_policy or TTLPolicy()

    @property
    def ttl_policy(self) -> TTLPolicy:
        return self._ttl_policy

    def key_for(self, request: ReportRequest) -> str:
        return derive_cache_key(request, self.namespace)

    def ttl_for(self, report_type: ReportType | str) -> timedelta:
        return self._ttl_policy.ttl_for(report_type)

    async def get(self, request: ReportRequest) -> tuple[ReportResponse | None, bool]:
        """Look up a cached response. Every failure is reported as a miss."""
        key = self.key_for(request)
        log = self.log.bind(cache_key=key, report_type=str(request.report_type))
        if self.circuit_breaker.is_open():
            log.warning("cache_circuit_open", seconds_until_close=round(self.circuit_breaker.seconds_until_close(), 3))
            return None, False

        try:
            raw = await self.store.get(key)
        except Exception as exc:  # noqa: BLE001
            self._record_store_failure(log, "get", exc)
            return None, False
        self.circuit_breaker.record_success()

        if raw is None:
            log.info("cache_miss")
            return None, False

        try:
            response = ReportResponse.from_bytes(raw)
        except (pydantic.ValidationError, ValueError) as exc:
            log.warning("cache_decode_failed", error=str(exc))
            return None, False

        log.info("cache_hit")
        return response.as_cache_hit(), True

    async def set(self, request: ReportRequest, response: ReportResponse) -> bool:
        """Serialize and store a freshly generated response.

        Returns False when the open circuit skipped the write.
        """
        key = self.key_for(request)
        log = self.log.bind(cache_key=key, report_type=str(request.report_type))
        if self.circuit_breaker.is_open():
            log.warning("cache_write_skipped", reason="circuit_open")
            return False

        ttl = self.ttl_for(request.report_type)
        payload = response.model_copy(update={"from_cache": False, "cache_hit": False}).to_bytes()
        try:
            await self.store.set(key, payload, ttl)
        except Exception as exc:  # noqa: BLE001
            self._record_store_failure(log, "set", exc)
            raise DependencyError("Cache store is unavailable", internal_detail=str(exc)) from exc
        self.circuit_breaker.record_success()
        log.info("cache_written", ttl_seconds=int(ttl.total_seconds()), size_bytes=len(payload))
        return True

    async def invalidate(self, request: ReportRequest, actor: str = "system") -> int:
        """Drop the request's own key and every cached report for its company."""
        key = self.key_for(request)
        pattern = company_pattern(request.company_id, self.namespace)
        keys = await self._keys(pattern)
        removed = await self._delete([key, *keys])
        self.audit.record_delete(
            "analytics_cache",
            request.company_id,
            actor=actor,
            cache_key=key,
            pattern=pattern,
            removed=removed,
        )
        return removed

    async def invalidate_company(self, company_id: str, actor: str = "system") -> int:
        pattern = company_pattern(company_id, self.namespace)
        removed = await self._delete(await self._keys(pattern))
        self.audit.record_delete("analytics_cache", company_id, actor=actor, pattern=pattern, removed=removed)
        return removed

    async def invalidate_report_type(
        self,
        company_id: str,
        report_type: ReportType | str,
        actor: str = "system",
    ) -> int:
        pattern = company_report_pattern(company_id, report_type, self.namespace)
        removed = await self._delete(await self._keys(pattern))
        self.audit.record_delete("analytics_cache", company_id, actor=actor, pattern=pattern, removed=removed)
        return removed

    async def invalidate_all(self, actor: str = "system") -> int:
        pattern = namespace_pattern(self.namespace)
        removed = await self._delete(await self._keys(pattern))
        self.audit.record_delete("analytics_cache", self.namespace, actor=actor, pattern=pattern, removed=removed)
        return removed

    async def stats(self) -> CacheStats:
        total = len(await self._keys(namespace_pattern(self.namespace)))
        by_report_type: dict[str, int] = {}
        for report_type in ReportType:
            try:
                keys = await self.store.keys_matching(report_type_pattern(report_type, self.namespace))
            except Exception as exc:  # noqa: BLE001
                self.log.warning("cache_stats_category_failed", report_type=report_type.value, error=str(exc))
                continue
            by_report_type[report_type.value] = len(keys)
        return CacheStats(
            total_keys=total,
            by_report_type=by_report_type,
            circuit_state=self.circuit_breaker.state,
        )

    async def cleanup_expired(self, threshold: timedelta = DEFAULT_CLEANUP_THRESHOLD) -> int:
        """Remove entries that will expire within ``threshold``."""
        expiring: list[str] = []
        for key in await self._keys(namespace_pattern(self.namespace)):
            try:
                remaining = await self.store.ttl_remaining(key)
            except Exception as exc:  # noqa: BLE001
                self.log.warning("cache_ttl_lookup_failed", cache_key=key, error=str(exc))
                continue
            if isinstance(remaining, timedelta) and timedelta(0) < remaining < threshold:
                expiring.append(key)

        removed = await self._delete(expiring)
        self.log.info("cache_cleanup_completed", removed=removed, threshold_seconds=threshold.total_seconds())
        return removed

    def replace_ttl_policy(self, policy: TTLPolicy, actor: str = "system") -> AuditEvent:
        """Swap the TTL table. Entries already written keep their original TTL."""
        previous = self._ttl_policy
        self._ttl_policy = policy
        return self.audit.record_update("ttl_policy", self.namespace, previous, policy, actor=actor)

    async def _keys(self, pattern: str) -> list[str]:
        try:
            return await self.store.keys_matching(pattern)
        except DependencyError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise DependencyError("Cache store is unavailable", internal_detail=f"{pattern}: {exc}") from exc

    async def _delete(self, keys: list[str]) -> int:
        unique = list(dict.fromkeys(keys))
        if not unique:
            return 0
        try:
            return await self.store.delete(*unique)
        except DependencyError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise DependencyError("Cache store is unavailable", internal_detail=str(exc)) from exc

    def _record_store_failure(self, log: Any, operation: str, exc: Exception) -> None:
        opened = self.circuit_breaker.record_failure()
        detail = getattr(exc, "internal_detail", None) or str(exc)
        log.warning("cache_store_failed", operation=operation, error=detail, circuit_opened=opened)
