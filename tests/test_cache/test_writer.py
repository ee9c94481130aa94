"""Tests for the background cache writer."""

from __future__ import annotations

import pytest

from fleet_analytics.cache.analytics_cache import AnalyticsCache
from fleet_analytics.cache.store import InMemoryCacheStore
from fleet_analytics.cache.writer import BackgroundCacheWriter
from fleet_analytics.errors import DependencyError
from fleet_analytics.models.reports import FuelAnalytics
from fleet_analytics.models.request import ReportRequest
from fleet_analytics.models.response import ReportResponse
from fleet_analytics.utils.circuit_breaker import CircuitBreaker


class _RecordingCache:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.writes: list[str] = []

    async def set(self, request: ReportRequest, response: ReportResponse) -> bool:
        if self.fail:
            raise DependencyError("Cache store is unavailable", internal_detail="SET refused")
        self.writes.append(request.company_id)
        return True


def _response(request: ReportRequest) -> ReportResponse:
    return ReportResponse(report_type=request.report_type, date_range=request.window, data=FuelAnalytics())


@pytest.mark.asyncio
async def test_writer_persists_submitted_responses(make_request) -> None:
    cache = _RecordingCache()
    writer = BackgroundCacheWriter(cache)  # type: ignore[arg-type]
    await writer.start()

    for company_id in ("C1", "C2"):
        request = make_request(company_id=company_id)
        assert writer.submit(request, _response(request)) is True
    await writer.drain()

    assert cache.writes == ["C1", "C2"]
    assert writer.written == 2
    assert writer.pending == 0
    await writer.stop()
    assert not writer.running


@pytest.mark.asyncio
async def test_writer_logs_failures_without_raising(make_request) -> None:
    writer = BackgroundCacheWriter(_RecordingCache(fail=True))  # type: ignore[arg-type]
    request = make_request()

    writer.submit(request, _response(request))
    await writer.drain()

    assert writer.failed == 1
    assert writer.running
    await writer.stop()


@pytest.mark.asyncio
async def test_writer_drops_when_queue_is_full(make_request) -> None:
    writer = BackgroundCacheWriter(_RecordingCache(), max_pending=1)  # type: ignore[arg-type]
    request = make_request()

    assert writer.submit(request, _response(request)) is True
    assert writer.submit(request, _response(request)) is False

    assert writer.dropped == 1
    await writer.stop(drain=True)
    assert writer.written == 1


def test_writer_rejects_non_positive_queue_size() -> None:
    with pytest.raises(ValueError):
        BackgroundCacheWriter(_RecordingCache(), max_pending=0)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_writer_counts_circuit_skips_separately(make_request) -> None:
    breaker = CircuitBreaker(failure_threshold=1, recovery_seconds=60)
    breaker.record_failure()
    store = InMemoryCacheStore()
    writer = BackgroundCacheWriter(AnalyticsCache(store, circuit_breaker=breaker))
    request = make_request()

    writer.submit(request, _response(request))
    await writer.drain()

    assert (writer.written, writer.skipped, writer.failed) == (0, 1, 0)
    assert await store.keys_matching("analytics:*") == []
    await writer.stop()
