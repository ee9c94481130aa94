"""Shared test fixtures for the fleet analytics service."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from fleet_analytics.cache.analytics_cache import AnalyticsCache
from fleet_analytics.cache.store import InMemoryCacheStore
from fleet_analytics.models.records import RECORD_TYPES, EntityKind, FleetRecord, TimeRange
from fleet_analytics.models.request import DateRange, ReportRequest, ReportType
from fleet_analytics.repositories.base import AggregateFn, scoped_filters
from fleet_analytics.repositories.mongo import MongoFleetDataRepository, ensure_indexes

WINDOW_START = datetime(2024, 3, 1, tzinfo=timezone.utc)
WINDOW_END = datetime(2024, 3, 7, 23, 59, 59, tzinfo=timezone.utc)

_KINDS_BY_TYPE = {record_type: kind for kind, record_type in RECORD_TYPES.items()}


class InMemoryFleetDataRepository:
    """Dict-backed data access fake with the same filtering rules as the Mongo repository."""

    def __init__(self) -> None:
        self.records: dict[EntityKind, list[FleetRecord]] = defaultdict(list)
        self.calls: list[tuple[str, EntityKind]] = []
        self.fail_with: Exception | None = None

    def add(self, *records: FleetRecord) -> None:
        for record in records:
            self.records[_KINDS_BY_TYPE[type(record)]].append(record)

    def _matching(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None,
        time_range: TimeRange | None,
    ) -> list[FleetRecord]:
        scoped = scoped_filters(kind, filters)
        items = []
        for record in self.records[EntityKind(kind)]:
            if record.company_id != company_id:
                continue
            if any(getattr(record, key) != value for key, value in scoped.items()):
                continue
            stamp = record.timestamp
            if time_range is not None and stamp is not None and not (time_range.start <= stamp <= time_range.end):
                continue
            items.append(record)
        return sorted(items, key=lambda item: item.timestamp or WINDOW_START)

    def _check(self, operation: str, kind: EntityKind) -> None:
        self.calls.append((operation, EntityKind(kind)))
        if self.fail_with is not None:
            raise self.fail_with

    async def list_records(
        self,
        kind: EntityKind,
        company_id: str,
        time_range: TimeRange | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[FleetRecord]:
        self._check("list_records", kind)
        return self._matching(kind, company_id, filters, time_range)

    async def count(self, kind: EntityKind, company_id: str, filters: dict[str, Any] | None = None) -> int:
        self._check("count", kind)
        return len(self._matching(kind, company_id, filters, None))

    async def aggregate(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None,
        fn: AggregateFn,
        field: str,
        time_range: TimeRange | None = None,
    ) -> float:
        self._check("aggregate", kind)
        records = self._matching(kind, company_id, filters, time_range)
        if AggregateFn(fn) is AggregateFn.COUNT:
            return float(len(records))
        values = [float(getattr(record, field)) for record in records]
        if not values:
            return 0.0
        if fn is AggregateFn.SUM:
            return sum(values)
        if fn is AggregateFn.AVG:
            return sum(values) / len(values)
        if fn is AggregateFn.MIN:
            return min(values)
        return max(values)


@pytest.fixture
def fleet_repo() -> InMemoryFleetDataRepository:
    return InMemoryFleetDataRepository()


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def analytics_cache(cache_store: InMemoryCacheStore) -> AnalyticsCache:
    return AnalyticsCache(cache_store)


@pytest.fixture
def make_request():
    """Factory for report requests over the shared one-week test window."""

    def _create(
        report_type: ReportType | str = ReportType.FUEL_ANALYTICS,
        *,
        company_id: str = "C1",
        user_id: str = "u-1",
        filters: dict[str, Any] | None = None,
        group_by: list[str] | None = None,
        start: datetime = WINDOW_START,
        end: datetime = WINDOW_END,
        include_charts: bool = True,
    ) -> ReportRequest:
        return ReportRequest(
            company_id=company_id,
            user_id=user_id,
            report_type=report_type,
            date_range=DateRange(start_date=start, end_date=end, period="daily"),
            filters=filters or {},
            group_by=group_by or [],
            include_charts=include_charts,
        )

    return _create


@pytest.fixture
def mongo_client() -> AsyncMongoMockClient:
    """Return an isolated async Mongo mock client per test."""
    return AsyncMongoMockClient()


@pytest_asyncio.fixture
async def mongo_db(mongo_client: AsyncMongoMockClient):
    """Return indexed test database instance."""
    db = mongo_client["fleet_test"]
    await ensure_indexes(db)
    return db


@pytest.fixture
def mongo_repo(mongo_db) -> MongoFleetDataRepository:
    return MongoFleetDataRepository(mongo_db, retry_attempts=1)
