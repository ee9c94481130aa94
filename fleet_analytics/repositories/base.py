"""Repository protocol definitions for the data access layer."""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from fleet_analytics.models.records import EntityKind, FleetRecord, TimeRange, record_type_for


class AggregateFn(str, Enum):
    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    COUNT = "count"


class FleetDataRepository(Protocol):
    """Data access contract for raw fleet records."""

    async def list_records(
        self,
        kind: EntityKind,
        company_id: str,
        time_range: TimeRange | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[FleetRecord]: ...

    async def count(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None = None,
    ) -> int: ...

    async def aggregate(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None,
        fn: AggregateFn,
        field: str,
        time_range: TimeRange | None = None,
    ) -> float: ...


def scoped_filters(kind: EntityKind, filters: dict[str, Any] | None) -> dict[str, Any]:
    """Keep only filter keys that exist on the record type for ``kind``."""
    if not filters:
        return {}
    fields = record_type_for(kind).model_fields
    return {key: value for key, value in filters.items() if key in fields and key != "company_id"}
