"""Shared generator contract and summary helpers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, ClassVar, Protocol

from fleet_analytics.models.records import EntityKind, FleetRecord, TimeRange
from fleet_analytics.models.reports import ReportPayload, TrendPoint
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.models.response import ChartSeries, Summary
from fleet_analytics.reports.metrics import growth_rate, trend_direction
from fleet_analytics.repositories.base import FleetDataRepository


@dataclass(frozen=True)
class ReportResult:
    """Generator output before the engine wraps it into a response."""

    payload: ReportPayload
    summary: Summary
    charts: list[ChartSeries] = field(default_factory=list)
    data_points: int = 0
    observed_days: frozenset[date] = frozenset()


class ReportGenerator(Protocol):
    report_type: ClassVar[ReportType]

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult: ...


def request_time_range(request: ReportRequest) -> TimeRange:
    window = request.window
    return TimeRange(start=window.start_date, end=window.end_date)


async def fetch(
    repo: FleetDataRepository,
    kind: EntityKind,
    request: ReportRequest,
    time_range: TimeRange | None = None,
) -> list[Any]:
    """List records for the request's company and filters, inside its window by default."""
    return await repo.list_records(
        kind,
        request.company_id,
        time_range or request_time_range(request),
        request.filters,
    )


def build_summary(
    values: Sequence[float],
    trend: Sequence[TrendPoint] = (),
    *,
    total_records: int | None = None,
    insights: Sequence[str] = (),
    recommendations: Sequence[str] = (),
) -> Summary:
    """Summarize a primary metric. Empty inputs produce zeros."""
    rate = growth_rate(trend)
    total = sum(values)
    return Summary(
        total_records=len(values) if total_records is None else total_records,
        total_value=round(total, 2),
        average_value=round(total / len(values), 2) if values else 0.0,
        min_value=round(min(values), 2) if values else 0.0,
        max_value=round(max(values), 2) if values else 0.0,
        growth_rate=rate,
        trend=trend_direction(rate),
        key_insights=list(insights),
        recommendations=list(recommendations),
    )


def trend_chart(title: str, points: Sequence[TrendPoint], *, kind: str = "line", y_label: str = "") -> ChartSeries:
    return ChartSeries(
        type=kind,
        title=title,
        x_axis=[point.date.isoformat() for point in points],
        y_axis=[point.value for point in points],
        data=[point.model_dump(mode="json") for point in points],
        options={"y_label": y_label} if y_label else {},
    )


def breakdown_chart(title: str, values: dict[str, float], *, kind: str = "bar") -> ChartSeries:
    labels = list(values)
    return ChartSeries(
        type=kind,
        title=title,
        x_axis=labels,
        y_axis=[round(values[label], 2) for label in labels],
        data=[{"label": label, "value": round(values[label], 2)} for label in labels],
    )


def observed_days(records: Sequence[FleetRecord]) -> frozenset[date]:
    return frozenset(record.timestamp.date() for record in records if record.timestamp is not None)
