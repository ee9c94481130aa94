"""Report response envelope models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from fleet_analytics.models.reports import ReportPayload
from fleet_analytics.models.request import DateRange, ReportType, utc_now

TrendDirection = Literal["increasing", "decreasing", "stable"]
ChartKind = Literal["line", "bar", "pie", "area", "scatter"]
DataQuality = Literal["high", "medium", "low"]


class Summary(BaseModel):
    """Aggregate view of a report's primary metric."""

    model_config = ConfigDict(frozen=True)

    total_records: int = 0
    total_value: float = 0.0
    average_value: float = 0.0
    min_value: float = 0.0
    max_value: float = 0.0
    growth_rate: float = 0.0
    trend: TrendDirection = "stable"
    key_insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ChartSeries(BaseModel):
    """Renderable chart definition. Axis consistency is the generator's job."""

    model_config = ConfigDict(frozen=True)

    type: ChartKind
    title: str
    x_axis: list[str] = Field(default_factory=list)
    y_axis: list[float] = Field(default_factory=list)
    data: Any = None
    options: dict[str, Any] = Field(default_factory=dict)


class ReportMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    query_time: float = 0.0
    data_points: int = 0
    last_updated: datetime = Field(default_factory=utc_now)
    data_quality: DataQuality = "low"
    completeness: float = 0.0


class ReportResponse(BaseModel):
    """Final analytics response returned to callers and stored in the cache."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    report_type: ReportType
    date_range: DateRange
    data: ReportPayload
    summary: Summary = Field(default_factory=Summary)
    charts: list[ChartSeries] = Field(default_factory=list)
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)
    generated_at: datetime = Field(default_factory=utc_now)
    from_cache: bool = False
    cache_hit: bool = False

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes | str) -> "ReportResponse":
        return cls.model_validate_json(raw)

    def as_cache_hit(self) -> "ReportResponse":
        """Return a copy flagged as served from cache."""
        return self.model_copy(update={"from_cache": True, "cache_hit": True})
