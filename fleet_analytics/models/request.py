"""Report request models."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fleet_analytics.errors import ValidationError


def utc_now() -> datetime:
    """Return timezone-aware current UTC timestamp."""
    return datetime.now(timezone.utc)


class ReportType(str, Enum):
    FLEET_OVERVIEW = "fleet_overview"
    DRIVER_PERFORMANCE = "driver_performance"
    FUEL_ANALYTICS = "fuel_analytics"
    MAINTENANCE_COSTS = "maintenance_costs"
    ROUTE_EFFICIENCY = "route_efficiency"
    GEOFENCE_ACTIVITY = "geofence_activity"
    COMPLIANCE_REPORT = "compliance_report"
    COST_ANALYSIS = "cost_analysis"
    UTILIZATION_REPORT = "utilization_report"
    PREDICTIVE_INSIGHTS = "predictive_insights"


REPORT_DESCRIPTIONS: dict[ReportType, str] = {
    ReportType.FLEET_OVERVIEW: "Fleet-wide vehicle, trip and efficiency dashboard",
    ReportType.DRIVER_PERFORMANCE: "Driver behavior scoring and rankings",
    ReportType.FUEL_ANALYTICS: "Fuel consumption, efficiency, cost and theft alerts",
    ReportType.MAINTENANCE_COSTS: "Maintenance spend by type and vehicle",
    ReportType.ROUTE_EFFICIENCY: "Trip duration against expected route time",
    ReportType.GEOFENCE_ACTIVITY: "Geofence entries, exits and violations",
    ReportType.COMPLIANCE_REPORT: "Driver hours, inspections, tax and regulatory status",
    ReportType.COST_ANALYSIS: "Operating cost breakdown and cost trend",
    ReportType.UTILIZATION_REPORT: "Active hours per vehicle against the period",
    ReportType.PREDICTIVE_INSIGHTS: "Period-over-period forecasts and maintenance risk",
}

DEFAULT_LOOKBACK_DAYS: dict[ReportType, int] = {
    ReportType.FLEET_OVERVIEW: 30,
    ReportType.DRIVER_PERFORMANCE: 30,
    ReportType.FUEL_ANALYTICS: 30,
    ReportType.MAINTENANCE_COSTS: 90,
    ReportType.ROUTE_EFFICIENCY: 7,
    ReportType.GEOFENCE_ACTIVITY: 7,
    ReportType.COMPLIANCE_REPORT: 30,
    ReportType.COST_ANALYSIS: 30,
    ReportType.UTILIZATION_REPORT: 30,
    ReportType.PREDICTIVE_INSIGHTS: 90,
}

Period = Literal["daily", "weekly", "monthly", "quarterly", "yearly"]
OutputFormat = Literal["json", "csv", "pdf"]


class DateRange(BaseModel):
    """Inclusive reporting window with a granularity label."""

    model_config = ConfigDict(frozen=True)

    start_date: datetime
    end_date: datetime
    period: Period = "daily"

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self

    @property
    def span(self) -> timedelta:
        return self.end_date - self.start_date


def default_date_range(report_type: ReportType | str | None, now: datetime | None = None) -> DateRange:
    """Return the lookback window used when a request omits its date range."""
    end = now or utc_now()
    days = DEFAULT_LOOKBACK_DAYS.get(ReportType(report_type), 30) if report_type is not None else 30
    return DateRange(start_date=end - timedelta(days=days), end_date=end, period="daily")


class ReportRequest(BaseModel):
    """Validated analytics report request."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    company_id: str = Field(min_length=1)
    user_id: str = ""
    report_type: ReportType
    date_range: DateRange
    filters: dict[str, Any] = Field(default_factory=dict)
    group_by: list[str] = Field(default_factory=list)
    format: OutputFormat = "json"
    include_charts: bool = True

    @model_validator(mode="before")
    @classmethod
    def _fill_date_range(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("date_range") is None:
            try:
                report_type = ReportType(data.get("report_type"))
            except ValueError:
                report_type = None
            data = {**data, "date_range": default_date_range(report_type)}
        return data

    @property
    def window(self) -> DateRange:
        return self.date_range

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "ReportRequest":
        """Parse a JSON-compatible request body, mapping failures to ValidationError."""
        try:
            return cls.model_validate(payload)
        except pydantic.ValidationError as exc:
            errors = [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ]
            raise ValidationError("Invalid report request", details={"errors": errors}) from exc
