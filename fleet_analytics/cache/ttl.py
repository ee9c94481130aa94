"""Freshness policy per report category."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from fleet_analytics.models.request import ReportType

DEFAULT_TTL_SECONDS = 15 * 60

DEFAULT_REPORT_TTLS: dict[str, int] = {
    ReportType.FLEET_OVERVIEW.value: 15 * 60,
    ReportType.DRIVER_PERFORMANCE.value: 30 * 60,
    ReportType.FUEL_ANALYTICS.value: 20 * 60,
    ReportType.MAINTENANCE_COSTS.value: 60 * 60,
    ReportType.ROUTE_EFFICIENCY.value: 10 * 60,
    ReportType.GEOFENCE_ACTIVITY.value: 5 * 60,
    ReportType.COMPLIANCE_REPORT.value: 2 * 60 * 60,
    ReportType.COST_ANALYSIS.value: 60 * 60,
    ReportType.UTILIZATION_REPORT.value: 15 * 60,
    ReportType.PREDICTIVE_INSIGHTS.value: 30 * 60,
}


class TTLPolicy(BaseModel):
    """Report category to cache lifetime, in seconds."""

    model_config = ConfigDict(frozen=True)

    ttl_seconds: dict[str, PositiveInt] = Field(default_factory=lambda: dict(DEFAULT_REPORT_TTLS))
    default_ttl_seconds: PositiveInt = DEFAULT_TTL_SECONDS

    @field_validator("ttl_seconds", mode="before")
    @classmethod
    def _known_categories(cls, value: Any) -> Any:
        if isinstance(value, dict):
            normalized = {}
            for key, seconds in value.items():
                normalized[ReportType(key).value] = seconds
            return normalized
        return value

    def ttl_for(self, report_type: ReportType | str) -> timedelta:
        """Return the cache lifetime for a category, falling back to the default."""
        key = report_type.value if isinstance(report_type, ReportType) else str(report_type)
        return timedelta(seconds=self.ttl_seconds.get(key, self.default_ttl_seconds))

    def with_overrides(self, overrides: dict[str, int], default_ttl_seconds: int | None = None) -> "TTLPolicy":
        """Return a new policy with ``overrides`` layered over the current table."""
        merged = {**self.ttl_seconds, **overrides}
        return TTLPolicy(
            ttl_seconds=merged,
            default_ttl_seconds=default_ttl_seconds or self.default_ttl_seconds,
        )
