"""Geofence entries, exits and violations."""

from __future__ import annotations

from collections import Counter

from fleet_analytics.models.records import EntityKind, GeofenceEvent
from fleet_analytics.models.reports import GeofenceActivity, GeofenceActivityReport
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import build_daily_trend
from fleet_analytics.repositories.base import FleetDataRepository

HIGH_VIOLATION_COUNT = 10


class GeofenceActivityGenerator:
    report_type = ReportType.GEOFENCE_ACTIVITY

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        events: list[GeofenceEvent] = await fetch(repo, EntityKind.GEOFENCE_EVENT, request)

        totals = Counter(event.event_type for event in events)
        per_geofence: dict[str, Counter[str]] = {}
        names: dict[str, str] = {}
        for event in events:
            per_geofence.setdefault(event.geofence_id, Counter())[event.event_type] += 1
            if event.geofence_name:
                names[event.geofence_id] = event.geofence_name

        by_geofence = [
            GeofenceActivity(
                geofence_id=geofence_id,
                geofence_name=names.get(geofence_id, ""),
                entries=counts["entry"],
                exits=counts["exit"],
                violations=counts["violation"],
            )
            for geofence_id, counts in sorted(per_geofence.items())
        ]
        daily = build_daily_trend((event.occurred_at, 1.0) for event in events)

        report = GeofenceActivityReport(
            total_events=len(events),
            entries=totals["entry"],
            exits=totals["exit"],
            violations=totals["violation"],
            by_geofence=by_geofence,
            daily_events=daily,
        )

        insights: list[str] = []
        recommendations: list[str] = []
        if events:
            insights.append(f"{report.entries} entries, {report.exits} exits and {report.violations} violations recorded")
            busiest = max(by_geofence, key=lambda item: (item.entries + item.exits + item.violations, item.geofence_id))
            insights.append(f"Most active geofence: {busiest.geofence_name or busiest.geofence_id}")
        if report.violations > HIGH_VIOLATION_COUNT:
            recommendations.append("High number of geofence violations; review route assignments with drivers")
        if report.entries != report.exits:
            recommendations.append("Entry and exit counts do not match; verify geofence boundaries and GPS coverage")

        summary = build_summary(
            [daily_point.value for daily_point in daily],
            daily,
            total_records=len(events),
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            breakdown_chart(
                "Geofence Events by Type",
                {"entry": float(report.entries), "exit": float(report.exits), "violation": float(report.violations)},
                kind="pie",
            ),
            trend_chart("Daily Geofence Events", daily, kind="bar"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(events),
            observed_days=observed_days(events),
        )
