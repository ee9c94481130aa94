"""Per-vehicle active-hours utilization."""

from __future__ import annotations

from collections import defaultdict

from fleet_analytics.models.records import EntityKind, Trip, Vehicle
from fleet_analytics.models.reports import UtilizationReport, VehicleUtilization
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import active_hours_utilization, build_daily_trend, safe_divide
from fleet_analytics.reports.routes import trip_hours
from fleet_analytics.repositories.base import FleetDataRepository

UNDERUTILIZED_PCT = 30.0
LOW_AVERAGE_PCT = 50.0
HIGH_AVERAGE_PCT = 85.0


class UtilizationReportGenerator:
    report_type = ReportType.UTILIZATION_REPORT

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        vehicles: list[Vehicle] = await fetch(repo, EntityKind.VEHICLE, request)
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)
        period_hours = request.window.span.total_seconds() / 3600

        trips_by_vehicle: dict[str, list[Trip]] = defaultdict(list)
        for trip in trips:
            trips_by_vehicle[trip.vehicle_id].append(trip)

        rows: list[VehicleUtilization] = []
        for vehicle in vehicles:
            vehicle_trips = trips_by_vehicle.get(vehicle.vehicle_id, [])
            active_hours = sum(trip_hours(trip) for trip in vehicle_trips)
            rate = active_hours_utilization(active_hours, period_hours)
            rows.append(
                VehicleUtilization(
                    vehicle_id=vehicle.vehicle_id,
                    trip_count=len(vehicle_trips),
                    active_hours=round(active_hours, 2),
                    utilization_rate=round(rate, 2),
                    underutilized=rate < UNDERUTILIZED_PCT,
                )
            )

        rates = [row.utilization_rate for row in rows]
        average = safe_divide(sum(rates), len(rates))
        underutilized = sum(1 for row in rows if row.underutilized)
        report = UtilizationReport(
            period_hours=round(period_hours, 2),
            total_vehicles=len(rows),
            average_utilization=round(average, 2),
            underutilized_count=underutilized,
            vehicles=rows,
        )

        insights: list[str] = []
        recommendations: list[str] = []
        if rows:
            insights.append(f"Average vehicle utilization: {average:.2f}%")
            insights.append(f"{underutilized} of {len(rows)} vehicles are underutilized")
            if average < LOW_AVERAGE_PCT:
                recommendations.append("Fleet utilization is low; consider reallocating or reducing vehicles")
            if underutilized > len(rows) / 2:
                recommendations.append("More than half the fleet is underutilized; review fleet size")
            if average > HIGH_AVERAGE_PCT:
                recommendations.append("Utilization is very high; consider expanding the fleet to avoid overuse")

        daily_hours = build_daily_trend((trip.start_time, trip_hours(trip)) for trip in trips)
        summary = build_summary(rates, daily_hours, insights=insights, recommendations=recommendations)
        charts = [
            breakdown_chart("Utilization by Vehicle", {row.vehicle_id: row.utilization_rate for row in rows}),
            trend_chart("Daily Active Hours", daily_hours, y_label="hours"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(vehicles) + len(trips),
            observed_days=observed_days(trips),
        )
