"""Fleet overview dashboard."""

from __future__ import annotations

from collections import Counter

from fleet_analytics.models.records import EntityKind, Trip, Vehicle
from fleet_analytics.models.reports import FleetDashboard
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import (
    ReportResult,
    breakdown_chart,
    build_summary,
    fetch,
    observed_days,
    request_time_range,
    trend_chart,
)
from fleet_analytics.reports.metrics import (
    build_daily_trend,
    fleet_efficiency_score,
    fleet_utilization,
    fuel_efficiency,
    safe_divide,
)
from fleet_analytics.repositories.base import AggregateFn, FleetDataRepository

LOW_UTILIZATION_PCT = 70.0
LOW_EFFICIENCY_SCORE = 60.0
HIGH_COST_PER_KM = 2.0


class FleetOverviewGenerator:
    report_type = ReportType.FLEET_OVERVIEW

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        vehicles: list[Vehicle] = await fetch(repo, EntityKind.VEHICLE, request)
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)
        total_drivers = await repo.count(EntityKind.DRIVER, request.company_id, request.filters)
        active_drivers = await repo.count(EntityKind.DRIVER, request.company_id, {**request.filters, "status": "active"})
        average_speed = await repo.aggregate(
            EntityKind.TRIP,
            request.company_id,
            {**request.filters, "status": "completed"},
            AggregateFn.AVG,
            "average_speed",
            request_time_range(request),
        )

        statuses = Counter(vehicle.status for vehicle in vehicles)
        total_vehicles = len(vehicles)
        completed = [trip for trip in trips if trip.status == "completed"]
        total_distance = sum(trip.distance_km for trip in completed)
        total_fuel = sum(trip.fuel_consumed for trip in completed)
        total_cost = sum(trip.total_cost for trip in completed)
        utilization = fleet_utilization(len({trip.vehicle_id for trip in trips}), total_vehicles)
        cost_per_km = safe_divide(total_cost, total_distance)
        efficiency_score = fleet_efficiency_score(
            average_speed,
            utilization,
            safe_divide(total_fuel, total_distance),
        )
        daily_distance = build_daily_trend((trip.start_time, trip.distance_km) for trip in completed)

        dashboard = FleetDashboard(
            total_vehicles=total_vehicles,
            active_vehicles=statuses.get("active", 0),
            maintenance_vehicles=statuses.get("maintenance", 0),
            inactive_vehicles=total_vehicles - statuses.get("active", 0) - statuses.get("maintenance", 0),
            total_drivers=total_drivers,
            active_drivers=active_drivers,
            total_trips=len(trips),
            active_trips=sum(1 for trip in trips if trip.status == "in_progress"),
            total_distance_km=round(total_distance, 2),
            total_fuel_liters=round(total_fuel, 2),
            average_speed=round(average_speed, 2),
            utilization_rate=round(utilization, 2),
            fuel_efficiency=round(fuel_efficiency(total_distance, total_fuel), 2),
            total_cost=round(total_cost, 2),
            cost_per_km=round(cost_per_km, 2),
            efficiency_score=efficiency_score,
            daily_distance=daily_distance,
        )

        insights, recommendations = _fleet_findings(dashboard)
        summary = build_summary(
            [trip.distance_km for trip in completed],
            daily_distance,
            total_records=len(trips),
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            trend_chart("Daily Distance", daily_distance, y_label="km"),
            breakdown_chart(
                "Vehicle Status",
                {status: float(count) for status, count in sorted(statuses.items())},
                kind="pie",
            ),
        ]
        return ReportResult(
            payload=dashboard,
            summary=summary,
            charts=charts,
            data_points=len(vehicles) + len(trips),
            observed_days=observed_days(trips),
        )


def _fleet_findings(dashboard: FleetDashboard) -> tuple[list[str], list[str]]:
    insights: list[str] = []
    recommendations: list[str] = []
    if dashboard.utilization_rate < LOW_UTILIZATION_PCT:
        insights.append("Vehicle utilization is below optimal levels")
        recommendations.append("Consider route optimization to improve vehicle utilization")
    if dashboard.efficiency_score < LOW_EFFICIENCY_SCORE:
        insights.append("Fleet efficiency needs improvement")
        recommendations.append("Implement driver training programs to improve efficiency")
    if dashboard.cost_per_km > HIGH_COST_PER_KM:
        insights.append("Cost per kilometer is above industry average")
        recommendations.append("Review fuel consumption and maintenance costs")
    return insights, recommendations
