"""Route efficiency against an assumed average speed."""

from __future__ import annotations

from fleet_analytics.models.records import EntityKind, Trip
from fleet_analytics.models.reports import RouteEfficiency, RouteEfficiencyReport
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import (
    build_daily_trend,
    expected_route_hours,
    is_efficient_route,
    percentage,
    route_efficiency,
    safe_divide,
)
from fleet_analytics.repositories.base import FleetDataRepository

LOW_EFFICIENCY_RATE = 70.0
LOW_AVERAGE_SPEED = 30.0


def trip_hours(trip: Trip) -> float:
    """Actual trip duration, from the recorded duration or the trip timestamps."""
    if trip.duration_hours > 0:
        return trip.duration_hours
    if trip.end_time is not None and trip.end_time > trip.start_time:
        return (trip.end_time - trip.start_time).total_seconds() / 3600
    return 0.0


class RouteEfficiencyGenerator:
    report_type = ReportType.ROUTE_EFFICIENCY

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)

        routes: list[RouteEfficiency] = []
        speeds: list[float] = []
        for trip in trips:
            hours = trip_hours(trip)
            if trip.distance_km <= 0 or hours <= 0:
                continue
            efficiency = route_efficiency(trip.distance_km, hours)
            routes.append(
                RouteEfficiency(
                    trip_id=trip.trip_id,
                    vehicle_id=trip.vehicle_id,
                    distance_km=round(trip.distance_km, 2),
                    actual_hours=round(hours, 4),
                    expected_hours=round(expected_route_hours(trip.distance_km), 4),
                    efficiency=round(efficiency, 2),
                    is_efficient=is_efficient_route(efficiency),
                )
            )
            speeds.append(trip.average_speed if trip.average_speed > 0 else trip.distance_km / hours)

        efficient = sum(1 for route in routes if route.is_efficient)
        inefficient = len(routes) - efficient
        efficiency_rate = percentage(efficient, len(routes))
        average_efficiency = safe_divide(sum(route.efficiency for route in routes), len(routes))
        average_speed = safe_divide(sum(speeds), len(speeds))

        report = RouteEfficiencyReport(
            total_routes=len(routes),
            efficient_routes=efficient,
            inefficient_routes=inefficient,
            efficiency_rate=round(efficiency_rate, 2),
            average_efficiency=round(average_efficiency, 2),
            average_speed=round(average_speed, 2),
            total_distance_km=round(sum(route.distance_km for route in routes), 2),
            routes=routes,
        )

        insights: list[str] = []
        recommendations: list[str] = []
        if routes:
            insights.append(f"{efficient} of {len(routes)} routes met the efficiency target")
            insights.append(f"Average route efficiency: {average_efficiency:.2f}%")
            if efficiency_rate < LOW_EFFICIENCY_RATE:
                recommendations.append("Review route planning; fewer than 70% of routes are efficient")
            if average_speed < LOW_AVERAGE_SPEED:
                recommendations.append("Average speed is low; consider avoiding congested routes and peak hours")
            if inefficient > efficient:
                recommendations.append("Implement route optimization software to reduce travel time")

        by_start = {trip.trip_id: trip.start_time for trip in trips}
        daily = build_daily_trend(
            ((by_start[route.trip_id], route.efficiency) for route in routes),
            aggregation="avg",
        )
        summary = build_summary(
            [route.efficiency for route in routes],
            daily,
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            breakdown_chart(
                "Route Efficiency Distribution",
                {"efficient": float(efficient), "inefficient": float(inefficient)},
                kind="pie",
            ),
            trend_chart("Daily Route Efficiency", daily, y_label="%"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(trips),
            observed_days=observed_days(trips),
        )
