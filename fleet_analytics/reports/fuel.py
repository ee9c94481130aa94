"""Fuel consumption, efficiency, cost and theft detection."""

from __future__ import annotations

from collections import defaultdict

from fleet_analytics.models.records import EntityKind, FuelLog
from fleet_analytics.models.reports import FuelAnalytics, VehicleFuelStats
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import (
    build_daily_trend,
    detect_fuel_theft,
    fuel_cost,
    fuel_cost_savings,
    fuel_efficiency,
    fuel_optimization_tips,
    tax_amount,
)
from fleet_analytics.repositories.base import FleetDataRepository


class FuelAnalyticsGenerator:
    report_type = ReportType.FUEL_ANALYTICS

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        logs: list[FuelLog] = await fetch(repo, EntityKind.FUEL_LOG, request)

        total_fuel = sum(log.fuel_consumed for log in logs)
        total_distance = sum(log.distance_km for log in logs)
        efficiency = fuel_efficiency(total_distance, total_fuel)
        cost = fuel_cost(total_fuel)
        tax = tax_amount(cost)

        per_vehicle: dict[str, list[FuelLog]] = defaultdict(list)
        for log in logs:
            per_vehicle[log.vehicle_id].append(log)
        by_vehicle = []
        for vehicle_id in sorted(per_vehicle):
            fuel = sum(log.fuel_consumed for log in per_vehicle[vehicle_id])
            distance = sum(log.distance_km for log in per_vehicle[vehicle_id])
            by_vehicle.append(
                VehicleFuelStats(
                    vehicle_id=vehicle_id,
                    fuel_consumed=round(fuel, 2),
                    distance_km=round(distance, 2),
                    efficiency=round(fuel_efficiency(distance, fuel), 2),
                )
            )

        alerts = detect_fuel_theft(logs)
        daily = build_daily_trend((log.recorded_at, log.fuel_consumed) for log in logs)
        tips = fuel_optimization_tips(efficiency, total_fuel) if logs else []

        analytics = FuelAnalytics(
            total_fuel_consumed=round(total_fuel, 2),
            total_distance_km=round(total_distance, 2),
            average_efficiency=round(efficiency, 2),
            fuel_cost=round(cost, 2),
            tax_amount=round(tax, 2),
            total_cost_with_tax=round(cost + tax, 2),
            cost_savings=round(fuel_cost_savings(efficiency), 2),
            by_vehicle=by_vehicle,
            theft_alerts=alerts,
            daily_consumption=daily,
            optimization_tips=tips,
        )

        insights: list[str] = []
        if logs:
            insights.append(f"Average fuel efficiency: {efficiency:.2f} km/L")
            insights.append(f"Total fuel cost: IDR {cost:.2f}")
        if alerts:
            insights.append(f"{len(alerts)} suspicious fuel level drop(s) detected")
        recommendations = list(tips)
        if alerts:
            recommendations.append("Investigate flagged fuel level drops and review refueling records")

        summary = build_summary(
            [log.fuel_consumed for log in logs],
            daily,
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            trend_chart("Daily Fuel Consumption", daily, kind="area", y_label="liters"),
            breakdown_chart("Fuel Efficiency by Vehicle", {stat.vehicle_id: stat.efficiency for stat in by_vehicle}),
        ]
        return ReportResult(
            payload=analytics,
            summary=summary,
            charts=charts,
            data_points=len(logs),
            observed_days=observed_days(logs),
        )
