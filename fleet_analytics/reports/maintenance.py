"""Maintenance cost breakdown."""

from __future__ import annotations

from collections import defaultdict

from fleet_analytics.models.records import EntityKind, MaintenanceLog
from fleet_analytics.models.reports import HighCostVehicle, MaintenanceCostReport
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
from fleet_analytics.reports.metrics import build_daily_trend, percentage, safe_divide
from fleet_analytics.repositories.base import AggregateFn, FleetDataRepository

HIGH_COST_PER_KM = 500.0


class MaintenanceCostGenerator:
    report_type = ReportType.MAINTENANCE_COSTS

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        logs: list[MaintenanceLog] = await fetch(repo, EntityKind.MAINTENANCE_LOG, request)
        distance = await repo.aggregate(
            EntityKind.TRIP,
            request.company_id,
            request.filters,
            AggregateFn.SUM,
            "distance_km",
            request_time_range(request),
        )

        costs = [log.cost for log in logs]
        total_cost = sum(costs)
        average_cost = safe_divide(total_cost, len(logs))
        cost_per_km = safe_divide(total_cost, distance)

        cost_by_type: dict[str, float] = defaultdict(float)
        per_vehicle: dict[str, list[float]] = defaultdict(list)
        for log in logs:
            cost_by_type[log.maintenance_type] += log.cost
            per_vehicle[log.vehicle_id].append(log.cost)

        high_cost = [
            HighCostVehicle(
                vehicle_id=vehicle_id,
                total_cost=round(sum(vehicle_costs), 2),
                service_count=len(vehicle_costs),
                share_of_total=round(percentage(sum(vehicle_costs), total_cost), 2),
            )
            for vehicle_id, vehicle_costs in per_vehicle.items()
            if sum(vehicle_costs) > average_cost
        ]
        high_cost.sort(key=lambda item: (-item.total_cost, item.vehicle_id))
        daily = build_daily_trend((log.performed_at, log.cost) for log in logs)

        report = MaintenanceCostReport(
            total_services=len(logs),
            total_cost=round(total_cost, 2),
            average_cost=round(average_cost, 2),
            min_cost=round(min(costs), 2) if costs else 0.0,
            max_cost=round(max(costs), 2) if costs else 0.0,
            cost_per_km=round(cost_per_km, 2),
            cost_by_type={key: round(value, 2) for key, value in sorted(cost_by_type.items())},
            high_cost_vehicles=high_cost,
            daily_cost=daily,
        )

        insights: list[str] = []
        recommendations: list[str] = []
        if logs:
            insights.append(f"Total maintenance cost: IDR {total_cost:.2f}")
            insights.append(f"Average cost per service: IDR {average_cost:.2f}")
            insights.append(f"Cost per kilometer: IDR {cost_per_km:.2f}/km")
        if cost_per_km > HIGH_COST_PER_KM:
            recommendations.append("Maintenance cost per kilometer is high; review preventive maintenance schedules")
        if high_cost:
            insights.append(f"{len(high_cost)} vehicle(s) exceed the average service cost")
            recommendations.append("Consider replacing vehicles with consistently high maintenance costs")

        summary = build_summary(costs, daily, insights=insights, recommendations=recommendations)
        charts = [
            breakdown_chart("Maintenance Cost by Type", report.cost_by_type),
            trend_chart("Daily Maintenance Cost", daily, y_label="IDR"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(logs),
            observed_days=observed_days(logs),
        )
