"""Operating cost breakdown per category and vehicle."""

from __future__ import annotations

from collections import defaultdict

from fleet_analytics.models.records import EntityKind, FuelLog, MaintenanceLog, Trip
from fleet_analytics.models.reports import CostAnalysisReport, VehicleCost
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import build_daily_trend, fuel_cost, percentage, safe_divide, tax_amount
from fleet_analytics.repositories.base import FleetDataRepository

FUEL_SHARE_WARNING_PCT = 60.0


class CostAnalysisGenerator:
    report_type = ReportType.COST_ANALYSIS

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        fuel_logs: list[FuelLog] = await fetch(repo, EntityKind.FUEL_LOG, request)
        maintenance: list[MaintenanceLog] = await fetch(repo, EntityKind.MAINTENANCE_LOG, request)
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)

        fuel_total = fuel_cost(sum(log.fuel_consumed for log in fuel_logs))
        maintenance_total = sum(log.cost for log in maintenance)
        tax_total = tax_amount(fuel_total)
        total_cost = fuel_total + maintenance_total + tax_total
        revenue = sum(trip.revenue for trip in trips)
        distance = sum(trip.distance_km for trip in trips)

        vehicle_fuel: dict[str, float] = defaultdict(float)
        vehicle_maintenance: dict[str, float] = defaultdict(float)
        for log in fuel_logs:
            vehicle_fuel[log.vehicle_id] += fuel_cost(log.fuel_consumed)
        for log in maintenance:
            vehicle_maintenance[log.vehicle_id] += log.cost
        by_vehicle = [
            VehicleCost(
                vehicle_id=vehicle_id,
                fuel_cost=round(vehicle_fuel[vehicle_id], 2),
                maintenance_cost=round(vehicle_maintenance[vehicle_id], 2),
                total_cost=round(vehicle_fuel[vehicle_id] + vehicle_maintenance[vehicle_id], 2),
            )
            for vehicle_id in sorted(set(vehicle_fuel) | set(vehicle_maintenance))
        ]

        daily = build_daily_trend(
            [(log.recorded_at, fuel_cost(log.fuel_consumed)) for log in fuel_logs]
            + [(log.performed_at, log.cost) for log in maintenance]
        )
        breakdown = {
            "fuel": round(fuel_total, 2),
            "maintenance": round(maintenance_total, 2),
            "tax": round(tax_total, 2),
        }
        report = CostAnalysisReport(
            fuel_cost=breakdown["fuel"],
            maintenance_cost=breakdown["maintenance"],
            tax_cost=breakdown["tax"],
            total_cost=round(total_cost, 2),
            total_revenue=round(revenue, 2),
            net_margin=round(revenue - total_cost, 2),
            cost_per_km=round(safe_divide(total_cost, distance), 2),
            cost_per_trip=round(safe_divide(total_cost, len(trips)), 2),
            cost_breakdown=breakdown,
            by_vehicle=by_vehicle,
            daily_cost=daily,
        )

        insights: list[str] = []
        recommendations: list[str] = []
        if total_cost > 0:
            fuel_share = percentage(fuel_total, total_cost)
            insights.append(f"Total operating cost: IDR {total_cost:.2f}")
            insights.append(f"Fuel accounts for {fuel_share:.2f}% of operating cost")
            if fuel_share > FUEL_SHARE_WARNING_PCT:
                recommendations.append("Fuel dominates operating cost; prioritize fuel efficiency programs")
        if revenue and revenue < total_cost:
            insights.append("Operating cost exceeds trip revenue for the period")
            recommendations.append("Review pricing and route profitability")
        if by_vehicle:
            costliest = max(by_vehicle, key=lambda item: (item.total_cost, item.vehicle_id))
            insights.append(f"Highest cost vehicle: {costliest.vehicle_id} (IDR {costliest.total_cost:.2f})")

        summary = build_summary(
            [point.value for point in daily],
            daily,
            total_records=len(fuel_logs) + len(maintenance),
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            breakdown_chart("Cost Breakdown", breakdown, kind="pie"),
            trend_chart("Daily Operating Cost", daily, y_label="IDR"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(fuel_logs) + len(maintenance) + len(trips),
            observed_days=observed_days(fuel_logs) | observed_days(maintenance) | observed_days(trips),
        )
