"""Driver hours, vehicle inspections, PPN tax and regulatory compliance."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta

from fleet_analytics.models.records import Driver, EntityKind, FuelLog, MaintenanceLog, TimeRange, Trip, Vehicle
from fleet_analytics.models.reports import (
    ComplianceReport,
    DriverHours,
    RegulatoryCompliance,
    TaxReport,
    VehicleInspection,
)
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days
from fleet_analytics.reports.metrics import PPN_TAX_RATE, fuel_cost, percentage, safe_divide
from fleet_analytics.reports.routes import trip_hours
from fleet_analytics.repositories.base import FleetDataRepository

STANDARD_WEEKLY_HOURS = 40.0
MAX_WEEKLY_OVERTIME_HOURS = 18.0
INSPECTION_INTERVAL = timedelta(days=365)
INSPECTION_DUE_SOON = timedelta(days=30)
# Older inspections report "unknown"; anything within it can still be "overdue".
INSPECTION_HISTORY = 2 * INSPECTION_INTERVAL
INSPECTION_TYPE = "inspection"
DATA_PROTECTION_SCORE = 100.0


def weeks_in_window(start: datetime, end: datetime) -> float:
    """Length of the window in weeks, never less than one."""
    return max((end - start).total_seconds() / (7 * 24 * 3600), 1.0)


def driver_hours(driver: Driver, trips: list[Trip], weeks: float) -> DriverHours:
    total = sum(trip_hours(trip) for trip in trips)
    regular_cap = STANDARD_WEEKLY_HOURS * weeks
    return DriverHours(
        driver_id=driver.driver_id,
        driver_name=driver.name,
        total_hours=round(total, 2),
        regular_hours=round(min(total, regular_cap), 2),
        overtime_hours=round(max(total - regular_cap, 0.0), 2),
        violation=total > (STANDARD_WEEKLY_HOURS + MAX_WEEKLY_OVERTIME_HOURS) * weeks,
    )


def inspection_status(vehicle_id: str, inspections: list[MaintenanceLog], as_of: datetime) -> VehicleInspection:
    """Status of the most recent inspection on or before ``as_of``."""
    past = [log for log in inspections if log.performed_at <= as_of]
    if not past:
        return VehicleInspection(vehicle_id=vehicle_id)
    last = max(past, key=lambda log: log.performed_at).performed_at
    next_due = last + INSPECTION_INTERVAL
    if as_of > next_due:
        status = "overdue"
    elif next_due - as_of <= INSPECTION_DUE_SOON:
        status = "due_soon"
    else:
        status = "valid"
    return VehicleInspection(vehicle_id=vehicle_id, last_inspection=last, next_due=next_due, status=status)


class ComplianceReportGenerator:
    report_type = ReportType.COMPLIANCE_REPORT

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        window = request.window
        drivers: list[Driver] = await fetch(repo, EntityKind.DRIVER, request)
        vehicles: list[Vehicle] = await fetch(repo, EntityKind.VEHICLE, request)
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)
        fuel_logs: list[FuelLog] = await fetch(repo, EntityKind.FUEL_LOG, request)
        maintenance: list[MaintenanceLog] = await fetch(repo, EntityKind.MAINTENANCE_LOG, request)
        # Inspections are looked up over a longer history than the report window.
        history: list[MaintenanceLog] = await fetch(
            repo,
            EntityKind.MAINTENANCE_LOG,
            request,
            TimeRange(start=window.end_date - INSPECTION_HISTORY, end=window.end_date),
        )

        weeks = weeks_in_window(window.start_date, window.end_date)
        trips_by_driver: dict[str, list[Trip]] = defaultdict(list)
        for trip in trips:
            if trip.driver_id:
                trips_by_driver[trip.driver_id].append(trip)
        hours = [driver_hours(driver, trips_by_driver.get(driver.driver_id, []), weeks) for driver in drivers]

        inspections_by_vehicle: dict[str, list[MaintenanceLog]] = defaultdict(list)
        for log in history:
            if log.maintenance_type == INSPECTION_TYPE:
                inspections_by_vehicle[log.vehicle_id].append(log)
        inspections = [
            inspection_status(vehicle.vehicle_id, inspections_by_vehicle.get(vehicle.vehicle_id, []), window.end_date)
            for vehicle in vehicles
        ]

        taxable_fuel = fuel_cost(sum(log.fuel_consumed for log in fuel_logs))
        taxable_maintenance = sum(log.cost for log in maintenance)
        taxable = taxable_fuel + taxable_maintenance
        tax_report = TaxReport(
            taxable_fuel_cost=round(taxable_fuel, 2),
            taxable_maintenance_cost=round(taxable_maintenance, 2),
            taxable_amount=round(taxable, 2),
            ppn_rate=PPN_TAX_RATE,
            ppn_amount=round(taxable * PPN_TAX_RATE, 2),
        )

        hours_violations = [item for item in hours if item.violation]
        overdue = [item for item in inspections if item.status in ("overdue", "unknown")]
        labor_law = 100.0 - percentage(len(hours_violations), len(hours)) if hours else 100.0
        ministry_transport = 100.0 - percentage(len(overdue), len(inspections)) if inspections else 100.0
        tax_compliance = 100.0
        regulatory = RegulatoryCompliance(
            ministry_transport=round(ministry_transport, 2),
            data_protection=DATA_PROTECTION_SCORE,
            labor_law=round(labor_law, 2),
            tax_compliance=tax_compliance,
            overall=round(safe_divide(ministry_transport + DATA_PROTECTION_SCORE + labor_law + tax_compliance, 4), 2),
        )

        violations = [
            f"Driver {item.driver_name or item.driver_id} exceeded working hour limits ({item.total_hours:.2f} h)"
            for item in hours_violations
        ]
        violations += [
            f"Vehicle {item.vehicle_id} inspection is {'overdue' if item.status == 'overdue' else 'missing'}"
            for item in overdue
        ]

        report = ComplianceReport(
            driver_hours=hours,
            vehicle_inspections=inspections,
            tax_report=tax_report,
            regulatory=regulatory,
            violations=violations,
        )

        insights = [f"Overall compliance score: {regulatory.overall:.2f}%"]
        recommendations: list[str] = []
        if hours_violations:
            recommendations.append("Rebalance driver schedules to stay within working hour limits")
        if overdue:
            recommendations.append("Schedule vehicle inspections for overdue or uninspected vehicles")
        due_soon = [item for item in inspections if item.status == "due_soon"]
        if due_soon:
            insights.append(f"{len(due_soon)} vehicle inspection(s) due within 30 days")

        summary = build_summary(
            [item.total_hours for item in hours],
            total_records=len(hours) + len(inspections),
            insights=insights,
            recommendations=recommendations,
        )
        charts = [
            breakdown_chart(
                "Regulatory Compliance",
                {
                    "ministry_transport": regulatory.ministry_transport,
                    "data_protection": regulatory.data_protection,
                    "labor_law": regulatory.labor_law,
                    "tax_compliance": regulatory.tax_compliance,
                },
            ),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(drivers) + len(vehicles) + len(trips) + len(fuel_logs) + len(history),
            observed_days=observed_days(trips) | observed_days(fuel_logs) | observed_days(maintenance),
        )
