"""Report payload variants, one per report category."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrendPoint(_Frozen):
    """A calendar day and its aggregated metric value."""

    date: date
    value: float


class FleetDashboard(_Frozen):
    report_type: Literal["fleet_overview"] = "fleet_overview"

    total_vehicles: int = 0
    active_vehicles: int = 0
    inactive_vehicles: int = 0
    maintenance_vehicles: int = 0
    total_drivers: int = 0
    active_drivers: int = 0
    total_trips: int = 0
    active_trips: int = 0
    total_distance_km: float = 0.0
    total_fuel_liters: float = 0.0
    average_speed: float = 0.0
    utilization_rate: float = 0.0
    fuel_efficiency: float = 0.0
    total_cost: float = 0.0
    cost_per_km: float = 0.0
    efficiency_score: float = 0.0
    daily_distance: list[TrendPoint] = Field(default_factory=list)


class BehaviorMetrics(_Frozen):
    """Counted driving events for one driver over the reporting window."""

    speeding_events: int = 0
    harsh_braking_events: int = 0
    idling_events: int = 0
    geofence_violations: int = 0


class DriverScoreCard(_Frozen):
    driver_id: str
    driver_name: str = ""
    score: float = 100.0
    rank: int = 0
    total_trips: int = 0
    total_distance_km: float = 0.0
    behavior: BehaviorMetrics = Field(default_factory=BehaviorMetrics)
    improvement_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    daily_trend: list[TrendPoint] = Field(default_factory=list)


class DriverPerformanceReport(_Frozen):
    report_type: Literal["driver_performance"] = "driver_performance"

    total_drivers: int = 0
    average_score: float = 0.0
    best_driver_id: str | None = None
    worst_driver_id: str | None = None
    drivers: list[DriverScoreCard] = Field(default_factory=list)


class FuelTheftAlert(_Frozen):
    alert_id: str
    vehicle_id: str
    alert_type: Literal["fuel_theft"] = "fuel_theft"
    severity: Literal["high"] = "high"
    message: str = "Suspicious fuel level drop detected"
    previous_level: float
    current_level: float
    drop: float
    detected_at: datetime


class VehicleFuelStats(_Frozen):
    vehicle_id: str
    fuel_consumed: float = 0.0
    distance_km: float = 0.0
    efficiency: float = 0.0


class FuelAnalytics(_Frozen):
    report_type: Literal["fuel_analytics"] = "fuel_analytics"

    total_fuel_consumed: float = 0.0
    total_distance_km: float = 0.0
    average_efficiency: float = 0.0
    fuel_cost: float = 0.0
    tax_amount: float = 0.0
    total_cost_with_tax: float = 0.0
    cost_savings: float = 0.0
    by_vehicle: list[VehicleFuelStats] = Field(default_factory=list)
    theft_alerts: list[FuelTheftAlert] = Field(default_factory=list)
    daily_consumption: list[TrendPoint] = Field(default_factory=list)
    optimization_tips: list[str] = Field(default_factory=list)


class HighCostVehicle(_Frozen):
    vehicle_id: str
    total_cost: float
    service_count: int
    share_of_total: float


class MaintenanceCostReport(_Frozen):
    report_type: Literal["maintenance_costs"] = "maintenance_costs"

    total_services: int = 0
    total_cost: float = 0.0
    average_cost: float = 0.0
    min_cost: float = 0.0
    max_cost: float = 0.0
    cost_per_km: float = 0.0
    cost_by_type: dict[str, float] = Field(default_factory=dict)
    high_cost_vehicles: list[HighCostVehicle] = Field(default_factory=list)
    daily_cost: list[TrendPoint] = Field(default_factory=list)


class RouteEfficiency(_Frozen):
    trip_id: str
    vehicle_id: str
    distance_km: float
    actual_hours: float
    expected_hours: float
    efficiency: float
    is_efficient: bool


class RouteEfficiencyReport(_Frozen):
    report_type: Literal["route_efficiency"] = "route_efficiency"

    total_routes: int = 0
    efficient_routes: int = 0
    inefficient_routes: int = 0
    efficiency_rate: float = 0.0
    average_efficiency: float = 0.0
    average_speed: float = 0.0
    total_distance_km: float = 0.0
    routes: list[RouteEfficiency] = Field(default_factory=list)


class GeofenceActivity(_Frozen):
    geofence_id: str
    geofence_name: str = ""
    entries: int = 0
    exits: int = 0
    violations: int = 0


class GeofenceActivityReport(_Frozen):
    report_type: Literal["geofence_activity"] = "geofence_activity"

    total_events: int = 0
    entries: int = 0
    exits: int = 0
    violations: int = 0
    by_geofence: list[GeofenceActivity] = Field(default_factory=list)
    daily_events: list[TrendPoint] = Field(default_factory=list)


class DriverHours(_Frozen):
    driver_id: str
    driver_name: str = ""
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    violation: bool = False


class VehicleInspection(_Frozen):
    vehicle_id: str
    last_inspection: datetime | None = None
    next_due: datetime | None = None
    status: Literal["valid", "due_soon", "overdue", "unknown"] = "unknown"


class TaxReport(_Frozen):
    taxable_fuel_cost: float = 0.0
    taxable_maintenance_cost: float = 0.0
    taxable_amount: float = 0.0
    ppn_rate: float = 0.11
    ppn_amount: float = 0.0


class RegulatoryCompliance(_Frozen):
    ministry_transport: float = 100.0
    data_protection: float = 100.0
    labor_law: float = 100.0
    tax_compliance: float = 100.0
    overall: float = 100.0


class ComplianceReport(_Frozen):
    report_type: Literal["compliance_report"] = "compliance_report"

    driver_hours: list[DriverHours] = Field(default_factory=list)
    vehicle_inspections: list[VehicleInspection] = Field(default_factory=list)
    tax_report: TaxReport = Field(default_factory=TaxReport)
    regulatory: RegulatoryCompliance = Field(default_factory=RegulatoryCompliance)
    violations: list[str] = Field(default_factory=list)


class VehicleCost(_Frozen):
    vehicle_id: str
    fuel_cost: float = 0.0
    maintenance_cost: float = 0.0
    total_cost: float = 0.0


class CostAnalysisReport(_Frozen):
    report_type: Literal["cost_analysis"] = "cost_analysis"

    fuel_cost: float = 0.0
    maintenance_cost: float = 0.0
    tax_cost: float = 0.0
    total_cost: float = 0.0
    total_revenue: float = 0.0
    net_margin: float = 0.0
    cost_per_km: float = 0.0
    cost_per_trip: float = 0.0
    cost_breakdown: dict[str, float] = Field(default_factory=dict)
    by_vehicle: list[VehicleCost] = Field(default_factory=list)
    daily_cost: list[TrendPoint] = Field(default_factory=list)


class VehicleUtilization(_Frozen):
    vehicle_id: str
    trip_count: int = 0
    active_hours: float = 0.0
    utilization_rate: float = 0.0
    underutilized: bool = False


class UtilizationReport(_Frozen):
    report_type: Literal["utilization_report"] = "utilization_report"

    period_hours: float = 0.0
    total_vehicles: int = 0
    average_utilization: float = 0.0
    underutilized_count: int = 0
    vehicles: list[VehicleUtilization] = Field(default_factory=list)


class MaintenancePrediction(_Frozen):
    vehicle_id: str
    last_maintenance: datetime | None = None
    days_since_maintenance: int | None = None
    next_maintenance_date: datetime
    confidence: float
    risk_level: Literal["low", "medium", "high"]
    recommendation: str


class FuelForecast(_Frozen):
    horizon_days: int = 7
    average_daily_consumption: float = 0.0
    predicted_consumption: float = 0.0
    confidence: float = 0.5


class PredictiveInsightsReport(_Frozen):
    report_type: Literal["predictive_insights"] = "predictive_insights"

    current_fuel: float = 0.0
    previous_fuel: float = 0.0
    fuel_change_pct: float = 0.0
    fuel_trend: Literal["increasing", "decreasing", "stable"] = "stable"
    predicted_fuel: float = 0.0
    current_maintenance_cost: float = 0.0
    previous_maintenance_cost: float = 0.0
    maintenance_change_pct: float = 0.0
    predicted_maintenance_cost: float = 0.0
    predicted_total_cost: float = 0.0
    vehicles_needing_attention: list[str] = Field(default_factory=list)
    maintenance_predictions: list[MaintenancePrediction] = Field(default_factory=list)
    fuel_forecast: FuelForecast = Field(default_factory=FuelForecast)


ReportPayload = Annotated[
    Union[
        FleetDashboard,
        DriverPerformanceReport,
        FuelAnalytics,
        MaintenanceCostReport,
        RouteEfficiencyReport,
        GeofenceActivityReport,
        ComplianceReport,
        CostAnalysisReport,
        UtilizationReport,
        PredictiveInsightsReport,
    ],
    Field(discriminator="report_type"),
]
