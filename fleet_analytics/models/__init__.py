"""Shared data models for the fleet analytics engine."""

from fleet_analytics.models.records import (
    Driver,
    EntityKind,
    FleetRecord,
    FuelLog,
    GeofenceEvent,
    GpsTrack,
    MaintenanceLog,
    TimeRange,
    Trip,
    Vehicle,
    record_type_for,
)
from fleet_analytics.models.reports import (
    BehaviorMetrics,
    ComplianceReport,
    CostAnalysisReport,
    DriverPerformanceReport,
    DriverScoreCard,
    FleetDashboard,
    FuelAnalytics,
    FuelTheftAlert,
    GeofenceActivityReport,
    MaintenanceCostReport,
    PredictiveInsightsReport,
    ReportPayload,
    RouteEfficiencyReport,
    TrendPoint,
    UtilizationReport,
)
from fleet_analytics.models.request import DateRange, ReportRequest, ReportType, default_date_range
from fleet_analytics.models.response import ChartSeries, ReportMetadata, ReportResponse, Summary

__all__ = [
    "BehaviorMetrics",
    "ChartSeries",
    "ComplianceReport",
    "CostAnalysisReport",
    "DateRange",
    "Driver",
    "DriverPerformanceReport",
    "DriverScoreCard",
    "EntityKind",
    "FleetDashboard",
    "FleetRecord",
    "FuelAnalytics",
    "FuelLog",
    "FuelTheftAlert",
    "GeofenceActivityReport",
    "GeofenceEvent",
    "GpsTrack",
    "MaintenanceCostReport",
    "MaintenanceLog",
    "PredictiveInsightsReport",
    "ReportMetadata",
    "ReportPayload",
    "ReportRequest",
    "ReportResponse",
    "ReportType",
    "RouteEfficiencyReport",
    "Summary",
    "TimeRange",
    "TrendPoint",
    "Trip",
    "UtilizationReport",
    "Vehicle",
    "default_date_range",
    "record_type_for",
]
