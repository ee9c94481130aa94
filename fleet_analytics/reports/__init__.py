"""Report generators, one per report category."""

from __future__ import annotations

from fleet_analytics.models.request import ReportType
from fleet_analytics.reports.base import ReportGenerator, ReportResult
from fleet_analytics.reports.compliance import ComplianceReportGenerator
from fleet_analytics.reports.costs import CostAnalysisGenerator
from fleet_analytics.reports.drivers import DriverPerformanceGenerator
from fleet_analytics.reports.fleet import FleetOverviewGenerator
from fleet_analytics.reports.fuel import FuelAnalyticsGenerator
from fleet_analytics.reports.geofence import GeofenceActivityGenerator
from fleet_analytics.reports.maintenance import MaintenanceCostGenerator
from fleet_analytics.reports.predictive import PredictiveInsightsGenerator
from fleet_analytics.reports.routes import RouteEfficiencyGenerator
from fleet_analytics.reports.utilization import UtilizationReportGenerator


def default_generators() -> dict[ReportType, ReportGenerator]:
    """Build the generator registry keyed by report category."""
    generators: list[ReportGenerator] = [
        FleetOverviewGenerator(),
        DriverPerformanceGenerator(),
        FuelAnalyticsGenerator(),
        MaintenanceCostGenerator(),
        RouteEfficiencyGenerator(),
        GeofenceActivityGenerator(),
        ComplianceReportGenerator(),
        CostAnalysisGenerator(),
        UtilizationReportGenerator(),
        PredictiveInsightsGenerator(),
    ]
    return {generator.report_type: generator for generator in generators}


__all__ = [
    "ComplianceReportGenerator",
    "CostAnalysisGenerator",
    "DriverPerformanceGenerator",
    "FleetOverviewGenerator",
    "FuelAnalyticsGenerator",
    "GeofenceActivityGenerator",
    "MaintenanceCostGenerator",
    "PredictiveInsightsGenerator",
    "ReportGenerator",
    "ReportResult",
    "RouteEfficiencyGenerator",
    "UtilizationReportGenerator",
    "default_generators",
]
