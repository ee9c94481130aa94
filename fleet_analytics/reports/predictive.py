"""Period-over-period forecasts and maintenance risk."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta

from fleet_analytics.models.records import EntityKind, FuelLog, MaintenanceLog, TimeRange, Vehicle
from fleet_analytics.models.reports import FuelForecast, MaintenancePrediction, PredictiveInsightsReport, TrendPoint
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.models.response import ChartSeries
from fleet_analytics.reports.base import ReportResult, build_summary, fetch, observed_days, request_time_range
from fleet_analytics.reports.metrics import FUEL_PRICE_PER_LITER, build_daily_trend, safe_divide
from fleet_analytics.repositories.base import AggregateFn, FleetDataRepository

FUEL_TREND_THRESHOLD_PCT = 10.0
FUEL_ALERT_CHANGE_PCT = 20.0
MAINTENANCE_ALERT_CHANGE_PCT = 30.0
ATTENTION_COST_FACTOR = 1.5
MAINTENANCE_INTERVAL_KM = 10000.0
ASSUMED_DAILY_KM = 100.0
FORECAST_HORIZON_DAYS = 7
MAINTENANCE_HISTORY = timedelta(days=365)


def change_pct(current: float, previous: float) -> float:
    return safe_divide(current - previous, previous) * 100


def maintenance_confidence(days_since: int | None) -> float:
    if days_since is None:
        return 0.5
    if days_since < 30:
        return 0.9
    if days_since < 90:
        return 0.7
    return 0.5


def maintenance_risk(confidence: float) -> str:
    if confidence > 0.8:
        return "low"
    if confidence > 0.6:
        return "medium"
    return "high"


def maintenance_recommendation(confidence: float) -> str:
    if confidence > 0.8:
        return "Schedule routine maintenance"
    if confidence > 0.6:
        return "Monitor closely and schedule maintenance soon"
    return "Schedule immediate maintenance inspection"


def forecast_confidence(days_of_history: int) -> float:
    if days_of_history < 7:
        return 0.5
    if days_of_history < 30:
        return 0.7
    return 0.9


def predict_maintenance(vehicle_id: str, last: datetime | None, as_of: datetime) -> MaintenancePrediction:
    days_since = (as_of - last).days if last is not None else None
    confidence = maintenance_confidence(days_since)
    interval = timedelta(days=MAINTENANCE_INTERVAL_KM / ASSUMED_DAILY_KM)
    return MaintenancePrediction(
        vehicle_id=vehicle_id,
        last_maintenance=last,
        days_since_maintenance=days_since,
        next_maintenance_date=(last + interval) if last is not None else as_of,
        confidence=confidence,
        risk_level=maintenance_risk(confidence),
        recommendation=maintenance_recommendation(confidence),
    )


def fuel_forecast(daily: list[TrendPoint]) -> FuelForecast:
    average = safe_divide(sum(point.value for point in daily), len(daily))
    return FuelForecast(
        horizon_days=FORECAST_HORIZON_DAYS,
        average_daily_consumption=round(average, 2),
        predicted_consumption=round(average * FORECAST_HORIZON_DAYS, 2),
        confidence=forecast_confidence(len(daily)),
    )


class PredictiveInsightsGenerator:
    report_type = ReportType.PREDICTIVE_INSIGHTS

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        window = request.window
        current_range = request_time_range(request)
        previous_range = TimeRange(
            start=window.start_date - window.span,
            end=window.start_date - timedelta(milliseconds=1),
        )

        async def _total(kind: EntityKind, field: str, time_range: TimeRange) -> float:
            return await repo.aggregate(kind, request.company_id, request.filters, AggregateFn.SUM, field, time_range)

        current_fuel = await _total(EntityKind.FUEL_LOG, "fuel_consumed", current_range)
        previous_fuel = await _total(EntityKind.FUEL_LOG, "fuel_consumed", previous_range)
        current_maintenance = await _total(EntityKind.MAINTENANCE_LOG, "cost", current_range)
        previous_maintenance = await _total(EntityKind.MAINTENANCE_LOG, "cost", previous_range)

        vehicles: list[Vehicle] = await fetch(repo, EntityKind.VEHICLE, request)
        fuel_logs: list[FuelLog] = await fetch(repo, EntityKind.FUEL_LOG, request)
        history: list[MaintenanceLog] = await fetch(
            repo,
            EntityKind.MAINTENANCE_LOG,
            request,
            TimeRange(start=window.end_date - MAINTENANCE_HISTORY, end=window.end_date),
        )

        fuel_change = change_pct(current_fuel, previous_fuel)
        if fuel_change > FUEL_TREND_THRESHOLD_PCT:
            fuel_trend = "increasing"
        elif fuel_change < -FUEL_TREND_THRESHOLD_PCT:
            fuel_trend = "decreasing"
        else:
            fuel_trend = "stable"
        maintenance_change = change_pct(current_maintenance, previous_maintenance)
        predicted_fuel = current_fuel * (1 + fuel_change / 100)
        predicted_maintenance = current_maintenance * (1 + maintenance_change / 100)
        predicted_total = predicted_fuel * FUEL_PRICE_PER_LITER + predicted_maintenance

        window_cost: dict[str, float] = defaultdict(float)
        last_service: dict[str, datetime] = {}
        for log in history:
            if log.performed_at >= window.start_date:
                window_cost[log.vehicle_id] += log.cost
            if log.vehicle_id not in last_service or log.performed_at > last_service[log.vehicle_id]:
                last_service[log.vehicle_id] = log.performed_at

        attention: list[str] = []
        if vehicles and current_maintenance > 0:
            threshold = current_maintenance / len(vehicles) * ATTENTION_COST_FACTOR
            attention = sorted(vehicle_id for vehicle_id, cost in window_cost.items() if cost > threshold)

        predictions = [
            predict_maintenance(vehicle.vehicle_id, last_service.get(vehicle.vehicle_id), window.end_date)
            for vehicle in vehicles
        ]
        daily_fuel = build_daily_trend((log.recorded_at, log.fuel_consumed) for log in fuel_logs)

        report = PredictiveInsightsReport(
            current_fuel=round(current_fuel, 2),
            previous_fuel=round(previous_fuel, 2),
            fuel_change_pct=round(fuel_change, 2),
            fuel_trend=fuel_trend,
            predicted_fuel=round(predicted_fuel, 2),
            current_maintenance_cost=round(current_maintenance, 2),
            previous_maintenance_cost=round(previous_maintenance, 2),
            maintenance_change_pct=round(maintenance_change, 2),
            predicted_maintenance_cost=round(predicted_maintenance, 2),
            predicted_total_cost=round(predicted_total, 2),
            vehicles_needing_attention=attention,
            maintenance_predictions=predictions,
            fuel_forecast=fuel_forecast(daily_fuel),
        )

        insights = [
            f"Fuel consumption trend: {fuel_trend} ({fuel_change:.1f}% change)",
            f"Predicted next period fuel: {predicted_fuel:.2f} liters",
            f"Predicted maintenance cost: IDR {predicted_maintenance:.2f}",
            f"Predicted total cost: IDR {predicted_total:.2f}",
        ]
        if attention:
            insights.append(f"{len(attention)} vehicles need attention")
        recommendations: list[str] = []
        if fuel_change > FUEL_ALERT_CHANGE_PCT:
            recommendations.append("Fuel consumption increasing significantly - investigate causes")
        if maintenance_change > MAINTENANCE_ALERT_CHANGE_PCT:
            recommendations.append("Maintenance costs rising rapidly - review fleet age and condition")
        if attention:
            recommendations.append("Consider preventive maintenance for high-cost vehicles")

        summary = build_summary(
            [point.value for point in daily_fuel],
            daily_fuel,
            insights=insights,
            recommendations=recommendations,
        )
        labels = ["previous", "current", "predicted"]
        values = [round(previous_fuel, 2), round(current_fuel, 2), round(predicted_fuel, 2)]
        charts = [
            ChartSeries(
                type="line",
                title="Fuel Consumption Trend & Forecast",
                x_axis=labels,
                y_axis=values,
                data=dict(zip(labels, values)),
            ),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(vehicles) + len(fuel_logs) + len(history),
            observed_days=observed_days(fuel_logs),
        )
