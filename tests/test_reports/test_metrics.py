"""Tests for derived-metric algorithms."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from fleet_analytics.models.records import FuelLog, GpsTrack
from fleet_analytics.models.reports import BehaviorMetrics, TrendPoint
from fleet_analytics.reports.metrics import (
    active_hours_utilization,
    behavior_metrics,
    build_daily_trend,
    detect_fuel_theft,
    driver_score,
    fleet_utilization,
    fuel_cost,
    fuel_efficiency,
    growth_rate,
    is_efficient_route,
    route_efficiency,
    tax_amount,
    trend_direction,
)

T0 = datetime(2024, 3, 1, 8, tzinfo=timezone.utc)


def _fuel(vehicle_id: str, level: float, minutes: int) -> FuelLog:
    return FuelLog(
        company_id="C1",
        fuel_log_id=f"{vehicle_id}-{minutes}",
        vehicle_id=vehicle_id,
        recorded_at=T0 + timedelta(minutes=minutes),
        fuel_level=level,
    )


def test_driver_score_subtracts_speeding_penalties() -> None:
    metrics = BehaviorMetrics(speeding_events=6)

    assert driver_score(metrics) == 88.00
    assert driver_score(metrics) == driver_score(metrics)


def test_driver_score_applies_every_penalty_and_clamps() -> None:
    metrics = BehaviorMetrics(speeding_events=1, harsh_braking_events=1, idling_events=3, geofence_violations=1)

    assert driver_score(metrics) == 88.5
    assert driver_score(BehaviorMetrics(geofence_violations=30)) == 0.0


def test_behavior_metrics_counts_track_samples() -> None:
    tracks = [
        GpsTrack(company_id="C1", vehicle_id="V1", recorded_at=T0, speed=95),
        GpsTrack(company_id="C1", vehicle_id="V1", recorded_at=T0, speed=40, acceleration=-6),
        GpsTrack(company_id="C1", vehicle_id="V1", recorded_at=T0, speed=2),
        GpsTrack(company_id="C1", vehicle_id="V1", recorded_at=T0, speed=0),
    ]

    metrics = behavior_metrics(tracks, geofence_violations=2)

    assert metrics == BehaviorMetrics(
        speeding_events=1,
        harsh_braking_events=1,
        idling_events=1,
        geofence_violations=2,
    )


def test_fuel_theft_flags_drop_above_threshold() -> None:
    alerts = detect_fuel_theft([_fuel("V1", 80, 0), _fuel("V1", 55, 10)])

    assert len(alerts) == 1
    assert alerts[0].vehicle_id == "V1"
    assert alerts[0].drop == 25
    assert alerts[0].detected_at == T0 + timedelta(minutes=10)


def test_fuel_theft_ignores_drop_within_threshold() -> None:
    assert detect_fuel_theft([_fuel("V1", 80, 0), _fuel("V1", 65, 10)]) == []


def test_fuel_theft_drop_of_exactly_twenty_is_not_flagged() -> None:
    assert detect_fuel_theft([_fuel("V1", 80, 0), _fuel("V1", 60, 10)]) == []
    assert len(detect_fuel_theft([_fuel("V1", 80, 0), _fuel("V1", 59.5, 10)])) == 1


def test_fuel_theft_compares_readings_per_vehicle_in_time_order() -> None:
    logs = [_fuel("V1", 40, 20), _fuel("V2", 90, 0), _fuel("V1", 80, 0), _fuel("V2", 85, 10)]

    alerts = detect_fuel_theft(logs)

    assert [(alert.vehicle_id, alert.previous_level, alert.current_level) for alert in alerts] == [("V1", 80, 40)]


def test_fuel_efficiency_and_costs() -> None:
    assert fuel_efficiency(150, 10) == 15
    assert fuel_efficiency(150, 0) == 0
    assert fuel_cost(10) == 150000
    assert tax_amount(150000) == pytest.approx(16500)


def test_utilization_forms_are_distinct() -> None:
    assert fleet_utilization(3, 4) == 75
    assert fleet_utilization(0, 0) == 0
    assert active_hours_utilization(12, 48) == 25


def test_route_efficiency_threshold() -> None:
    efficiency = route_efficiency(80, 2.5)

    assert efficiency == pytest.approx(80)
    assert is_efficient_route(efficiency)
    assert not is_efficient_route(79.99)


def test_daily_trend_groups_by_day_sorted() -> None:
    observations = [
        (datetime(2024, 3, 2, 9, tzinfo=timezone.utc), 4.0),
        (datetime(2024, 3, 1, 9, tzinfo=timezone.utc), 1.0),
        (datetime(2024, 3, 2, 18, tzinfo=timezone.utc), 2.0),
    ]

    assert build_daily_trend(observations) == [
        TrendPoint(date=date(2024, 3, 1), value=1.0),
        TrendPoint(date=date(2024, 3, 2), value=6.0),
    ]
    assert build_daily_trend(observations, aggregation="avg")[1].value == 3.0


def test_growth_rate_guards_zero_first_value() -> None:
    points = [TrendPoint(date=date(2024, 3, 1), value=0.0), TrendPoint(date=date(2024, 3, 2), value=10.0)]

    assert growth_rate(points) == 0.0
    assert growth_rate([]) == 0.0


def test_growth_rate_and_direction() -> None:
    points = [TrendPoint(date=date(2024, 3, 1), value=10.0), TrendPoint(date=date(2024, 3, 3), value=15.0)]

    assert growth_rate(points) == 50.0
    assert trend_direction(50.0) == "increasing"
    assert trend_direction(-6.0) == "decreasing"
    assert trend_direction(5.0) == "stable"
