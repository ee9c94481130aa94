"""Derived-metric algorithms used by the report generators.

Constants reproduce the production heuristics. Monetary values are in IDR.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime
from typing import Literal

from fleet_analytics.models.records import FuelLog, GpsTrack
from fleet_analytics.models.reports import BehaviorMetrics, FuelTheftAlert, TrendPoint

SPEEDING_THRESHOLD_KMH = 80.0
HARSH_BRAKING_THRESHOLD = -5.0
IDLING_MAX_SPEED_KMH = 5.0

SPEEDING_PENALTY = 2.0
HARSH_BRAKING_PENALTY = 3.0
IDLING_PENALTY = 0.5
GEOFENCE_VIOLATION_PENALTY = 5.0

FUEL_THEFT_DROP_THRESHOLD = 20.0
FUEL_PRICE_PER_LITER = 15000.0
PPN_TAX_RATE = 0.11
TARGET_FUEL_EFFICIENCY = 15.0

ASSUMED_AVERAGE_SPEED_KMH = 40.0
EFFICIENT_ROUTE_THRESHOLD = 80.0

TREND_THRESHOLD_PCT = 5.0

Aggregation = Literal["sum", "avg"]
Trend = Literal["increasing", "decreasing", "stable"]


def safe_divide(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def percentage(part: float, whole: float) -> float:
    return safe_divide(part, whole) * 100.0


# Driver behavior


def is_speeding(track: GpsTrack) -> bool:
    return track.speed > SPEEDING_THRESHOLD_KMH


def is_harsh_braking(track: GpsTrack) -> bool:
    return track.acceleration < HARSH_BRAKING_THRESHOLD


def is_idling(track: GpsTrack) -> bool:
    return 0 < track.speed < IDLING_MAX_SPEED_KMH


def behavior_metrics(tracks: Iterable[GpsTrack], geofence_violations: int = 0) -> BehaviorMetrics:
    """Count speeding, harsh-braking and idling samples."""
    speeding = harsh_braking = idling = 0
    for track in tracks:
        if is_speeding(track):
            speeding += 1
        if is_harsh_braking(track):
            harsh_braking += 1
        if is_idling(track):
            idling += 1
    return BehaviorMetrics(
        speeding_events=speeding,
        harsh_braking_events=harsh_braking,
        idling_events=idling,
        geofence_violations=geofence_violations,
    )


def driver_score(metrics: BehaviorMetrics) -> float:
    """Score a driver from 100 down, clamped to [0, 100] and rounded to 2 places."""
    score = 100.0
    score -= metrics.speeding_events * SPEEDING_PENALTY
    score -= metrics.harsh_braking_events * HARSH_BRAKING_PENALTY
    score -= metrics.idling_events * IDLING_PENALTY
    score -= metrics.geofence_violations * GEOFENCE_VIOLATION_PENALTY
    return round(clamp(score), 2)


def driver_recommendations(metrics: BehaviorMetrics, score: float) -> list[str]:
    recommendations: list[str] = []
    if metrics.speeding_events > 5:
        recommendations.append("Focus on maintaining speed limits to improve safety score")
    if metrics.harsh_braking_events > 3:
        recommendations.append("Practice smooth braking techniques to reduce vehicle wear")
    if metrics.idling_events > 10:
        recommendations.append("Reduce idling time to improve fuel efficiency")
    if score < 70:
        recommendations.append("Consider additional driver training program")
    return recommendations


def improvement_areas(metrics: BehaviorMetrics) -> list[str]:
    areas: list[str] = []
    if metrics.speeding_events > 0:
        areas.append("Speed Management")
    if metrics.harsh_braking_events > 0:
        areas.append("Braking Technique")
    if metrics.idling_events > 5:
        areas.append("Idle Time Management")
    if metrics.geofence_violations > 0:
        areas.append("Route Compliance")
    return areas


def driver_daily_trend(tracks: Iterable[GpsTrack]) -> list[TrendPoint]:
    """Average per-sample score by day; a sample loses 2 points when speeding."""
    return build_daily_trend(
        ((track.recorded_at, 100.0 - SPEEDING_PENALTY if is_speeding(track) else 100.0) for track in tracks),
        aggregation="avg",
    )


# Fuel


def detect_fuel_theft(logs: Iterable[FuelLog], threshold: float = FUEL_THEFT_DROP_THRESHOLD) -> list[FuelTheftAlert]:
    """Flag drops between consecutive fuel-level readings larger than ``threshold``.

    Readings are grouped per vehicle and compared in chronological order.
    Distance driven between readings is not taken into account.
    """
    by_vehicle: dict[str, list[FuelLog]] = defaultdict(list)
    for log in logs:
        if log.fuel_level > 0:
            by_vehicle[log.vehicle_id].append(log)

    alerts: list[FuelTheftAlert] = []
    for vehicle_id in sorted(by_vehicle):
        readings = sorted(by_vehicle[vehicle_id], key=lambda item: item.recorded_at)
        for index in range(1, len(readings)):
            previous, current = readings[index - 1], readings[index]
            drop = previous.fuel_level - current.fuel_level
            if drop > threshold:
                alerts.append(
                    FuelTheftAlert(
                        alert_id=f"fuel-theft-{vehicle_id}-{index}",
                        vehicle_id=vehicle_id,
                        previous_level=previous.fuel_level,
                        current_level=current.fuel_level,
                        drop=round(drop, 2),
                        detected_at=current.recorded_at,
                    )
                )
    return alerts


def fuel_efficiency(distance_km: float, fuel_liters: float) -> float:
    """Distance per unit of fuel; zero when no fuel was consumed."""
    return safe_divide(distance_km, fuel_liters)


def fuel_cost(fuel_liters: float) -> float:
    return fuel_liters * FUEL_PRICE_PER_LITER


def tax_amount(cost: float) -> float:
    return cost * PPN_TAX_RATE


def fuel_cost_savings(efficiency: float) -> float:
    """Estimated savings against the target efficiency over a 1000 km reference."""
    if efficiency <= TARGET_FUEL_EFFICIENCY:
        return 0.0
    return (efficiency - TARGET_FUEL_EFFICIENCY) * 1000 * FUEL_PRICE_PER_LITER


def fuel_optimization_tips(efficiency: float, total_fuel: float) -> list[str]:
    tips: list[str] = []
    if efficiency < 10:
        tips.append("Schedule engine maintenance to improve fuel efficiency")
        tips.append("Enroll drivers in eco-driving training")
    if efficiency < 15:
        tips.append("Check and maintain proper tire pressure")
        tips.append("Optimize route planning to reduce unnecessary distance")
    if total_fuel > 1000:
        tips.append("Review fleet composition for fuel-efficient vehicle replacements")
    return tips


# Fleet and utilization


def fleet_utilization(vehicles_with_trips: int, total_vehicles: int) -> float:
    """Share of the fleet that made at least one trip in the period."""
    return percentage(vehicles_with_trips, total_vehicles)


def active_hours_utilization(active_hours: float, period_hours: float) -> float:
    """Share of the period a vehicle spent on trips."""
    return percentage(active_hours, period_hours)


def fleet_efficiency_score(average_speed: float, utilization_rate: float, fuel_per_km: float) -> float:
    speed_component = average_speed / 100 * 30
    utilization_component = utilization_rate / 100 * 40
    fuel_component = (100 - fuel_per_km) / 100 * 30
    return round(clamp(speed_component + utilization_component + fuel_component), 2)


# Routes


def expected_route_hours(distance_km: float) -> float:
    return distance_km / ASSUMED_AVERAGE_SPEED_KMH


def route_efficiency(distance_km: float, actual_hours: float) -> float:
    """Expected over actual duration, as a percentage."""
    return percentage(expected_route_hours(distance_km), actual_hours)


def is_efficient_route(efficiency: float) -> bool:
    return efficiency >= EFFICIENT_ROUTE_THRESHOLD


# Trends and summaries


def build_daily_trend(
    observations: Iterable[tuple[datetime, float]],
    aggregation: Aggregation = "sum",
) -> list[TrendPoint]:
    """Group observations by calendar day (UTC) and aggregate, oldest first."""
    buckets: dict[date, list[float]] = defaultdict(list)
    for observed_at, value in observations:
        buckets[observed_at.date()].append(value)

    reduce: Callable[[list[float]], float]
    if aggregation == "avg":
        reduce = lambda values: sum(values) / len(values)  # noqa: E731
    else:
        reduce = sum
    return [TrendPoint(date=day, value=round(reduce(buckets[day]), 4)) for day in sorted(buckets)]


def growth_rate(points: Sequence[TrendPoint]) -> float:
    """Percentage change from the first to the last trend point."""
    if len(points) < 2:
        return 0.0
    first, last = points[0].value, points[-1].value
    if first == 0:
        return 0.0
    return round((last - first) / first * 100, 2)


def trend_direction(rate: float) -> Trend:
    if rate > TREND_THRESHOLD_PCT:
        return "increasing"
    if rate < -TREND_THRESHOLD_PCT:
        return "decreasing"
    return "stable"
