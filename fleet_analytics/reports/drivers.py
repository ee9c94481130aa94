"""Driver performance scoring and rankings."""

from __future__ import annotations

from collections import defaultdict

from fleet_analytics.errors import NotFoundError
from fleet_analytics.models.records import Driver, EntityKind, GeofenceEvent, GpsTrack, Trip
from fleet_analytics.models.reports import DriverPerformanceReport, DriverScoreCard
from fleet_analytics.models.request import ReportRequest, ReportType
from fleet_analytics.reports.base import ReportResult, breakdown_chart, build_summary, fetch, observed_days, trend_chart
from fleet_analytics.reports.metrics import (
    behavior_metrics,
    driver_daily_trend,
    driver_recommendations,
    driver_score,
    improvement_areas,
)
from fleet_analytics.repositories.base import FleetDataRepository

TRAINING_SCORE_THRESHOLD = 70.0


class DriverPerformanceGenerator:
    report_type = ReportType.DRIVER_PERFORMANCE

    async def generate(self, request: ReportRequest, repo: FleetDataRepository) -> ReportResult:
        drivers: list[Driver] = await fetch(repo, EntityKind.DRIVER, request)
        requested_driver = request.filters.get("driver_id")
        if requested_driver and not drivers:
            raise NotFoundError("Driver not found", details={"driver_id": str(requested_driver)})

        tracks: list[GpsTrack] = await fetch(repo, EntityKind.GPS_TRACK, request)
        events: list[GeofenceEvent] = await fetch(repo, EntityKind.GEOFENCE_EVENT, request)
        trips: list[Trip] = await fetch(repo, EntityKind.TRIP, request)

        tracks_by_driver: dict[str, list[GpsTrack]] = defaultdict(list)
        for track in tracks:
            if track.driver_id:
                tracks_by_driver[track.driver_id].append(track)
        violations_by_driver: dict[str, int] = defaultdict(int)
        for event in events:
            if event.driver_id and event.event_type == "violation":
                violations_by_driver[event.driver_id] += 1
        trips_by_driver: dict[str, list[Trip]] = defaultdict(list)
        for trip in trips:
            if trip.driver_id:
                trips_by_driver[trip.driver_id].append(trip)

        cards: list[DriverScoreCard] = []
        for driver in drivers:
            driver_tracks = tracks_by_driver.get(driver.driver_id, [])
            metrics = behavior_metrics(driver_tracks, violations_by_driver.get(driver.driver_id, 0))
            score = driver_score(metrics)
            driver_trips = trips_by_driver.get(driver.driver_id, [])
            cards.append(
                DriverScoreCard(
                    driver_id=driver.driver_id,
                    driver_name=driver.name,
                    score=score,
                    total_trips=len(driver_trips),
                    total_distance_km=round(sum(trip.distance_km for trip in driver_trips), 2),
                    behavior=metrics,
                    improvement_areas=improvement_areas(metrics),
                    recommendations=driver_recommendations(metrics, score),
                    daily_trend=driver_daily_trend(driver_tracks),
                )
            )

        ordered = sorted(cards, key=lambda card: (-card.score, card.driver_id))
        ranked = [card.model_copy(update={"rank": index}) for index, card in enumerate(ordered, start=1)]
        scores = [card.score for card in ranked]
        average_score = round(sum(scores) / len(scores), 2) if scores else 0.0

        report = DriverPerformanceReport(
            total_drivers=len(ranked),
            average_score=average_score,
            best_driver_id=ranked[0].driver_id if ranked else None,
            worst_driver_id=ranked[-1].driver_id if ranked else None,
            drivers=ranked,
        )

        fleet_trend = driver_daily_trend(tracks)
        needs_training = [card for card in ranked if card.score < TRAINING_SCORE_THRESHOLD]
        insights: list[str] = []
        recommendations: list[str] = []
        if ranked:
            insights.append(f"Average driver score is {average_score:.2f}")
            insights.append(f"Top performer: {ranked[0].driver_name or ranked[0].driver_id} ({ranked[0].score:.2f})")
        if needs_training:
            insights.append(f"{len(needs_training)} driver(s) scored below {TRAINING_SCORE_THRESHOLD:.0f}")
            recommendations.append("Schedule additional training for drivers scoring below 70")
        if any(card.behavior.speeding_events > 5 for card in ranked):
            recommendations.append("Enforce speed limit policies across the fleet")

        summary = build_summary(scores, fleet_trend, insights=insights, recommendations=recommendations)
        charts = [
            breakdown_chart("Driver Scores", {card.driver_name or card.driver_id: card.score for card in ranked}),
            trend_chart("Daily Driving Score", fleet_trend, y_label="score"),
        ]
        return ReportResult(
            payload=report,
            summary=summary,
            charts=charts,
            data_points=len(drivers) + len(tracks) + len(events) + len(trips),
            observed_days=observed_days(tracks) | observed_days(trips),
        )
