"""Analytics engine: cache check, generation and response assembly."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog

from fleet_analytics.cache.analytics_cache import AnalyticsCache
from fleet_analytics.cache.writer import BackgroundCacheWriter
from fleet_analytics.errors import AnalyticsError, DependencyError, InternalError, ValidationError
from fleet_analytics.logging_setup import get_default_logger
from fleet_analytics.models.request import DateRange, ReportRequest, ReportType, utc_now
from fleet_analytics.models.response import DataQuality, ReportMetadata, ReportResponse
from fleet_analytics.reports import ReportGenerator, ReportResult, default_generators
from fleet_analytics.repositories.base import FleetDataRepository
from fleet_analytics.utils.single_flight import SingleFlight

HIGH_QUALITY_COMPLETENESS = 90.0
MEDIUM_QUALITY_COMPLETENESS = 60.0


def window_days(window: DateRange) -> int:
    """Number of calendar days touched by the window, inclusive."""
    return (window.end_date.date() - window.start_date.date()).days + 1


def _present(request: ReportRequest, response: ReportResponse) -> ReportResponse:
    """Drop charts for callers that did not ask for them.

    ``include_charts`` is not part of the cache key, so the cached copy always
    carries the charts.
    """
    if request.include_charts or not response.charts:
        return response
    return response.model_copy(update={"charts": []})


def data_quality(completeness: float) -> DataQuality:
    if completeness >= HIGH_QUALITY_COMPLETENESS:
        return "high"
    if completeness >= MEDIUM_QUALITY_COMPLETENESS:
        return "medium"
    return "low"


class AnalyticsEngine:
    """Serve report requests from the cache, generating and caching on a miss."""

    def __init__(
        self,
        data_repo: FleetDataRepository,
        cache: AnalyticsCache,
        *,
        cache_writer: BackgroundCacheWriter | None = None,
        generators: dict[ReportType, ReportGenerator] | None = None,
        single_flight: bool = True,
        logger: Any | None = None,
    ):
        base_logger = logger or get_default_logger()
        self.data_repo = data_repo
        self.cache = cache
        self.cache_writer = cache_writer or BackgroundCacheWriter(cache, logger=base_logger)
        self.generators = default_generators() if generators is None else dict(generators)
        self.log = base_logger.bind(component="analytics_engine")
        self._flight: SingleFlight[ReportResponse] | None = SingleFlight() if single_flight else None

    @property
    def supported_report_types(self) -> list[ReportType]:
        return [report_type for report_type in ReportType if report_type in self.generators]

    async def generate(self, request: ReportRequest) -> ReportResponse:
        """Return the report for ``request``, from cache when possible."""
        cache_key = self.cache.key_for(request)
        structlog.contextvars.bind_contextvars(
            company_id=request.company_id,
            report_type=str(request.report_type),
            cache_key=cache_key,
        )
        try:
            generator = self.generators.get(ReportType(request.report_type))
            if generator is None:
                raise ValidationError(
                    f"Unsupported report type: {request.report_type}",
                    details={"report_type": str(request.report_type)},
                )

            cached, found = await self.cache.get(request)
            if found and cached is not None:
                return _present(request, cached)

            if self._flight is None:
                response = await self._generate(generator, request)
                shared = False
            else:
                response, shared = await self._flight.run(cache_key, lambda: self._generate(generator, request))
            if shared:
                self.log.info("report_generation_joined")
            else:
                self.cache_writer.submit(request, response)
            return _present(request, response)
        finally:
            structlog.contextvars.clear_contextvars()

    async def _generate(self, generator: ReportGenerator, request: ReportRequest) -> ReportResponse:
        started = time.perf_counter()
        try:
            result = await generator.generate(request, self.data_repo)
        except AnalyticsError as exc:
            self.log.warning(
                "report_generation_failed",
                error_code=exc.code,
                error=exc.internal_detail or exc.message,
            )
            raise
        except (OSError, asyncio.TimeoutError) as exc:
            self.log.warning("report_generation_failed", error_code=DependencyError.code, error=str(exc))
            raise DependencyError("Fleet data is unavailable", internal_detail=str(exc)) from exc
        except Exception as exc:  # noqa: BLE001
            self.log.exception("report_generation_failed", error_code=InternalError.code, error=str(exc))
            raise InternalError("Report generation failed", internal_detail=repr(exc)) from exc

        elapsed = time.perf_counter() - started
        response = self._assemble(request, result, elapsed)
        self.log.info(
            "report_generated",
            query_time=response.metadata.query_time,
            data_points=response.metadata.data_points,
            data_quality=response.metadata.data_quality,
        )
        return response

    def _assemble(self, request: ReportRequest, result: ReportResult, elapsed: float) -> ReportResponse:
        window = request.window
        completeness = min(len(result.observed_days) / window_days(window) * 100, 100.0)
        return ReportResponse(
            report_type=request.report_type,
            date_range=window,
            data=result.payload,
            summary=result.summary,
            charts=list(result.charts),
            metadata=ReportMetadata(
                query_time=round(elapsed, 6),
                data_points=result.data_points,
                last_updated=utc_now(),
                data_quality=data_quality(completeness),
                completeness=round(completeness, 2),
            ),
            generated_at=utc_now(),
        )
