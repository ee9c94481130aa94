"""API endpoints for analytics reports and cache administration."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

import pydantic
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fleet_analytics.audit import FieldChange
from fleet_analytics.cache.analytics_cache import AnalyticsCache, CacheStats
from fleet_analytics.cache.ttl import TTLPolicy
from fleet_analytics.engine import AnalyticsEngine
from fleet_analytics.errors import AnalyticsError, ValidationError
from fleet_analytics.logging_setup import get_default_logger
from fleet_analytics.models.request import DEFAULT_LOOKBACK_DAYS, REPORT_DESCRIPTIONS, Period, ReportRequest, ReportType
from fleet_analytics.models.response import ReportResponse

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


class ReportTypeInfo(BaseModel):
    report_type: ReportType
    description: str
    ttl_seconds: int
    default_lookback_days: int


class ReportTypeListResponse(BaseModel):
    items: list[ReportTypeInfo]
    total: int


class CacheInvalidationResponse(BaseModel):
    """Keys removed by a cache invalidation."""

    scope: str
    removed: int


class TTLPolicyUpdateResponse(BaseModel):
    policy: TTLPolicy
    changes: list[FieldChange]


def get_engine(request: Request) -> AnalyticsEngine:
    """Get the analytics engine from app state."""
    engine = getattr(request.app.state, "analytics_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Analytics engine is not configured")
    return engine


def get_cache(request: Request) -> AnalyticsCache:
    """Get the analytics cache from app state."""
    cache = getattr(request.app.state, "analytics_cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="Analytics cache is not configured")
    return cache


async def _handle_analytics_error(request: Request, exc: AnalyticsError) -> JSONResponse:
    get_default_logger().bind(component="api").warning(
        "request_failed",
        path=request.url.path,
        error_code=exc.code,
        status_code=exc.status_code,
        error=exc.internal_detail or exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


def register_error_handlers(app: FastAPI) -> None:
    """Render every AnalyticsError as the shared error envelope."""
    app.add_exception_handler(AnalyticsError, _handle_analytics_error)


@router.post("/generate", response_model=ReportResponse)
async def generate_report(
    engine: Annotated[AnalyticsEngine, Depends(get_engine)],
    payload: Annotated[dict[str, Any], Body()],
) -> ReportResponse:
    """Generate a report from a full request body."""
    return await engine.generate(ReportRequest.from_wire(payload))


@router.get("/reports/{report_type}", response_model=ReportResponse)
async def get_report(
    report_type: str,
    engine: Annotated[AnalyticsEngine, Depends(get_engine)],
    company_id: str = Query(min_length=1),
    user_id: str = "",
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    period: Period = "daily",
    include_charts: bool = True,
) -> ReportResponse:
    """Generate a report from query parameters. Omitted dates use the category's lookback."""
    payload: dict[str, Any] = {
        "company_id": company_id,
        "user_id": user_id,
        "report_type": report_type,
        "include_charts": include_charts,
    }
    if start_date is not None or end_date is not None:
        if start_date is None or end_date is None:
            raise ValidationError("start_date and end_date must be given together")
        payload["date_range"] = {"start_date": start_date, "end_date": end_date, "period": period}
    return await engine.generate(ReportRequest.from_wire(payload))


@router.get("/report-types", response_model=ReportTypeListResponse)
async def list_report_types(
    engine: Annotated[AnalyticsEngine, Depends(get_engine)],
) -> ReportTypeListResponse:
    """Return the report categories this service can generate."""
    items = [
        ReportTypeInfo(
            report_type=report_type,
            description=REPORT_DESCRIPTIONS[report_type],
            ttl_seconds=int(engine.cache.ttl_for(report_type).total_seconds()),
            default_lookback_days=DEFAULT_LOOKBACK_DAYS[report_type],
        )
        for report_type in engine.supported_report_types
    ]
    return ReportTypeListResponse(items=items, total=len(items))


@router.get("/cache/stats", response_model=CacheStats)
async def cache_stats(cache: Annotated[AnalyticsCache, Depends(get_cache)]) -> CacheStats:
    return await cache.stats()


@router.delete("/cache", response_model=CacheInvalidationResponse)
async def invalidate_cache(
    cache: Annotated[AnalyticsCache, Depends(get_cache)],
    company_id: str | None = None,
    report_type: ReportType | None = None,
    invalidate_all: bool = Query(default=False, alias="all"),
    actor: str = "api",
) -> CacheInvalidationResponse:
    """Invalidate cached reports for a company, a company's category, or everything."""
    if company_id and report_type is not None:
        removed = await cache.invalidate_report_type(company_id, report_type, actor=actor)
        return CacheInvalidationResponse(scope=f"company:{company_id}:report:{report_type.value}", removed=removed)
    if company_id:
        removed = await cache.invalidate_company(company_id, actor=actor)
        return CacheInvalidationResponse(scope=f"company:{company_id}", removed=removed)
    if invalidate_all:
        removed = await cache.invalidate_all(actor=actor)
        return CacheInvalidationResponse(scope="all", removed=removed)
    raise ValidationError("Provide company_id, or all=true to clear the whole namespace")


@router.get("/cache/ttl-policy", response_model=TTLPolicy)
async def get_ttl_policy(cache: Annotated[AnalyticsCache, Depends(get_cache)]) -> TTLPolicy:
    return cache.ttl_policy


@router.put("/cache/ttl-policy", response_model=TTLPolicyUpdateResponse)
async def replace_ttl_policy(
    cache: Annotated[AnalyticsCache, Depends(get_cache)],
    payload: Annotated[dict[str, Any], Body()],
    actor: str = "api",
) -> TTLPolicyUpdateResponse:
    """Replace the TTL table. Categories missing from ``ttl_seconds`` use ``default_ttl_seconds``."""
    try:
        policy = TTLPolicy.model_validate(payload)
    except pydantic.ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationError("Invalid TTL policy", details={"errors": errors}) from exc
    event = cache.replace_ttl_policy(policy, actor=actor)
    return TTLPolicyUpdateResponse(policy=policy, changes=event.changes)
