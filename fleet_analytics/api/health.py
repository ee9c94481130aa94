"""Health endpoint reporting dependency status."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _get_scheduler_status(request: Request) -> tuple[str, dict[str, str | None]]:
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return "not_initialized", {}
    try:
        status = "running" if scheduler.running else "stopped"
    except Exception:  # noqa: BLE001
        return "unknown", {}

    jobs: dict[str, str | None] = {}
    try:
        for job in scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs[job.id] = next_run.isoformat() if next_run else None
    except Exception:  # noqa: BLE001
        jobs = {}
    return status, jobs


async def _get_cache_status(request: Request) -> tuple[str, str]:
    cache = getattr(request.app.state, "analytics_cache", None)
    if cache is None:
        return "not_initialized", "closed"
    circuit_state = cache.circuit_breaker.state
    try:
        reachable = await cache.store.ping()
    except Exception:  # noqa: BLE001
        reachable = False
    return ("connected" if reachable else "disconnected"), circuit_state


@router.get("")
async def health_check(request: Request) -> dict[str, Any]:
    """Report core dependency health."""
    mongodb_status = "disconnected"
    scheduler_status, scheduler_jobs = _get_scheduler_status(request)
    cache_status, cache_circuit = await _get_cache_status(request)

    db = getattr(request.app.state, "mongo_db", None)
    if db is not None:
        try:
            await db.command("ping")
            mongodb_status = "connected"
        except Exception:  # noqa: BLE001
            try:
                await db.list_collection_names()
                mongodb_status = "connected"
            except Exception:  # noqa: BLE001
                mongodb_status = "disconnected"

    if mongodb_status != "connected":
        overall = "unhealthy"
    elif cache_status == "disconnected":
        overall = "degraded"
    else:
        overall = "healthy"

    writer = getattr(request.app.state, "cache_writer", None)
    return {
        "status": overall,
        "mongodb": mongodb_status,
        "cache": cache_status,
        "cache_circuit": cache_circuit,
        "cache_writer_pending": writer.pending if writer is not None else 0,
        "scheduler": scheduler_status,
        "scheduler_jobs": scheduler_jobs,
    }
