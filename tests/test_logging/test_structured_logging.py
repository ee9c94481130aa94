"""Tests for structured logging and report request traceability."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from fleet_analytics.audit import AuditTrail
from fleet_analytics.engine import AnalyticsEngine
from fleet_analytics.logging_setup import configure_structured_logging, get_default_logger


def _json_events(caplog: pytest.LogCaptureFixture) -> list[dict]:
    events = []
    for record in caplog.records:
        try:
            events.append(json.loads(record.getMessage()))
        except ValueError:
            continue
    return events


def test_structlog_json_includes_contextvars(caplog: pytest.LogCaptureFixture) -> None:
    configure_structured_logging()
    caplog.set_level(logging.INFO)

    structlog.contextvars.bind_contextvars(company_id="C1", report_type="fuel_analytics")
    structlog.get_logger("test").info("report_stage", stage="generating")
    structlog.contextvars.clear_contextvars()

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "report_stage"
    assert payload["company_id"] == "C1"
    assert payload["report_type"] == "fuel_analytics"
    assert payload["stage"] == "generating"


@pytest.mark.asyncio
async def test_engine_logs_include_request_context(
    caplog: pytest.LogCaptureFixture,
    fleet_repo,
    analytics_cache,
    make_request,
) -> None:
    configure_structured_logging()
    caplog.set_level(logging.INFO)
    engine = AnalyticsEngine(fleet_repo, analytics_cache, logger=get_default_logger())
    request = make_request(company_id="C7")

    await engine.generate(request)
    await engine.cache_writer.stop()

    events = _json_events(caplog)
    generated = next(item for item in events if item.get("event") == "report_generated")
    assert generated["company_id"] == "C7"
    assert generated["report_type"] == "fuel_analytics"
    assert generated["cache_key"] == analytics_cache.key_for(request)
    assert generated["component"] == "analytics_engine"
    assert generated["data_quality"] == "low"
    assert structlog.contextvars.get_contextvars() == {}


def test_audit_events_are_logged_as_json(caplog: pytest.LogCaptureFixture) -> None:
    configure_structured_logging()
    caplog.set_level(logging.INFO)

    AuditTrail(get_default_logger()).record_update(
        "ttl_policy",
        "analytics",
        {"ttl_seconds": {"fuel_analytics": 1200}},
        {"ttl_seconds": {"fuel_analytics": 60}},
        actor="ops",
    )

    payload = _json_events(caplog)[-1]
    assert payload["event"] == "audit_event"
    assert payload["actor"] == "ops"
    assert payload["changes"] == [{"field": "ttl_seconds.fuel_analytics", "old": 1200, "new": 60}]
