"""Tests for the per-category TTL policy."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from fleet_analytics.cache.ttl import TTLPolicy
from fleet_analytics.models.request import ReportType


def test_default_ttls_per_category() -> None:
    policy = TTLPolicy()

    assert policy.ttl_for(ReportType.FLEET_OVERVIEW) == timedelta(minutes=15)
    assert policy.ttl_for(ReportType.DRIVER_PERFORMANCE) == timedelta(minutes=30)
    assert policy.ttl_for(ReportType.FUEL_ANALYTICS) == timedelta(minutes=20)
    assert policy.ttl_for(ReportType.MAINTENANCE_COSTS) == timedelta(hours=1)
    assert policy.ttl_for(ReportType.ROUTE_EFFICIENCY) == timedelta(minutes=10)
    assert policy.ttl_for(ReportType.GEOFENCE_ACTIVITY) == timedelta(minutes=5)
    assert policy.ttl_for(ReportType.COMPLIANCE_REPORT) == timedelta(hours=2)
    assert policy.ttl_for(ReportType.COST_ANALYSIS) == timedelta(hours=1)
    assert policy.ttl_for(ReportType.UTILIZATION_REPORT) == timedelta(minutes=15)
    assert policy.ttl_for(ReportType.PREDICTIVE_INSIGHTS) == timedelta(minutes=30)


def test_unknown_category_falls_back_to_default() -> None:
    assert TTLPolicy().ttl_for("something_else") == timedelta(minutes=15)


def test_overrides_layer_over_existing_table() -> None:
    policy = TTLPolicy().with_overrides({"geofence_activity": 60}, default_ttl_seconds=120)

    assert policy.ttl_for("geofence_activity") == timedelta(seconds=60)
    assert policy.ttl_for("compliance_report") == timedelta(hours=2)
    assert policy.ttl_for("unknown") == timedelta(seconds=120)


def test_policy_rejects_unknown_categories_and_non_positive_ttls() -> None:
    with pytest.raises(ValidationError):
        TTLPolicy(ttl_seconds={"not_a_report": 60})
    with pytest.raises(ValidationError):
        TTLPolicy(ttl_seconds={"fleet_overview": 0})
