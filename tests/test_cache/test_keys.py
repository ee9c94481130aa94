"""Tests for cache key derivation and key patterns."""

from __future__ import annotations

from datetime import datetime, timezone

from fleet_analytics.cache.keys import (
    canonical_request_string,
    company_pattern,
    company_report_pattern,
    derive_cache_key,
    escape_glob,
    namespace_pattern,
    report_type_pattern,
)
from fleet_analytics.cache.store import glob_matches
from fleet_analytics.models.request import ReportType


def test_key_ignores_filter_ordering(make_request) -> None:
    first = make_request(filters={"vehicle_id": "V1", "driver_id": "D1", "extra": {"b": 1, "a": 2}})
    second = make_request(filters={"extra": {"a": 2, "b": 1}, "driver_id": "D1", "vehicle_id": "V1"})

    assert derive_cache_key(first) == derive_cache_key(second)


def test_key_differs_by_report_type(make_request) -> None:
    keys = {derive_cache_key(make_request(report_type)) for report_type in ReportType}

    assert len(keys) == len(ReportType)


def test_key_uses_day_granularity(make_request) -> None:
    morning = make_request(start=datetime(2024, 3, 1, 1, tzinfo=timezone.utc))
    evening = make_request(start=datetime(2024, 3, 1, 22, tzinfo=timezone.utc))
    next_day = make_request(start=datetime(2024, 3, 2, 1, tzinfo=timezone.utc))

    assert derive_cache_key(morning) == derive_cache_key(evening)
    assert derive_cache_key(morning) != derive_cache_key(next_day)


def test_key_depends_on_group_by_order_and_user(make_request) -> None:
    base = make_request(group_by=["vehicle", "day"])

    assert derive_cache_key(base) != derive_cache_key(make_request(group_by=["day", "vehicle"]))
    assert derive_cache_key(base) != derive_cache_key(make_request(group_by=["vehicle", "day"], user_id="u-2"))


def test_key_layout(make_request) -> None:
    key = derive_cache_key(make_request(ReportType.DRIVER_PERFORMANCE, company_id="C9"), namespace="ns")

    prefix, digest = key.rsplit(":", 1)
    assert prefix == "ns:company:C9:report:driver_performance"
    assert len(digest) == 32


def test_canonical_string_lists_request_fields_in_order(make_request) -> None:
    canonical = canonical_request_string(make_request(filters={"b": 1, "a": 2}))

    assert canonical == 'C1|u-1|fuel_analytics|2024-03-01|2024-03-07|daily|{"a":2,"b":1}|[]|json'


def test_company_pattern_matches_only_that_company(make_request) -> None:
    own = derive_cache_key(make_request(company_id="C1"))
    other = derive_cache_key(make_request(company_id="C10"))
    pattern = company_pattern("C1")

    assert glob_matches(own, pattern)
    assert not glob_matches(other, pattern)


def test_patterns_escape_glob_characters() -> None:
    assert escape_glob("C*1?") == "C\\*1\\?"
    assert glob_matches("analytics:company:C*1:report:x:y", company_pattern("C*1"))
    assert not glob_matches("analytics:company:C21:report:x:y", company_pattern("C*1"))


def test_category_patterns(make_request) -> None:
    key = derive_cache_key(make_request(ReportType.COST_ANALYSIS, company_id="C1"))

    assert glob_matches(key, report_type_pattern(ReportType.COST_ANALYSIS))
    assert glob_matches(key, company_report_pattern("C1", "cost_analysis"))
    assert not glob_matches(key, company_report_pattern("C1", ReportType.FUEL_ANALYTICS))
    assert glob_matches(key, namespace_pattern())
    assert not glob_matches(key, namespace_pattern("other"))


def test_backslash_company_pattern_does_not_match_unescaped_company() -> None:
    pattern = company_pattern("ac\\me")

    assert pattern == "analytics:company:ac\\\\me:*"
    assert glob_matches("analytics:company:ac\\me:report:x:y", pattern)
    assert not glob_matches("analytics:company:acme:report:x:y", pattern)


def test_bracketed_company_ids_are_matched_literally() -> None:
    pattern = company_report_pattern("[a]]", ReportType.FLEET_OVERVIEW)

    assert glob_matches("analytics:company:[a]]:report:fleet_overview:d", pattern)
    assert not glob_matches("analytics:company:a]:report:fleet_overview:d", pattern)
