"""Tests for audit snapshots and field diffs."""

from __future__ import annotations

import pytest

from fleet_analytics.audit import AuditTrail, canonical_snapshot, diff_snapshots
from fleet_analytics.cache.ttl import TTLPolicy


def test_canonical_snapshot_flattens_nested_mappings() -> None:
    snapshot = canonical_snapshot({"b": {"y": 2, "x": 1}, "a": [3, 1], "c": {}})

    assert list(snapshot) == ["a", "b.x", "b.y", "c"]
    assert snapshot["a"] == [3, 1]
    assert snapshot["c"] == {}


def test_canonical_snapshot_accepts_models_and_none() -> None:
    snapshot = canonical_snapshot(TTLPolicy())

    assert snapshot["ttl_seconds.compliance_report"] == 7200
    assert snapshot["default_ttl_seconds"] == 900
    assert canonical_snapshot(None) == {}


def test_canonical_snapshot_rejects_scalars() -> None:
    with pytest.raises(TypeError):
        canonical_snapshot(42)


def test_diff_reports_added_removed_and_changed_fields_in_order() -> None:
    changes = diff_snapshots({"a": 1, "b": {"c": 2}}, {"b": {"c": 3}, "d": 4})

    assert [(change.field, change.old, change.new) for change in changes] == [
        ("a", 1, None),
        ("b.c", 2, 3),
        ("d", None, 4),
    ]


def test_diff_of_identical_snapshots_is_empty() -> None:
    assert diff_snapshots(TTLPolicy(), TTLPolicy()) == []


def test_record_delete_lists_context_as_changes() -> None:
    event = AuditTrail().record_delete("analytics_cache", "C1", actor="api", removed=3, pattern="analytics:company:C1:*")

    assert event.action == "delete"
    assert event.resource_id == "C1"
    assert [(change.field, change.old) for change in event.changes] == [
        ("pattern", "analytics:company:C1:*"),
        ("removed", 3),
    ]
