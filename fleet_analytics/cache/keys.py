"""Deterministic cache key derivation for report requests."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any

from fleet_analytics.models.request import ReportRequest, ReportType

DEFAULT_NAMESPACE = "analytics"
_GLOB_CHARS = "\\*?[]"


def _day(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str, ensure_ascii=False)


def canonical_request_string(request: ReportRequest) -> str:
    """Join the fields that identify a report into one ordered string.

    Filter keys are sorted at every nesting level. The group-by list keeps
    its order since it changes the shape of the result.
    """
    window = request.window
    parts = [
        request.company_id,
        request.user_id,
        str(request.report_type),
        _day(window.start_date),
        _day(window.end_date),
        window.period,
        _canonical_json(request.filters),
        _canonical_json(list(request.group_by)),
        request.format,
    ]
    return "|".join(parts)


def request_digest(request: ReportRequest) -> str:
    return hashlib.md5(canonical_request_string(request).encode("utf-8")).hexdigest()


def derive_cache_key(request: ReportRequest, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return ``<ns>:company:<id>:report:<type>:<digest>`` for a request."""
    return f"{namespace}:company:{request.company_id}:report:{request.report_type}:{request_digest(request)}"


def escape_glob(value: str) -> str:
    """Backslash-escape Redis MATCH metacharacters, the backslash included."""
    return "".join(f"\\{char}" if char in _GLOB_CHARS else char for char in value)


def company_pattern(company_id: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:company:{escape_glob(company_id)}:*"


def report_type_pattern(report_type: ReportType | str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:company:*:report:{ReportType(report_type).value}:*"


def namespace_pattern(namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:*"


def company_report_pattern(company_id: str, report_type: ReportType | str, namespace: str = DEFAULT_NAMESPACE) -> str:
    return f"{namespace}:company:{escape_glob(company_id)}:report:{ReportType(report_type).value}:*"
