"""Audit trail with ordered field diffs over canonicalized snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from fleet_analytics.logging_setup import get_default_logger
from fleet_analytics.models.request import utc_now

_MISSING = object()


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    old: Any = None
    new: Any = None


class AuditEvent(BaseModel):
    """One recorded change to a resource."""

    model_config = ConfigDict(frozen=True)

    action: Literal["create", "update", "delete"]
    resource: str
    resource_id: str
    actor: str = "system"
    changes: list[FieldChange] = Field(default_factory=list)
    recorded_at: datetime = Field(default_factory=utc_now)


def canonical_snapshot(value: Any) -> dict[str, Any]:
    """Flatten a model or mapping into dotted keys with JSON-native leaves."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"Cannot snapshot value of type {type(value).__name__}")

    flat: dict[str, Any] = {}

    def _walk(prefix: str, node: Any) -> None:
        if isinstance(node, dict) and node:
            for key in sorted(node, key=str):
                _walk(f"{prefix}.{key}" if prefix else str(key), node[key])
        else:
            flat[prefix] = node

    _walk("", value)
    return flat


def diff_snapshots(old: Any, new: Any) -> list[FieldChange]:
    """Return changed fields between two snapshots, ordered by field path."""
    before = canonical_snapshot(old)
    after = canonical_snapshot(new)
    changes: list[FieldChange] = []
    for key in sorted(set(before) | set(after)):
        old_value = before.get(key, _MISSING)
        new_value = after.get(key, _MISSING)
        if old_value != new_value:
            changes.append(
                FieldChange(
                    field=key,
                    old=None if old_value is _MISSING else old_value,
                    new=None if new_value is _MISSING else new_value,
                )
            )
    return changes


class AuditTrail:
    """Emit audit events to the logging pipeline."""

    def __init__(self, logger: Any | None = None):
        self.log = (logger or get_default_logger()).bind(component="audit")

    def record_update(self, resource: str, resource_id: str, old: Any, new: Any, actor: str = "system") -> AuditEvent:
        event = AuditEvent(
            action="update",
            resource=resource,
            resource_id=resource_id,
            actor=actor,
            changes=diff_snapshots(old, new),
        )
        self._emit(event)
        return event

    def record_delete(self, resource: str, resource_id: str, actor: str = "system", **context: Any) -> AuditEvent:
        changes = [FieldChange(field=key, old=value, new=None) for key, value in sorted(context.items())]
        event = AuditEvent(action="delete", resource=resource, resource_id=resource_id, actor=actor, changes=changes)
        self._emit(event)
        return event

    def _emit(self, event: AuditEvent) -> None:
        self.log.info(
            "audit_event",
            action=event.action,
            resource=event.resource,
            resource_id=event.resource_id,
            actor=event.actor,
            changes=[change.model_dump(mode="json") for change in event.changes],
        )
