"""Error taxonomy shared by the engine, the cache and the API layer."""

from __future__ import annotations

from typing import Any


class AnalyticsError(Exception):
    """Base error carrying a public envelope and a private internal detail."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        internal_detail: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.internal_detail = internal_detail

    def to_envelope(self) -> dict[str, Any]:
        """Return the client-facing error body. Internal detail is never included."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class NotFoundError(AnalyticsError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationError(AnalyticsError):
    code = "VALIDATION_ERROR"
    status_code = 400


class DependencyError(AnalyticsError):
    code = "DEPENDENCY_ERROR"
    status_code = 503


class InternalError(AnalyticsError):
    code = "INTERNAL_ERROR"
    status_code = 500
