"""FastAPI route modules."""

from fleet_analytics.api import analytics, health

__all__ = ["analytics", "health"]
