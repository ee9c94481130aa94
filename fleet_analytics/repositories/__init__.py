"""Repository interfaces and concrete data access helpers."""

from fleet_analytics.repositories.base import AggregateFn, FleetDataRepository, scoped_filters
from fleet_analytics.repositories.mongo import (
    COLLECTIONS,
    MongoFleetDataRepository,
    create_mongo_client,
    ensure_indexes,
    get_database,
)

__all__ = [
    "AggregateFn",
    "COLLECTIONS",
    "FleetDataRepository",
    "MongoFleetDataRepository",
    "create_mongo_client",
    "ensure_indexes",
    "get_database",
    "scoped_filters",
]
