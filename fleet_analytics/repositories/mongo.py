"""MongoDB connection helpers and the Motor-backed fleet data repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from fleet_analytics.errors import DependencyError
from fleet_analytics.models.records import EntityKind, FleetRecord, TimeRange, record_type_for
from fleet_analytics.repositories.base import AggregateFn, scoped_filters
from fleet_analytics.utils.retry import retry_async

COLLECTIONS: dict[EntityKind, str] = {
    EntityKind.VEHICLE: "vehicles",
    EntityKind.DRIVER: "drivers",
    EntityKind.TRIP: "trips",
    EntityKind.FUEL_LOG: "fuel_logs",
    EntityKind.MAINTENANCE_LOG: "maintenance_logs",
    EntityKind.GPS_TRACK: "gps_tracks",
    EntityKind.GEOFENCE_EVENT: "geofence_events",
}

_ID_FIELDS: dict[EntityKind, str] = {
    EntityKind.VEHICLE: "vehicle_id",
    EntityKind.DRIVER: "driver_id",
    EntityKind.TRIP: "trip_id",
    EntityKind.FUEL_LOG: "fuel_log_id",
    EntityKind.MAINTENANCE_LOG: "maintenance_id",
    EntityKind.GEOFENCE_EVENT: "event_id",
}

_GROUP_OPERATORS: dict[AggregateFn, str] = {
    AggregateFn.SUM: "$sum",
    AggregateFn.AVG: "$avg",
    AggregateFn.MIN: "$min",
    AggregateFn.MAX: "$max",
}


async def create_mongo_client(mongodb_uri: str) -> AsyncIOMotorClient:
    """Create and validate an async MongoDB client connection."""
    try:
        client = AsyncIOMotorClient(mongodb_uri)
        await client.admin.command("ping")
        return client
    except PyMongoError as exc:
        raise RuntimeError(f"Failed to connect to MongoDB at {mongodb_uri}: {exc}") from exc


def get_database(client: AsyncIOMotorClient, database_name: str) -> AsyncIOMotorDatabase:
    """Return configured MongoDB database handle."""
    return client[database_name]


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create company and timestamp indexes for every fleet collection."""
    try:
        for kind, collection_name in COLLECTIONS.items():
            collection = db[collection_name]
            time_field = record_type_for(kind).timestamp_field
            if time_field is not None:
                await collection.create_index(
                    [("company_id", ASCENDING), (time_field, ASCENDING)],
                    name=f"idx_{collection_name}_company_{time_field}",
                )
            else:
                await collection.create_index([("company_id", ASCENDING)], name=f"idx_{collection_name}_company")

            id_field = _ID_FIELDS.get(kind)
            if id_field is not None:
                await collection.create_index([(id_field, ASCENDING)], name=f"idx_{collection_name}_{id_field}")
    except PyMongoError as exc:
        raise RuntimeError(f"Failed to ensure MongoDB indexes: {exc}") from exc


def _strip_mongo_id(document: dict[str, Any] | None) -> dict[str, Any] | None:
    if document is None:
        return None
    cleaned = dict(document)
    cleaned.pop("_id", None)
    return cleaned


def _as_bson_datetime(value: datetime) -> datetime:
    # Mongo stores naive UTC datetimes.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class MongoFleetDataRepository:
    """MongoDB-backed fleet record repository."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        *,
        retry_attempts: int = 3,
        retry_base_delay_seconds: float = 0.2,
    ):
        self.db = db
        self.retry_attempts = retry_attempts
        self.retry_base_delay_seconds = retry_base_delay_seconds

    async def list_records(
        self,
        kind: EntityKind,
        company_id: str,
        time_range: TimeRange | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[FleetRecord]:
        kind = EntityKind(kind)
        record_type = record_type_for(kind)
        query = self._build_query(kind, company_id, filters, time_range)
        sort_field = record_type.timestamp_field or _ID_FIELDS.get(kind, "company_id")

        async def _fetch() -> list[FleetRecord]:
            cursor = self._collection(kind).find(query).sort(sort_field, ASCENDING)
            items: list[FleetRecord] = []
            async for document in cursor:
                cleaned = _strip_mongo_id(document)
                if cleaned:
                    items.append(record_type.model_validate(cleaned))
            return items

        return await self._run(kind, "list_records", _fetch)

    async def count(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        kind = EntityKind(kind)
        query = self._build_query(kind, company_id, filters, None)

        async def _count() -> int:
            return int(await self._collection(kind).count_documents(query))

        return await self._run(kind, "count", _count)

    async def aggregate(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None,
        fn: AggregateFn,
        field: str,
        time_range: TimeRange | None = None,
    ) -> float:
        kind = EntityKind(kind)
        fn = AggregateFn(fn)
        query = self._build_query(kind, company_id, filters, time_range)

        if fn is AggregateFn.COUNT:

            async def _count() -> float:
                return float(await self._collection(kind).count_documents(query))

            return await self._run(kind, "aggregate", _count)

        pipeline = [
            {"$match": query},
            {"$group": {"_id": None, "value": {_GROUP_OPERATORS[fn]: f"${field}"}}},
        ]

        async def _aggregate() -> float:
            async for row in self._collection(kind).aggregate(pipeline):
                value = row.get("value")
                return float(value) if value is not None else 0.0
            return 0.0

        return await self._run(kind, "aggregate", _aggregate)

    async def save_many(self, kind: EntityKind, records: list[FleetRecord]) -> int:
        """Insert raw records of one kind."""
        kind = EntityKind(kind)
        if not records:
            return 0
        payload = [
            {
                key: _as_bson_datetime(value) if isinstance(value, datetime) else value
                for key, value in record.model_dump().items()
            }
            for record in records
        ]
        try:
            result = await self._collection(kind).insert_many(payload)
        except PyMongoError as exc:
            raise DependencyError(
                "Fleet data store is unavailable",
                internal_detail=f"insert_many on {COLLECTIONS[kind]} failed: {exc}",
            ) from exc
        return len(result.inserted_ids)

    def _collection(self, kind: EntityKind):
        return self.db[COLLECTIONS[kind]]

    def _build_query(
        self,
        kind: EntityKind,
        company_id: str,
        filters: dict[str, Any] | None,
        time_range: TimeRange | None,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {"company_id": company_id}
        query.update(scoped_filters(kind, filters))
        time_field = record_type_for(kind).timestamp_field
        if time_range is not None and time_field is not None:
            query[time_field] = {
                "$gte": _as_bson_datetime(time_range.start),
                "$lte": _as_bson_datetime(time_range.end),
            }
        return query

    async def _run(self, kind: EntityKind, operation: str, call):
        try:
            return await retry_async(
                call,
                attempts=self.retry_attempts,
                base_delay_seconds=self.retry_base_delay_seconds,
            )
        except PyMongoError as exc:
            raise DependencyError(
                "Fleet data store is unavailable",
                internal_detail=f"{operation} on {COLLECTIONS[kind]} failed: {exc}",
            ) from exc
