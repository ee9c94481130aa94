"""Raw fleet records consumed by the report generators."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, field_validator


class EntityKind(str, Enum):
    VEHICLE = "vehicle"
    DRIVER = "driver"
    TRIP = "trip"
    FUEL_LOG = "fuel_log"
    MAINTENANCE_LOG = "maintenance_log"
    GPS_TRACK = "gps_track"
    GEOFENCE_EVENT = "geofence_event"


class TimeRange(BaseModel):
    """Inclusive time window used to scope record queries."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class FleetRecord(BaseModel):
    """Base for records returned by the data access layer."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    timestamp_field: ClassVar[str | None] = None

    company_id: str

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value: Any) -> Any:
        if not isinstance(value, datetime):
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def timestamp(self) -> datetime | None:
        if self.timestamp_field is None:
            return None
        return getattr(self, self.timestamp_field)


class Vehicle(FleetRecord):
    vehicle_id: str
    plate_number: str = ""
    make: str = ""
    model: str = ""
    status: str = "active"
    odometer_km: float = 0.0
    created_at: datetime | None = None


class Driver(FleetRecord):
    driver_id: str
    name: str = ""
    status: str = "active"
    license_number: str = ""


class Trip(FleetRecord):
    timestamp_field: ClassVar[str | None] = "start_time"

    trip_id: str
    vehicle_id: str
    driver_id: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    distance_km: float = 0.0
    duration_hours: float = 0.0
    average_speed: float = 0.0
    fuel_consumed: float = 0.0
    total_cost: float = 0.0
    revenue: float = 0.0
    status: str = "completed"


class FuelLog(FleetRecord):
    timestamp_field: ClassVar[str | None] = "recorded_at"

    fuel_log_id: str
    vehicle_id: str
    driver_id: str | None = None
    recorded_at: datetime
    fuel_level: float = 0.0
    fuel_consumed: float = 0.0
    distance_km: float = 0.0


class MaintenanceLog(FleetRecord):
    timestamp_field: ClassVar[str | None] = "performed_at"

    maintenance_id: str
    vehicle_id: str
    maintenance_type: str = "service"
    performed_at: datetime
    cost: float = 0.0
    odometer_km: float = 0.0
    description: str = ""


class GpsTrack(FleetRecord):
    timestamp_field: ClassVar[str | None] = "recorded_at"

    vehicle_id: str
    driver_id: str | None = None
    recorded_at: datetime
    latitude: float = 0.0
    longitude: float = 0.0
    speed: float = 0.0
    acceleration: float = 0.0
    fuel_level: float = 0.0
    distance_km: float = 0.0


class GeofenceEvent(FleetRecord):
    timestamp_field: ClassVar[str | None] = "occurred_at"

    event_id: str
    geofence_id: str
    geofence_name: str = ""
    vehicle_id: str
    driver_id: str | None = None
    event_type: str
    occurred_at: datetime


RECORD_TYPES: dict[EntityKind, type[FleetRecord]] = {
    EntityKind.VEHICLE: Vehicle,
    EntityKind.DRIVER: Driver,
    EntityKind.TRIP: Trip,
    EntityKind.FUEL_LOG: FuelLog,
    EntityKind.MAINTENANCE_LOG: MaintenanceLog,
    EntityKind.GPS_TRACK: GpsTrack,
    EntityKind.GEOFENCE_EVENT: GeofenceEvent,
}


def record_type_for(kind: EntityKind | str) -> type[FleetRecord]:
    """Return the record model for an entity kind."""
    return RECORD_TYPES[EntityKind(kind)]
