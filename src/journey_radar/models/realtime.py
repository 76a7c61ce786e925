"""Pydantic models for GTFS-RT data.

Feed models (``FeedMessage`` and friends) mirror the subset of the protobuf
messages we decode. Record models (``VehiclePositionRecord``,
``TripUpdateRecord``) are the rows we persist after normalization.
"""

from pydantic import BaseModel, Field

from journey_radar.models.gtfs import TransportMode


class FeedHeader(BaseModel):
    """Header information from GTFS-RT feed."""

    gtfs_realtime_version: str = ""
    timestamp: int | None = None


class TripDescriptor(BaseModel):
    """Identifies a trip for real-time updates."""

    trip_id: str | None = None
    route_id: str | None = None


class VehicleDescriptor(BaseModel):
    """Identifies a vehicle."""

    id: str | None = None
    label: str | None = None


class Position(BaseModel):
    """Geographic position of a vehicle."""

    latitude: float = 0.0
    longitude: float = 0.0
    bearing: float | None = None


class VehiclePositionPayload(BaseModel):
    """Vehicle position entity payload."""

    trip: TripDescriptor | None = None
    vehicle: VehicleDescriptor | None = None
    position: Position | None = None
    timestamp: int | None = None


class StopTimeUpdatePayload(BaseModel):
    """Update for a single stop in a trip."""

    stop_id: str | None = None
    arrival_delay: int | None = None  # seconds late (positive) or early (negative)
    departure_delay: int | None = None


class TripUpdatePayload(BaseModel):
    """Trip update entity payload."""

    trip: TripDescriptor | None = None
    vehicle: VehicleDescriptor | None = None
    stop_time_update: list[StopTimeUpdatePayload] = []


class FeedEntity(BaseModel):
    """A feed entity carrying either a vehicle position or a trip update."""

    id: str | None = None
    vehicle: VehiclePositionPayload | None = None
    trip_update: TripUpdatePayload | None = None


class FeedMessage(BaseModel):
    """Decoded GTFS-RT feed."""

    header: FeedHeader
    entities: list[FeedEntity] = []


class VehiclePositionRecord(BaseModel):
    """Live vehicle position as stored in the vehicle_positions table."""

    row_id: int | None = Field(default=None, description="Storage id, set once persisted")
    vehicle_id: str
    trip_id: str = ""
    route_id: str = ""
    route_number: str = Field(default="", description="Display label for the line")
    latitude: float
    longitude: float
    bearing: float = 0.0
    timestamp: float = Field(description="Feed-reported unix timestamp (seconds)")
    mode: TransportMode
    last_updated: float | None = None


class StopUpdate(BaseModel):
    """Delay prediction for one stop of a trip."""

    stop_id: str
    arrival_delay: int | None = None
    departure_delay: int | None = None


class TripUpdateRecord(BaseModel):
    """Trip update as stored in the trip_updates table."""

    id: str
    trip_id: str = ""
    route_id: str = ""
    vehicle_id: str | None = None
    mode: TransportMode
    stop_updates: list[StopUpdate] = []
    last_updated: float | None = None
