from enum import Enum

from pydantic import BaseModel, Field

from journey_radar.models.gtfs import TransportMode
from journey_radar.models.realtime import VehiclePositionRecord
from journey_radar.models.routing import Coordinate


class MatchTier(int, Enum):
    """Name-matching tier for a section/vehicle pair, valued by confidence.

    - EXACT_NAME: route short name equals the section line name
    - PARTIAL_NAME: one name contains the other
    - HEADSIGN: route long name contains the section headsign
    """

    EXACT_NAME = 100
    PARTIAL_NAME = 75
    HEADSIGN = 60


MATCH_REASONS: dict[MatchTier, str] = {
    MatchTier.EXACT_NAME: "Exact route name match",
    MatchTier.PARTIAL_NAME: "Partial route name match",
    MatchTier.HEADSIGN: "Headsign match",
}

NEAR_ROUTE_REASON = "Near route"


class LiveVehicle(BaseModel):
    """A live vehicle as seen by the matching engine."""

    id: str = Field(description="Storage row id of the position")
    vehicle_id: str
    trip_id: str = ""
    route_id: str = ""
    route_short_name: str = ""
    route_long_name: str = ""
    latitude: float
    longitude: float
    bearing: float = 0.0
    timestamp: float | None = None
    mode: str = Field(description="Lowercase transport mode, e.g. 'bus'")

    @property
    def point(self) -> Coordinate:
        return Coordinate(lat=self.latitude, lng=self.longitude)

    @classmethod
    def from_record(cls, record: VehiclePositionRecord) -> "LiveVehicle":
        """Build the matching view of a stored vehicle position.

        Both route names carry the stored route number; the feed has no long name.
        """
        mode = record.mode.value if isinstance(record.mode, TransportMode) else str(record.mode)
        return cls(
            id=str(record.row_id) if record.row_id is not None else record.vehicle_id,
            vehicle_id=record.vehicle_id,
            trip_id=record.trip_id,
            route_id=record.route_id,
            route_short_name=record.route_number,
            route_long_name=record.route_number,
            latitude=record.latitude,
            longitude=record.longitude,
            bearing=record.bearing,
            timestamp=record.timestamp,
            mode=mode.lower(),
        )


class VehicleMatch(BaseModel):
    """Best live vehicle for a section."""

    vehicle: LiveVehicle
    confidence: int = Field(ge=0, le=100)
    reason: str
    tier: MatchTier


class NearbyReport(BaseModel):
    """A report within the search radius of a geometry."""

    id: str
    type: str
    status: str
    description: str | None = None
    created_at: float | str | None = None
    user_points: int | None = None
    distance: int = Field(description="Distance to the closest geometry vertex in meters")
    location: Coordinate


class NearbyVehicle(BaseModel):
    """A live vehicle within the search radius of a geometry."""

    vehicle: LiveVehicle
    distance: int = Field(description="Distance to the closest geometry vertex in meters")
    confidence: int = Field(ge=0, le=100)
    reason: str = NEAR_ROUTE_REASON
    reports: list[NearbyReport] = Field(default_factory=list)


class ClosestVehicle(BaseModel):
    """A live vehicle ranked by distance from a rider location."""

    trip_id: str
    route_id: str
    route_short_name: str
    mode: str
    vehicle_id: str
    latitude: float
    longitude: float
    distance_km: float = Field(description="Distance in kilometers, 2 decimals")
    bearing: float = 0.0
    last_update: float | None = None
