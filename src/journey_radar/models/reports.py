"""Pydantic models for rider disruption reports."""

from pydantic import AliasChoices, BaseModel, Field

from journey_radar.models.routing import Coordinate


class ReportLocation(BaseModel):
    """GeoJSON-style point; coordinates are [longitude, latitude]."""

    type: str = "Point"
    coordinates: list[float] | None = None

    def to_coordinate(self) -> Coordinate | None:
        if not self.coordinates or len(self.coordinates) < 2:
            return None
        return Coordinate(lat=self.coordinates[1], lng=self.coordinates[0])


class Report(BaseModel):
    """A geolocated disruption report as returned by the reports API."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    type: str = "OTHER"  # DELAY, CANCELLED, CROWDED, ACCIDENT, OTHER
    status: str = "UNVERIFIED"
    description: str | None = None
    created_at: float | str | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt", "_creationTime")
    )
    user_points: int | None = Field(
        default=None, validation_alias=AliasChoices("user_points", "userPoints")
    )
    location: ReportLocation | None = None
    gtfs_route_id: str | None = Field(
        default=None, validation_alias=AliasChoices("gtfs_route_id", "gtfsRouteId")
    )
    gtfs_trip_id: str | None = Field(
        default=None, validation_alias=AliasChoices("gtfs_trip_id", "gtfsTripId")
    )
    gtfs_vehicle_id: str | None = Field(
        default=None, validation_alias=AliasChoices("gtfs_vehicle_id", "gtfsVehicleId")
    )

    @property
    def point(self) -> Coordinate | None:
        """Report position, or None when the report has no usable location."""
        if self.location is None:
            return None
        return self.location.to_coordinate()
