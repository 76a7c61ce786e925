from collections.abc import Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from journey_radar.matching.models import ClosestVehicle, NearbyReport, NearbyVehicle, VehicleMatch
from journey_radar.models.gtfs import Route
from journey_radar.models.realtime import TripUpdateRecord, VehiclePositionRecord
from journey_radar.models.routing import Coordinate, PlannedRoute, Section, Transport


class LoadResult(BaseModel):
    """Outcome of a loader run. Failures carry ``error`` instead of raising."""

    success: bool
    count: int | None = Field(default=None, description="Rows loaded (real-time loaders)")
    route_count: int | None = Field(default=None, description="Routes loaded (schedule loader)")
    trip_count: int | None = Field(default=None, description="Trips loaded (schedule loader)")
    error: str | None = None


class RefreshSummary(BaseModel):
    """Outcome of one real-time refresh cycle."""

    total: int
    successes: int
    failures: int
    results: list[LoadResult]


class VehicleMatchedRouteRequest(BaseModel):
    origin: Coordinate
    destination: Coordinate
    max_radius_meters: float = Field(default=500.0, gt=0)
    alternatives: int = Field(default=6, ge=1, le=10)


class AnnotatedTransport(Transport):
    """Section transport descriptor with the matched live vehicle."""

    our_vehicle_id: str | None = None
    our_vehicle_match: VehicleMatch | None = None


class AnnotatedSection(Section):
    """Section annotated with live vehicles and nearby reports."""

    transport: AnnotatedTransport | None = None
    nearby_vehicles: list[NearbyVehicle] = Field(default_factory=list)
    reports: list[NearbyReport] = Field(default_factory=list)


class AnnotatedRoute(PlannedRoute):
    sections: list[AnnotatedSection] = Field(default_factory=list)


class MatchSummary(BaseModel):
    """Counters accumulated over every processed section.

    Immutable: ``add_section`` returns a new summary.
    """

    model_config = ConfigDict(frozen=True)

    total_reports: int = 0
    reports_by_type: dict[str, int] = Field(default_factory=dict)
    reports_by_status: dict[str, int] = Field(default_factory=dict)
    vehicle_matches: int = 0
    flagged_vehicle_ids: frozenset[str] = Field(default_factory=frozenset, exclude=True)

    @computed_field
    @property
    def vehicles_with_reports(self) -> int:
        """Distinct vehicles with at least one report nearby."""
        return len(self.flagged_vehicle_ids)

    def add_section(
        self,
        *,
        matched: bool,
        reports: Sequence[NearbyReport],
        flagged_vehicle_ids: Sequence[str] = (),
    ) -> "MatchSummary":
        by_type = dict(self.reports_by_type)
        by_status = dict(self.reports_by_status)
        for report in reports:
            by_type[report.type] = by_type.get(report.type, 0) + 1
            by_status[report.status] = by_status.get(report.status, 0) + 1
        return MatchSummary(
            total_reports=self.total_reports + len(reports),
            reports_by_type=by_type,
            reports_by_status=by_status,
            vehicle_matches=self.vehicle_matches + (1 if matched else 0),
            flagged_vehicle_ids=self.flagged_vehicle_ids | frozenset(flagged_vehicle_ids),
        )


class RouteSummary(BaseModel):
    total_reports: int = 0
    reports_by_type: dict[str, int] = Field(default_factory=dict)
    reports_by_status: dict[str, int] = Field(default_factory=dict)
    vehicle_matches: int = 0
    vehicles_with_reports: int = 0
    has_public_transport: bool = False
    route_type: Literal["public_transport_only", "mixed_or_pedestrian"] = "mixed_or_pedestrian"

    @classmethod
    def from_match_summary(
        cls, summary: MatchSummary, has_public_transport: bool
    ) -> "RouteSummary":
        return cls(
            total_reports=summary.total_reports,
            reports_by_type=summary.reports_by_type,
            reports_by_status=summary.reports_by_status,
            vehicle_matches=summary.vehicle_matches,
            vehicles_with_reports=summary.vehicles_with_reports,
            has_public_transport=has_public_transport,
            route_type="public_transport_only" if has_public_transport else "mixed_or_pedestrian",
        )


class VehicleMatchedRouteResponse(BaseModel):
    routes: list[AnnotatedRoute] = Field(default_factory=list)
    summary: RouteSummary = Field(default_factory=RouteSummary)
    error: str | None = Field(default=None, description="Set when the routing provider failed")


class VehiclePositionsResponse(BaseModel):
    vehicles: list[VehiclePositionRecord]
    count: int


class TripUpdatesResponse(BaseModel):
    trip_updates: list[TripUpdateRecord]
    count: int


class RoutesResponse(BaseModel):
    routes: list[Route]
    count: int


class ClosestVehiclesResponse(BaseModel):
    vehicles: list[ClosestVehicle]
    total: int = Field(description="Vehicles in the live snapshot before ranking")


class LineStringGeometry(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: list[tuple[float, float]] = Field(description="[longitude, latitude] pairs")


class ShapeFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    geometry: LineStringGeometry
    properties: dict[str, Any]


class ShapesFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[ShapeFeature] = Field(default_factory=list)
