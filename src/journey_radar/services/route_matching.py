"""Vehicle-matched route planning.

Plans routes with the HERE transit API and annotates every section with the
live vehicle most likely serving it, vehicles near its geometry and rider
reports along it. Vehicle and report data are enrichment: if either source
is unavailable the route is still returned, just without annotations.
"""

import asyncio
import logging
from collections.abc import Sequence

from journey_radar.data.config import RoutingConfig, get_routing_config
from journey_radar.data.reports_client import ReportsClient
from journey_radar.data.repository import GTFSRepository
from journey_radar.data.routing_client import TRANSIT_MODES, RoutingClient
from journey_radar.matching.models import LiveVehicle
from journey_radar.matching.proximity import (
    find_nearby_reports,
    find_nearby_vehicles,
    has_recent_reports,
    reports_near_vehicle,
)
from journey_radar.matching.vehicle_matcher import find_vehicle_for_section
from journey_radar.models.reports import Report
from journey_radar.models.responses import (
    AnnotatedRoute,
    AnnotatedSection,
    AnnotatedTransport,
    MatchSummary,
    RouteSummary,
    VehicleMatchedRouteRequest,
    VehicleMatchedRouteResponse,
)
from journey_radar.models.routing import PlannedRoute, Section

logger = logging.getLogger(__name__)

# Multipliers of the request radius
VEHICLE_RADIUS_FACTOR = 2
VEHICLE_REPORTS_RADIUS_FACTOR = 3


def annotate_section(
    section: Section,
    vehicles: Sequence[LiveVehicle],
    reports: Sequence[Report],
    radius_meters: float,
    summary: MatchSummary,
) -> tuple[AnnotatedSection, MatchSummary]:
    """Annotate one section and fold its counters into ``summary``."""
    match = find_vehicle_for_section(section.transport, vehicles)

    reports_radius = radius_meters * VEHICLE_REPORTS_RADIUS_FACTOR
    nearby_vehicles = []
    flagged_ids: list[str] = []
    for nearby in find_nearby_vehicles(
        section.geometry, vehicles, radius_meters * VEHICLE_RADIUS_FACTOR
    ):
        if has_recent_reports(nearby.vehicle, reports, reports_radius):
            flagged_ids.append(nearby.vehicle.id)
            nearby = nearby.model_copy(
                update={"reports": reports_near_vehicle(nearby.vehicle, reports, reports_radius)}
            )
        nearby_vehicles.append(nearby)

    nearby_reports = find_nearby_reports(section.geometry, reports, radius_meters)

    transport = None
    if section.transport is not None:
        transport = AnnotatedTransport(
            **section.transport.model_dump(),
            our_vehicle_id=match.vehicle.id if match else None,
            our_vehicle_match=match,
        )

    annotated = AnnotatedSection(
        **section.model_dump(exclude={"transport"}),
        transport=transport,
        nearby_vehicles=nearby_vehicles,
        reports=nearby_reports,
    )
    summary = summary.add_section(
        matched=match is not None,
        reports=nearby_reports,
        flagged_vehicle_ids=flagged_ids,
    )
    return annotated, summary


def annotate_routes(
    routes: Sequence[PlannedRoute],
    vehicles: Sequence[LiveVehicle],
    reports: Sequence[Report],
    radius_meters: float,
) -> tuple[list[AnnotatedRoute], MatchSummary]:
    """Annotate every section of every route.

    Returns:
        (annotated routes, summary accumulated over all sections)
    """
    summary = MatchSummary()
    annotated_routes: list[AnnotatedRoute] = []
    for route in routes:
        sections: list[AnnotatedSection] = []
        for section in route.sections:
            annotated, summary = annotate_section(
                section, vehicles, reports, radius_meters, summary
            )
            sections.append(annotated)
        annotated_routes.append(
            AnnotatedRoute(**route.model_dump(exclude={"sections"}), sections=sections)
        )
    return annotated_routes, summary


class VehicleMatchedRoutePlanner:
    """Plans routes and annotates them with live vehicles and reports."""

    def __init__(
        self,
        config: RoutingConfig | None = None,
        repository: GTFSRepository | None = None,
        reports_client: ReportsClient | None = None,
    ):
        self._config = config or get_routing_config()
        self._repository = repository or GTFSRepository()
        self._reports_client = reports_client or ReportsClient(self._config)

    async def _load_vehicles(self) -> list[LiveVehicle]:
        try:
            records = await self._repository.list_vehicle_positions()
        except Exception as e:
            logger.warning(f"Could not load vehicles, proceeding without vehicle matching: {e}")
            return []
        vehicles = [LiveVehicle.from_record(record) for record in records]
        logger.debug(
            f"Loaded {len(vehicles)} live vehicles "
            f"(modes: {sorted({v.mode for v in vehicles})})"
        )
        return vehicles

    async def _load_reports(self) -> list[Report]:
        try:
            return await self._reports_client.list_reports()
        except Exception as e:
            logger.warning(f"Could not fetch reports, proceeding without reports: {e}")
            return []

    async def _fetch_routes(
        self, request: VehicleMatchedRouteRequest
    ) -> tuple[list[PlannedRoute], bool]:
        """Fetch transit routes, falling back to the unconstrained query.

        Returns:
            (routes, has_public_transport) where has_public_transport is False
            when the fallback query was used.

        Raises:
            RoutingProviderError: If the routing provider fails.
        """
        threshold = min(self._config.min_transit_routes, request.alternatives)
        async with RoutingClient(self._config) as client:
            routes = await client.calculate_route(
                request.origin,
                request.destination,
                alternatives=request.alternatives,
                transport_modes=TRANSIT_MODES,
            )
            if len(routes) >= threshold:
                return routes, True

            logger.info(f"Found {len(routes)} transit routes, getting more alternatives...")
            routes = await client.calculate_route(
                request.origin,
                request.destination,
                alternatives=request.alternatives,
            )
            return routes, False

    async def plan(self, request: VehicleMatchedRouteRequest) -> VehicleMatchedRouteResponse:
        """Plan routes and annotate them.

        Raises:
            RoutingProviderError: If the routing provider fails.
        """
        routes, has_public_transport = await self._fetch_routes(request)
        if not routes:
            return VehicleMatchedRouteResponse()

        vehicles, reports = await asyncio.gather(self._load_vehicles(), self._load_reports())
        logger.info(
            f"Processing {len(routes)} routes against {len(vehicles)} vehicles "
            f"and {len(reports)} reports"
        )

        annotated, summary = annotate_routes(
            routes, vehicles, reports, request.max_radius_meters
        )
        return VehicleMatchedRouteResponse(
            routes=annotated,
            summary=RouteSummary.from_match_summary(summary, has_public_transport),
        )
