import logging

from journey_radar.app import mcp
from journey_radar.data.config import get_routing_config
from journey_radar.data.routing_client import RoutingProviderError
from journey_radar.models.responses import (
    VehicleMatchedRouteRequest,
    VehicleMatchedRouteResponse,
)
from journey_radar.models.routing import Coordinate
from journey_radar.services.route_matching import VehicleMatchedRoutePlanner

logger = logging.getLogger(__name__)


@mcp.tool()
async def plan_vehicle_matched_route(
    origin_lat: float,
    origin_lng: float,
    destination_lat: float,
    destination_lng: float,
    max_radius_meters: float | None = None,
    alternatives: int | None = None,
) -> VehicleMatchedRouteResponse:
    """Plan public transport routes annotated with the live vehicles serving them.

    Each transit leg is matched to the live vehicle most likely serving it
    (by line name, then headsign), and lists vehicles and rider reports near
    the leg's path. If too few transit routes exist, routes that include
    walking are returned instead and summary.has_public_transport is False.

    Args:
        origin_lat: Latitude of the start point.
        origin_lng: Longitude of the start point.
        destination_lat: Latitude of the destination.
        destination_lng: Longitude of the destination.
        max_radius_meters: Search radius around each leg in meters (default: 500).
        alternatives: Number of route alternatives to request (1-10, default: 6).

    Returns:
        VehicleMatchedRouteResponse with annotated routes and a summary.
        If the routing provider fails, routes is empty and error is set.
    """
    config = get_routing_config()
    request = VehicleMatchedRouteRequest(
        origin=Coordinate(lat=origin_lat, lng=origin_lng),
        destination=Coordinate(lat=destination_lat, lng=destination_lng),
        max_radius_meters=(
            max_radius_meters if max_radius_meters is not None else config.default_radius_meters
        ),
        alternatives=alternatives if alternatives is not None else config.default_alternatives,
    )

    planner = VehicleMatchedRoutePlanner(config)
    try:
        return await planner.plan(request)
    except RoutingProviderError as e:
        logger.error(f"Route planning failed: {e}")
        return VehicleMatchedRouteResponse(error=str(e))
