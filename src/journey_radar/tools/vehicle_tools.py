from journey_radar.app import mcp
from journey_radar.models.responses import (
    ClosestVehiclesResponse,
    RoutesResponse,
    ShapesFeatureCollection,
    TripUpdatesResponse,
    VehiclePositionsResponse,
)
from journey_radar.services.vehicle_service import (
    get_closest_vehicles as _get_closest_vehicles,
)
from journey_radar.services.vehicle_service import (
    get_routes as _get_routes,
)
from journey_radar.services.vehicle_service import (
    get_trip_updates as _get_trip_updates,
)
from journey_radar.services.vehicle_service import (
    get_vehicle_positions as _get_vehicle_positions,
)
from journey_radar.services.shapes_service import ShapesService

# Module-level shapes service (lazy-initialized, owns the shapes cache)
_shapes_service: ShapesService | None = None


def _get_shapes_service() -> ShapesService:
    global _shapes_service
    if _shapes_service is None:
        _shapes_service = ShapesService()
    return _shapes_service


@mcp.tool()
async def get_vehicle_positions() -> VehiclePositionsResponse:
    """Get the latest stored positions of all live buses and trams.

    Positions are refreshed every 15 seconds by the background scheduler.
    route_number holds the resolved route short name when the trip is known.

    Returns:
        VehiclePositionsResponse with all vehicles and their count.
    """
    return await _get_vehicle_positions()


@mcp.tool()
async def get_trip_updates() -> TripUpdatesResponse:
    """Get the latest stored trip updates (per-stop arrival/departure delays).

    Returns:
        TripUpdatesResponse with all trip updates and their count.
    """
    return await _get_trip_updates()


@mcp.tool()
async def get_closest_vehicles(lat: float, lng: float, limit: int = 10) -> ClosestVehiclesResponse:
    """Find the live vehicles closest to a location.

    Args:
        lat: Latitude of the location.
        lng: Longitude of the location.
        limit: Maximum number of vehicles to return (1-50, default: 10).

    Returns:
        ClosestVehiclesResponse with vehicles sorted by distance in km.
    """
    limit = max(1, min(50, limit))
    return await _get_closest_vehicles(lat, lng, limit=limit)


@mcp.tool()
async def get_gtfs_routes() -> RoutesResponse:
    """Get all bus and tram routes from the static schedule.

    Returns:
        RoutesResponse with routes (id, short/long name, type, mode).
    """
    return await _get_routes()


@mcp.tool()
async def get_gtfs_shapes(force_refresh: bool = False) -> ShapesFeatureCollection:
    """Get route shapes as a GeoJSON FeatureCollection of LineStrings.

    Shapes are built from the static archives and cached for 5 minutes.

    Args:
        force_refresh: If True, rebuild the collection instead of using the cache.

    Returns:
        ShapesFeatureCollection; each feature has shape_id and mode properties.
    """
    return await _get_shapes_service().get_shapes(force_refresh=force_refresh)
