"""Read access to the stored GTFS and real-time snapshots.

Reads never touch the upstream feeds; they serve whatever the last loader run
stored.
"""

import logging

from journey_radar.data.repository import GTFSRepository
from journey_radar.matching.models import LiveVehicle
from journey_radar.matching.proximity import find_closest_vehicles
from journey_radar.models.responses import (
    ClosestVehiclesResponse,
    RoutesResponse,
    TripUpdatesResponse,
    VehiclePositionsResponse,
)
from journey_radar.models.routing import Coordinate

logger = logging.getLogger(__name__)

DEFAULT_CLOSEST_LIMIT = 10

# Module-level repository (lazy-initialized)
_repository: GTFSRepository | None = None


def _get_repository() -> GTFSRepository:
    """Get or create the repository singleton."""
    global _repository
    if _repository is None:
        _repository = GTFSRepository()
    return _repository


async def get_vehicle_positions(
    repository: GTFSRepository | None = None,
) -> VehiclePositionsResponse:
    """All stored vehicle positions from the last real-time refresh."""
    repository = repository or _get_repository()
    vehicles = await repository.list_vehicle_positions()
    return VehiclePositionsResponse(vehicles=vehicles, count=len(vehicles))


async def get_trip_updates(repository: GTFSRepository | None = None) -> TripUpdatesResponse:
    """All stored trip updates from the last real-time refresh."""
    repository = repository or _get_repository()
    updates = await repository.list_trip_updates()
    return TripUpdatesResponse(trip_updates=updates, count=len(updates))


async def get_routes(repository: GTFSRepository | None = None) -> RoutesResponse:
    """All routes from the last static schedule load."""
    repository = repository or _get_repository()
    routes = await repository.list_routes()
    return RoutesResponse(routes=routes, count=len(routes))


async def get_closest_vehicles(
    lat: float,
    lng: float,
    limit: int = DEFAULT_CLOSEST_LIMIT,
    repository: GTFSRepository | None = None,
) -> ClosestVehiclesResponse:
    """Live vehicles nearest to a location.

    Args:
        lat: Latitude of the rider.
        lng: Longitude of the rider.
        limit: Maximum number of vehicles to return.
        repository: Repository override.

    Returns:
        ClosestVehiclesResponse with vehicles sorted by distance. The route
        short name comes from the routes table, falling back to the route
        number stored with the position.
    """
    repository = repository or _get_repository()
    records = await repository.list_vehicle_positions()
    short_names = await repository.get_route_short_names(
        r.route_id for r in records if r.route_id
    )

    vehicles = []
    for record in records:
        vehicle = LiveVehicle.from_record(record)
        short_name = short_names.get(record.route_id)
        if short_name:
            vehicle = vehicle.model_copy(update={"route_short_name": short_name})
        vehicles.append(vehicle)

    closest = find_closest_vehicles(Coordinate(lat=lat, lng=lng), vehicles, limit=limit)
    logger.debug(f"Ranked {len(vehicles)} vehicles around ({lat}, {lng})")
    return ClosestVehiclesResponse(vehicles=closest, total=len(vehicles))
