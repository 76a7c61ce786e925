"""Real-time feed loader for vehicle positions and trip updates.

Each run downloads one feed per mode, normalizes the entities into records and
replaces the corresponding live table (paginated clear, chunked insert).
All errors are caught and logged - loaders return ``LoadResult(success=False)``.
"""

import logging
import re
import time
import uuid
from collections.abc import Callable, Sequence

from journey_radar.data.config import GTFSConfig, get_gtfs_config
from journey_radar.data.gtfsrt_client import FeedClient
from journey_radar.data.repository import (
    TRIP_UPDATES_TABLE,
    VEHICLE_POSITIONS_TABLE,
    GTFSRepository,
)
from journey_radar.models.gtfs import TransportMode
from journey_radar.models.realtime import (
    FeedEntity,
    StopUpdate,
    TripUpdateRecord,
    VehiclePositionRecord,
)
from journey_radar.models.responses import LoadResult

logger = logging.getLogger(__name__)

# ZTP trip ids look like "block_123_trip_4_service_1"; the block number is the
# best display label available before the route is resolved
BLOCK_PATTERN = re.compile(r"block_(\d+)_")


def fallback_vehicle_id() -> str:
    """Synthesize an id for a vehicle the feed did not identify."""
    return f"vehicle_{uuid.uuid4().hex}"


def placeholder_route_number(trip_id: str, raw_vehicle_id: str | None) -> str:
    """Best-effort line label from the trip id pattern, else the raw vehicle id."""
    match = BLOCK_PATTERN.search(trip_id)
    if match:
        return match.group(1)
    return raw_vehicle_id or ""


def vehicle_record_from_entity(
    entity: FeedEntity,
    mode: TransportMode,
    header_timestamp: int | None,
    now: float,
) -> VehiclePositionRecord | None:
    """Normalize a feed entity into a vehicle position record.

    Returns:
        The record, or None when the entity has no position or sits at (0, 0).
    """
    payload = entity.vehicle
    if payload is None or payload.position is None:
        return None

    position = payload.position
    latitude = float(position.latitude or 0)
    longitude = float(position.longitude or 0)
    if latitude == 0 and longitude == 0:
        return None

    trip_id = (payload.trip.trip_id if payload.trip else None) or ""
    raw_vehicle_id = payload.vehicle.id if payload.vehicle else None

    return VehiclePositionRecord(
        vehicle_id=entity.id or raw_vehicle_id or fallback_vehicle_id(),
        trip_id=trip_id,
        route_id="",
        route_number=placeholder_route_number(trip_id, raw_vehicle_id),
        latitude=latitude,
        longitude=longitude,
        bearing=float(position.bearing or 0),
        timestamp=float(payload.timestamp or header_timestamp or 0) or now,
        mode=mode,
        last_updated=now,
    )


def trip_update_record_from_entity(
    entity: FeedEntity, mode: TransportMode, now: float
) -> TripUpdateRecord | None:
    """Normalize a feed entity into a trip update record (None without a trip)."""
    payload = entity.trip_update
    if payload is None or payload.trip is None:
        return None

    stop_updates = [
        StopUpdate(
            stop_id=stu.stop_id or "",
            arrival_delay=stu.arrival_delay,
            departure_delay=stu.departure_delay,
        )
        for stu in payload.stop_time_update
    ]

    return TripUpdateRecord(
        id=entity.id or "",
        trip_id=payload.trip.trip_id or "",
        route_id=payload.trip.route_id or "",
        vehicle_id=payload.vehicle.id if payload.vehicle else None,
        mode=mode,
        stop_updates=stop_updates,
        last_updated=now,
    )


async def resolve_routes(
    vehicles: Sequence[VehiclePositionRecord],
    repository: GTFSRepository,
) -> list[VehiclePositionRecord]:
    """Resolve route ids and display names for a batch of vehicles.

    One trip lookup per unique trip id and one name lookup per unique route id.
    Display name preference: route short name, then route id, then the
    placeholder already on the record.
    """
    trip_to_route: dict[str, str] = {}
    route_short_names: dict[str, str] = {}

    for trip_id in dict.fromkeys(v.trip_id for v in vehicles if v.trip_id):
        route_id = await repository.get_route_id_for_trip(trip_id)
        if not route_id:
            continue
        trip_to_route[trip_id] = route_id
        if route_id not in route_short_names:
            route_short_names[route_id] = await repository.get_route_short_name(route_id)

    resolved: list[VehiclePositionRecord] = []
    for vehicle in vehicles:
        route_id = trip_to_route.get(vehicle.trip_id, "")
        route_number = route_short_names.get(route_id) or route_id or vehicle.route_number
        resolved.append(
            vehicle.model_copy(update={"route_id": route_id, "route_number": route_number})
        )
    return resolved


class RealtimeLoader:
    """Loads GTFS-RT vehicle positions and trip updates into the live tables."""

    def __init__(
        self,
        config: GTFSConfig | None = None,
        repository: GTFSRepository | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = config or get_gtfs_config()
        self._repository = repository or GTFSRepository(self._config.db_path)
        self._clock = clock

    async def _collect_vehicles(self, now: float) -> list[VehiclePositionRecord]:
        vehicles: list[VehiclePositionRecord] = []
        async with FeedClient(self._config) as client:
            for url, mode in self._config.vehicle_position_feeds:
                try:
                    feed = await client.fetch_feed(url)
                except Exception as e:
                    logger.error(f"Error loading vehicle positions from {url}: {e}")
                    continue
                for entity in feed.entities:
                    record = vehicle_record_from_entity(
                        entity, TransportMode(mode), feed.header.timestamp, now
                    )
                    if record is not None:
                        vehicles.append(record)
        return vehicles

    async def load_vehicle_positions(self) -> LoadResult:
        """Refresh the vehicle_positions table from the bus and tram feeds."""
        try:
            logger.info("Loading vehicle positions...")
            now = self._clock()
            vehicles = await self._collect_vehicles(now)
            vehicles = await resolve_routes(vehicles, self._repository)

            await self._repository.clear_table(
                VEHICLE_POSITIONS_TABLE, self._config.vehicle_delete_page_size
            )
            await self._repository.insert_vehicle_positions(
                vehicles, self._config.vehicle_insert_chunk_size
            )

            logger.info(f"Loaded {len(vehicles):,} vehicle positions")
            return LoadResult(success=True, count=len(vehicles))
        except Exception as e:
            logger.error(f"Error loading vehicle positions: {e}")
            return LoadResult(success=False, error=str(e))

    async def _collect_trip_updates(self, now: float) -> list[TripUpdateRecord]:
        updates: list[TripUpdateRecord] = []
        async with FeedClient(self._config) as client:
            for url, mode in self._config.trip_update_feeds:
                try:
                    feed = await client.fetch_feed(url)
                except Exception as e:
                    logger.error(f"Error loading trip updates from {url}: {e}")
                    continue
                for entity in feed.entities:
                    record = trip_update_record_from_entity(entity, TransportMode(mode), now)
                    if record is not None:
                        updates.append(record)
        return updates

    async def load_trip_updates(self) -> LoadResult:
        """Refresh the trip_updates table from the bus and tram feeds."""
        try:
            logger.info("Loading trip updates...")
            now = self._clock()
            updates = await self._collect_trip_updates(now)

            await self._repository.clear_table(
                TRIP_UPDATES_TABLE, self._config.trip_update_delete_page_size
            )
            await self._repository.insert_trip_updates(
                updates, self._config.trip_update_insert_chunk_size
            )

            logger.info(f"Loaded {len(updates):,} trip updates")
            return LoadResult(success=True, count=len(updates))
        except Exception as e:
            logger.error(f"Error loading trip updates: {e}")
            return LoadResult(success=False, error=str(e))
