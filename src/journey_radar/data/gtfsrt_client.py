import logging

import httpx
from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from journey_radar.data.config import GTFSConfig
from journey_radar.models.realtime import (
    FeedEntity,
    FeedHeader,
    FeedMessage,
    Position,
    StopTimeUpdatePayload,
    TripDescriptor,
    TripUpdatePayload,
    VehicleDescriptor,
    VehiclePositionPayload,
)

logger = logging.getLogger(__name__)


class FeedDecodeError(ValueError):
    """Raised when a GTFS-RT payload is not a valid FeedMessage."""


def decode_feed_message(data: bytes) -> FeedMessage:
    """Decode a binary GTFS-RT FeedMessage.

    Entities that fail conversion are skipped; siblings are still decoded.

    Raises:
        FeedDecodeError: If the payload is not a parseable FeedMessage.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(data)
    except DecodeError as e:
        raise FeedDecodeError(f"Malformed GTFS-RT feed: {e}") from e

    header = FeedHeader(
        gtfs_realtime_version=feed.header.gtfs_realtime_version,
        timestamp=feed.header.timestamp if feed.header.timestamp else None,
    )

    entities: list[FeedEntity] = []
    for entity in feed.entity:
        try:
            entities.append(_parse_entity(entity))
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping malformed entity {entity.id!r}: {e}")

    return FeedMessage(header=header, entities=entities)


def _parse_entity(entity: gtfs_realtime_pb2.FeedEntity) -> FeedEntity:
    """Parse a single feed entity into its tagged payload."""
    vehicle = None
    if entity.HasField("vehicle"):
        vehicle = _parse_vehicle_position(entity.vehicle)

    trip_update = None
    if entity.HasField("trip_update"):
        trip_update = _parse_trip_update(entity.trip_update)

    return FeedEntity(
        id=entity.id if entity.id else None,
        vehicle=vehicle,
        trip_update=trip_update,
    )


def _parse_vehicle_position(vp: gtfs_realtime_pb2.VehiclePosition) -> VehiclePositionPayload:
    trip = None
    if vp.HasField("trip"):
        trip = _parse_trip_descriptor(vp.trip)

    vehicle = None
    if vp.HasField("vehicle"):
        vehicle = _parse_vehicle_descriptor(vp.vehicle)

    position = None
    if vp.HasField("position"):
        position = Position(
            latitude=vp.position.latitude,
            longitude=vp.position.longitude,
            bearing=vp.position.bearing if vp.position.HasField("bearing") else None,
        )

    return VehiclePositionPayload(
        trip=trip,
        vehicle=vehicle,
        position=position,
        timestamp=vp.timestamp if vp.timestamp else None,
    )


def _parse_trip_update(tu: gtfs_realtime_pb2.TripUpdate) -> TripUpdatePayload:
    trip = None
    if tu.HasField("trip"):
        trip = _parse_trip_descriptor(tu.trip)

    vehicle = None
    if tu.HasField("vehicle"):
        vehicle = _parse_vehicle_descriptor(tu.vehicle)

    stop_time_updates: list[StopTimeUpdatePayload] = []
    for stu in tu.stop_time_update:
        stop_time_updates.append(
            StopTimeUpdatePayload(
                stop_id=stu.stop_id if stu.stop_id else None,
                arrival_delay=(
                    stu.arrival.delay
                    if stu.HasField("arrival") and stu.arrival.HasField("delay")
                    else None
                ),
                departure_delay=(
                    stu.departure.delay
                    if stu.HasField("departure") and stu.departure.HasField("delay")
                    else None
                ),
            )
        )

    return TripUpdatePayload(trip=trip, vehicle=vehicle, stop_time_update=stop_time_updates)


def _parse_trip_descriptor(td: gtfs_realtime_pb2.TripDescriptor) -> TripDescriptor:
    return TripDescriptor(
        trip_id=td.trip_id if td.trip_id else None,
        route_id=td.route_id if td.route_id else None,
    )


def _parse_vehicle_descriptor(vd: gtfs_realtime_pb2.VehicleDescriptor) -> VehicleDescriptor:
    return VehicleDescriptor(
        id=vd.id if vd.id else None,
        label=vd.label if vd.label else None,
    )


class FeedClient:
    """Async HTTP client for GTFS-RT feeds and static GTFS archives.

    Usage:
        async with FeedClient(config) as client:
            feed = await client.fetch_feed(url)
    """

    def __init__(self, config: GTFSConfig):
        """Initialize the client.

        Args:
            config: GTFS configuration with URLs, user agent and timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FeedClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self._config.user_agent},
            timeout=self._config.http_timeout_seconds,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_bytes(self, url: str) -> bytes:
        """Download a resource.

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails or returns non-2xx.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        response = await self._client.get(url)
        response.raise_for_status()
        return response.content

    async def fetch_feed(self, url: str) -> FeedMessage:
        """Download and decode a GTFS-RT feed.

        Raises:
            httpx.HTTPError: If the HTTP request fails.
            FeedDecodeError: If the payload cannot be decoded.
        """
        content = await self.fetch_bytes(url)
        return decode_feed_message(content)
