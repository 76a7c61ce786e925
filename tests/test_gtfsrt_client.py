"""Tests for the GTFS-RT decoder and feed client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.transit import gtfs_realtime_pb2

from journey_radar.data.config import GTFSConfig
from journey_radar.data.gtfsrt_client import FeedClient, FeedDecodeError, decode_feed_message


def create_vehicle_positions_feed() -> bytes:
    """Create a minimal vehicle positions protobuf feed for testing."""
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.timestamp = 1700000000

    entity = feed.entity.add()
    entity.id = "vehicle_1"
    vp = entity.vehicle
    vp.trip.trip_id = "block_52_trip_1"
    vp.vehicle.id = "BUS_001"
    vp.position.latitude = 50.0614
    vp.position.longitude = 19.9383
    vp.position.bearing = 90.0
    vp.timestamp = 1700000000

    # no bearing, no timestamp
    entity = feed.entity.add()
    entity.id = "vehicle_2"
    entity.vehicle.position.latitude = 50.07
    entity.vehicle.position.longitude = 19.95

    return feed.SerializeToString()


def create_trip_updates_feed() -> bytes:
    """Create a minimal trip updates protobuf feed for testing."""
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"

    entity = feed.entity.add()
    entity.id = "trip_update_1"
    tu = entity.trip_update
    tu.trip.trip_id = "block_18_trip_1"
    tu.trip.route_id = "t18"
    tu.vehicle.id = "TRAM_7"

    stu = tu.stop_time_update.add()
    stu.stop_id = "stop_1"
    stu.arrival.delay = 120

    return feed.SerializeToString()


def test_decode_vehicle_positions():
    feed = decode_feed_message(create_vehicle_positions_feed())

    assert feed.header.timestamp == 1700000000
    assert len(feed.entities) == 2

    first = feed.entities[0]
    assert first.id == "vehicle_1"
    assert first.vehicle.trip.trip_id == "block_52_trip_1"
    assert first.vehicle.vehicle.id == "BUS_001"
    assert first.vehicle.position.latitude == pytest.approx(50.0614)
    assert first.vehicle.position.bearing == 90.0
    assert first.trip_update is None

    second = feed.entities[1]
    assert second.vehicle.position.bearing is None
    assert second.vehicle.timestamp is None
    assert second.vehicle.trip is None


def test_decode_trip_updates():
    feed = decode_feed_message(create_trip_updates_feed())

    assert feed.header.timestamp is None
    tu = feed.entities[0].trip_update
    assert tu.trip.route_id == "t18"
    assert tu.vehicle.id == "TRAM_7"
    assert tu.stop_time_update[0].arrival_delay == 120
    assert tu.stop_time_update[0].departure_delay is None


def test_decode_malformed_feed():
    with pytest.raises(FeedDecodeError):
        decode_feed_message(b"not a protobuf")


async def test_fetch_feed(gtfs_config: GTFSConfig):
    mock_response = MagicMock()
    mock_response.content = create_vehicle_positions_feed()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        async with FeedClient(gtfs_config) as client:
            feed = await client.fetch_feed(gtfs_config.bus_vehicle_positions_url)

    mock_client.get.assert_awaited_once_with(gtfs_config.bus_vehicle_positions_url)
    headers = mock_client_class.call_args.kwargs["headers"]
    assert headers["User-Agent"] == "journey-radar/1.0"
    assert len(feed.entities) == 2


async def test_fetch_bytes_raises_on_http_error(gtfs_config: GTFSConfig):
    request = httpx.Request("GET", gtfs_config.bus_schedule_url)
    mock_response = MagicMock()
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "404 Not Found", request=request, response=httpx.Response(404, request=request)
    )

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        async with FeedClient(gtfs_config) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.fetch_bytes(gtfs_config.bus_schedule_url)


async def test_client_requires_context_manager(gtfs_config: GTFSConfig):
    client = FeedClient(gtfs_config)
    with pytest.raises(RuntimeError, match="async with"):
        await client.fetch_bytes(gtfs_config.bus_schedule_url)
