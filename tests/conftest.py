from pathlib import Path

import pytest

from journey_radar.data.config import GTFSConfig, RoutingConfig
from journey_radar.data.repository import GTFSRepository
from journey_radar.matching.models import LiveVehicle
from journey_radar.models.reports import Report


@pytest.fixture
def gtfs_config(tmp_path: Path) -> GTFSConfig:
    """GTFS config pointing at a throwaway database."""
    return GTFSConfig(
        db_path=tmp_path / "journey_radar.db",
        bus_schedule_url="https://example.com/GTFS_A.zip",
        tram_schedule_url="https://example.com/GTFS_T.zip",
        bus_vehicle_positions_url="https://example.com/VehiclePositions_A.pb",
        tram_vehicle_positions_url="https://example.com/VehiclePositions_T.pb",
        bus_trip_updates_url="https://example.com/TripUpdates_A.pb",
        tram_trip_updates_url="https://example.com/TripUpdates_T.pb",
        vehicle_delete_page_size=2,
        vehicle_insert_chunk_size=2,
    )


@pytest.fixture
def routing_config() -> RoutingConfig:
    return RoutingConfig(
        here_api_key="test_key",
        here_base_url="https://router.example.com/v8",
        reports_url="https://reports.example.com/api/reports",
        min_transit_routes=5,
    )


@pytest.fixture
def repository(gtfs_config: GTFSConfig) -> GTFSRepository:
    return GTFSRepository(gtfs_config.db_path)


def make_vehicle(
    id: str = "1",
    mode: str = "bus",
    route_short_name: str = "",
    route_long_name: str = "",
    lat: float = 50.0614,
    lng: float = 19.9383,
    **kwargs,
) -> LiveVehicle:
    """Build a live vehicle with sensible defaults."""
    return LiveVehicle(
        id=id,
        vehicle_id=kwargs.pop("vehicle_id", f"v{id}"),
        route_short_name=route_short_name,
        route_long_name=route_long_name,
        latitude=lat,
        longitude=lng,
        mode=mode,
        **kwargs,
    )


def make_report(
    id: str = "r1",
    lat: float = 50.0614,
    lng: float = 19.9383,
    type: str = "DELAY",
    status: str = "VERIFIED",
) -> Report:
    """Build a report at a location ([lng, lat] on the wire)."""
    return Report.model_validate(
        {
            "_id": id,
            "type": type,
            "status": status,
            "location": {"type": "Point", "coordinates": [lng, lat]},
        }
    )
