from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ZTP_BASE_URL = "https://gtfs.ztp.krakow.pl"


class GTFSConfig(BaseSettings):
    """Configuration for static GTFS archives, GTFS-RT feeds and local storage.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    db_path: Path = Field(default=Path("data/journey_radar.db"), alias="JOURNEY_RADAR_DB_PATH")
    user_agent: str = "journey-radar/1.0"
    http_timeout_seconds: float = Field(default=30.0, alias="GTFS_HTTP_TIMEOUT")

    # static archives (one per mode grouping)
    bus_schedule_url: str = f"{ZTP_BASE_URL}/GTFS_KRK_A.zip"
    tram_schedule_url: str = f"{ZTP_BASE_URL}/GTFS_KRK_T.zip"

    # real-time feeds
    bus_vehicle_positions_url: str = f"{ZTP_BASE_URL}/VehiclePositions_A.pb"
    tram_vehicle_positions_url: str = f"{ZTP_BASE_URL}/VehiclePositions_T.pb"
    bus_trip_updates_url: str = f"{ZTP_BASE_URL}/TripUpdates_A.pb"
    tram_trip_updates_url: str = f"{ZTP_BASE_URL}/TripUpdates_T.pb"

    # bulk replace tuning
    schedule_delete_page_size: int = 500
    vehicle_delete_page_size: int = 1000
    trip_update_delete_page_size: int = 1000
    route_insert_chunk_size: int = 1000
    trip_insert_chunk_size: int = 1000
    vehicle_insert_chunk_size: int = 500
    trip_update_insert_chunk_size: int = 500

    # scheduling (seconds)
    realtime_interval_seconds: int = Field(default=15, alias="GTFS_REALTIME_INTERVAL")
    schedule_interval_seconds: int = Field(default=3600, alias="GTFS_SCHEDULE_INTERVAL")

    shapes_cache_ttl_seconds: float = Field(default=300.0, alias="GTFS_SHAPES_CACHE_TTL")
    # start the refresh scheduler alongside the MCP server
    scheduler_enabled: bool = Field(default=True, alias="JOURNEY_RADAR_SCHEDULER")

    @property
    def vehicle_position_feeds(self) -> list[tuple[str, str]]:
        """(url, mode) pairs for the vehicle position feeds."""
        return [
            (self.bus_vehicle_positions_url, "BUS"),
            (self.tram_vehicle_positions_url, "TRAM"),
        ]

    @property
    def trip_update_feeds(self) -> list[tuple[str, str]]:
        """(url, mode) pairs for the trip update feeds."""
        return [
            (self.bus_trip_updates_url, "BUS"),
            (self.tram_trip_updates_url, "TRAM"),
        ]

    @property
    def schedule_archives(self) -> list[tuple[str, str]]:
        """(url, mode) pairs for the static archives."""
        return [
            (self.bus_schedule_url, "BUS"),
            (self.tram_schedule_url, "TRAM"),
        ]


class RoutingConfig(BaseSettings):
    """Configuration for the HERE routing provider and the reports API."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    here_api_key: str | None = Field(default=None, alias="HERE_API_TOKEN")
    here_base_url: str = Field(
        default="https://transit.router.hereapi.com/v8", alias="HERE_API_BASE_URL"
    )
    reports_url: str | None = Field(default=None, alias="REPORTS_API_URL")
    http_timeout_seconds: float = Field(default=30.0, alias="ROUTING_HTTP_TIMEOUT")

    default_alternatives: int = 6
    default_radius_meters: float = 500.0
    # fall back to the unconstrained query below min(min_transit_routes, alternatives)
    min_transit_routes: int = Field(default=5, alias="ROUTING_MIN_TRANSIT_ROUTES")


@lru_cache
def get_gtfs_config() -> GTFSConfig:
    """Get GTFS configuration (cached singleton).

    Returns:
        GTFSConfig with values from .env file or environment variables.
    """
    return GTFSConfig()


@lru_cache
def get_routing_config() -> RoutingConfig:
    """Get routing configuration (cached singleton)."""
    return RoutingConfig()
