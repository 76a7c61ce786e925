"""Pydantic models for static GTFS reference data."""

from enum import Enum

from pydantic import BaseModel


class TransportMode(str, Enum):
    """Transport mode of a route or live vehicle."""

    BUS = "BUS"
    TRAM = "TRAM"


def transport_mode_from_route_type(route_type: int) -> TransportMode:
    """Derive the transport mode from a GTFS route_type (0=tram, everything else=bus)."""
    return TransportMode.TRAM if route_type == 0 else TransportMode.BUS


class Route(BaseModel):
    """GTFS route entity."""

    route_id: str
    route_short_name: str = ""
    route_long_name: str = ""
    route_type: int  # 0=tram, 3=bus
    transport_mode: TransportMode
    last_updated: float | None = None


class Trip(BaseModel):
    """GTFS trip entity (join key between a live vehicle and its route)."""

    trip_id: str
    route_id: str
    shape_id: str | None = None
    last_updated: float | None = None


class ShapePoint(BaseModel):
    """One point of a GTFS shape."""

    shape_id: str
    lat: float
    lon: float
    sequence: int
