"""Decoding of HERE flexible polylines."""

import logging

import flexpolyline

from journey_radar.models.routing import Coordinate

logger = logging.getLogger(__name__)


class PolylineDecodeError(ValueError):
    """Raised when an encoded polyline cannot be decoded."""


def decode_polyline(encoded: str) -> list[Coordinate]:
    """Decode a flexible polyline into coordinates.

    A third dimension (elevation, level...) is dropped if present.

    Raises:
        PolylineDecodeError: If the string is not a valid flexible polyline.
    """
    if not encoded:
        return []
    try:
        points = flexpolyline.decode(encoded)
    except Exception as e:
        raise PolylineDecodeError(f"Invalid polyline {encoded[:20]!r}: {e}") from e
    return [Coordinate(lat=point[0], lng=point[1]) for point in points]


def decode_polyline_or_empty(encoded: str | None) -> list[Coordinate]:
    """Decode a polyline, returning an empty geometry on failure."""
    if not encoded:
        return []
    try:
        return decode_polyline(encoded)
    except PolylineDecodeError as e:
        logger.warning(f"Error decoding polyline: {e}")
        return []
