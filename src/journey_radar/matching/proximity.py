"""Geometric searches for vehicles and reports along a route."""

from collections.abc import Sequence

from journey_radar.matching.geo import distance_between, min_distance_to_geometry, round_half_up
from journey_radar.matching.models import (
    NEAR_ROUTE_REASON,
    ClosestVehicle,
    LiveVehicle,
    NearbyReport,
    NearbyVehicle,
)
from journey_radar.models.reports import Report
from journey_radar.models.routing import Coordinate

# Confidence falls linearly from 90 at the route to 50 at the radius boundary
MAX_PROXIMITY_CONFIDENCE = 90
PROXIMITY_CONFIDENCE_SPAN = 40


def proximity_confidence(distance: float, radius_meters: float) -> int:
    """Confidence (0-100) for a vehicle ``distance`` meters from a route."""
    confidence = MAX_PROXIMITY_CONFIDENCE - (distance / radius_meters) * PROXIMITY_CONFIDENCE_SPAN
    return max(0, min(100, round_half_up(confidence)))


def find_nearby_vehicles(
    geometry: Sequence[Coordinate],
    vehicles: Sequence[LiveVehicle],
    radius_meters: float,
) -> list[NearbyVehicle]:
    """Find vehicles within ``radius_meters`` of any geometry vertex.

    Results are sorted by descending confidence; ties keep input order.
    """
    if not geometry or not vehicles:
        return []

    nearby: list[NearbyVehicle] = []
    for vehicle in vehicles:
        min_distance = min_distance_to_geometry(vehicle.point, geometry)
        if min_distance <= radius_meters:
            distance = round_half_up(min_distance)
            nearby.append(
                NearbyVehicle(
                    vehicle=vehicle,
                    distance=distance,
                    confidence=proximity_confidence(distance, radius_meters),
                    reason=NEAR_ROUTE_REASON,
                )
            )

    nearby.sort(key=lambda n: -n.confidence)
    return nearby


def _to_nearby_report(report: Report, location: Coordinate, distance: float) -> NearbyReport:
    return NearbyReport(
        id=report.id,
        type=report.type,
        status=report.status,
        description=report.description,
        created_at=report.created_at,
        user_points=report.user_points,
        distance=round_half_up(distance),
        location=location,
    )


def find_nearby_reports(
    geometry: Sequence[Coordinate],
    reports: Sequence[Report],
    radius_meters: float,
) -> list[NearbyReport]:
    """Find reports within ``radius_meters`` of any geometry vertex, nearest first."""
    if not geometry or not reports:
        return []

    nearby: list[NearbyReport] = []
    for report in reports:
        location = report.point
        if location is None:
            continue
        min_distance = min_distance_to_geometry(location, geometry)
        if min_distance <= radius_meters:
            nearby.append(_to_nearby_report(report, location, min_distance))

    nearby.sort(key=lambda r: r.distance)
    return nearby


def is_near_vehicle(report: Report, vehicle: LiveVehicle, radius_meters: float) -> bool:
    """True if the report lies within ``radius_meters`` of the vehicle."""
    location = report.point
    if location is None:
        return False
    return distance_between(vehicle.point, location) <= radius_meters


def has_recent_reports(
    vehicle: LiveVehicle, reports: Sequence[Report], radius_meters: float
) -> bool:
    """True if any report lies within ``radius_meters`` of the vehicle."""
    return any(is_near_vehicle(report, vehicle, radius_meters) for report in reports)


def reports_near_vehicle(
    vehicle: LiveVehicle, reports: Sequence[Report], radius_meters: float
) -> list[NearbyReport]:
    """Reports within ``radius_meters`` of the vehicle, in input order."""
    matched: list[NearbyReport] = []
    for report in reports:
        location = report.point
        if location is None:
            continue
        distance = distance_between(vehicle.point, location)
        if distance <= radius_meters:
            matched.append(_to_nearby_report(report, location, distance))
    return matched


def find_closest_vehicles(
    point: Coordinate, vehicles: Sequence[LiveVehicle], limit: int = 10
) -> list[ClosestVehicle]:
    """Rank vehicles by distance from a rider location, nearest first."""
    ranked: list[tuple[float, LiveVehicle]] = []
    for vehicle in vehicles:
        if not vehicle.latitude or not vehicle.longitude:
            continue
        ranked.append((distance_between(point, vehicle.point) / 1000, vehicle))
    ranked.sort(key=lambda item: item[0])

    return [
        ClosestVehicle(
            trip_id=vehicle.trip_id,
            route_id=vehicle.route_id,
            route_short_name=vehicle.route_short_name,
            mode=vehicle.mode,
            vehicle_id=vehicle.vehicle_id,
            latitude=vehicle.latitude,
            longitude=vehicle.longitude,
            distance_km=round(distance_km, 2),
            bearing=vehicle.bearing,
            last_update=vehicle.timestamp,
        )
        for distance_km, vehicle in ranked[:limit]
    ]
