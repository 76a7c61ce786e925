"""Route-to-vehicle matching and geometric proximity searches."""

from journey_radar.matching.geo import (
    distance_between,
    haversine_distance,
    min_distance_to_geometry,
    round_half_up,
)
from journey_radar.matching.models import (
    MATCH_REASONS,
    NEAR_ROUTE_REASON,
    ClosestVehicle,
    LiveVehicle,
    MatchTier,
    NearbyReport,
    NearbyVehicle,
    VehicleMatch,
)
from journey_radar.matching.proximity import (
    find_closest_vehicles,
    find_nearby_reports,
    find_nearby_vehicles,
    has_recent_reports,
    is_near_vehicle,
    proximity_confidence,
    reports_near_vehicle,
)
from journey_radar.matching.vehicle_matcher import find_vehicle_for_section

__all__ = [
    # Matchers
    "find_vehicle_for_section",
    "find_nearby_vehicles",
    "find_nearby_reports",
    "find_closest_vehicles",
    "has_recent_reports",
    "is_near_vehicle",
    "reports_near_vehicle",
    "proximity_confidence",
    # Models
    "MatchTier",
    "MATCH_REASONS",
    "NEAR_ROUTE_REASON",
    "LiveVehicle",
    "VehicleMatch",
    "NearbyVehicle",
    "NearbyReport",
    "ClosestVehicle",
    # Geometry
    "haversine_distance",
    "distance_between",
    "min_distance_to_geometry",
    "round_half_up",
]
