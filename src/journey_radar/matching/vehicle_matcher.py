import logging
from collections.abc import Sequence

from journey_radar.matching.models import MATCH_REASONS, LiveVehicle, MatchTier, VehicleMatch
from journey_radar.models.routing import Transport

logger = logging.getLogger(__name__)


def _match(vehicle: LiveVehicle, tier: MatchTier) -> VehicleMatch:
    return VehicleMatch(
        vehicle=vehicle,
        confidence=tier.value,
        reason=MATCH_REASONS[tier],
        tier=tier,
    )


def find_vehicle_for_section(
    transport: Transport | None,
    vehicles: Sequence[LiveVehicle],
) -> VehicleMatch | None:
    """Find the live vehicle most likely serving a section.

    Resolution strategy (first tier with a hit wins):
    1. Exact route short name match (case-insensitive) -> confidence=100
    2. Either name contains the other -> confidence=75
    3. Route long name contains the section headsign -> confidence=60

    Only vehicles of the section's transport mode are considered. A section
    without a mode or a line name is never matched.

    Args:
        transport: Transport descriptor of the section (may be None).
        vehicles: Current live vehicle snapshot.

    Returns:
        VehicleMatch for the first matching tier, or None.
    """
    if transport is None:
        return None

    mode = (transport.mode or "").lower()
    name = (transport.line_name or "").lower()
    if not mode or not name:
        logger.debug("Skipping section without transport mode or line name")
        return None

    candidates = [v for v in vehicles if v.mode.lower() == mode]

    for vehicle in candidates:
        if vehicle.route_short_name.lower() == name:
            return _match(vehicle, MatchTier.EXACT_NAME)

    for vehicle in candidates:
        short_name = vehicle.route_short_name.lower()
        # an empty short name would be a substring of every line name
        if short_name and (name in short_name or short_name in name):
            return _match(vehicle, MatchTier.PARTIAL_NAME)

    headsign = (transport.headsign or "").lower()
    if headsign:
        for vehicle in candidates:
            if headsign in vehicle.route_long_name.lower():
                return _match(vehicle, MatchTier.HEADSIGN)

    logger.debug(
        f"No vehicle for {mode} {name} among {len(candidates)} candidates"
    )
    return None
