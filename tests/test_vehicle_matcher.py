"""Tests for section-to-vehicle matching."""

from conftest import make_vehicle

from journey_radar.matching.models import MatchTier
from journey_radar.matching.vehicle_matcher import find_vehicle_for_section
from journey_radar.models.routing import Transport


def test_exact_name_match_respects_mode():
    """A tram section matches the tram 18, never the bus 18."""
    vehicles = [
        make_vehicle(id="bus-18", mode="bus", route_short_name="18"),
        make_vehicle(id="tram-18", mode="tram", route_short_name="18"),
    ]
    transport = Transport(mode="tram", short_name="18")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.vehicle.id == "tram-18"
    assert match.confidence == 100
    assert match.reason == "Exact route name match"
    assert match.tier == MatchTier.EXACT_NAME


def test_partial_name_match():
    """139A vs 139: no exact match, substring match wins with 75."""
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="139")]
    transport = Transport(mode="bus", short_name="139A")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.confidence == 75
    assert match.reason == "Partial route name match"


def test_exact_match_beats_earlier_partial_match():
    vehicles = [
        make_vehicle(id="partial", mode="bus", route_short_name="1390"),
        make_vehicle(id="exact", mode="bus", route_short_name="139"),
    ]
    transport = Transport(mode="bus", short_name="139")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.vehicle.id == "exact"
    assert match.confidence == 100


def test_match_is_case_insensitive():
    vehicles = [make_vehicle(id="1", mode="BUS", route_short_name="n1")]
    transport = Transport(mode="bus", short_name="N1")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.tier == MatchTier.EXACT_NAME


def test_headsign_match():
    vehicles = [
        make_vehicle(
            id="1",
            mode="bus",
            route_short_name="500",
            route_long_name="Kurdwanów - Nowy Bieżanów P+R",
        )
    ]
    transport = Transport(mode="bus", short_name="999", headsign="Nowy Bieżanów")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.confidence == 60
    assert match.reason == "Headsign match"


def test_name_falls_back_to_transport_name():
    vehicles = [make_vehicle(id="1", mode="tram", route_short_name="52")]
    transport = Transport(mode="tram", name="52")

    match = find_vehicle_for_section(transport, vehicles)

    assert match is not None
    assert match.confidence == 100


def test_no_match_without_mode():
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="18")]
    assert find_vehicle_for_section(Transport(short_name="18"), vehicles) is None


def test_no_match_without_name():
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="18")]
    assert find_vehicle_for_section(Transport(mode="bus"), vehicles) is None


def test_no_match_without_transport():
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="18")]
    assert find_vehicle_for_section(None, vehicles) is None


def test_empty_short_name_is_not_a_partial_match():
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="")]
    transport = Transport(mode="bus", short_name="52")

    assert find_vehicle_for_section(transport, vehicles) is None


def test_never_returns_other_mode():
    """Only vehicles of another mode carry the name: no match at all."""
    vehicles = [
        make_vehicle(id="1", mode="bus", route_short_name="18"),
        make_vehicle(id="2", mode="bus", route_short_name="18 Express"),
    ]
    transport = Transport(mode="tram", short_name="18", headsign="Express")

    assert find_vehicle_for_section(transport, vehicles) is None


def test_no_match_returns_none():
    vehicles = [make_vehicle(id="1", mode="bus", route_short_name="304")]
    transport = Transport(mode="bus", short_name="52")

    assert find_vehicle_for_section(transport, vehicles) is None
