"""Tests for vehicle-matched route planning."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import make_report, make_vehicle

from journey_radar.data.config import RoutingConfig
from journey_radar.data.routing_client import TRANSIT_MODES, RoutingProviderError
from journey_radar.models.gtfs import TransportMode
from journey_radar.models.realtime import VehiclePositionRecord
from journey_radar.models.responses import VehicleMatchedRouteRequest
from journey_radar.models.routing import Coordinate, PlannedRoute, Section, Transport
from journey_radar.services.route_matching import VehicleMatchedRoutePlanner, annotate_routes

ROUTE_POINT = Coordinate(lat=50.0614, lng=19.9383)


def _route(route_id: str = "route-1", mode: str | None = "tram", name: str = "18") -> PlannedRoute:
    transit = Section(
        id=f"{route_id}-s1",
        type="transit",
        geometry=[ROUTE_POINT],
        transport=Transport(mode=mode, short_name=name) if mode else None,
    )
    walk = Section(id=f"{route_id}-s2", type="pedestrian", geometry=[ROUTE_POINT])
    return PlannedRoute(id=route_id, sections=[transit, walk])


class FakeRoutingClient:
    """Routing client returning canned responses, one per call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[int | None, object]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def calculate_route(self, origin, destination, alternatives=None, transport_modes=None):
        self.calls.append((alternatives, transport_modes))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _record(row_id: int = 1, route_number: str = "18", mode=TransportMode.TRAM):
    return VehiclePositionRecord(
        row_id=row_id,
        vehicle_id=f"v{row_id}",
        trip_id="block_18_trip_1",
        route_id="r18",
        route_number=route_number,
        latitude=ROUTE_POINT.lat,
        longitude=ROUTE_POINT.lng + 0.0005,
        timestamp=1700000000,
        mode=mode,
    )


def _planner(
    config: RoutingConfig, records=None, reports=None, vehicles_error=None, reports_error=None
):
    repository = MagicMock()
    repository.list_vehicle_positions = AsyncMock(
        return_value=records or [], side_effect=vehicles_error
    )
    reports_client = MagicMock()
    reports_client.list_reports = AsyncMock(return_value=reports or [], side_effect=reports_error)
    return VehicleMatchedRoutePlanner(config, repository=repository, reports_client=reports_client)


def _request(alternatives: int = 6, radius: float = 500.0) -> VehicleMatchedRouteRequest:
    return VehicleMatchedRouteRequest(
        origin=Coordinate(lat=50.0614, lng=19.9383),
        destination=Coordinate(lat=50.0647, lng=19.9450),
        alternatives=alternatives,
        max_radius_meters=radius,
    )


def test_annotate_routes_attaches_match_and_counts():
    vehicle = make_vehicle(id="7", mode="tram", route_short_name="18", lng=19.9388)
    report = make_report(id="r1", lng=19.9384, type="DELAY", status="VERIFIED")

    routes, summary = annotate_routes([_route()], [vehicle], [report], radius_meters=100)

    transit, walk = routes[0].sections
    assert transit.transport.our_vehicle_id == "7"
    assert transit.transport.our_vehicle_match.confidence == 100
    assert [n.vehicle.id for n in transit.nearby_vehicles] == ["7"]
    assert [r.id for r in transit.nearby_vehicles[0].reports] == ["r1"]
    assert [r.id for r in transit.reports] == ["r1"]
    assert walk.transport is None

    assert summary.vehicle_matches == 1
    # the report lies along both sections
    assert summary.total_reports == 2
    assert summary.reports_by_type == {"DELAY": 2}
    assert summary.reports_by_status == {"VERIFIED": 2}
    # the same vehicle is flagged in both sections
    assert summary.vehicles_with_reports == 1


def test_annotate_routes_without_vehicles_or_reports():
    routes, summary = annotate_routes([_route()], [], [], radius_meters=500)

    transit = routes[0].sections[0]
    assert transit.transport.our_vehicle_match is None
    assert transit.nearby_vehicles == []
    assert transit.reports == []
    assert summary.vehicle_matches == 0
    assert summary.total_reports == 0


def test_nearby_vehicle_without_reports_has_empty_list():
    vehicle = make_vehicle(id="7", mode="bus", route_short_name="304", lng=19.9388)
    far_report = make_report(id="far", lat=50.2)

    routes, summary = annotate_routes([_route()], [vehicle], [far_report], radius_meters=100)

    nearby = routes[0].sections[0].nearby_vehicles
    assert len(nearby) == 1
    assert nearby[0].reports == []
    assert summary.vehicles_with_reports == 0


def test_annotated_route_keeps_provider_fields():
    route = PlannedRoute.model_validate(
        {
            "id": "r1",
            "sections": [
                {
                    "id": "s1",
                    "type": "transit",
                    "transport": {"mode": "bus", "shortName": "304", "agencyColor": "#123"},
                    "travelSummary": {"duration": 600},
                }
            ],
        }
    )

    routes, _ = annotate_routes([route], [], [], radius_meters=500)

    section = routes[0].sections[0]
    assert section.travel_summary == {"duration": 600}
    assert section.transport.short_name == "304"


async def test_plan_uses_transit_routes_when_enough(routing_config: RoutingConfig):
    client = FakeRoutingClient([_route("a"), _route("b")])
    planner = _planner(routing_config, records=[_record()])

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request(alternatives=2))

    assert client.calls == [(2, TRANSIT_MODES)]
    assert len(response.routes) == 2
    assert response.summary.has_public_transport is True
    assert response.summary.route_type == "public_transport_only"
    assert response.summary.vehicle_matches == 2


async def test_plan_falls_back_when_too_few_transit_routes(routing_config: RoutingConfig):
    client = FakeRoutingClient([_route("transit")], [_route("a"), _route("b", mode=None)])
    planner = _planner(routing_config)

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request(alternatives=6))

    assert client.calls == [(6, TRANSIT_MODES), (6, None)]
    assert [r.id for r in response.routes] == ["a", "b"]
    assert response.summary.has_public_transport is False
    assert response.summary.route_type == "mixed_or_pedestrian"


async def test_plan_fallback_threshold_is_configurable():
    config = RoutingConfig(min_transit_routes=1)
    client = FakeRoutingClient([_route("transit")])
    planner = _planner(config)

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request(alternatives=6))

    assert len(client.calls) == 1
    assert response.summary.has_public_transport is True


async def test_plan_degrades_when_vehicles_unavailable(routing_config: RoutingConfig):
    client = FakeRoutingClient([_route("a")])
    planner = _planner(routing_config, vehicles_error=RuntimeError("database is locked"))

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request(alternatives=1))

    assert len(response.routes) == 1
    assert response.routes[0].sections[0].transport.our_vehicle_match is None
    assert response.summary.vehicle_matches == 0
    assert response.error is None


async def test_plan_degrades_when_reports_unavailable(routing_config: RoutingConfig):
    client = FakeRoutingClient([_route("a")])
    planner = _planner(
        routing_config, records=[_record()], reports_error=RuntimeError("reports API down")
    )

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request(alternatives=1))

    assert [r.id for r in response.routes] == ["a"]
    assert response.summary.total_reports == 0
    assert response.summary.vehicles_with_reports == 0
    assert response.error is None
    planner._reports_client.list_reports.assert_awaited_once()
    planner._repository.list_vehicle_positions.assert_awaited_once()


async def test_plan_with_no_routes_returns_empty_response(routing_config: RoutingConfig):
    client = FakeRoutingClient([], [])
    planner = _planner(routing_config, records=[_record()])

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        response = await planner.plan(_request())

    assert response.routes == []
    assert response.summary.total_reports == 0
    assert response.summary.vehicle_matches == 0
    planner._repository.list_vehicle_positions.assert_not_awaited()


async def test_plan_propagates_routing_failure(routing_config: RoutingConfig):
    client = FakeRoutingClient(RoutingProviderError("HERE API error: 401"))
    planner = _planner(routing_config)

    with patch("journey_radar.services.route_matching.RoutingClient", return_value=client):
        with pytest.raises(RoutingProviderError):
            await planner.plan(_request())


def test_request_validation():
    with pytest.raises(ValueError):
        _request(alternatives=0)
    with pytest.raises(ValueError):
        _request(alternatives=11)
    with pytest.raises(ValueError):
        _request(radius=0)
