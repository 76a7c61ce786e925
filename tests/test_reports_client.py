"""Tests for the reports API client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from journey_radar.data.config import RoutingConfig
from journey_radar.data.reports_client import ReportsClient

REPORTS = [
    {
        "_id": "k57abc",
        "_creationTime": 1700000000000.0,
        "type": "DELAY",
        "status": "VERIFIED",
        "description": "Tram stuck at Rondo Mogilskie",
        "userPoints": 12,
        "location": {"type": "Point", "coordinates": [19.9593, 50.0656]},
        "gtfsRouteId": "t18",
    }
]


def _patched_client(response: MagicMock | None = None, error: Exception | None = None):
    mock_client = AsyncMock()
    if error is not None:
        mock_client.get.side_effect = error
    else:
        mock_client.get.return_value = response
    mock_client.__aenter__.return_value = mock_client
    return mock_client


async def test_list_reports(routing_config: RoutingConfig):
    mock_response = MagicMock()
    mock_response.json.return_value = REPORTS

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = _patched_client(mock_response)
        reports = await ReportsClient(routing_config).list_reports()

    assert len(reports) == 1
    report = reports[0]
    assert report.id == "k57abc"
    assert report.user_points == 12
    assert report.gtfs_route_id == "t18"
    assert report.point.lat == 50.0656
    assert report.point.lng == 19.9593


async def test_list_reports_wrapped_payload(routing_config: RoutingConfig):
    mock_response = MagicMock()
    mock_response.json.return_value = {"reports": REPORTS}

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = _patched_client(mock_response)
        reports = await ReportsClient(routing_config).list_reports()

    assert [r.id for r in reports] == ["k57abc"]


async def test_list_reports_unconfigured():
    config = RoutingConfig(reports_url=None)

    with patch("httpx.AsyncClient") as mock_client_class:
        reports = await ReportsClient(config).list_reports()

    assert reports == []
    mock_client_class.assert_not_called()


async def test_list_reports_unreachable(routing_config: RoutingConfig):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = _patched_client(error=httpx.ConnectError("down"))
        reports = await ReportsClient(routing_config).list_reports()

    assert reports == []


async def test_list_reports_skips_malformed_entries(routing_config: RoutingConfig):
    mock_response = MagicMock()
    mock_response.json.return_value = REPORTS + [
        {"type": "DELAY"},
        {**REPORTS[0], "_id": "k57def", "userPoints": 1.5},
    ]

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = _patched_client(mock_response)
        reports = await ReportsClient(routing_config).list_reports()

    assert [r.id for r in reports] == ["k57abc"]


async def test_list_reports_non_list_payload(routing_config: RoutingConfig):
    mock_response = MagicMock()
    mock_response.json.return_value = "unavailable"

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = _patched_client(mock_response)
        reports = await ReportsClient(routing_config).list_reports()

    assert reports == []
