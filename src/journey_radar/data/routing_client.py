import logging
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from journey_radar.data.config import RoutingConfig
from journey_radar.data.polyline import decode_polyline_or_empty
from journey_radar.models.routing import Coordinate, PlannedRoute

logger = logging.getLogger(__name__)

DEFAULT_RETURN_FIELDS = ("polyline", "travelSummary", "actions", "intermediate")
TRANSIT_MODES = ("bus", "tram", "regionalTrain", "cityTrain", "subway", "lightRail")


class RoutingProviderError(RuntimeError):
    """Raised when the routing provider cannot produce routes."""


class RoutingClient:
    """Async client for the HERE public transit routing API.

    Usage:
        async with RoutingClient(config) as client:
            routes = await client.calculate_route(origin, destination, alternatives=6)
    """

    def __init__(self, config: RoutingConfig):
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "RoutingClient":
        self._client = httpx.AsyncClient(timeout=self._config.http_timeout_seconds)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_params(
        self,
        origin: Coordinate,
        destination: Coordinate,
        alternatives: int | None,
        return_fields: Sequence[str],
        transport_modes: Sequence[str] | None,
    ) -> dict[str, str]:
        params = {
            "origin": f"{origin.lat},{origin.lng}",
            "destination": f"{destination.lat},{destination.lng}",
            "return": ",".join(return_fields),
            "apikey": self._config.here_api_key or "",
        }
        if alternatives is not None:
            params["alternatives"] = str(alternatives)
        if transport_modes:
            params["modes"] = ",".join(transport_modes)
        return params

    async def calculate_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        alternatives: int | None = None,
        return_fields: Sequence[str] = DEFAULT_RETURN_FIELDS,
        transport_modes: Sequence[str] | None = None,
    ) -> list[PlannedRoute]:
        """Request routes and decode every section polyline into ``geometry``.

        A section whose polyline fails to decode gets an empty geometry.

        Args:
            origin: Start coordinate.
            destination: End coordinate.
            alternatives: Number of alternative routes to request.
            return_fields: HERE ``return`` attributes.
            transport_modes: Restrict to these HERE transit modes (None = all).

        Returns:
            Planned routes (possibly empty).

        Raises:
            RuntimeError: If client not initialized.
            RoutingProviderError: If the request fails or the payload is invalid.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        url = f"{self._config.here_base_url.rstrip('/')}/routes"
        params = self._build_params(origin, destination, alternatives, return_fields, transport_modes)

        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise RoutingProviderError(
                f"HERE API error: {e.response.status_code} - {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise RoutingProviderError(f"HERE API request failed: {e}") from e

        try:
            routes = [PlannedRoute.model_validate(r) for r in payload.get("routes") or []]
        except ValidationError as e:
            raise RoutingProviderError(f"Unexpected HERE response: {e}") from e

        for route in routes:
            for section in route.sections:
                section.geometry = decode_polyline_or_empty(section.polyline)

        logger.debug(f"HERE returned {len(routes)} routes")
        return routes
