import logging

import httpx
from pydantic import ValidationError

from journey_radar.data.config import RoutingConfig
from journey_radar.models.reports import Report

logger = logging.getLogger(__name__)


class ReportsClient:
    """Fetches rider reports from the reports API.

    All errors are caught and logged - ``list_reports`` returns an empty list on failure.
    """

    def __init__(self, config: RoutingConfig):
        self._config = config

    async def list_reports(self) -> list[Report]:
        """Fetch all current reports, or [] when unconfigured or unavailable."""
        if not self._config.reports_url:
            logger.debug("No reports URL configured, skipping reports")
            return []

        try:
            async with httpx.AsyncClient(timeout=self._config.http_timeout_seconds) as client:
                response = await client.get(self._config.reports_url)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not fetch reports, proceeding without reports: {e}")
            return []

        if isinstance(payload, dict):
            payload = payload.get("reports", [])

        if not isinstance(payload, list):
            logger.warning(f"Ignoring malformed reports payload: {type(payload).__name__}")
            return []

        reports: list[Report] = []
        for item in payload:
            try:
                reports.append(Report.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed report: {e}")
        return reports
