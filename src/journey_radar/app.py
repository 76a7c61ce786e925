"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from journey_radar.data.config import get_gtfs_config
from journey_radar.jobs.scheduler import get_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Run the refresh scheduler for as long as the server is up."""
    if not get_gtfs_config().scheduler_enabled:
        logger.info("Refresh scheduler disabled")
        yield
        return

    scheduler = get_scheduler()
    await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


mcp = FastMCP(
    "Journey Radar",
    instructions=(
        "Kraków public transport - live vehicle positions, trip updates, and "
        "route planning annotated with the live vehicles serving each leg"
    ),
    lifespan=lifespan,
)
