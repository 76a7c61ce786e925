from journey_radar.app import mcp
from journey_radar.jobs.scheduler import get_scheduler
from journey_radar.models.responses import LoadResult, RefreshSummary


@mcp.tool()
async def refresh_realtime_data() -> RefreshSummary:
    """Refresh vehicle positions and trip updates from the GTFS-RT feeds now.

    Both loads run concurrently; one failing does not stop the other.

    Returns:
        RefreshSummary with per-load results and success/failure counts.
    """
    return await get_scheduler().refresh_realtime()


@mcp.tool()
async def load_gtfs_schedule() -> LoadResult:
    """Reload routes and trips from the static GTFS archives now.

    Returns:
        LoadResult with route_count and trip_count, or error on failure.
    """
    return await get_scheduler().load_schedule()
