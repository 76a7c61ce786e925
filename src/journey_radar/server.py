import argparse
import asyncio
import logging
from datetime import UTC, datetime

from pydantic import BaseModel

from journey_radar.app import mcp

# Register tools
from journey_radar.tools import ingestion_tools, route_tools, vehicle_tools  # noqa: F401

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the Journey Radar MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from journey_radar import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


async def run_load_schedule() -> bool:
    """Run one static schedule load."""
    from journey_radar.data.repository import GTFSRepository
    from journey_radar.jobs.scheduler import RefreshScheduler

    result = await RefreshScheduler().load_schedule()
    if result.success:
        row_counts = await GTFSRepository().get_table_counts()
        print("\nSchedule load complete. Row counts:")
        for table, count in row_counts.items():
            print(f"  {table}: {count:,}")
    else:
        print(f"\nSchedule load failed: {result.error}")
    return result.success


async def run_refresh() -> bool:
    """Run one real-time refresh cycle."""
    from journey_radar.jobs.scheduler import RefreshScheduler

    summary = await RefreshScheduler().refresh_realtime()
    print(f"\nRefresh complete: {summary.successes}/{summary.total} succeeded")
    for result in summary.results:
        if result.success:
            print(f"  ok: {result.count:,} rows")
        else:
            print(f"  failed: {result.error}")
    return summary.failures == 0


async def run_scheduler(initial_load: bool) -> None:
    """Run the refresh scheduler until interrupted."""
    from journey_radar.jobs.scheduler import RefreshScheduler

    scheduler = RefreshScheduler()
    await scheduler.start(initial_load=initial_load)
    logger.info(f"Scheduler running: {scheduler.get_job_info()}")
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="journey-radar",
        description="Journey Radar MCP Server",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "load-schedule",
        help="Load routes and trips from the static GTFS archives",
    )
    subparsers.add_parser(
        "refresh",
        help="Run one real-time refresh (vehicle positions and trip updates)",
    )
    schedule_parser = subparsers.add_parser(
        "schedule",
        help="Run the refresh scheduler until interrupted",
    )
    schedule_parser.add_argument(
        "--skip-initial-load",
        action="store_true",
        help="Wait for the first scheduled tick instead of loading immediately",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "load-schedule":
        ok = asyncio.run(run_load_schedule())
        raise SystemExit(0 if ok else 1)
    elif args.command == "refresh":
        ok = asyncio.run(run_refresh())
        raise SystemExit(0 if ok else 1)
    elif args.command == "schedule":
        try:
            asyncio.run(run_scheduler(initial_load=not args.skip_initial_load))
        except KeyboardInterrupt:
            logger.info("Scheduler interrupted")
    else:
        # Default: run MCP server (the refresh scheduler runs in its lifespan)
        mcp.run()


if __name__ == "__main__":
    main()
