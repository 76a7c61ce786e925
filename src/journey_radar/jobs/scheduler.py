import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from journey_radar.data.config import GTFSConfig, get_gtfs_config
from journey_radar.data.gtfs_loader import ScheduleLoader
from journey_radar.models.responses import LoadResult, RefreshSummary
from journey_radar.services.realtime_loader import RealtimeLoader

logger = logging.getLogger(__name__)

REALTIME_JOB_ID = "realtime_refresh"
SCHEDULE_JOB_ID = "schedule_load"
INITIAL_LOAD_JOB_ID = "initial_load"


class RefreshScheduler:
    """Keeps the live tables fresh and reloads the static schedule periodically."""

    def __init__(
        self,
        config: GTFSConfig | None = None,
        schedule_loader: ScheduleLoader | None = None,
        realtime_loader: RealtimeLoader | None = None,
    ):
        self.config = config or get_gtfs_config()
        self.schedule_loader = schedule_loader or ScheduleLoader(self.config)
        self.realtime_loader = realtime_loader or RealtimeLoader(self.config)
        self.scheduler = AsyncIOScheduler()
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup scheduled jobs."""
        self.scheduler.add_job(
            func=self.refresh_realtime,
            trigger=IntervalTrigger(seconds=self.config.realtime_interval_seconds),
            id=REALTIME_JOB_ID,
            name="Refresh real-time feeds",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            func=self.load_schedule,
            trigger=IntervalTrigger(seconds=self.config.schedule_interval_seconds),
            id=SCHEDULE_JOB_ID,
            name="Load GTFS schedule",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    async def start(self, initial_load: bool = True):
        """Start the scheduler.

        Args:
            initial_load: Queue a one-shot schedule load followed by one
                real-time cycle to run as soon as the scheduler is up. The
                call returns without waiting for it.
        """
        if initial_load:
            self.scheduler.add_job(
                func=self._initial_load,
                id=INITIAL_LOAD_JOB_ID,
                name="Initial GTFS load",
                replace_existing=True,
                misfire_grace_time=None,
            )
        logger.info("Starting GTFS refresh scheduler")
        self.scheduler.start()

    async def stop(self):
        """Stop the scheduler."""
        logger.info("Stopping GTFS refresh scheduler")
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def _initial_load(self):
        """Load the schedule, then refresh real-time data against it."""
        await self.load_schedule()
        await self.refresh_realtime()

    async def refresh_realtime(self) -> RefreshSummary:
        """Run both real-time loads concurrently.

        A load that raises is reported as a failed result; one failing load
        never prevents the other from completing.
        """
        outcomes = await asyncio.gather(
            self.realtime_loader.load_vehicle_positions(),
            self.realtime_loader.load_trip_updates(),
            return_exceptions=True,
        )

        results: list[LoadResult] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.error(f"Real-time load raised: {outcome}")
                results.append(LoadResult(success=False, error=str(outcome)))
            else:
                results.append(outcome)

        successes = sum(1 for r in results if r.success)
        summary = RefreshSummary(
            total=len(results),
            successes=successes,
            failures=len(results) - successes,
            results=results,
        )
        logger.info(
            f"Real-time refresh completed: {summary.successes}/{summary.total} succeeded"
        )
        return summary

    async def load_schedule(self) -> LoadResult:
        """Reload the static schedule."""
        logger.info("Starting scheduled GTFS schedule load")
        result = await self.schedule_loader.load_schedule()
        if not result.success:
            logger.error(f"Scheduled GTFS schedule load failed: {result.error}")
        return result

    def get_job_info(self) -> dict:
        """Get information about scheduled jobs."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None,
                    "trigger": str(job.trigger),
                }
            )

        return {
            "scheduler_running": self.scheduler.running,
            "jobs": jobs,
        }


# Module-level scheduler (lazy-initialized)
_scheduler: RefreshScheduler | None = None


def get_scheduler() -> RefreshScheduler:
    """Get or create the refresh scheduler singleton."""
    global _scheduler
    if _scheduler is None:
        _scheduler = RefreshScheduler()
    return _scheduler
