"""GTFS static loader: downloads schedule archives and replaces routes/trips."""

import csv
import io
import logging
import time
import zipfile
from collections.abc import Iterator
from dataclasses import dataclass, field

from journey_radar.data.config import GTFSConfig, get_gtfs_config
from journey_radar.data.gtfsrt_client import FeedClient
from journey_radar.data.repository import ROUTES_TABLE, TRIPS_TABLE, GTFSRepository
from journey_radar.models.gtfs import Route, ShapePoint, Trip, transport_mode_from_route_type
from journey_radar.models.responses import LoadResult

logger = logging.getLogger(__name__)

ROUTES_FILE = "routes.txt"
TRIPS_FILE = "trips.txt"
SHAPES_FILE = "shapes.txt"

# route_type used when the column is blank or not a number (GTFS bus)
DEFAULT_ROUTE_TYPE = 3


@dataclass
class ScheduleArchive:
    """Parsed contents of one GTFS ZIP archive."""

    routes: list[Route] = field(default_factory=list)
    trips: list[Trip] = field(default_factory=list)
    skipped_rows: int = 0


def _iter_rows(text: str, filename: str) -> Iterator[dict[str, str]]:
    """Yield header-keyed rows from delimited GTFS text."""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header = next(reader, None)
    if header is None:
        raise ValueError(f"{filename} is empty")
    columns = [name.strip().strip('"') for name in header]
    for row in reader:
        if not row or all(not value.strip() for value in row):
            continue
        yield {
            col: (row[idx].strip() if idx < len(row) else "")
            for idx, col in enumerate(columns)
        }


def _parse_route_type(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return DEFAULT_ROUTE_TYPE


def parse_routes(text: str, last_updated: float | None = None) -> tuple[list[Route], int]:
    """Parse routes.txt.

    Returns:
        (routes, skipped) where skipped counts rows without a route_id.
    """
    routes: list[Route] = []
    skipped = 0
    for row in _iter_rows(text, ROUTES_FILE):
        route_id = row.get("route_id", "")
        if not route_id:
            skipped += 1
            continue
        route_type = _parse_route_type(row.get("route_type", ""))
        routes.append(
            Route(
                route_id=route_id,
                route_short_name=row.get("route_short_name", ""),
                route_long_name=row.get("route_long_name", ""),
                route_type=route_type,
                transport_mode=transport_mode_from_route_type(route_type),
                last_updated=last_updated,
            )
        )
    return routes, skipped


def parse_trips(text: str, last_updated: float | None = None) -> tuple[list[Trip], int]:
    """Parse trips.txt.

    Returns:
        (trips, skipped) where skipped counts rows without trip_id or route_id.
    """
    trips: list[Trip] = []
    skipped = 0
    for row in _iter_rows(text, TRIPS_FILE):
        trip_id = row.get("trip_id", "")
        route_id = row.get("route_id", "")
        if not trip_id or not route_id:
            skipped += 1
            continue
        trips.append(
            Trip(
                trip_id=trip_id,
                route_id=route_id,
                shape_id=row.get("shape_id") or None,
                last_updated=last_updated,
            )
        )
    return trips, skipped


def parse_shapes(text: str) -> list[ShapePoint]:
    """Parse shapes.txt, dropping rows with missing or non-numeric values."""
    points: list[ShapePoint] = []
    for row in _iter_rows(text, SHAPES_FILE):
        shape_id = row.get("shape_id", "")
        if not shape_id:
            continue
        try:
            points.append(
                ShapePoint(
                    shape_id=shape_id,
                    lat=float(row.get("shape_pt_lat", "")),
                    lon=float(row.get("shape_pt_lon", "")),
                    sequence=int(float(row.get("shape_pt_sequence", "0") or 0)),
                )
            )
        except ValueError:
            continue
    return points


def read_archive_file(data: bytes, filename: str) -> str | None:
    """Read one text file from a GTFS ZIP, or None if the archive lacks it."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        if filename not in zf.namelist():
            return None
        return zf.read(filename).decode("utf-8-sig")


def read_archive(data: bytes, last_updated: float | None = None) -> ScheduleArchive:
    """Parse routes.txt and trips.txt from a GTFS ZIP archive.

    Raises:
        zipfile.BadZipFile: If the payload is not a ZIP archive.
    """
    archive = ScheduleArchive()

    routes_text = read_archive_file(data, ROUTES_FILE)
    if routes_text is None:
        logger.warning(f"{ROUTES_FILE} not found in archive")
    else:
        archive.routes, skipped = parse_routes(routes_text, last_updated)
        archive.skipped_rows += skipped

    trips_text = read_archive_file(data, TRIPS_FILE)
    if trips_text is None:
        logger.warning(f"{TRIPS_FILE} not found in archive")
    else:
        archive.trips, skipped = parse_trips(trips_text, last_updated)
        archive.skipped_rows += skipped

    return archive


def _unique_routes(routes: list[Route]) -> list[Route]:
    seen: set[str] = set()
    unique: list[Route] = []
    for route in routes:
        if route.route_id in seen:
            logger.warning(f"Duplicate route_id {route.route_id!r} ignored")
            continue
        seen.add(route.route_id)
        unique.append(route)
    return unique


class ScheduleLoader:
    """Loads the static GTFS schedule into the routes/trips tables."""

    def __init__(
        self,
        config: GTFSConfig | None = None,
        repository: GTFSRepository | None = None,
    ):
        self._config = config or get_gtfs_config()
        self._repository = repository or GTFSRepository(self._config.db_path)

    async def _download_archives(self, now: float) -> tuple[list[Route], list[Trip]]:
        routes: list[Route] = []
        trips: list[Trip] = []
        async with FeedClient(self._config) as client:
            for url, _mode in self._config.schedule_archives:
                try:
                    logger.info(f"Fetching GTFS data from {url}")
                    data = await client.fetch_bytes(url)
                    archive = read_archive(data, last_updated=now)
                except Exception as e:
                    logger.error(f"Error processing {url}: {e}")
                    continue
                routes.extend(archive.routes)
                trips.extend(archive.trips)
                logger.info(
                    f"  {url}: {len(archive.routes):,} routes, {len(archive.trips):,} trips"
                    + (f" (skipped {archive.skipped_rows:,} invalid)" if archive.skipped_rows else "")
                )
        return routes, trips

    async def load_schedule(self) -> LoadResult:
        """Download the schedule archives and replace the routes/trips tables.

        A failing archive is skipped. Any other failure is returned as
        ``LoadResult(success=False)`` rather than raised.
        """
        try:
            logger.info("Starting GTFS schedule loading...")
            now = time.time()
            routes, trips = await self._download_archives(now)
            routes = _unique_routes(routes)
            logger.info(f"Loaded {len(routes):,} routes and {len(trips):,} trips")

            logger.info("Clearing existing GTFS data via paginated batches...")
            page_size = self._config.schedule_delete_page_size
            await self._repository.clear_table(TRIPS_TABLE, page_size)
            await self._repository.clear_table(ROUTES_TABLE, page_size)

            await self._repository.insert_routes(routes, self._config.route_insert_chunk_size)
            await self._repository.insert_trips(trips, self._config.trip_insert_chunk_size)

            logger.info("GTFS schedule loading completed successfully")
            return LoadResult(success=True, route_count=len(routes), trip_count=len(trips))
        except Exception as e:
            logger.error(f"Error loading GTFS schedule: {e}")
            return LoadResult(success=False, error=str(e))
