"""Database connection helper for the journey-radar SQLite database."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from journey_radar.data.config import get_gtfs_config

# Schema definitions
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS gtfs_routes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    route_id TEXT NOT NULL,
    route_short_name TEXT NOT NULL DEFAULT '',
    route_long_name TEXT NOT NULL DEFAULT '',
    route_type INTEGER NOT NULL,
    transport_mode TEXT NOT NULL,
    last_updated REAL
);

CREATE TABLE IF NOT EXISTS gtfs_trips (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    trip_id TEXT NOT NULL,
    route_id TEXT NOT NULL,
    shape_id TEXT,
    last_updated REAL
);

CREATE TABLE IF NOT EXISTS vehicle_positions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    vehicle_id TEXT NOT NULL,
    trip_id TEXT NOT NULL DEFAULT '',
    route_id TEXT NOT NULL DEFAULT '',
    route_number TEXT NOT NULL DEFAULT '',
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    bearing REAL,
    timestamp REAL NOT NULL,
    mode TEXT NOT NULL,
    last_updated REAL
);

CREATE TABLE IF NOT EXISTS trip_updates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_id TEXT NOT NULL,
    trip_id TEXT NOT NULL DEFAULT '',
    route_id TEXT NOT NULL DEFAULT '',
    vehicle_id TEXT,
    mode TEXT NOT NULL,
    stop_updates TEXT NOT NULL DEFAULT '[]',
    last_updated REAL
);

CREATE INDEX IF NOT EXISTS idx_gtfs_routes_route_id ON gtfs_routes(route_id);
CREATE INDEX IF NOT EXISTS idx_gtfs_trips_trip_id ON gtfs_trips(trip_id);
CREATE INDEX IF NOT EXISTS idx_vehicle_positions_mode ON vehicle_positions(mode);
"""


def get_db_path() -> Path:
    """Get the database path from configuration (JOURNEY_RADAR_DB_PATH)."""
    return get_gtfs_config().db_path


async def init_db(db_path: Path | None = None) -> Path:
    """Create the database file and schema if missing.

    Returns:
        The database path that was initialized.
    """
    if db_path is None:
        db_path = get_db_path()
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()
    return db_path


@asynccontextmanager
async def get_db(db_path: Path | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Async context manager for DB connections with Row factory.

    The schema is created when the database file does not exist yet.

    Args:
        db_path: Optional path to the database. If not provided, uses
                 JOURNEY_RADAR_DB_PATH or defaults to 'data/journey_radar.db'.

    Yields:
        aiosqlite.Connection configured with Row factory for dict-like access.
    """
    if db_path is None:
        db_path = get_db_path()
    if not Path(db_path).exists():
        await init_db(db_path)

    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        yield db
