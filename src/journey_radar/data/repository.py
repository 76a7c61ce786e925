"""SQLite repository for GTFS reference tables and live real-time tables.

All bulk operations work in bounded pages/chunks, one transaction each, so a
large replace never holds a single long write transaction.
"""

import json
import logging
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from journey_radar.data.database import get_db, get_db_path, init_db
from journey_radar.models.gtfs import Route, TransportMode, Trip
from journey_radar.models.realtime import StopUpdate, TripUpdateRecord, VehiclePositionRecord

logger = logging.getLogger(__name__)

ROUTES_TABLE = "gtfs_routes"
TRIPS_TABLE = "gtfs_trips"
VEHICLE_POSITIONS_TABLE = "vehicle_positions"
TRIP_UPDATES_TABLE = "trip_updates"

TABLES = (ROUTES_TABLE, TRIPS_TABLE, VEHICLE_POSITIONS_TABLE, TRIP_UPDATES_TABLE)

DEFAULT_CHUNK_SIZE = 500


def _chunks(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _check_table(table: str) -> str:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return table


class GTFSRepository:
    """Data access for the journey-radar tables."""

    def __init__(self, db_path: Path | None = None):
        """Initialize the repository.

        Args:
            db_path: SQLite database path (default: JOURNEY_RADAR_DB_PATH).
        """
        self.db_path = Path(db_path) if db_path is not None else get_db_path()
        self._schema_ready = False

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._schema_ready:
            await init_db(self.db_path)
            self._schema_ready = True
        async with get_db(self.db_path) as db:
            yield db

    # ------------------------------------------------------------------
    # Bulk replace
    # ------------------------------------------------------------------

    async def clear_table_page(self, table: str, limit: int) -> int:
        """Delete up to ``limit`` rows from a table.

        Returns:
            Number of rows deleted.
        """
        table = _check_table(table)
        async with self._connect() as db:
            cursor = await db.execute(
                f"DELETE FROM {table} WHERE id IN (SELECT id FROM {table} LIMIT ?)",
                (limit,),
            )
            deleted = cursor.rowcount
            await db.commit()
        return max(deleted, 0)

    async def clear_table(self, table: str, page_size: int = DEFAULT_CHUNK_SIZE) -> int:
        """Delete all rows from a table in pages of ``page_size``.

        Returns:
            Total number of rows deleted.
        """
        total = 0
        while True:
            deleted = await self.clear_table_page(table, page_size)
            if deleted == 0:
                break
            total += deleted
        logger.debug(f"Cleared {total:,} rows from {table}")
        return total

    async def _insert_chunked(
        self,
        sql: str,
        rows: Sequence[tuple[Any, ...]],
        chunk_size: int,
        label: str,
    ) -> int:
        total = 0
        chunk_count = (len(rows) + chunk_size - 1) // chunk_size
        async with self._connect() as db:
            for index, chunk in enumerate(_chunks(rows, chunk_size), start=1):
                await db.executemany(sql, chunk)
                await db.commit()
                total += len(chunk)
                logger.debug(f"Inserted {label} chunk {index}/{chunk_count}")
        return total

    async def insert_routes(
        self, routes: Sequence[Route], chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> int:
        sql = (
            f"INSERT INTO {ROUTES_TABLE} (route_id, route_short_name, route_long_name, "
            "route_type, transport_mode, last_updated) VALUES (?, ?, ?, ?, ?, ?)"
        )
        rows = [
            (
                r.route_id,
                r.route_short_name,
                r.route_long_name,
                r.route_type,
                r.transport_mode.value,
                r.last_updated,
            )
            for r in routes
        ]
        return await self._insert_chunked(sql, rows, chunk_size, "routes")

    async def insert_trips(self, trips: Sequence[Trip], chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
        sql = (
            f"INSERT INTO {TRIPS_TABLE} (trip_id, route_id, shape_id, last_updated) "
            "VALUES (?, ?, ?, ?)"
        )
        rows = [(t.trip_id, t.route_id, t.shape_id, t.last_updated) for t in trips]
        return await self._insert_chunked(sql, rows, chunk_size, "trips")

    async def insert_vehicle_positions(
        self, vehicles: Sequence[VehiclePositionRecord], chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> int:
        sql = (
            f"INSERT INTO {VEHICLE_POSITIONS_TABLE} (vehicle_id, trip_id, route_id, route_number, "
            "latitude, longitude, bearing, timestamp, mode, last_updated) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
        )
        rows = [
            (
                v.vehicle_id,
                v.trip_id,
                v.route_id,
                v.route_number,
                v.latitude,
                v.longitude,
                v.bearing,
                v.timestamp,
                v.mode.value,
                v.last_updated,
            )
            for v in vehicles
        ]
        return await self._insert_chunked(sql, rows, chunk_size, "vehicle positions")

    async def insert_trip_updates(
        self, updates: Sequence[TripUpdateRecord], chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> int:
        sql = (
            f"INSERT INTO {TRIP_UPDATES_TABLE} (entity_id, trip_id, route_id, vehicle_id, mode, "
            "stop_updates, last_updated) VALUES (?, ?, ?, ?, ?, ?, ?)"
        )
        rows = [
            (
                u.id,
                u.trip_id,
                u.route_id,
                u.vehicle_id,
                u.mode.value,
                json.dumps([s.model_dump(exclude_none=True) for s in u.stop_updates]),
                u.last_updated,
            )
            for u in updates
        ]
        return await self._insert_chunked(sql, rows, chunk_size, "trip updates")

    # ------------------------------------------------------------------
    # Indexed lookups
    # ------------------------------------------------------------------

    async def get_route_id_for_trip(self, trip_id: str) -> str:
        """Route id for a trip id, or "" when the trip is unknown."""
        sql = f"SELECT route_id FROM {TRIPS_TABLE} WHERE trip_id = ? LIMIT 1"
        async with self._connect() as db:
            async with db.execute(sql, (trip_id,)) as cursor:
                row = await cursor.fetchone()
        return row["route_id"] if row else ""

    async def get_route_short_name(self, route_id: str) -> str:
        """Short name for a route id, or "" when the route is unknown."""
        sql = f"SELECT route_short_name FROM {ROUTES_TABLE} WHERE route_id = ? LIMIT 1"
        async with self._connect() as db:
            async with db.execute(sql, (route_id,)) as cursor:
                row = await cursor.fetchone()
        return row["route_short_name"] if row else ""

    async def get_route_short_names(self, route_ids: Iterable[str]) -> dict[str, str]:
        """Short names for a set of route ids; unknown ids are omitted."""
        unique_ids = list(dict.fromkeys(route_ids))
        if not unique_ids:
            return {}
        placeholders = ",".join(["?"] * len(unique_ids))
        sql = (
            f"SELECT route_id, route_short_name FROM {ROUTES_TABLE} "
            f"WHERE route_id IN ({placeholders})"
        )
        names: dict[str, str] = {}
        async with self._connect() as db:
            async with db.execute(sql, unique_ids) as cursor:
                async for row in cursor:
                    names.setdefault(row["route_id"], row["route_short_name"])
        return names

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_routes(self) -> list[Route]:
        sql = (
            f"SELECT route_id, route_short_name, route_long_name, route_type, "
            f"transport_mode, last_updated FROM {ROUTES_TABLE} ORDER BY id"
        )
        async with self._connect() as db:
            async with db.execute(sql) as cursor:
                rows = await cursor.fetchall()
        return [
            Route(
                route_id=row["route_id"],
                route_short_name=row["route_short_name"],
                route_long_name=row["route_long_name"],
                route_type=int(row["route_type"]),
                transport_mode=TransportMode(row["transport_mode"]),
                last_updated=row["last_updated"],
            )
            for row in rows
        ]

    async def list_trips(self) -> list[Trip]:
        sql = f"SELECT trip_id, route_id, shape_id, last_updated FROM {TRIPS_TABLE} ORDER BY id"
        async with self._connect() as db:
            async with db.execute(sql) as cursor:
                rows = await cursor.fetchall()
        return [
            Trip(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                shape_id=row["shape_id"],
                last_updated=row["last_updated"],
            )
            for row in rows
        ]

    async def list_vehicle_positions(self) -> list[VehiclePositionRecord]:
        sql = f"SELECT * FROM {VEHICLE_POSITIONS_TABLE} ORDER BY id"
        async with self._connect() as db:
            async with db.execute(sql) as cursor:
                rows = await cursor.fetchall()
        return [
            VehiclePositionRecord(
                row_id=row["id"],
                vehicle_id=row["vehicle_id"],
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                route_number=row["route_number"],
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                bearing=float(row["bearing"]) if row["bearing"] is not None else 0.0,
                timestamp=float(row["timestamp"]),
                mode=TransportMode(row["mode"]),
                last_updated=row["last_updated"],
            )
            for row in rows
        ]

    async def list_trip_updates(self) -> list[TripUpdateRecord]:
        sql = f"SELECT * FROM {TRIP_UPDATES_TABLE} ORDER BY id"
        async with self._connect() as db:
            async with db.execute(sql) as cursor:
                rows = await cursor.fetchall()
        return [
            TripUpdateRecord(
                id=row["entity_id"],
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                vehicle_id=row["vehicle_id"],
                mode=TransportMode(row["mode"]),
                stop_updates=[StopUpdate(**s) for s in json.loads(row["stop_updates"])],
                last_updated=row["last_updated"],
            )
            for row in rows
        ]

    async def get_table_counts(self) -> dict[str, int]:
        """Get row counts for all tables."""
        counts: dict[str, int] = {}
        async with self._connect() as db:
            for table in TABLES:
                async with db.execute(f"SELECT COUNT(*) FROM {table}") as cursor:
                    row = await cursor.fetchone()
                    counts[table] = row[0] if row else 0
        return counts
