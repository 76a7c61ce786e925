"""GeoJSON route shapes built from the static GTFS archives.

The collection is expensive to build (two archive downloads), so it is kept in
a single-value TTL cache.
"""

import logging
import time
from collections import defaultdict
from collections.abc import Callable

from journey_radar.data.cache import TTLCache
from journey_radar.data.config import GTFSConfig, get_gtfs_config
from journey_radar.data.gtfs_loader import (
    SHAPES_FILE,
    TRIPS_FILE,
    parse_shapes,
    parse_trips,
    read_archive_file,
)
from journey_radar.data.gtfsrt_client import FeedClient
from journey_radar.models.gtfs import ShapePoint
from journey_radar.models.responses import (
    LineStringGeometry,
    ShapeFeature,
    ShapesFeatureCollection,
)

logger = logging.getLogger(__name__)


def build_shape_features(
    shapes_text: str, trips_text: str | None, mode: str
) -> list[ShapeFeature]:
    """Build LineString features for one archive.

    Only shapes referenced by a trip are kept when trips.txt is present.
    Shapes with fewer than two points are dropped.
    """
    referenced: set[str] | None = None
    if trips_text is not None:
        trips, _ = parse_trips(trips_text)
        referenced = {t.shape_id for t in trips if t.shape_id}

    points_by_shape: dict[str, list[ShapePoint]] = defaultdict(list)
    for point in parse_shapes(shapes_text):
        if referenced is not None and point.shape_id not in referenced:
            continue
        points_by_shape[point.shape_id].append(point)

    features: list[ShapeFeature] = []
    for shape_id, points in points_by_shape.items():
        if len(points) < 2:
            continue
        points.sort(key=lambda p: p.sequence)
        features.append(
            ShapeFeature(
                geometry=LineStringGeometry(coordinates=[(p.lon, p.lat) for p in points]),
                properties={"shape_id": shape_id, "mode": mode},
            )
        )
    return features


class ShapesService:
    """Serves the shapes FeatureCollection with TTL caching."""

    def __init__(
        self,
        config: GTFSConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config or get_gtfs_config()
        self._cache = TTLCache[ShapesFeatureCollection](
            ttl=self._config.shapes_cache_ttl_seconds, clock=clock
        )

    async def _build(self) -> ShapesFeatureCollection:
        features: list[ShapeFeature] = []
        async with FeedClient(self._config) as client:
            for url, mode in self._config.schedule_archives:
                try:
                    data = await client.fetch_bytes(url)
                    shapes_text = read_archive_file(data, SHAPES_FILE)
                    if shapes_text is None:
                        logger.warning(f"{SHAPES_FILE} not found in {url}")
                        continue
                    trips_text = read_archive_file(data, TRIPS_FILE)
                except Exception as e:
                    logger.error(f"Error reading shapes from {url}: {e}")
                    continue
                archive_features = build_shape_features(shapes_text, trips_text, mode)
                logger.info(f"  {url}: {len(archive_features):,} shapes")
                features.extend(archive_features)
        return ShapesFeatureCollection(features=features)

    async def get_shapes(self, force_refresh: bool = False) -> ShapesFeatureCollection:
        """Get the shapes FeatureCollection.

        Args:
            force_refresh: If True, bypass cache and rebuild.

        Returns:
            ShapesFeatureCollection, possibly empty if every archive failed.
        """
        if not force_refresh:
            cached = self._cache.get()
            if cached is not None:
                return cached

        async with self._cache.lock:
            if not force_refresh:
                cached = self._cache.get()
                if cached is not None:
                    return cached

            collection = await self._build()
            self._cache.set(collection)
            logger.debug(f"Built {len(collection.features)} shape features")
            return collection
