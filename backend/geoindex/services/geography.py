"""
Geography Service
=================
One facade over the spatial components, shaped after the helper API its
callers already use:

    hashes_inside_coords   bbox corners      → geohash set
    hashes_inside_polygon  polygon (async)   → geohash set
    geohash_to_bbox(es)    geohash(es)       → cell rectangle(s)
    encode / decode        point ↔ geohash
    geohash_neighbour(s)   geohash           → adjacent cells
    find_geojson_center    FeatureCollection → [lon, lat]
    reproject_geojson      GeoJSON in any CRS → WGS84 (best effort)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Executor
from typing import Any, Sequence

import numpy as np

from geoindex.config import get_settings
from geoindex.spatial.bbox import BoundingBoxIndexer
from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geohash import GeohashCodec
from geoindex.spatial.geometry import BoundingBox, Coordinate, Polygon
from geoindex.spatial.neighbors import Direction, NeighborResolver
from geoindex.spatial.polygon import PolygonIndexer
from geoindex.spatial.reproject import CRSReprojector, crs_table_for

logger = logging.getLogger(__name__)


# ── Centroid helper ──────────────────────────────────────────────
def _centroid(positions: Sequence[Sequence[float]]) -> list[float]:
    """Arithmetic mean of ``[lon, lat]`` positions."""
    try:
        arr = np.asarray(positions, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"positions must be numeric [lon, lat] pairs: {exc}") from exc
    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] < 2:
        raise InvalidArgument("expected a non-empty list of [lon, lat] positions")
    lon, lat = arr[:, :2].mean(axis=0)
    return [float(lon), float(lat)]


def find_geojson_center(json: Mapping[str, Any]) -> list[float]:
    """
    Centre ``[lon, lat]`` of the first feature of a FeatureCollection.

    Polygon coordinates average their outer ring; MultiPolygon coordinates
    (one level deeper) average the outer ring of their first polygon.
    Every listed position counts, including a closing duplicate.
    """
    try:
        coordinates = json["features"][0]["geometry"]["coordinates"]
        first = coordinates[0]
        ring = first[0] if isinstance(first[0][0], (list, tuple)) else first
    except (KeyError, IndexError, TypeError) as exc:
        raise InvalidArgument(f"cannot locate polygon coordinates: {exc!r}") from exc
    return _centroid(ring)


# ── Service ──────────────────────────────────────────────────────
class GeographyService:
    """
    Stateless facade; one instance may be shared across requests.

    Parameters
    ----------
    crs_lookup : Mapping[str, str]
        CRS code → PROJ definition table used for reprojection.
    executor : Executor | None
        Pool for polygon scans (``None`` = loop default executor).
    """

    def __init__(
        self,
        crs_lookup: Mapping[str, str],
        executor: Executor | None = None,
    ) -> None:
        self.reprojector = CRSReprojector(crs_lookup)
        self.polygon_indexer = PolygonIndexer(executor)

    # ── Indexing ──────────────────────────────────────────────

    def hashes_inside_coords(
        self,
        min_lat_lon: Sequence[float],
        max_lat_lon: Sequence[float],
        precision: int,
    ) -> set[str]:
        """Geohashes of ``precision`` covering the ``[minLat, minLon]``–``[maxLat, maxLon]`` box."""
        box = BoundingBox.from_corners(min_lat_lon, max_lat_lon)
        return BoundingBoxIndexer.enumerate(box, precision)

    async def hashes_inside_polygon(self, polygon: Polygon, precision: int) -> set[str]:
        return await self.polygon_indexer.enumerate(polygon, precision)

    # ── Codec ─────────────────────────────────────────────────

    def geohash_to_bbox(self, geohash: str) -> BoundingBox:
        return GeohashCodec.decode_bbox(geohash)

    def geohashes_to_bboxes(self, geohashes: Sequence[str]) -> list[BoundingBox]:
        return GeohashCodec.decode_bboxes(geohashes)

    def encode_geohash(self, coord: Coordinate, precision: int) -> str:
        return GeohashCodec.encode(coord, precision)

    def decode_geohash(self, geohash: str) -> Coordinate:
        return GeohashCodec.decode(geohash)

    # ── Neighbours ────────────────────────────────────────────

    def geohash_neighbours(self, geohash: str) -> dict[Direction, str]:
        return NeighborResolver.neighbors(geohash)

    def geohash_neighbour(self, geohash: str, direction: Direction | str) -> str:
        return NeighborResolver.neighbor(geohash, direction)

    # ── GeoJSON ───────────────────────────────────────────────

    def find_geojson_center(self, json: Mapping[str, Any]) -> list[float]:
        return find_geojson_center(json)

    def reproject_geojson(self, json: Any) -> Any:
        """WGS84 copy of ``json``; ``json`` itself if it cannot be converted."""
        return self.reprojector.reproject(json)


# ── Singleton service ─────────────────────────────────────────────
_service_instance: GeographyService | None = None


def get_geography_service() -> GeographyService:
    """Return a singleton ``GeographyService`` built from settings."""
    global _service_instance
    if _service_instance is None:
        settings = get_settings()
        _service_instance = GeographyService(crs_table_for(settings.crs_table))
        logger.info("GeographyService created (crs_table=%s)", settings.crs_table)
    return _service_instance
