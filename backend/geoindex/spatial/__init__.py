"""Spatial subpackage — geohash grid, indexers and CRS reprojection."""

from geoindex.spatial.bbox import BoundingBoxIndexer
from geoindex.spatial.errors import (
    GeoIndexError,
    InvalidArgument,
    TransformFailure,
    UnsupportedCRS,
)
from geoindex.spatial.geohash import GeohashCodec
from geoindex.spatial.geometry import BoundingBox, Coordinate, Polygon
from geoindex.spatial.neighbors import Direction, NeighborResolver
from geoindex.spatial.polygon import PolygonIndexer
from geoindex.spatial.reproject import (
    EPSG_DEFINITIONS,
    CRSReprojector,
    PyprojCRSTable,
)

__all__ = [
    "BoundingBox",
    "BoundingBoxIndexer",
    "Coordinate",
    "CRSReprojector",
    "Direction",
    "EPSG_DEFINITIONS",
    "GeohashCodec",
    "GeoIndexError",
    "InvalidArgument",
    "NeighborResolver",
    "Polygon",
    "PolygonIndexer",
    "PyprojCRSTable",
    "TransformFailure",
    "UnsupportedCRS",
]
