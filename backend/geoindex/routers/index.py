"""
Index Endpoints
===============
Bounding box and polygon → geohash set enumeration.

Both endpoints estimate the candidate cell count first and refuse (413)
requests that would exceed ``settings.max_cells``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from geoindex.config import get_settings
from geoindex.schemas.geo import (
    BBoxHashesRequest,
    HashesResponse,
    PolygonHashesRequest,
)
from geoindex.services.geography import GeographyService, get_geography_service
from geoindex.spatial.bbox import BoundingBoxIndexer
from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geometry import BoundingBox, Polygon

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/index", tags=["Index"])
settings = get_settings()


def _guard_cell_count(box: BoundingBox, precision: int) -> None:
    estimate = BoundingBoxIndexer.estimate_cell_count(box, precision)
    if estimate > settings.max_cells:
        logger.info(
            "Refusing index request: ~%d cells at precision %d (max %d)",
            estimate, precision, settings.max_cells,
        )
        raise HTTPException(
            413,
            f"Request would enumerate ~{estimate} cells "
            f"(limit {settings.max_cells}); lower the precision",
        )


def _response(hashes: set[str], precision: int) -> HashesResponse:
    return HashesResponse(
        precision=precision,
        count=len(hashes),
        hashes=sorted(hashes),
    )


# ── Bounding box ──────────────────────────────────────────────────
@router.post("/bbox", response_model=HashesResponse)
async def hashes_in_bbox(
    req: BBoxHashesRequest,
    svc: GeographyService = Depends(get_geography_service),
):
    """Every geohash whose cell intersects the requested rectangle."""
    precision = req.precision or settings.default_precision
    try:
        box = BoundingBox.from_corners(req.min_lat_lon, req.max_lat_lon)
        _guard_cell_count(box, precision)
        hashes = svc.hashes_inside_coords(req.min_lat_lon, req.max_lat_lon, precision)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return _response(hashes, precision)


# ── Polygon ───────────────────────────────────────────────────────
@router.post("/polygon", response_model=HashesResponse)
async def hashes_in_polygon(
    req: PolygonHashesRequest,
    svc: GeographyService = Depends(get_geography_service),
):
    """
    Every geohash whose cell touches or covers the polygon.

    The scan runs on the worker pool so the event loop stays responsive.
    """
    precision = req.precision or settings.default_precision
    try:
        polygon = Polygon.from_lon_lat(req.coordinates)
        _guard_cell_count(polygon.bounding_box(), precision)
        hashes = await svc.hashes_inside_polygon(polygon, precision)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return _response(hashes, precision)
