"""
Geohash Endpoints
=================
Encode, decode and neighbour lookups on single geohash cells.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from geoindex.config import get_settings
from geoindex.schemas.geo import (
    BBoxesRequest,
    BoundingBoxOut,
    DecodeResponse,
    EncodeRequest,
    GeohashOut,
    NeighborsResponse,
)
from geoindex.services.geography import GeographyService, get_geography_service
from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geometry import Coordinate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/geohash", tags=["Geohash"])
settings = get_settings()


# ── Encode ────────────────────────────────────────────────────────
@router.post("/encode", response_model=GeohashOut)
async def encode(
    req: EncodeRequest,
    svc: GeographyService = Depends(get_geography_service),
):
    """Encode a lat/lon point at the requested (or default) precision."""
    precision = req.precision or settings.default_precision
    try:
        geohash = svc.encode_geohash(Coordinate(lat=req.lat, lon=req.lon), precision)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return GeohashOut(geohash=geohash)


# ── Batch bounding boxes ──────────────────────────────────────────
@router.post("/bboxes", response_model=list[BoundingBoxOut])
async def bboxes(
    req: BBoxesRequest,
    svc: GeographyService = Depends(get_geography_service),
):
    """Cell rectangles for several geohashes, in request order."""
    try:
        boxes = svc.geohashes_to_bboxes(req.geohashes)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return [BoundingBoxOut.from_box(b) for b in boxes]


# ── Decode ────────────────────────────────────────────────────────
@router.get("/{geohash}", response_model=DecodeResponse)
async def decode(
    geohash: str,
    svc: GeographyService = Depends(get_geography_service),
):
    """Centre point, rectangle and GeoJSON outline of one cell."""
    try:
        box = svc.geohash_to_bbox(geohash)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    center = box.center
    return DecodeResponse(
        geohash=geohash.lower(),
        lat=center.lat,
        lon=center.lon,
        bbox=BoundingBoxOut.from_box(box),
        geometry=box.to_geojson(),
    )


# ── Neighbours ────────────────────────────────────────────────────
@router.get("/{geohash}/neighbors", response_model=NeighborsResponse)
async def neighbors(
    geohash: str,
    direction: str | None = None,
    svc: GeographyService = Depends(get_geography_service),
):
    """
    Adjacent cells.  With ``?direction=`` (n/ne/e/se/s/sw/w/nw) only that
    neighbour is returned.
    """
    try:
        if direction:
            found = {direction.lower(): svc.geohash_neighbour(geohash, direction)}
        else:
            found = {d.value: h for d, h in svc.geohash_neighbours(geohash).items()}
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return NeighborsResponse(geohash=geohash.lower(), neighbors=found)
