"""
GeoJSON Endpoints
=================
Reprojection to WGS84 and feature centre lookup.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from geoindex.schemas.geo import CenterResponse
from geoindex.services.geography import GeographyService, get_geography_service
from geoindex.spatial.errors import InvalidArgument

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/geojson", tags=["GeoJSON"])


# ── Reproject ─────────────────────────────────────────────────────
@router.post("/reproject")
async def reproject(
    geojson: dict[str, Any] = Body(...),
    svc: GeographyService = Depends(get_geography_service),
) -> dict[str, Any]:
    """
    Convert a GeoJSON document with a ``crs`` member to WGS84.

    Best effort: an unknown CRS or a failing transform returns the
    document unchanged (still 200).
    """
    return svc.reproject_geojson(geojson)


# ── Centre ────────────────────────────────────────────────────────
@router.post("/center", response_model=CenterResponse)
async def center(
    geojson: dict[str, Any] = Body(...),
    svc: GeographyService = Depends(get_geography_service),
):
    """Mean position of the first feature's outer ring."""
    try:
        lon, lat = svc.find_geojson_center(geojson)
    except InvalidArgument as exc:
        raise HTTPException(422, str(exc))
    return CenterResponse(lon=lon, lat=lat)
