"""
Pydantic schemas for API request/response serialization.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from geoindex.config import get_settings
from geoindex.spatial.geometry import BoundingBox


def _check_precision(v: int | None) -> int | None:
    if v is None:
        return v
    max_precision = get_settings().max_precision
    if not 1 <= v <= max_precision:
        raise ValueError(f"precision must be between 1 and {max_precision}")
    return v


# ═══════════════════════════════════════════════════════════════════
# Geohash schemas
# ═══════════════════════════════════════════════════════════════════
class EncodeRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    precision: int | None = Field(
        default=None,
        description="Geohash length (server default when omitted)",
    )

    @field_validator("precision")
    @classmethod
    def precision_in_range(cls, v: int | None) -> int | None:
        return _check_precision(v)


class GeohashOut(BaseModel):
    geohash: str


class BoundingBoxOut(BaseModel):
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @classmethod
    def from_box(cls, box: BoundingBox) -> BoundingBoxOut:
        return cls(**box.as_dict())


class DecodeResponse(BaseModel):
    """Centre and rectangle of one geohash cell."""

    geohash: str
    lat: float
    lon: float
    bbox: BoundingBoxOut
    geometry: dict = Field(description="GeoJSON Polygon of the cell")


class BBoxesRequest(BaseModel):
    geohashes: list[str] = Field(min_length=1)


class NeighborsResponse(BaseModel):
    geohash: str
    neighbors: dict[str, str]


# ═══════════════════════════════════════════════════════════════════
# Index schemas
# ═══════════════════════════════════════════════════════════════════
class BBoxHashesRequest(BaseModel):
    """Rectangle given as ``[minLat, minLon]`` / ``[maxLat, maxLon]``."""

    min_lat_lon: list[float] = Field(min_length=2, max_length=2)
    max_lat_lon: list[float] = Field(min_length=2, max_length=2)
    precision: int | None = None

    @field_validator("precision")
    @classmethod
    def precision_in_range(cls, v: int | None) -> int | None:
        return _check_precision(v)


class PolygonHashesRequest(BaseModel):
    """Simple ring in GeoJSON axis order ``[[lon, lat], ...]``."""

    coordinates: list[list[float]] = Field(
        min_length=3,
        description="Ring vertices [[lon1, lat1], [lon2, lat2], ...]",
    )
    precision: int | None = None

    @field_validator("precision")
    @classmethod
    def precision_in_range(cls, v: int | None) -> int | None:
        return _check_precision(v)


class HashesResponse(BaseModel):
    precision: int
    count: int
    hashes: list[str] = Field(description="Sorted geohashes")


# ═══════════════════════════════════════════════════════════════════
# GeoJSON schemas
# ═══════════════════════════════════════════════════════════════════
class CenterResponse(BaseModel):
    lon: float
    lat: float
