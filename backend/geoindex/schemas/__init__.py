"""Schemas subpackage — Pydantic request/response models."""

from geoindex.schemas.geo import (
    BBoxesRequest,
    BBoxHashesRequest,
    BoundingBoxOut,
    CenterResponse,
    DecodeResponse,
    EncodeRequest,
    GeohashOut,
    HashesResponse,
    NeighborsResponse,
    PolygonHashesRequest,
)

__all__ = [
    "BBoxesRequest",
    "BBoxHashesRequest",
    "BoundingBoxOut",
    "CenterResponse",
    "DecodeResponse",
    "EncodeRequest",
    "GeohashOut",
    "HashesResponse",
    "NeighborsResponse",
    "PolygonHashesRequest",
]
