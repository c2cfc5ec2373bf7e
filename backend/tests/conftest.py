"""
Shared fixtures for the GeoIndex test suite.

This conftest provides:
- Reusable geometry factories (cells, polygons, GeoJSON documents)
- A GeographyService wired to the built-in CRS table
- Test client (httpx.AsyncClient) over an app with the service overridden
"""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from geoindex.services.geography import GeographyService, get_geography_service
from geoindex.spatial.geometry import Coordinate, Polygon
from geoindex.spatial.reproject import EPSG_DEFINITIONS

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------
# Side of a precision-3 cell in degrees (8 lon bits / 7 lat bits → square).
P3_CELL = 1.40625

# Example from the geohash literature.
SAMPLE_COORD = Coordinate(lat=57.64911, lon=10.40744)
SAMPLE_HASH = "u4pruy"

# Cell "c23n1e" and its eight neighbours.
SAMPLE_NEIGHBORS = {
    "n": "c23n1s",
    "ne": "c23n1u",
    "e": "c23n1g",
    "se": "c23n1f",
    "s": "c23n1d",
    "sw": "c23n16",
    "w": "c23n17",
    "nw": "c23n1k",
}


def make_triangle(scale: float = 1.0) -> Polygon:
    """Small triangle inside precision-3 cell ``s00`` (for scale <= 1)."""
    return Polygon.from_lon_lat([
        [0.2 * scale, 0.2 * scale],
        [0.8 * scale, 0.3 * scale],
        [0.5 * scale, 0.9 * scale],
    ])


def make_l_shape() -> Polygon:
    """
    L-shaped polygon over a 3×3 block of precision-3 cells starting at
    (0, 0): covers column 0 and row 0, leaves the 2×2 upper-right block out.
    """
    c = P3_CELL
    return Polygon.from_lon_lat([
        [0.1 * c, 0.1 * c],
        [2.9 * c, 0.1 * c],
        [2.9 * c, 0.9 * c],
        [0.9 * c, 0.9 * c],
        [0.9 * c, 2.9 * c],
        [0.1 * c, 2.9 * c],
        [0.1 * c, 0.1 * c],
    ])


def make_feature_collection(geometry: dict, crs: str | None = None) -> dict:
    doc = {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"name": "sample"}, "geometry": geometry},
        ],
    }
    if crs is not None:
        doc["crs"] = {"type": "name", "properties": {"name": crs}}
    return doc


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def service() -> GeographyService:
    return GeographyService(EPSG_DEFINITIONS)


def create_test_app(*routers) -> FastAPI:
    app = FastAPI()
    for router in routers:
        app.include_router(router, prefix="/api")
    return app


def make_client(app: FastAPI, service: GeographyService) -> AsyncClient:
    app.dependency_overrides[get_geography_service] = lambda: service
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://testserver")
