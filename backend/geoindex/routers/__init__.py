"""Routers subpackage — HTTP layer for all API endpoints."""

from geoindex.routers import geohash, geojson, index

__all__ = ["geohash", "geojson", "index"]
