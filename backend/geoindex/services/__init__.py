"""Services subpackage — facade over the spatial components."""

from geoindex.services.geography import (
    GeographyService,
    find_geojson_center,
    get_geography_service,
)

__all__ = [
    "GeographyService",
    "find_geojson_center",
    "get_geography_service",
]
