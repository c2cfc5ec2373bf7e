"""Exception taxonomy shared by the spatial components."""

from __future__ import annotations


class GeoIndexError(Exception):
    """Base exception for geoindex operations."""


class InvalidArgument(GeoIndexError, ValueError):
    """Malformed geohash, bad precision, invalid coordinate or degenerate polygon."""


class UnsupportedCRS(GeoIndexError):
    """The declared CRS is missing or not present in the lookup table."""


class TransformFailure(GeoIndexError):
    """A coordinate could not be transformed into WGS84."""
