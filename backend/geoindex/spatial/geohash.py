"""
Geohash Codec
=============
Bidirectional mapping between WGS84 points and base-32 geohash strings.

Encoding alternately bisects the longitude range ``[-180, 180]`` (first bit)
and the latitude range ``[-90, 90]``; a value on or above the midpoint
yields bit 1.  Every five bits form one character of the alphabet
``0123456789bcdefghjkmnpqrstuvwxyz``.

Approximate cell size per precision:

    Length  Width       Height
    1       5,000km     5,000km
    3       156km       156km
    5       4.89km      4.89km
    6       1.22km      0.61km
    8       38.2m       19.1m
    12      37.2mm      18.6mm
"""

from __future__ import annotations

from typing import Iterable

from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geometry import BoundingBox, Coordinate

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
BASE32_DECODE = {char: index for index, char in enumerate(BASE32)}
BITS_PER_CHAR = 5


def validate_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidArgument(f"precision must be an integer, got {precision!r}")
    if precision <= 0:
        raise InvalidArgument(f"precision must be positive, got {precision}")
    return precision


class GeohashCodec:
    """Stateless encoder / decoder.  All methods are static."""

    @staticmethod
    def encode(coord: Coordinate, precision: int) -> str:
        """Encode ``coord`` into a geohash of ``precision`` characters."""
        validate_precision(precision)
        lat_lo, lat_hi = -90.0, 90.0
        lon_lo, lon_hi = -180.0, 180.0
        chars: list[str] = []
        value = 0
        bit = 0
        even = True  # longitude bit

        while len(chars) < precision:
            if even:
                mid = (lon_lo + lon_hi) / 2
                if coord.lon >= mid:
                    value = (value << 1) | 1
                    lon_lo = mid
                else:
                    value <<= 1
                    lon_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if coord.lat >= mid:
                    value = (value << 1) | 1
                    lat_lo = mid
                else:
                    value <<= 1
                    lat_hi = mid
            even = not even
            bit += 1
            if bit == BITS_PER_CHAR:
                chars.append(BASE32[value])
                value = 0
                bit = 0

        return "".join(chars)

    @staticmethod
    def decode_bbox(geohash: str) -> BoundingBox:
        """Recover the cell rectangle denoted by ``geohash``."""
        if not isinstance(geohash, str) or not geohash:
            raise InvalidArgument(f"geohash must be a non-empty string, got {geohash!r}")

        lat_lo, lat_hi = -90.0, 90.0
        lon_lo, lon_hi = -180.0, 180.0
        even = True

        for char in geohash.lower():
            try:
                value = BASE32_DECODE[char]
            except KeyError:
                raise InvalidArgument(
                    f"invalid geohash character {char!r} in {geohash!r}"
                ) from None
            for shift in range(BITS_PER_CHAR - 1, -1, -1):
                bit = (value >> shift) & 1
                if even:
                    mid = (lon_lo + lon_hi) / 2
                    if bit:
                        lon_lo = mid
                    else:
                        lon_hi = mid
                else:
                    mid = (lat_lo + lat_hi) / 2
                    if bit:
                        lat_lo = mid
                    else:
                        lat_hi = mid
                even = not even

        return BoundingBox(
            min_lat=lat_lo, min_lon=lon_lo, max_lat=lat_hi, max_lon=lon_hi
        )

    @staticmethod
    def decode(geohash: str) -> Coordinate:
        """Centre of the cell denoted by ``geohash``."""
        return GeohashCodec.decode_bbox(geohash).center

    @staticmethod
    def decode_bboxes(geohashes: Iterable[str]) -> list[BoundingBox]:
        """Batch form of :meth:`decode_bbox`, order preserving."""
        if isinstance(geohashes, str):
            raise InvalidArgument("decode_bboxes expects a sequence of geohashes")
        return [GeohashCodec.decode_bbox(h) for h in geohashes]

    @staticmethod
    def cell_size(precision: int) -> tuple[float, float]:
        """``(lat_height, lon_width)`` in degrees of a cell at ``precision``."""
        validate_precision(precision)
        total_bits = precision * BITS_PER_CHAR
        lon_bits = (total_bits + 1) // 2
        lat_bits = total_bits // 2
        return 180.0 / (1 << lat_bits), 360.0 / (1 << lon_bits)
