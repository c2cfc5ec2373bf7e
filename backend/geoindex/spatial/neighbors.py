"""
Geohash Neighbours
==================
Adjacent cells at the same precision, found by stepping one cell
width/height from the centre of the decoded cell (half a cell beyond its
edge) and re-encoding.

Edge policy:
    - longitude wraps at ±180° (east of the last column is the first column);
    - latitude is clamped to ±90° without wrapping, so the northern
      neighbour of a top-row cell is the cell itself (likewise south).
"""

from __future__ import annotations

from enum import Enum

from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geohash import GeohashCodec
from geoindex.spatial.geometry import BoundingBox, Coordinate


class Direction(str, Enum):
    N = "n"
    NE = "ne"
    E = "e"
    SE = "se"
    S = "s"
    SW = "sw"
    W = "w"
    NW = "nw"

    @classmethod
    def parse(cls, value: Direction | str) -> Direction:
        try:
            return cls(value.lower() if isinstance(value, str) else value)
        except ValueError:
            raise InvalidArgument(
                f"unknown direction {value!r}; expected one of "
                f"{', '.join(d.value for d in cls)}"
            ) from None


# (lat steps, lon steps) per direction
_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.N: (1, 0),
    Direction.NE: (1, 1),
    Direction.E: (0, 1),
    Direction.SE: (-1, 1),
    Direction.S: (-1, 0),
    Direction.SW: (-1, -1),
    Direction.W: (0, -1),
    Direction.NW: (1, -1),
}


def _wrap_lon(lon: float) -> float:
    if lon > 180.0:
        return lon - 360.0
    if lon < -180.0:
        return lon + 360.0
    return lon


def _clamp_lat(lat: float) -> float:
    return min(90.0, max(-90.0, lat))


class NeighborResolver:
    """Stateless neighbour lookup on the geohash grid."""

    @staticmethod
    def step(cell: BoundingBox, precision: int, direction: Direction) -> str:
        """Neighbour of an already decoded ``cell`` towards ``direction``."""
        d_lat, d_lon = _OFFSETS[direction]
        center = cell.center
        stepped = Coordinate(
            lat=_clamp_lat(center.lat + d_lat * cell.height),
            lon=_wrap_lon(center.lon + d_lon * cell.width),
        )
        return GeohashCodec.encode(stepped, precision)

    @staticmethod
    def neighbors(geohash: str) -> dict[Direction, str]:
        """All eight neighbours of ``geohash`` keyed by direction."""
        cell = GeohashCodec.decode_bbox(geohash)
        return {
            direction: NeighborResolver.step(cell, len(geohash), direction)
            for direction in Direction
        }

    @staticmethod
    def neighbor(geohash: str, direction: Direction | str) -> str:
        """
        The single neighbour of ``geohash`` towards ``direction``; the
        same value ``neighbors(geohash)[direction]`` holds.
        """
        direction = Direction.parse(direction)
        cell = GeohashCodec.decode_bbox(geohash)
        return NeighborResolver.step(cell, len(geohash), direction)
