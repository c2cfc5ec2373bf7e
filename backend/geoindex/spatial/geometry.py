"""
Geometry Value Types
====================
Immutable lat/lon primitives shared by every indexer:

1. **Coordinate**  — a single WGS84 point.
2. **BoundingBox** — an axis-aligned lat/lon rectangle (no antimeridian wrap).
3. **Polygon**     — a simple ring of coordinates, implicitly closed.

Longitude is treated as the x axis and latitude as the y axis (flat-earth
approximation on the geohash grid).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
from shapely.geometry import Polygon as ShapelyPolygon, box, mapping

from geoindex.spatial.errors import InvalidArgument

LAT_RANGE = (-90.0, 90.0)
LON_RANGE = (-180.0, 180.0)


def _check_range(value: float, bounds: tuple[float, float], name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or not bounds[0] <= value <= bounds[1]:
        raise InvalidArgument(
            f"{name} must be within [{bounds[0]:g}, {bounds[1]:g}], got {value!r}"
        )
    return value


# ── Coordinate ───────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point in degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lat", _check_range(self.lat, LAT_RANGE, "lat"))
        object.__setattr__(self, "lon", _check_range(self.lon, LON_RANGE, "lon"))

    @classmethod
    def from_lon_lat(cls, position: Sequence[float]) -> Coordinate:
        """Build from a GeoJSON position ``[lon, lat, ...]``."""
        if len(position) < 2:
            raise InvalidArgument(f"position needs at least 2 values: {position!r}")
        return cls(lat=position[1], lon=position[0])

    def to_lon_lat(self) -> list[float]:
        return [self.lon, self.lat]


# ── Bounding Box ─────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class BoundingBox:
    """A lat/lon rectangle with ``min <= max`` on both axes."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def __post_init__(self) -> None:
        for name, bounds in (
            ("min_lat", LAT_RANGE),
            ("max_lat", LAT_RANGE),
            ("min_lon", LON_RANGE),
            ("max_lon", LON_RANGE),
        ):
            object.__setattr__(
                self, name, _check_range(getattr(self, name), bounds, name)
            )
        if self.min_lat > self.max_lat:
            raise InvalidArgument(
                f"min_lat {self.min_lat} is greater than max_lat {self.max_lat}"
            )
        if self.min_lon > self.max_lon:
            raise InvalidArgument(
                f"min_lon {self.min_lon} is greater than max_lon {self.max_lon}"
            )

    @classmethod
    def from_corners(
        cls, min_lat_lon: Sequence[float], max_lat_lon: Sequence[float]
    ) -> BoundingBox:
        """Build from ``[minLat, minLon]`` / ``[maxLat, maxLon]`` pairs."""
        if len(min_lat_lon) != 2 or len(max_lat_lon) != 2:
            raise InvalidArgument("corners must be [lat, lon] pairs")
        return cls(
            min_lat=min_lat_lon[0],
            min_lon=min_lat_lon[1],
            max_lat=max_lat_lon[0],
            max_lon=max_lat_lon[1],
        )

    @property
    def width(self) -> float:
        return self.max_lon - self.min_lon

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def center(self) -> Coordinate:
        return Coordinate(
            lat=(self.min_lat + self.max_lat) / 2,
            lon=(self.min_lon + self.max_lon) / 2,
        )

    def corners(self) -> dict[str, Coordinate]:
        """The four corners keyed by compass direction."""
        return {
            "sw": Coordinate(self.min_lat, self.min_lon),
            "se": Coordinate(self.min_lat, self.max_lon),
            "nw": Coordinate(self.max_lat, self.min_lon),
            "ne": Coordinate(self.max_lat, self.max_lon),
        }

    def contains_point(self, coord: Coordinate) -> bool:
        return (
            self.min_lat <= coord.lat <= self.max_lat
            and self.min_lon <= coord.lon <= self.max_lon
        )

    def intersects(self, other: BoundingBox) -> bool:
        """Closed rectangle test: boxes sharing only an edge intersect."""
        return (
            self.min_lat <= other.max_lat
            and other.min_lat <= self.max_lat
            and self.min_lon <= other.max_lon
            and other.min_lon <= self.max_lon
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
        }

    def to_shapely(self) -> ShapelyPolygon:
        """Shapely box in (lon, lat) axis order."""
        return box(self.min_lon, self.min_lat, self.max_lon, self.max_lat)

    def to_wkt(self) -> str:
        return self.to_shapely().wkt

    def to_geojson(self) -> dict:
        """GeoJSON Polygon geometry of the rectangle."""
        geom = mapping(self.to_shapely())
        return {
            "type": geom["type"],
            "coordinates": [[list(pt) for pt in ring] for ring in geom["coordinates"]],
        }


# ── Polygon ──────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class Polygon:
    """
    A simple ring of coordinates.

    A trailing vertex equal to the first one is dropped, so explicitly and
    implicitly closed rings compare equal.
    """

    vertices: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        vertices = tuple(self.vertices)
        if len(vertices) > 1 and vertices[0] == vertices[-1]:
            vertices = vertices[:-1]
        object.__setattr__(self, "vertices", vertices)

    @classmethod
    def from_lon_lat(cls, ring: Sequence[Sequence[float]]) -> Polygon:
        """Build from a GeoJSON linear ring ``[[lon, lat], ...]``."""
        return cls(tuple(Coordinate.from_lon_lat(p) for p in ring))

    @classmethod
    def from_lat_lon(cls, ring: Sequence[Sequence[float]]) -> Polygon:
        return cls(tuple(Coordinate(lat=p[0], lon=p[1]) for p in ring))

    def __len__(self) -> int:
        return len(self.vertices)

    def edges(self) -> Iterator[tuple[Coordinate, Coordinate]]:
        """Consecutive vertex pairs including the closing edge."""
        n = len(self.vertices)
        for i in range(n):
            yield self.vertices[i], self.vertices[(i + 1) % n]

    def bounding_box(self) -> BoundingBox:
        if not self.vertices:
            raise InvalidArgument("polygon has no vertices")
        lats = [v.lat for v in self.vertices]
        lons = [v.lon for v in self.vertices]
        return BoundingBox(
            min_lat=min(lats), min_lon=min(lons),
            max_lat=max(lats), max_lon=max(lons),
        )

    def is_degenerate(self) -> bool:
        """
        True when the ring cannot enclose any area: fewer than three
        distinct vertices, or every vertex on one line.

        Uses the cross product of each vertex against the first edge
        rather than the signed (shoelace) area, so self-intersecting
        rings whose lobes cancel out are still accepted.
        """
        if len(set(self.vertices)) < 3:
            return True
        pts = np.array([(v.lon, v.lat) for v in self.vertices], dtype=float)
        origin = pts[0]
        offsets = pts[1:] - origin
        # First vertex distinct from the origin defines the reference axis
        nonzero = np.flatnonzero(np.any(offsets != 0.0, axis=1))
        axis = offsets[nonzero[0]]
        cross = axis[0] * offsets[:, 1] - axis[1] * offsets[:, 0]
        scale = max(float(np.abs(offsets).max()), 1e-300)
        return bool(np.all(np.abs(cross) <= 1e-12 * scale * scale))

    def contains_point(self, coord: Coordinate) -> bool:
        """Even-odd ray casting towards +lon."""
        inside = False
        x, y = coord.lon, coord.lat
        for a, b in self.edges():
            if (a.lat > y) != (b.lat > y):
                x_cross = a.lon + (y - a.lat) * (b.lon - a.lon) / (b.lat - a.lat)
                if x < x_cross:
                    inside = not inside
        return inside

    def to_shapely(self) -> ShapelyPolygon:
        return ShapelyPolygon([(v.lon, v.lat) for v in self.vertices])
