"""
GeoJSON Reprojection
====================
Normalises GeoJSON trees declared in an arbitrary CRS into WGS84
longitude/latitude.

The CRS is read from the (GeoJSON 2008) top-level ``crs`` member:

    {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::3857"}}
    {"type": "EPSG", "properties": {"code": 3857}}

and resolved through an injected lookup table mapping CRS codes
(``"EPSG:3857"``) to PROJ definitions.  Any ``Mapping[str, str]`` works;
:data:`EPSG_DEFINITIONS` and :class:`PyprojCRSTable` are provided.

``CRSReprojector.reproject`` is best effort: when the CRS is unknown or a
coordinate fails to transform it logs a warning and hands back the input
object unchanged.  ``CRSReprojector.transform`` is the strict variant.
"""

from __future__ import annotations

import copy
import logging
import math
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Callable, Iterator

from pyproj import CRS, Transformer
from pyproj.database import get_codes
from pyproj.enums import PJType
from pyproj.exceptions import CRSError, ProjError

from geoindex.spatial.errors import GeoIndexError, TransformFailure, UnsupportedCRS

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"

_WEB_MERCATOR = (
    "+proj=merc +a=6378137 +b=6378137 +lat_ts=0 +lon_0=0 +x_0=0 +y_0=0 "
    "+k=1 +units=m +nadgrids=@null +wktext +no_defs"
)
_ETRS89_UTM = "+proj=utm +zone={zone} +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"


def _utm_definitions() -> dict[str, str]:
    defs = {}
    for zone in range(1, 61):
        defs[f"EPSG:{32600 + zone}"] = f"+proj=utm +zone={zone} +datum=WGS84 +units=m +no_defs"
        defs[f"EPSG:{32700 + zone}"] = (
            f"+proj=utm +zone={zone} +south +datum=WGS84 +units=m +no_defs"
        )
    for zone in range(28, 39):
        defs[f"EPSG:{25800 + zone}"] = _ETRS89_UTM.format(zone=zone)
    return defs


# ── Built-in CRS table ───────────────────────────────────────────
EPSG_DEFINITIONS: dict[str, str] = {
    "EPSG:4326": "+proj=longlat +datum=WGS84 +no_defs",
    "OGC:CRS84": "+proj=longlat +datum=WGS84 +no_defs",
    "EPSG:4258": "+proj=longlat +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +no_defs",
    "EPSG:4269": "+proj=longlat +datum=NAD83 +no_defs",
    "EPSG:3857": _WEB_MERCATOR,
    "EPSG:900913": _WEB_MERCATOR,
    # ETRS89 / TM35FIN (Finland)
    "EPSG:3067": _ETRS89_UTM.format(zone=35),
    # OSGB 1936 / British National Grid
    "EPSG:27700": (
        "+proj=tmerc +lat_0=49 +lon_0=-2 +k=0.9996012717 +x_0=400000 "
        "+y_0=-100000 +ellps=airy "
        "+towgs84=446.448,-125.157,542.06,0.15,0.247,0.842,-20.489 "
        "+units=m +no_defs"
    ),
    # RGF93 / Lambert-93 (France)
    "EPSG:2154": (
        "+proj=lcc +lat_0=46.5 +lon_0=3 +lat_1=49 +lat_2=44 +x_0=700000 "
        "+y_0=6600000 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
    ),
    **_utm_definitions(),
}


class PyprojCRSTable(Mapping):
    """
    Lookup table backed by the pyproj (PROJ) database.

    Resolves any ``AUTHORITY:CODE`` PROJ knows about to its WKT definition.
    Iteration lists the EPSG CRS codes only.
    """

    def __getitem__(self, code: str) -> str:
        try:
            return CRS.from_user_input(code).to_wkt()
        except CRSError:
            raise KeyError(code) from None

    def __iter__(self) -> Iterator[str]:
        return (f"EPSG:{c}" for c in self._epsg_codes())

    def __len__(self) -> int:
        return len(self._epsg_codes())

    @staticmethod
    @lru_cache(maxsize=1)
    def _epsg_codes() -> tuple[str, ...]:
        return tuple(sorted(get_codes("EPSG", PJType.CRS), key=int))


def crs_table_for(name: str) -> Mapping[str, str]:
    """Resolve a configured table name (``builtin`` / ``pyproj``)."""
    if name == "builtin":
        return EPSG_DEFINITIONS
    if name == "pyproj":
        return PyprojCRSTable()
    raise ValueError(f"unknown CRS table {name!r}")


# ── CRS detection ────────────────────────────────────────────────
_URN = re.compile(
    r"^urn:ogc:def:crs:(?P<authority>[A-Za-z]+):[\d.]*:(?P<code>[\w.]+)$"
)


def normalize_crs_code(value: Any) -> str:
    """
    Canonical ``AUTHORITY:CODE`` form.

    >>> normalize_crs_code("urn:ogc:def:crs:EPSG::3857")
    'EPSG:3857'
    >>> normalize_crs_code(3857)
    'EPSG:3857'
    """
    text = str(value).strip()
    match = _URN.match(text)
    if match:
        return f"{match['authority'].upper()}:{match['code']}"
    if text.isdigit():
        return f"EPSG:{text}"
    if ":" in text:
        authority, code = text.split(":", 1)
        return f"{authority.upper()}:{code}"
    return text


def detect_crs_code(geojson: Mapping[str, Any]) -> str:
    """The normalised code of the top-level ``crs`` member."""
    crs = geojson.get("crs")
    if not isinstance(crs, Mapping):
        raise UnsupportedCRS('GeoJSON has no "crs" member')
    props = crs.get("properties") or {}
    if not isinstance(props, Mapping):
        raise UnsupportedCRS(f"crs properties must be an object, got {props!r}")
    if crs.get("type") == "name" and props.get("name"):
        return normalize_crs_code(props["name"])
    if crs.get("type") == "EPSG" and props.get("code") is not None:
        return normalize_crs_code(props["code"])
    raise UnsupportedCRS(f"unrecognised crs member: {crs!r}")


@lru_cache(maxsize=64)
def _transformer_for(definition: str) -> Transformer:
    return Transformer.from_crs(definition, WGS84, always_xy=True)


# ── Reprojector ──────────────────────────────────────────────────
_GEOMETRY_TYPES = frozenset({
    "Point", "MultiPoint", "LineString", "MultiLineString",
    "Polygon", "MultiPolygon",
})

PositionFn = Callable[[list], list]


class CRSReprojector:
    """
    Transforms GeoJSON trees into WGS84.

    Parameters
    ----------
    crs_lookup : Mapping[str, str]
        CRS code → PROJ definition.  Codes are looked up in normalised
        ``AUTHORITY:CODE`` form.
    """

    def __init__(self, crs_lookup: Mapping[str, str]) -> None:
        self.crs_lookup = crs_lookup

    # ── Public API ────────────────────────────────────────────

    def reproject(self, geojson: Any) -> Any:
        """
        Best-effort :meth:`transform`.  On any failure the original object
        is returned as-is, so callers always receive a usable geometry.
        """
        try:
            return self.transform(geojson)
        except GeoIndexError as exc:
            logger.warning("Reprojection skipped, returning input unchanged: %s", exc)
            return geojson

    def transform(self, geojson: Any) -> dict:
        """
        Return a new GeoJSON tree with every position converted to WGS84.

        Raises
        ------
        UnsupportedCRS
            No ``crs`` member, or its code is not in the lookup table.
        TransformFailure
            A position could not be transformed, or the tree is malformed.
        """
        if not isinstance(geojson, Mapping):
            raise TransformFailure(f"expected a GeoJSON object, got {type(geojson).__name__}")

        code = detect_crs_code(geojson)
        definition = self.crs_lookup.get(code)
        if definition is None:
            raise UnsupportedCRS(f"CRS {code!r} is not in the lookup table")

        try:
            transformer = _transformer_for(definition)
        except (CRSError, ProjError, TypeError) as exc:
            raise TransformFailure(f"cannot build transformer for {code}: {exc}") from exc

        def to_wgs84(position: list) -> list:
            try:
                lon, lat = transformer.transform(
                    float(position[0]), float(position[1]), errcheck=True
                )
            except (ProjError, OverflowError, TypeError, ValueError) as exc:
                raise TransformFailure(f"{code} -> WGS84 failed for {position!r}: {exc}") from exc
            if not (math.isfinite(lon) and math.isfinite(lat)):
                raise TransformFailure(f"{code} -> WGS84 gave non-finite result for {position!r}")
            return [lon, lat, *position[2:]]

        try:
            return self._convert_object(geojson, to_wgs84)
        except (KeyError, TypeError, ValueError, IndexError, RecursionError) as exc:
            raise TransformFailure(f"malformed GeoJSON: {exc!r}") from exc

    # ── Tree walk ─────────────────────────────────────────────

    def _convert_object(self, obj: Mapping[str, Any], fn: PositionFn) -> dict:
        kind = obj["type"]
        out = {
            key: copy.deepcopy(value)
            for key, value in obj.items()
            if key not in ("crs", "features", "geometry", "geometries", "coordinates")
        }

        if kind == "FeatureCollection":
            out["features"] = [self._convert_object(f, fn) for f in obj["features"]]
        elif kind == "Feature":
            geometry = obj.get("geometry")
            out["geometry"] = None if geometry is None else self._convert_object(geometry, fn)
        elif kind == "GeometryCollection":
            out["geometries"] = [self._convert_object(g, fn) for g in obj["geometries"]]
        elif kind in _GEOMETRY_TYPES:
            out["coordinates"] = _map_positions(obj["coordinates"], fn)
        else:
            raise TransformFailure(f"unsupported GeoJSON type {kind!r}")

        if "bbox" in obj:
            out["bbox"] = _bbox_of(out)
        return out


def _is_position(node: Any) -> bool:
    return bool(node) and all(
        isinstance(v, (int, float)) and not isinstance(v, bool) for v in node
    )


def _map_positions(node: Any, fn: PositionFn) -> list:
    if not isinstance(node, (list, tuple)):
        raise TypeError(f"coordinates must be arrays, got {node!r}")
    if _is_position(node):
        if len(node) < 2:
            raise ValueError(f"position needs 2 values: {node!r}")
        return fn(list(node))
    return [_map_positions(child, fn) for child in node]


def _iter_positions(obj: Mapping[str, Any]) -> Iterator[list]:
    def walk(node):
        if _is_position(node):
            yield node
        else:
            for child in node:
                yield from walk(child)

    if "coordinates" in obj:
        yield from walk(obj["coordinates"])
    for geometry in obj.get("geometries", ()):
        yield from _iter_positions(geometry)
    if obj.get("geometry"):
        yield from _iter_positions(obj["geometry"])
    for feature in obj.get("features", ()):
        yield from _iter_positions(feature)


def _bbox_of(obj: Mapping[str, Any]) -> list[float] | None:
    positions = list(_iter_positions(obj))
    if not positions:
        return None
    lons = [p[0] for p in positions]
    lats = [p[1] for p in positions]
    return [min(lons), min(lats), max(lons), max(lats)]
