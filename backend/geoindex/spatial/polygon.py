"""
Polygon Indexer
===============
Enumerates every geohash cell of a fixed precision that touches or covers
a simple polygon.

Pipeline:
    1. Candidate cells = ``BoundingBoxIndexer.enumerate`` over the polygon's
       bounding box (a superset of the answer).
    2. A candidate is kept when its centre lies inside the polygon, or when
       any polygon edge touches the cell rectangle.

Candidates follow the encoder's half-open cells, so boundary contact is
one-sided: a cell that only touches the polygon's north or east side is
kept (points on that side encode into it), while the cells that only touch
its south or west side are never candidates.  A square lying exactly on
precision-3 cell lines (``c = 1.40625``), ``[[0, 0], [c, 0], [c, c], [0, c]]``,
therefore yields its own cell plus the north, east and north-east cells.

The scan is CPU bound and may be long at high precision, so the public
entry point is a coroutine that runs it on an executor.  Cancelling the
awaiting task signals the worker thread, which stops at the next cell and
discards its partial result.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor

from geoindex.spatial.bbox import BoundingBoxIndexer
from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geohash import GeohashCodec, validate_precision
from geoindex.spatial.geometry import BoundingBox, Coordinate, Polygon

logger = logging.getLogger(__name__)


# ── Segment helpers ──────────────────────────────────────────────
# Points are (lon, lat) tuples: lon is x, lat is y.

def _orientation(p, q, r) -> int:
    value = (q[1] - p[1]) * (r[0] - q[0]) - (q[0] - p[0]) * (r[1] - q[1])
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _on_segment(p, q, r) -> bool:
    """``q`` lies on segment ``pr`` given the three are collinear."""
    return (
        min(p[0], r[0]) <= q[0] <= max(p[0], r[0])
        and min(p[1], r[1]) <= q[1] <= max(p[1], r[1])
    )


def segments_intersect(p1, p2, q1, q2) -> bool:
    """Closed segment intersection (touching endpoints count)."""
    o1 = _orientation(p1, p2, q1)
    o2 = _orientation(p1, p2, q2)
    o3 = _orientation(q1, q2, p1)
    o4 = _orientation(q1, q2, p2)

    if o1 != o2 and o3 != o4:
        return True
    if o1 == 0 and _on_segment(p1, q1, p2):
        return True
    if o2 == 0 and _on_segment(p1, q2, p2):
        return True
    if o3 == 0 and _on_segment(q1, p1, q2):
        return True
    if o4 == 0 and _on_segment(q1, p2, q2):
        return True
    return False


def edge_touches_cell(a: Coordinate, b: Coordinate, cell: BoundingBox) -> bool:
    """True when segment ``ab`` has any point in the closed ``cell`` rectangle."""
    if cell.contains_point(a) or cell.contains_point(b):
        return True
    if (
        max(a.lon, b.lon) < cell.min_lon
        or min(a.lon, b.lon) > cell.max_lon
        or max(a.lat, b.lat) < cell.min_lat
        or min(a.lat, b.lat) > cell.max_lat
    ):
        return False

    p1, p2 = (a.lon, a.lat), (b.lon, b.lat)
    sw = (cell.min_lon, cell.min_lat)
    se = (cell.max_lon, cell.min_lat)
    ne = (cell.max_lon, cell.max_lat)
    nw = (cell.min_lon, cell.max_lat)
    return any(
        segments_intersect(p1, p2, q1, q2)
        for q1, q2 in ((sw, se), (se, ne), (ne, nw), (nw, sw))
    )


def polygon_touches_cell(polygon: Polygon, cell: BoundingBox) -> bool:
    if polygon.contains_point(cell.center):
        return True
    return any(edge_touches_cell(a, b, cell) for a, b in polygon.edges())


# ── Polygon Indexer ──────────────────────────────────────────────
class PolygonIndexer:
    """
    Polygon → geohash set enumeration.

    Parameters
    ----------
    executor : Executor | None
        Where :meth:`enumerate` runs the scan.  ``None`` uses the running
        loop's default executor (the application lifespan installs a
        bounded pool there).
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor

    @staticmethod
    def validate(polygon: Polygon, precision: int) -> None:
        validate_precision(precision)
        if polygon.is_degenerate():
            raise InvalidArgument(
                "polygon needs at least 3 distinct, non-collinear vertices"
            )

    async def enumerate(self, polygon: Polygon, precision: int) -> set[str]:
        """
        Cells of ``precision`` touching or covering ``polygon``.

        Argument errors are raised before anything is scheduled.  When the
        calling task is cancelled the worker is told to stop and
        ``CancelledError`` propagates.
        """
        self.validate(polygon, precision)
        cancel_event = threading.Event()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(
            self._executor, self._scan, polygon, precision, cancel_event,
        )
        try:
            return await future
        except asyncio.CancelledError:
            cancel_event.set()
            logger.info("Polygon scan cancelled (precision=%d)", precision)
            raise

    def enumerate_sync(
        self,
        polygon: Polygon,
        precision: int,
        cancel_event: threading.Event | None = None,
    ) -> set[str]:
        """
        Blocking scan.  Returns an empty set if ``cancel_event`` fires
        before the scan completes.
        """
        self.validate(polygon, precision)
        return self._scan(polygon, precision, cancel_event)

    def _scan(
        self,
        polygon: Polygon,
        precision: int,
        cancel_event: threading.Event | None,
    ) -> set[str]:
        # Arguments are already validated by the caller.
        candidates = BoundingBoxIndexer.enumerate(polygon.bounding_box(), precision)

        hashes: set[str] = set()
        for geohash in candidates:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug(
                    "Polygon scan stopped with %d cells kept of %d candidates",
                    len(hashes), len(candidates),
                )
                return set()
            cell = GeohashCodec.decode_bbox(geohash)
            if polygon_touches_cell(polygon, cell):
                hashes.add(geohash)

        logger.debug(
            "Polygon (%d vertices) at precision %d -> %d of %d candidates",
            len(polygon), precision, len(hashes), len(candidates),
        )
        return hashes
