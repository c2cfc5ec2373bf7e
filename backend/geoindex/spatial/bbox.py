"""
Bounding Box Indexer
====================
Enumerates every geohash cell of a fixed precision whose rectangle
intersects a lat/lon bounding box.

The grid is walked breadth-first from the cell holding one corner of the
box, stepping to the n/e/s/w neighbours and keeping every cell whose
decoded rectangle still overlaps the box.  A cell is kept exactly when
some point of the box encodes into it: cells are half-open (``lo <= v < hi``,
closed at the +90 / +180 edges) like the encoder, so the cell of each box
corner is in the result while cells merely sharing the south or west edge
of the box are not.
"""

from __future__ import annotations

import logging
import math
from collections import deque

from geoindex.spatial.errors import InvalidArgument
from geoindex.spatial.geohash import GeohashCodec, validate_precision
from geoindex.spatial.geometry import BoundingBox
from geoindex.spatial.neighbors import Direction, NeighborResolver

logger = logging.getLogger(__name__)

_FRONTIER_STEPS = (Direction.N, Direction.E, Direction.S, Direction.W)
_CORNERS = (Direction.SW, Direction.SE, Direction.NW, Direction.NE)


def cell_hits_box(cell: BoundingBox, box: BoundingBox) -> bool:
    """True when some point of ``box`` encodes into ``cell``."""
    return (
        cell.min_lat <= box.max_lat
        and (cell.max_lat > box.min_lat or cell.max_lat == 90.0)
        and cell.min_lon <= box.max_lon
        and (cell.max_lon > box.min_lon or cell.max_lon == 180.0)
    )


class BoundingBoxIndexer:
    """Stateless bounding-box → geohash set enumeration."""

    @staticmethod
    def enumerate(
        box: BoundingBox,
        precision: int,
        start_corner: Direction | str = Direction.SW,
    ) -> set[str]:
        """
        Every geohash of ``precision`` some point of ``box`` encodes into.

        Parameters
        ----------
        box : BoundingBox
        precision : int
            Geohash length, must be positive.
        start_corner : Direction
            Corner whose cell seeds the walk (``sw``, ``se``, ``nw`` or
            ``ne``).  The result does not depend on it.
        """
        validate_precision(precision)
        corner = Direction.parse(start_corner)
        if corner not in _CORNERS:
            raise InvalidArgument(
                f"start_corner must be a diagonal, got {corner.value!r}"
            )

        seed = GeohashCodec.encode(box.corners()[corner.value], precision)
        visited = {seed}
        hashes: set[str] = set()
        frontier = deque([seed])

        while frontier:
            geohash = frontier.popleft()
            cell = GeohashCodec.decode_bbox(geohash)
            if not cell_hits_box(cell, box):
                continue
            hashes.add(geohash)
            for direction in _FRONTIER_STEPS:
                nxt = NeighborResolver.step(cell, precision, direction)
                if nxt not in visited:
                    visited.add(nxt)
                    frontier.append(nxt)

        logger.debug(
            "bbox %s at precision %d -> %d cells (%d visited)",
            box.as_dict(), precision, len(hashes), len(visited),
        )
        return hashes

    @staticmethod
    def estimate_cell_count(box: BoundingBox, precision: int) -> int:
        """Upper bound on ``len(enumerate(box, precision))``."""
        cell_height, cell_width = GeohashCodec.cell_size(precision)
        rows = min(math.floor(box.height / cell_height) + 2, round(180.0 / cell_height))
        cols = min(math.floor(box.width / cell_width) + 2, round(360.0 / cell_width))
        return rows * cols
