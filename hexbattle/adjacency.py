"""
Neighbor topology of the staggered-column hex grid.

Every coordinate links forward to columns x±2 and sideways to columns x±1 on
the same row. The remaining diagonal pair depends on column parity, with the
two lowest rows special-cased into a one-way funnel:

- row 0, even column: no diagonal link
- row 0, odd column: diagonals up to row 1
- row 1, even column: diagonals down to row 0 (odd columns)
- row 1, odd column: no diagonal link
- other rows: even columns link up (y+1), odd columns link down (y-1)

The relation is intentionally not symmetric.
"""

import logging
from typing import Optional

from .map import HexCoord, HexGrid

logger = logging.getLogger(__name__)


class AdjacencyResolver:
    """Computes the valid neighbor set of a coordinate."""

    DEFAULT_THRESHOLD = 3.0  # multiples of hex_size

    def __init__(self, grid: HexGrid, distance_threshold: float = DEFAULT_THRESHOLD):
        self.grid = grid
        self.coords = grid.coords
        self.max_distance = grid.hex_size * distance_threshold
        self._cache: dict[HexCoord, list[HexCoord]] = {}

    def raw_candidates(self, coord: HexCoord) -> list[HexCoord]:
        """Unfiltered candidates in order: forward, side, diagonal."""
        x, y = coord
        candidates = [
            HexCoord(x + 2, y), HexCoord(x - 2, y),
            HexCoord(x + 1, y), HexCoord(x - 1, y),
        ]

        diagonal_row: Optional[int]
        if x % 2 == 0:
            if y == 0:
                diagonal_row = None
            elif y == 1:
                diagonal_row = 0
            else:
                diagonal_row = y + 1
        else:
            if y == 0:
                diagonal_row = 1
            elif y == 1:
                diagonal_row = None
            else:
                diagonal_row = y - 1

        if diagonal_row is not None:
            candidates.append(HexCoord(x + 1, diagonal_row))
            candidates.append(HexCoord(x - 1, diagonal_row))
        return candidates

    def neighbors(self, coord: HexCoord) -> list[HexCoord]:
        """Valid neighbors: in bounds, backed by a tile, within the distance threshold."""
        cached = self._cache.get(coord)
        if cached is not None:
            return cached

        valid = []
        for candidate in self.raw_candidates(coord):
            if not self.coords.in_bounds(candidate):
                continue
            if not self.grid.has_tile(candidate):
                continue
            distance = self.coords.world_distance(coord, candidate)
            if distance > self.max_distance:
                logger.debug(f"Skipping invalid neighbor: {tuple(coord)} -> {tuple(candidate)}, distance: {distance:.3f}")
                continue
            valid.append(candidate)

        self._cache[coord] = valid
        return valid

    def is_adjacent(self, origin: HexCoord, other: HexCoord) -> bool:
        """True if other is in origin's neighbor set (direction matters)."""
        return other in self.neighbors(origin)
