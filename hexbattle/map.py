"""
Hex grid map system for the battle simulator.

Uses offset coordinates (x, y) over staggered columns: columns sit half a hex
apart horizontally and odd columns are shifted up by half a row. Each
coordinate has one canonical world position; world positions are mapped back
to the best-matching coordinate by searching a small window of columns.
"""

import logging
import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)


class MapInitializationError(RuntimeError):
    """The tile registry could not be turned into a usable grid."""


class Side(IntEnum):
    """Battle side, also used as the tile zone (left/right half of the map)."""
    LEFT = 0
    RIGHT = 1

    @property
    def opponent(self) -> "Side":
        return Side(1 - self.value)

    @classmethod
    def parse(cls, value) -> "Side":
        """Accept 0/1, 'left'/'right' or a Side."""
        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown side: {value!r}")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unknown side: {value!r}")


class Vec3(NamedTuple):
    """Continuous world position."""
    x: float
    y: float
    z: float


class HexCoord(NamedTuple):
    """Offset hex coordinate (column x, row y)."""
    x: int
    y: int


@dataclass
class TileSpec:
    """Tile registry entry supplied by the map collaborator.

    Either coord or position must be given; a position is snapped to the
    nearest coordinate when the grid is built.
    """
    coord: Optional[HexCoord] = None
    position: Optional[Vec3] = None
    is_castle: bool = False
    zone: Optional[Side] = None


@dataclass
class Tile:
    """One grid cell."""
    coord: HexCoord
    position: Vec3
    zone: Side
    is_castle: bool = False
    occupied: bool = False


class CoordinateSystem:
    """
    Bidirectional mapping between world positions and hex coordinates.

    Column spacing is half a hex, row spacing 1.73 hexes, odd columns are
    offset by half a row. Both directions are pure functions of the grid
    dimensions and hex size.
    """

    COLUMN_SPACING = 0.5
    ROW_SPACING = 1.73
    TILE_ELEVATION = 0.15
    SEARCH_WINDOW = 2  # columns either side of the estimate

    def __init__(self, width: int, height: int, hex_size: float = 1.0):
        self.width = width
        self.height = height
        self.hex_size = hex_size
        self.x_offset = hex_size * self.COLUMN_SPACING
        self.z_offset = hex_size * self.ROW_SPACING

    def in_bounds(self, coord: HexCoord) -> bool:
        return 0 <= coord.x < self.width and 0 <= coord.y < self.height

    def column_z_offset(self, x: int) -> float:
        return self.z_offset / 2 if x % 2 == 1 else 0.0

    def hex_to_world(self, coord: HexCoord) -> Vec3:
        """Canonical world position of a hex coordinate."""
        return Vec3(
            coord.x * self.x_offset,
            self.TILE_ELEVATION,
            coord.y * self.z_offset + self.column_z_offset(coord.x),
        )

    def world_to_hex(self, pos: Vec3) -> HexCoord:
        """Closest hex coordinate to a world position.

        Naive rounding of x can land in the wrong staggered column near a
        column boundary, so every column in a window around the estimate is
        tried and the candidate with the nearest canonical position wins.
        """
        estimate = min(max(round(pos.x / self.x_offset), 0), self.width - 1)
        start = max(0, estimate - self.SEARCH_WINDOW)
        end = min(self.width - 1, estimate + self.SEARCH_WINDOW)

        best: Optional[HexCoord] = None
        best_distance = math.inf
        for x in range(start, end + 1):
            y = round((pos.z - self.column_z_offset(x)) / self.z_offset)
            y = min(max(y, 0), self.height - 1)
            candidate = HexCoord(x, y)
            distance = math.dist(pos, self.hex_to_world(candidate))
            if distance < best_distance:
                best_distance = distance
                best = candidate
        return best

    def world_distance(self, a: HexCoord, b: HexCoord) -> float:
        """Euclidean distance between the canonical positions of two coordinates."""
        return math.dist(self.hex_to_world(a), self.hex_to_world(b))


class HexGrid:
    """
    Grid of tiles keyed by hex coordinate.

    Built once from the tile registry. When two registry entries map to the
    same coordinate, the one closest to the canonical position is kept.
    """

    FAR_TILE_TOLERANCE = 0.5  # multiples of hex_size

    def __init__(self, width: int, height: int, tiles: Optional[Iterable[TileSpec]], hex_size: float = 1.0):
        if width <= 0 or height <= 0:
            raise MapInitializationError(f"Invalid map dimensions: {width}x{height}")
        if hex_size <= 0:
            raise MapInitializationError(f"Invalid hex size: {hex_size}")
        if tiles is None:
            raise MapInitializationError("No tile registry supplied")

        self.width = width
        self.height = height
        self.hex_size = hex_size
        self.coords = CoordinateSystem(width, height, hex_size)
        self.tiles: dict[HexCoord, Tile] = {}

        self._build(tiles)

        if not self.tiles:
            raise MapInitializationError("Tile registry is empty")

        logger.info(f"Hex grid initialized: {len(self.tiles)} tiles mapped (expected: {width * height})")

    def _build(self, specs: Iterable[TileSpec]):
        for spec in specs:
            tile = self._make_tile(spec)
            existing = self.tiles.get(tile.coord)
            if existing is None:
                self.tiles[tile.coord] = tile
                continue

            expected = self.coords.hex_to_world(tile.coord)
            if math.dist(tile.position, expected) < math.dist(existing.position, expected):
                logger.warning(f"Duplicate tile at {tuple(tile.coord)}: keeping the one at {tuple(tile.position)}")
                self.tiles[tile.coord] = tile
            else:
                logger.warning(f"Duplicate tile at {tuple(tile.coord)}: keeping the one at {tuple(existing.position)}")

    def _make_tile(self, spec: TileSpec) -> Tile:
        if spec.position is not None:
            position = Vec3(*spec.position)
            coord = self.coords.world_to_hex(position)
            expected = self.coords.hex_to_world(coord)
            distance = math.dist(position, expected)
            if distance > self.hex_size * self.FAR_TILE_TOLERANCE:
                logger.warning(
                    f"Tile at {tuple(position)} mapped to {tuple(coord)} "
                    f"but expected pos is {tuple(expected)}, distance: {distance:.3f}"
                )
        elif spec.coord is not None:
            coord = HexCoord(*spec.coord)
            if not self.coords.in_bounds(coord):
                raise MapInitializationError(f"Tile coordinate {tuple(coord)} outside {self.width}x{self.height} grid")
            position = self.coords.hex_to_world(coord)
        else:
            raise MapInitializationError("Tile entry has neither coord nor position")

        zone = spec.zone if spec.zone is not None else self.default_zone(coord)
        return Tile(coord=coord, position=position, zone=Side.parse(zone), is_castle=bool(spec.is_castle))

    def default_zone(self, coord: HexCoord) -> Side:
        return Side.LEFT if coord.x < self.width / 2 else Side.RIGHT

    # Lookups
    def get_tile(self, coord: HexCoord) -> Optional[Tile]:
        return self.tiles.get(coord)

    def has_tile(self, coord: HexCoord) -> bool:
        return coord in self.tiles

    def zone_at(self, coord: HexCoord) -> Side:
        """Zone of the tile at coord, falling back to the column half."""
        tile = self.tiles.get(coord)
        return tile.zone if tile else self.default_zone(coord)

    def castle_tiles(self) -> list[Tile]:
        return [t for t in self.tiles.values() if t.is_castle]

    def get_stats(self) -> dict:
        """Get grid statistics."""
        zone_counts = {side.name.lower(): 0 for side in Side}
        for tile in self.tiles.values():
            zone_counts[tile.zone.name.lower()] += 1
        return {
            "width": self.width,
            "height": self.height,
            "total_tiles": len(self.tiles),
            "castles": [tuple(t.coord) for t in self.castle_tiles()],
            "zone_distribution": zone_counts,
        }


def objective_corners(width: int, height: int) -> dict[Side, HexCoord]:
    """Objective coordinate each side marches on once no enemies remain."""
    return {
        Side.LEFT: HexCoord(width - 1, height - 1),
        Side.RIGHT: HexCoord(0, height - 1),
    }


def generate_tile_registry(
    width: int,
    height: int,
    castles: Optional[Iterable[tuple[int, int]]] = None,
) -> list[TileSpec]:
    """Standard battlefield: every cell present, castles on the objective corners."""
    if castles is None:
        castles = objective_corners(width, height).values()
    castle_set = {HexCoord(*c) for c in castles}

    registry = []
    for x in range(width):
        for y in range(height):
            coord = HexCoord(x, y)
            registry.append(TileSpec(
                coord=coord,
                is_castle=coord in castle_set,
                zone=Side.LEFT if x < width / 2 else Side.RIGHT,
            ))
    return registry
