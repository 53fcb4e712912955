"""
Target selection: nearest living enemy, else the enemy objective corner.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .map import CoordinateSystem, HexCoord, Side, objective_corners
from .units import UnitManager, UnitRecord

logger = logging.getLogger(__name__)


def offset_to_cube(coord: HexCoord) -> tuple[int, int, int]:
    """Convert an offset coordinate to cube coordinates (cx, cy, cz)."""
    cx = coord.x
    cz = coord.y - (coord.x - 1) // 2 if coord.x % 2 == 1 else coord.y
    cy = -cx - cz
    return (cx, cy, cz)


def cube_distance(a: HexCoord, b: HexCoord) -> int:
    """Distance in hexes between two offset coordinates."""
    ax, ay, az = offset_to_cube(a)
    bx, by, bz = offset_to_cube(b)
    return (abs(ax - bx) + abs(ay - by) + abs(az - bz)) // 2


@dataclass
class Target:
    """A unit's objective for this turn."""
    coord: HexCoord
    unit_id: Optional[int] = None  # None when marching on the objective

    @property
    def is_objective(self) -> bool:
        return self.unit_id is None


class TargetSelector:
    """Chooses each unit's target from authoritative positions."""

    def __init__(self, coords: CoordinateSystem, units: UnitManager):
        self.coords = coords
        self.units = units
        self.objectives = objective_corners(coords.width, coords.height)

    def objective_for(self, owner: Side) -> HexCoord:
        return self.objectives[owner]

    def select_target(self, unit: UnitRecord) -> Target:
        current = self.coords.world_to_hex(unit.position)

        best: Optional[Target] = None
        best_distance = None
        for enemy in self.units.live_units():
            if enemy.owner == unit.owner:
                continue
            enemy_hex = self.coords.world_to_hex(enemy.position)
            distance = cube_distance(current, enemy_hex)
            if best_distance is None or distance < best_distance:
                best_distance = distance
                best = Target(coord=enemy_hex, unit_id=enemy.id)

        if best is None:
            best = Target(coord=self.objective_for(unit.owner))
            logger.debug(f"{unit.label} at {tuple(current)} has no enemies left, marching on {tuple(best.coord)}")
        else:
            logger.debug(f"{unit.label} at {tuple(current)} targets unit-{best.unit_id} at {tuple(best.coord)}")
        return best
