"""
Base combat resolution system with common lookups.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..adjacency import AdjacencyResolver
from ..map import CoordinateSystem, HexCoord, Side
from ..occupancy import OccupancyGrid
from ..units import UnitManager, UnitRecord


class CombatResult(Enum):
    HIT = "hit"
    KILL = "kill"
    OBJECTIVE_CAPTURED = "objective_captured"


@dataclass
class CombatReport:
    """Report of a combat engagement."""
    attacker_id: int
    turn: int
    result: CombatResult
    defender_id: Optional[int] = None
    damage: int = 0
    defender_health: Optional[int] = None
    location: Optional[HexCoord] = None
    notes: list[str] = field(default_factory=list)

    @property
    def defender_killed(self) -> bool:
        return self.result == CombatResult.KILL


class CombatResolver:
    """Base class for combat resolution.

    Presence checks derive hexes from authoritative positions rather than
    from the occupancy map, so a unit is only engaged where it really is.
    """

    def __init__(
        self,
        coords: CoordinateSystem,
        units: UnitManager,
        adjacency: AdjacencyResolver,
        occupancy: OccupancyGrid,
    ):
        self.coords = coords
        self.units = units
        self.adjacency = adjacency
        self.occupancy = occupancy

    def hex_of(self, unit: UnitRecord) -> HexCoord:
        return self.coords.world_to_hex(unit.position)

    def unit_at(self, coord: HexCoord) -> Optional[UnitRecord]:
        for unit in self.units.live_units():
            if self.hex_of(unit) == coord:
                return unit
        return None

    def enemy_at(self, coord: HexCoord, owner: Side) -> Optional[UnitRecord]:
        for unit in self.units.live_units():
            if unit.owner != owner and self.hex_of(unit) == coord:
                return unit
        return None
