"""
Tile occupation and per-turn reservations.

Occupation is rebuilt from authoritative unit positions at the start of
every turn and updated as units move or die within the turn. Reservations
claim a destination for one unit and last until the next turn starts.
"""

import logging
from typing import Optional

from .map import HexCoord, HexGrid, Side
from .units import UnitManager, UnitRecord

logger = logging.getLogger(__name__)


class OccupancyGrid:
    """Tracks which unit stands on each tile and which tiles are reserved."""

    def __init__(self, grid: HexGrid, units: UnitManager):
        self.grid = grid
        self.units = units
        self.occupants: dict[HexCoord, int] = {}
        self.reservations: dict[HexCoord, int] = {}

    def sync(self):
        """Recompute occupation from the live units' positions."""
        self.occupants.clear()
        for tile in self.grid.tiles.values():
            tile.occupied = False

        for unit in self.units.live_units():
            coord = self.grid.coords.world_to_hex(unit.position)
            if coord in self.occupants:
                logger.warning(
                    f"{unit.label} shares {tuple(coord)} with unit-{self.occupants[coord]}; "
                    f"keeping the first"
                )
                continue
            self.occupy(coord, unit.id)

    # Occupation
    def occupy(self, coord: HexCoord, unit_id: int):
        self.occupants[coord] = unit_id
        tile = self.grid.get_tile(coord)
        if tile:
            tile.occupied = True

    def vacate(self, coord: HexCoord, unit_id: Optional[int] = None):
        """Clear a tile, optionally only if unit_id is the one standing there."""
        if unit_id is not None and self.occupants.get(coord) != unit_id:
            return
        self.occupants.pop(coord, None)
        tile = self.grid.get_tile(coord)
        if tile:
            tile.occupied = False

    def occupant(self, coord: HexCoord) -> Optional[UnitRecord]:
        unit_id = self.occupants.get(coord)
        if unit_id is None:
            return None
        unit = self.units.get_unit(unit_id)
        return unit if unit and unit.is_alive() else None

    def is_occupied(self, coord: HexCoord) -> bool:
        return self.occupant(coord) is not None

    def is_friendly_occupied(self, coord: HexCoord, owner: Side) -> bool:
        unit = self.occupant(coord)
        return unit is not None and unit.owner == owner

    def is_enemy_occupied(self, coord: HexCoord, owner: Side) -> bool:
        unit = self.occupant(coord)
        return unit is not None and unit.owner != owner

    # Reservations
    def reserve(self, coord: HexCoord, unit_id: int):
        logger.debug(f"unit-{unit_id} reserved {tuple(coord)}")
        self.reservations[coord] = unit_id

    def release(self, coord: HexCoord, unit_id: Optional[int] = None):
        """Drop the claim on coord; with unit_id, only if that unit holds it."""
        if unit_id is None or self.reservations.get(coord) == unit_id:
            self.reservations.pop(coord, None)

    def clear_reservations(self):
        self.reservations.clear()

    def is_reserved(self, coord: HexCoord, exclude_unit: Optional[int] = None) -> bool:
        """True if another unit has claimed coord this turn."""
        holder = self.reservations.get(coord)
        return holder is not None and holder != exclude_unit

    def is_passable(
        self,
        coord: HexCoord,
        for_owner: Side,
        allow_enemy_goal: bool = False,
        unit_id: Optional[int] = None,
    ) -> bool:
        """Whether a unit of for_owner may enter coord.

        allow_enemy_goal marks coord as the unit's final target: castle tiles
        and enemy-held tiles are then enterable, which is how an attack is
        planned. Friendly-held and reserved tiles never are.
        """
        tile = self.grid.get_tile(coord)
        if tile is None:
            return False
        if tile.is_castle and not allow_enemy_goal:
            return False
        if self.is_reserved(coord, exclude_unit=unit_id):
            return False

        unit = self.occupant(coord)
        if unit is None:
            return True
        if unit.owner == for_owner:
            return False
        return allow_enemy_goal
