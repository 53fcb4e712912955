"""
Engagement resolution - decides what a unit next to its target actually hits.
"""

import logging
from typing import Optional

from .base import CombatResolver, CombatReport
from .melee import MeleeCombat
from .objective import ObjectiveCombat
from ..map import HexCoord
from ..units import UnitRecord

logger = logging.getLogger(__name__)


class EngagementResolver(CombatResolver):
    """Routes an engagement to melee or objective capture."""

    def __init__(self, coords, units, adjacency, occupancy):
        super().__init__(coords, units, adjacency, occupancy)
        self.melee = MeleeCombat(coords, units, adjacency, occupancy)
        self.objective = ObjectiveCombat(coords, units, adjacency, occupancy)

    def adjacent_enemy(self, mover: UnitRecord) -> Optional[HexCoord]:
        """First neighbor hex holding a living enemy, if any."""
        for neighbor in self.adjacency.neighbors(self.hex_of(mover)):
            if self.enemy_at(neighbor, mover.owner) is not None:
                return neighbor
        return None

    def resolve(self, mover: UnitRecord, target: HexCoord, turn: int) -> Optional[CombatReport]:
        """Resolve mover acting on target.

        An enemy standing on target is struck; an empty target is taken as
        the enemy objective. Returns None when target is not adjacent or a
        friendly unit stands on it.
        """
        if not self.adjacency.is_adjacent(self.hex_of(mover), target):
            return None

        defender = self.enemy_at(target, mover.owner)
        if defender is not None:
            return self.melee.strike(mover, defender, turn)

        if self.unit_at(target) is None:
            return self.objective.capture(mover, target, turn)

        logger.debug(f"{mover.label} holds: a friendly unit stands on {tuple(target)}")
        return None
