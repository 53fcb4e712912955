"""
Objective combat - reaching the enemy castle ends the battle.
"""

import logging

from .base import CombatResolver, CombatReport, CombatResult
from ..map import HexCoord
from ..units import UnitRecord

logger = logging.getLogger(__name__)


class ObjectiveCombat(CombatResolver):
    """Resolves an assault on an unguarded objective tile."""

    def capture(self, attacker: UnitRecord, objective: HexCoord, turn: int) -> CombatReport:
        logger.info(f"{attacker.label} at {tuple(self.hex_of(attacker))} attacks the objective at {tuple(objective)}")
        return CombatReport(
            attacker_id=attacker.id,
            turn=turn,
            result=CombatResult.OBJECTIVE_CAPTURED,
            location=objective,
            notes=[f"{attacker.owner.name.lower()} captured the objective at {tuple(objective)}"],
        )
