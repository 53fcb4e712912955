"""
Melee combat - one unit striking an adjacent enemy.
"""

import logging

from .base import CombatResolver, CombatReport, CombatResult
from ..units import UnitRecord

logger = logging.getLogger(__name__)


class MeleeCombat(CombatResolver):
    """Applies flat attack damage; a unit reaching zero health leaves the battle at once."""

    def strike(self, attacker: UnitRecord, defender: UnitRecord, turn: int) -> CombatReport:
        location = self.hex_of(defender)
        dealt = defender.take_damage(attacker.attack_damage)
        logger.debug(
            f"{attacker.label} at {tuple(self.hex_of(attacker))} attacks {defender.label} "
            f"at {tuple(location)} for {dealt} damage"
        )

        report = CombatReport(
            attacker_id=attacker.id,
            defender_id=defender.id,
            turn=turn,
            result=CombatResult.HIT,
            damage=dealt,
            defender_health=defender.health,
            location=location,
        )

        if not defender.is_alive():
            self.units.remove(defender.id)
            self.occupancy.vacate(location, defender.id)
            self.occupancy.release(location, defender.id)
            report.result = CombatResult.KILL
            report.notes.append(f"{defender.label} destroyed at {tuple(location)}")
            logger.info(f"{defender.label} destroyed at {tuple(location)}")

        return report
