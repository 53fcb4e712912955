"""
Combat resolution modules.

Resolution order within a unit's action: melee against an adjacent enemy,
otherwise capture of an adjacent unguarded objective.
"""

from .base import CombatResolver, CombatReport, CombatResult
from .melee import MeleeCombat
from .objective import ObjectiveCombat
from .engagement import EngagementResolver

__all__ = [
    "CombatResolver",
    "CombatReport",
    "CombatResult",
    "MeleeCombat",
    "ObjectiveCombat",
    "EngagementResolver",
]
