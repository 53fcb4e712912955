"""
Win/draw evaluation.
"""

from enum import Enum
from typing import Optional

from .map import Side
from .units import UnitManager


class BattleResult(Enum):
    LEFT = "left"
    RIGHT = "right"
    DRAW = "draw"

    @classmethod
    def for_side(cls, side: Optional[Side]) -> "BattleResult":
        if side is None or (isinstance(side, str) and side.lower() == "draw"):
            return cls.DRAW
        return cls.LEFT if Side.parse(side) == Side.LEFT else cls.RIGHT

    @property
    def winner(self) -> Optional[Side]:
        if self is BattleResult.DRAW:
            return None
        return Side.LEFT if self is BattleResult.LEFT else Side.RIGHT


class WinEvaluator:
    """Decides elimination outcomes. Objective capture is resolved in combat."""

    def __init__(self, units: UnitManager):
        self.units = units

    def evaluate(self) -> Optional[BattleResult]:
        left = self.units.count_alive(Side.LEFT)
        right = self.units.count_alive(Side.RIGHT)

        if left == 0 and right == 0:
            return BattleResult.DRAW
        if left == 0:
            return BattleResult.RIGHT
        if right == 0:
            return BattleResult.LEFT
        return None
