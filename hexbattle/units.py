"""
Unit state management for the battle simulator.

Units live in an arena addressed by stable integer ids. A unit's position is
authoritative; its hex coordinate is derived from it on demand and never
stored.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from .map import Side, Vec3

logger = logging.getLogger(__name__)


class UnitStatus(Enum):
    HEALTHY = "healthy"
    WOUNDED = "wounded"
    CRITICAL = "critical"
    DESTROYED = "destroyed"


@dataclass
class UnitSpec:
    """Unit registry entry supplied by the placement layer."""
    position: Vec3
    owner: Optional[Side] = None  # derived from the tile zone when omitted
    health: Optional[int] = None
    attack_damage: Optional[int] = None
    name: str = ""


@dataclass
class UnitRecord:
    """Runtime state of a combat unit."""
    id: int
    owner: Side
    position: Vec3
    health: int
    attack_damage: int
    max_health: int = 0
    name: str = ""
    alive: bool = True

    def __post_init__(self):
        if not self.max_health:
            self.max_health = self.health

    def is_alive(self) -> bool:
        return self.alive and self.health > 0

    def take_damage(self, amount: int) -> int:
        """Apply damage, clamped at zero health. Returns damage actually dealt."""
        dealt = min(self.health, max(0, amount))
        self.health -= dealt
        if self.health == 0:
            self.alive = False
        return dealt

    def get_status(self) -> UnitStatus:
        if not self.is_alive():
            return UnitStatus.DESTROYED
        fraction = self.health / max(1, self.max_health)
        if fraction > 0.6:
            return UnitStatus.HEALTHY
        if fraction > 0.3:
            return UnitStatus.WOUNDED
        return UnitStatus.CRITICAL

    @property
    def label(self) -> str:
        return self.name or f"unit-{self.id}"


class UnitManager:
    """Manages the live units of one battle."""

    def __init__(self):
        self.units: dict[int, UnitRecord] = {}
        self.fallen: list[int] = []
        self._next_id = 1

    def snapshot(
        self,
        specs: Iterable[UnitSpec],
        resolve_owner: Callable[[Vec3], Side],
        default_health: int = 100,
        default_attack_damage: int = 10,
    ) -> list[UnitRecord]:
        """Replace the arena with records built from the unit registry."""
        self.units.clear()
        self.fallen.clear()
        self._next_id = 1

        for spec in specs:
            position = Vec3(*spec.position)
            owner = Side.parse(spec.owner) if spec.owner is not None else resolve_owner(position)
            health = default_health if spec.health is None else int(spec.health)
            damage = default_attack_damage if spec.attack_damage is None else int(spec.attack_damage)
            if health <= 0:
                logger.warning(f"Skipping dead unit in registry: {spec.name or position}")
                continue

            unit = UnitRecord(
                id=self._next_id,
                owner=owner,
                position=position,
                health=health,
                attack_damage=damage,
                name=spec.name,
            )
            self.units[unit.id] = unit
            self._next_id += 1

        return list(self.units.values())

    def remove(self, unit_id: int) -> Optional[UnitRecord]:
        """Drop a unit from the live set."""
        unit = self.units.pop(unit_id, None)
        if unit is not None:
            unit.alive = False
            self.fallen.append(unit_id)
        return unit

    # Query methods
    def get_unit(self, unit_id: int) -> Optional[UnitRecord]:
        return self.units.get(unit_id)

    def unit_ids(self) -> list[int]:
        """Live unit ids in stable processing order."""
        return sorted(self.units)

    def live_units(self) -> list[UnitRecord]:
        return [self.units[uid] for uid in self.unit_ids() if self.units[uid].is_alive()]

    def get_units_by_owner(self, owner: Side) -> list[UnitRecord]:
        return [u for u in self.live_units() if u.owner == owner]

    def count_alive(self, owner: Side) -> int:
        return len(self.get_units_by_owner(owner))

    def get_stats(self) -> dict:
        """Get unit statistics."""
        return {
            "total_units": len(self.units),
            "fallen": len(self.fallen),
            "by_owner": {side.name.lower(): self.count_alive(side) for side in Side},
        }
