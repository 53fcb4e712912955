"""
Turn sequencing for the battle simulator.

The scheduler is a synchronous step function: start() snapshots the unit
registry, each tick() runs one turn in which every live unit acts at most
once, in stable id order. Later units observe the moves, reservations and
deaths caused by earlier units in the same turn.

Per unit: select target -> fight if adjacent, else plan one step and move.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from .adjacency import AdjacencyResolver
from .combat import CombatReport, CombatResult, EngagementResolver
from .config import BattleConfig
from .map import HexCoord, HexGrid, Side, TileSpec, Vec3
from .occupancy import OccupancyGrid
from .pathfinding import PathPlanner
from .targeting import TargetSelector
from .units import UnitManager, UnitRecord, UnitSpec
from .victory import BattleResult, WinEvaluator

logger = logging.getLogger(__name__)


class BattleStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


@dataclass
class MoveRecord:
    unit_id: int
    from_hex: HexCoord
    to_hex: HexCoord


@dataclass
class TurnState:
    """What happened during one turn."""
    turn_number: int
    moves: list[MoveRecord] = field(default_factory=list)
    combat_reports: list[CombatReport] = field(default_factory=list)
    idle_units: list[int] = field(default_factory=list)


@dataclass
class BattleState:
    """Complete battle state."""
    turn: int = 0
    max_turns: int = 100
    status: BattleStatus = BattleStatus.NOT_STARTED
    result: Optional[BattleResult] = None
    end_reason: Optional[str] = None  # "elimination", "objective", "turn_limit", "forced"
    turn_history: list[TurnState] = field(default_factory=list)

    @property
    def game_over(self) -> bool:
        return self.status == BattleStatus.ENDED

    @property
    def winner(self) -> Optional[Side]:
        return self.result.winner if self.result else None


class TurnScheduler:
    """Drives a battle one tick at a time."""

    def __init__(
        self,
        config: Optional[BattleConfig] = None,
        tiles: Optional[Iterable[TileSpec]] = None,
    ):
        self.config = config or BattleConfig()
        self._tile_registry = list(tiles) if tiles is not None else None

        self.units = UnitManager()
        self.evaluator = WinEvaluator(self.units)

        # Built with the map
        self.grid: Optional[HexGrid] = None
        self.adjacency: Optional[AdjacencyResolver] = None
        self.occupancy: Optional[OccupancyGrid] = None
        self.targeting: Optional[TargetSelector] = None
        self.planner: Optional[PathPlanner] = None
        self.combat: Optional[EngagementResolver] = None

        self.state = BattleState(max_turns=self.config.max_turns)

        # Output commands and notifications
        self.on_move: Optional[Callable[[int, Vec3], None]] = None
        self.on_damage: Optional[Callable[[int, int], None]] = None
        self.on_death: Optional[Callable[[int], None]] = None
        self.on_battle_ended: Optional[Callable[[BattleResult], None]] = None
        self.on_turn_start: Optional[Callable[[TurnState], None]] = None
        self.on_turn_end: Optional[Callable[[TurnState], None]] = None

    @property
    def coords(self):
        return self.grid.coords if self.grid else None

    def build_map(self, tiles: Optional[Iterable[TileSpec]] = None):
        """Build the grid and everything that depends on it.

        Raises MapInitializationError without touching existing state.
        """
        registry = list(tiles) if tiles is not None else self._tile_registry
        grid = HexGrid(self.config.width, self.config.height, registry, self.config.hex_size)
        adjacency = AdjacencyResolver(grid, self.config.adjacency_threshold)
        occupancy = OccupancyGrid(grid, self.units)
        planner = PathPlanner(adjacency, occupancy, self.config.path_heuristic)

        self.grid = grid
        self.adjacency = adjacency
        self.occupancy = occupancy
        self.planner = planner
        self.targeting = TargetSelector(grid.coords, self.units)
        self.combat = EngagementResolver(grid.coords, self.units, adjacency, occupancy)
        if tiles is not None:
            self._tile_registry = registry

    def start(
        self,
        units: Optional[Iterable[UnitSpec]],
        tiles: Optional[Iterable[TileSpec]] = None,
    ) -> bool:
        """Begin a battle. Returns True if the battle is now in progress."""
        if self.state.status == BattleStatus.IN_PROGRESS:
            logger.warning("Battle already in progress!")
            return False

        specs = list(units or [])
        if not specs:
            logger.warning("No units found! Place some units before starting the battle.")
            return False

        if self.grid is None or tiles is not None:
            self.build_map(tiles)

        self.units.snapshot(
            specs,
            self._owner_for_position,
            default_health=self.config.default_health,
            default_attack_damage=self.config.default_attack_damage,
        )
        if not self.units.units:
            logger.warning("No living units in the registry, battle not started.")
            return False

        self.occupancy.clear_reservations()
        self.occupancy.sync()
        self.state = BattleState(turn=0, max_turns=self.config.max_turns, status=BattleStatus.IN_PROGRESS)

        logger.info(
            f"Battle started: Left={self.units.count_alive(Side.LEFT)}, "
            f"Right={self.units.count_alive(Side.RIGHT)}, tiles={len(self.grid.tiles)}"
        )
        return True

    def tick(self) -> Optional[TurnState]:
        """Run one turn. Returns its TurnState, or None if the battle was already decided."""
        if self.state.status != BattleStatus.IN_PROGRESS:
            raise RuntimeError("Battle not in progress")

        self.occupancy.clear_reservations()
        self.occupancy.sync()

        result = self.evaluator.evaluate()
        if result is not None:
            self._end_battle(result, "elimination")
            return None

        self.state.turn += 1
        turn_state = TurnState(turn_number=self.state.turn)

        if self.on_turn_start:
            self.on_turn_start(turn_state)

        for unit_id in self.units.unit_ids():
            unit = self.units.get_unit(unit_id)
            if unit is None:
                continue
            if not unit.is_alive():
                self._destroy_unit(unit)
                continue

            self._process_unit(unit, turn_state)

            if self.state.status == BattleStatus.ENDED:
                break

        self.state.turn_history.append(turn_state)

        if self.on_turn_end:
            self.on_turn_end(turn_state)

        if self.state.status == BattleStatus.IN_PROGRESS:
            result = self.evaluator.evaluate()
            if result is not None:
                self._end_battle(result, "elimination")
            elif self.state.turn >= self.state.max_turns:
                logger.info("Battle timeout - Draw!")
                self._end_battle(BattleResult.DRAW, "turn_limit")

        return turn_state

    def force_end(self, winner=None):
        """End a running battle with the given winner (Side, 0/1, 'left'/'right'); None or 'draw' is a draw."""
        if self.state.status != BattleStatus.IN_PROGRESS:
            logger.warning(f"force_end ignored: battle is {self.state.status.value}")
            return
        result = winner if isinstance(winner, BattleResult) else BattleResult.for_side(winner)
        self._end_battle(result, "forced")

    def update_unit(self, unit_id: int, position=None, health: Optional[int] = None):
        """Refresh a unit's authoritative state from external telemetry."""
        unit = self.units.get_unit(unit_id)
        if unit is None:
            raise KeyError(f"Unknown unit: {unit_id}")

        if position is not None:
            unit.position = Vec3(*position)
        if health is not None:
            unit.health = max(0, int(health))
            if unit.health == 0:
                self._destroy_unit(unit)

    # Unit actions
    def _process_unit(self, unit: UnitRecord, turn_state: TurnState):
        current = self.coords.world_to_hex(unit.position)
        target = self.targeting.select_target(unit)

        if self.adjacency.is_adjacent(current, target.coord):
            engage = target.coord
        else:
            engage = self.combat.adjacent_enemy(unit)

        if engage is not None:
            report = self.combat.resolve(unit, engage, self.state.turn)
            if report is not None:
                self._apply_report(report, turn_state)
            else:
                turn_state.idle_units.append(unit.id)
            return

        step = self.planner.next_step(current, target.coord, unit.owner, unit.id)
        if step is None:
            logger.debug(f"{unit.label} at {tuple(current)} has no path to {tuple(target.coord)}")
            turn_state.idle_units.append(unit.id)
            return

        self._move_unit(unit, current, step, turn_state)

    def _move_unit(self, unit: UnitRecord, from_hex: HexCoord, to_hex: HexCoord, turn_state: TurnState) -> bool:
        if self.occupancy.is_occupied(to_hex) or self.occupancy.is_reserved(to_hex, exclude_unit=unit.id):
            logger.warning(f"Cannot move {unit.label} to {tuple(to_hex)} - tile is occupied or reserved")
            turn_state.idle_units.append(unit.id)
            return False

        self.occupancy.reserve(to_hex, unit.id)
        self.occupancy.vacate(from_hex, unit.id)
        self.occupancy.occupy(to_hex, unit.id)

        unit.position = self.coords.hex_to_world(to_hex)
        turn_state.moves.append(MoveRecord(unit_id=unit.id, from_hex=from_hex, to_hex=to_hex))
        logger.debug(f"{unit.label} moved from {tuple(from_hex)} to {tuple(to_hex)}")

        if self.on_move:
            self.on_move(unit.id, unit.position)
        return True

    def _apply_report(self, report: CombatReport, turn_state: TurnState):
        turn_state.combat_reports.append(report)

        if report.result == CombatResult.OBJECTIVE_CAPTURED:
            attacker = self.units.get_unit(report.attacker_id)
            self._end_battle(BattleResult.for_side(attacker.owner), "objective")
            return

        if self.on_damage:
            self.on_damage(report.defender_id, report.damage)
        if report.defender_killed and self.on_death:
            self.on_death(report.defender_id)

    def _destroy_unit(self, unit: UnitRecord):
        if self.occupancy is not None:
            self.occupancy.vacate(self.coords.world_to_hex(unit.position), unit.id)
        self.units.remove(unit.id)
        logger.info(f"{unit.label} removed from battle")

        if self.on_death:
            self.on_death(unit.id)

    def _end_battle(self, result: BattleResult, reason: str):
        self.state.status = BattleStatus.ENDED
        self.state.result = result
        self.state.end_reason = reason
        logger.info(f"Battle over at turn {self.state.turn}: {result.value} ({reason})")

        if self.on_battle_ended:
            self.on_battle_ended(result)

    def _owner_for_position(self, position: Vec3) -> Side:
        return self.grid.zone_at(self.coords.world_to_hex(position))

    # Reporting
    def get_battle_snapshot(self) -> dict:
        """Plain-data view of the battle for logs and front ends."""
        units = []
        for unit in self.units.live_units():
            coord = self.coords.world_to_hex(unit.position) if self.grid else None
            units.append({
                "id": unit.id,
                "name": unit.label,
                "owner": unit.owner.name.lower(),
                "coord": list(coord) if coord else None,
                "health": unit.health,
                "max_health": unit.max_health,
                "status": unit.get_status().value,
            })

        return {
            "turn": self.state.turn,
            "max_turns": self.state.max_turns,
            "status": self.state.status.value,
            "result": self.state.result.value if self.state.result else None,
            "end_reason": self.state.end_reason,
            "alive": {side.name.lower(): self.units.count_alive(side) for side in Side},
            "units": units,
        }
