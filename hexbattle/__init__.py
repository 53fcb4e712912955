"""
Turn-based battle simulation engine on a staggered hex grid.

Core modules:
- map: Coordinates, tiles and grid construction
- adjacency: Asymmetric neighbor topology
- units: Unit records and the live-unit arena
- occupancy: Tile occupation and per-turn reservations
- targeting: Target selection and cube distance
- pathfinding: A* over the adjacency graph
- combat/: Melee and objective resolution
- victory: Win/draw evaluation
- turn: Turn scheduler and battle state
- scenario: YAML scenario loading
"""

from .config import BattleConfig
from .map import (
    HexGrid, HexCoord, Vec3, Side, Tile, TileSpec, CoordinateSystem,
    MapInitializationError, generate_tile_registry, objective_corners,
)
from .adjacency import AdjacencyResolver
from .units import UnitManager, UnitRecord, UnitSpec, UnitStatus
from .occupancy import OccupancyGrid
from .targeting import TargetSelector, Target, cube_distance, offset_to_cube
from .pathfinding import PathPlanner, step_distance
from .combat import CombatReport, CombatResult, EngagementResolver
from .victory import BattleResult, WinEvaluator
from .turn import TurnScheduler, BattleState, BattleStatus, TurnState, MoveRecord
from .scenario import Scenario, load_scenario

__all__ = [
    # Config
    "BattleConfig",
    # Map
    "HexGrid", "HexCoord", "Vec3", "Side", "Tile", "TileSpec", "CoordinateSystem",
    "MapInitializationError", "generate_tile_registry", "objective_corners",
    "AdjacencyResolver",
    # Units
    "UnitManager", "UnitRecord", "UnitSpec", "UnitStatus",
    "OccupancyGrid",
    # Decisions
    "TargetSelector", "Target", "cube_distance", "offset_to_cube",
    "PathPlanner", "step_distance",
    # Combat
    "CombatReport", "CombatResult", "EngagementResolver",
    "BattleResult", "WinEvaluator",
    # Turn Management
    "TurnScheduler", "BattleState", "BattleStatus", "TurnState", "MoveRecord",
    # Scenarios
    "Scenario", "load_scenario",
]
