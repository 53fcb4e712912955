"""
A* pathfinding over the adjacency graph with per-turn occupancy rules.
"""

import heapq
import itertools
import logging
import math
from typing import Callable, Optional

from .adjacency import AdjacencyResolver
from .map import HexCoord, Side
from .occupancy import OccupancyGrid
from .targeting import cube_distance

logger = logging.getLogger(__name__)


def step_distance(a: HexCoord, b: HexCoord) -> int:
    """Lower bound on steps between two coordinates.

    No link moves more than two columns or one row, so this never
    overestimates and A* stays optimal.
    """
    return max(math.ceil(abs(a.x - b.x) / 2), abs(a.y - b.y))


HEURISTICS: dict[str, Callable[[HexCoord, HexCoord], float]] = {
    "steps": step_distance,
    "cube": cube_distance,
}


class PathPlanner:
    """Shortest paths honoring occupancy, reservations and castle tiles.

    Defaults to the step-count heuristic; cube distance overestimates on this
    grid's adjacency, so "cube" is opt-in and may return longer paths.
    """

    STEP_COST = 1

    def __init__(
        self,
        adjacency: AdjacencyResolver,
        occupancy: OccupancyGrid,
        heuristic: str | Callable[[HexCoord, HexCoord], float] = "steps",
    ):
        self.adjacency = adjacency
        self.occupancy = occupancy
        if isinstance(heuristic, str):
            if heuristic not in HEURISTICS:
                raise ValueError(f"Unknown path heuristic: {heuristic}")
            heuristic = HEURISTICS[heuristic]
        self.heuristic = heuristic

    def find_path(
        self,
        start: HexCoord,
        goal: HexCoord,
        owner: Side,
        unit_id: Optional[int] = None,
    ) -> list[HexCoord]:
        """Full path from start to goal inclusive, or [] if unreachable."""
        if start == goal:
            return [start]

        counter = itertools.count()
        open_set = [(self.heuristic(start, goal), next(counter), start)]
        came_from: dict[HexCoord, HexCoord] = {}
        g_score = {start: 0}
        closed: set[HexCoord] = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue

            if current == goal:
                path = [current]
                while current in came_from:
                    current = came_from[current]
                    path.append(current)
                return list(reversed(path))

            closed.add(current)

            for neighbor in self.adjacency.neighbors(current):
                if neighbor in closed:
                    continue

                if neighbor == goal:
                    # The goal may hold an enemy or a castle; only a friend blocks it
                    if self.occupancy.is_friendly_occupied(neighbor, owner):
                        continue
                elif not self.occupancy.is_passable(neighbor, owner, unit_id=unit_id):
                    continue

                tentative_g = g_score[current] + self.STEP_COST
                if tentative_g < g_score.get(neighbor, math.inf):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g
                    f_score = tentative_g + self.heuristic(neighbor, goal)
                    heapq.heappush(open_set, (f_score, next(counter), neighbor))

        return []  # No path found

    def next_step(
        self,
        start: HexCoord,
        goal: HexCoord,
        owner: Side,
        unit_id: Optional[int] = None,
    ) -> Optional[HexCoord]:
        """Immediate next hex toward goal.

        None when the goal is unreachable or already adjacent (the unit
        should fight rather than move).
        """
        path = self.find_path(start, goal, owner, unit_id)
        if len(path) < 3:
            logger.debug(f"No step from {tuple(start)} to {tuple(goal)} (path length {len(path)})")
            return None
        return path[1]
