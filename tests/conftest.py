"""
Shared fixtures for the hexbattle test suite.

Provides small grid builders and a scheduler factory.
"""

import os
import sys

import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from hexbattle import (
    BattleConfig, CoordinateSystem, HexCoord, HexGrid, Side, TileSpec,
    TurnScheduler, UnitSpec, generate_tile_registry,
)


def make_tiles(width=6, height=4, castles=(), only=None):
    """Tile registry by coord; `only` restricts it to the given coordinates."""
    castles = {HexCoord(*c) for c in castles}
    cells = [HexCoord(*c) for c in only] if only is not None else [
        HexCoord(x, y) for x in range(width) for y in range(height)
    ]
    return [TileSpec(coord=c, is_castle=c in castles) for c in cells]


def make_grid(width=6, height=4, castles=(), only=None):
    return HexGrid(width, height, make_tiles(width, height, castles, only))


def unit(coord, owner=None, health=100, attack_damage=10, name="", width=6, height=4):
    """Unit registry entry standing on the canonical position of coord."""
    coords = CoordinateSystem(width, height)
    return UnitSpec(
        position=coords.hex_to_world(HexCoord(*coord)),
        owner=Side.parse(owner) if owner is not None else None,
        health=health,
        attack_damage=attack_damage,
        name=name,
    )


def make_scheduler(units, width=6, height=4, max_turns=10, tiles=None, **config):
    """Started scheduler; the standard layout is used when tiles is None."""
    cfg = BattleConfig(width=width, height=height, max_turns=max_turns, **config)
    if tiles is None:
        tiles = generate_tile_registry(width, height)
    scheduler = TurnScheduler(cfg, tiles=tiles)
    assert scheduler.start(units)
    return scheduler


def hex_of(scheduler, unit_id):
    return scheduler.coords.world_to_hex(scheduler.units.get_unit(unit_id).position)


@pytest.fixture
def small_grid():
    """6x4 grid, every cell present, no castles."""
    return make_grid()


@pytest.fixture
def coords():
    return CoordinateSystem(6, 4)
