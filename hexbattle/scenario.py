"""
Scenario loading: battle settings, tile registry and unit registry from YAML.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .config import BattleConfig
from .map import (
    CoordinateSystem, HexCoord, MapInitializationError, Side, TileSpec, Vec3,
    generate_tile_registry,
)
from .units import UnitSpec

logger = logging.getLogger(__name__)


@dataclass
class Scenario:
    """A ready-to-start battle."""
    name: str
    config: BattleConfig
    tiles: list[TileSpec]
    units: list[UnitSpec] = field(default_factory=list)
    description: str = ""


def load_scenario(path: Path | str) -> Scenario:
    """Load a scenario file. Raises MapInitializationError if its map is unusable."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return parse_scenario(data, default_name=path.stem)


def parse_scenario(data: dict, default_name: str = "scenario") -> Scenario:
    info = data.get("scenario", {}) or {}
    map_data = data.get("map")
    if not isinstance(map_data, dict):
        raise MapInitializationError("Scenario has no map section")

    config = BattleConfig.from_dict({**map_data, **info})
    coords = CoordinateSystem(config.width, config.height, config.hex_size)

    tiles = _parse_tiles(map_data, config)
    units = [_parse_unit(entry, coords) for entry in data.get("units", []) or []]

    scenario = Scenario(
        name=info.get("name", default_name),
        description=info.get("description", ""),
        config=config,
        tiles=tiles,
        units=units,
    )
    logger.info(f"Scenario loaded: {scenario.name} ({len(tiles)} tiles, {len(units)} units)")
    return scenario


def _parse_tiles(map_data: dict, config: BattleConfig) -> list[TileSpec]:
    entries = map_data.get("tiles")
    if entries is None:
        return generate_tile_registry(config.width, config.height, castles=map_data.get("castles"))

    if not entries:
        raise MapInitializationError("Scenario tile list is empty")
    return [_tile_spec(entry) for entry in entries]


def _tile_spec(entry: dict) -> TileSpec:
    if not isinstance(entry, dict):
        raise MapInitializationError(f"Invalid tile entry: {entry!r}")
    if "position" in entry:
        spec = TileSpec(position=Vec3(*entry["position"]))
    elif "coord" in entry:
        spec = TileSpec(coord=HexCoord(*entry["coord"]))
    else:
        raise MapInitializationError(f"Tile entry needs coord or position: {entry!r}")

    spec.is_castle = bool(entry.get("castle", False))
    if entry.get("zone") is not None:
        try:
            spec.zone = Side.parse(entry["zone"])
        except ValueError as e:
            raise MapInitializationError(str(e))
    return spec


def _parse_unit(entry: dict, coords: CoordinateSystem) -> UnitSpec:
    if "position" in entry:
        position = Vec3(*entry["position"])
    elif "coord" in entry:
        position = coords.hex_to_world(HexCoord(*entry["coord"]))
    else:
        raise ValueError(f"Unit entry needs coord or position: {entry!r}")

    owner = entry.get("owner")
    return UnitSpec(
        position=position,
        owner=Side.parse(owner) if owner is not None else None,
        health=entry.get("health"),
        attack_damage=entry.get("attack_damage"),
        name=entry.get("name", ""),
    )
