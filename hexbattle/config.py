"""
Battle configuration.

Defaults mirror the standard battlefield: an 8x8 nominal layout rendered as
16 staggered columns by 4 rows, unit hex size, 100-turn ceiling.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional


@dataclass
class BattleConfig:
    """Tunable parameters for a single battle."""
    width: int = 16
    height: int = 4
    hex_size: float = 1.0
    max_turns: int = 100
    adjacency_threshold: float = 3.0  # multiples of hex_size
    path_heuristic: str = "steps"  # "steps" or "cube"
    default_health: int = 100
    default_attack_damage: int = 10

    ENV_OVERRIDES = {
        "HEXBATTLE_MAX_TURNS": ("max_turns", int),
        "HEXBATTLE_HEX_SIZE": ("hex_size", float),
        "HEXBATTLE_ADJACENCY_THRESHOLD": ("adjacency_threshold", float),
        "HEXBATTLE_PATH_HEURISTIC": ("path_heuristic", str),
    }

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ValueError on values the engine cannot run with."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Map dimensions must be positive, got {self.width}x{self.height}")
        if self.hex_size <= 0:
            raise ValueError(f"hex_size must be positive, got {self.hex_size}")
        if self.max_turns <= 0:
            raise ValueError(f"max_turns must be positive, got {self.max_turns}")
        if self.adjacency_threshold <= 0:
            raise ValueError(f"adjacency_threshold must be positive, got {self.adjacency_threshold}")
        if self.path_heuristic not in ("steps", "cube"):
            raise ValueError(f"Unknown path heuristic: {self.path_heuristic}")
        if self.default_health <= 0:
            raise ValueError(f"default_health must be positive, got {self.default_health}")
        if self.default_attack_damage < 0:
            raise ValueError(f"default_attack_damage cannot be negative, got {self.default_attack_damage}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "BattleConfig":
        """Build a config from a mapping, ignoring keys that are not config fields."""
        data = data or {}
        kwargs = {}
        for f in fields(cls):
            if f.name in data and data[f.name] is not None:
                kwargs[f.name] = type(f.default)(data[f.name])
        return cls(**kwargs)

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "BattleConfig":
        """Return a copy with HEXBATTLE_* environment variables applied."""
        environ = os.environ if environ is None else environ
        changes = {}
        for var, (name, cast) in self.ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                try:
                    changes[name] = cast(value)
                except ValueError:
                    raise ValueError(f"Invalid value for {var}: {value!r}")
        return replace(self, **changes) if changes else self
