"""
Game Configuration - Tunable rules constants.

Defaults match the standard game. Deployments can override them with
CARDCLASH_* environment variables through GameConfig.from_env().
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Mapping
import os


class EnergyPolicy(Enum):
    """How energy is restored at the start of a turn."""
    REFILL = "refill"  # Refill to max every turn
    CURVE = "curve"  # Max grows by one each round, up to the cap


@dataclass(frozen=True)
class GameConfig:
    """Rules constants for one game."""
    starting_health: int = 25
    starting_energy: int = 10
    starting_max_energy: int = 10
    max_energy_cap: int = 10
    energy_policy: EnergyPolicy = EnergyPolicy.REFILL
    initial_hand_size: int = 5
    cards_drawn_per_turn: int = 1
    creature_regeneration_per_turn: int = 1
    abort_cast_on_cancel: bool = False

    def __post_init__(self):
        if self.starting_health <= 0:
            raise ValueError("starting_health must be positive")
        if not 0 <= self.starting_energy <= self.starting_max_energy:
            raise ValueError("starting_energy must be between 0 and starting_max_energy")
        if self.starting_max_energy > self.max_energy_cap:
            raise ValueError("starting_max_energy cannot exceed max_energy_cap")
        for name in ("initial_hand_size", "cards_drawn_per_turn", "creature_regeneration_per_turn"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GameConfig:
        """
        Build a config from CARDCLASH_<FIELD> variables.

        Example: CARDCLASH_STARTING_HEALTH=30, CARDCLASH_ENERGY_POLICY=curve
        """
        environ = os.environ if environ is None else environ
        config = cls()
        overrides = {}
        for f in fields(cls):
            raw = environ.get(f"CARDCLASH_{f.name.upper()}")
            if raw is None:
                continue
            current = getattr(config, f.name)
            if isinstance(current, EnergyPolicy):
                overrides[f.name] = EnergyPolicy(raw.strip().lower())
            elif isinstance(current, bool):
                overrides[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                overrides[f.name] = int(raw)
        return replace(config, **overrides)


DEFAULT_CONFIG = GameConfig()
