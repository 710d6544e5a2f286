from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .tile import Color

# Renderer palette; read-only.
COLOR_HEX: Mapping[Color, str] = MappingProxyType({
    Color.ORANGE: "#ff9500",
    Color.BLUE: "#54a0ff",
    Color.RED: "#e63946",
    Color.GREEN: "#26de81",
    Color.PURPLE: "#a55eea",
    Color.YELLOW: "#f9e547",
})

PLAYER_COLORS: Tuple[str, ...] = ("#ff6b6b", "#4ecdc4", "#a55eea", "#fed330")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw is not None else default
    except ValueError:
        return default


@dataclass(frozen=True)
class GameConfig:
    hand_size: int = 6
    bag_size: int = 100
    cpu_delay: float = 0.8
    announce_seconds: float = 1.5
    announce_cpu_seconds: float = 1.0
    starting_tile: bool = True
    min_players: int = 2
    max_players: int = 4

    @classmethod
    def from_env(cls, base: Optional["GameConfig"] = None) -> "GameConfig":
        """Overrides defaults with TENS_* environment variables."""
        b = base or cls()
        return cls(
            hand_size=_env_int("TENS_HAND_SIZE", b.hand_size),
            bag_size=_env_int("TENS_BAG_SIZE", b.bag_size),
            cpu_delay=_env_float("TENS_CPU_DELAY", b.cpu_delay),
            announce_seconds=b.announce_seconds,
            announce_cpu_seconds=b.announce_cpu_seconds,
            starting_tile=_env_flag("TENS_STARTING_TILE", b.starting_tile),
            min_players=b.min_players,
            max_players=b.max_players,
        )


DEFAULT_CONFIG = GameConfig()
