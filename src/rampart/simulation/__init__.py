"""Tower-defense simulation core — tick-driven, deterministic, headless.

Package layout:
  grid.py    — Grid, GridCell, build_path (static map + fixed corridor)
  tower.py   — Tower, TOWER_TYPES (targeting, cooldown, upgrades)
  enemy.py   — Enemy, ENEMY_TYPES (path following, escape)
  combat.py  — Projectile, CombatSystem (flight + single-target hits)
  waves.py   — WaveScheduler, WaveConfig (idle/spawning/all_complete)
  engine.py  — SimulationEngine (tick order, commands, economy, snapshots)
  runner.py  — SimulationRunner (headless frame clock thread)
  loader.py  — load_waves (JSON wave definitions)
  errors.py  — CommandError hierarchy
"""

from .engine import SessionState, SimulationEngine
from .errors import (
    CommandError,
    InsufficientFunds,
    InvalidPlacement,
    NoSuchTower,
    SessionOver,
    UnknownArchetype,
)
from .loader import load_waves
from .runner import SimulationRunner
from .waves import WaveConfig

__all__ = [
    "SimulationEngine",
    "SessionState",
    "SimulationRunner",
    "WaveConfig",
    "load_waves",
    "CommandError",
    "InvalidPlacement",
    "InsufficientFunds",
    "NoSuchTower",
    "SessionOver",
    "UnknownArchetype",
]
