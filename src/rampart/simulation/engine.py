"""SimulationEngine — the per-tick orchestrator and owner of all session state.

Architecture
------------
The engine is the authoritative owner of every tower, enemy and projectile,
the wave scheduler, and the economy (money, score, lives).  Nothing is
module-global: a session is exactly one engine instance, and ``tick()``
returns that instance's SessionState.

The engine does not own a clock.  A host (the headless runner thread, an
HTTP client, a test) calls ``tick(dt)`` with the elapsed seconds since its
previous call.  One tick runs these steps in this order:

  1. scheduler   — may spawn enemies at the path start (appended)
  2. enemies     — move along the path; escapes collected for removal
  3. towers      — fire at the live view (escapes from step 2 excluded)
  4. projectiles — fly and hit against the same live view
  5. reconcile   — dead enemies pay out money + score, escaped enemies
                   cost a life, expired projectiles are dropped
  6. terminal    — lives == 0 -> game over; all waves done and the map
                   clear -> game won.  Both freeze the session: later
                   ticks return the state unchanged.

Spawning before targeting means a tower can shoot an enemy on the tick it
appears.  Removal is deferred to step 5 so no list is mutated while it is
being iterated.

Commands (place_tower, upgrade_tower, upgrade_tower_at) validate before
touching anything and raise a CommandError subclass on rejection.  A
re-entrant lock serialises ticks, commands and snapshots so the runner
thread and API handlers never interleave.

Snapshots are plain JSON-compatible dicts.  ``from_snapshot()`` rebuilds
an engine that behaves identically to the original under the same
subsequent command/tick sequence, id counters included.

Events published on EventBus:
  - ``tower_placed`` / ``tower_upgraded``
  - ``enemy_spawned`` / ``enemy_killed`` / ``enemy_escaped``
  - ``game_over``: victory or defeat
  - ``game_state_change``: economy or terminal flag changed
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from loguru import logger

from rampart.comms.event_bus import EventBus

from .combat import CombatSystem, Projectile
from .enemy import ENEMY_TYPES, Enemy
from .errors import (
    InsufficientFunds,
    InvalidPlacement,
    NoSuchTower,
    SessionOver,
    UnknownArchetype,
)
from .grid import Grid
from .tower import TOWER_TYPES, Tower
from .waves import SPAWN_INTERVAL, WAVE_INTERVAL, WaveConfig, WaveScheduler

STARTING_MONEY = 150
STARTING_LIVES = 20

SNAPSHOT_VERSION = 1


@dataclass
class SessionState:
    """Economy and terminal flags for one session."""

    money: int = STARTING_MONEY
    score: int = 0
    lives: int = STARTING_LIVES
    game_over: bool = False
    game_won: bool = False

    @property
    def finished(self) -> bool:
        return self.game_over or self.game_won

    def to_dict(self) -> dict:
        return {
            "money": self.money,
            "score": self.score,
            "lives": self.lives,
            "game_over": self.game_over,
            "game_won": self.game_won,
        }


class SimulationEngine:
    """Owns one tower-defense session and advances it tick by tick."""

    def __init__(
        self,
        event_bus: EventBus | None = None,
        *,
        width: float = 800,
        height: float = 600,
        cell_size: float = 40,
        money: int = STARTING_MONEY,
        lives: int = STARTING_LIVES,
        waves: list[WaveConfig] | None = None,
        wave_interval: float = WAVE_INTERVAL,
        spawn_interval: float = SPAWN_INTERVAL,
    ) -> None:
        for wave in waves or []:
            for archetype in wave.enemies:
                if archetype not in ENEMY_TYPES:
                    raise ValueError(f"{wave.name}: unknown enemy archetype {archetype!r}")

        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._lock = threading.RLock()
        self._config = {
            "width": width,
            "height": height,
            "cell_size": cell_size,
            "money": money,
            "lives": lives,
            "wave_interval": wave_interval,
            "spawn_interval": spawn_interval,
        }
        self._initial_waves = waves
        self._init_session()
        logger.info(
            f"Simulation engine created: {self.grid.cols}x{self.grid.rows} cells, "
            f"{self.scheduler.total_waves} waves, ${money}, {lives} lives"
        )

    def _init_session(self) -> None:
        cfg = self._config
        self.grid = Grid(cfg["width"], cfg["height"], cfg["cell_size"])
        self.session = SessionState(money=cfg["money"], lives=cfg["lives"])
        self.combat = CombatSystem(self._event_bus)
        self.scheduler = WaveScheduler(
            self._event_bus,
            waves=self._initial_waves,
            wave_interval=cfg["wave_interval"],
            spawn_interval=cfg["spawn_interval"],
        )
        self._towers: dict[str, Tower] = {}
        self._enemies: list[Enemy] = []
        self._next_ids: dict[str, int] = {"tower": 1, "enemy": 1, "proj": 1}
        self.elapsed: float = 0.0
        self.tick_count: int = 0

    # -- Accessors --------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def set_event_bus(self, event_bus: EventBus) -> None:
        """Re-wire the engine and its subsystems to a different bus."""
        with self._lock:
            self._event_bus = event_bus
            self.combat.set_event_bus(event_bus)
            self.scheduler.set_event_bus(event_bus)

    @property
    def finished(self) -> bool:
        return self.session.finished

    def get_towers(self) -> list[Tower]:
        with self._lock:
            return list(self._towers.values())

    def get_tower(self, tower_id: str) -> Tower | None:
        with self._lock:
            return self._towers.get(tower_id)

    def get_enemies(self) -> list[Enemy]:
        with self._lock:
            return list(self._enemies)

    def get_projectiles(self) -> list[Projectile]:
        """Projectiles still in flight."""
        with self._lock:
            return [p for p in self.combat.projectiles if not p.expired]

    # -- Commands ---------------------------------------------------------------

    def place_tower(self, col: int, row: int, archetype: str) -> str:
        """Build a tower of *archetype* on cell (col, row). Returns its tower_id."""
        with self._lock:
            self._check_active()
            stats = TOWER_TYPES.get(archetype)
            if stats is None:
                raise UnknownArchetype(f"Unknown tower archetype: {archetype!r}")
            self.grid.check_placement(col, row)
            if self.session.money < stats.cost:
                raise InsufficientFunds(stats.cost, self.session.money)

            tower_id = self._allocate_id("tower")
            tower = Tower.build(tower_id, archetype, (col, row), self.grid.cell_center(col, row))
            self.grid.occupy(col, row, tower_id)
            self.session.money -= stats.cost
            self._towers[tower_id] = tower

            logger.debug(f"Placed {archetype} tower {tower_id} at ({col}, {row})")
            self._event_bus.publish("tower_placed", tower.to_dict())
            self._publish_state_change()
            return tower_id

    def upgrade_tower(self, tower_id: str) -> int:
        """Upgrade a tower by id. Returns the new level."""
        with self._lock:
            self._check_active()
            tower = self._towers.get(tower_id)
            if tower is None:
                raise NoSuchTower(f"No tower with id {tower_id!r}")
            return self._upgrade(tower)

    def upgrade_tower_at(self, x: float, y: float) -> int:
        """Upgrade the first tower (placement order) whose range covers (x, y)."""
        with self._lock:
            self._check_active()
            tower = self.tower_at(x, y)
            if tower is None:
                raise NoSuchTower(f"No tower covers ({x}, {y})")
            return self._upgrade(tower)

    def tower_at(self, x: float, y: float) -> Tower | None:
        with self._lock:
            for tower in self._towers.values():
                if tower.distance_to((x, y)) <= tower.range:
                    return tower
            return None

    def _upgrade(self, tower: Tower) -> int:
        cost = tower.upgrade_cost
        if self.session.money < cost:
            raise InsufficientFunds(cost, self.session.money)
        self.session.money -= cost
        tower.upgrade()
        logger.debug(f"Upgraded {tower.tower_id} to level {tower.level} for ${cost}")
        self._event_bus.publish("tower_upgraded", {**tower.to_dict(), "cost": cost})
        self._publish_state_change()
        return tower.level

    def spawn_enemy(self, archetype: str) -> Enemy:
        """Put an enemy of *archetype* at the start of the path."""
        with self._lock:
            if archetype not in ENEMY_TYPES:
                raise ValueError(f"Unknown enemy archetype: {archetype!r}")
            enemy = Enemy.spawn(self._allocate_id("enemy"), archetype, self.grid.path)
            self._enemies.append(enemy)
            logger.debug(f"Spawned {archetype} enemy {enemy.enemy_id}")
            self._event_bus.publish("enemy_spawned", enemy.to_dict())
            return enemy

    def reset(self) -> None:
        """Start a fresh session with the engine's original configuration."""
        with self._lock:
            self._init_session()
            logger.info("Session reset")
            self._publish_state_change()

    # -- Tick -------------------------------------------------------------------

    def tick(self, dt: float) -> SessionState:
        """Advance the session by *dt* seconds and return its state."""
        if dt < 0:
            raise ValueError(f"dt must be non-negative, got {dt}")
        with self._lock:
            if self.session.finished:
                return self.session
            self.elapsed += dt
            self.tick_count += 1

            # 1. Waves
            for archetype in self.scheduler.tick(dt, len(self._enemies)):
                self.spawn_enemy(archetype)

            # 2. Enemy movement
            path = self.grid.path
            escaped: set[str] = set()
            for enemy in self._enemies:
                enemy.update(dt, path, self.grid.cell_size)
                if not enemy.is_dead and enemy.has_escaped(self.grid.width):
                    escaped.add(enemy.enemy_id)
            live = {
                e.enemy_id: e for e in self._enemies
                if e.enemy_id not in escaped and not e.is_dead
            }

            # 3. Towers
            for tower in self._towers.values():
                proj = tower.update(dt, live.values(), self._peek_id("proj"))
                if proj is not None:
                    self._allocate_id("proj")
                    self.combat.add(proj)

            # 4. Projectiles
            self.combat.tick(dt, live)

            # 5. Reconcile
            self._reconcile(escaped)

            # 6. Terminal conditions
            self._check_terminal()
            return self.session

    def _reconcile(self, escaped: set[str]) -> None:
        survivors: list[Enemy] = []
        changed = False
        for enemy in self._enemies:
            if enemy.is_dead:
                self.session.money += enemy.reward
                self.session.score += enemy.reward
                changed = True
                logger.debug(f"Enemy {enemy.enemy_id} killed (+{enemy.reward})")
                self._event_bus.publish("enemy_killed", {
                    "enemy_id": enemy.enemy_id,
                    "archetype": enemy.archetype,
                    "reward": enemy.reward,
                    "position": {"x": enemy.position[0], "y": enemy.position[1]},
                })
            elif enemy.enemy_id in escaped:
                self.session.lives = max(0, self.session.lives - 1)
                changed = True
                logger.debug(f"Enemy {enemy.enemy_id} escaped ({self.session.lives} lives left)")
                self._event_bus.publish("enemy_escaped", {
                    "enemy_id": enemy.enemy_id,
                    "archetype": enemy.archetype,
                    "lives": self.session.lives,
                })
            else:
                survivors.append(enemy)
        self._enemies = survivors
        if changed:
            self._publish_state_change()

    def _check_terminal(self) -> None:
        if self.session.lives <= 0:
            self.session.game_over = True
            result = "defeat"
        elif self.scheduler.all_complete and not self._enemies:
            self.session.game_won = True
            result = "victory"
        else:
            return
        logger.info(f"Game over: {result}, final score {self.session.score}")
        self._event_bus.publish("game_over", {
            "result": result,
            "final_score": self.session.score,
            "waves_completed": self.scheduler.wave_index,
            "elapsed": self.elapsed,
        })
        self._publish_state_change()

    # -- Snapshots --------------------------------------------------------------

    def get_state(self) -> dict:
        """Compact session summary for HUDs and state-change events."""
        with self._lock:
            waves = self.scheduler
            return {
                **self.session.to_dict(),
                "wave": min(waves.wave_index + 1, waves.total_waves),
                "total_waves": waves.total_waves,
                "wave_state": waves.state,
                "enemies": len(self._enemies),
                "towers": len(self._towers),
            }

    def get_snapshot(self) -> dict:
        """Full read-only view of the session, JSON-compatible."""
        with self._lock:
            return {
                "version": SNAPSHOT_VERSION,
                "config": dict(self._config),
                "grid": self.grid.to_dict(),
                "session": self.session.to_dict(),
                "waves": self.scheduler.get_state(),
                "towers": [t.to_dict() for t in self._towers.values()],
                "enemies": [e.to_dict() for e in self._enemies],
                "projectiles": self.combat.get_active_projectiles(),
                "elapsed": self.elapsed,
                "tick_count": self.tick_count,
                "next_ids": dict(self._next_ids),
            }

    @classmethod
    def from_snapshot(cls, snapshot: dict, event_bus: EventBus | None = None) -> SimulationEngine:
        """Rebuild an engine from ``get_snapshot()`` output.

        Raises ValueError for an unsupported version or for a tower that
        cannot legally occupy its recorded cell.
        """
        version = snapshot.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version}")
        cfg = snapshot["config"]
        waves = [WaveConfig(w["name"], tuple(w["enemies"])) for w in snapshot["waves"]["waves"]]
        engine = cls(
            event_bus,
            width=cfg["width"],
            height=cfg["height"],
            cell_size=cfg["cell_size"],
            money=cfg["money"],
            lives=cfg["lives"],
            waves=waves,
            wave_interval=cfg["wave_interval"],
            spawn_interval=cfg["spawn_interval"],
        )
        engine._restore(snapshot)
        return engine

    def _restore(self, snapshot: dict) -> None:
        with self._lock:
            session = snapshot["session"]
            self.session = SessionState(
                money=session["money"],
                score=session["score"],
                lives=session["lives"],
                game_over=session["game_over"],
                game_won=session["game_won"],
            )
            for data in snapshot["towers"]:
                tower = Tower.from_dict(data)
                try:
                    self.grid.occupy(tower.cell[0], tower.cell[1], tower.tower_id)
                except InvalidPlacement as exc:
                    raise ValueError(f"Snapshot tower {tower.tower_id}: {exc}") from exc
                self._towers[tower.tower_id] = tower
            self._enemies = [Enemy.from_dict(d) for d in snapshot["enemies"]]
            self.combat.restore([Projectile.from_dict(d) for d in snapshot["projectiles"]])
            self.scheduler.restore(snapshot["waves"])
            self.elapsed = snapshot["elapsed"]
            self.tick_count = snapshot["tick_count"]
            self._next_ids = dict(snapshot["next_ids"])
            logger.info(f"Session restored at t={self.elapsed:.2f}s ({self.tick_count} ticks)")

    # -- Internals --------------------------------------------------------------

    def _check_active(self) -> None:
        if self.session.finished:
            raise SessionOver("Session has ended")

    def _peek_id(self, kind: str) -> str:
        return f"{kind}-{self._next_ids[kind]}"

    def _allocate_id(self, kind: str) -> str:
        ident = self._peek_id(kind)
        self._next_ids[kind] += 1
        return ident

    def _publish_state_change(self) -> None:
        self._event_bus.publish("game_state_change", self.get_state())
