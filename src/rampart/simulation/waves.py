"""WaveScheduler — wave state machine and spawn pacing.

Architecture
------------
The scheduler walks a fixed list of waves through an explicit state
machine:

  idle(cooldown) -> spawning(wave, spawn_timer) -> idle(cooldown) -> ... -> all_complete

  idle:          If every wave has been played -> all_complete.  Otherwise
                 the inter-wave cooldown counts down; once it is at or
                 below zero the next wave starts spawning in the same tick.
  spawning:      One enemy every ``spawn_interval`` seconds, dequeued from
                 the front of the wave's queue.  When the queue is empty
                 and no enemy is left alive, the wave is complete: the
                 index advances and the cooldown restarts.
  all_complete:  Terminal.  Nothing ever spawns again.

The scheduler does not create enemies itself.  ``tick()`` returns the
archetype names to spawn and the engine instantiates them, which keeps
the scheduler free of any knowledge about the path or id allocation.
Waiting for the live enemy count to reach zero before closing a wave
means two waves never overlap on the map.

All fields exist from construction; snapshots copy them verbatim.

Events published on EventBus:
  - ``wave_start``: a wave began spawning
  - ``wave_complete``: a wave was cleared
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from rampart.comms.event_bus import EventBus


@dataclass(frozen=True)
class WaveConfig:
    """Configuration for a single wave: enemy archetypes in spawn order."""

    name: str
    enemies: tuple[str, ...]


WAVE_CONFIGS: list[WaveConfig] = [
    WaveConfig("Wave 1", ("basic", "basic", "basic", "basic", "basic")),
    WaveConfig("Wave 2", ("basic", "fast", "basic", "fast")),
    WaveConfig("Wave 3", ("basic", "basic", "tank", "basic")),
    WaveConfig("Wave 4", ("fast", "fast", "fast", "tank")),
    WaveConfig("Wave 5", ("tank", "tank", "basic", "basic", "fast", "fast")),
    WaveConfig("Wave 6", ("boss", "basic", "basic", "tank")),
]

# Seconds between waves
WAVE_INTERVAL = 5.0

# Seconds between spawns within a wave
SPAWN_INTERVAL = 1.0


class WaveScheduler:
    """Wave state machine.  Returns spawn requests from ``tick()``."""

    STATES = ("idle", "spawning", "all_complete")

    def __init__(
        self,
        event_bus: EventBus,
        waves: list[WaveConfig] | None = None,
        wave_interval: float = WAVE_INTERVAL,
        spawn_interval: float = SPAWN_INTERVAL,
    ) -> None:
        self._event_bus = event_bus
        self.waves: list[WaveConfig] = list(WAVE_CONFIGS if waves is None else waves)
        self.wave_interval = wave_interval
        self.spawn_interval = spawn_interval

        self.state: str = "idle"
        self.wave_index: int = 0
        self.cooldown: float = 0.0
        self.spawn_timer: float = 0.0
        self.queue: list[str] = []

    # -- Public interface -------------------------------------------------------

    @property
    def total_waves(self) -> int:
        return len(self.waves)

    @property
    def all_complete(self) -> bool:
        return self.state == "all_complete"

    def set_event_bus(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    def tick(self, dt: float, live_enemy_count: int) -> list[str]:
        """Advance by *dt* seconds. Returns archetypes to spawn this tick."""
        if self.state == "idle":
            if not self._tick_idle(dt):
                return []
        if self.state == "spawning":
            return self._tick_spawning(dt, live_enemy_count)
        return []

    def get_state(self) -> dict:
        """Return serializable wave progress for snapshots and the API."""
        return {
            "state": self.state,
            "wave": min(self.wave_index + 1, self.total_waves),
            "wave_index": self.wave_index,
            "total_waves": self.total_waves,
            "cooldown": self.cooldown,
            "spawn_timer": self.spawn_timer,
            "queue": list(self.queue),
            "waves": [{"name": w.name, "enemies": list(w.enemies)} for w in self.waves],
            "wave_interval": self.wave_interval,
            "spawn_interval": self.spawn_interval,
        }

    def restore(self, data: dict) -> None:
        """Load state produced by ``get_state()``."""
        if data["state"] not in self.STATES:
            raise ValueError(f"Unknown scheduler state: {data['state']}")
        self.waves = [WaveConfig(w["name"], tuple(w["enemies"])) for w in data["waves"]]
        self.wave_interval = data["wave_interval"]
        self.spawn_interval = data["spawn_interval"]
        self.state = data["state"]
        self.wave_index = data["wave_index"]
        self.cooldown = data["cooldown"]
        self.spawn_timer = data["spawn_timer"]
        self.queue = list(data["queue"])

    # -- State tick handlers ----------------------------------------------------

    def _tick_idle(self, dt: float) -> bool:
        """Returns True when a wave starts spawning this tick."""
        if self.wave_index >= len(self.waves):
            self.state = "all_complete"
            logger.info("All waves complete")
            return False
        if self.cooldown > 0:
            self.cooldown -= dt
            return False
        self._start_wave()
        return True

    def _tick_spawning(self, dt: float, live_enemy_count: int) -> list[str]:
        if self.queue:
            self.spawn_timer += dt
            if self.spawn_timer >= self.spawn_interval:
                self.spawn_timer = 0.0
                return [self.queue.pop(0)]
            return []
        if live_enemy_count == 0:
            self._on_wave_complete()
        return []

    # -- Wave management --------------------------------------------------------

    def _start_wave(self) -> None:
        config = self.waves[self.wave_index]
        self.state = "spawning"
        self.spawn_timer = 0.0
        self.queue = list(config.enemies)
        logger.info(f"{config.name} started ({len(self.queue)} enemies)")
        self._event_bus.publish("wave_start", {
            "wave_number": self.wave_index + 1,
            "wave_name": config.name,
            "enemy_count": len(self.queue),
        })

    def _on_wave_complete(self) -> None:
        config = self.waves[self.wave_index]
        logger.info(f"{config.name} complete")
        self._event_bus.publish("wave_complete", {
            "wave_number": self.wave_index + 1,
            "wave_name": config.name,
        })
        self.wave_index += 1
        self.state = "idle"
        self.cooldown = self.wave_interval
        self.spawn_timer = 0.0
