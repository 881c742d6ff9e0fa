"""CombatSystem — projectile flight, hit detection, and damage resolution.

Architecture
------------
CombatSystem manages the lifecycle of Projectile instances:

  1. ``add()`` registers a projectile a tower fired this tick and publishes
     ``projectile_fired``.  The projectile starts at the tower's position.

  2. ``tick()`` advances each projectile toward the *current* position of
     its target.  The target is tracked by enemy id, never by reference:
     each tick the id is looked up in the engine's live-enemy view.  If the
     id is gone (killed, escaped) or the enemy is already at zero health,
     the projectile expires without doing damage, so an enemy can never be
     credited as killed twice.  Enemy ids are never reused, so a stale
     projectile cannot hit a later enemy by accident.

  3. A projectile within HIT_RADIUS of its target after moving applies its
     damage and expires.  Damage is single-target.
     The move comes before the distance test, so a shot fired at an enemy
     less than one step away lands on the tick it is fired.  The browser
     game this was modelled on tested the distance first and moved on a
     miss, which delays every hit by one frame.

Expired projectiles are removed at the end of ``tick()``.

Events published on the EventBus:
  - ``projectile_fired``: new projectile in the air
  - ``projectile_hit``: damage applied
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rampart.comms.event_bus import EventBus
    from .enemy import Enemy

# Hit detection radius — projectile is "close enough" to count as a hit
HIT_RADIUS = 5.0

# Flight speed in units per second
PROJECTILE_SPEED = 300.0


@dataclass
class Projectile:
    """A single projectile in flight."""

    projectile_id: str
    source_id: str
    target_id: str
    position: tuple[float, float]
    damage: float
    speed: float = PROJECTILE_SPEED
    color: str = "blue"
    expired: bool = False

    def update(self, dt: float, enemies: dict[str, Enemy]) -> Enemy | None:
        """Fly toward the target. Returns the enemy hit this tick, if any."""
        if self.expired:
            return None
        target = enemies.get(self.target_id)
        if target is None or target.is_dead:
            self.expired = True
            return None

        dx = target.position[0] - self.position[0]
        dy = target.position[1] - self.position[1]
        dist = math.hypot(dx, dy)
        if dist > 0:
            step = min(self.speed * dt, dist)
            self.position = (
                self.position[0] + (dx / dist) * step,
                self.position[1] + (dy / dist) * step,
            )
            dist = math.hypot(target.position[0] - self.position[0],
                              target.position[1] - self.position[1])

        if dist < HIT_RADIUS:
            target.apply_damage(self.damage)
            self.expired = True
            return target
        return None

    def to_dict(self) -> dict:
        return {
            "projectile_id": self.projectile_id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "position": {"x": self.position[0], "y": self.position[1]},
            "damage": self.damage,
            "speed": self.speed,
            "color": self.color,
            "expired": self.expired,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Projectile:
        return cls(
            projectile_id=data["projectile_id"],
            source_id=data["source_id"],
            target_id=data["target_id"],
            position=(data["position"]["x"], data["position"]["y"]),
            damage=data["damage"],
            speed=data["speed"],
            color=data["color"],
            expired=data["expired"],
        )


class CombatSystem:
    """Manages projectiles, hit detection, and damage resolution."""

    def __init__(self, event_bus: EventBus) -> None:
        self._projectiles: dict[str, Projectile] = {}
        self._event_bus = event_bus

    @property
    def projectile_count(self) -> int:
        return len(self._projectiles)

    @property
    def projectiles(self) -> list[Projectile]:
        return list(self._projectiles.values())

    def set_event_bus(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    def add(self, proj: Projectile) -> None:
        """Register a freshly fired projectile."""
        self._projectiles[proj.projectile_id] = proj
        self._event_bus.publish("projectile_fired", {
            "projectile_id": proj.projectile_id,
            "source_id": proj.source_id,
            "target_id": proj.target_id,
            "source_pos": {"x": proj.position[0], "y": proj.position[1]},
            "damage": proj.damage,
            "color": proj.color,
        })

    def tick(self, dt: float, enemies: dict[str, Enemy]) -> None:
        """Advance all projectiles against the live-enemy view, resolve hits."""
        to_remove: list[str] = []

        for proj in self._projectiles.values():
            target = proj.update(dt, enemies)
            if target is not None:
                self._event_bus.publish("projectile_hit", {
                    "projectile_id": proj.projectile_id,
                    "source_id": proj.source_id,
                    "target_id": target.enemy_id,
                    "damage": proj.damage,
                    "remaining_health": target.health,
                })
            if proj.expired:
                to_remove.append(proj.projectile_id)

        for pid in to_remove:
            self._projectiles.pop(pid, None)

    def get_active_projectiles(self) -> list[dict]:
        """Return serializable list of active projectiles for rendering."""
        return [p.to_dict() for p in self._projectiles.values() if not p.expired]

    def restore(self, projectiles: list[Projectile]) -> None:
        self._projectiles = {p.projectile_id: p for p in projectiles}

    def clear(self) -> None:
        """Remove all projectiles."""
        self._projectiles.clear()
