"""Enemy — an attacker walking the fixed path toward the right edge.

Architecture
------------
Enemy is a flat dataclass.  Every archetype (basic, fast, tank, boss)
shares the same fields; the differences live in the ENEMY_TYPES table and
are copied onto the instance when it is spawned.

The path is shared read-only by all enemies and lives on the engine's
Grid; each enemy only keeps its own ``path_index``.  Movement is in cells
per second, scaled by the grid's cell size.

Lifecycle:
  spawned at path[0] -> walks waypoints -> killed (health <= 0, reward paid)
                                        -> escaped (x past play-area width, life lost)

Once an enemy is on the last path point it keeps walking along the final
heading.  It never stops at the end; crossing the right edge of the play
area is what makes it escape.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Distance below which a waypoint counts as reached
WAYPOINT_EPSILON = 1.0


@dataclass(frozen=True)
class EnemyType:
    health: float
    speed: float   # cells per second
    reward: int
    size: float
    color: str


ENEMY_TYPES: dict[str, EnemyType] = {
    "basic": EnemyType(health=50, speed=1.0, reward=10, size=20, color="red"),
    "fast":  EnemyType(health=30, speed=2.0, reward=15, size=15, color="yellow"),
    "tank":  EnemyType(health=150, speed=0.5, reward=30, size=25, color="brown"),
    "boss":  EnemyType(health=300, speed=0.3, reward=100, size=30, color="darkred"),
}


@dataclass
class Enemy:
    """A single enemy on the path."""

    enemy_id: str
    archetype: str
    position: tuple[float, float]
    health: float
    max_health: float
    speed: float
    reward: int
    size: float = 20.0
    color: str = "red"
    path_index: int = 0

    @classmethod
    def spawn(cls, enemy_id: str, archetype: str, path: list[tuple[float, float]]) -> Enemy:
        """Create an enemy of *archetype* at the start of *path*."""
        stats = ENEMY_TYPES[archetype]
        return cls(
            enemy_id=enemy_id,
            archetype=archetype,
            position=path[0],
            health=stats.health,
            max_health=stats.health,
            speed=stats.speed,
            reward=stats.reward,
            size=stats.size,
            color=stats.color,
        )

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    def apply_damage(self, amount: float) -> bool:
        """Apply *amount* damage. Returns True if this enemy is now dead."""
        if amount > 0:
            self.health -= amount
        return self.is_dead

    def update(self, dt: float, path: list[tuple[float, float]], cell_size: float) -> None:
        """Advance along *path* by *dt* seconds."""
        step = self.speed * cell_size * dt

        if self.path_index >= len(path) - 1:
            hx, hy = _final_heading(path)
            self.position = (self.position[0] + hx * step, self.position[1] + hy * step)
            return

        tx, ty = path[self.path_index + 1]
        dx = tx - self.position[0]
        dy = ty - self.position[1]
        dist = math.hypot(dx, dy)

        if dist < WAYPOINT_EPSILON:
            self.path_index += 1
            return

        step = min(step, dist)
        self.position = (
            self.position[0] + (dx / dist) * step,
            self.position[1] + (dy / dist) * step,
        )

    def has_escaped(self, boundary_x: float) -> bool:
        return self.position[0] > boundary_x

    def to_dict(self) -> dict:
        return {
            "enemy_id": self.enemy_id,
            "archetype": self.archetype,
            "position": {"x": self.position[0], "y": self.position[1]},
            "health": self.health,
            "max_health": self.max_health,
            "speed": self.speed,
            "reward": self.reward,
            "size": self.size,
            "color": self.color,
            "path_index": self.path_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Enemy:
        return cls(
            enemy_id=data["enemy_id"],
            archetype=data["archetype"],
            position=(data["position"]["x"], data["position"]["y"]),
            health=data["health"],
            max_health=data["max_health"],
            speed=data["speed"],
            reward=data["reward"],
            size=data["size"],
            color=data["color"],
            path_index=data["path_index"],
        )


def _final_heading(path: list[tuple[float, float]]) -> tuple[float, float]:
    """Unit vector of the last path segment; +x for a single-point path."""
    if len(path) < 2:
        return (1.0, 0.0)
    (x0, y0), (x1, y1) = path[-2], path[-1]
    length = math.hypot(x1 - x0, y1 - y0)
    if length == 0:
        return (1.0, 0.0)
    return ((x1 - x0) / length, (y1 - y0) / length)
