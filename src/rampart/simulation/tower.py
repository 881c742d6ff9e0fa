"""Tower — a stationary emplacement that fires at the nearest enemy in range.

Architecture
------------
Tower stats come from the TOWER_TYPES table at placement time and are then
owned by the instance, because upgrades mutate them in place.  The tower
knows nothing about the projectile collection: ``update()`` returns the
projectile it wants to fire and the engine decides where it goes.

Cooldown is counted down in simulated seconds.  It is only reset when a
shot is actually fired, so a tower with nothing in range stays ready and
fires on the first tick an enemy walks in.

Upgrade pricing is derived from the level (``level * 25 + 50``), so the
cost shown to the player and the cost charged can never disagree.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from .combat import Projectile

if TYPE_CHECKING:
    from .enemy import Enemy


@dataclass(frozen=True)
class TowerType:
    name: str
    cost: int
    damage: int
    range: float
    fire_rate: float  # shots per second
    color: str


# Splash is stat-only; it fires single-target projectiles like the rest.
TOWER_TYPES: dict[str, TowerType] = {
    "basic":  TowerType("Basic Tower",  cost=50,  damage=10, range=100, fire_rate=1.0, color="blue"),
    "sniper": TowerType("Sniper Tower", cost=100, damage=30, range=200, fire_rate=0.5, color="green"),
    "rapid":  TowerType("Rapid Tower",  cost=75,  damage=5,  range=80,  fire_rate=3.0, color="orange"),
    "splash": TowerType("Splash Tower", cost=120, damage=15, range=90,  fire_rate=1.2, color="purple"),
}

UPGRADE_BASE_COST = 50
UPGRADE_COST_PER_LEVEL = 25


@dataclass
class Tower:
    """A placed tower."""

    tower_id: str
    archetype: str
    position: tuple[float, float]
    cell: tuple[int, int]
    damage: int
    range: float
    fire_rate: float
    color: str = "blue"
    level: int = 1
    fire_cooldown: float = 0.0

    @classmethod
    def build(cls, tower_id: str, archetype: str, cell: tuple[int, int],
              position: tuple[float, float]) -> Tower:
        stats = TOWER_TYPES[archetype]
        return cls(
            tower_id=tower_id,
            archetype=archetype,
            position=position,
            cell=cell,
            damage=stats.damage,
            range=stats.range,
            fire_rate=stats.fire_rate,
            color=stats.color,
        )

    @property
    def upgrade_cost(self) -> int:
        return self.level * UPGRADE_COST_PER_LEVEL + UPGRADE_BASE_COST

    @property
    def fire_interval(self) -> float:
        return 1.0 / self.fire_rate

    def distance_to(self, point: tuple[float, float]) -> float:
        return math.hypot(point[0] - self.position[0], point[1] - self.position[1])

    def select_target(self, enemies: Iterable[Enemy]) -> Enemy | None:
        """Nearest enemy within range; the first one wins a tie."""
        target = None
        best = math.inf
        for enemy in enemies:
            dist = self.distance_to(enemy.position)
            if dist <= self.range and dist < best:
                best = dist
                target = enemy
        return target

    def update(self, dt: float, enemies: Iterable[Enemy], projectile_id: str) -> Projectile | None:
        """Count down the cooldown and fire at the nearest enemy when ready.

        *projectile_id* is the id the new projectile gets if one is fired.
        """
        self.fire_cooldown -= dt
        if self.fire_cooldown > 0:
            return None
        target = self.select_target(enemies)
        if target is None:
            return None
        self.fire_cooldown = self.fire_interval
        return Projectile(
            projectile_id=projectile_id,
            source_id=self.tower_id,
            target_id=target.enemy_id,
            position=self.position,
            damage=self.damage,
            color=self.color,
        )

    def upgrade(self) -> None:
        """Raise the level by one and improve stats. Payment is the caller's job."""
        self.level += 1
        self.damage = math.floor(self.damage * 1.5)
        self.range += 10
        self.fire_rate *= 1.1

    def to_dict(self) -> dict:
        return {
            "tower_id": self.tower_id,
            "archetype": self.archetype,
            "position": {"x": self.position[0], "y": self.position[1]},
            "cell": {"col": self.cell[0], "row": self.cell[1]},
            "damage": self.damage,
            "range": self.range,
            "fire_rate": self.fire_rate,
            "color": self.color,
            "level": self.level,
            "fire_cooldown": self.fire_cooldown,
            "upgrade_cost": self.upgrade_cost,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Tower:
        return cls(
            tower_id=data["tower_id"],
            archetype=data["archetype"],
            position=(data["position"]["x"], data["position"]["y"]),
            cell=(data["cell"]["col"], data["cell"]["row"]),
            damage=data["damage"],
            range=data["range"],
            fire_rate=data["fire_rate"],
            color=data["color"],
            level=data["level"],
            fire_cooldown=data["fire_cooldown"],
        )
