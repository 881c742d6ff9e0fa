"""Unit tests for Projectile flight and CombatSystem."""

from __future__ import annotations

import pytest

from rampart.comms.event_bus import EventBus
from rampart.simulation.combat import HIT_RADIUS, PROJECTILE_SPEED, CombatSystem, Projectile
from rampart.simulation.enemy import Enemy


pytestmark = pytest.mark.unit


def _enemy(enemy_id: str = "enemy-1", position=(100.0, 0.0), health: float = 50.0) -> Enemy:
    return Enemy(
        enemy_id=enemy_id, archetype="basic", position=position,
        health=health, max_health=50.0, speed=1.0, reward=10,
    )


def _proj(target_id: str = "enemy-1", position=(0.0, 0.0), damage: float = 10.0) -> Projectile:
    return Projectile(
        projectile_id="proj-1", source_id="tower-1", target_id=target_id,
        position=position, damage=damage,
    )


def _drain(q) -> list[dict]:
    msgs = []
    while not q.empty():
        msgs.append(q.get_nowait())
    return msgs


# --------------------------------------------------------------------------
# Projectile
# --------------------------------------------------------------------------

class TestProjectileDefaults:
    def test_constants(self):
        assert PROJECTILE_SPEED == 300.0
        assert HIT_RADIUS == 5.0

    def test_defaults(self):
        proj = _proj()
        assert proj.speed == 300.0
        assert proj.expired is False


class TestProjectileFlight:
    def test_moves_toward_target(self):
        proj = _proj()
        enemy = _enemy()
        assert proj.update(0.1, {"enemy-1": enemy}) is None
        assert proj.position == pytest.approx((30.0, 0.0))
        assert proj.expired is False
        assert enemy.health == 50

    def test_hits_on_arrival(self):
        proj = _proj()
        enemy = _enemy(position=(20.0, 0.0))
        assert proj.update(0.1, {"enemy-1": enemy}) is enemy
        assert enemy.health == 40
        assert proj.expired is True

    def test_does_not_overshoot(self):
        proj = _proj()
        enemy = _enemy(position=(20.0, 0.0))
        proj.update(1.0, {"enemy-1": enemy})
        assert proj.position == pytest.approx((20.0, 0.0))

    def test_hits_inside_radius_without_moving_far(self):
        proj = _proj(position=(97.0, 0.0))
        enemy = _enemy()
        assert proj.update(0.0, {"enemy-1": enemy}) is enemy
        assert enemy.health == 40

    def test_follows_moving_target(self):
        proj = _proj()
        enemy = _enemy(position=(100.0, 0.0))
        proj.update(0.1, {"enemy-1": enemy})
        enemy.position = (30.0, 100.0)
        proj.update(0.1, {"enemy-1": enemy})
        assert proj.position == pytest.approx((30.0, 30.0))


class TestProjectileStaleTarget:
    def test_missing_target_expires(self):
        proj = _proj()
        assert proj.update(0.1, {}) is None
        assert proj.expired is True
        assert proj.position == (0.0, 0.0)

    def test_dead_target_expires_without_damage(self):
        proj = _proj(position=(99.0, 0.0))
        enemy = _enemy(health=0.0)
        assert proj.update(0.1, {"enemy-1": enemy}) is None
        assert proj.expired is True
        assert enemy.health == 0.0

    def test_removed_id_never_hits_new_enemy(self):
        proj = _proj(target_id="enemy-1", position=(99.0, 0.0))
        newcomer = _enemy(enemy_id="enemy-2", position=(100.0, 0.0))
        proj.update(0.1, {"enemy-2": newcomer})
        assert proj.expired is True
        assert newcomer.health == 50

    def test_expired_projectile_is_inert(self):
        proj = _proj(position=(99.0, 0.0))
        proj.expired = True
        enemy = _enemy()
        assert proj.update(0.1, {"enemy-1": enemy}) is None
        assert enemy.health == 50


class TestProjectileSerialization:
    def test_round_trip(self):
        proj = _proj(position=(12.5, 7.25))
        assert Projectile.from_dict(proj.to_dict()) == proj


# --------------------------------------------------------------------------
# CombatSystem
# --------------------------------------------------------------------------

class TestCombatSystem:
    def test_add_publishes_fired(self):
        bus = EventBus()
        q = bus.subscribe("projectile_fired")
        combat = CombatSystem(bus)
        combat.add(_proj())
        assert combat.projectile_count == 1
        msg = q.get_nowait()
        assert msg["data"]["target_id"] == "enemy-1"
        assert msg["data"]["source_pos"] == {"x": 0.0, "y": 0.0}

    def test_tick_moves_projectiles(self):
        combat = CombatSystem(EventBus())
        combat.add(_proj())
        combat.tick(0.1, {"enemy-1": _enemy()})
        assert combat.projectiles[0].position == pytest.approx((30.0, 0.0))

    def test_hit_removes_and_publishes(self):
        bus = EventBus()
        q = bus.subscribe("projectile_hit")
        combat = CombatSystem(bus)
        enemy = _enemy(position=(20.0, 0.0))
        combat.add(_proj())
        combat.tick(0.1, {"enemy-1": enemy})
        assert combat.projectile_count == 0
        hit = q.get_nowait()["data"]
        assert hit["target_id"] == "enemy-1"
        assert hit["remaining_health"] == 40

    def test_stale_target_removed_silently(self):
        bus = EventBus()
        q = bus.subscribe("projectile_hit")
        combat = CombatSystem(bus)
        combat.add(_proj())
        combat.tick(0.1, {})
        assert combat.projectile_count == 0
        assert _drain(q) == []

    def test_only_one_kill_credit(self):
        combat = CombatSystem(EventBus())
        enemy = _enemy(position=(20.0, 0.0), health=10.0)
        first = _proj(damage=10.0)
        second = Projectile(
            projectile_id="proj-2", source_id="tower-2", target_id="enemy-1",
            position=(0.0, 0.0), damage=10.0,
        )
        combat.add(first)
        combat.add(second)
        combat.tick(0.1, {"enemy-1": enemy})
        assert enemy.health == 0
        assert second.expired is True

    def test_get_active_projectiles(self):
        combat = CombatSystem(EventBus())
        combat.add(_proj())
        active = combat.get_active_projectiles()
        assert len(active) == 1
        assert active[0]["projectile_id"] == "proj-1"

    def test_clear_and_restore(self):
        combat = CombatSystem(EventBus())
        combat.add(_proj())
        combat.clear()
        assert combat.projectile_count == 0
        combat.restore([_proj()])
        assert combat.projectile_count == 1
