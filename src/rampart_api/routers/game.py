"""Game control API — snapshot, place/upgrade towers, tick, reset, restore."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from rampart.simulation.engine import SimulationEngine
from rampart.simulation.enemy import ENEMY_TYPES
from rampart.simulation.errors import (
    CommandError,
    InsufficientFunds,
    NoSuchTower,
)
from rampart.simulation.runner import SimulationRunner
from rampart.simulation.tower import TOWER_TYPES

router = APIRouter(prefix="/api/game", tags=["game"])


class PlaceTower(BaseModel):
    col: int
    row: int
    archetype: str = "basic"


class UpgradeTower(BaseModel):
    tower_id: str | None = None
    x: float | None = None
    y: float | None = None

    @model_validator(mode="after")
    def _need_target(self) -> UpgradeTower:
        if self.tower_id is None and (self.x is None or self.y is None):
            raise ValueError("Provide tower_id or both x and y")
        return self


class TickRequest(BaseModel):
    dt: float = Field(ge=0.0, le=10.0)


def _get_engine(request: Request):
    """Retrieve the SimulationEngine from app state."""
    engine = getattr(request.app.state, "simulation_engine", None)
    if engine is None:
        raise HTTPException(503, "Simulation engine not available")
    return engine


def _command_error(exc: CommandError) -> HTTPException:
    if isinstance(exc, InsufficientFunds):
        status = 402
    elif isinstance(exc, NoSuchTower):
        status = 404
    else:
        status = 400
    logger.warning(f"Command rejected ({type(exc).__name__}): {exc}")
    return HTTPException(status, {"error": type(exc).__name__, "message": str(exc)})


@router.get("/state")
async def get_snapshot(request: Request):
    """Full snapshot: towers, enemies, projectiles, economy, wave progress."""
    return _get_engine(request).get_snapshot()


@router.get("/summary")
async def get_summary(request: Request):
    """Compact HUD state."""
    return _get_engine(request).get_state()


@router.get("/archetypes")
async def get_archetypes():
    """Static tower and enemy stat tables."""
    return {
        "towers": {
            key: {"name": t.name, "cost": t.cost, "damage": t.damage,
                  "range": t.range, "fire_rate": t.fire_rate, "color": t.color}
            for key, t in TOWER_TYPES.items()
        },
        "enemies": {
            key: {"health": e.health, "speed": e.speed, "reward": e.reward,
                  "size": e.size, "color": e.color}
            for key, e in ENEMY_TYPES.items()
        },
    }


@router.get("/projectiles")
async def get_projectiles(request: Request):
    """Active projectiles for late-joining renderers."""
    return [p.to_dict() for p in _get_engine(request).get_projectiles()]


@router.post("/place")
async def place_tower(body: PlaceTower, request: Request):
    """Place a tower on a grid cell."""
    engine = _get_engine(request)
    try:
        tower_id = engine.place_tower(body.col, body.row, body.archetype)
    except CommandError as exc:
        raise _command_error(exc) from exc
    return {"tower_id": tower_id, "money": engine.session.money}


@router.post("/upgrade")
async def upgrade_tower(body: UpgradeTower, request: Request):
    """Upgrade a tower by id, or the first tower covering a map point."""
    engine = _get_engine(request)
    try:
        if body.tower_id is not None:
            level = engine.upgrade_tower(body.tower_id)
        else:
            level = engine.upgrade_tower_at(body.x, body.y)
    except CommandError as exc:
        raise _command_error(exc) from exc
    return {"level": level, "money": engine.session.money}


@router.post("/tick")
async def tick(body: TickRequest, request: Request):
    """Advance the simulation by dt seconds (client-driven clock)."""
    engine = _get_engine(request)
    state = engine.tick(body.dt)
    return state.to_dict()


@router.post("/reset")
async def reset_game(request: Request):
    """Start a fresh session."""
    engine = _get_engine(request)
    engine.reset()
    runner = getattr(request.app.state, "simulation_runner", None)
    if runner is not None:
        # Runner exits by itself when a session ends
        runner.start()
    return engine.get_state()


@router.post("/restore")
async def restore_game(snapshot: dict, request: Request):
    """Replace the running session with one rebuilt from a snapshot."""
    current = _get_engine(request)
    try:
        engine = SimulationEngine.from_snapshot(snapshot, event_bus=current.event_bus)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning(f"Snapshot restore failed: {exc!r}")
        raise HTTPException(400, f"Invalid snapshot: {exc!r}") from exc

    runner = getattr(request.app.state, "simulation_runner", None)
    if runner is not None:
        runner.stop()
    request.app.state.simulation_engine = engine
    if runner is not None:
        new_runner = SimulationRunner(engine, tick_rate=runner.tick_rate)
        new_runner.start()
        request.app.state.simulation_runner = new_runner
    return engine.get_state()
