"""RAMPART - tower-defense simulation server.

Main FastAPI application.  Rendering clients poll ``/api/game/state`` and
submit commands; the simulation itself runs headless in-process.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from rampart import __version__
from rampart.comms.event_bus import EventBus
from rampart.simulation import SimulationEngine, SimulationRunner, load_waves
from rampart_api.config import Settings, settings
from rampart_api.routers import game_router


def create_engine(cfg: Settings) -> SimulationEngine:
    """Build a SimulationEngine from settings, loading custom waves if configured."""
    waves = None
    if cfg.waves_file is not None:
        if cfg.waves_file.exists():
            waves = load_waves(cfg.waves_file)
            logger.info(f"Loaded {len(waves)} waves from {cfg.waves_file}")
        else:
            logger.warning(f"Waves file not found: {cfg.waves_file} (using built-in waves)")

    return SimulationEngine(
        EventBus(),
        width=cfg.play_width,
        height=cfg.play_height,
        cell_size=cfg.cell_size,
        money=cfg.starting_money,
        lives=cfg.starting_lives,
        waves=waves,
        wave_interval=cfg.wave_interval,
        spawn_interval=cfg.spawn_interval,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"{settings.app_name} v{__version__} - INITIALIZING")

    engine = create_engine(settings)
    app.state.simulation_engine = engine
    app.state.simulation_runner = None

    if settings.simulation_autorun:
        runner = SimulationRunner(engine, tick_rate=settings.tick_rate)
        runner.start()
        app.state.simulation_runner = runner
    else:
        logger.info("Autorun disabled; advance the session with POST /api/game/tick")

    yield

    runner = app.state.simulation_runner
    if runner is not None:
        runner.stop()
    logger.info(f"{settings.app_name} shutdown complete")


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(game_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "rampart_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
