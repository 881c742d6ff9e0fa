"""Unit tests for rampart_api.main and rampart_api.config.

Tests verify the FastAPI instance configuration, router registration,
the health endpoint, lifespan startup/shutdown, settings overrides from
the environment, and the engine factory.
"""
from __future__ import annotations

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rampart import __version__
from rampart_api import main
from rampart_api.config import Settings


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def manual_settings(monkeypatch):
    """Settings with the background runner disabled."""
    cfg = Settings(simulation_autorun=False, waves_file=None)
    monkeypatch.setattr(main, "settings", cfg)
    return cfg


# ---------------------------------------------------------------------------
# App creation tests
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestAppCreation:
    def test_app_is_fastapi_instance(self):
        assert isinstance(main.app, FastAPI)

    def test_app_version(self):
        assert main.app.version == __version__

    def test_game_routes_registered(self):
        paths = main.app.openapi()["paths"]
        for path in ("/api/game/state", "/api/game/place", "/api/game/tick", "/health"):
            assert path in paths


# ---------------------------------------------------------------------------
# Lifespan tests
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestLifespan:
    def test_health(self, manual_settings):
        with TestClient(main.app) as client:
            resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": __version__}

    def test_engine_created_without_runner(self, manual_settings):
        with TestClient(main.app) as client:
            assert main.app.state.simulation_runner is None
            state = client.get("/api/game/summary").json()
            assert state["money"] == manual_settings.starting_money
            client.post("/api/game/tick", json={"dt": 1.0})
            assert main.app.state.simulation_engine.tick_count == 1

    def test_runner_started_and_stopped(self, monkeypatch):
        monkeypatch.setattr(main, "settings", Settings(simulation_autorun=True, tick_rate=100))
        with TestClient(main.app):
            runner = main.app.state.simulation_runner
            assert runner is not None
            assert runner.running
        assert not runner.running


# ---------------------------------------------------------------------------
# Settings and engine factory
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        cfg = Settings(_env_file=None)
        assert cfg.starting_money == 150
        assert cfg.starting_lives == 20
        assert cfg.cell_size == 40.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STARTING_MONEY", "500")
        monkeypatch.setenv("SIMULATION_AUTORUN", "false")
        cfg = Settings(_env_file=None)
        assert cfg.starting_money == 500
        assert cfg.simulation_autorun is False


@pytest.mark.unit
class TestCreateEngine:
    def test_uses_settings(self):
        engine = main.create_engine(Settings(_env_file=None, starting_money=999, starting_lives=3))
        assert engine.session.money == 999
        assert engine.session.lives == 3
        assert engine.scheduler.total_waves == 6

    def test_loads_waves_file(self, tmp_path):
        path = tmp_path / "waves.json"
        path.write_text(json.dumps({"waves": [{"name": "Boss Rush", "enemies": ["boss"]}]}))
        engine = main.create_engine(Settings(_env_file=None, waves_file=path))
        assert engine.scheduler.total_waves == 1
        assert engine.scheduler.waves[0].name == "Boss Rush"

    def test_missing_waves_file_falls_back(self, tmp_path):
        engine = main.create_engine(Settings(_env_file=None, waves_file=tmp_path / "none.json"))
        assert engine.scheduler.total_waves == 6
