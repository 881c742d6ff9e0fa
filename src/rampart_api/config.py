"""Configuration management using Pydantic settings."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "RAMPART"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Play area (world units, one per canvas pixel)
    play_width: float = 800.0
    play_height: float = 600.0
    cell_size: float = 40.0

    # Economy
    starting_money: int = 150
    starting_lives: int = 20

    # Waves
    wave_interval: float = 5.0     # seconds between waves
    spawn_interval: float = 1.0    # seconds between spawns within a wave
    waves_file: Optional[Path] = None  # JSON wave definitions; built-in waves if unset

    # Headless frame clock
    simulation_autorun: bool = True
    tick_rate: float = 60.0        # runner wake-ups per second


settings = Settings()
