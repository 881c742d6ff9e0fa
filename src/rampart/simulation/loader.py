"""Load wave definitions from a JSON file.

Format::

    {
      "waves": [
        {"name": "Opening", "enemies": ["basic", "basic", "fast"]},
        {"enemies": ["tank", "boss"]}
      ]
    }

``name`` is optional and defaults to "Wave N".  The loader is stateless:
it reads a file and returns WaveConfigs, validating every archetype name
against the enemy table so a typo fails at startup rather than mid-game.
"""

from __future__ import annotations

import json
from pathlib import Path

from .enemy import ENEMY_TYPES
from .waves import WaveConfig


def parse_waves(data: dict) -> list[WaveConfig]:
    """Build WaveConfigs from an already-decoded JSON document."""
    raw = data.get("waves")
    if not isinstance(raw, list):
        raise ValueError("Wave file must contain a 'waves' list")

    waves: list[WaveConfig] = []
    for i, entry in enumerate(raw, start=1):
        enemies = entry.get("enemies")
        if not isinstance(enemies, list):
            raise ValueError(f"Wave {i}: 'enemies' must be a list")
        unknown = [e for e in enemies if e not in ENEMY_TYPES]
        if unknown:
            raise ValueError(f"Wave {i}: unknown enemy archetypes {unknown}")
        waves.append(WaveConfig(entry.get("name") or f"Wave {i}", tuple(enemies)))
    return waves


def load_waves(path: str | Path) -> list[WaveConfig]:
    """Read and validate a wave file."""
    with open(path, encoding="utf-8") as fh:
        return parse_waves(json.load(fh))
