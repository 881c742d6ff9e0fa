"""SimulationRunner — a headless frame clock for SimulationEngine.

The engine never measures time itself.  The runner is one possible host:
a daemon thread that wakes ``tick_rate`` times per second, measures the
real elapsed time with a monotonic clock, and passes it to
``engine.tick(dt)``.  It stops on its own once the session is finished.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .engine import SimulationEngine

# Upper bound on a single dt, so a stalled host doesn't teleport enemies
MAX_FRAME_DT = 0.25


class SimulationRunner:
    """Drives an engine from a background thread at a fixed wake-up rate."""

    def __init__(self, engine: SimulationEngine, tick_rate: float = 60.0,
                 max_dt: float = MAX_FRAME_DT) -> None:
        if tick_rate <= 0:
            raise ValueError("tick_rate must be positive")
        self._engine = engine
        self._interval = 1.0 / tick_rate
        self._max_dt = max_dt
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def tick_rate(self) -> float:
        return 1.0 / self._interval

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="sim-tick", daemon=True)
            self._thread.start()
        logger.info(f"Simulation runner started ({1.0 / self._interval:.0f} Hz)")

    def stop(self) -> None:
        self._stop.set()
        with self._lock:
            thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout=2.0)
            logger.info("Simulation runner stopped")

    def _loop(self) -> None:
        last = time.monotonic()
        while not self._stop.wait(self._interval):
            now = time.monotonic()
            dt = min(now - last, self._max_dt)
            last = now
            self._engine.tick(dt)
            if self._release_if_finished():
                logger.info("Session finished; runner idle")
                break

    def _release_if_finished(self) -> bool:
        """Give up the thread slot if the session is over.

        Checked under the runner lock so a reset followed by ``start()``
        either sees the slot free or keeps this loop ticking.
        """
        with self._lock:
            if not self._engine.finished:
                return False
            if self._thread is threading.current_thread():
                self._thread = None
            return True
