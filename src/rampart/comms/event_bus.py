"""EventBus — thread-safe pub/sub between the simulation and its readers.

The engine, combat system, and wave scheduler publish here; renderers,
the API, and tests subscribe.  Every subscriber gets its own bounded
queue of ``{"type": ..., "data": {...}}`` messages.
"""

from __future__ import annotations

import queue
import threading

DEFAULT_QUEUE_SIZE = 256


class EventBus:
    """Simple thread-safe pub/sub for pushing events to subscribers."""

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, *event_types: str) -> queue.Queue:
        """Subscribe to events. Returns a Queue that receives messages.

        With no arguments the queue receives every event; otherwise only
        the named event types are delivered.
        """
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        types = frozenset(event_types) if event_types else None
        with self._lock:
            self._subscribers.append((q, types))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, t) for s, t in self._subscribers if s is not q]

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            for q, types in self._subscribers:
                if types is not None and event_type not in types:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    # Drop oldest so terminal events (game_over) are never lost
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(msg)
                    except queue.Full:
                        pass
