"""Change notifications pushed to dashboard clients over SSE.

Watch mode emits a ``refresh`` event whenever the stats cache changes on
disk; in-process listeners (cache invalidation) and connected browsers both
receive it.
"""

import json
import logging
import queue
import threading
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)

REFRESH_EVENT = "refresh"


@dataclass
class Event:
    """A notification to broadcast."""

    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=datetime.now)
    id: str | None = None

    def to_sse(self) -> str:
        """Format as one SSE message, terminated by a blank line."""
        lines = [f"event: {self.event_type}"] if self.event_type else []
        payload = {**self.data, "timestamp": self.timestamp.isoformat()}
        lines.append(f"data: {json.dumps(payload)}")
        if self.id:
            lines.append(f"id: {self.id}")
        return "\n".join(lines) + "\n\n"


class EventBus:
    """Fan-out of events to listeners and SSE client queues."""

    def __init__(self, queue_size: int = 100):
        """Initialize the bus.

        Args:
            queue_size: Max undelivered events per SSE client before the
                client is dropped.
        """
        self._queue_size = queue_size
        self._listeners: dict[str, list[Callable[[Event], None]]] = {}
        self._client_queues: list[queue.Queue] = []
        self._lock = threading.Lock()
        self._counter = 0

    def subscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        """Call ``callback`` for every event of ``event_type`` ("*" for all)."""
        with self._lock:
            self._listeners.setdefault(event_type, []).append(callback)

    def emit(self, event_type: str, data: dict | None = None) -> Event:
        """Notify listeners and queue the event for every SSE client."""
        with self._lock:
            self._counter += 1
            event = Event(event_type=event_type, data=data or {}, id=str(self._counter))
            listeners = self._listeners.get(event_type, []) + self._listeners.get("*", [])

            stalled = []
            for q in self._client_queues:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    stalled.append(q)
            for q in stalled:
                self._client_queues.remove(q)
                logger.debug("Dropped stalled SSE client")

        for callback in listeners:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Listener for {event_type} failed: {e}")

        return event

    def get_sse_stream(self, timeout: float = 30.0) -> Generator[str, None, None]:
        """Yield SSE messages for events emitted after the client connects.

        Args:
            timeout: Seconds without events before a keep-alive comment.
        """
        client_queue: queue.Queue = queue.Queue(maxsize=self._queue_size)
        with self._lock:
            self._client_queues.append(client_queue)

        try:
            yield ": connected\n\n"
            while True:
                try:
                    event = client_queue.get(timeout=timeout)
                    yield event.to_sse()
                except queue.Empty:
                    yield ": keep-alive\n\n"
        finally:
            with self._lock:
                if client_queue in self._client_queues:
                    self._client_queues.remove(client_queue)

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._client_queues)


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the global EventBus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global EventBus (for testing)."""
    global _event_bus
    _event_bus = None
