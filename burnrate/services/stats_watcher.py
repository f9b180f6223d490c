"""Watch mode: notice stats cache rewrites and announce them."""

import logging
import threading
from pathlib import Path

from burnrate.services.event_bus import REFRESH_EVENT, EventBus

logger = logging.getLogger(__name__)


class StatsWatcher:
    """Polls the stats cache's modification time in a daemon thread.

    On each change a ``refresh`` event is emitted on the bus. Listeners
    subscribed to that event (cache invalidation) and SSE clients receive
    it. Best effort only: if the file does not exist when the watcher
    starts, it stays off.
    """

    def __init__(self, path: str | Path, event_bus: EventBus, interval: float = 1.0):
        self.path = Path(path)
        self.event_bus = event_bus
        self.interval = interval
        self._last_mtime: float | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    def start(self) -> bool:
        """Start polling.

        Returns:
            True if the watcher is running.
        """
        with self._lock:
            if self._thread is not None:
                return True

            self._last_mtime = self._mtime()
            if self._last_mtime is None:
                logger.debug(f"Not watching {self.path}: file does not exist")
                return False

            self._stop_event.clear()
            self._thread = threading.Thread(target=self._poll_loop, daemon=True)
            self._thread.start()
            logger.info(f"Watching {self.path} for changes")
            return True

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()
            if self._thread:
                self._thread.join(timeout=5.0)
                self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    def check_once(self) -> bool:
        """Compare the current mtime with the last seen one.

        Returns:
            True if a change was detected and announced.
        """
        mtime = self._mtime()
        if mtime is None or mtime == self._last_mtime:
            return False

        self._last_mtime = mtime
        logger.info(f"{self.path.name} changed, refreshing")
        self.event_bus.emit(REFRESH_EVENT, {"file": self.path.name})
        return True

    def _mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.check_once()
