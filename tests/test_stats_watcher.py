"""Tests for StatsWatcher."""

import os

from burnrate.services.event_bus import REFRESH_EVENT, EventBus
from burnrate.services.stats_watcher import StatsWatcher


class TestStatsWatcher:
    """Tests for change detection."""

    def test_start_without_file(self, tmp_path):
        """Watching a missing file is a no-op."""
        watcher = StatsWatcher(tmp_path / "stats-cache.json", EventBus())

        assert watcher.start() is False
        assert not watcher.is_running

    def test_check_once_emits_refresh(self, tmp_path):
        """A changed mtime emits one refresh event naming the file."""
        path = tmp_path / "stats-cache.json"
        path.write_text("{}")
        bus = EventBus()
        received = []
        bus.subscribe(REFRESH_EVENT, received.append)

        watcher = StatsWatcher(path, bus, interval=60)
        assert watcher.start()
        try:
            assert watcher.check_once() is False

            stat = path.stat()
            os.utime(path, (stat.st_atime, stat.st_mtime + 10))

            assert watcher.check_once() is True
            assert watcher.check_once() is False
        finally:
            watcher.stop()

        assert len(received) == 1
        assert received[0].data == {"file": "stats-cache.json"}
        assert not watcher.is_running

    def test_deleted_file_is_not_a_change(self, tmp_path):
        """A vanished file emits nothing."""
        path = tmp_path / "stats-cache.json"
        path.write_text("{}")
        watcher = StatsWatcher(path, EventBus())
        watcher._last_mtime = path.stat().st_mtime
        path.unlink()

        assert watcher.check_once() is False
