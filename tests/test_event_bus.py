"""Tests for EventBus."""

import json

import pytest

from burnrate.services.event_bus import (
    REFRESH_EVENT,
    Event,
    EventBus,
    get_event_bus,
    reset_event_bus,
)


@pytest.fixture
def event_bus():
    """Create an EventBus instance."""
    return EventBus(queue_size=2)


class TestEvent:
    """Tests for Event dataclass."""

    def test_to_sse(self):
        """SSE framing carries the type, the data with its timestamp, and the id."""
        event = Event(event_type="refresh", data={"file": "stats-cache.json"}, id="7")
        lines = event.to_sse().split("\n")

        assert lines[0] == "event: refresh"
        payload = json.loads(lines[1][len("data: "):])
        assert payload["file"] == "stats-cache.json"
        assert payload["timestamp"] == event.timestamp.isoformat()
        assert lines[2] == "id: 7"
        assert event.to_sse().endswith("\n\n")

    def test_to_sse_without_id(self):
        """No id line when the event has none."""
        assert "id:" not in Event(event_type="refresh", data={}).to_sse()


class TestEventBusSubscription:
    """Tests for listeners."""

    def test_subscribe_and_receive(self, event_bus):
        """Events are delivered to subscribers of their type."""
        received = []
        event_bus.subscribe(REFRESH_EVENT, received.append)
        event_bus.subscribe("other", lambda e: pytest.fail("wrong listener"))

        event = event_bus.emit(REFRESH_EVENT, {"file": "x"})

        assert received == [event]
        assert event.data == {"file": "x"}

    def test_wildcard_listener(self, event_bus):
        """"*" receives every event."""
        received = []
        event_bus.subscribe("*", received.append)

        event_bus.emit("a")
        event_bus.emit("b")

        assert [e.event_type for e in received] == ["a", "b"]

    def test_ids_increase(self, event_bus):
        """Each emitted event gets the next id."""
        assert event_bus.emit("a").id == "1"
        assert event_bus.emit("a").id == "2"

    def test_failing_listener_does_not_block_others(self, event_bus):
        """A listener exception is logged, later listeners still run."""
        received = []

        def broken(event):
            raise RuntimeError("boom")

        event_bus.subscribe("a", broken)
        event_bus.subscribe("a", received.append)
        event_bus.emit("a")

        assert len(received) == 1


class TestEventBusStream:
    """Tests for SSE client streams."""

    def test_stream_starts_with_connected_comment(self, event_bus):
        """The first chunk confirms the connection and registers the client."""
        stream = event_bus.get_sse_stream(timeout=0.01)

        assert next(stream) == ": connected\n\n"
        assert event_bus.client_count == 1

        stream.close()
        assert event_bus.client_count == 0

    def test_stream_delivers_events(self, event_bus):
        """Events emitted after connecting are streamed."""
        stream = event_bus.get_sse_stream(timeout=0.01)
        next(stream)

        event_bus.emit(REFRESH_EVENT, {"file": "stats-cache.json"})
        chunk = next(stream)

        assert chunk.startswith("event: refresh\n")
        stream.close()

    def test_keep_alive_on_timeout(self, event_bus):
        """An idle stream yields a keep-alive comment."""
        stream = event_bus.get_sse_stream(timeout=0.01)
        next(stream)

        assert next(stream) == ": keep-alive\n\n"
        stream.close()

    def test_stalled_client_is_dropped(self, event_bus):
        """A client whose queue is full is disconnected."""
        stream = event_bus.get_sse_stream(timeout=0.01)
        next(stream)

        for _ in range(3):
            event_bus.emit("a")

        assert event_bus.client_count == 0
        stream.close()


class TestGlobalEventBus:
    """Tests for the global bus."""

    def test_singleton_and_reset(self):
        bus = get_event_bus()
        assert get_event_bus() is bus
        reset_event_bus()
        assert get_event_bus() is not bus
