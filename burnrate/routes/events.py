"""Event routes for claude-burnrate.

Provides the Server-Sent Events stream used by watch mode.
"""

from flask import Blueprint, Response, current_app

from burnrate.services.event_bus import EventBus, get_event_bus

events_bp = Blueprint("events", __name__)


def _get_event_bus() -> EventBus:
    return current_app.extensions.get("event_bus") or get_event_bus()


@events_bp.route("/events")
def sse_events():
    """Server-Sent Events endpoint for live dashboard updates.

    Clients receive a ``refresh`` event whenever the stats cache changes,
    plus keep-alive comments while idle.

    Returns:
        SSE stream with events in format:
        event: <event_type>
        data: <json_payload>
    """
    event_bus = _get_event_bus()

    return Response(
        event_bus.get_sse_stream(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
