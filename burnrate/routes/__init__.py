"""Flask routes for claude-burnrate."""

from burnrate.routes.api import api_bp
from burnrate.routes.events import events_bp

__all__ = [
    "api_bp",
    "events_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app.

    Args:
        app: The Flask application instance.
    """
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")
