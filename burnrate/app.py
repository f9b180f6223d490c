"""Flask application factory and command line entry point for claude-burnrate.

This module wires the services together:

- ConfigService: Configuration loading
- ClaudeDataReader: Access to the Claude data directory
- AnalyticsService: Report computation and memo caches
- EventBus: SSE broadcasting of refresh events
- StatsWatcher: Watch mode polling of the stats cache

Usage:
    claude-burnrate              Serve the JSON API
    claude-burnrate --summary    Quick terminal summary
    claude-burnrate --export csv Export data (json|csv|markdown)
"""

import argparse
import logging
import sys

from flask import Flask

from burnrate import __version__
from burnrate.models import AppConfig
from burnrate.routes import register_blueprints
from burnrate.services import (
    REFRESH_EVENT,
    AnalyticsService,
    ClaudeDataReader,
    DataSourceError,
    StatsWatcher,
    export_overview,
    get_config_service,
    get_event_bus,
    render_summary,
)
from burnrate.services.exporter import EXPORT_FORMATS

logger = logging.getLogger(__name__)


def create_app(config_path: str = "config.yaml", config: AppConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Path to the configuration file.
        config: Ready-made configuration; skips loading ``config_path``.

    Returns:
        Configured Flask application.
    """
    if config is None:
        config = get_config_service(config_path).get_config()

    app = Flask(__name__)
    app.config["TESTING"] = False
    app.extensions["config"] = config

    _init_services(app, config)
    register_blueprints(app)

    @app.after_request
    def allow_any_origin(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    return app


def _init_services(app: Flask, config: AppConfig) -> None:
    """Initialize the services and wire them together.

    Args:
        app: Flask application.
        config: Application configuration.
    """
    reader = ClaudeDataReader(config.claude_path, config.indexer)
    app.extensions["reader"] = reader

    analytics = AnalyticsService(config, reader)
    app.extensions["analytics"] = analytics

    event_bus = get_event_bus()
    event_bus.subscribe(REFRESH_EVENT, lambda event: analytics.invalidate())
    app.extensions["event_bus"] = event_bus

    app.extensions["stats_watcher"] = StatsWatcher(
        reader.stats_cache_path, event_bus, interval=config.watch_interval
    )

    logger.info(f"Services initialized for {config.claude_path}")


def start_watcher(app: Flask) -> bool:
    """Start watch mode.

    Returns:
        True if the stats cache exists and is being watched.
    """
    watcher = app.extensions.get("stats_watcher")
    if watcher is None:
        return False
    if not watcher.start():
        logger.warning("Stats cache not found; live updates disabled")
        return False
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-burnrate",
        description="Claude Code usage and cost analytics",
    )
    parser.add_argument("-p", "--port", type=int, help="Server port (default: from config, 3456)")
    parser.add_argument("-s", "--summary", action="store_true", help="Print a terminal summary")
    parser.add_argument(
        "-e",
        "--export",
        choices=[*EXPORT_FORMATS, "md"],
        type=str.lower,
        help="Print the overview as json, csv or markdown",
    )
    parser.add_argument(
        "-w", "--watch", action="store_true", help="Push refresh events when usage data changes"
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = get_config_service(args.config).get_config()
    if args.port is not None:
        config = config.model_copy(update={"port": args.port})
    if args.watch:
        config = config.model_copy(update={"watch": True})

    try:
        if args.summary:
            print(render_summary(AnalyticsService(config).get_overview()))
            return 0
        if args.export:
            print(export_overview(AnalyticsService(config).get_overview(), args.export))
            return 0
    except (DataSourceError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = create_app(config=config)
    if config.watch and start_watcher(app):
        logger.info("Watch mode enabled, clients on /api/events will be told to refresh")

    logger.info(f"claude-burnrate API running at http://{config.host}:{config.port}/api/overview")
    app.run(host=config.host, port=config.port, debug=config.debug, threaded=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
