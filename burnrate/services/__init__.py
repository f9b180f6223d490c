"""Services for claude-burnrate."""

from burnrate.services.advanced_insights import get_advanced_insights
from burnrate.services.analytics_cache import CacheEntry, MemoCache
from burnrate.services.analytics_service import AnalyticsService
from burnrate.services.config_reader import (
    read_claude_config,
    read_mcp_servers_raw,
    read_permission_settings,
)
from burnrate.services.config_service import (
    ConfigService,
    get_config_service,
    reset_config_service,
)
from burnrate.services.event_bus import (
    REFRESH_EVENT,
    Event,
    EventBus,
    get_event_bus,
    reset_event_bus,
)
from burnrate.services.exporter import export_overview
from burnrate.services.overview import build_overview
from burnrate.services.pricing import (
    calculate_cost,
    calculate_total_cost,
    format_cost,
    format_tokens,
    resolve_pricing,
)
from burnrate.services.security import (
    SecurityAuditor,
    assess_mcp_risk,
    classify_bash_command,
    detect_anomalies,
    detect_secrets_in_command,
    is_sensitive_path,
)
from burnrate.services.session_parser import pair_messages, parse_session_file
from burnrate.services.session_reader import ClaudeDataReader, DataSourceError
from burnrate.services.stats_parser import parse_stats_cache
from burnrate.services.stats_watcher import StatsWatcher
from burnrate.services.summary import render_summary

__all__ = [
    "AnalyticsService",
    "CacheEntry",
    "ClaudeDataReader",
    "ConfigService",
    "DataSourceError",
    "Event",
    "EventBus",
    "MemoCache",
    "REFRESH_EVENT",
    "SecurityAuditor",
    "StatsWatcher",
    "assess_mcp_risk",
    "build_overview",
    "calculate_cost",
    "calculate_total_cost",
    "classify_bash_command",
    "detect_anomalies",
    "detect_secrets_in_command",
    "export_overview",
    "format_cost",
    "format_tokens",
    "get_advanced_insights",
    "get_config_service",
    "get_event_bus",
    "is_sensitive_path",
    "pair_messages",
    "parse_session_file",
    "parse_stats_cache",
    "read_claude_config",
    "read_mcp_servers_raw",
    "read_permission_settings",
    "render_summary",
    "reset_config_service",
    "reset_event_bus",
    "resolve_pricing",
]
