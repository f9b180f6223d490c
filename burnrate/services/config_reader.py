"""Readers for the assistant's own settings files.

Covers MCP server definitions, custom commands, hooks, plugins and
permission allow-lists. Every file here is optional, and one that cannot be
read or decoded is treated as absent.
"""

import json
import logging
from pathlib import Path
from typing import Any

from burnrate.models.reports import (
    ClaudeSetup,
    HookEventCount,
    HookSummary,
    NamedCount,
    PluginSummary,
)

logger = logging.getLogger(__name__)

GLOBAL_MCP_FILE = ".mcp.json"
SETTINGS_FILE = "settings.json"
PROJECT_SETTINGS_FILE = Path(".claude") / "settings.local.json"


def read_json_safe(path: str | Path) -> Any:
    """Decode a JSON file, or None if it is missing or invalid."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Skipping config file {path}: {e}")
        return None


def _mcp_servers(data: Any) -> dict[str, Any]:
    if isinstance(data, dict) and isinstance(data.get("mcpServers"), dict):
        return data["mcpServers"]
    return {}


def read_mcp_servers_raw(
    claude_dir: str | Path, project_paths: list[str] | None = None
) -> dict[str, dict[str, Any]]:
    """Collect MCP server definitions by name.

    Sources, in priority order: the global .mcp.json, the global
    settings.json, then each project's own .mcp.json. The first definition
    of a name wins. Each definition gains a ``source`` key.
    """
    claude_dir = Path(claude_dir)
    sources: list[tuple[str, Any]] = [
        ("global (.mcp.json)", read_json_safe(claude_dir / GLOBAL_MCP_FILE)),
        ("global (settings.json)", read_json_safe(claude_dir / SETTINGS_FILE)),
    ]
    for project_path in project_paths or []:
        sources.append(
            (f"project ({project_path})", read_json_safe(Path(project_path) / GLOBAL_MCP_FILE))
        )

    servers: dict[str, dict[str, Any]] = {}
    for source, data in sources:
        for name, definition in _mcp_servers(data).items():
            if name in servers or not isinstance(definition, dict):
                continue
            servers[name] = {**definition, "source": source}
    return servers


def _list_md_names(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(p.stem for p in directory.iterdir() if p.suffix == ".md")


def read_claude_config(claude_dir: str | Path) -> ClaudeSetup:
    """Summarize the user's MCP servers, commands, hooks and plugins."""
    claude_dir = Path(claude_dir)
    settings = read_json_safe(claude_dir / SETTINGS_FILE)
    if not isinstance(settings, dict):
        settings = {}

    mcp_names: list[str] = []
    for data in (read_json_safe(claude_dir / GLOBAL_MCP_FILE), settings):
        for name in _mcp_servers(data):
            if name not in mcp_names:
                mcp_names.append(name)

    commands = _list_md_names(claude_dir / "commands")

    hooks = HookSummary()
    raw_hooks = settings.get("hooks")
    if isinstance(raw_hooks, dict):
        for event, entries in raw_hooks.items():
            if isinstance(entries, list) and entries:
                hooks.events.append(HookEventCount(event=event, count=len(entries)))
                hooks.total += len(entries)

    plugins = PluginSummary()
    raw_plugins = settings.get("enabledPlugins")
    if isinstance(raw_plugins, dict):
        enabled = [name for name, on in raw_plugins.items() if on is True]
        plugins.total = len(raw_plugins)
        plugins.enabled = len(enabled)
        # "voicemode@mbailey" -> "Voicemode"
        plugins.names = [name.split("@")[0].capitalize() for name in enabled]

    return ClaudeSetup(
        mcp_servers=NamedCount(total=len(mcp_names), names=mcp_names),
        commands=NamedCount(total=len(commands), names=commands),
        hooks=hooks,
        plugins=plugins,
    )


def _allow_list(data: Any) -> list[str] | None:
    if not isinstance(data, dict):
        return None
    permissions = data.get("permissions")
    if not isinstance(permissions, dict) or not isinstance(permissions.get("allow"), list):
        return None
    return [str(rule) for rule in permissions["allow"]]


def read_permission_settings(
    claude_dir: str | Path, project_paths: list[str] | None = None
) -> dict[str, list[str]]:
    """Permission allow-lists keyed by scope.

    The key is "global" for the user's settings.json and the project path
    for each project's .claude/settings.local.json. Scopes without an
    allow-list are omitted.
    """
    result: dict[str, list[str]] = {}

    global_allow = _allow_list(read_json_safe(Path(claude_dir) / SETTINGS_FILE))
    if global_allow is not None:
        result["global"] = global_allow

    for project_path in project_paths or []:
        allow = _allow_list(read_json_safe(Path(project_path) / PROJECT_SETTINGS_FILE))
        if allow is not None:
            result[project_path] = allow

    return result
