"""Pytest configuration and shared fixtures for claude-burnrate tests."""

import json
from pathlib import Path

import pytest

from burnrate.models import AppConfig
from burnrate.services.config_service import reset_config_service
from burnrate.services.event_bus import reset_event_bus

SONNET = "claude-sonnet-4-6"
OPUS = "claude-opus-4-6"


class ClaudeHome:
    """Builds a fake ~/.claude tree in a temporary directory."""

    def __init__(self, root: Path):
        self.root = root
        (root / "projects").mkdir(parents=True, exist_ok=True)

    @staticmethod
    def user(session_id, text, timestamp, cwd="/home/user/app", branch="main", **extra):
        return {
            "type": "user",
            "sessionId": session_id,
            "cwd": cwd,
            "gitBranch": branch,
            "timestamp": timestamp,
            "message": {"role": "user", "content": text},
            **extra,
        }

    @staticmethod
    def assistant(session_id, timestamp, model=SONNET, usage=None, tools=(), **extra):
        usage = usage or {"input_tokens": 100, "output_tokens": 200}
        content = [{"type": "text", "text": "ok"}]
        content += [{"type": "tool_use", "name": name, "input": tool_input} for name, tool_input in tools]
        return {
            "type": "assistant",
            "sessionId": session_id,
            "timestamp": timestamp,
            "message": {"role": "assistant", "model": model, "usage": usage, "content": content},
            **extra,
        }

    def project_dir(self, name: str = "-home-user-app") -> Path:
        path = self.root / "projects" / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def add_session(self, session_id: str, events: list, project: str = "-home-user-app") -> Path:
        path = self.project_dir(project) / f"{session_id}.jsonl"
        path.write_text("\n".join(json.dumps(e) for e in events) + "\n")
        return path

    def write_index(self, entries: list, project: str = "-home-user-app", original_path=None) -> Path:
        data = {"version": 1, "entries": entries}
        if original_path:
            data["originalPath"] = original_path
        path = self.project_dir(project) / "sessions-index.json"
        path.write_text(json.dumps(data))
        return path

    def write_stats(self, **fields) -> Path:
        path = self.root / "stats-cache.json"
        path.write_text(json.dumps(fields))
        return path

    def write_json(self, relative: str, data) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data))
        return path


@pytest.fixture
def claude_home(tmp_path):
    """An empty fake Claude data directory."""
    return ClaudeHome(tmp_path / ".claude")


@pytest.fixture
def config(claude_home):
    """AppConfig pointing at the fake data directory."""
    return AppConfig(claude_dir=str(claude_home.root))


@pytest.fixture
def sample_stats():
    """A stats cache last computed on 2026-01-10."""
    return {
        "version": 2,
        "lastComputedDate": "2026-01-10",
        "dailyActivity": [
            {"date": "2026-01-09", "messageCount": 10, "sessionCount": 2, "toolCallCount": 4},
            {"date": "2026-01-10", "messageCount": 20, "sessionCount": 3, "toolCallCount": 6},
        ],
        "dailyModelTokens": [
            {"date": "2026-01-09", "tokensByModel": {SONNET: 1000}},
            {"date": "2026-01-10", "tokensByModel": {SONNET: 3000}},
        ],
        "modelUsage": {
            SONNET: {
                "inputTokens": 1_000_000,
                "outputTokens": 1_000_000,
                "cacheReadInputTokens": 0,
                "cacheCreationInputTokens": 0,
            }
        },
        "totalSessions": 5,
        "totalMessages": 30,
        "longestSession": {"sessionId": "old", "duration": 1000, "messageCount": 8},
        "firstSessionDate": "2026-01-09",
        "hourCounts": {"10": 3, "14": 2},
    }


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons between tests."""
    reset_config_service()
    reset_event_bus()
    yield
    reset_config_service()
    reset_event_bus()
