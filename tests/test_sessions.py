"""Tests for the session list service."""

import pytest

from burnrate.models.session import Filters, IndexEntry, SessionSummary
from burnrate.services.session_reader import ClaudeDataReader
from burnrate.services.sessions import (
    apply_filters,
    build_all_sessions,
    get_unique_projects,
    summarize_entry,
)


class TestSummarizeEntry:
    """Tests for summarize_entry."""

    def test_full_parse_enriches_index_data(self, claude_home):
        """Token usage, cost, duration and tools come from the log itself."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.user("s1", "hi", "2026-01-01T10:00:00Z", permissionMode="plan"),
                claude_home.assistant(
                    "s1",
                    "2026-01-01T10:00:30Z",
                    usage={"output_tokens": 1_000_000},
                    tools=[("Read", {"file_path": "/a"})],
                ),
            ],
        )
        entry = IndexEntry(
            session_id="s1",
            full_path=str(path),
            first_prompt="hi",
            message_count=2,
            created="2026-01-01T10:00:00Z",
            project_path="/home/user/app",
        )
        summary = summarize_entry(entry)

        assert summary.date == "2026-01-01"
        assert summary.cost == pytest.approx(15.0)
        assert summary.duration == 30_000
        assert summary.tool_calls == 1
        assert summary.permission_mode == "plan"
        assert summary.git_branch == "main"
        assert summary.tokens_by_model["claude-sonnet-4-6"].output_tokens == 1_000_000

    def test_unreadable_log_keeps_index_data(self, tmp_path):
        """A missing log file leaves the index-only summary."""
        entry = IndexEntry(
            session_id="gone",
            full_path=str(tmp_path / "gone.jsonl"),
            summary="Refactor",
            message_count=7,
            created="2026-02-01T08:00:00Z",
        )
        summary = summarize_entry(entry)

        assert summary.messages == 7
        assert summary.summary == "Refactor"
        assert summary.cost == 0
        assert summary.date == "2026-02-01"


class TestBuildAllSessions:
    """Tests for build_all_sessions ordering."""

    def test_newest_first_undated_last(self, claude_home):
        """Sessions sort by date descending with undated ones at the end."""
        claude_home.add_session("old", [claude_home.user("old", "a", "2026-01-01T10:00:00Z")])
        claude_home.add_session("new", [claude_home.user("new", "b", "2026-03-01T10:00:00Z")])
        claude_home.add_session("undated", [{"type": "user", "message": {"content": "c"}}])

        sessions = build_all_sessions(ClaudeDataReader(claude_home.root))
        assert [s.session_id for s in sessions] == ["new", "old", "undated"]


class TestFilters:
    """Tests for session filtering."""

    @pytest.fixture
    def sessions(self):
        return [
            SessionSummary(session_id="a", date="2026-01-01", project="/p1"),
            SessionSummary(session_id="b", date="2026-01-15", project="/p2"),
            SessionSummary(session_id="c", date=None, project="/p1"),
        ]

    def test_no_filters(self, sessions):
        """None or empty filters keep everything."""
        assert apply_filters(sessions, None) == sessions
        assert apply_filters(sessions, Filters()) == sessions

    def test_date_bounds_are_inclusive(self, sessions):
        """Both bounds include their own day and exclude undated sessions."""
        filters = Filters(from_date="2026-01-01", to_date="2026-01-01")
        assert [s.session_id for s in apply_filters(sessions, filters)] == ["a"]

    def test_project_filter_is_exact(self, sessions):
        """Projects must match exactly; undated sessions pass a project-only filter."""
        assert [s.session_id for s in apply_filters(sessions, Filters(project="/p1"))] == ["a", "c"]

    def test_filters_accept_query_aliases(self):
        """The from/to aliases populate the bounds."""
        filters = Filters.model_validate({"from": "2026-01-01", "to": "2026-02-01"})
        assert filters.from_date == "2026-01-01"
        assert filters.is_active

    def test_unique_projects(self, sessions):
        """Distinct, sorted project paths."""
        assert get_unique_projects(sessions) == ["/p1", "/p2"]
