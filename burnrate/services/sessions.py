"""Per-session summaries built from the session index."""

import logging

from burnrate.models.session import Filters, IndexEntry, SessionSummary
from burnrate.services.pricing import calculate_cost
from burnrate.services.session_parser import (
    aggregate_session_tokens,
    count_tool_calls,
    parse_session_file,
)
from burnrate.services.session_reader import ClaudeDataReader

logger = logging.getLogger(__name__)


def summarize_entry(entry: IndexEntry) -> SessionSummary:
    """Summarize one indexed session.

    The log is parsed in full for token usage, cost and duration. If it
    cannot be read, the summary carries the index data alone.
    """
    summary = SessionSummary(
        session_id=entry.session_id,
        date=entry.created[:10] if entry.created else None,
        project=entry.project_path or None,
        summary=entry.summary or None,
        first_prompt=entry.first_prompt or None,
        messages=entry.message_count,
        git_branch=entry.git_branch or None,
        started_at=entry.created,
    )
    if not entry.full_path:
        return summary

    try:
        record = parse_session_file(entry.full_path)
    except OSError as e:
        logger.debug(f"Using index data only for {entry.session_id}: {e}")
        return summary

    tokens_by_model = aggregate_session_tokens(record)
    summary.tokens_by_model = tokens_by_model
    summary.cost = sum(
        calculate_cost(usage, model).total_cost for model, usage in tokens_by_model.items()
    )
    summary.duration = record.duration
    summary.tool_calls = count_tool_calls(record)
    summary.permission_mode = record.permission_mode
    summary.git_branch = summary.git_branch or record.git_branch
    if record.first_timestamp is not None:
        summary.started_at = record.first_timestamp.isoformat()
        if summary.date is None:
            summary.date = record.date
    return summary


def build_all_sessions(reader: ClaudeDataReader) -> list[SessionSummary]:
    """Summarize every known session, newest first with undated ones last."""
    sessions = [summarize_entry(entry) for entry in reader.get_all_session_indexes()]
    dated = sorted((s for s in sessions if s.date), key=lambda s: s.date, reverse=True)
    undated = [s for s in sessions if not s.date]
    return dated + undated


def apply_filters(sessions: list[SessionSummary], filters: Filters | None) -> list[SessionSummary]:
    if filters is None or not filters.is_active:
        return sessions
    return [s for s in sessions if filters.matches(s.date, s.project)]


def get_unique_projects(sessions: list[SessionSummary]) -> list[str]:
    return sorted({s.project for s in sessions if s.project})
