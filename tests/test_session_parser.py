"""Tests for the session log parser."""

from datetime import datetime, timezone

from burnrate.models.session import AssistantMessage, SessionRecord, UserMessage
from burnrate.services.session_parser import (
    aggregate_session_tokens,
    count_tool_calls,
    extract_prompt_text,
    extract_write_edit_calls,
    pair_messages,
    parse_session_file,
)


class TestExtractPromptText:
    """Tests for extract_prompt_text."""

    def test_string_content_is_stripped_of_tags(self):
        """Tag markup is removed from string prompts."""
        assert extract_prompt_text("<command-name>/fix</command-name> now") == "/fix now"

    def test_only_text_blocks_are_joined(self):
        """Non-text blocks are ignored."""
        content = [
            {"type": "text", "text": "first"},
            {"type": "tool_result", "content": "ignored"},
            {"type": "text", "text": "second"},
        ]
        assert extract_prompt_text(content) == "first second"

    def test_other_content_is_empty(self):
        """Missing or odd content yields an empty prompt."""
        assert extract_prompt_text(None) == ""


class TestParseSessionFile:
    """Tests for parse_session_file."""

    def test_skips_corrupt_lines(self, claude_home):
        """Undecodable lines never abort the parse."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.user("s1", "hello", "2026-01-01T10:00:00Z"),
                claude_home.assistant("s1", "2026-01-01T10:00:05Z"),
            ],
        )
        with open(path, "a") as f:
            f.write("{not json\n\n[1, 2]\n")

        record = parse_session_file(path)
        assert record.message_count == 2

    def test_oddly_typed_fields_do_not_abort(self, claude_home):
        """Decodable events with wrongly typed values are tolerated line by line."""
        path = claude_home.add_session(
            "s1",
            [
                {"type": "summary", "sessionId": 7, "cwd": ["x"]},
                claude_home.user("s1", "hello", "2026-01-01T10:00:00Z"),
                {**claude_home.assistant("s1", "unused"), "timestamp": 1767225600},
                {
                    "type": "assistant",
                    "timestamp": "2026-01-01T10:00:05Z",
                    "message": {"model": 42, "usage": {"input_tokens": "lots"}, "content": []},
                },
            ],
        )

        record = parse_session_file(path)

        assert record.session_id == "s1"
        assert record.project_path == "/home/user/app"
        assert len(record.user_messages) == 1
        assert len(record.assistant_messages) == 1
        assert record.assistant_messages[0].timestamp is None
        assert record.assistant_messages[0].model == "claude-sonnet-4-6"
        assert record.duration == 5000

    def test_naive_timestamps_are_utc(self, claude_home):
        """Timestamps without an offset still take part in the time span."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.user("s1", "hello", "2026-01-01T10:00:00"),
                claude_home.assistant("s1", "2026-01-01T10:00:30Z"),
            ],
        )

        record = parse_session_file(path)

        assert record.first_timestamp == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert record.duration == 30_000

    def test_first_metadata_wins_and_span_uses_min_max(self, claude_home):
        """Later sessionId/cwd values are ignored; duration spans all timestamps."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.user("s1", "hello", "2026-01-01T10:00:10Z", cwd="/a"),
                claude_home.assistant("other", "2026-01-01T10:00:00Z", cwd="/b"),
                {"type": "summary", "timestamp": "2026-01-01T10:01:00Z", "permissionMode": "plan"},
            ],
        )
        record = parse_session_file(path)

        assert record.session_id == "s1"
        assert record.project_path == "/a"
        assert record.permission_mode == "plan"
        assert record.duration == 60_000
        assert record.date == "2026-01-01"

    def test_meta_user_events_are_not_messages(self, claude_home):
        """isMeta user events are bookkeeping, not prompts."""
        path = claude_home.add_session(
            "s1", [claude_home.user("s1", "caveat", "2026-01-01T10:00:00Z", isMeta=True)]
        )
        assert parse_session_file(path).messages == []

    def test_session_id_falls_back_to_file_name(self, claude_home):
        """A log without a sessionId is named after its file."""
        path = claude_home.add_session("abc", [{"type": "user", "message": {"content": "hi"}}])
        assert parse_session_file(path).session_id == "abc"


class TestAggregation:
    """Tests for token, tool and write/edit aggregation."""

    def test_tokens_are_summed_per_model(self, claude_home):
        """Assistant usage is summed per model."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.assistant("s1", "2026-01-01T10:00:00Z", usage={"input_tokens": 10}),
                claude_home.assistant("s1", "2026-01-01T10:00:01Z", usage={"input_tokens": 5, "output_tokens": 1}),
                claude_home.assistant("s1", "2026-01-01T10:00:02Z", model="claude-opus-4-6", usage={"output_tokens": 3}),
            ],
        )
        totals = aggregate_session_tokens(parse_session_file(path))

        assert totals["claude-sonnet-4-6"].input_tokens == 15
        assert totals["claude-sonnet-4-6"].output_tokens == 1
        assert totals["claude-opus-4-6"].output_tokens == 3

    def test_write_and_edit_calls(self, claude_home):
        """Write and Edit calls are partitioned with their paths."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.assistant(
                    "s1",
                    "2026-01-01T10:00:00Z",
                    tools=[
                        ("Write", {"file_path": "/a.py", "content": "x\ny"}),
                        ("Edit", {"path": "/b.py", "old_string": "a", "new_string": "b"}),
                        ("Read", {"file_path": "/c.py"}),
                    ],
                )
            ],
        )
        record = parse_session_file(path)
        calls = extract_write_edit_calls(record)

        assert count_tool_calls(record) == 3
        assert [w.file_path for w in calls.writes] == ["/a.py"]
        assert [e.file_path for e in calls.edits] == ["/b.py"]


class TestPairMessages:
    """Tests for pairing prompts with responses."""

    def test_consecutive_responses_attach_to_preceding_prompt(self, claude_home):
        """A user prompt owns every assistant message up to the next prompt."""
        path = claude_home.add_session(
            "s1",
            [
                claude_home.user("s1", "one", "2026-01-01T10:00:00Z"),
                claude_home.assistant("s1", "2026-01-01T10:00:01Z"),
                claude_home.assistant("s1", "2026-01-01T10:00:02Z"),
                claude_home.user("s1", "two", "2026-01-01T10:00:03Z"),
                claude_home.user("s1", "three", "2026-01-01T10:00:04Z"),
                claude_home.assistant("s1", "2026-01-01T10:00:05Z"),
            ],
        )
        turns = pair_messages(parse_session_file(path))

        assert [t.prompt.prompt_text for t in turns] == ["one", "three"]
        assert [len(t.responses) for t in turns] == [2, 1]
        assert [t.turn_index for t in turns] == [0, 1]

    def test_leading_assistant_messages_are_ignored(self):
        """Responses without a prompt before them form no turn."""
        record = SessionRecord(
            session_id="s",
            messages=[AssistantMessage(), UserMessage(prompt_text="q")],
        )
        assert pair_messages(record) == []
