"""Session log parser.

Streams a session's JSONL log line by line into a SessionRecord. Corrupt
or non-JSON lines are skipped; the log has no framing beyond one object
per line and may be appended to while we read it.
"""

import json
import logging
import re
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from burnrate.models.session import (
    AssistantMessage,
    EditCall,
    EventType,
    SessionRecord,
    ToolCall,
    Turn,
    UserMessage,
    WriteCall,
    WriteEditCalls,
)
from burnrate.models.usage import TokenUsage

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]+>")

WRITE_TOOLS = frozenset({"write"})
EDIT_TOOLS = frozenset({"edit"})


def iter_jsonl_lines(path: str | Path) -> Iterator[dict[str, Any] | None]:
    """Yield one item per non-blank line of a JSONL file.

    The item is the decoded object, or None when the line is not valid JSON
    or not an object. Raises OSError if the file cannot be opened.
    """
    with open(path, encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                yield None
                continue
            yield obj if isinstance(obj, dict) else None


def iter_jsonl_objects(path: str | Path) -> Iterator[dict[str, Any]]:
    """Yield each decodable JSON object from a JSONL file.

    Blank lines, undecodable lines and non-object values are skipped.
    Raises OSError if the file cannot be opened.
    """
    for obj in iter_jsonl_lines(path):
        if obj is not None:
            yield obj


def str_field(mapping: dict[str, Any], key: str) -> str | None:
    """The value at ``key`` if it is a non-empty string, else None."""
    value = mapping.get(key)
    return value if isinstance(value, str) and value else None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp, accepting a trailing Z.

    Timestamps without an offset are taken as UTC.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def strip_tags(text: str) -> str:
    """Remove angle-bracket tags such as command wrappers and trim."""
    return TAG_PATTERN.sub("", text).strip()


def extract_prompt_text(content: Any) -> str:
    """Extract the prompt text from a user message's content.

    String content is used as is; a list of blocks contributes only its
    text blocks, joined with a single space.
    """
    if isinstance(content, str):
        text = content
    elif isinstance(content, list):
        text = " ".join(
            str(block.get("text") or "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        )
    else:
        text = ""
    return strip_tags(text)


def extract_tool_calls(content: Any) -> list[ToolCall]:
    if not isinstance(content, list):
        return []
    calls = []
    for block in content:
        if not isinstance(block, dict) or block.get("type") != "tool_use":
            continue
        tool_input = block.get("input")
        calls.append(
            ToolCall(
                name=str(block.get("name") or ""),
                input=tool_input if isinstance(tool_input, dict) else {},
            )
        )
    return calls


def _assistant_message(event: dict[str, Any]) -> AssistantMessage | None:
    message = event.get("message")
    if not isinstance(message, dict):
        return None
    usage = message.get("usage")
    return AssistantMessage(
        model=str_field(message, "model"),
        usage=TokenUsage.from_api_usage(usage) if isinstance(usage, dict) else None,
        tool_calls=extract_tool_calls(message.get("content")),
        timestamp=str_field(event, "timestamp"),
    )


def _user_message(event: dict[str, Any]) -> UserMessage | None:
    message = event.get("message")
    if not isinstance(message, dict) or event.get("isMeta"):
        return None
    return UserMessage(
        prompt_text=extract_prompt_text(message.get("content")),
        timestamp=str_field(event, "timestamp"),
    )


def parse_session_file(path: str | Path) -> SessionRecord:
    """Parse one session log in full.

    First non-empty sessionId/cwd/gitBranch/permissionMode wins. The time
    span is the min/max over all event timestamps, since lines are not
    guaranteed to be in order.

    Raises:
        OSError: If the file cannot be read.
    """
    path = Path(path)
    session_id = None
    project_path = None
    git_branch = None
    permission_mode = None
    first_ts: datetime | None = None
    last_ts: datetime | None = None
    messages: list[AssistantMessage | UserMessage] = []

    for event in iter_jsonl_objects(path):
        session_id = session_id or str_field(event, "sessionId")
        project_path = project_path or str_field(event, "cwd")
        git_branch = git_branch or str_field(event, "gitBranch")
        permission_mode = permission_mode or str_field(event, "permissionMode")

        ts = parse_timestamp(event.get("timestamp"))
        if ts is not None:
            if first_ts is None or ts < first_ts:
                first_ts = ts
            if last_ts is None or ts > last_ts:
                last_ts = ts

        event_type = EventType.of(event)
        try:
            if event_type is EventType.ASSISTANT:
                msg = _assistant_message(event)
            elif event_type is EventType.USER:
                msg = _user_message(event)
            else:
                msg = None
        except ValidationError as e:
            logger.debug(f"Skipping malformed {event_type.value} event in {path.name}: {e}")
            continue
        if msg is not None:
            messages.append(msg)

    duration = 0
    if first_ts is not None and last_ts is not None:
        duration = int((last_ts - first_ts).total_seconds() * 1000)

    return SessionRecord(
        session_id=session_id or path.stem,
        project_path=project_path,
        git_branch=git_branch,
        permission_mode=permission_mode,
        first_timestamp=first_ts,
        last_timestamp=last_ts,
        duration=duration,
        messages=messages,
    )


def aggregate_session_tokens(record: SessionRecord) -> dict[str, TokenUsage]:
    """Sum token usage per model over a session's assistant messages."""
    totals: dict[str, TokenUsage] = {}
    for msg in record.assistant_messages:
        if msg.usage is None or not msg.model:
            continue
        totals.setdefault(msg.model, TokenUsage()).add(msg.usage)
    return totals


def count_tool_calls(record: SessionRecord) -> int:
    return sum(len(msg.tool_calls) for msg in record.assistant_messages)


def tool_file_path(tool_input: dict[str, Any]) -> str | None:
    """First of the file_path/path keys, if either is a non-empty string."""
    for key in ("file_path", "path"):
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def extract_write_edit_calls(record: SessionRecord) -> WriteEditCalls:
    """Partition a session's file-write and file-edit tool calls."""
    result = WriteEditCalls()

    for msg in record.assistant_messages:
        for tool in msg.tool_calls:
            name = tool.name.lower()
            if name in WRITE_TOOLS:
                result.writes.append(
                    WriteCall(
                        file_path=tool_file_path(tool.input),
                        content=str(tool.input.get("content") or ""),
                        timestamp=msg.timestamp,
                    )
                )
            elif name in EDIT_TOOLS:
                result.edits.append(
                    EditCall(
                        file_path=tool_file_path(tool.input),
                        old_string=str(tool.input.get("old_string") or ""),
                        new_string=str(tool.input.get("new_string") or ""),
                        timestamp=msg.timestamp,
                    )
                )

    return result


def pair_messages(record: SessionRecord) -> list[Turn]:
    """Group each user prompt with the assistant messages that follow it.

    Prompts with no following assistant message are dropped, and
    ``turn_index`` counts kept turns only.
    """
    turns: list[Turn] = []
    msgs = record.messages
    i = 0

    while i < len(msgs):
        msg = msgs[i]
        i += 1
        if not isinstance(msg, UserMessage):
            continue
        responses = []
        while i < len(msgs) and isinstance(msgs[i], AssistantMessage):
            responses.append(msgs[i])
            i += 1
        if responses:
            turns.append(Turn(prompt=msg, responses=responses, turn_index=len(turns)))

    return turns
