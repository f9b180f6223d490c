"""Which tools the assistant calls and how often."""

from collections.abc import Iterable

from burnrate.models.reports import ToolCount, ToolUsage
from burnrate.models.session import Filters, SessionRecord

READ_TOOLS = frozenset({"read", "grep", "glob", "ls"})
WRITE_TOOLS = frozenset({"write", "edit", "notebookedit", "multiedit"})

TOOL_USAGE_HELP = (
    "Read, Grep and Glob are exploration tools; Write and Edit modify code; Bash runs "
    "commands such as tests, builds and git. Roughly three reads per write means the "
    "assistant gathers enough context before changing code."
)


def get_tool_usage(records: Iterable[SessionRecord], filters: Filters | None = None) -> ToolUsage:
    """Count tool calls across sessions.

    Args:
        records: Fully parsed sessions.
        filters: Optional date/project filters applied per session.
    """
    counts: dict[str, int] = {}
    total = 0
    sessions = 0
    reads = 0
    writes = 0

    for record in records:
        if filters is not None and filters.is_active:
            if not filters.matches(record.date, record.project_path):
                continue
        sessions += 1

        for msg in record.assistant_messages:
            for tool in msg.tool_calls:
                counts[tool.name] = counts.get(tool.name, 0) + 1
                total += 1
                name = tool.name.lower()
                if name in READ_TOOLS:
                    reads += 1
                elif name in WRITE_TOOLS:
                    writes += 1

    top_tools = sorted(
        (
            ToolCount(
                name=name,
                count=count,
                percentage=round(count / total * 100, 1) if total else 0.0,
            )
            for name, count in counts.items()
        ),
        key=lambda t: t.count,
        reverse=True,
    )

    if writes:
        ratio: float | None = round(reads / writes, 1)
    else:
        ratio = None if reads else 0.0

    return ToolUsage(
        tool_counts=counts,
        top_tools=top_tools,
        total_tool_calls=total,
        session_count=sessions,
        avg_tools_per_session=round(total / sessions, 1) if sessions else 0.0,
        read_write_ratio=ratio,
        read_count=reads,
        write_count=writes,
        help_text=TOOL_USAGE_HELP,
    )
