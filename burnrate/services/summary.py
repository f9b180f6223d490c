"""Plain-text usage summary for the terminal."""

from burnrate.models.overview import Overview
from burnrate.services.pricing import format_cost, format_tokens

RULE = "─" * 50

NO_DATA_MESSAGE = """
No Claude Code data found.

This tool analyzes your Claude Code usage.
Install Claude Code and start a conversation to see your analytics.

  https://docs.anthropic.com/en/docs/claude-code
"""


def _section(title: str) -> list[str]:
    return [RULE, f"  {title}", RULE, ""]


def render_summary(overview: Overview) -> str:
    if overview.empty:
        return NO_DATA_MESSAGE

    lines = [""]
    lines += _section("claude-burnrate: Usage Summary")
    lines += [
        f"  Total Estimated Cost:  {format_cost(overview.total_cost)}",
        f"  Active Days:           {overview.active_days}",
        f"  Avg Cost/Day:          {format_cost(overview.avg_cost_per_day)}",
        "",
        f"  Sessions:              {overview.total_sessions}",
        f"  Messages:              {overview.total_messages:,}",
        f"  Tool Calls:            {overview.total_tool_calls:,}",
        "",
    ]

    lines += _section("Model Breakdown")
    for m in overview.model_breakdown:
        split = m.cost_breakdown
        lines += [
            f"  {m.display_name:<25} {format_cost(m.total_cost):>12}",
            f"    Input:      {format_cost(split.input):>10}    Output:     {format_cost(split.output):>10}",
            f"    Cache Read: {format_cost(split.cache_read):>10}    Cache Write:{format_cost(split.cache_write):>10}",
            "",
        ]

    tc = overview.token_composition
    pct = tc.percentages
    lines += _section("Token Composition")
    lines += [
        f"  Input:       {format_tokens(tc.input):>10}  ({pct.input}%)",
        f"  Output:      {format_tokens(tc.output):>10}  ({pct.output}%)",
        f"  Cache Read:  {format_tokens(tc.cache_read):>10}  ({pct.cache_read}%)",
        f"  Cache Write: {format_tokens(tc.cache_write):>10}  ({pct.cache_write}%)",
        f"  Total:       {format_tokens(tc.total):>10}",
        "",
        RULE,
        f"  Date Range: {overview.date_range.start} to {overview.date_range.end}",
    ]
    if overview.supplemented:
        lines.append("  Includes sessions newer than the stats cache")
    lines += [RULE, ""]
    return "\n".join(lines)
