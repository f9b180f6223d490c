"""Overview export as JSON, CSV or Markdown."""

import csv
import io
import json

from burnrate.models.overview import Overview
from burnrate.services.pricing import format_cost, format_tokens

EXPORT_FORMATS = ("json", "csv", "markdown")


def export_json(overview: Overview) -> str:
    return json.dumps(overview.to_json_dict(), indent=2)


def export_csv(overview: Overview) -> str:
    """Daily activity followed by the per-model cost breakdown.

    The two tables are separated by a blank line.
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")

    writer.writerow(["date", "messages", "sessions", "tool_calls"])
    for day in overview.daily_activity:
        writer.writerow([day.date, day.message_count, day.session_count, day.tool_call_count])
    out.write("\n")

    writer.writerow(
        ["model", "input_cost", "output_cost", "cache_read_cost", "cache_write_cost", "total_cost"]
    )
    for m in overview.model_breakdown:
        split = m.cost_breakdown
        writer.writerow(
            [
                m.display_name,
                f"{split.input:.4f}",
                f"{split.output:.4f}",
                f"{split.cache_read:.4f}",
                f"{split.cache_write:.4f}",
                f"{m.total_cost:.4f}",
            ]
        )
    return out.getvalue()


def export_markdown(overview: Overview) -> str:
    tc = overview.token_composition
    pct = tc.percentages
    lines = [
        "# Claude Code Usage Report",
        "",
        f"**Period:** {overview.date_range.start} to {overview.date_range.end}",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "| --- | --- |",
        f"| Total Estimated Cost | {format_cost(overview.total_cost)} |",
        f"| Sessions | {overview.total_sessions} |",
        f"| Messages | {overview.total_messages:,} |",
        f"| Tool Calls | {overview.total_tool_calls:,} |",
        f"| Active Days | {overview.active_days} |",
        f"| Avg Cost/Day | {format_cost(overview.avg_cost_per_day)} |",
        "",
        "## Model Breakdown",
        "",
        "| Model | Input | Output | Cache Read | Cache Write | Total |",
        "| --- | ---: | ---: | ---: | ---: | ---: |",
    ]
    for m in overview.model_breakdown:
        split = m.cost_breakdown
        lines.append(
            f"| {m.display_name} | {format_cost(split.input)} | {format_cost(split.output)} "
            f"| {format_cost(split.cache_read)} | {format_cost(split.cache_write)} "
            f"| {format_cost(m.total_cost)} |"
        )
    lines += [
        "",
        "## Token Composition",
        "",
        "| Type | Count | % |",
        "| --- | ---: | ---: |",
        f"| Input | {format_tokens(tc.input)} | {pct.input}% |",
        f"| Output | {format_tokens(tc.output)} | {pct.output}% |",
        f"| Cache Read | {format_tokens(tc.cache_read)} | {pct.cache_read}% |",
        f"| Cache Write | {format_tokens(tc.cache_write)} | {pct.cache_write}% |",
    ]
    return "\n".join(lines) + "\n"


def export_overview(overview: Overview, fmt: str) -> str:
    """Render the overview in ``fmt``.

    Raises:
        ValueError: If the format is unknown or the overview has no data.
    """
    if overview.empty:
        raise ValueError(overview.error or "No usage data to export")

    fmt = fmt.lower()
    if fmt == "json":
        return export_json(overview)
    if fmt == "csv":
        return export_csv(overview)
    if fmt in ("markdown", "md"):
        return export_markdown(overview)
    raise ValueError(f"Unknown format: {fmt}. Use json, csv, or markdown.")
