"""Insights that need every session log parsed in full.

ROI weighs produced code against spend. The context-window and
wasted-spend analyses walk the assistant messages of each session.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from burnrate.models.config import ThresholdConfig
from burnrate.models.overview import Overview
from burnrate.models.reports import Contributions, Insight
from burnrate.models.session import SessionRecord
from burnrate.services.pricing import format_cost, format_tokens
from burnrate.services.session_parser import tool_file_path

logger = logging.getLogger(__name__)

CONTEXT_NEAR_LIMIT_TOKENS = 150_000
CONTEXT_CRITICAL_TOKENS = 180_000
COMPACTION_DROP = 0.7
RETRY_EDIT_COUNT = 3
REPEATED_COMMAND_COUNT = 2
# Rough Opus output rate used to size retry waste, dollars per million tokens.
WASTE_OUTPUT_RATE = 75.0
WASTE_SHARE = 0.3

EDIT_TOOLS = {"write", "edit"}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def roi_insight(overview: Overview, contributions: Contributions | None) -> Insight | None:
    """Productivity index from lines, commits and files per dollar."""
    if contributions is None or overview.empty or overview.total_cost <= 0:
        return None

    total_lines = contributions.total_lines_written + contributions.total_lines_edited
    if total_lines <= 0:
        return None

    lines_per_dollar = total_lines / overview.total_cost
    commits_per_dollar = contributions.co_authored_commits / overview.total_cost
    files_per_session = (
        contributions.total_files_touched / overview.total_sessions
        if overview.total_sessions
        else 0.0
    )

    # 500 lines, 2 commits per dollar and 10 files per session each score 100.
    lines_score = min(100.0, lines_per_dollar / 500 * 100)
    commits_score = min(100.0, commits_per_dollar / 2 * 100)
    files_score = min(100.0, files_per_session / 10 * 100)
    index = round(lines_score * 0.5 + commits_score * 0.3 + files_score * 0.2)

    if index >= 70:
        label = "High"
    elif index >= 40:
        label = "Medium"
    else:
        label = "Low"

    return Insight(
        severity="warning" if index < 40 else "info",
        title=f"ROI Score: {index}/100 ({label}), {round(lines_per_dollar)} lines per dollar",
        description=(
            f"{total_lines:,} total lines written/edited for {format_cost(overview.total_cost)}. "
            f"{contributions.co_authored_commits:,} co-authored commits. "
            f"{contributions.total_files_touched:,} files touched across "
            f"{overview.total_sessions} sessions."
        ),
        detail=(
            f"Lines per dollar: {round(lines_per_dollar)}\n"
            f"Commits per dollar: {commits_per_dollar:.2f}\n"
            f"Files per session: {files_per_session:.1f}\n\n"
            "Productivity Index Breakdown:\n"
            f"  Lines score: {round(lines_score)}/100 (weight: 50%)\n"
            f"  Commits score: {round(commits_score)}/100 (weight: 30%)\n"
            f"  Files score: {round(files_score)}/100 (weight: 20%)\n"
            f"  Total: {index}/100"
        ),
        help_text=(
            "Tangible output per dollar spent: lines written and edited, co-authored commits "
            "and files touched. Substantive coding tasks with clear requirements score higher "
            "than exploration."
        ),
    )


@dataclass
class ContextStats:
    """Running totals for the context-window analysis."""

    near_limit: int = CONTEXT_NEAR_LIMIT_TOKENS
    critical: int = CONTEXT_CRITICAL_TOKENS
    sessions: int = 0
    near_limit_sessions: int = 0
    critical_sessions: int = 0
    compactions: int = 0
    peak_total: int = 0
    peak_count: int = 0
    growth_total: int = 0
    growth_count: int = 0

    def add(self, record: SessionRecord) -> None:
        messages = record.assistant_messages
        if len(messages) < 2:
            return

        self.sessions += 1
        prev = 0
        peak = 0
        for msg in messages:
            if msg.usage is None:
                continue
            size = (
                msg.usage.cache_read_input_tokens
                + msg.usage.cache_creation_input_tokens
                + msg.usage.input_tokens
            )
            peak = max(peak, size)
            if prev > 0 and size < prev * COMPACTION_DROP:
                self.compactions += 1
            if prev > 0 and size > prev:
                self.growth_total += size - prev
                self.growth_count += 1
            prev = size

        if peak > 0:
            self.peak_total += peak
            self.peak_count += 1
        if peak > self.near_limit:
            self.near_limit_sessions += 1
        if peak > self.critical:
            self.critical_sessions += 1

    def to_insight(self) -> Insight | None:
        if self.sessions < 2:
            return None

        avg_peak = round(self.peak_total / self.peak_count) if self.peak_count else 0
        avg_growth = round(self.growth_total / self.growth_count) if self.growth_count else 0
        near = format_tokens(self.near_limit)
        critical = format_tokens(self.critical)

        return Insight(
            severity="warning" if self.near_limit_sessions or self.critical_sessions else "info",
            title=(
                f"Context window: {_plural(self.near_limit_sessions, 'session')} near limit, "
                f"avg peak {format_tokens(avg_peak)}"
            ),
            description=(
                f"Out of {self.sessions} sessions analyzed, {self.near_limit_sessions} exceeded "
                f"{near} tokens and {self.critical_sessions} exceeded {critical}. "
                f"{self.compactions} compaction events detected. "
                f"Avg context growth: {format_tokens(avg_growth)}/turn."
            ),
            detail=(
                f"Sessions analyzed: {self.sessions}\n"
                f"Near limit (>{near} tokens): {self.near_limit_sessions}\n"
                f"Critical (>{critical} tokens): {self.critical_sessions}\n"
                f"Compaction events detected: {self.compactions}\n"
                f"Average peak context: {format_tokens(avg_peak)}\n"
                f"Average growth per turn: {format_tokens(avg_growth)}"
            ),
            help_text=(
                "Every message resends the conversation so far, so context grows each turn. "
                "Near the limit the assistant loses early context. Use /compact for long "
                "sessions, start fresh when switching topics and keep CLAUDE.md lean."
            ),
        )


@dataclass
class WasteStats:
    """Running totals for retry pattern detection."""

    sessions_checked: int = 0
    flagged_sessions: int = 0
    retry_files: int = 0
    repeated_commands: int = 0
    wasted_cost: float = 0.0
    examples: list[str] = field(default_factory=list)

    def add(self, record: SessionRecord) -> None:
        messages = record.assistant_messages
        if len(messages) < 3:
            return

        self.sessions_checked += 1
        edits: dict[str, int] = {}
        commands: dict[str, int] = {}
        output_cost = 0.0

        for msg in messages:
            if msg.usage is not None:
                output_cost += msg.usage.output_tokens / 1e6 * WASTE_OUTPUT_RATE
            for call in msg.tool_calls:
                name = call.name.lower()
                if name in EDIT_TOOLS:
                    path = tool_file_path(call.input) or "unknown"
                    edits[path] = edits.get(path, 0) + 1
                elif name == "bash":
                    command = call.input.get("command") or ""
                    if command:
                        commands[command] = commands.get(command, 0) + 1

        flagged = False
        for path, count in edits.items():
            if count >= RETRY_EDIT_COUNT:
                self.retry_files += 1
                flagged = True
                if len(self.examples) < 3:
                    self.examples.append(f"{path} edited {count} times")
        for count in commands.values():
            if count >= REPEATED_COMMAND_COUNT:
                self.repeated_commands += 1
                flagged = True

        if flagged:
            self.flagged_sessions += 1
            self.wasted_cost += output_cost * WASTE_SHARE

    def to_insight(self) -> Insight | None:
        if self.sessions_checked < 3 or self.flagged_sessions == 0:
            return None

        files = "file was" if self.retry_files == 1 else "files were"
        cmds = "command was" if self.repeated_commands == 1 else "commands were"
        detail = (
            f"Sessions with retries: {self.flagged_sessions} of {self.sessions_checked}\n"
            f"Files edited 3+ times: {self.retry_files}\n"
            f"Repeated bash commands: {self.repeated_commands}\n"
            f"Estimated wasted cost: {format_cost(self.wasted_cost)}"
        )
        if self.examples:
            detail += "\n\nExamples:\n" + "\n".join(f"  • {e}" for e in self.examples)

        return Insight(
            severity="warning" if self.flagged_sessions >= 3 else "info",
            title=(
                f"{_plural(self.flagged_sessions, 'session')} had retry patterns, "
                f"est. {format_cost(self.wasted_cost)} wasted"
            ),
            description=(
                f"{self.retry_files} {files} edited 3+ times and {self.repeated_commands} bash "
                f"{cmds} repeated in sessions that showed struggle patterns."
            ),
            detail=detail,
            help_text=(
                "Sessions where the same file was edited three or more times or the same "
                "command ran repeatedly. Each retry resends the full context. Specific error "
                "messages and smaller steps reduce retries."
            ),
        )


def get_advanced_insights(
    overview: Overview,
    contributions: Contributions | None,
    records: Iterable[SessionRecord],
    thresholds: ThresholdConfig | None = None,
) -> list[Insight]:
    """ROI, context-window and wasted-spend insights.

    Args:
        overview: The unfiltered overview.
        contributions: Code contribution totals, or None to skip ROI.
        records: Every session parsed in full. Consumed in a single pass.
        thresholds: Context-window limits; defaults when omitted.
    """
    thresholds = thresholds or ThresholdConfig()
    insights = []

    roi = roi_insight(overview, contributions)
    if roi is not None:
        insights.append(roi)

    context = ContextStats(
        near_limit=thresholds.context_near_limit_tokens,
        critical=thresholds.context_critical_tokens,
    )
    waste = WasteStats()
    for record in records:
        context.add(record)
        waste.add(record)

    for insight in (context.to_insight(), waste.to_insight()):
        if insight is not None:
            insights.append(insight)

    logger.debug(f"Built {len(insights)} advanced insights")
    return insights
