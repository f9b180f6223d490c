"""Rule-based cost and usage recommendations."""

from burnrate.models.overview import Overview
from burnrate.models.reports import Recommendation
from burnrate.models.session import SessionSummary

SEVERITY_ORDER = {"high": 0, "medium": 1, "low": 2}
LATE_NIGHT_HOURS = range(0, 6)


def _cache_rules(overview: Overview) -> list[Recommendation]:
    tc = overview.token_composition
    recs = []

    if tc.total > 0:
        write_ratio = tc.cache_write / tc.total
        if write_ratio > 0.15:
            recs.append(
                Recommendation(
                    severity="medium",
                    title="High Cache Creation Overhead",
                    description=(
                        f"{write_ratio * 100:.1f}% of your tokens are cache creation tokens. "
                        "This suggests many short sessions or frequent context resets."
                    ),
                    fix=(
                        "Try longer sessions instead of many short ones. Cache write tokens "
                        "cost more than cache read tokens."
                    ),
                )
            )

    if tc.cache_read > 0 and tc.cache_write > 0:
        hit_ratio = tc.cache_read / (tc.cache_read + tc.cache_write)
        if hit_ratio < 0.5:
            recs.append(
                Recommendation(
                    severity="high",
                    title="Low Cache Hit Rate",
                    description=(
                        f"Your cache hit rate is {hit_ratio * 100:.1f}%. More than half your "
                        "cache tokens are being written rather than read."
                    ),
                    fix=(
                        "Keep sessions open longer and use /continue to resume existing "
                        "sessions instead of starting new ones."
                    ),
                )
            )

    if tc.output > 0 and tc.input > 0:
        output_ratio = tc.output / (tc.input + tc.output)
        if output_ratio > 0.7:
            recs.append(
                Recommendation(
                    severity="low",
                    title="Output-Heavy Usage",
                    description=(
                        f"{output_ratio * 100:.0f}% of your non-cache tokens are output tokens, "
                        "which cost 5x more than input tokens."
                    ),
                    fix=(
                        "Be more specific in prompts to reduce output length. Ask for targeted "
                        "changes rather than full file rewrites."
                    ),
                )
            )

    return recs


def _model_rule(overview: Overview) -> Recommendation | None:
    opus_cost = sum(m.total_cost for m in overview.model_breakdown if "opus" in m.model_id)
    if overview.total_cost <= 0 or opus_cost / overview.total_cost <= 0.9:
        return None
    # Sonnet runs at a fifth of the Opus price.
    savings = opus_cost * 0.8
    return Recommendation(
        severity="medium",
        title="Consider Using Sonnet for Simple Tasks",
        description=(
            f"{opus_cost / overview.total_cost * 100:.0f}% of your spend is on Opus models. "
            "Sonnet is 5x cheaper and handles many tasks well."
        ),
        fix=(
            'Use "claude --model sonnet" for straightforward tasks like formatting, simple '
            "refactors or documentation."
        ),
        estimated_savings=f"Up to ${savings:.2f} if 80% of tasks used Sonnet",
    )


def _activity_rules(overview: Overview, sessions: list[SessionSummary]) -> list[Recommendation]:
    recs = []

    if len(overview.daily_activity) > 7:
        counts = [d.message_count for d in overview.daily_activity]
        avg = sum(counts) / len(counts)
        peak = max(counts)
        if peak > avg * 5 and peak > 500:
            recs.append(
                Recommendation(
                    severity="low",
                    title="Highly Variable Usage",
                    description=(
                        f"Your peak day had {peak:,} messages vs an average of {round(avg):,}. "
                        "Spiky usage may indicate complex debugging sessions."
                    ),
                    fix=(
                        "Break complex problems into smaller tasks. Use /compact to reduce "
                        "context when sessions get long."
                    ),
                )
            )

    total_hours = sum(overview.hour_counts.values())
    late = sum(overview.hour_counts.get(str(h), 0) for h in LATE_NIGHT_HOURS)
    if total_hours > 0 and late / total_hours > 0.2:
        recs.append(
            Recommendation(
                severity="low",
                title="Significant Late Night Usage",
                description=(
                    f"{late / total_hours * 100:.0f}% of your sessions are between midnight "
                    "and 6 AM."
                ),
                fix="Consider scheduling complex tasks for your peak focus hours.",
            )
        )

    if len(sessions) > 5:
        short_ratio = sum(1 for s in sessions if s.messages <= 3) / len(sessions)
        if short_ratio > 0.3:
            recs.append(
                Recommendation(
                    severity="low",
                    title="Many Short Sessions",
                    description=(
                        f"{short_ratio * 100:.0f}% of your sessions have 3 or fewer messages. "
                        "Short sessions have higher per-message cost due to cache warm-up."
                    ),
                    fix=(
                        "Use /continue to resume sessions. Keep sessions open for related "
                        "follow-up questions."
                    ),
                )
            )

    if overview.total_messages > 100 and overview.total_tool_calls > 0:
        tool_ratio = overview.total_tool_calls / overview.total_messages
        if tool_ratio < 0.1:
            recs.append(
                Recommendation(
                    severity="low",
                    title="Low Tool Usage",
                    description=(
                        f"Only {tool_ratio * 100:.1f}% tool call rate. The assistant is most "
                        "effective when it can read and write files and run commands."
                    ),
                    fix="Allow Edit, Write and Bash in your permission settings for trusted projects.",
                )
            )

    return recs


def get_recommendations(
    overview: Overview, sessions: list[SessionSummary]
) -> list[Recommendation]:
    """Recommendations ordered high, medium, low."""
    if overview.empty:
        return []

    recs = _cache_rules(overview)
    model_rec = _model_rule(overview)
    if model_rec is not None:
        recs.append(model_rec)
    recs.extend(_activity_rules(overview, sessions))

    recs.sort(key=lambda r: SEVERITY_ORDER.get(r.severity, len(SEVERITY_ORDER)))
    return recs
