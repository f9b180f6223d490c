"""Plain-language insights about spend and usage habits.

Each rule inspects the overview, the session list or the user's setup and
may contribute one Insight. Rules that lack enough data contribute nothing.
"""

from datetime import date

from burnrate.models.overview import Overview
from burnrate.models.reports import ClaudeSetup, Insight
from burnrate.models.session import SessionSummary
from burnrate.services.pricing import format_cost, format_tokens, resolve_pricing

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
LARGE_CONTEXT_TOKENS = 66_000
LATE_HOURS = (23, 0, 1, 2, 3, 4, 5)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _label(session: SessionSummary) -> str:
    return session.summary or session.first_prompt or "untitled"


def _pct(part: float, whole: float) -> int:
    return round(part / whole * 100) if whole else 0


def setup_overview(setup: ClaudeSetup | None) -> Insight | None:
    if setup is None:
        return None

    parts = []
    detail = []

    parts.append(_plural(setup.mcp_servers.total, "MCP server"))
    if setup.mcp_servers.total:
        detail.append(f"MCP Servers ({setup.mcp_servers.total}):")
        detail.extend(f"  • {name}" for name in setup.mcp_servers.names)
    else:
        detail.append("MCP Servers: None configured")

    detail.append("")
    if setup.plugins.total:
        parts.append(f"{_plural(setup.plugins.enabled, 'active plugin')}")
        detail.append(f"Plugins ({setup.plugins.enabled} active of {setup.plugins.total}):")
        detail.extend(f"  • {name}" for name in setup.plugins.names)
    else:
        parts.append("0 plugins")
        detail.append("Plugins: None installed")

    detail.append("")
    if setup.commands.total:
        parts.append(_plural(setup.commands.total, "custom command"))
        detail.append(f"Custom Commands ({setup.commands.total}):")
        detail.extend(f"  • /{name}" for name in setup.commands.names)
    else:
        parts.append("0 commands")
        detail.append("Custom Commands: None (add .md files to ~/.claude/commands/)")

    detail.append("")
    if setup.hooks.total:
        parts.append(
            f"{_plural(setup.hooks.total, 'hook')} across {_plural(len(setup.hooks.events), 'event')}"
        )
        detail.append(f"Hooks ({setup.hooks.total}):")
        detail.extend(f"  • {h.event}: {_plural(h.count, 'hook')}" for h in setup.hooks.events)
    else:
        parts.append("0 hooks")
        detail.append("Hooks: None configured (add hooks in ~/.claude/settings.json)")

    active = (
        setup.mcp_servers.total + setup.plugins.enabled + setup.commands.total + setup.hooks.total
    )
    if setup.mcp_servers.total == 0 and setup.hooks.total == 0:
        advice = "Adding MCP servers or hooks could extend the assistant's capabilities."
    else:
        advice = "Your environment is well-configured."

    return Insight(
        title=f"Your setup: {', '.join(parts)}",
        description=(
            f"You have {_plural(active, 'active configuration')} across MCP servers, plugins, "
            f"custom commands and hooks. {advice}"
        ),
        detail="\n".join(detail),
        help_text=(
            "MCP servers add external tools, plugins add agents and commands, custom commands "
            "are reusable slash commands and hooks run shell commands on events."
        ),
    )


def cost_driver(overview: Overview) -> Insight | None:
    """The token category that accounts for the most spend."""
    if not overview.model_breakdown:
        return None

    categories = {
        "Cache Write": ("Building and caching conversation context", 0.0),
        "Cache Read": ("Reusing previously cached context", 0.0),
        "Output": ("The assistant's actual responses", 0.0),
        "Input": ("Direct (uncached) input tokens", 0.0),
    }
    total = 0.0
    for m in overview.model_breakdown:
        split = m.cost_breakdown
        for name, cost in (
            ("Cache Write", split.cache_write),
            ("Cache Read", split.cache_read),
            ("Output", split.output),
            ("Input", split.input),
        ):
            desc, running = categories[name]
            categories[name] = (desc, running + cost)
        total += m.total_cost
    if total <= 0:
        return None

    ranked = sorted(categories.items(), key=lambda c: c[1][1], reverse=True)
    top_name, (top_desc, top_cost) = ranked[0]
    top_pct = _pct(top_cost, total)

    lines = []
    for name, (_, cost) in ranked:
        pct = _pct(cost, total)
        filled = max(1, round(pct / 3))
        bar = "█" * filled + "░" * max(0, 33 - filled)
        lines.append(f"{name:<12} {format_cost(cost):>10}  {bar}  {pct}%")

    return Insight(
        severity="warning" if top_pct >= 40 else "info",
        title=f"{top_name} is your biggest cost driver at {format_cost(top_cost)} ({top_pct}%)",
        description=(
            f"{top_desc}. Out of {format_cost(total)} total: "
            + ", ".join(
                f"{name} {format_cost(cost)} ({_pct(cost, total)}%)" for name, (_, cost) in ranked
            )
            + "."
        ),
        detail="\n".join(lines),
        help_text=(
            "Total cost split into cache writes, cache reads, output and uncached input. "
            "The dominant category is the one worth targeting."
        ),
    )


def cache_savings(overview: Overview) -> Insight | None:
    """What cache reads would have cost as regular input."""
    tc = overview.token_composition
    if tc.cache_read <= 0 or not overview.model_breakdown:
        return None

    actual = 0.0
    hypothetical = 0.0
    for m in overview.model_breakdown:
        pricing = resolve_pricing(m.model_id)
        actual += m.cache_read_input_tokens / 1e6 * pricing.cache_read
        hypothetical += m.cache_read_input_tokens / 1e6 * pricing.input

    savings = hypothetical - actual
    if savings <= 0:
        return None

    total = sum(m.total_cost for m in overview.model_breakdown)
    without_cache = total + savings
    return Insight(
        title=(
            f"Caching saved you {format_cost(savings)} "
            f"({_pct(savings, without_cache)}% of what you'd have paid)"
        ),
        description=(
            f"Without prompt caching, your {format_tokens(tc.cache_read)} cache-read tokens "
            f"would have cost {format_cost(hypothetical)} instead of {format_cost(actual)}. "
            f"Your total bill would have been {format_cost(without_cache)} instead of "
            f"{format_cost(total)}."
        ),
        detail=(
            f"Your savings: {format_cost(hypothetical)} (without cache) - "
            f"{format_cost(actual)} (with cache) = {format_cost(savings)} saved"
        ),
        help_text="Cached context is read at a tenth of the regular input price.",
    )


def cost_concentration(sessions: list[SessionSummary]) -> Insight | None:
    """How few sessions make up half the spend."""
    if len(sessions) < 5:
        return None
    ranked = sorted(sessions, key=lambda s: s.cost, reverse=True)
    total = sum(s.cost for s in ranked)
    if total <= 0:
        return None

    cumulative = 0.0
    count = 0
    for s in ranked:
        cumulative += s.cost
        count += 1
        if cumulative >= total * 0.5:
            break
    if count > len(sessions) * 0.2:
        return None

    top_lines = "\n".join(
        f"{i}. {format_cost(s.cost)} - {_label(s)} ({s.messages} msgs)"
        for i, s in enumerate(ranked[:5], start=1)
    )
    return Insight(
        title=(
            f"Just {_plural(count, 'conversation')} used {_pct(cumulative, total)}% "
            "of all your spend"
        ),
        description=(
            f"Your top {count} sessions out of {len(sessions)} account for "
            f"{format_cost(cumulative)} of your {format_cost(total)} total. The most expensive "
            f"session alone cost {format_cost(ranked[0].cost)} ({_label(ranked[0])})."
        ),
        detail=f"Top sessions:\n{top_lines}",
        help_text="The number of most expensive sessions it takes to reach half your total cost.",
    )


def output_ratio(overview: Overview) -> Insight | None:
    tc = overview.token_composition
    if tc.total <= 0:
        return None
    output_pct = tc.output / tc.total * 100
    if output_pct >= 5:
        return None
    return Insight(
        title=f"{output_pct:.1f}% of your tokens are the assistant actually writing",
        description=(
            f"Out of {format_tokens(tc.total)} total tokens, only {format_tokens(tc.output)} are "
            f"output. The rest is context: {format_tokens(tc.cache_read)} cache reads "
            f"({tc.cache_read / tc.total * 100:.1f}%) and {format_tokens(tc.cache_write)} cache "
            f"writes ({tc.cache_write / tc.total * 100:.1f}%)."
        ),
        detail="Most tokens go toward maintaining conversation context; this is normal.",
        help_text="Share of all tokens that are generated output rather than context.",
    )


def peak_day(overview: Overview) -> Insight | None:
    if len(overview.daily_activity) < 7:
        return None

    counts = [0] * 7
    for d in overview.daily_activity:
        try:
            day = date.fromisoformat(d.date[:10])
        except ValueError:
            continue
        counts[(day.weekday() + 1) % 7] += d.message_count

    top = counts.index(max(counts))
    weekday = sum(counts[1:6])
    weekend = counts[0] + counts[6]
    if weekend > weekday * 0.5:
        weekend_note = "You also have significant weekend usage."
    else:
        weekend_note = "Most of your usage is on weekdays."

    return Insight(
        title=f"You use the assistant the most on {DAY_NAMES[top]}s",
        description=(
            f"{_pct(counts[top], sum(counts))}% of your messages ({counts[top]:,}) happen on "
            f"{DAY_NAMES[top]}s. {weekend_note}"
        ),
        detail="\n".join(f"{name}: {counts[i]:,} messages" for i, name in enumerate(DAY_NAMES)),
        help_text="Messages per day of the week.",
    )


def model_choice(sessions: list[SessionSummary]) -> Insight | None:
    """Short sessions that ran on Opus."""
    if len(sessions) < 3:
        return None
    simple = [
        s for s in sessions if s.messages <= 6 and any("opus" in m for m in s.tokens_by_model)
    ]
    if len(simple) < 3:
        return None

    cost = sum(s.cost for s in simple)
    sonnet_cost = cost * 0.2
    examples = "\n".join(f"• {_label(s)}" for s in simple[:3])
    return Insight(
        severity="warning",
        title=f"{len(simple)} simple conversations used Opus unnecessarily",
        description=(
            f"These sessions had 6 or fewer messages but used Opus ({format_cost(cost)} total). "
            f"Sonnet would have cost ~{format_cost(sonnet_cost)}, saving "
            f"{format_cost(cost - sonnet_cost)}."
        ),
        detail=(
            f"Examples:\n{examples}\n\n"
            'Tip: Use "claude --model sonnet" for quick questions or simple refactors.'
        ),
        help_text="Short Opus sessions where Sonnet, at a fifth of the price, would likely do.",
    )


def project_concentration(sessions: list[SessionSummary]) -> Insight | None:
    if len(sessions) < 3:
        return None
    costs: dict[str, float] = {}
    for s in sessions:
        key = s.project or "Unknown"
        costs[key] = costs.get(key, 0.0) + s.cost
    total = sum(costs.values())
    if total <= 0 or len(costs) < 2:
        return None

    ranked = sorted(costs.items(), key=lambda c: c[1], reverse=True)
    top_project, top_cost = ranked[0]
    pct = _pct(top_cost, total)
    if pct < 50:
        return None

    def short(path: str) -> str:
        return path.rstrip("/").split("/")[-1] or path

    runner_up = ""
    if len(ranked) > 2:
        runner_up = f" The next highest is {short(ranked[1][0])} at {format_cost(ranked[1][1])}."
    return Insight(
        title=f"{pct}% of your spend went to one project: {short(top_project)}",
        description=(
            f"{top_project} consumed {format_cost(top_cost)} out of {format_cost(total)} total."
            f"{runner_up}"
        ),
        detail="\n".join(
            f"{short(p)}: {format_cost(c)} ({_pct(c, total)}%)" for p, c in ranked[:5]
        ),
        help_text="How spend is distributed across projects.",
    )


def message_escalation(sessions: list[SessionSummary]) -> Insight | None:
    """Per-message cost in long sessions against short ones."""
    if len(sessions) < 5:
        return None
    short = [s for s in sessions if 0 < s.messages <= 10 and s.cost > 0]
    long = [s for s in sessions if s.messages > 20 and s.cost > 0]
    if len(short) < 3 or len(long) < 2:
        return None

    short_avg = sum(s.cost for s in short) / sum(s.messages for s in short)
    long_avg = sum(s.cost for s in long) / sum(s.messages for s in long)
    if short_avg <= 0:
        return None
    multiplier = long_avg / short_avg
    if multiplier <= 1.5:
        return None

    return Insight(
        severity="warning",
        title=f"Each message costs {multiplier:.1f}x more in long conversations",
        description=(
            f"In sessions with 20+ messages, each message costs ~{format_cost(long_avg)} vs "
            f"{format_cost(short_avg)} in shorter sessions, because context grows every turn."
        ),
        detail=(
            f"Short sessions (≤10 msgs): {format_cost(short_avg)}/message average\n"
            f"Long sessions (20+ msgs): {format_cost(long_avg)}/message average\n\n"
            "Tip: Use /compact in long sessions, or start a new session when switching topics."
        ),
        help_text="Every message resends the conversation so far, so later messages cost more.",
    )


def large_contexts(sessions: list[SessionSummary]) -> Insight | None:
    if len(sessions) < 3:
        return None
    count = 0
    cost = 0.0
    for s in sessions:
        for model, tokens in s.tokens_by_model.items():
            if tokens.cache_creation_input_tokens > LARGE_CONTEXT_TOKENS:
                count += 1
                cost += tokens.cache_creation_input_tokens / 1e6 * resolve_pricing(model).cache_write
                break
    if count < 2:
        return None
    return Insight(
        title=f"{count} conversations started with 66K+ tokens of context",
        description=(
            f"These sessions had large initial cache creation costs ({format_cost(cost)} total), "
            "typically from large CLAUDE.md files, project context or pasted content."
        ),
        detail=(
            "If you pay for the same context repeatedly across sessions, consider:\n"
            "• Using /continue to resume sessions\n"
            "• Keeping CLAUDE.md concise\n"
            "• Reducing pasted content size"
        ),
        help_text="Sessions with unusually large upfront cache writes.",
    )


def cache_efficiency(overview: Overview) -> Insight | None:
    tc = overview.token_composition
    cache_total = tc.cache_read + tc.cache_write
    if cache_total == 0:
        return None
    hit_rate = tc.cache_read / cache_total * 100

    if hit_rate < 80:
        return Insight(
            severity="warning",
            title=f"Your cache hit rate is {hit_rate:.0f}%",
            description=(
                f"For every {format_tokens(tc.cache_read)} tokens read from cache, "
                f"{format_tokens(tc.cache_write)} were written. A higher hit rate means more "
                "reuse of cached context and lower costs."
            ),
            detail=(
                "To improve:\n• Use longer sessions instead of many short ones\n"
                "• Use /continue to resume previous sessions"
            ),
            help_text="Cache reads divided by all cache tokens.",
        )
    return Insight(
        title=f"Your cache hit rate is {hit_rate:.0f}%, that's efficient",
        description=(
            f"{format_tokens(tc.cache_read)} tokens were served from cache vs "
            f"{format_tokens(tc.cache_write)} cache writes."
        ),
        detail="Cache reads cost about a tenth of cache writes.",
        help_text="Cache reads divided by all cache tokens.",
    )


def cost_per_message(overview: Overview, sessions: list[SessionSummary]) -> Insight | None:
    if len(sessions) < 3 or overview.total_cost <= 0 or overview.total_messages <= 0:
        return None
    avg = overview.total_cost / overview.total_messages

    qualifying = [s for s in sessions if s.messages >= 3 and s.cost > 0]
    detail = (
        f"{format_cost(overview.total_cost)} total / {overview.total_messages:,} messages = "
        f"{format_cost(avg)}/message"
    )
    if qualifying:
        priciest = max(qualifying, key=lambda s: s.cost / s.messages)
        cheapest = min(qualifying, key=lambda s: s.cost / s.messages)
        high = priciest.cost / priciest.messages
        low = cheapest.cost / cheapest.messages
        detail += (
            f"\nRange: {format_cost(low)}/msg (cheapest) to {format_cost(high)}/msg "
            f"(most expensive), a {high / low:.0f}x difference"
            f'\nMost expensive: {format_cost(high)}/msg in "{_label(priciest)[:80]}" '
            f"({priciest.messages} msgs, {format_cost(priciest.cost)} total)"
            f'\nCheapest: {format_cost(low)}/msg in "{_label(cheapest)[:80]}" '
            f"({cheapest.messages} msgs, {format_cost(cheapest.cost)} total)"
        )

    return Insight(
        title=f"Your average cost per message is {format_cost(avg)}",
        description=(
            f"Across {overview.total_messages:,} messages totalling "
            f"{format_cost(overview.total_cost)}, each message costs {format_cost(avg)} on average."
        ),
        detail=detail,
        help_text="Total cost divided by total messages.",
    )


def short_sessions(sessions: list[SessionSummary]) -> Insight | None:
    if len(sessions) < 5:
        return None
    very_short = [s for s in sessions if 0 < s.messages <= 3]
    if len(very_short) < 3:
        return None
    pct = _pct(len(very_short), len(sessions))
    if pct < 25:
        return None
    return Insight(
        severity="warning",
        title=f"{pct}% of sessions are 3 messages or fewer",
        description=(
            f"{len(very_short)} out of {len(sessions)} sessions are very short, costing "
            f"{format_cost(sum(s.cost for s in very_short))} total. Short sessions have "
            "disproportionate cache warm-up costs."
        ),
        detail=(
            "Each new session pays for cache creation.\n\n"
            "Tip: Keep sessions open for follow-up questions."
        ),
        help_text="Sessions with three or fewer messages.",
    )


def late_night(overview: Overview) -> Insight | None:
    hours = overview.hour_counts
    if len(hours) < 5:
        return None
    total = sum(hours.values())
    if total < 10:
        return None

    late = sum(hours.get(str(h), 0) for h in LATE_HOURS)
    pct = _pct(late, total)
    if pct < 15:
        return None

    peak_hour, peak_count = 23, 0
    for h in LATE_HOURS:
        count = hours.get(str(h), 0)
        if count > peak_count:
            peak_hour, peak_count = h, count

    def hour_key(item: tuple[str, int]) -> int:
        return int(item[0]) if item[0].isdigit() else 99

    return Insight(
        title=f"{pct}% of your coding happens after 11 PM",
        description=(
            f"{late} sessions between 11 PM and 5 AM, peaking at {peak_hour}:00. Late-night "
            "sessions tend to be longer and more exploratory."
        ),
        detail="Hour distribution:\n"
        + "\n".join(
            f"{h.zfill(2)}:00 - {c} sessions" for h, c in sorted(hours.items(), key=hour_key)
        ),
        help_text="Share of sessions started between 11 PM and 5 AM local time.",
    )


def generate_insights(
    overview: Overview, sessions: list[SessionSummary], setup: ClaudeSetup | None = None
) -> list[Insight]:
    if overview.empty:
        return []

    candidates = [
        setup_overview(setup),
        cost_driver(overview),
        cache_savings(overview),
        cost_concentration(sessions),
        output_ratio(overview),
        peak_day(overview),
        model_choice(sessions),
        project_concentration(sessions),
        message_escalation(sessions),
        large_contexts(sessions),
        cache_efficiency(overview),
        cost_per_message(overview, sessions),
        short_sessions(sessions),
        late_night(overview),
    ]
    return [insight for insight in candidates if insight is not None]
