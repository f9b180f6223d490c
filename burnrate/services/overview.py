"""Overview aggregation.

Three ways to build an Overview:

- fast path: straight from the stats cache's precomputed aggregates;
- filtered path: recomputed from a filtered session list, since the cache
  only covers the unfiltered universe;
- supplemented: the fast-path result plus sessions dated strictly after the
  cache's ``lastComputedDate``, when the cache is behind today.

Cached and supplemented values never overlap because the supplement only
takes sessions newer than the cache's last computed date.
"""

import logging
from datetime import date, datetime

from burnrate.models.overview import (
    CostSplit,
    DailyActivity,
    DailyCost,
    DailyModelTokens,
    DailyTokens,
    LongestSession,
    ModelBreakdown,
    ModelDayCost,
    Overview,
    StatsCache,
    TokenComposition,
    TokenPercentages,
)
from burnrate.models.session import Filters, SessionSummary
from burnrate.models.usage import TokenUsage
from burnrate.services.pricing import calculate_cost, calculate_total_cost
from burnrate.services.stats_parser import (
    get_daily_tokens_by_model,
    get_date_range,
    get_model_token_totals,
)

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "No stats-cache.json found. Run Claude Code to generate usage data."


def build_overview(
    cache: StatsCache | None,
    filters: Filters | None = None,
    sessions: list[SessionSummary] | None = None,
    today: date | None = None,
) -> Overview:
    """Build the usage and cost overview.

    Args:
        cache: Parsed stats cache, or None if there is none.
        filters: Active date/project filters, if any.
        sessions: Session summaries. When filters are active these must
            already be filtered; otherwise they are only used to supplement
            a stale cache.
        today: Reference date for staleness. Defaults to the local date.

    Returns:
        The Overview. With no cache, an empty Overview carrying an error.
    """
    if cache is None:
        return Overview(empty=True, error=NO_DATA_ERROR)

    if filters is not None and filters.is_active and sessions is not None:
        return build_from_sessions(sessions)

    base = build_from_stats(cache)
    if sessions is None:
        return base
    return supplement_overview(base, cache, sessions, today=today)


def build_from_stats(cache: StatsCache) -> Overview:
    """Fast path: derive the overview from the cache's aggregates."""
    model_usage = get_model_token_totals(cache)
    daily_model_tokens = get_daily_tokens_by_model(cache)
    cost = calculate_total_cost(model_usage)

    overview = Overview(
        total_cost=cost.total_cost,
        total_sessions=cache.total_sessions,
        total_messages=cache.total_messages,
        total_tool_calls=sum(d.tool_call_count for d in cache.daily_activity),
        daily_activity=[d.model_copy() for d in cache.daily_activity],
        daily_model_tokens=daily_model_tokens,
        daily_costs=build_daily_costs(daily_model_tokens),
        daily_tokens=build_daily_tokens(daily_model_tokens),
        model_breakdown=build_model_breakdown(model_usage),
        token_composition=build_token_composition(model_usage),
        hour_counts=dict(cache.hour_counts),
        longest_session=cache.longest_session.model_copy() if cache.longest_session else None,
        first_session_date=cache.first_session_date,
    )
    _apply_day_stats(overview)
    return overview


def build_from_sessions(sessions: list[SessionSummary], filtered: bool = True) -> Overview:
    """Derive every overview structure from a session list alone.

    Hour counts bucket each session once by the local hour of its first
    event. The cache may bucket differently, so merged hour counts are an
    approximation.
    """
    model_usage: dict[str, TokenUsage] = {}
    daily: dict[str, DailyActivity] = {}
    daily_tokens: dict[str, dict[str, int]] = {}
    hour_counts: dict[str, int] = {}
    total_messages = 0
    total_tool_calls = 0
    longest: LongestSession | None = None

    for s in sessions:
        total_messages += s.messages
        total_tool_calls += s.tool_calls

        if s.duration and (longest is None or s.duration > longest.duration):
            longest = LongestSession(
                session_id=s.session_id,
                duration=s.duration,
                message_count=s.messages,
                timestamp=s.started_at,
            )

        for model, tokens in s.tokens_by_model.items():
            model_usage.setdefault(model, TokenUsage()).add(tokens)

        if s.date:
            day = daily.setdefault(s.date, DailyActivity(date=s.date))
            day.message_count += s.messages
            day.session_count += 1
            day.tool_call_count += s.tool_calls
            day_models = daily_tokens.setdefault(s.date, {})
            for model, tokens in s.tokens_by_model.items():
                day_models[model] = day_models.get(model, 0) + tokens.output_tokens

        hour = _local_hour(s.started_at)
        if hour is not None:
            hour_counts[str(hour)] = hour_counts.get(str(hour), 0) + 1

    daily_activity = sorted(daily.values(), key=lambda d: d.date)
    daily_model_tokens = [
        DailyModelTokens(date=d.date, tokens_by_model=daily_tokens.get(d.date, {}))
        for d in daily_activity
    ]
    cost = calculate_total_cost(model_usage)
    dates = [d.date for d in daily_activity]

    overview = Overview(
        total_cost=cost.total_cost,
        total_sessions=len(sessions),
        total_messages=total_messages,
        total_tool_calls=total_tool_calls,
        daily_activity=daily_activity,
        daily_model_tokens=daily_model_tokens,
        daily_costs=build_daily_costs(daily_model_tokens),
        daily_tokens=build_daily_tokens(daily_model_tokens),
        model_breakdown=build_model_breakdown(model_usage),
        token_composition=build_token_composition(model_usage),
        hour_counts=hour_counts,
        longest_session=longest,
        first_session_date=dates[0] if dates else None,
        filtered=filtered,
    )
    _apply_day_stats(overview)
    return overview


def is_cache_stale(cache: StatsCache, today: date | None = None) -> bool:
    """Whether the cache was last computed before today.

    A cache without a last computed date is treated as current.
    """
    if not cache.last_computed_date:
        return False
    today = today or date.today()
    return cache.last_computed_date < today.isoformat()


def sessions_after(sessions: list[SessionSummary], cutoff: str) -> list[SessionSummary]:
    """Sessions dated strictly after ``cutoff``. Undated sessions are excluded."""
    return [s for s in sessions if s.date and s.date > cutoff]


def supplement_overview(
    base: Overview,
    cache: StatsCache,
    sessions: list[SessionSummary],
    today: date | None = None,
) -> Overview:
    """Fold sessions the stale cache has not seen yet into a fast-path overview."""
    if not is_cache_stale(cache, today):
        return base

    newer = sessions_after(sessions, cache.last_computed_date)
    if not newer:
        return base

    logger.debug(
        f"Supplementing stats cache from {cache.last_computed_date} "
        f"with {len(newer)} newer sessions"
    )
    return merge_overviews(base, build_from_sessions(newer, filtered=False))


def merge_overviews(base: Overview, extra: Overview) -> Overview:
    """Add a supplement overview into a base overview.

    Additive values are summed; percentages, date range and per-day averages
    are recomputed from the merged absolute values.
    """
    daily: dict[str, DailyActivity] = {d.date: d.model_copy() for d in base.daily_activity}
    for d in extra.daily_activity:
        existing = daily.get(d.date)
        if existing is None:
            daily[d.date] = d.model_copy()
        else:
            existing.message_count += d.message_count
            existing.session_count += d.session_count
            existing.tool_call_count += d.tool_call_count

    day_tokens: dict[str, dict[str, int]] = {
        d.date: dict(d.tokens_by_model) for d in base.daily_model_tokens
    }
    for d in extra.daily_model_tokens:
        merged = day_tokens.setdefault(d.date, {})
        for model, tokens in d.tokens_by_model.items():
            merged[model] = merged.get(model, 0) + tokens

    breakdown: dict[str, ModelBreakdown] = {
        m.model_id: m.model_copy(deep=True) for m in base.model_breakdown
    }
    for m in extra.model_breakdown:
        existing = breakdown.get(m.model_id)
        if existing is None:
            breakdown[m.model_id] = m.model_copy(deep=True)
        else:
            _add_breakdown(existing, m)

    hour_counts = dict(base.hour_counts)
    for hour, count in extra.hour_counts.items():
        hour_counts[hour] = hour_counts.get(hour, 0) + count

    longest = base.longest_session
    if extra.longest_session is not None and (
        longest is None or extra.longest_session.duration > longest.duration
    ):
        longest = extra.longest_session

    first_dates = [d for d in (base.first_session_date, extra.first_session_date) if d]

    daily_activity = sorted(daily.values(), key=lambda d: d.date)
    daily_model_tokens = [
        DailyModelTokens(date=day, tokens_by_model=tokens)
        for day, tokens in sorted(day_tokens.items())
    ]
    model_usage = {m.model_id: m.usage() for m in breakdown.values()}

    merged = Overview(
        total_cost=base.total_cost + extra.total_cost,
        total_sessions=base.total_sessions + extra.total_sessions,
        total_messages=base.total_messages + extra.total_messages,
        total_tool_calls=base.total_tool_calls + extra.total_tool_calls,
        daily_activity=daily_activity,
        daily_model_tokens=daily_model_tokens,
        daily_costs=build_daily_costs(daily_model_tokens),
        daily_tokens=build_daily_tokens(daily_model_tokens),
        model_breakdown=sorted(breakdown.values(), key=lambda m: m.total_cost, reverse=True),
        token_composition=build_token_composition(model_usage),
        hour_counts=hour_counts,
        longest_session=longest,
        first_session_date=min(first_dates) if first_dates else None,
        supplemented=True,
    )
    _apply_day_stats(merged)
    return merged


def build_daily_costs(daily_model_tokens: list[DailyModelTokens]) -> list[DailyCost]:
    """Approximate daily cost by pricing each model's daily tokens as output."""
    result = []
    for day in daily_model_tokens:
        by_model = {}
        day_cost = 0.0
        for model, tokens in day.tokens_by_model.items():
            cost = calculate_cost(TokenUsage(output_tokens=tokens), model).total_cost
            day_cost += cost
            by_model[model] = ModelDayCost(tokens=tokens, cost=cost)
        result.append(DailyCost(date=day.date, cost=day_cost, by_model=by_model))
    return result


def build_daily_tokens(daily_model_tokens: list[DailyModelTokens]) -> list[DailyTokens]:
    return [
        DailyTokens(
            date=day.date,
            total=sum(day.tokens_by_model.values()),
            by_model=dict(day.tokens_by_model),
        )
        for day in daily_model_tokens
    ]


def build_model_breakdown(model_usage: dict[str, TokenUsage]) -> list[ModelBreakdown]:
    """Per-model tokens and cost, most expensive first."""
    cost = calculate_total_cost(model_usage)
    rows = []
    for model_id, usage in model_usage.items():
        model_cost = cost.by_model[model_id]
        rows.append(
            ModelBreakdown(
                model_id=model_id,
                display_name=model_cost.display_name or model_id,
                total_cost=model_cost.total_cost,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                cache_read_input_tokens=usage.cache_read_input_tokens,
                cache_creation_input_tokens=usage.cache_creation_input_tokens,
                cost_breakdown=CostSplit(
                    input=model_cost.input_cost,
                    output=model_cost.output_cost,
                    cache_read=model_cost.cache_read_cost,
                    cache_write=model_cost.cache_write_cost,
                ),
            )
        )
    rows.sort(key=lambda m: m.total_cost, reverse=True)
    return rows


def build_token_composition(model_usage: dict[str, TokenUsage]) -> TokenComposition:
    """Token totals by kind with one-decimal percentage shares."""
    totals = TokenUsage()
    for usage in model_usage.values():
        totals.add(usage)

    total = totals.total
    percentages = TokenPercentages()
    if total > 0:
        percentages = TokenPercentages(
            input=round(totals.input_tokens / total * 100, 1),
            output=round(totals.output_tokens / total * 100, 1),
            cache_read=round(totals.cache_read_input_tokens / total * 100, 1),
            cache_write=round(totals.cache_creation_input_tokens / total * 100, 1),
        )

    return TokenComposition(
        input=totals.input_tokens,
        output=totals.output_tokens,
        cache_read=totals.cache_read_input_tokens,
        cache_write=totals.cache_creation_input_tokens,
        total=total,
        percentages=percentages,
    )


def _add_breakdown(target: ModelBreakdown, other: ModelBreakdown) -> None:
    target.total_cost += other.total_cost
    target.input_tokens += other.input_tokens
    target.output_tokens += other.output_tokens
    target.cache_read_input_tokens += other.cache_read_input_tokens
    target.cache_creation_input_tokens += other.cache_creation_input_tokens
    target.cost_breakdown.input += other.cost_breakdown.input
    target.cost_breakdown.output += other.cost_breakdown.output
    target.cost_breakdown.cache_read += other.cost_breakdown.cache_read
    target.cost_breakdown.cache_write += other.cost_breakdown.cache_write


def _apply_day_stats(overview: Overview) -> None:
    """Set date range, active days and per-day averages from the totals."""
    overview.date_range = get_date_range([d.date for d in overview.daily_activity])
    active_days = len(overview.daily_activity)
    overview.active_days = active_days
    if active_days > 0:
        overview.avg_messages_per_day = int(overview.total_messages / active_days + 0.5)
        overview.avg_sessions_per_day = round(overview.total_sessions / active_days, 1)
        overview.avg_cost_per_day = overview.total_cost / active_days
    else:
        overview.avg_messages_per_day = 0
        overview.avg_sessions_per_day = 0.0
        overview.avg_cost_per_day = 0.0


def _local_hour(timestamp: str | None) -> int | None:
    if not timestamp:
        return None
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.hour
