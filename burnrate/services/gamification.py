"""Efficiency score, achievements and usage streaks.

Pure functions over an overview and session list.
"""

import math
from datetime import date

from burnrate.models.overview import Overview
from burnrate.models.reports import (
    Achievement,
    EfficiencyScore,
    Gamification,
    ScoreFactors,
    Streak,
)
from burnrate.models.session import SessionSummary

NEUTRAL_SCORE = 50.0
NIGHT_HOURS = (23, 0, 1, 2, 3, 4)


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _uses(session: SessionSummary, family: str) -> bool:
    return any(family in model for model in session.tokens_by_model)


def score_cache_hit_rate(overview: Overview) -> float:
    """90% or better cache hit rate scores 100, scaling linearly below."""
    tc = overview.token_composition
    total = tc.cache_read + tc.cache_write
    if total == 0:
        return NEUTRAL_SCORE
    return min(tc.cache_read / total / 0.9 * 100, 100.0)


def score_model_choice(sessions: list[SessionSummary]) -> float:
    """Share of short sessions (6 messages or fewer) that used Sonnet."""
    short = [s for s in sessions if s.messages <= 6]
    if not short:
        return NEUTRAL_SCORE
    return sum(1 for s in short if _uses(s, "sonnet")) / len(short) * 100


def score_session_efficiency(sessions: list[SessionSummary]) -> float:
    if not sessions:
        return NEUTRAL_SCORE
    throwaway = sum(1 for s in sessions if s.messages <= 3)
    return (1 - throwaway / len(sessions)) * 100


def score_cost_trend(overview: Overview, sessions: list[SessionSummary]) -> float:
    """Recent cost per message against the overall figure.

    A ratio of 0.5 scores 100, 1.0 scores 50 and 1.5 or more scores 0.
    """
    if not sessions or overview.total_messages == 0:
        return NEUTRAL_SCORE
    overall = overview.total_cost / overview.total_messages
    if overall == 0:
        return NEUTRAL_SCORE

    dates = sorted(d.date for d in overview.daily_activity)
    if not dates:
        return NEUTRAL_SCORE
    cutoff = dates[-7] if len(dates) >= 7 else dates[0]

    recent = [s for s in sessions if s.date and s.date >= cutoff]
    recent_messages = sum(s.messages for s in recent)
    if recent_messages == 0:
        return NEUTRAL_SCORE

    ratio = sum(s.cost for s in recent) / recent_messages / overall
    return _clamp((1.5 - ratio) * 100, 0, 100)


def compute_score(overview: Overview, sessions: list[SessionSummary]) -> EfficiencyScore:
    cache = score_cache_hit_rate(overview)
    model_choice = score_model_choice(sessions)
    session_efficiency = score_session_efficiency(sessions)
    cost_trend = score_cost_trend(overview, sessions)

    total = _round(cache * 0.30 + model_choice * 0.25 + session_efficiency * 0.25 + cost_trend * 0.20)
    return EfficiencyScore(
        total=int(_clamp(total, 0, 100)),
        factors=ScoreFactors(
            cache=_round(cache),
            model_choice=_round(model_choice),
            session_efficiency=_round(session_efficiency),
            cost_trend=_round(cost_trend),
        ),
    )


def compute_streak(overview: Overview, today: date | None = None) -> Streak:
    """Longest run of consecutive active days, and the run ending today or yesterday."""
    days = sorted({date.fromisoformat(d.date[:10]) for d in overview.daily_activity if d.date})
    if not days:
        return Streak()

    longest = run = 1
    for prev, curr in zip(days, days[1:]):
        run = run + 1 if (curr - prev).days == 1 else 1
        longest = max(longest, run)

    today = today or date.today()
    current = 0
    if (today - days[-1]).days <= 1:
        current = 1
        for i in range(len(days) - 1, 0, -1):
            if (days[i] - days[i - 1]).days != 1:
                break
            current += 1

    return Streak(current=current, longest=longest)


def _milestone(id: str, title: str, description: str, icon: str, unlocked: bool, progress: str) -> Achievement:
    return Achievement(
        id=id,
        title=title,
        description=description,
        icon=icon,
        unlocked=unlocked,
        progress=None if unlocked else progress,
    )


def compute_achievements(
    overview: Overview, sessions: list[SessionSummary], streak: Streak
) -> list[Achievement]:
    total_cost = overview.total_cost
    total_sessions = overview.total_sessions
    total_messages = overview.total_messages
    tool_calls = overview.total_tool_calls

    tc = overview.token_composition
    cache_total = tc.cache_read + tc.cache_write
    hit_rate = tc.cache_read / cache_total if cache_total else 0.0
    cost_per_msg = total_cost / total_messages if total_messages else 0.0
    sonnet_ratio = (
        sum(1 for s in sessions if _uses(s, "sonnet")) / total_sessions if total_sessions else 0.0
    )
    max_messages = max((s.messages for s in sessions), default=0)
    night = sum(overview.hour_counts.get(str(h), 0) for h in NIGHT_HOURS)

    def spend(target: int) -> str:
        return f"${total_cost:.2f} / ${target:,} (${target - total_cost:.2f} to go)"

    return [
        _milestone("first_hundred", "First $100", "Total spend crossed $100", "dollar",
                   total_cost >= 100, spend(100)),
        _milestone("big_spender", "Big Spender", "Total spend crossed $500", "money",
                   total_cost >= 500, spend(500)),
        _milestone("whale", "Whale", "Total spend crossed $1,000", "whale",
                   total_cost >= 1000, spend(1000)),
        _milestone("cache_master", "Cache Master", "Cache hit rate above 90%", "cache",
                   hit_rate >= 0.9, f"Currently at {_round(hit_rate * 100)}% (need 90%)"),
        _milestone("penny_pincher", "Penny Pincher", "Average cost per message below $0.05",
                   "penny", total_messages > 0 and cost_per_msg < 0.05,
                   f"Currently ${cost_per_msg:.2f}/msg (need < $0.05)"),
        _milestone("sonnet_savvy", "Sonnet Savvy", "50%+ of sessions used Sonnet", "sonnet",
                   sonnet_ratio >= 0.5, f"{_round(sonnet_ratio * 100)}% Sonnet sessions (need 50%)"),
        _milestone("marathon", "Marathon Runner", "A session with 100+ messages", "marathon",
                   max_messages >= 100, f"Best session: {max_messages} msgs (need 100)"),
        _milestone("night_owl", "Night Owl", "20+ sessions between 11PM-5AM", "night",
                   night >= 20, f"{night} / 20 night sessions"),
        _milestone("centurion", "Centurion", "100+ total sessions", "centurion",
                   total_sessions >= 100, f"{total_sessions} / 100 sessions"),
        _milestone("toolsmith", "Toolsmith", "1,000+ total tool calls", "toolsmith",
                   tool_calls >= 1000, f"{tool_calls:,} / 1,000 tool calls"),
        _milestone("on_fire", "On Fire", "5+ day usage streak", "fire",
                   streak.longest >= 5, f"Best streak: {streak.longest} days (need 5)"),
        _milestone("dedicated", "Dedicated", "10+ day usage streak", "dedicated",
                   streak.longest >= 10, f"Best streak: {streak.longest} days (need 10)"),
    ]


def get_gamification(
    overview: Overview, sessions: list[SessionSummary], today: date | None = None
) -> Gamification:
    streak = compute_streak(overview, today=today)
    return Gamification(
        score=compute_score(overview, sessions),
        achievements=compute_achievements(overview, sessions, streak),
        streak=streak,
    )
