"""Usage patterns over time: hours, weeks, weekdays and models."""

import math
from datetime import date, timedelta

from burnrate.models.overview import DailyActivity, DailyModelTokens, Overview
from burnrate.models.reports import DayOfWeekCount, ModelTrend, Patterns, WeekSummary

# Sunday-first, matching the week boundaries below.
DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _sunday_index(d: date) -> int:
    return (d.weekday() + 1) % 7


def week_number(d: date) -> int:
    """Week of the year with weeks starting on Sunday."""
    jan1 = date(d.year, 1, 1)
    return math.ceil(((d - jan1).days + _sunday_index(jan1) + 1) / 7)


def _parse_day(value: str) -> date | None:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def build_weekly_comparison(daily_activity: list[DailyActivity]) -> list[WeekSummary]:
    weeks: dict[str, WeekSummary] = {}
    for day in daily_activity:
        d = _parse_day(day.date)
        if d is None:
            continue
        start = d - timedelta(days=_sunday_index(d))
        key = start.isoformat()
        week = weeks.setdefault(key, WeekSummary(week=week_number(d), week_start=key))
        week.messages += day.message_count
        week.sessions += day.session_count
        week.tool_calls += day.tool_call_count
        week.days += 1
    return [weeks[key] for key in sorted(weeks)]


def build_day_of_week_counts(daily_activity: list[DailyActivity]) -> list[DayOfWeekCount]:
    counts = [0] * 7
    for day in daily_activity:
        d = _parse_day(day.date)
        if d is not None:
            counts[_sunday_index(d)] += day.message_count
    return [DayOfWeekCount(day=name, count=counts[i]) for i, name in enumerate(DAY_NAMES)]


def build_model_trends(daily_model_tokens: list[DailyModelTokens]) -> list[ModelTrend]:
    return [ModelTrend(date=d.date, models=dict(d.tokens_by_model)) for d in daily_model_tokens]


def get_patterns(overview: Overview) -> Patterns:
    """Derive activity patterns from an overview."""
    if overview.empty:
        return Patterns()

    hours = []
    for hour, count in overview.hour_counts.items():
        try:
            hours.append((int(hour), count))
        except ValueError:
            continue
    hours.sort(key=lambda h: h[1], reverse=True)

    return Patterns(
        hour_counts=dict(overview.hour_counts),
        peak_hour=hours[0][0] if hours else None,
        quiet_hour=hours[-1][0] if hours else None,
        weekly_comparison=build_weekly_comparison(overview.daily_activity),
        day_of_week_counts=build_day_of_week_counts(overview.daily_activity),
        model_trends=build_model_trends(overview.daily_model_tokens),
    )
