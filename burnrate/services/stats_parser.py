"""Stats cache decoding helpers."""

from datetime import date
from typing import Any

from pydantic import ValidationError

from burnrate.models.overview import DailyModelTokens, DateRange, StatsCache
from burnrate.models.usage import TokenUsage
from burnrate.services.session_reader import DataSourceError


def parse_stats_cache(raw: dict[str, Any] | None) -> StatsCache | None:
    """Decode a raw stats cache, defaulting every missing field.

    Args:
        raw: The decoded stats-cache.json content.

    Returns:
        The StatsCache, or None if there is no cache.

    Raises:
        DataSourceError: If the cache has the wrong shape.
    """
    if not raw:
        return None
    # Explicit nulls fall back to the field defaults.
    cleaned = {key: value for key, value in raw.items() if value is not None}
    try:
        return StatsCache.model_validate(cleaned)
    except ValidationError as e:
        raise DataSourceError(f"Malformed stats cache: {e}") from e


def get_date_range(dates: list[str]) -> DateRange:
    """Span of a list of ISO dates, inclusive of both ends."""
    valid = sorted(d for d in dates if d)
    if not valid:
        return DateRange()
    start, end = valid[0], valid[-1]
    try:
        days = (date.fromisoformat(end[:10]) - date.fromisoformat(start[:10])).days + 1
    except ValueError:
        days = len(set(valid))
    return DateRange(start=start, end=end, days=days)


def get_model_token_totals(cache: StatsCache) -> dict[str, TokenUsage]:
    return {model: usage.model_copy() for model, usage in cache.model_usage.items()}


def get_daily_tokens_by_model(cache: StatsCache) -> list[DailyModelTokens]:
    return [day.model_copy(deep=True) for day in cache.daily_model_tokens]
