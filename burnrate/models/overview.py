"""Stats cache and overview report models."""

from pydantic import Field

from burnrate.models.base import CamelModel
from burnrate.models.usage import TokenUsage


class DailyActivity(CamelModel):
    date: str
    message_count: int = 0
    session_count: int = 0
    tool_call_count: int = 0


class DailyModelTokens(CamelModel):
    date: str
    tokens_by_model: dict[str, int] = Field(default_factory=dict)


class LongestSession(CamelModel):
    session_id: str | None = None
    duration: int = 0
    message_count: int = 0
    timestamp: str | None = None


class StatsCache(CamelModel):
    """The precomputed daily summary cache written by the assistant."""

    version: int | None = None
    last_computed_date: str | None = None
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    daily_model_tokens: list[DailyModelTokens] = Field(default_factory=list)
    model_usage: dict[str, TokenUsage] = Field(default_factory=dict)
    total_sessions: int = 0
    total_messages: int = 0
    longest_session: LongestSession | None = None
    first_session_date: str | None = None
    hour_counts: dict[str, int] = Field(default_factory=dict)
    total_speculation_time_saved_ms: int = 0


class DateRange(CamelModel):
    start: str | None = None
    end: str | None = None
    days: int = 0


class ModelDayCost(CamelModel):
    tokens: int = 0
    cost: float = 0.0


class DailyCost(CamelModel):
    date: str
    cost: float = 0.0
    by_model: dict[str, ModelDayCost] = Field(default_factory=dict)


class DailyTokens(CamelModel):
    date: str
    total: int = 0
    by_model: dict[str, int] = Field(default_factory=dict)


class CostSplit(CamelModel):
    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0


class ModelBreakdown(CamelModel):
    model_id: str
    display_name: str
    total_cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cost_breakdown: CostSplit = Field(default_factory=CostSplit)

    def usage(self) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cache_read_input_tokens=self.cache_read_input_tokens,
            cache_creation_input_tokens=self.cache_creation_input_tokens,
        )


class TokenPercentages(CamelModel):
    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0


class TokenComposition(CamelModel):
    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0
    total: int = 0
    percentages: TokenPercentages = Field(default_factory=TokenPercentages)


class Overview(CamelModel):
    """Aggregate usage and cost report.

    ``empty`` with an ``error`` message is the explicit no-data result.
    ``filtered`` marks a report recomputed from a filtered session list and
    ``supplemented`` one where newer sessions were folded into a stale cache.
    """

    empty: bool = False
    error: str | None = None
    total_cost: float = 0.0
    total_sessions: int = 0
    total_messages: int = 0
    total_tool_calls: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
    active_days: int = 0
    avg_messages_per_day: int = 0
    avg_sessions_per_day: float = 0.0
    avg_cost_per_day: float = 0.0
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    daily_model_tokens: list[DailyModelTokens] = Field(default_factory=list)
    daily_costs: list[DailyCost] = Field(default_factory=list)
    daily_tokens: list[DailyTokens] = Field(default_factory=list)
    model_breakdown: list[ModelBreakdown] = Field(default_factory=list)
    token_composition: TokenComposition = Field(default_factory=TokenComposition)
    hour_counts: dict[str, int] = Field(default_factory=dict)
    longest_session: LongestSession | None = None
    first_session_date: str | None = None
    filtered: bool = False
    supplemented: bool = False
