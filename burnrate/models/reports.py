"""Models for the derived reports layered over the overview and sessions."""

from pydantic import Field

from burnrate.models.base import CamelModel


class Insight(CamelModel):
    severity: str = "info"
    title: str
    description: str = ""
    detail: str = ""
    help_text: str = ""


class Recommendation(CamelModel):
    severity: str
    title: str
    description: str
    fix: str
    estimated_savings: str | None = None


class ProjectCost(CamelModel):
    project: str
    sessions: int = 0
    messages: int = 0
    cost: float = 0.0


class BranchCost(CamelModel):
    branch: str
    project: str
    sessions: int = 0
    messages: int = 0
    cost: float = 0.0
    avg_cost_per_session: float = 0.0


class BranchCosts(CamelModel):
    branches: list[BranchCost] = Field(default_factory=list)
    total_branches: int = 0
    help_text: str = ""


class ToolCount(CamelModel):
    name: str
    count: int
    percentage: float


class ToolUsage(CamelModel):
    tool_counts: dict[str, int] = Field(default_factory=dict)
    top_tools: list[ToolCount] = Field(default_factory=list)
    total_tool_calls: int = 0
    session_count: int = 0
    avg_tools_per_session: float = 0.0
    read_write_ratio: float | None = Field(
        default=0.0,
        description="Reads per write; None when there are reads but no writes",
    )
    read_count: int = 0
    write_count: int = 0
    help_text: str = ""


class WeekSummary(CamelModel):
    week: int
    week_start: str
    messages: int = 0
    sessions: int = 0
    tool_calls: int = 0
    days: int = 0


class DayOfWeekCount(CamelModel):
    day: str
    count: int = 0


class ModelTrend(CamelModel):
    date: str
    models: dict[str, int] = Field(default_factory=dict)


class Patterns(CamelModel):
    hour_counts: dict[str, int] = Field(default_factory=dict)
    peak_hour: int | None = None
    quiet_hour: int | None = None
    weekly_comparison: list[WeekSummary] = Field(default_factory=list)
    day_of_week_counts: list[DayOfWeekCount] = Field(default_factory=list)
    model_trends: list[ModelTrend] = Field(default_factory=list)


class ExpensivePrompt(CamelModel):
    prompt: str
    full_prompt: str
    date: str | None = None
    timestamp: str | None = None
    session_id: str
    project: str | None = None
    model: str | None = None
    cost: float = 0.0
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_write_tokens: int = 0
    turn_index: int = 0
    tools_used: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)


class TopFile(CamelModel):
    file: str
    changes: int


class Contributions(CamelModel):
    total_lines_written: int = 0
    total_lines_edited: int = 0
    total_files_touched: int = 0
    co_authored_commits: int = 0
    top_files: list[TopFile] = Field(default_factory=list)


class ScoreFactors(CamelModel):
    cache: int = 0
    model_choice: int = 0
    session_efficiency: int = 0
    cost_trend: int = 0


class EfficiencyScore(CamelModel):
    total: int = 0
    factors: ScoreFactors = Field(default_factory=ScoreFactors)


class Achievement(CamelModel):
    id: str
    title: str
    description: str
    icon: str
    unlocked: bool = False
    progress: str | None = None


class Streak(CamelModel):
    current: int = 0
    longest: int = 0


class Gamification(CamelModel):
    score: EfficiencyScore = Field(default_factory=EfficiencyScore)
    achievements: list[Achievement] = Field(default_factory=list)
    streak: Streak = Field(default_factory=Streak)


class NamedCount(CamelModel):
    total: int = 0
    names: list[str] = Field(default_factory=list)


class HookEventCount(CamelModel):
    event: str
    count: int


class HookSummary(CamelModel):
    total: int = 0
    events: list[HookEventCount] = Field(default_factory=list)


class PluginSummary(CamelModel):
    total: int = 0
    enabled: int = 0
    names: list[str] = Field(default_factory=list)


class ClaudeSetup(CamelModel):
    """What the user has configured around the assistant."""

    mcp_servers: NamedCount = Field(default_factory=NamedCount)
    commands: NamedCount = Field(default_factory=NamedCount)
    hooks: HookSummary = Field(default_factory=HookSummary)
    plugins: PluginSummary = Field(default_factory=PluginSummary)
