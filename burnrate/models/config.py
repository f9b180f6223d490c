"""Application configuration models with Pydantic validation."""

from pathlib import Path

from pydantic import BaseModel, Field


class ThresholdConfig(BaseModel):
    """Empirical thresholds used by the audit and insight heuristics.

    These values have no deeper derivation; they are exposed so they can be
    tuned per install.
    """

    anomaly_multiplier: float = Field(
        default=3.0,
        gt=1.0,
        le=100.0,
        description="Flag a session whose count exceeds this multiple of its leave-one-out average",
    )
    anomaly_min_sessions: int = Field(
        default=3,
        ge=3,
        le=1000,
        description="Minimum sessions before anomaly detection has a baseline",
    )
    context_near_limit_tokens: int = Field(
        default=150_000,
        ge=1000,
        description="Peak context size counted as near the context-window limit",
    )
    context_critical_tokens: int = Field(
        default=180_000,
        ge=1000,
        description="Peak context size counted as critical",
    )


class IndexerConfig(BaseModel):
    """Bounds for the partial read used on sessions missing from an index."""

    probe_line_limit: int = Field(
        default=50,
        ge=1,
        le=10000,
        description="Non-blank lines to read before a probe may stop early",
    )
    first_prompt_max_chars: int = Field(
        default=200,
        ge=10,
        le=10000,
        description="Truncation length for the probed first prompt",
    )


class AppConfig(BaseModel):
    """Root application configuration.

    Loaded from config.yaml and validated with Pydantic.
    """

    claude_dir: str = Field(
        default=str(Path.home() / ".claude"),
        description="Directory holding the assistant's projects/ tree and stats cache",
    )
    host: str = Field(
        default="127.0.0.1",
        description="Interface the dashboard server binds to",
    )
    port: int = Field(
        default=3456,
        ge=1024,
        le=65535,
        description="Port for the Flask server",
    )
    debug: bool = Field(
        default=False,
        description="Enable Flask debug mode",
    )
    watch: bool = Field(
        default=False,
        description="Push refresh events when the stats cache changes",
    )
    watch_interval: float = Field(
        default=1.0,
        ge=0.1,
        le=60.0,
        description="Seconds between stats cache modification checks",
    )
    overview_cache_ttl: float = Field(
        default=5.0,
        ge=0.0,
        le=3600.0,
        description="Seconds an unfiltered overview is reused",
    )
    expensive_prompt_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Number of most expensive prompts kept",
    )
    dangerous_permission_modes: list[str] = Field(
        default_factory=lambda: ["bypassPermissions"],
        description="Permission modes that skip every interactive confirmation",
    )
    indexer: IndexerConfig = Field(
        default_factory=IndexerConfig,
        description="Session probe bounds",
    )
    thresholds: ThresholdConfig = Field(
        default_factory=ThresholdConfig,
        description="Heuristic thresholds",
    )

    @property
    def claude_path(self) -> Path:
        return Path(self.claude_dir).expanduser()
