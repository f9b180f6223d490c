"""Token usage and pricing models."""

from typing import Any

from pydantic import ConfigDict, Field, field_validator

from burnrate.models.base import CamelModel


class TokenUsage(CamelModel):
    """Four independently additive token counters."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_input_tokens: int = 0
    cache_creation_input_tokens: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_counter(cls, value: Any) -> int:
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return max(int(value), 0)
        return 0

    @classmethod
    def from_api_usage(cls, usage: dict[str, Any]) -> "TokenUsage":
        """Build from the snake_case ``usage`` block of an assistant event."""
        return cls(
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
            cache_read_input_tokens=usage.get("cache_read_input_tokens", 0),
            cache_creation_input_tokens=usage.get("cache_creation_input_tokens", 0),
        )

    @property
    def total(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_input_tokens
            + self.cache_creation_input_tokens
        )

    def add(self, other: "TokenUsage") -> "TokenUsage":
        """Add another usage into this one in place and return self."""
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cache_read_input_tokens += other.cache_read_input_tokens
        self.cache_creation_input_tokens += other.cache_creation_input_tokens
        return self


class PricingEntry(CamelModel):
    """Per-million-token USD rates for one model."""

    model_config = ConfigDict(frozen=True)

    input: float
    output: float
    cache_read: float
    cache_write: float
    display_name: str = "Unknown Model"


class CostBreakdown(CamelModel):
    """Cost of a token usage under one model's pricing."""

    input_cost: float = 0.0
    output_cost: float = 0.0
    cache_read_cost: float = 0.0
    cache_write_cost: float = 0.0
    total_cost: float = 0.0
    breakdown: TokenUsage = Field(default_factory=TokenUsage)


class ModelCost(CostBreakdown):
    """Cost breakdown tagged with the resolved display name."""

    display_name: str


class TotalCost(CamelModel):
    """Summed cost across models."""

    total_cost: float = 0.0
    by_model: dict[str, ModelCost] = Field(default_factory=dict)
