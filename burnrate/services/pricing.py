"""Model pricing and token cost calculation.

Rates are USD per million tokens, from
https://docs.anthropic.com/en/docs/about-claude/pricing
"""

from burnrate.models.usage import CostBreakdown, ModelCost, PricingEntry, TokenUsage, TotalCost

PER_MILLION = 1_000_000

OPUS_TIER = PricingEntry(input=15.00, output=75.00, cache_read=1.50, cache_write=18.75)
SONNET_TIER = PricingEntry(input=3.00, output=15.00, cache_read=0.30, cache_write=3.75)
HAIKU_TIER = PricingEntry(input=0.80, output=4.00, cache_read=0.08, cache_write=1.00)

# Insertion order is the prefix-match order.
MODEL_PRICING: dict[str, PricingEntry] = {
    "claude-opus-4-6": OPUS_TIER.model_copy(update={"display_name": "Claude Opus 4.6"}),
    "claude-opus-4-5-20251101": OPUS_TIER.model_copy(update={"display_name": "Claude Opus 4.5"}),
    "claude-sonnet-4-6": SONNET_TIER.model_copy(update={"display_name": "Claude Sonnet 4.6"}),
    "claude-sonnet-4-5-20250929": SONNET_TIER.model_copy(
        update={"display_name": "Claude Sonnet 4.5"}
    ),
    "claude-haiku-4-5-20251001": HAIKU_TIER.model_copy(update={"display_name": "Claude Haiku 4.5"}),
}

FALLBACK_PRICING = SONNET_TIER.model_copy(update={"display_name": "Unknown Model"})


def resolve_pricing(model_id: str | None) -> PricingEntry:
    """Resolve rates for a model id.

    Tries an exact match, then the first table key the id starts with (dated
    releases), then an opus/haiku name heuristic, and finally Sonnet-tier
    rates labelled "Unknown Model". Never raises.
    """
    model_id = model_id or ""

    entry = MODEL_PRICING.get(model_id)
    if entry is not None:
        return entry

    for key, pricing in MODEL_PRICING.items():
        if model_id.startswith(key):
            return pricing

    if "opus" in model_id:
        return OPUS_TIER.model_copy(update={"display_name": FALLBACK_PRICING.display_name})
    if "haiku" in model_id:
        return HAIKU_TIER.model_copy(update={"display_name": FALLBACK_PRICING.display_name})

    return FALLBACK_PRICING


def calculate_cost(usage: TokenUsage, model_id: str | None) -> CostBreakdown:
    """Price each of the four token counters and sum them."""
    pricing = resolve_pricing(model_id)

    input_cost = usage.input_tokens / PER_MILLION * pricing.input
    output_cost = usage.output_tokens / PER_MILLION * pricing.output
    cache_read_cost = usage.cache_read_input_tokens / PER_MILLION * pricing.cache_read
    cache_write_cost = usage.cache_creation_input_tokens / PER_MILLION * pricing.cache_write

    return CostBreakdown(
        input_cost=input_cost,
        output_cost=output_cost,
        cache_read_cost=cache_read_cost,
        cache_write_cost=cache_write_cost,
        total_cost=input_cost + output_cost + cache_read_cost + cache_write_cost,
        breakdown=usage.model_copy(),
    )


def calculate_total_cost(usage_by_model: dict[str, TokenUsage]) -> TotalCost:
    """Price every model's usage and sum into a total."""
    result = TotalCost()

    for model_id, usage in usage_by_model.items():
        cost = calculate_cost(usage, model_id)
        pricing = resolve_pricing(model_id)
        result.total_cost += cost.total_cost
        result.by_model[model_id] = ModelCost(
            **cost.model_dump(),
            display_name=pricing.display_name or model_id,
        )

    return result


def format_cost(amount: float) -> str:
    if amount >= 1:
        return f"${amount:.2f}"
    if amount >= 0.01:
        return f"${amount:.3f}"
    return f"${amount:.4f}"


def format_tokens(count: float) -> str:
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(int(count))
