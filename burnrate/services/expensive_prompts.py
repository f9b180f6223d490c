"""Ranking of the individual prompts that cost the most."""

import logging
from collections.abc import Iterable

from burnrate.models.reports import ExpensivePrompt
from burnrate.models.session import Filters, SessionRecord, Turn
from burnrate.models.usage import TokenUsage
from burnrate.services.pricing import calculate_cost, format_tokens
from burnrate.services.session_parser import pair_messages

logger = logging.getLogger(__name__)

PROMPT_PREVIEW_CHARS = 200
LARGE_CACHE_WRITE = 50_000
LARGE_CACHE_READ = 200_000
LONG_OUTPUT = 5_000
SHORT_OUTPUT = 200
HEAVY_CACHE_WRITE = 10_000
LATE_TURN = 15


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def explain_cost(usage: TokenUsage, model: str | None, turn_index: int) -> list[str]:
    """Human-readable reasons a turn was expensive."""
    is_opus = bool(model and "opus" in model)
    reasons = []

    if usage.cache_creation_input_tokens > LARGE_CACHE_WRITE:
        reasons.append(
            f"Large cache creation ({format_tokens(usage.cache_creation_input_tokens)} tokens), "
            "first message in session or context changed"
        )
    if usage.cache_read_input_tokens > LARGE_CACHE_READ:
        reasons.append(
            f"Large context window ({format_tokens(usage.cache_read_input_tokens)} "
            "cached tokens read)"
        )
    if usage.output_tokens > LONG_OUTPUT:
        rate = "$75" if is_opus else "$15"
        reasons.append(
            f"Long response ({format_tokens(usage.output_tokens)} output tokens at {rate}/M)"
        )
    if (
        is_opus
        and usage.output_tokens < SHORT_OUTPUT
        and usage.cache_creation_input_tokens > HEAVY_CACHE_WRITE
    ):
        reasons.append(
            "Opus used for a short response with heavy cache creation; Sonnet would be cheaper"
        )
    if turn_index > LATE_TURN:
        reasons.append(
            f"Late in conversation (turn {turn_index + 1}); accumulated context increases cost"
        )

    if not reasons:
        reasons.append("Opus model with standard token usage" if is_opus else "Standard token usage")
    return reasons


def _price_turn(record: SessionRecord, turn: Turn) -> ExpensivePrompt | None:
    usage = TokenUsage()
    cost = 0.0
    model = None
    tools: list[str] = []

    for resp in turn.responses:
        if resp.usage is None or not resp.model:
            continue
        model = resp.model
        cost += calculate_cost(resp.usage, resp.model).total_cost
        usage.add(resp.usage)
        for call in resp.tool_calls:
            if call.name not in tools:
                tools.append(call.name)

    if cost <= 0:
        return None

    text = turn.prompt.prompt_text or "(no text)"
    timestamp = turn.prompt.timestamp
    return ExpensivePrompt(
        prompt=_truncate(text, PROMPT_PREVIEW_CHARS),
        full_prompt=text,
        date=timestamp[:10] if timestamp else None,
        timestamp=timestamp,
        session_id=record.session_id,
        project=record.project_path,
        model=model,
        cost=cost,
        total_tokens=usage.total,
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        cache_read_tokens=usage.cache_read_input_tokens,
        cache_write_tokens=usage.cache_creation_input_tokens,
        turn_index=turn.turn_index,
        tools_used=tools,
        reasons=explain_cost(usage, model, turn.turn_index),
    )


def build_expensive_prompts(records: Iterable[SessionRecord], limit: int = 50) -> list[ExpensivePrompt]:
    """Price every conversational turn and keep the ``limit`` most expensive."""
    prompts = []
    for record in records:
        for turn in pair_messages(record):
            priced = _price_turn(record, turn)
            if priced is not None:
                prompts.append(priced)

    prompts.sort(key=lambda p: p.cost, reverse=True)
    logger.debug(f"Ranked {len(prompts)} priced prompts")
    return prompts[:limit]


def filter_expensive_prompts(
    prompts: list[ExpensivePrompt], filters: Filters | None
) -> list[ExpensivePrompt]:
    if filters is None or not filters.is_active:
        return prompts
    return [p for p in prompts if filters.matches(p.date, p.project)]
