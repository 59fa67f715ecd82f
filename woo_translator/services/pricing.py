from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models.translation_result import EstimatedPrice

"""Gemini price table and cost helpers.

Prices are USD per 1M tokens (paid tier). Models with a long-context tier
switch to it when the context exceeds LONG_CONTEXT_THRESHOLD tokens.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ModelPrice",
    "GEMINI_PRICING",
    "FALLBACK_MODEL",
    "LONG_CONTEXT_THRESHOLD",
    "price_for",
    "estimate_cost",
    "estimate_price",
    "usage_cost",
]

LONG_CONTEXT_THRESHOLD = 200_000
FALLBACK_MODEL = "gemini-3-flash"


@dataclass(frozen=True)
class Rates:
    input: float
    output: float


@dataclass(frozen=True)
class ModelPrice:
    display_name: str
    base: Rates
    long_context: Rates | None = None

    def rates(self, context_size: int = 0) -> Rates:
        if self.long_context is not None and context_size > LONG_CONTEXT_THRESHOLD:
            return self.long_context
        return self.base


GEMINI_PRICING: dict[str, ModelPrice] = {
    "gemini-2.5-pro": ModelPrice("Gemini 2.5 Pro", Rates(1.25, 10.0), Rates(2.5, 15.0)),
    "gemini-2.5-flash": ModelPrice("Gemini 2.5 Flash", Rates(0.3, 2.5)),
    "gemini-3-flash": ModelPrice("Gemini 3.0 Flash", Rates(0.5, 3.0)),
    "gemini-3-pro-preview": ModelPrice("Gemini 3.0 Pro (Preview)", Rates(2.0, 12.0), Rates(4.0, 18.0)),
    "gemini-2-flash": ModelPrice("Gemini 2.0 Flash", Rates(0.075, 0.3)),
}


def price_for(model_id: str) -> ModelPrice:
    """Price entry for ``model_id``; unknown models use the FALLBACK_MODEL rates."""
    price = GEMINI_PRICING.get(model_id)
    if price is None:
        logger.warning(f"pricing: unknown model {model_id!r}, using {FALLBACK_MODEL} rates")
        return GEMINI_PRICING[FALLBACK_MODEL]
    return price


def estimate_cost(
    model_id: str, prompt_tokens: int, completion_tokens: int, context_size: int | None = None
) -> tuple[float, float]:
    """Return ``(input_cost, output_cost)`` in USD."""
    rates = price_for(model_id).rates(prompt_tokens if context_size is None else context_size)
    return (
        rates.input * prompt_tokens / 1_000_000,
        rates.output * completion_tokens / 1_000_000,
    )


def estimate_price(model_id: str, token_count: int, word_count: int) -> EstimatedPrice:
    """Pre-flight estimate: the reply is assumed to be as long as the prompt."""
    price_input, price_output = estimate_cost(model_id, token_count, token_count)
    if word_count <= 0:
        return EstimatedPrice(total=price_input + price_output, input=price_input, output=price_output)
    per_word_input = price_input * 100 / word_count
    per_word_output = price_output * 100 / word_count
    return EstimatedPrice(
        total=price_input + price_output,
        input=price_input,
        output=price_output,
        per_word_total=per_word_input + per_word_output,
        per_word_input=per_word_input,
        per_word_output=per_word_output,
    )


def usage_cost(model_id: str, input_tokens: int, output_tokens: int, reasoning_tokens: int = 0) -> float:
    """Actual cost of one call; reasoning tokens are billed at the output rate."""
    price_input, price_output = estimate_cost(
        model_id, input_tokens, output_tokens + reasoning_tokens, context_size=input_tokens
    )
    return price_input + price_output
