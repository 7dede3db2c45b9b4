"""Static pricing tables for estimating provider cost."""

from __future__ import annotations

from typing import Mapping, NamedTuple


class _TokenPricing(NamedTuple):
    """USD per one million tokens."""

    input_per_million: float
    output_per_million: float


_PROVIDER_PRICING: Mapping[str, Mapping[str, _TokenPricing]] = {
    "openai": {
        "gpt-4o": _TokenPricing(2.5, 10.0),
        "gpt-4o-mini": _TokenPricing(0.15, 0.6),
        "gpt-4.1": _TokenPricing(2.0, 8.0),
        "gpt-4.1-mini": _TokenPricing(0.4, 1.6),
        "gpt-5": _TokenPricing(1.25, 10.0),
        "gpt-5-mini": _TokenPricing(0.25, 2.0),
    },
    "deepseek": {
        "deepseek-chat": _TokenPricing(0.27, 1.1),
    },
    "gemini": {
        "gemini-2.5-pro": _TokenPricing(1.25, 10.0),
        "gemini-2.5-flash": _TokenPricing(0.30, 2.5),
    },
}


def estimate_cost(
    provider: str,
    model: str,
    prompt_tokens: int | float | None,
    completion_tokens: int | float | None,
) -> float | None:
    """Approximate USD cost of a response, or ``None`` when the model is unpriced."""

    provider_key = (provider or "").lower()
    if provider_key == "mock":
        return 0.0

    pricing = _PROVIDER_PRICING.get(provider_key, {}).get((model or "").lower())
    if pricing is None:
        return None

    prompt_value = max(float(prompt_tokens or 0.0), 0.0)
    completion_value = max(float(completion_tokens or 0.0), 0.0)
    cost = (
        prompt_value * pricing.input_per_million
        + completion_value * pricing.output_per_million
    ) / 1_000_000.0
    return round(cost, 6)


__all__ = ["estimate_cost"]
