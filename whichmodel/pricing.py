#!/usr/bin/env python3
"""
Price accessors and pricing display helpers.

``primary_price`` picks one representative number per pricing variant and is
the value used for ranking, filtering, and merge tie-breaks.
"""

import math
from typing import Dict, Iterable, Optional

from .domain.models import (
    AudioPricing,
    EmbeddingPricing,
    ImagePricing,
    ModelEntry,
    Pricing,
    TextPricing,
    VideoPricing,
)


def _usable(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    return value


def _first_usable(values: Iterable[Optional[float]]) -> float:
    for value in values:
        usable = _usable(value)
        if usable is not None:
            return usable
    return math.inf


def pricing_price(pricing: Pricing) -> float:
    """Primary price for a pricing variant, or +inf when nothing is usable.

    Fallback order: text prompt rate; image per-image, per-megapixel,
    per-step; video per-second, per-generation; audio per-minute,
    per-character, per-second; embedding rate.
    """
    if isinstance(pricing, TextPricing):
        return _first_usable([pricing.prompt_per_1m_tokens])
    if isinstance(pricing, ImagePricing):
        return _first_usable([pricing.per_image, pricing.per_megapixel, pricing.per_step])
    if isinstance(pricing, VideoPricing):
        return _first_usable([pricing.per_second, pricing.per_generation])
    if isinstance(pricing, AudioPricing):
        return _first_usable([pricing.per_minute, pricing.per_character, pricing.per_second])
    if isinstance(pricing, EmbeddingPricing):
        return _first_usable([pricing.per_1m_tokens])
    return math.inf


def primary_price(model: ModelEntry) -> float:
    """Representative price of a model (finite and positive, or +inf)."""
    return pricing_price(model.pricing)


def has_usable_price(pricing: Pricing) -> bool:
    """True when any price field of the variant is finite and positive."""
    values = [
        value
        for key, value in pricing
        if key != "type" and isinstance(value, (int, float))
    ]
    return any(_usable(float(value)) is not None for value in values)


def flatten_pricing(pricing: Pricing) -> Dict[str, float]:
    """Numeric pricing fields keyed by their wire name, dropping unset ones."""
    dumped = pricing.model_dump(by_alias=True, exclude_none=True)
    return {
        key: float(value)
        for key, value in dumped.items()
        if key != "type" and isinstance(value, (int, float))
    }


def summarize_pricing(pricing: Pricing) -> str:
    """Human-readable pricing sentence used in recommendation picks."""
    if isinstance(pricing, TextPricing):
        return (
            f"${pricing.prompt_per_1m_tokens:.2f} / ${pricing.completion_per_1m_tokens:.2f} "
            "per 1M tokens (in/out)"
        )
    if isinstance(pricing, EmbeddingPricing):
        return f"${pricing.per_1m_tokens:.2f} per 1M tokens"
    if isinstance(pricing, ImagePricing):
        if pricing.per_image is not None:
            return f"${pricing.per_image:.3f} per image"
        if pricing.per_megapixel is not None:
            return f"${pricing.per_megapixel:.3f} per megapixel"
        if pricing.per_step is not None:
            return f"${pricing.per_step:.5f} per step"
    if isinstance(pricing, VideoPricing):
        if pricing.per_second is not None:
            return f"${pricing.per_second:.3f} per second"
        if pricing.per_generation is not None:
            return f"${pricing.per_generation:.3f} per generation"
    if isinstance(pricing, AudioPricing):
        if pricing.per_minute is not None:
            return f"${pricing.per_minute:.3f} per minute"
        if pricing.per_character is not None:
            return f"${pricing.per_character * 1000:.3f} per 1K chars"
        if pricing.per_second is not None:
            return f"${pricing.per_second:.4f} per second"
    return "Pricing varies by provider"


def format_pricing_short(pricing: Pricing) -> str:
    """Compact pricing cell for tables."""
    if isinstance(pricing, TextPricing):
        return f"${pricing.prompt_per_1m_tokens:.2f} / ${pricing.completion_per_1m_tokens:.2f}"
    if isinstance(pricing, EmbeddingPricing):
        return f"${pricing.per_1m_tokens:.3f} / 1M"
    if isinstance(pricing, ImagePricing):
        if pricing.per_image:
            return f"${pricing.per_image:.3f} / image"
        if pricing.per_megapixel:
            return f"${pricing.per_megapixel:.3f} / MP"
        if pricing.per_step:
            return f"${pricing.per_step:.5f} / step"
    if isinstance(pricing, VideoPricing):
        if pricing.per_second:
            return f"${pricing.per_second:.3f} / sec"
        if pricing.per_generation:
            return f"${pricing.per_generation:.2f} / gen"
    if isinstance(pricing, AudioPricing):
        if pricing.per_minute:
            return f"${pricing.per_minute:.3f} / min"
        if pricing.per_character:
            return f"${pricing.per_character:.6f} / char"
        if pricing.per_second:
            return f"${pricing.per_second:.4f} / sec"
    return "N/A"
