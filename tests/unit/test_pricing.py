#!/usr/bin/env python3
"""Tests for the primary price accessor and pricing display helpers."""

import math

from whichmodel.domain.models import (
    AudioPricing,
    EmbeddingPricing,
    ImagePricing,
    TextPricing,
    VideoPricing,
)
from whichmodel.pricing import (
    flatten_pricing,
    format_pricing_short,
    has_usable_price,
    pricing_price,
    summarize_pricing,
)


class TestPrimaryPrice:
    """Test the representative price per pricing variant."""

    def test_text_uses_prompt_rate(self):
        """Text models rank by prompt price."""
        pricing = TextPricing(prompt_per_1m_tokens=0.25, completion_per_1m_tokens=0.38)
        assert pricing_price(pricing) == 0.25

    def test_image_falls_back_to_megapixel(self):
        """Per-megapixel is used when per-image is missing."""
        assert pricing_price(ImagePricing(per_megapixel=0.05)) == 0.05

    def test_image_prefers_per_image(self):
        """Per-image wins over the other image fields."""
        assert pricing_price(ImagePricing(per_image=0.04, per_megapixel=0.01)) == 0.04

    def test_video_skips_zero_per_second(self):
        """A zero price is not usable, so the next field is used."""
        assert pricing_price(VideoPricing(per_second=0, per_generation=0.4)) == 0.4

    def test_audio_order(self):
        """Audio prefers minute, then character, then second."""
        assert pricing_price(AudioPricing(per_character=0.00003, per_second=0.01)) == 0.00003

    def test_embedding_rate(self):
        assert pricing_price(EmbeddingPricing(per_1m_tokens=0.02)) == 0.02

    def test_no_usable_field_is_infinite(self):
        """Missing prices sort last."""
        assert math.isinf(pricing_price(ImagePricing()))
        assert math.isinf(pricing_price(TextPricing(prompt_per_1m_tokens=0, completion_per_1m_tokens=1)))


class TestHasUsablePrice:
    """Test usable-price detection."""

    def test_empty_image_pricing(self):
        assert has_usable_price(ImagePricing()) is False

    def test_any_positive_field(self):
        assert has_usable_price(VideoPricing(per_generation=0.2)) is True

    def test_non_finite_is_not_usable(self):
        assert has_usable_price(AudioPricing(per_minute=float("inf"))) is False


class TestPricingDisplay:
    """Test human-readable pricing strings."""

    def test_text_summary(self):
        pricing = TextPricing(prompt_per_1m_tokens=0.25, completion_per_1m_tokens=0.38)
        assert summarize_pricing(pricing) == "$0.25 / $0.38 per 1M tokens (in/out)"

    def test_character_summary_per_thousand(self):
        assert summarize_pricing(AudioPricing(per_character=0.00003)) == "$0.030 per 1K chars"

    def test_short_format(self):
        assert format_pricing_short(ImagePricing(per_image=0.025)) == "$0.025 / image"
        assert format_pricing_short(ImagePricing()) == "N/A"

    def test_flatten_uses_wire_names(self):
        """Flattened pricing uses camelCase keys and drops unset fields."""
        pricing = TextPricing(prompt_per_1m_tokens=3, completion_per_1m_tokens=15)
        assert flatten_pricing(pricing) == {"promptPer1mTokens": 3.0, "completionPer1mTokens": 15.0}
        assert flatten_pricing(ImagePricing(per_image=0.04)) == {"perImage": 0.04}
