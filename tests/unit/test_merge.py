#!/usr/bin/env python3
"""Tests for cross-source catalog merging."""

from whichmodel.catalog.merge import merge_catalogs, should_replace


class TestShouldReplace:
    """Test the per-id tie-break rules."""

    def test_more_complete_entry_wins(self, make_text_model):
        sparse = make_text_model("openrouter::a/model", 1.0, 2.0)
        rich = make_text_model("openrouter::a/model", 5.0, 6.0, context_length=8000)

        assert should_replace(sparse, rich) is True
        assert should_replace(rich, sparse) is False

    def test_cheaper_entry_wins_on_equal_completeness(self, make_text_model):
        pricey = make_text_model("openrouter::a/model", 2.0, 2.0)
        cheap = make_text_model("openrouter::a/model", 1.0, 2.0)

        assert should_replace(pricey, cheap) is True

    def test_full_tie_keeps_first(self, make_text_model):
        first = make_text_model("openrouter::a/model", 1.0, 2.0)
        second = make_text_model("openrouter::a/model", 1.0, 2.0)

        assert should_replace(first, second) is False


class TestMergeCatalogs:
    """Test merging per-source lists."""

    def test_distinct_sources_are_not_merged(self, make_text_model, make_image_model):
        openrouter = [make_text_model("openrouter::black-forest-labs/flux", 1.0, 1.0)]
        fal = [make_image_model("fal::black-forest-labs/flux", 0.03)]

        merged = merge_catalogs([openrouter, fal])

        assert [m.id for m in merged] == [
            "openrouter::black-forest-labs/flux",
            "fal::black-forest-labs/flux",
        ]

    def test_duplicate_ids_collapse(self, make_text_model):
        merged = merge_catalogs(
            [
                [make_text_model("openrouter::a/x", 2.0, 2.0)],
                [make_text_model("openrouter::a/x", 1.0, 2.0)],
            ]
        )

        assert len(merged) == 1
        assert merged[0].pricing.prompt_per_1m_tokens == 1.0

    def test_idempotent(self, sample_catalog):
        """Merging a merged catalog with itself changes nothing."""
        once = merge_catalogs([sample_catalog])
        twice = merge_catalogs([once, once])

        assert twice == once

    def test_first_seen_order(self, make_text_model):
        merged = merge_catalogs(
            [
                [make_text_model("openrouter::b/y", 1.0, 1.0)],
                [make_text_model("openrouter::a/x", 1.0, 1.0), make_text_model("openrouter::b/y", 1.0, 1.0)],
            ]
        )
        assert [m.id for m in merged] == ["openrouter::b/y", "openrouter::a/x"]
