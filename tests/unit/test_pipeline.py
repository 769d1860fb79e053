#!/usr/bin/env python3
"""Tests for the recommendation pipeline, id repair and prompts."""

import json

import pytest

from whichmodel.catalog.compressor import compress_for_llm, group_by_modality
from whichmodel.domain import Modality
from whichmodel.domain.models import Constraints
from whichmodel.errors import LLMFailedError, NetworkError, NoModelsFoundError
from whichmodel.llm import LLMAPIError, MockLLMProvider
from whichmodel.recommender import (
    build_user_prompt,
    find_closest_id,
    parse_recommendation,
    recommend,
)
from whichmodel.recommender.pipeline import estimate_recommendation_cost, strip_markdown_fences

RECOMMENDER = "deepseek/deepseek-v3.2"
SOURCES = ["openrouter"]


def pick(model_id):
    return {
        "id": model_id,
        "reason": "Fits the task.",
        "pricingSummary": "$1 / $2 per 1M tokens",
        "estimatedCost": "~$5/mo",
    }


def llm_payload(cheapest="openrouter::deepseek/deepseek-v3.2", modality="text"):
    return {
        "taskAnalysis": {
            "summary": "Summarize legal contracts",
            "detectedModality": modality,
            "modalityReasoning": "The output is text.",
            "keyRequirements": ["accuracy", "long context"],
            "costFactors": "Input-heavy workload.",
        },
        "recommendations": {
            "cheapest": pick(cheapest),
            "balanced": pick("openrouter::google/gemini-2.5-pro"),
            "best": pick("openrouter::anthropic/claude-sonnet-4"),
        },
        "alternativesInOtherModalities": None,
    }


def run(catalog, *responses, constraints=None, sources=SOURCES):
    provider = MockLLMProvider(list(responses))
    result = recommend(
        "summarize legal contracts",
        catalog,
        provider,
        RECOMMENDER,
        constraints=constraints,
        catalog_sources=sources,
    )
    return result, provider


class TestParseRecommendation:
    """Test LLM output parsing."""

    def test_strips_fences(self):
        assert strip_markdown_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_valid(self):
        rec = parse_recommendation(json.dumps(llm_payload()))
        assert rec.recommendations.balanced.id == "openrouter::google/gemini-2.5-pro"

    @pytest.mark.parametrize(
        "content,message",
        [
            ("", "LLM returned an empty response."),
            ("```json\n```", "LLM returned an empty response."),
            ("{not json", "LLM returned invalid JSON."),
            ("{}", "LLM JSON response does not match expected recommendation structure."),
        ],
    )
    def test_failures(self, content, message):
        with pytest.raises(LLMFailedError) as exc_info:
            parse_recommendation(content)
        assert exc_info.value.message == message

    def test_blank_reason_rejected(self):
        payload = llm_payload()
        payload["recommendations"]["best"]["reason"] = "   "

        with pytest.raises(LLMFailedError):
            parse_recommendation(json.dumps(payload))


class TestFindClosestId:
    """Test near-miss id repair."""

    def test_token_overlap(self, sample_catalog):
        ids = [m.id for m in sample_catalog]
        assert find_closest_id("google/gemini-pro", ids) == "openrouter::google/gemini-2.5-pro"

    def test_substring(self, sample_catalog):
        ids = [m.id for m in sample_catalog]
        assert find_closest_id("openrouter::anthropic/claude-sonnet", ids) == "openrouter::anthropic/claude-sonnet-4"

    def test_unrelated(self, sample_catalog):
        assert find_closest_id("totally/unrelated", [m.id for m in sample_catalog]) is None
        assert find_closest_id("", [m.id for m in sample_catalog]) is None


class TestPrompts:
    def test_user_prompt_sections(self, sample_catalog):
        prompt = build_user_prompt(
            "summarize contracts",
            group_by_modality(compress_for_llm(sample_catalog)),
            Constraints(max_price=0.05, min_context=200_000, modality=Modality.TEXT),
        )

        assert prompt.startswith("## Task Description\nsummarize contracts")
        assert "Max price: $0.05 per unit" in prompt
        assert "Min context length: 200,000 tokens" in prompt
        assert "Force modality: text" in prompt
        assert "### TEXT Models (3)" in prompt
        assert "### IMAGE Models (1)" in prompt
        assert '"perImage": 0.025' in prompt

    def test_no_constraints(self, sample_catalog):
        prompt = build_user_prompt("x", group_by_modality(compress_for_llm(sample_catalog)))
        assert "## Constraints\nNone" in prompt


class TestRecommend:
    """Test the LLM path, repair, and fallback."""

    def test_valid_llm_response(self, sample_catalog):
        result, provider = run(sample_catalog, json.dumps(llm_payload()))

        assert result.meta.used_fallback is False
        assert result.recommendation.recommendations.best.id == "openrouter::anthropic/claude-sonnet-4"
        assert result.meta.prompt_tokens == 1000
        assert result.meta.recommendation_cost_usd == pytest.approx(0.000326)
        assert result.meta.catalog_total_models == 4
        assert result.meta.catalog_models_in_modality == 3
        assert result.meta.catalog_sources == SOURCES
        assert result.recommendation.alternatives_in_other_modalities is None

        messages, model, temperature, json_mode = provider.calls[0]
        assert [m.role for m in messages] == ["system", "user"]
        assert model == RECOMMENDER
        assert temperature == 0.2
        assert json_mode is True

    def test_fenced_response(self, sample_catalog):
        result, _ = run(sample_catalog, f"```json\n{json.dumps(llm_payload())}\n```")
        assert result.meta.used_fallback is False

    def test_invalid_json_falls_back(self, sample_catalog):
        result, _ = run(sample_catalog, "Sure! Here are my picks...")

        assert result.meta.used_fallback is True
        assert result.meta.recommendation_cost_usd == 0.0
        assert result.meta.prompt_tokens is None
        assert result.recommendation.recommendations.cheapest.id == "openrouter::deepseek/deepseek-v3.2"

    def test_provider_error_falls_back(self, sample_catalog):
        result, _ = run(sample_catalog, LLMAPIError("OpenRouter API error: 502"))
        assert result.meta.used_fallback is True

    def test_near_miss_id_is_repaired(self, sample_catalog):
        result, _ = run(sample_catalog, json.dumps(llm_payload(cheapest="google/gemini-pro")))

        assert result.meta.used_fallback is False
        assert result.recommendation.recommendations.cheapest.id == "openrouter::google/gemini-2.5-pro"

    def test_unknown_id_falls_back(self, sample_catalog):
        result, _ = run(sample_catalog, json.dumps(llm_payload(cheapest="totally/unrelated")))

        assert result.meta.used_fallback is True
        valid = {m.id for m in sample_catalog}
        assert all(p.id in valid for _, p in result.recommendation.recommendations.items())

    def test_missing_modality_guidance(self, sample_catalog):
        result, _ = run(sample_catalog, json.dumps(llm_payload(modality="video")))

        note = result.recommendation.alternatives_in_other_modalities
        assert note.startswith("No 'video' models are available in configured sources (openrouter).")
        assert "FAL_API_KEY" in note
        assert "REPLICATE_API_TOKEN" in note
        assert note.endswith("Broaden sources or force a different modality with --modality.")
        assert result.meta.catalog_models_in_modality == 0

    def test_guidance_skips_configured_sources(self, sample_catalog):
        result, _ = run(sample_catalog, json.dumps(llm_payload(modality="video")), sources=["openrouter", "fal"])

        note = result.recommendation.alternatives_in_other_modalities
        assert "FAL_API_KEY" not in note
        assert "REPLICATE_API_TOKEN" in note

    def test_guidance_after_fallback(self, sample_catalog):
        provider = MockLLMProvider([LLMAPIError("down")])
        result = recommend("transcribe my podcast", sample_catalog, provider, RECOMMENDER, catalog_sources=SOURCES)

        assert result.meta.used_fallback is True
        assert "No 'audio_stt' models" in result.recommendation.alternatives_in_other_modalities

    @pytest.mark.parametrize(
        "error",
        [TimeoutError("llm timed out"), ConnectionError("reset by peer"), RuntimeError("sdk bug")],
    )
    def test_any_llm_exception_falls_back(self, sample_catalog, error):
        result, _ = run(sample_catalog, error)

        assert result.meta.used_fallback is True
        assert result.recommendation.recommendations.cheapest.id == "openrouter::deepseek/deepseek-v3.2"

    def test_llm_failed_error_falls_back(self, sample_catalog):
        result, _ = run(sample_catalog, LLMFailedError("LLM returned an empty response."))
        assert result.meta.used_fallback is True

    def test_non_llm_whichmodel_errors_propagate(self, sample_catalog):
        with pytest.raises(NetworkError):
            run(sample_catalog, NetworkError("unexpected"))

    def test_empty_catalog(self):
        with pytest.raises(NoModelsFoundError, match="No models found from configured sources"):
            recommend("task", [], MockLLMProvider(), RECOMMENDER)


class TestRecommendationCost:
    def test_known_model(self):
        assert estimate_recommendation_cost(RECOMMENDER, 1_000_000, 1_000_000) == pytest.approx(0.63)

    def test_unknown_model_or_usage(self):
        assert estimate_recommendation_cost("acme/unknown", 100, 100) == 0.0
        assert estimate_recommendation_cost(RECOMMENDER, None, 100) == 0.0
