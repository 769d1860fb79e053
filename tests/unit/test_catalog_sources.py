#!/usr/bin/env python3
"""Tests for the OpenRouter, fal.ai and Replicate catalog adapters."""

from unittest.mock import Mock

import httpx
import pytest

from whichmodel.catalog.cache import CatalogCache
from whichmodel.catalog.fal import FalCatalog, chunked, unit_to_price_type
from whichmodel.catalog.openrouter import OpenRouterCatalog
from whichmodel.catalog.replicate import ReplicateCatalog
from whichmodel.config import WhichModelConfig
from whichmodel.domain import Modality
from whichmodel.domain.models import ImagePricing, TextPricing, VideoPricing
from whichmodel.errors import AuthError, MalformedResponseError

FAST_RETRY = {"retry_delays": (0.0,), "sleep": lambda seconds: None, "jitter": lambda delay: delay}


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


OPENROUTER_PAYLOAD = {
    "data": [
        {
            "id": "deepseek/deepseek-v3.2",
            "name": "DeepSeek V3.2",
            "pricing": {"prompt": "0.00000025", "completion": "0.00000038"},
            "context_length": 128000,
            "architecture": {"input_modalities": ["text"], "output_modalities": ["text"]},
        },
        {
            "id": "acme/free-model",
            "name": "Free",
            "pricing": {"prompt": "0", "completion": "0"},
        },
    ]
}


class TestOpenRouterCatalog:
    """Test the OpenRouter adapter."""

    def test_fetch_normalizes_and_drops_free(self):
        catalog = OpenRouterCatalog(client=mock_client(lambda r: httpx.Response(200, json=OPENROUTER_PAYLOAD)), **FAST_RETRY)

        models = catalog.fetch()

        assert [m.id for m in models] == ["openrouter::deepseek/deepseek-v3.2"]
        assert models[0].pricing == TextPricing(prompt_per_1m_tokens=0.25, completion_per_1m_tokens=0.38)

    def test_cache_avoids_second_request(self, cache_dir):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=OPENROUTER_PAYLOAD)

        catalog = OpenRouterCatalog(cache=CatalogCache(cache_dir), client=mock_client(handler), **FAST_RETRY)

        first = catalog.fetch()
        second = catalog.fetch()

        assert first == second
        assert len(calls) == 1

    def test_no_cache_bypasses_read(self, cache_dir):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=OPENROUTER_PAYLOAD)

        cache = CatalogCache(cache_dir)
        OpenRouterCatalog(cache=cache, client=mock_client(handler), **FAST_RETRY).fetch()
        OpenRouterCatalog(cache=cache, no_cache=True, client=mock_client(handler), **FAST_RETRY).fetch()

        assert len(calls) == 2

    def test_invalid_payload(self):
        catalog = OpenRouterCatalog(client=mock_client(lambda r: httpx.Response(200, json={"data": "nope"})), **FAST_RETRY)

        with pytest.raises(MalformedResponseError, match="OpenRouter catalog response is invalid"):
            catalog.fetch()


def fal_model(endpoint_id, category, display_name=None):
    return {"endpoint_id": endpoint_id, "metadata": {"display_name": display_name, "category": category}}


class FalHandler:
    """Serves paginated fal model pages and a pricing endpoint."""

    def __init__(self, pages, prices, missing=(), pricing_status=None):
        self.pages = pages
        self.prices = prices
        self.missing = set(missing)
        self.pricing_status = pricing_status
        self.model_requests = []
        self.pricing_requests = []

    def __call__(self, request):
        if request.url.path.endswith("/pricing"):
            ids = request.url.params.get_list("endpoint_id")
            self.pricing_requests.append(ids)
            if self.pricing_status:
                return httpx.Response(self.pricing_status)
            if self.missing & set(ids):
                return httpx.Response(404)
            return httpx.Response(200, json={"prices": [self.prices[i] for i in ids if i in self.prices]})

        self.model_requests.append(request)
        cursor = request.url.params.get("cursor")
        return httpx.Response(200, json=self.pages[cursor])


FAL_PAGES = {
    None: {
        "models": [
            fal_model("fal-ai/flux/dev", "text-to-image", "FLUX.1 [dev]"),
            fal_model("fal-ai/any-llm", "llm"),
        ],
        "has_more": True,
        "next_cursor": "c2",
    },
    "c2": {"models": [fal_model("fal-ai/kling", "text-to-video", "Kling")], "has_more": False},
}

FAL_PRICES = {
    "fal-ai/flux/dev": {"endpoint_id": "fal-ai/flux/dev", "unit_price": 0.025, "unit": "image"},
    "fal-ai/kling": {"endpoint_id": "fal-ai/kling", "unit_price": 0.1, "unit": "second"},
}


class TestFalCatalog:
    """Test the fal.ai adapter."""

    def test_pagination_and_pricing_join(self):
        handler = FalHandler(FAL_PAGES, FAL_PRICES)
        catalog = FalCatalog(api_key="fal-key", client=mock_client(handler), **FAST_RETRY)

        models = {m.id: m for m in catalog.fetch()}

        assert set(models) == {"fal::fal-ai/flux/dev", "fal::fal-ai/kling"}
        assert models["fal::fal-ai/flux/dev"].pricing == ImagePricing(per_image=0.025)
        assert models["fal::fal-ai/kling"].pricing == VideoPricing(per_second=0.1)
        assert models["fal::fal-ai/kling"].modality == Modality.VIDEO
        assert handler.model_requests[1].url.params["cursor"] == "c2"
        assert handler.model_requests[0].headers["Authorization"] == "Key fal-key"
        # Unsupported categories never reach the pricing endpoint
        assert handler.pricing_requests == [["fal-ai/flux/dev", "fal-ai/kling"]]

    def test_pricing_404_bisects_chunk(self):
        pages = {
            None: {
                "models": FAL_PAGES[None]["models"]
                + FAL_PAGES["c2"]["models"]
                + [fal_model("fal-ai/missing", "text-to-image")],
                "has_more": False,
            }
        }
        handler = FalHandler(pages, FAL_PRICES, missing={"fal-ai/missing"})

        models = FalCatalog(api_key="k", client=mock_client(handler), **FAST_RETRY).fetch()

        assert sorted(m.id for m in models) == ["fal::fal-ai/flux/dev", "fal::fal-ai/kling"]
        assert handler.pricing_requests == [
            ["fal-ai/flux/dev", "fal-ai/kling", "fal-ai/missing"],
            ["fal-ai/flux/dev"],
            ["fal-ai/kling", "fal-ai/missing"],
            ["fal-ai/kling"],
            ["fal-ai/missing"],
        ]

    def test_rate_limited_pricing_skips_chunk(self):
        handler = FalHandler(FAL_PAGES, FAL_PRICES, pricing_status=429)

        assert FalCatalog(api_key="k", client=mock_client(handler), **FAST_RETRY).fetch() == []

    def test_missing_key(self):
        with pytest.raises(AuthError, match="FAL_API_KEY is not set"):
            FalCatalog(api_key=None).fetch()

    def test_rejected_key(self):
        catalog = FalCatalog(api_key="bad", client=mock_client(lambda r: httpx.Response(401)), **FAST_RETRY)

        with pytest.raises(AuthError) as exc_info:
            catalog.fetch()

        assert exc_info.value.message == "Invalid or unauthorized fal.ai API key."

    def test_unit_mapping(self):
        assert unit_to_price_type("text-to-speech", "1k characters") == "per_character"
        assert unit_to_price_type("speech-to-text", "minutes") == "per_minute"
        assert unit_to_price_type("image-to-image", None) == "per_image"
        assert unit_to_price_type("text-to-video", "request") == "per_generation"

    def test_chunked(self):
        assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]


def replicate_record(name, run_count=None, visibility="public", pricing=None):
    return {
        "owner": "meta",
        "name": name,
        "visibility": visibility,
        "run_count": run_count,
        "pricing": pricing,
    }


TEXT_PRICE = {"input_per_1m": 0.5, "output_per_1m": 1.0}


class ReplicateHandler:
    def __init__(self):
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if request.url.params.get("cursor") == "page2":
            return httpx.Response(
                200, json={"results": [replicate_record("llama-b", run_count=500, pricing=TEXT_PRICE)], "next": None}
            )
        return httpx.Response(
            200,
            json={
                "results": [
                    replicate_record("secret", run_count=9999, visibility="private", pricing=TEXT_PRICE),
                    replicate_record("llama-a", run_count=10, pricing=TEXT_PRICE),
                    replicate_record("llama-c"),
                ],
                "next": "https://api.replicate.com/v1/models?cursor=page2",
            },
        )


class TestReplicateCatalog:
    """Test the Replicate adapter."""

    def test_pages_privacy_and_popularity(self):
        handler = ReplicateHandler()
        catalog = ReplicateCatalog(api_token="r8_token", client=mock_client(handler), **FAST_RETRY)

        models = catalog.fetch()

        # llama-c has no price and is dropped; private models are skipped
        assert [m.id for m in models] == ["replicate::meta/llama-b", "replicate::meta/llama-a"]
        assert models[0].pricing == TextPricing(prompt_per_1m_tokens=0.5, completion_per_1m_tokens=1.0)
        assert len(handler.requests) == 2
        assert handler.requests[0].headers["Authorization"] == "Bearer r8_token"

    def test_enricher_fills_missing_prices(self):
        enricher = Mock()
        enricher.enrich.side_effect = lambda models: [
            m if m.pricing else m.model_copy(update={"pricing": TEXT_PRICE}) for m in models
        ]
        catalog = ReplicateCatalog(
            api_token="t", enricher=enricher, client=mock_client(ReplicateHandler()), **FAST_RETRY
        )

        ids = [m.id for m in catalog.fetch()]

        assert "replicate::meta/llama-c" in ids
        enricher.enrich.assert_called_once()

    def test_missing_token(self):
        with pytest.raises(AuthError, match="REPLICATE_API_TOKEN is not set"):
            ReplicateCatalog(api_token="").fetch()

    def test_close_releases_api_and_page_clients(self, monkeypatch):
        monkeypatch.setenv("REPLICATE_API_TOKEN", "r8_token")
        catalog = ReplicateCatalog.from_config(WhichModelConfig())

        catalog.close()

        assert catalog.requester.client.is_closed
        assert catalog.page_client.is_closed
