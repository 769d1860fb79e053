"""Shared fixtures for unit tests."""

from typing import List, Optional

import pytest

from whichmodel.config import reset_config
from whichmodel.domain import Modality
from whichmodel.domain.models import (
    AudioPricing,
    ImagePricing,
    ModelEntry,
    Pricing,
    TextPricing,
)

CREDENTIAL_VARS = [
    "OPENROUTER_API_KEY",
    "FAL_API_KEY",
    "REPLICATE_API_TOKEN",
    "ELEVENLABS_API_KEY",
    "TOGETHER_API_KEY",
    "WHICHMODEL_MODEL",
    "WHICHMODEL_CACHE_TTL",
    "WHICHMODEL_LOG_LEVEL",
    "WHICHMODEL_LOG_FORMAT",
    "WHICHMODEL_REPLICATE_PRICE_TTL_SECONDS",
    "WHICHMODEL_REPLICATE_PRICE_MAX_STALE_SECONDS",
    "WHICHMODEL_REPLICATE_PRICE_FETCH_BUDGET",
    "WHICHMODEL_REPLICATE_PRICE_CONCURRENCY",
]


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from real credentials, config files and cache dirs.

    The global config is reset before and after each test so environment
    changes made with monkeypatch are picked up.
    """
    for var in CREDENTIAL_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("WHICHMODEL_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("WHICHMODEL_CONFIG", str(tmp_path / "missing-config.yaml"))

    reset_config()
    yield
    reset_config()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


def _entry(
    model_id: str,
    modality: Modality,
    pricing: Pricing,
    context_length: Optional[int] = None,
    inputs: Optional[List[str]] = None,
    outputs: Optional[List[str]] = None,
) -> ModelEntry:
    source, _, rest = model_id.partition("::")
    return ModelEntry(
        id=model_id,
        source=source,
        name=rest.split("/")[-1],
        modality=modality,
        input_modalities=inputs or ["text"],
        output_modalities=outputs or ["text"],
        pricing=pricing,
        context_length=context_length,
        provider=rest.split("/")[0],
        family="other",
    )


@pytest.fixture
def make_text_model():
    """Factory for text catalog entries priced per 1M tokens."""

    def factory(
        model_id: str,
        prompt: float,
        completion: float,
        context_length: Optional[int] = None,
        modality: Modality = Modality.TEXT,
    ) -> ModelEntry:
        return _entry(
            model_id,
            modality,
            TextPricing(prompt_per_1m_tokens=prompt, completion_per_1m_tokens=completion),
            context_length=context_length,
            inputs=["text", "image"] if modality == Modality.VISION else ["text"],
        )

    return factory


@pytest.fixture
def make_image_model():
    """Factory for image catalog entries priced per image."""

    def factory(model_id: str, per_image: float) -> ModelEntry:
        return _entry(model_id, Modality.IMAGE, ImagePricing(per_image=per_image), outputs=["image"])

    return factory


@pytest.fixture
def make_audio_model():
    def factory(model_id: str, per_minute: float, modality: Modality = Modality.AUDIO_STT) -> ModelEntry:
        return _entry(
            model_id,
            modality,
            AudioPricing(per_minute=per_minute),
            inputs=["audio"],
            outputs=["text"],
        )

    return factory


@pytest.fixture
def sample_catalog(make_text_model, make_image_model):
    """Small mixed catalog used across recommender and CLI tests."""
    return [
        make_text_model("openrouter::deepseek/deepseek-v3.2", 0.25, 0.38, context_length=128_000),
        make_text_model("openrouter::anthropic/claude-sonnet-4", 3.0, 15.0, context_length=200_000),
        make_text_model("openrouter::google/gemini-2.5-pro", 1.25, 10.0, context_length=1_000_000),
        make_image_model("fal::fal-ai/flux/dev", 0.025),
    ]
