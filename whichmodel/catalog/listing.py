"""Catalog listing and statistics used by the ``list`` and ``stats`` commands."""

import math
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import WhichModelConfig
from ..domain import Modality
from ..domain.models import ModelEntry
from ..pricing import format_pricing_short, has_usable_price, primary_price

SORT_KEYS = ("price", "name", "context")

MODALITY_LABELS = {
    Modality.TEXT: "Text",
    Modality.IMAGE: "Image",
    Modality.VIDEO: "Video",
    Modality.AUDIO_TTS: "Audio (TTS)",
    Modality.AUDIO_STT: "Audio (STT)",
    Modality.AUDIO_GENERATION: "Audio (Gen)",
    Modality.VISION: "Vision",
    Modality.EMBEDDING: "Embedding",
    Modality.MULTIMODAL: "Multimodal",
}

# (source, config attribute, env var, where to get a key)
SOURCE_CREDENTIALS = [
    ("fal", "fal_api_key", "FAL_API_KEY", "https://fal.ai/dashboard/keys"),
    (
        "replicate",
        "replicate_api_token",
        "REPLICATE_API_TOKEN",
        "https://replicate.com/account/api-tokens",
    ),
    (
        "elevenlabs",
        "elevenlabs_api_key",
        "ELEVENLABS_API_KEY",
        "https://elevenlabs.io/app/settings/api-keys",
    ),
    (
        "together",
        "together_api_key",
        "TOGETHER_API_KEY",
        "https://api.together.xyz/settings/api-keys",
    ),
]


class ModelListItem(BaseModel):
    id: str
    name: str
    pricing: str
    context: Optional[int] = None
    modality: Modality
    source: str


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class ModalityStats(BaseModel):
    count: int = 0
    price_range: PriceRange = Field(default_factory=PriceRange)


class MissingSource(BaseModel):
    name: str
    env_var: str
    get_url: str


class CatalogStats(BaseModel):
    total_models: int
    sources: List[str]
    by_modality: Dict[str, ModalityStats]
    configured_sources: List[str]
    missing_sources: List[MissingSource]


def _price_sort_key(model: ModelEntry):
    price = primary_price(model)
    # Unpriced entries sort last and among themselves by name
    if math.isfinite(price):
        return (0, price, "")
    return (1, 0.0, model.name.lower())


def filter_and_sort_models(
    models: List[ModelEntry],
    modality: Optional[Modality] = None,
    source: Optional[str] = None,
    sort: str = "price",
    limit: Optional[int] = None,
) -> List[ModelListItem]:
    """Filter by modality/source, sort, and cap the list."""
    filtered = [
        m
        for m in models
        if (modality is None or m.modality == modality) and (source is None or m.source == source)
    ]

    if sort == "price":
        filtered.sort(key=_price_sort_key)
    elif sort == "name":
        filtered.sort(key=lambda m: m.name.lower())
    elif sort == "context":
        filtered.sort(key=lambda m: -(m.context_length or 0))

    if limit is not None:
        filtered = filtered[:limit]

    return [
        ModelListItem(
            id=m.id,
            name=m.name,
            pricing=format_pricing_short(m.pricing),
            context=m.context_length,
            modality=m.modality,
            source=m.source,
        )
        for m in filtered
    ]


def format_context(context: Optional[int]) -> str:
    if not context:
        return "-"
    if context >= 1_000_000:
        return f"{context / 1_000_000:.1f}M"
    if context >= 1000:
        return f"{round(context / 1000)}K"
    return str(context)


def format_price(price: Optional[float]) -> str:
    if price is None or not math.isfinite(price):
        return "N/A"
    if price < 0.01:
        return f"${price:.4f}"
    if price < 1:
        return f"${price:.3f}"
    return f"${price:.2f}"


def price_unit(modality: Modality) -> str:
    if modality in (Modality.TEXT, Modality.EMBEDDING):
        return "/ 1M tokens"
    if modality == Modality.IMAGE:
        return "/ image"
    if modality == Modality.VIDEO:
        return "/ second"
    if modality in (Modality.AUDIO_TTS, Modality.AUDIO_STT, Modality.AUDIO_GENERATION):
        return "/ minute"
    return "varies"


def compute_stats(models: List[ModelEntry], config: WhichModelConfig) -> CatalogStats:
    """Per-modality counts and price ranges plus source credential status.

    Entries without a usable price are not counted.
    """
    by_modality: Dict[str, ModalityStats] = {}
    sources = set()
    total = 0

    for model in models:
        if not has_usable_price(model.pricing):
            continue
        total += 1
        sources.add(model.source)

        stats = by_modality.setdefault(model.modality.value, ModalityStats())
        stats.count += 1
        price = primary_price(model)
        if math.isfinite(price):
            current = stats.price_range
            current.min = price if current.min is None else min(current.min, price)
            current.max = price if current.max is None else max(current.max, price)

    configured = ["openrouter"]
    missing: List[MissingSource] = []
    for name, attr, env_var, url in SOURCE_CREDENTIALS:
        if getattr(config, attr):
            configured.append(name)
        else:
            missing.append(MissingSource(name=name, env_var=env_var, get_url=url))

    ordered = {m.value: by_modality[m.value] for m in Modality if m.value in by_modality}
    return CatalogStats(
        total_models=total,
        sources=sorted(sources),
        by_modality=ordered,
        configured_sources=configured,
        missing_sources=missing,
    )
