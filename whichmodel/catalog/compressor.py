"""Slim catalog projection sent to the recommender."""

from typing import Dict, Iterable, List

from ..domain.models import CompressedModel, ModelEntry
from ..pricing import flatten_pricing


def compress_model(model: ModelEntry) -> CompressedModel:
    return CompressedModel(
        id=model.id,
        name=model.name,
        modality=model.modality,
        pricing=flatten_pricing(model.pricing),
        context_length=model.context_length,
        max_resolution=model.max_resolution or None,
        max_duration=model.max_duration,
    )


def compress_for_llm(models: Iterable[ModelEntry]) -> List[CompressedModel]:
    """Keep only id, name, modality, flattened pricing and size limits."""
    return [compress_model(model) for model in models]


def group_by_modality(models: Iterable[CompressedModel]) -> Dict[str, List[CompressedModel]]:
    grouped: Dict[str, List[CompressedModel]] = {}
    for model in models:
        grouped.setdefault(model.modality.value, []).append(model)
    return grouped
