"""Domain models for whichmodel."""

from .catalog import (
    AudioPricing,
    CompressedModel,
    DomainModel,
    EmbeddingPricing,
    ImagePricing,
    ModelEntry,
    Pricing,
    TextPricing,
    VideoPricing,
)
from .recommendation import (
    Constraints,
    ModelPick,
    Recommendation,
    RecommendationMeta,
    TaskAnalysis,
    TierPicks,
)

__all__ = [
    # Catalog models
    "DomainModel",
    "ModelEntry",
    "CompressedModel",
    "Pricing",
    "TextPricing",
    "ImagePricing",
    "VideoPricing",
    "AudioPricing",
    "EmbeddingPricing",
    # Recommendation models
    "ModelPick",
    "TaskAnalysis",
    "TierPicks",
    "Recommendation",
    "RecommendationMeta",
    "Constraints",
]
