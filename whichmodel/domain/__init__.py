"""Domain layer for whichmodel - data models, enums and exit codes."""

from .enums import AUDIO_MODALITIES, MEDIA_MODALITIES, Freshness, Modality, PricingSource, Tier
from .exit_codes import ExitCode
from .models import (
    AudioPricing,
    CompressedModel,
    Constraints,
    EmbeddingPricing,
    ImagePricing,
    ModelEntry,
    ModelPick,
    Pricing,
    Recommendation,
    RecommendationMeta,
    TaskAnalysis,
    TextPricing,
    TierPicks,
    VideoPricing,
)

__all__ = [
    # Enums
    "Modality",
    "MEDIA_MODALITIES",
    "AUDIO_MODALITIES",
    "PricingSource",
    "Freshness",
    "Tier",
    "ExitCode",
    # Models
    "ModelEntry",
    "CompressedModel",
    "Pricing",
    "TextPricing",
    "ImagePricing",
    "VideoPricing",
    "AudioPricing",
    "EmbeddingPricing",
    "ModelPick",
    "TaskAnalysis",
    "TierPicks",
    "Recommendation",
    "RecommendationMeta",
    "Constraints",
]
