"""Enums for the whichmodel domain layer."""

from enum import Enum


class Modality(str, Enum):
    """Primary input/output capability class of a model."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO_TTS = "audio_tts"
    AUDIO_STT = "audio_stt"
    AUDIO_GENERATION = "audio_generation"
    VISION = "vision"
    EMBEDDING = "embedding"
    MULTIMODAL = "multimodal"

    @property
    def is_media(self) -> bool:
        return self in MEDIA_MODALITIES


MEDIA_MODALITIES = frozenset(
    {
        Modality.IMAGE,
        Modality.VIDEO,
        Modality.AUDIO_TTS,
        Modality.AUDIO_STT,
        Modality.AUDIO_GENERATION,
    }
)

AUDIO_MODALITIES = frozenset(
    {Modality.AUDIO_TTS, Modality.AUDIO_STT, Modality.AUDIO_GENERATION}
)


class PricingSource(str, Enum):
    """How a scraped price was extracted from a model page."""

    BILLING_CONFIG = "billingConfig"
    PRICE_STRING = "price-string"


class Freshness(str, Enum):
    """Temporal state of a price-enrichment cache entry."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"
    MISSING = "missing"


class Tier(str, Enum):
    """Recommendation tiers, in presentation order."""

    CHEAPEST = "cheapest"
    BALANCED = "balanced"
    BEST = "best"
