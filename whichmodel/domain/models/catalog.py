"""Canonical catalog models shared by every source."""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..enums import Modality


class DomainModel(BaseModel):
    """Base for domain models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextPricing(DomainModel):
    """Per-1M-token rates for text models."""

    type: Literal["text"] = "text"
    # Explicit aliases: the generator would camel-case "1m" as "1M".
    prompt_per_1m_tokens: float = Field(alias="promptPer1mTokens")
    completion_per_1m_tokens: float = Field(alias="completionPer1mTokens")


class ImagePricing(DomainModel):
    """Per-unit image rates; any subset may be known."""

    type: Literal["image"] = "image"
    per_image: Optional[float] = None
    per_megapixel: Optional[float] = None
    per_step: Optional[float] = None


class VideoPricing(DomainModel):
    """Per-unit video rates."""

    type: Literal["video"] = "video"
    per_second: Optional[float] = None
    per_generation: Optional[float] = None


class AudioPricing(DomainModel):
    """Per-unit audio rates."""

    type: Literal["audio"] = "audio"
    per_minute: Optional[float] = None
    per_character: Optional[float] = None
    per_second: Optional[float] = None


class EmbeddingPricing(DomainModel):
    """Per-1M-token embedding rate."""

    type: Literal["embedding"] = "embedding"
    per_1m_tokens: float = Field(alias="per1mTokens")


Pricing = Annotated[
    Union[TextPricing, ImagePricing, VideoPricing, AudioPricing, EmbeddingPricing],
    Field(discriminator="type"),
]


class ModelEntry(DomainModel):
    """A model normalized from one catalog source.

    The id is ``source::provider/slug`` and is only unique within that
    composite form; the same upstream model from two sources stays two
    entries.
    """

    id: str
    source: str
    name: str
    modality: Modality
    input_modalities: List[str] = Field(min_length=1)
    output_modalities: List[str] = Field(min_length=1)
    pricing: Pricing
    context_length: Optional[int] = None
    max_resolution: Optional[str] = None
    max_duration: Optional[float] = None
    supports_streaming: Optional[bool] = None
    provider: str
    family: str

    @field_validator("input_modalities", "output_modalities")
    @classmethod
    def dedupe_modalities(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @property
    def completeness(self) -> int:
        """Count of optional descriptive fields present (0-6)."""
        return sum(
            [
                self.context_length is not None,
                self.max_duration is not None,
                self.max_resolution is not None,
                self.supports_streaming is not None,
                len(self.input_modalities) > 0,
                len(self.output_modalities) > 0,
            ]
        )


class CompressedModel(DomainModel):
    """Slim projection of a ModelEntry sent to the recommender LLM."""

    id: str
    name: str
    modality: Modality
    pricing: Dict[str, float]
    context_length: Optional[int] = None
    max_resolution: Optional[str] = None
    max_duration: Optional[float] = None
