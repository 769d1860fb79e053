"""Recommendation result models."""

from typing import Annotated, Iterator, List, Optional, Tuple

from pydantic import Field, StringConstraints

from ..enums import Modality, Tier
from .catalog import DomainModel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ModelPick(DomainModel):
    """One tiered pick referencing a catalog model."""

    id: NonEmptyStr
    reason: NonEmptyStr
    pricing_summary: NonEmptyStr
    estimated_cost: NonEmptyStr


class TaskAnalysis(DomainModel):
    """What the task demands and how it was classified."""

    summary: NonEmptyStr
    detected_modality: Modality
    modality_reasoning: NonEmptyStr
    key_requirements: List[str] = Field(default_factory=list)
    cost_factors: NonEmptyStr


class TierPicks(DomainModel):
    """Exactly three picks: cheapest, balanced, best."""

    cheapest: ModelPick
    balanced: ModelPick
    best: ModelPick

    def items(self) -> Iterator[Tuple[Tier, ModelPick]]:
        for tier in Tier:
            yield tier, getattr(self, tier.value)


class Recommendation(DomainModel):
    """Task analysis plus the three tiered picks."""

    task_analysis: TaskAnalysis
    recommendations: TierPicks
    alternatives_in_other_modalities: Optional[str] = None


class RecommendationMeta(DomainModel):
    """Bookkeeping about how a recommendation was produced."""

    recommender_model: str
    recommendation_cost_usd: float = 0.0
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    recommendation_latency_ms: int = 0
    used_fallback: bool = False
    catalog_sources: List[str] = Field(default_factory=list)
    catalog_total_models: int = 0
    catalog_models_in_modality: int = 0
    timestamp: str
    version: str


class Constraints(DomainModel):
    """User supplied filters applied to the merged catalog."""

    max_price: Optional[float] = Field(default=None, ge=0)
    min_context: Optional[int] = Field(default=None, gt=0)
    min_resolution: Optional[str] = None
    modality: Optional[Modality] = None
    exclude: List[str] = Field(default_factory=list)
