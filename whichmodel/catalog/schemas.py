"""Pydantic models for the raw provider catalog payloads.

Only the fields the normalizer reads are declared; everything else passes
through untouched so provider additions never break parsing.
"""

from typing import Any, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedResponseError

T = TypeVar("T", bound=BaseModel)


class ProviderPayload(BaseModel):
    model_config = ConfigDict(extra="allow")


# OpenRouter


class OpenRouterPricing(ProviderPayload):
    prompt: str
    completion: str

    @field_validator("prompt", "completion", mode="before")
    @classmethod
    def stringify_price(cls, v: Union[str, int, float]) -> str:
        return str(v)


class OpenRouterArchitecture(ProviderPayload):
    input_modalities: Optional[List[str]] = None
    output_modalities: Optional[List[str]] = None


class OpenRouterModel(ProviderPayload):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    context_length: Optional[int] = None
    pricing: OpenRouterPricing
    architecture: Optional[OpenRouterArchitecture] = None


class OpenRouterModelsResponse(ProviderPayload):
    data: List[OpenRouterModel]


# fal.ai


class FalModelMetadata(ProviderPayload):
    display_name: Optional[str] = None
    category: Optional[str] = None


class FalPlatformModel(ProviderPayload):
    endpoint_id: str = Field(min_length=1)
    metadata: Optional[FalModelMetadata] = None

    @property
    def category(self) -> str:
        return (self.metadata.category if self.metadata else None) or ""


class FalModelsResponse(ProviderPayload):
    models: List[FalPlatformModel]
    has_more: Optional[bool] = None
    next_cursor: Optional[str] = None


class FalPrice(ProviderPayload):
    endpoint_id: str = Field(min_length=1)
    unit_price: float
    unit: Optional[str] = None


class FalPricingResponse(ProviderPayload):
    prices: List[Any]

    def valid_prices(self) -> List[FalPrice]:
        """Price rows that validate; malformed rows are skipped."""
        valid: List[FalPrice] = []
        for row in self.prices:
            try:
                valid.append(FalPrice.model_validate(row))
            except ValidationError:
                continue
        return valid


class FalModel(BaseModel):
    """A fal endpoint joined with its price, ready for normalization."""

    id: str
    name: str
    category: str
    price_type: str
    amount: float


# Replicate


class ReplicateVersion(ProviderPayload):
    id: Optional[str] = None
    openapi_schema: Optional[Any] = None
    pricing: Optional[Any] = None


class ReplicateModel(ProviderPayload):
    url: Optional[str] = None
    owner: str = ""
    name: str = ""
    description: Optional[str] = None
    visibility: Optional[str] = None
    run_count: Optional[float] = None
    latest_version: Optional[ReplicateVersion] = None
    pricing: Optional[Any] = None

    @field_validator("owner", "name", mode="before")
    @classmethod
    def default_blank(cls, v: Optional[str]) -> str:
        return v or ""

    @property
    def key(self) -> str:
        """``owner/name`` as used for page URLs and cache keys."""
        return f"{self.owner.strip()}/{self.name.strip()}"


class ReplicateModelsResponse(ProviderPayload):
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[ReplicateModel]


def parse_payload(schema: Type[T], payload: Any, label: str) -> T:
    """Validate a decoded JSON payload, mapping failures to MalformedResponseError."""
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponseError(
            f"{label} response is invalid.",
            recovery_hint="Retry in a few minutes.",
        ) from e
