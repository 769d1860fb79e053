"""fal.ai catalog source."""

import math
import time
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import httpx

from ..config import WhichModelConfig
from ..domain.models import ModelEntry
from ..errors import AuthError, NetworkError
from ..logging import get_logger
from .cache import CatalogCache
from .http import DEFAULT_RETRY_DELAYS, DEFAULT_TIMEOUT_SECONDS, RetryingRequester, with_jitter
from .normalization import classify_fal_category, normalize_fal_model
from .schemas import FalModel, FalModelsResponse, FalPlatformModel, FalPricingResponse, parse_payload

logger = get_logger(__name__)

PAGE_SIZE = 200
PRICING_CHUNK_SIZE = 20
MAX_MODEL_PAGES = 8
MAX_CANDIDATE_MODELS = 300

# endpoint_id -> (unit_price, unit)
PriceMap = Dict[str, Tuple[float, Optional[str]]]


def chunked(values: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield list(values[start : start + size])


def unit_to_price_type(category: str, unit: Optional[str]) -> str:
    """Map a fal billing unit (or, failing that, the category) to a price type."""
    normalized_unit = (unit or "").lower()
    for marker, price_type in (
        ("character", "per_character"),
        ("minute", "per_minute"),
        ("second", "per_second"),
        ("image", "per_image"),
    ):
        if marker in normalized_unit:
            return price_type

    if "image" in category.lower():
        return "per_image"
    return "per_generation"


class FalCatalog:
    """Image, video and audio endpoints hosted on fal.ai."""

    source_id = "fal"
    MODELS_ENDPOINT = "https://api.fal.ai/v1/models"
    PRICING_ENDPOINT = "https://api.fal.ai/v1/models/pricing"

    def __init__(
        self,
        api_key: Optional[str],
        cache: Optional[CatalogCache] = None,
        cache_ttl: int = 3600,
        no_cache: bool = False,
        models_endpoint: str = MODELS_ENDPOINT,
        pricing_endpoint: str = PRICING_ENDPOINT,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float], float] = with_jitter,
    ):
        self.api_key = api_key
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.no_cache = no_cache
        self.models_endpoint = models_endpoint
        self.pricing_endpoint = pricing_endpoint
        self.requester = RetryingRequester(
            "fal.ai",
            client=client,
            headers={"Authorization": f"Key {api_key}", "Accept": "application/json"},
            timeout=timeout,
            retry_delays=retry_delays,
            sleep=sleep,
            jitter=jitter,
            auth_message="Invalid or unauthorized fal.ai API key.",
            auth_hint="Check FAL_API_KEY at https://fal.ai/dashboard",
        )

    @classmethod
    def from_config(cls, config: WhichModelConfig, no_cache: bool = False) -> "FalCatalog":
        return cls(
            api_key=config.fal_api_key,
            cache=CatalogCache(config.resolved_cache_dir()),
            cache_ttl=config.cache_ttl,
            no_cache=no_cache,
        )

    def close(self) -> None:
        self.requester.close()

    def fetch(self) -> List[ModelEntry]:
        if not self.api_key:
            raise AuthError("FAL_API_KEY is not set.", recovery_hint="Set FAL_API_KEY and retry.")

        if self.cache is None:
            return self._fetch_live()
        return self.cache.fetch_through(
            self.source_id, self.cache_ttl, self._fetch_live, use_cache=not self.no_cache
        )

    def _fetch_live(self) -> List[ModelEntry]:
        platform_models = self._fetch_platform_models()
        if not platform_models:
            return []

        prices = self._fetch_prices([m.endpoint_id for m in platform_models])
        models: List[ModelEntry] = []
        for platform_model in platform_models:
            fal_model = self._join_price(platform_model, prices.get(platform_model.endpoint_id))
            entry = normalize_fal_model(fal_model) if fal_model else None
            if entry is not None:
                models.append(entry)

        logger.info("Fetched fal.ai catalog", candidates=len(platform_models), usable=len(models))
        return models

    def _fetch_platform_models(self) -> List[FalPlatformModel]:
        candidates: List[FalPlatformModel] = []
        cursor: Optional[str] = None
        pages = 0

        while True:
            params: Dict[str, str] = {"limit": str(PAGE_SIZE)}
            if cursor:
                params["cursor"] = cursor

            payload = parse_payload(
                FalModelsResponse,
                self.requester.get_json(self.models_endpoint, params=params),
                "fal.ai catalog",
            )
            candidates.extend(m for m in payload.models if classify_fal_category(m.category))
            pages += 1

            if pages >= MAX_MODEL_PAGES or len(candidates) >= MAX_CANDIDATE_MODELS:
                break
            if not payload.has_more or not payload.next_cursor:
                break
            cursor = payload.next_cursor

        candidates.sort(key=lambda m: m.endpoint_id)
        return candidates[:MAX_CANDIDATE_MODELS]

    def _fetch_prices(self, endpoint_ids: List[str]) -> PriceMap:
        prices: PriceMap = {}
        for chunk in chunked(sorted(endpoint_ids), PRICING_CHUNK_SIZE):
            self._fetch_price_chunk(chunk, prices)
        return prices

    def _fetch_price_chunk(self, endpoint_ids: List[str], prices: PriceMap) -> None:
        """Fetch one pricing chunk, bisecting on 404 and skipping on exhausted 429."""
        if not endpoint_ids:
            return

        params = [("limit", str(PAGE_SIZE))] + [("endpoint_id", e) for e in endpoint_ids]
        try:
            raw = self.requester.get_json(self.pricing_endpoint, params=params)
        except NetworkError as e:
            if e.status_code == 429:
                logger.warning("fal.ai pricing rate limited, skipping chunk", size=len(endpoint_ids))
                return
            if e.status_code != 404:
                raise
            if len(endpoint_ids) == 1:
                logger.debug("fal.ai has no pricing for endpoint", endpoint=endpoint_ids[0])
                return
            middle = len(endpoint_ids) // 2
            self._fetch_price_chunk(endpoint_ids[:middle], prices)
            self._fetch_price_chunk(endpoint_ids[middle:], prices)
            return

        payload = parse_payload(FalPricingResponse, raw, "fal.ai pricing")
        for price in payload.valid_prices():
            if math.isfinite(price.unit_price):
                prices[price.endpoint_id] = (price.unit_price, price.unit)

    def _join_price(
        self,
        platform_model: FalPlatformModel,
        price: Optional[Tuple[float, Optional[str]]],
    ) -> Optional[FalModel]:
        category = platform_model.category
        if not category or price is None:
            return None
        amount, unit = price
        if not math.isfinite(amount) or amount <= 0:
            return None

        display_name = platform_model.metadata.display_name if platform_model.metadata else None
        return FalModel(
            id=platform_model.endpoint_id,
            name=(display_name or "").strip() or platform_model.endpoint_id,
            category=category,
            price_type=unit_to_price_type(category, unit),
            amount=amount,
        )
