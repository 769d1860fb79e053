"""Replicate catalog source."""

import time
from typing import Callable, List, Optional, Sequence
from urllib.parse import urljoin

import httpx

from ..config import WhichModelConfig
from ..domain.models import ModelEntry
from ..errors import AuthError
from ..logging import get_logger
from .cache import CatalogCache
from .enrichment import PriceEnricher, PricingCacheStore, fetch_page_pricing
from .http import DEFAULT_RETRY_DELAYS, DEFAULT_TIMEOUT_SECONDS, RetryingRequester, with_jitter
from .normalization import normalize_replicate_model
from .schemas import ReplicateModel, ReplicateModelsResponse, parse_payload

logger = get_logger(__name__)

MAX_MODEL_PAGES = 8
MAX_CANDIDATE_MODELS = 300


def popularity_order(model: ReplicateModel):
    """Sort key: run count descending (missing counts as -1), then owner/name."""
    run_count = model.run_count if model.run_count is not None else -1
    return (-run_count, model.key)


class ReplicateCatalog:
    """Public models on Replicate, with page-scraped pricing where the API has none."""

    source_id = "replicate"
    ENDPOINT = "https://api.replicate.com/v1/models"

    def __init__(
        self,
        api_token: Optional[str],
        cache: Optional[CatalogCache] = None,
        cache_ttl: int = 3600,
        no_cache: bool = False,
        enricher: Optional[PriceEnricher] = None,
        page_client: Optional[httpx.Client] = None,
        endpoint: str = ENDPOINT,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float], float] = with_jitter,
    ):
        self.api_token = api_token
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.no_cache = no_cache
        self.enricher = enricher
        self.page_client = page_client
        self.endpoint = endpoint
        self.requester = RetryingRequester(
            "Replicate",
            client=client,
            headers={"Authorization": f"Bearer {api_token}", "Accept": "application/json"},
            timeout=timeout,
            retry_delays=retry_delays,
            sleep=sleep,
            jitter=jitter,
            auth_message="Invalid or unauthorized Replicate API token.",
            auth_hint="Check REPLICATE_API_TOKEN at https://replicate.com/account/api-tokens",
        )

    @classmethod
    def from_config(cls, config: WhichModelConfig, no_cache: bool = False) -> "ReplicateCatalog":
        cache_dir = config.resolved_cache_dir()
        # Page scraping must not follow redirects off the allowed host.
        page_client = httpx.Client(follow_redirects=False)
        enricher = PriceEnricher(
            store=PricingCacheStore(cache_dir),
            fetch_page=lambda key: fetch_page_pricing(key, page_client),
            ttl_seconds=config.replicate_price_ttl_seconds,
            max_stale_seconds=config.replicate_price_max_stale_seconds,
            fetch_budget=config.replicate_price_fetch_budget,
            concurrency=config.replicate_price_concurrency,
        )
        return cls(
            api_token=config.replicate_api_token,
            cache=CatalogCache(cache_dir),
            cache_ttl=config.cache_ttl,
            no_cache=no_cache,
            enricher=enricher,
            page_client=page_client,
        )

    def close(self) -> None:
        self.requester.close()
        if self.page_client is not None:
            self.page_client.close()

    def fetch(self) -> List[ModelEntry]:
        if not self.api_token:
            raise AuthError(
                "REPLICATE_API_TOKEN is not set.",
                recovery_hint="Set REPLICATE_API_TOKEN and retry.",
            )

        if self.cache is None:
            return self._fetch_live()
        return self.cache.fetch_through(
            self.source_id, self.cache_ttl, self._fetch_live, use_cache=not self.no_cache
        )

    def _fetch_live(self) -> List[ModelEntry]:
        raw_models = self._fetch_raw_models()
        if self.enricher is not None:
            raw_models = self.enricher.enrich(raw_models)

        models = [m for m in map(normalize_replicate_model, raw_models) if m is not None]
        logger.info("Fetched Replicate catalog", candidates=len(raw_models), usable=len(models))
        return models

    def _fetch_raw_models(self) -> List[ReplicateModel]:
        candidates: List[ReplicateModel] = []
        next_url: Optional[str] = self.endpoint
        pages = 0

        while next_url and pages < MAX_MODEL_PAGES and len(candidates) < MAX_CANDIDATE_MODELS:
            payload = parse_payload(
                ReplicateModelsResponse,
                self.requester.get_json(next_url),
                "Replicate catalog",
            )
            for model in payload.results:
                if model.visibility == "private":
                    continue
                candidates.append(model)
                if len(candidates) >= MAX_CANDIDATE_MODELS:
                    break

            pages += 1
            next_url = urljoin(self.endpoint, payload.next) if payload.next else None

        candidates.sort(key=popularity_order)
        return candidates[:MAX_CANDIDATE_MODELS]
