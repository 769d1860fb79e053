"""Best-effort price enrichment for Replicate models missing API pricing."""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...domain import Freshness
from ...logging import get_logger
from ..schemas import ReplicateModel
from .page_pricing import PagePricing
from .pricing_cache import PriceUpdate, PricingCacheStore, apply_updates, resolve_entry

logger = get_logger(__name__)

PageFetcher = Callable[[str], Optional[PagePricing]]


def has_pricing_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return isinstance(value, (int, float))


def has_api_pricing(model: ReplicateModel) -> bool:
    version_pricing = model.latest_version.pricing if model.latest_version else None
    return has_pricing_value(model.pricing) or has_pricing_value(version_pricing)


def with_pricing(model: ReplicateModel, pricing: Optional[Dict[str, float]]) -> ReplicateModel:
    if not pricing:
        return model
    return model.model_copy(update={"pricing": dict(pricing)})


class PriceEnricher:
    """Applies cached page pricing and refreshes it within a fetch budget.

    Fresh cache entries are applied as-is. Stale entries are applied and also
    queued for refresh. Expired and missing entries are only queued. The
    queue is capped at the fetch budget and drained by a fixed pool of
    ``concurrency`` workers; a failed page leaves just that model unpriced.
    """

    def __init__(
        self,
        store: PricingCacheStore,
        fetch_page: PageFetcher,
        ttl_seconds: int,
        max_stale_seconds: int,
        fetch_budget: int,
        concurrency: int,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.fetch_page = fetch_page
        self.ttl_seconds = ttl_seconds
        self.max_stale_seconds = max_stale_seconds
        self.fetch_budget = max(0, fetch_budget)
        self.concurrency = max(1, concurrency)
        self.clock = clock

    def _fetch_one(self, key: str) -> Optional[PagePricing]:
        try:
            return self.fetch_page(key)
        except Exception as e:
            logger.debug("Page pricing failed", model=key, error=repr(e))
            return None

    def enrich(self, models: List[ReplicateModel]) -> List[ReplicateModel]:
        """Return ``models`` with page pricing applied where available."""
        if self.fetch_budget == 0:
            return models

        now = int(self.clock())
        cache = self.store.read()
        enriched = list(models)
        queue: List[Tuple[int, str]] = []

        for index, model in enumerate(models):
            if has_api_pricing(model):
                continue
            key = model.key
            if not key or key == "/":
                continue

            lookup = resolve_entry(cache, key, now, self.max_stale_seconds)
            if lookup.state in (Freshness.FRESH, Freshness.STALE) and lookup.entry:
                enriched[index] = with_pricing(model, lookup.entry.pricing)

            if lookup.state != Freshness.FRESH and len(queue) < self.fetch_budget:
                queue.append((index, key))

        if not queue:
            return enriched

        logger.debug(
            "Fetching model pages for pricing",
            queued=len(queue),
            budget=self.fetch_budget,
            workers=min(self.concurrency, len(queue)),
        )

        with ThreadPoolExecutor(max_workers=min(self.concurrency, len(queue))) as executor:
            results = list(executor.map(lambda item: self._fetch_one(item[1]), queue))

        updates: List[PriceUpdate] = []
        for (index, key), result in zip(queue, results):
            if result is None or not result.pricing:
                continue
            enriched[index] = with_pricing(models[index], result.pricing)
            updates.append(PriceUpdate(key, result.pricing, result.source))

        if updates:
            cache = apply_updates(cache, updates, self.ttl_seconds, now)
            self.store.write(cache)

        logger.debug("Page pricing refreshed", requested=len(queue), priced=len(updates))
        return enriched
