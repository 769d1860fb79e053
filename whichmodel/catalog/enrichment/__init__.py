"""Price enrichment from public model pages."""

from .enricher import PriceEnricher, has_api_pricing
from .page_pricing import PagePricing, fetch_page_pricing, parse_page_pricing
from .pricing_cache import (
    PriceCacheEntry,
    PriceCacheFile,
    PricingCacheStore,
    apply_updates,
    prune_oldest,
    resolve_entry,
)

__all__ = [
    "PriceEnricher",
    "has_api_pricing",
    "PagePricing",
    "fetch_page_pricing",
    "parse_page_pricing",
    "PriceCacheEntry",
    "PriceCacheFile",
    "PricingCacheStore",
    "apply_updates",
    "prune_oldest",
    "resolve_entry",
]
