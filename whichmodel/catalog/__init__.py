"""Catalog aggregation: source adapters, normalization, caching and merge."""

from .aggregate import CatalogFetchResult, fetch_catalog, fetch_from_sources
from .cache import CatalogCache, format_cache_stats
from .compressor import compress_for_llm, group_by_modality
from .fal import FalCatalog
from .filters import apply_constraints, apply_exclusions, filter_catalog, parse_constraints
from .merge import merge_catalogs
from .openrouter import OpenRouterCatalog
from .replicate import ReplicateCatalog
from .source import (
    VALID_SOURCES,
    CatalogSource,
    create_source,
    parse_sources,
    register_source,
    validate_supported_sources,
)

__all__ = [
    # Fetching
    "CatalogSource",
    "CatalogFetchResult",
    "fetch_catalog",
    "fetch_from_sources",
    "create_source",
    "register_source",
    "parse_sources",
    "validate_supported_sources",
    "VALID_SOURCES",
    # Sources
    "OpenRouterCatalog",
    "FalCatalog",
    "ReplicateCatalog",
    # Processing
    "merge_catalogs",
    "compress_for_llm",
    "group_by_modality",
    "apply_constraints",
    "apply_exclusions",
    "filter_catalog",
    "parse_constraints",
    # Cache
    "CatalogCache",
    "format_cache_stats",
]
