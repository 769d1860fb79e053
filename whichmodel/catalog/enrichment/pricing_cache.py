"""Persistent cache of scraped Replicate page pricing.

The file is ``{version, updatedAt, entries: {owner/name: {pricing, source,
fetchedAt, expiresAt}}}``. Entries are fresh until ``expiresAt``, stale for a
further max-stale window, then expired.
"""

import json
import math
from pathlib import Path
from typing import Any, Dict, Iterable, NamedTuple, Optional

from pydantic import Field, ValidationError, field_validator

from ...domain import Freshness, PricingSource
from ...domain.models import DomainModel
from ...logging import get_logger
from ..cache import write_json_atomic

logger = get_logger(__name__)

PRICING_CACHE_FILENAME = "replicate-pricing.json"
DEFAULT_MAX_ENTRIES = 2000
CACHE_VERSION = 1


def sanitize_pricing(value: Any) -> Dict[str, float]:
    """Keep only finite, positive numeric prices."""
    if not isinstance(value, dict):
        return {}
    return {
        key: float(price)
        for key, price in value.items()
        if isinstance(price, (int, float))
        and not isinstance(price, bool)
        and math.isfinite(price)
        and price > 0
    }


class PriceCacheEntry(DomainModel):
    pricing: Dict[str, float] = Field(default_factory=dict)
    source: PricingSource
    fetched_at: int
    expires_at: int

    @field_validator("pricing", mode="before")
    @classmethod
    def drop_unusable_prices(cls, v: Any) -> Dict[str, float]:
        return sanitize_pricing(v)

    @field_validator("fetched_at", "expires_at", mode="before")
    @classmethod
    def truncate_timestamp(cls, v: Any) -> int:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ValueError("timestamp must be a finite number")
        return int(v)


class PriceCacheFile(DomainModel):
    version: int = CACHE_VERSION
    updated_at: int = 0
    entries: Dict[str, PriceCacheEntry] = Field(default_factory=dict)


class PriceLookup(NamedTuple):
    state: Freshness
    entry: Optional[PriceCacheEntry] = None


class PriceUpdate(NamedTuple):
    model_key: str
    pricing: Dict[str, float]
    source: PricingSource


def resolve_entry(cache: PriceCacheFile, model_key: str, now: int, max_stale: int) -> PriceLookup:
    """Classify the entry for ``model_key`` as fresh, stale, expired or missing."""
    entry = cache.entries.get(model_key)
    if entry is None:
        return PriceLookup(Freshness.MISSING)
    if now < entry.expires_at:
        return PriceLookup(Freshness.FRESH, entry)
    if now < entry.expires_at + max_stale:
        return PriceLookup(Freshness.STALE, entry)
    return PriceLookup(Freshness.EXPIRED)


def apply_updates(
    cache: PriceCacheFile,
    updates: Iterable[PriceUpdate],
    ttl: int,
    now: int,
) -> PriceCacheFile:
    """New cache file with ``updates`` stamped as fetched at ``now``."""
    updates = [u for u in updates if u.model_key]
    if not updates:
        return cache

    entries = dict(cache.entries)
    for update in updates:
        entries[update.model_key] = PriceCacheEntry(
            pricing=update.pricing,
            source=update.source,
            fetched_at=now,
            expires_at=now + ttl,
        )
    return PriceCacheFile(version=CACHE_VERSION, updated_at=now, entries=entries)


def prune_oldest(cache: PriceCacheFile, max_entries: int) -> PriceCacheFile:
    """Keep the ``max_entries`` most recently fetched entries (ties by key)."""
    if max_entries <= 0:
        return PriceCacheFile(updated_at=cache.updated_at)
    if len(cache.entries) <= max_entries:
        return cache

    ordered = sorted(cache.entries.items(), key=lambda item: (-item[1].fetched_at, item[0]))
    return PriceCacheFile(updated_at=cache.updated_at, entries=dict(ordered[:max_entries]))


class PricingCacheStore:
    """Reads and writes the pricing cache file."""

    def __init__(self, cache_dir: Path, max_entries: int = DEFAULT_MAX_ENTRIES):
        self.path = Path(cache_dir) / PRICING_CACHE_FILENAME
        self.max_entries = max_entries

    def read(self) -> PriceCacheFile:
        """Load the cache; a missing or corrupt file reads as empty."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return PriceCacheFile()
        except (OSError, ValueError) as e:
            logger.debug("Pricing cache unreadable", path=str(self.path), error=str(e))
            return PriceCacheFile()

        if not isinstance(raw, dict) or not isinstance(raw.get("entries"), dict):
            return PriceCacheFile()

        entries: Dict[str, PriceCacheEntry] = {}
        for key, value in raw["entries"].items():
            try:
                entries[key] = PriceCacheEntry.model_validate(value)
            except ValidationError:
                continue

        updated_at = raw.get("updatedAt")
        if isinstance(updated_at, bool) or not isinstance(updated_at, (int, float)) or not math.isfinite(updated_at):
            updated_at = 0

        return PriceCacheFile(updated_at=int(updated_at), entries=entries)

    def write(self, cache: PriceCacheFile) -> None:
        pruned = prune_oldest(cache, self.max_entries)
        write_json_atomic(self.path, pruned.model_dump(mode="json", by_alias=True))
        logger.debug("Pricing cache written", entries=len(pruned.entries))
