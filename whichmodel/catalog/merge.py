"""Cross-source merge and deduplication of catalog entries."""

from typing import Dict, Iterable, List

from ..domain.models import ModelEntry
from ..pricing import primary_price


def should_replace(current: ModelEntry, candidate: ModelEntry) -> bool:
    """Whether ``candidate`` beats the entry already kept under the same id.

    Higher completeness wins, then the lower primary price. Full ties keep
    the first-seen entry.
    """
    if candidate.completeness != current.completeness:
        return candidate.completeness > current.completeness

    current_price = primary_price(current)
    candidate_price = primary_price(candidate)
    if candidate_price != current_price:
        return candidate_price < current_price

    return False


def merge_catalogs(models_by_source: Iterable[Iterable[ModelEntry]]) -> List[ModelEntry]:
    """Merge per-source lists into one list keyed by composite id.

    Entries from different sources keep distinct ids and are never merged;
    only identical ids are reconciled. Output order is first-seen order.
    """
    merged: Dict[str, ModelEntry] = {}

    for source_models in models_by_source:
        for candidate in source_models:
            current = merged.get(candidate.id)
            if current is None or should_replace(current, candidate):
                merged[candidate.id] = candidate

    return list(merged.values())
