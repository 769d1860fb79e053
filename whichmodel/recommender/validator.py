"""Validate recommended model ids and repair near misses."""

import re
from typing import Collection, List, Optional

from ..domain.models import Recommendation

MIN_SIMILARITY = 0.3
SOURCE_PREFIX = re.compile(r"^[^:]+::")
TOKEN_SEPARATORS = re.compile(r"[/_\-.]")


def invalid_ids(recommendation: Recommendation, valid_ids: Collection[str]) -> List[str]:
    """Pick ids not present in the catalog, in tier order."""
    return [pick.id for _, pick in recommendation.recommendations.items() if pick.id not in valid_ids]


def normalize_id(model_id: str) -> str:
    return SOURCE_PREFIX.sub("", model_id).lower()


def similarity(a: str, b: str) -> float:
    """Score two normalized ids in [0, 1].

    Exact match is 1. If one contains the other the score is the length
    ratio. Otherwise it is the Jaccard index of their ``/_-.`` tokens.
    """
    if a == b:
        return 1.0

    if a in b or b in a:
        return min(len(a), len(b)) / max(len(a), len(b))

    tokens_a = {t for t in TOKEN_SEPARATORS.split(a) if t}
    tokens_b = {t for t in TOKEN_SEPARATORS.split(b) if t}
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def find_closest_id(invalid_id: str, valid_ids: Collection[str]) -> Optional[str]:
    """Best-scoring known id, or None when nothing reaches the threshold."""
    if not invalid_id:
        return None

    normalized = normalize_id(invalid_id)
    best_match: Optional[str] = None
    best_score = 0.0
    for valid_id in valid_ids:
        score = similarity(normalized, normalize_id(valid_id))
        if score > best_score:
            best_score = score
            best_match = valid_id

    return best_match if best_score >= MIN_SIMILARITY else None


def repair_ids(recommendation: Recommendation, valid_ids: Collection[str]) -> Recommendation:
    """Copy of ``recommendation`` with unknown pick ids replaced by close matches."""
    patched = recommendation.model_copy(deep=True)
    for tier, pick in patched.recommendations.items():
        if pick.id in valid_ids:
            continue
        closest = find_closest_id(pick.id, valid_ids)
        if closest is not None:
            setattr(patched.recommendations, tier.value, pick.model_copy(update={"id": closest}))
    return patched
