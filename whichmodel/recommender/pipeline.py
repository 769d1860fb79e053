#!/usr/bin/env python3
"""
Recommendation pipeline.

Invoke LLM -> parse JSON -> validate schema -> validate ids. Unknown ids get
one repair pass; if they still do not resolve, or the LLM call itself fails,
the deterministic fallback answers instead.
"""

import json
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from .. import __version__
from ..catalog.compressor import compress_for_llm, group_by_modality
from ..domain import MEDIA_MODALITIES
from ..domain.exit_codes import ExitCode
from ..domain.models import Constraints, ModelEntry, Recommendation, RecommendationMeta
from ..errors import LLMFailedError, NoModelsFoundError, WhichModelError
from ..llm import LLMMessage, LLMProvider
from ..logging import get_logger
from .fallback import generate_fallback
from .prompts import build_system_prompt, build_user_prompt
from .validator import invalid_ids, repair_ids

logger = get_logger(__name__)

LLM_TEMPERATURE = 0.2
LLM_MAX_TOKENS = 1200

# Per-1M-token rates (prompt, completion) for known recommender models
RECOMMENDER_MODEL_PRICING: Dict[str, Tuple[float, float]] = {
    "deepseek/deepseek-v3.2": (0.25, 0.38),
    "openai/gpt-4o-mini": (0.15, 0.60),
}

LLM_RETRY_HINT = "Retry in a few minutes or use fallback mode."

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


@dataclass
class RecommendResult:
    """Recommendation plus how it was produced."""

    recommendation: Recommendation
    meta: RecommendationMeta


def strip_markdown_fences(content: str) -> str:
    return _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", content))


def parse_recommendation(content: str) -> Recommendation:
    """Parse raw LLM output into a Recommendation.

    Raises:
        LLMFailedError: If the content is empty, not JSON, or the wrong shape
    """
    sanitized = strip_markdown_fences(content or "").strip()
    if not sanitized:
        raise LLMFailedError("LLM returned an empty response.", recovery_hint=LLM_RETRY_HINT)

    try:
        payload = json.loads(sanitized)
    except json.JSONDecodeError as e:
        raise LLMFailedError("LLM returned invalid JSON.", recovery_hint=LLM_RETRY_HINT) from e

    try:
        return Recommendation.model_validate(payload)
    except ValidationError as e:
        raise LLMFailedError(
            "LLM JSON response does not match expected recommendation structure.",
            recovery_hint=LLM_RETRY_HINT,
        ) from e


def estimate_recommendation_cost(
    model_id: str,
    prompt_tokens: Optional[int],
    completion_tokens: Optional[int],
) -> float:
    """USD cost of the recommender call; 0 for unknown models or missing usage."""
    if prompt_tokens is None or completion_tokens is None:
        return 0.0

    rates = RECOMMENDER_MODEL_PRICING.get(model_id)
    if rates is None:
        return 0.0

    prompt_rate, completion_rate = rates
    return (prompt_tokens / 1_000_000) * prompt_rate + (
        completion_tokens / 1_000_000
    ) * completion_rate


def attach_missing_modality_guidance(
    recommendation: Recommendation,
    catalog_sources: List[str],
    models_in_modality: int,
) -> Recommendation:
    """Append source guidance when the detected modality has no catalog entries."""
    if models_in_modality > 0:
        return recommendation

    detected = recommendation.task_analysis.detected_modality
    lines = [
        f"No '{detected.value}' models are available in configured sources "
        f"({', '.join(catalog_sources)})."
    ]
    if detected in MEDIA_MODALITIES and "fal" not in catalog_sources:
        lines.append("Add fal media models with --sources openrouter,fal and set FAL_API_KEY.")
    if detected in MEDIA_MODALITIES and "replicate" not in catalog_sources:
        lines.append(
            "Add Replicate media coverage with --sources openrouter,replicate "
            "and set REPLICATE_API_TOKEN."
        )
    lines.append("Broaden sources or force a different modality with --modality.")
    guidance = " ".join(lines)

    existing = recommendation.alternatives_in_other_modalities
    return recommendation.model_copy(
        update={
            "alternatives_in_other_modalities": f"{existing} {guidance}" if existing else guidance
        }
    )


def recommend(
    task: str,
    models: List[ModelEntry],
    provider: LLMProvider,
    recommender_model: str,
    constraints: Optional[Constraints] = None,
    catalog_sources: Optional[List[str]] = None,
) -> RecommendResult:
    """Recommend cheapest/balanced/best models for ``task`` from ``models``.

    Any failure while asking the recommender ends in the fallback. Only an
    empty catalog, or a whichmodel error unrelated to the LLM, raises.

    Raises:
        NoModelsFoundError: If ``models`` is empty
    """
    if not models:
        raise NoModelsFoundError(
            "No models found from configured sources.",
            recovery_hint="Check your source configuration and retry.",
        )

    catalog_sources = catalog_sources or []
    started = time.monotonic()
    valid_ids = {m.id for m in models}
    grouped = group_by_modality(compress_for_llm(models))

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    cost = 0.0
    used_fallback = False

    try:
        response = provider.complete(
            messages=[
                LLMMessage.system(build_system_prompt()),
                LLMMessage.user(build_user_prompt(task, grouped, constraints)),
            ],
            model=recommender_model,
            temperature=LLM_TEMPERATURE,
            max_tokens=LLM_MAX_TOKENS,
            json_mode=True,
        )
        recommendation = parse_recommendation(response.content)
        prompt_tokens = response.prompt_tokens
        completion_tokens = response.completion_tokens
        cost = estimate_recommendation_cost(recommender_model, prompt_tokens, completion_tokens)

        unknown = invalid_ids(recommendation, valid_ids)
        if unknown:
            logger.debug("Repairing unknown model ids", ids=unknown)
            recommendation = repair_ids(recommendation, valid_ids)
            unknown = invalid_ids(recommendation, valid_ids)
        if unknown:
            logger.warning("Recommended ids not in catalog, using fallback", ids=unknown)
            recommendation = generate_fallback(task, models, constraints)
            used_fallback = True
    except Exception as e:
        if isinstance(e, WhichModelError) and e.exit_code != ExitCode.LLM_FAILED:
            raise
        logger.warning("Recommender LLM failed, using fallback", error=str(e))
        recommendation = generate_fallback(task, models, constraints)
        used_fallback = True

    detected = recommendation.task_analysis.detected_modality
    in_modality = sum(1 for m in models if m.modality == detected)
    recommendation = attach_missing_modality_guidance(recommendation, catalog_sources, in_modality)

    meta = RecommendationMeta(
        recommender_model=recommender_model,
        recommendation_cost_usd=cost,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        recommendation_latency_ms=int((time.monotonic() - started) * 1000),
        used_fallback=used_fallback,
        catalog_sources=catalog_sources,
        catalog_total_models=len(models),
        catalog_models_in_modality=in_modality,
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
    )
    return RecommendResult(recommendation=recommendation, meta=meta)
