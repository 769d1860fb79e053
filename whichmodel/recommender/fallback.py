"""Deterministic recommendation used when the LLM is unavailable or unusable.

Candidates are the catalog entries of the detected modality (text also takes
vision models), ordered by primary price. cheapest is the first, balanced the
middle element, and best the largest context window with ties going to the
higher price.
"""

import re
from typing import List, Optional

from ..domain import Modality
from ..domain.models import (
    AudioPricing,
    Constraints,
    EmbeddingPricing,
    ImagePricing,
    ModelEntry,
    ModelPick,
    Recommendation,
    TaskAnalysis,
    TextPricing,
    TierPicks,
    VideoPricing,
)
from ..pricing import primary_price, summarize_pricing

SUMMARY_MAX_LENGTH = 90
MAX_KEY_REQUIREMENTS = 4

CHEAPEST_REASON = "Lowest estimated price in the matched catalog subset."
BALANCED_REASON = "Good compromise between price and capabilities for this modality."
BEST_REASON = "Highest capability candidate in fallback selection."

# Checked in order; first match wins.
MODALITY_KEYWORDS = [
    (Modality.AUDIO_STT, re.compile(r"transcribe|caption|speech to text|stt")),
    (
        Modality.AUDIO_TTS,
        re.compile(r"voiceover|text to speech|tts|narration|clone (a )?voice|voice clone"),
    ),
    (Modality.AUDIO_GENERATION, re.compile(r"music|soundtrack|audio generation")),
    (Modality.EMBEDDING, re.compile(r"embedding|semantic search|vector|rag")),
    (
        Modality.VISION,
        re.compile(
            r"screenshot|ocr|analy[sz]e image|analy[sz]e .*website|vision|extract text from pdf"
        ),
    ),
]
VIDEO_PATTERN = re.compile(r"video|clip|animation")
NOT_VIDEO_PATTERN = re.compile(r"script|outline|copy")
IMAGE_PATTERN = re.compile(r"image|photo|logo|illustration|art|avatar")


def detect_task_modality(task: str) -> Modality:
    """Guess the modality a task needs from keywords."""
    text = task.lower()

    for modality, pattern in MODALITY_KEYWORDS:
        if pattern.search(text):
            return modality
    if VIDEO_PATTERN.search(text) and not NOT_VIDEO_PATTERN.search(text):
        return Modality.VIDEO
    if IMAGE_PATTERN.search(text):
        return Modality.IMAGE
    return Modality.TEXT


def summarize_task(task: str) -> str:
    trimmed = task.strip()
    if len(trimmed) <= SUMMARY_MAX_LENGTH:
        return trimmed
    return trimmed[: SUMMARY_MAX_LENGTH - 3] + "..."


def infer_key_requirements(task: str, modality: Modality) -> List[str]:
    text = task.lower()
    requirements: List[str] = []

    if re.search(r"fast|quick|realtime|real-time", text):
        requirements.append("fast response time")
    if re.search(r"cheap|budget|low cost", text):
        requirements.append("low inference cost")
    if modality in (Modality.TEXT, Modality.VISION):
        requirements.extend(["strong reasoning", "instruction following"])
    if modality in (Modality.IMAGE, Modality.VIDEO):
        requirements.append("high visual quality")
    if not requirements:
        requirements = ["reliable output quality", "cost-effectiveness"]

    return requirements[:MAX_KEY_REQUIREMENTS]


def describe_cost_factors(modality: Modality) -> str:
    if modality in (Modality.TEXT, Modality.VISION):
        return "Token volume (input and output) drives total cost."
    if modality == Modality.IMAGE:
        return "Image count and resolution are the dominant cost drivers."
    if modality == Modality.VIDEO:
        return "Video length and number of generations drive cost."
    if modality in (Modality.AUDIO_TTS, Modality.AUDIO_STT, Modality.AUDIO_GENERATION):
        return "Audio duration and generation count drive cost."
    if modality == Modality.EMBEDDING:
        return "Total indexed token count is the main cost factor."
    return "Mixed token and media usage determines total cost."


def estimate_cost(model: ModelEntry) -> str:
    """Rough monthly cost for a light workload."""
    pricing = model.pricing
    if isinstance(pricing, TextPricing):
        monthly = (pricing.prompt_per_1m_tokens * 3 + pricing.completion_per_1m_tokens * 1.5) / 100
        return f"~${monthly:.2f}/mo for a light text workload"
    if isinstance(pricing, ImagePricing):
        return "~$5-25/mo depending on image volume and resolution"
    if isinstance(pricing, VideoPricing):
        return "~$30-100/mo depending on duration and clip count"
    if isinstance(pricing, AudioPricing):
        return "~$5-40/mo depending on minutes generated/transcribed"
    if isinstance(pricing, EmbeddingPricing):
        return "~$1-15/mo depending on indexed corpus size"
    return "Cost depends on workload"


def filter_candidates(
    models: List[ModelEntry],
    modality: Modality,
    constraints: Optional[Constraints] = None,
) -> List[ModelEntry]:
    candidates = []
    for model in models:
        if model.modality != modality and not (
            modality == Modality.TEXT and model.modality == Modality.VISION
        ):
            continue
        if constraints is not None:
            if constraints.min_context is not None and (model.context_length or 0) < constraints.min_context:
                continue
            if constraints.max_price is not None and primary_price(model) > constraints.max_price:
                continue
        candidates.append(model)
    return candidates


def pick_best(ordered: List[ModelEntry]) -> Optional[ModelEntry]:
    """Largest context window; ties go to the higher price."""
    if not ordered:
        return None
    return min(ordered, key=lambda m: (-(m.context_length or 0), -primary_price(m)))


def to_pick(model: ModelEntry, reason: str) -> ModelPick:
    return ModelPick(
        id=model.id,
        reason=reason,
        pricing_summary=summarize_pricing(model.pricing),
        estimated_cost=estimate_cost(model),
    )


def generate_fallback(
    task: str,
    models: List[ModelEntry],
    constraints: Optional[Constraints] = None,
) -> Recommendation:
    """Build a Recommendation without the LLM.

    Raises:
        ValueError: If ``models`` is empty
    """
    if not models:
        raise ValueError("Fallback recommendation requires at least one model.")

    forced = constraints.modality if constraints else None
    modality = forced or detect_task_modality(task)

    ordered = sorted(filter_candidates(models, modality, constraints), key=primary_price)
    cheapest = ordered[0] if ordered else models[0]
    balanced = ordered[(len(ordered) - 1) // 2] if ordered else cheapest
    best = pick_best(ordered) or balanced

    if forced:
        reasoning = f"Modality was forced by constraints to {forced.value}."
    else:
        reasoning = f"Detected {modality.value} from task keywords and fallback heuristics."

    return Recommendation(
        task_analysis=TaskAnalysis(
            summary=summarize_task(task),
            detected_modality=modality,
            modality_reasoning=reasoning,
            key_requirements=infer_key_requirements(task, modality),
            cost_factors=describe_cost_factors(modality),
        ),
        recommendations=TierPicks(
            cheapest=to_pick(cheapest, CHEAPEST_REASON),
            balanced=to_pick(balanced, BALANCED_REASON),
            best=to_pick(best, BEST_REASON),
        ),
        alternatives_in_other_modalities=None,
    )
