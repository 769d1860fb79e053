"""Recommendation pipeline: prompts, id repair, the deterministic fallback and model comparison."""

from .compare import CompareResult, compare_models, find_model_by_id, resolve_model, to_compare_json
from .fallback import detect_task_modality, generate_fallback
from .pipeline import (
    RecommendResult,
    attach_missing_modality_guidance,
    parse_recommendation,
    recommend,
)
from .prompts import build_system_prompt, build_user_prompt
from .validator import find_closest_id, invalid_ids, repair_ids

__all__ = [
    "recommend",
    "RecommendResult",
    "parse_recommendation",
    "attach_missing_modality_guidance",
    "generate_fallback",
    "detect_task_modality",
    "compare_models",
    "CompareResult",
    "find_model_by_id",
    "resolve_model",
    "to_compare_json",
    "build_system_prompt",
    "build_user_prompt",
    "find_closest_id",
    "invalid_ids",
    "repair_ids",
]
