#!/usr/bin/env python3
"""
Head-to-head comparison of two catalog models for one task.

The recommender LLM judges the pair. A reply that is not JSON or does not
match the expected shape becomes a tie carrying catalog pricing, so only a
failed LLM request is an error.
"""

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, ValidationError

from ..catalog.compressor import compress_model
from ..domain.models import DomainModel, ModelEntry
from ..errors import InvalidArgumentsError, LLMFailedError, WhichModelError
from ..llm import LLMMessage, LLMProvider
from ..logging import get_logger
from ..pricing import summarize_pricing
from .pipeline import LLM_RETRY_HINT, strip_markdown_fences

logger = get_logger(__name__)

COMPARE_TEMPERATURE = 0.3
COMPARE_MAX_TOKENS = 1000

NO_WINNER_REASONING = "Could not determine a clear winner from the comparison."

COMPARE_SYSTEM_PROMPT = """You are an expert AI model evaluator. Your task is to compare two AI models for a specific use case.

You will receive:
1. A task description
2. Two models with their specifications

You must analyze both models and determine which is better suited for the given task.

Consider:
- Pricing and cost efficiency
- Context length and capabilities
- Quality and reliability for the specific task
- Speed and latency implications

Respond with a JSON object matching this exact structure:
{
  "winner": "A" or "B" or "tie",
  "reasoning": "A brief explanation of why this model won (2-3 sentences)",
  "modelA": {
    "strengths": ["strength 1", "strength 2"],
    "weaknesses": ["weakness 1"],
    "estimatedCost": "Cost estimate for typical usage",
    "suitedFor": ["use case 1", "use case 2"]
  },
  "modelB": {
    "strengths": ["strength 1", "strength 2"],
    "weaknesses": ["weakness 1"],
    "estimatedCost": "Cost estimate for typical usage",
    "suitedFor": ["use case 1", "use case 2"]
  }
}"""


class ModelAssessment(DomainModel):
    """The LLM's view of one side of the comparison."""

    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    estimated_cost: str
    suited_for: List[str] = Field(default_factory=list)


class CompareResult(DomainModel):
    winner: Literal["A", "B", "tie"]
    reasoning: str
    model_a: ModelAssessment
    model_b: ModelAssessment


def find_model_by_id(models: List[ModelEntry], model_id: str) -> Optional[ModelEntry]:
    """Resolve a user-supplied id against the catalog.

    Tries, in order: the full composite id, the id without its source
    prefix (or its trailing ``/name``), then a case-insensitive substring of
    the id or display name.
    """
    for model in models:
        if model.id == model_id:
            return model

    for model in models:
        _, _, bare_id = model.id.partition("::")
        if (bare_id or model.id) == model_id or model.id.endswith(f"/{model_id}"):
            return model

    needle = model_id.lower()
    for model in models:
        if needle in model.id.lower() or needle in model.name.lower():
            return model
    return None


def resolve_model(models: List[ModelEntry], model_id: str) -> ModelEntry:
    """Like find_model_by_id, but a miss is a user error."""
    model = find_model_by_id(models, model_id)
    if model is None:
        raise InvalidArgumentsError(
            f"Model '{model_id}' not found in catalog.",
            recovery_hint="Run 'whichmodel list' to see available model IDs, or add --sources.",
        )
    return model


def build_compare_user_prompt(task: str, model_a: ModelEntry, model_b: ModelEntry) -> str:
    sections = [f"Task: {task}"]
    for label, model in (("A", model_a), ("B", model_b)):
        compressed = compress_model(model).model_dump(mode="json", by_alias=True, exclude_none=True)
        sections.append(f"Model {label} (ID: {model.id}):\n{json.dumps(compressed, indent=2)}")
    sections.append("Compare these two models for the given task and determine which is better suited.")
    return "\n\n".join(sections)


def default_comparison(model_a: ModelEntry, model_b: ModelEntry) -> CompareResult:
    """A tie used when the LLM reply cannot be read."""

    def assessment(model: ModelEntry) -> ModelAssessment:
        return ModelAssessment(
            strengths=["Model specifications available"],
            estimated_cost=summarize_pricing(model.pricing),
            suited_for=["General use"],
        )

    return CompareResult(
        winner="tie",
        reasoning=NO_WINNER_REASONING,
        model_a=assessment(model_a),
        model_b=assessment(model_b),
    )


def parse_compare_result(content: str) -> Optional[CompareResult]:
    """Parse the LLM reply, or None when it is not a usable comparison."""
    sanitized = strip_markdown_fences(content or "").strip()
    try:
        return CompareResult.model_validate(json.loads(sanitized))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("Unusable compare response", error=str(e))
        return None


def compare_models(
    task: str,
    model_a: ModelEntry,
    model_b: ModelEntry,
    provider: LLMProvider,
    recommender_model: str,
) -> CompareResult:
    """Ask the recommender which of two models suits ``task`` better.

    Raises:
        LLMFailedError: If the LLM request itself fails
    """
    try:
        response = provider.complete(
            messages=[
                LLMMessage.system(COMPARE_SYSTEM_PROMPT),
                LLMMessage.user(build_compare_user_prompt(task, model_a, model_b)),
            ],
            model=recommender_model,
            temperature=COMPARE_TEMPERATURE,
            max_tokens=COMPARE_MAX_TOKENS,
            json_mode=True,
        )
    except WhichModelError:
        raise
    except Exception as e:
        raise LLMFailedError(f"Compare request failed: {e}", recovery_hint=LLM_RETRY_HINT) from e

    return parse_compare_result(response.content) or default_comparison(model_a, model_b)


def to_compare_json(result: CompareResult, model_a: ModelEntry, model_b: ModelEntry) -> Dict[str, Any]:
    """The ``--json`` document: winner, reasoning and both sides with id/name."""
    dumped = result.model_dump(mode="json", by_alias=True)
    return {
        "winner": dumped["winner"],
        "reasoning": dumped["reasoning"],
        "modelA": {"id": model_a.id, "name": model_a.name, **dumped["modelA"]},
        "modelB": {"id": model_b.id, "name": model_b.name, **dumped["modelB"]},
    }
