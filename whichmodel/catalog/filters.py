"""User constraints: parsing, validation, and catalog filtering."""

import math
import re
from typing import Iterable, List, Optional

from ..domain import Modality
from ..domain.models import Constraints, ModelEntry
from ..errors import InvalidArgumentsError, NoModelsFoundError
from ..pricing import primary_price

MAX_TASK_LENGTH = 2000
RESOLUTION_PATTERN = re.compile(r"^\d+x\d+$", re.IGNORECASE)
VALID_MODALITIES = [m.value for m in Modality]


def validate_task(task: str) -> str:
    """Return the trimmed task or raise InvalidArgumentsError."""
    task = task.strip()
    if not task:
        raise InvalidArgumentsError(
            "Task description required.",
            recovery_hint="\n".join(
                [
                    "Usage: whichmodel recommend <task>",
                    "",
                    "Examples:",
                    '  whichmodel recommend "summarize legal contracts"',
                    '  whichmodel recommend "generate product photos"',
                ]
            ),
        )
    if len(task) > MAX_TASK_LENGTH:
        raise InvalidArgumentsError(
            f"Task description too long ({len(task)} characters).",
            recovery_hint=(
                "Please shorten your description to under 2000 characters.\n"
                "Focus on the core requirements rather than detailed context."
            ),
        )
    return task


def parse_modality(value: str) -> Modality:
    try:
        return Modality(value)
    except ValueError:
        raise InvalidArgumentsError(
            f"Invalid modality '{value}'.",
            recovery_hint="\n".join(
                ["Valid modalities:"]
                + [f"  {m}" for m in VALID_MODALITIES]
                + ["", 'Example: whichmodel recommend "generate images" --modality image']
            ),
        ) from None


def parse_exclusions(exclude_arg: Optional[str]) -> List[str]:
    if not exclude_arg:
        return []
    return [item.strip() for item in exclude_arg.split(",") if item.strip()]


def parse_constraints(
    modality: Optional[str] = None,
    max_price: Optional[str] = None,
    min_context: Optional[str] = None,
    min_resolution: Optional[str] = None,
    exclude: Optional[str] = None,
) -> Constraints:
    """Validate raw option strings into Constraints."""
    parsed_max_price: Optional[float] = None
    if max_price is not None:
        try:
            parsed_max_price = float(max_price)
        except ValueError:
            parsed_max_price = None
        if parsed_max_price is None or not math.isfinite(parsed_max_price) or parsed_max_price < 0:
            raise InvalidArgumentsError(
                f"Invalid price format '{max_price}'.",
                recovery_hint="--max-price expects a non-negative number in USD.\n\nExample: --max-price 0.05",
            )

    parsed_min_context: Optional[int] = None
    if min_context is not None:
        if not min_context.isdigit() or int(min_context) <= 0:
            raise InvalidArgumentsError(
                f"Invalid min context '{min_context}'.",
                recovery_hint="--min-context expects a positive integer, e.g. --min-context 200000",
            )
        parsed_min_context = int(min_context)

    if min_resolution and not RESOLUTION_PATTERN.match(min_resolution):
        raise InvalidArgumentsError(
            f"Invalid resolution format '{min_resolution}'.",
            recovery_hint="\n".join(
                [
                    "--min-resolution expects WIDTHxHEIGHT format.",
                    "",
                    "Examples:",
                    "  --min-resolution 1024x1024",
                    "  --min-resolution 1920x1080",
                ]
            ),
        )

    return Constraints(
        modality=parse_modality(modality) if modality else None,
        max_price=parsed_max_price,
        min_context=parsed_min_context,
        min_resolution=min_resolution or None,
        exclude=parse_exclusions(exclude),
    )


def is_excluded(model_id: str, patterns: Iterable[str]) -> bool:
    """Exact id match, or prefix match for patterns ending in ``*``."""
    for pattern in patterns:
        if pattern.endswith("*"):
            if model_id.startswith(pattern[:-1]):
                return True
        elif model_id == pattern:
            return True
    return False


def apply_exclusions(models: List[ModelEntry], patterns: Iterable[str]) -> List[ModelEntry]:
    patterns = list(patterns)
    if not patterns:
        return models
    return [m for m in models if not is_excluded(m.id, patterns)]


def resolution_at_least(actual: str, minimum: str) -> bool:
    try:
        actual_w, actual_h = (int(part) for part in actual.lower().split("x"))
        minimum_w, minimum_h = (int(part) for part in minimum.lower().split("x"))
    except ValueError:
        return False
    return actual_w >= minimum_w and actual_h >= minimum_h


def matches_constraints(model: ModelEntry, constraints: Constraints) -> bool:
    if constraints.modality and model.modality != constraints.modality:
        return False
    if constraints.min_context is not None and (model.context_length or 0) < constraints.min_context:
        return False
    if constraints.max_price is not None and primary_price(model) > constraints.max_price:
        return False
    if constraints.min_resolution and model.max_resolution:
        if not resolution_at_least(model.max_resolution, constraints.min_resolution):
            return False
    return True


def apply_constraints(models: List[ModelEntry], constraints: Constraints) -> List[ModelEntry]:
    return [m for m in models if matches_constraints(m, constraints)]


def filter_catalog(models: List[ModelEntry], constraints: Constraints) -> List[ModelEntry]:
    """Apply exclusions then constraints; an empty result is an error."""
    filtered = apply_constraints(apply_exclusions(models, constraints.exclude), constraints)
    if not filtered:
        raise NoModelsFoundError(
            "No models found after applying filters.",
            recovery_hint="Relax --max-price/--min-context filters or remove exclusions.",
        )
    return filtered
