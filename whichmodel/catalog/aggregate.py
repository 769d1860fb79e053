"""Concurrent fan-out over catalog sources with partial-failure handling."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..config import WhichModelConfig
from ..domain.models import ModelEntry
from ..errors import NoModelsFoundError, WhichModelError
from ..logging import get_logger
from .merge import merge_catalogs
from .source import CatalogSource, create_source, validate_supported_sources

logger = get_logger(__name__)


@dataclass
class SourceFailure:
    source: str
    error: Exception

    @property
    def line(self) -> str:
        if isinstance(self.error, WhichModelError):
            message = self.error.message
        else:
            message = str(self.error)
        return f"  ✗ {self.source}: {message}"


@dataclass
class CatalogFetchResult:
    models: List[ModelEntry]
    failures: List[SourceFailure]

    @property
    def warning(self) -> Optional[str]:
        if not self.failures:
            return None
        lines = ["Warning: Some catalog sources failed. Continuing with available sources."]
        lines.extend(f.line for f in self.failures)
        return "\n".join(lines)


def _run(source: CatalogSource) -> Tuple[Optional[List[ModelEntry]], Optional[Exception]]:
    try:
        return source.fetch(), None
    except Exception as e:  # collected per source and reported below
        return None, e
    finally:
        source.close()


def fetch_from_sources(
    sources: Sequence[CatalogSource],
    requested: Optional[Sequence[str]] = None,
) -> CatalogFetchResult:
    """Fetch every source concurrently and merge the successful results.

    Raises:
        WhichModelError: The sole source's own error when only one was requested
        NoModelsFoundError: When every source failed or nothing usable came back
    """
    requested = list(requested or [s.source_id for s in sources])
    if not sources:
        raise NoModelsFoundError("No catalog sources configured.")

    with ThreadPoolExecutor(max_workers=len(sources)) as executor:
        outcomes = list(executor.map(_run, sources))

    successes: List[List[ModelEntry]] = []
    failures: List[SourceFailure] = []
    for source, (models, error) in zip(sources, outcomes):
        if error is not None:
            failures.append(SourceFailure(source.source_id, error))
        else:
            successes.append(models or [])

    if not successes:
        if len(sources) == 1 and isinstance(failures[0].error, WhichModelError):
            raise failures[0].error
        attempted = "\n".join(f.line for f in failures) or "  (none)"
        raise NoModelsFoundError(
            "All catalog sources failed to respond.",
            recovery_hint="\n".join(
                [
                    "Attempted sources:",
                    attempted,
                    "",
                    "Suggestions:",
                    "  • Check your internet connection",
                    "  • Verify API keys are valid",
                    "  • Try again in a few minutes",
                ]
            ),
        )

    result = CatalogFetchResult(models=merge_catalogs(successes), failures=failures)
    if failures:
        logger.warning(
            "Some catalog sources failed",
            failed=[f.source for f in failures],
            errors=[f.line.strip() for f in failures],
        )

    if not result.models:
        raise NoModelsFoundError(
            "No models found from any source.",
            recovery_hint="\n".join(
                [
                    f"Configured sources: {', '.join(requested)}",
                    "",
                    "If you expected more models:",
                    "  • Add FAL_API_KEY for image/video models",
                    "  • Add REPLICATE_API_TOKEN for broader coverage",
                ]
            ),
        )

    return result


def fetch_catalog(
    sources: Sequence[str],
    config: WhichModelConfig,
    no_cache: bool = False,
) -> CatalogFetchResult:
    """Build adapters for ``sources`` and fetch them concurrently."""
    validate_supported_sources(list(sources))
    adapters = [create_source(name, config, no_cache=no_cache) for name in sources]
    return fetch_from_sources(adapters, requested=sources)
