"""Catalog source contract and the registry mapping names to adapters."""

from typing import Callable, Dict, List, Optional, Protocol

from ..config import WhichModelConfig
from ..domain.models import ModelEntry
from ..errors import InvalidArgumentsError
from ..logging import get_logger

logger = get_logger(__name__)

VALID_SOURCES = ("openrouter", "fal", "replicate", "elevenlabs", "together")
DEFAULT_SOURCES = ["openrouter"]


class CatalogSource(Protocol):
    """Anything that can produce normalized catalog entries."""

    source_id: str

    def fetch(self) -> List[ModelEntry]:
        """Fetch entries, raising AuthError or NetworkError on failure."""
        ...

    def close(self) -> None:
        """Release any HTTP clients the source opened."""
        ...


SourceFactory = Callable[[WhichModelConfig, bool], CatalogSource]

# Global registry of source factories
_SOURCE_REGISTRY: Dict[str, SourceFactory] = {}


def register_source(name: str, factory: SourceFactory) -> None:
    """Register a source factory.

    Args:
        name: Source name used on the command line (e.g., 'fal')
        factory: Callable building the source from config and a no-cache flag
    """
    _SOURCE_REGISTRY[name.lower()] = factory
    logger.debug("Registered catalog source", source=name)


def supported_sources() -> List[str]:
    return list(_SOURCE_REGISTRY)


def parse_sources(sources_arg: Optional[str]) -> List[str]:
    """Parse a comma separated source list, defaulting to openrouter.

    Raises:
        InvalidArgumentsError: If any name is not a known source
    """
    if not sources_arg:
        return list(DEFAULT_SOURCES)

    sources = [s.strip().lower() for s in sources_arg.split(",") if s.strip()]
    invalid = [s for s in sources if s not in VALID_SOURCES]
    if invalid:
        raise InvalidArgumentsError(
            f"Invalid source value(s): {', '.join(invalid)}.",
            recovery_hint=f"Valid sources: {', '.join(VALID_SOURCES)}",
        )

    return list(dict.fromkeys(sources)) or list(DEFAULT_SOURCES)


def validate_supported_sources(sources: List[str]) -> None:
    """Reject known sources that have no adapter yet."""
    unsupported = [s for s in sources if s not in _SOURCE_REGISTRY]
    if unsupported:
        raise InvalidArgumentsError(
            f"Source(s) not yet supported: {', '.join(unsupported)}.",
            recovery_hint=f"Use --sources {','.join(supported_sources())}",
        )


def create_source(name: str, config: WhichModelConfig, no_cache: bool = False) -> CatalogSource:
    """Build the adapter registered under ``name``."""
    factory = _SOURCE_REGISTRY.get(name.lower())
    if factory is None:
        raise InvalidArgumentsError(
            f"Unsupported source '{name}'.",
            recovery_hint=f"Use --sources {','.join(supported_sources())}",
        )
    return factory(config, no_cache)


def _register_builtin_sources() -> None:
    """Register the built-in adapters."""
    from .fal import FalCatalog
    from .openrouter import OpenRouterCatalog
    from .replicate import ReplicateCatalog

    register_source("openrouter", OpenRouterCatalog.from_config)
    register_source("fal", FalCatalog.from_config)
    register_source("replicate", ReplicateCatalog.from_config)


_register_builtin_sources()
