"""File-based TTL cache for normalized catalogs.

One JSON document per source lives at ``<cache root>/<source>-catalog.json``
holding ``{data, timestamp, ttl, source}``. Writes go to a temp file that is
renamed into place, so readers see either the old or the new snapshot.
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..domain.models import ModelEntry
from ..logging import get_logger

logger = get_logger(__name__)

CATALOG_SUFFIX = "-catalog.json"
METADATA_FILENAME = "metadata.json"

_entries_adapter = TypeAdapter(List[ModelEntry])


class CacheSourceStats(BaseModel):
    name: str
    timestamp: int
    ttl: int
    model_count: int
    size_bytes: int
    age: str
    is_stale: bool


class CacheStats(BaseModel):
    location: str
    sources: List[CacheSourceStats]


def format_age(timestamp: float, now: float) -> str:
    """Render an age as "just now", "Nm ago", "Nh ago" or "Nd ago"."""
    diff_seconds = int(now - timestamp)
    if diff_seconds < 60:
        return "just now"

    minutes = diff_seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"

    return f"{hours // 24}d ago"


def write_json_atomic(path: Path, payload: Any) -> None:
    """Write JSON to ``path`` via temp file and rename, owner-only perms."""
    path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    temp_path = path.with_name(path.name + ".tmp")
    fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    os.replace(temp_path, path)


class CatalogCache:
    """Per-source catalog snapshots with a TTL."""

    def __init__(self, cache_dir: Path, clock: Callable[[], float] = time.time):
        """Initialize cache.

        Args:
            cache_dir: Cache root directory
            clock: Returns the current Unix time in seconds
        """
        self.cache_dir = Path(cache_dir)
        self.clock = clock

    def path_for(self, source: str) -> Path:
        return self.cache_dir / f"{source}{CATALOG_SUFFIX}"

    @property
    def metadata_path(self) -> Path:
        return self.cache_dir / METADATA_FILENAME

    def _now(self) -> int:
        return int(self.clock())

    def read(self, source: str) -> Optional[List[ModelEntry]]:
        """Cached models for ``source``, or None when missing, corrupt or expired."""
        path = self.path_for(source)
        try:
            cache = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug("Catalog cache miss", source=source)
            return None
        except (OSError, ValueError) as e:
            logger.debug("Catalog cache unreadable", source=source, error=str(e))
            return None

        if not isinstance(cache, dict):
            return None
        timestamp = cache.get("timestamp")
        ttl = cache.get("ttl")
        if not cache.get("data") or not timestamp or not ttl:
            return None

        if self._now() - timestamp > ttl:
            logger.debug("Catalog cache expired", source=source)
            return None

        try:
            models = _entries_adapter.validate_python(cache["data"])
        except ValidationError as e:
            logger.debug("Catalog cache has invalid entries", source=source, error=str(e))
            return None

        logger.debug("Catalog cache hit", source=source, models=len(models))
        return models

    def write(self, source: str, models: List[ModelEntry], ttl: int) -> None:
        payload = {
            "data": [m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in models],
            "timestamp": self._now(),
            "ttl": ttl,
            "source": source,
        }
        write_json_atomic(self.path_for(source), payload)
        logger.debug("Catalog cache written", source=source, models=len(models), ttl=ttl)

    def fetch_through(
        self,
        source: str,
        ttl: int,
        loader: Callable[[], List[ModelEntry]],
        use_cache: bool = True,
    ) -> List[ModelEntry]:
        """Serve ``source`` from cache, else call ``loader`` and store a non-empty result."""
        if use_cache:
            cached = self.read(source)
            if cached is not None:
                return cached

        models = loader()
        if models:
            self.write(source, models, ttl)
        return models

    def _catalog_files(self) -> List[Path]:
        if not self.cache_dir.is_dir():
            return []
        return sorted(self.cache_dir.glob(f"*{CATALOG_SUFFIX}"))

    def invalidate(self, source: Optional[str] = None) -> None:
        """Delete one source's snapshot, or every snapshot plus metadata."""
        if source:
            self.path_for(source).unlink(missing_ok=True)
            return

        for path in self._catalog_files():
            path.unlink(missing_ok=True)
        self.metadata_path.unlink(missing_ok=True)

    def stats(self, configured_ttl: int = 3600) -> CacheStats:
        now = self._now()
        sources: List[CacheSourceStats] = []

        for path in self._catalog_files():
            try:
                cache = json.loads(path.read_text(encoding="utf-8"))
                timestamp = int(cache["timestamp"])
                ttl = int(cache.get("ttl") or configured_ttl)
                data = cache.get("data")
                size = path.stat().st_size
            except (OSError, ValueError, KeyError, TypeError):
                # Unreadable snapshots are simply not reported.
                continue

            sources.append(
                CacheSourceStats(
                    name=path.name[: -len(CATALOG_SUFFIX)],
                    timestamp=timestamp,
                    ttl=ttl,
                    model_count=len(data) if isinstance(data, list) else 0,
                    size_bytes=size,
                    age=format_age(timestamp, now),
                    is_stale=now - timestamp > ttl,
                )
            )

        sources.sort(key=lambda s: s.name)
        return CacheStats(location=str(self.cache_dir), sources=sources)


def format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def format_cache_stats(stats: CacheStats) -> str:
    """Plain-text cache report."""
    lines = ["Cache Statistics:", f"  Location: {stats.location}", ""]

    if not stats.sources:
        lines.append("  No cached data.")
        return "\n".join(lines)

    lines.append("  Source         Age        TTL          Models  Size")
    lines.append("  " + "─" * 52)
    for source in stats.sources:
        ttl = f"{source.ttl}s (stale)" if source.is_stale else f"{source.ttl}s"
        lines.append(
            f"  {source.name:<14} {source.age:<10} {ttl:<12} {source.model_count:<7} "
            f"{format_size(source.size_bytes)}"
        )
    return "\n".join(lines)
