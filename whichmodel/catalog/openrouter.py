"""OpenRouter catalog source."""

import time
from typing import Callable, List, Optional, Sequence

import httpx

from ..config import WhichModelConfig
from ..domain.models import ModelEntry
from ..logging import get_logger
from .cache import CatalogCache
from .http import DEFAULT_RETRY_DELAYS, DEFAULT_TIMEOUT_SECONDS, RetryingRequester, with_jitter
from .normalization import normalize_openrouter_model
from .schemas import OpenRouterModelsResponse, parse_payload

logger = get_logger(__name__)

STATUS_HINT = "Retry in a few minutes and check https://status.openrouter.ai."


class OpenRouterCatalog:
    """Text and multimodal models listed by OpenRouter. Needs no credential."""

    source_id = "openrouter"
    ENDPOINT = "https://openrouter.ai/api/v1/models"

    def __init__(
        self,
        cache: Optional[CatalogCache] = None,
        cache_ttl: int = 3600,
        no_cache: bool = False,
        endpoint: str = ENDPOINT,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float], float] = with_jitter,
    ):
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.no_cache = no_cache
        self.endpoint = endpoint
        self.requester = RetryingRequester(
            "OpenRouter",
            client=client,
            headers={"Accept": "application/json"},
            timeout=timeout,
            retry_delays=retry_delays,
            sleep=sleep,
            jitter=jitter,
            status_hint=STATUS_HINT,
        )

    @classmethod
    def from_config(cls, config: WhichModelConfig, no_cache: bool = False) -> "OpenRouterCatalog":
        return cls(
            cache=CatalogCache(config.resolved_cache_dir()),
            cache_ttl=config.cache_ttl,
            no_cache=no_cache,
        )

    def close(self) -> None:
        self.requester.close()

    def fetch(self) -> List[ModelEntry]:
        if self.cache is None:
            return self._fetch_live()
        return self.cache.fetch_through(
            self.source_id, self.cache_ttl, self._fetch_live, use_cache=not self.no_cache
        )

    def _fetch_live(self) -> List[ModelEntry]:
        payload = parse_payload(
            OpenRouterModelsResponse,
            self.requester.get_json(self.endpoint),
            "OpenRouter catalog",
        )
        models = [m for m in map(normalize_openrouter_model, payload.data) if m is not None]
        logger.info("Fetched OpenRouter catalog", raw=len(payload.data), usable=len(models))
        return models
