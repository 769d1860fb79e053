"""Retrying JSON requester shared by the catalog source adapters."""

import random
import time
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import httpx
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from ..errors import AuthError, MalformedResponseError, NetworkError
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_RETRY_DELAYS: Sequence[float] = (1.0, 2.0, 4.0)

USER_AGENT = "whichmodel"


def is_retryable_status(status_code: int) -> bool:
    """408, 429 and any 5xx are worth another attempt."""
    return status_code in (408, 429) or status_code >= 500


def with_jitter(delay: float, rand: Callable[[], float] = random.random) -> float:
    """Spread a backoff delay uniformly across +/-50% of its value."""
    return delay * (0.5 + rand())


class _RetryableFailure(Exception):
    """A single attempt failed in a way that may succeed on retry."""

    def __init__(
        self,
        detail: str,
        status_code: Optional[int] = None,
        timed_out: bool = False,
    ):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.timed_out = timed_out


class RetryingRequester:
    """GET JSON documents with timeout, bounded backoff, and error mapping.

    Retries 408/429/5xx responses, timeouts, and connection failures using a
    fixed delay schedule with jitter. Everything else fails on the first
    attempt. Final failures surface as AuthError (401/403), NetworkError, or
    MalformedResponseError (a 2xx whose body is not JSON).
    """

    def __init__(
        self,
        label: str,
        client: Optional[httpx.Client] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retry_delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float], float] = with_jitter,
        auth_message: Optional[str] = None,
        auth_hint: Optional[str] = None,
        status_hint: str = "Retry in a few minutes.",
    ):
        """Initialize requester.

        Args:
            label: Human-readable provider name used in error messages
            client: Optional httpx client (tests pass one with a MockTransport)
            headers: Headers sent with every request
            timeout: Per-attempt timeout in seconds
            retry_delays: Backoff schedule; attempts = len(retry_delays) + 1
            sleep: Sleep function used between attempts
            jitter: Maps a scheduled delay to the delay actually slept
            auth_message: Message for 401/403 responses
            auth_hint: Recovery hint for 401/403 responses
            status_hint: Recovery hint for outages and exhausted retries
        """
        self.label = label
        self._owns_client = client is None
        self.client = client or httpx.Client(follow_redirects=True)
        self.headers: Dict[str, str] = {"User-Agent": USER_AGENT, **(headers or {})}
        self.timeout = timeout
        self.retry_delays = list(retry_delays)
        self.sleep = sleep
        self.jitter = jitter
        self.auth_message = auth_message or f"Invalid or unauthorized {label} credentials."
        self.auth_hint = auth_hint
        self.status_hint = status_hint

    def close(self) -> None:
        """Close the HTTP client if this requester created it."""
        if self._owns_client:
            self.client.close()

    def get_json(self, url: str, params: Any = None) -> Any:
        """Fetch ``url`` and decode the JSON body, retrying transient failures.

        Raises:
            AuthError: On 401/403
            MalformedResponseError: If a successful response is not JSON
            NetworkError: On any other terminal or exhausted failure
        """
        retrying = Retrying(
            stop=stop_after_attempt(len(self.retry_delays) + 1),
            wait=self._backoff,
            retry=retry_if_exception_type(_RetryableFailure),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return retrying(self._attempt, url, params)
        except _RetryableFailure as failure:
            raise self._exhausted_error(failure) from failure

    def _backoff(self, retry_state: RetryCallState) -> float:
        index = min(retry_state.attempt_number - 1, len(self.retry_delays) - 1)
        return self.jitter(self.retry_delays[index])

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retrying catalog request",
            source=self.label,
            attempt=retry_state.attempt_number,
            delay=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
            error=str(error),
        )

    def _attempt(self, url: str, params: Any) -> Any:
        try:
            response = self.client.get(
                url, params=params, headers=self.headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise _RetryableFailure(str(e) or "timeout", timed_out=True) from e
        except httpx.TransportError as e:
            raise _RetryableFailure(str(e) or type(e).__name__) from e

        status = response.status_code
        if status in (401, 403):
            raise AuthError(self.auth_message, recovery_hint=self.auth_hint)
        if is_retryable_status(status):
            raise _RetryableFailure(f"status {status}", status_code=status)
        if not response.is_success:
            raise NetworkError(
                f"Unable to fetch {self.label} model catalog (status {status}).",
                recovery_hint=f"Check your {self.label} configuration and retry.",
                status_code=status,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"{self.label} response body is invalid JSON.",
                recovery_hint="Retry in a few minutes.",
                status_code=status,
            ) from e

    def _exhausted_error(self, failure: _RetryableFailure) -> NetworkError:
        if failure.timed_out:
            return NetworkError(
                f"Timeout fetching model catalog from {self.label}.",
                recovery_hint=self.status_hint,
            )
        if failure.status_code == 429:
            return NetworkError(
                f"{self.label} rate limit exceeded (status 429).",
                recovery_hint="Wait a minute and retry.",
                status_code=429,
            )
        if failure.status_code is not None:
            return NetworkError(
                f"Unable to fetch {self.label} model catalog (status {failure.status_code}).",
                recovery_hint=self.status_hint,
                status_code=failure.status_code,
            )
        return NetworkError(
            f"Failed to fetch model catalog from {self.label}: {failure.detail}",
            recovery_hint="Check your internet connection and retry.",
        )

