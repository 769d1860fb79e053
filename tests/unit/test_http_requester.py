#!/usr/bin/env python3
"""Tests for the retrying JSON requester."""

import httpx
import pytest

from whichmodel.catalog.http import RetryingRequester, is_retryable_status, with_jitter
from whichmodel.errors import AuthError, MalformedResponseError, NetworkError


class ScriptedHandler:
    """MockTransport handler replaying a list of responses or exceptions."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_requester(handler, sleeps, delays=(1.0, 2.0, 4.0)):
    return RetryingRequester(
        "OpenRouter",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        retry_delays=delays,
        sleep=sleeps.append,
        jitter=lambda delay: delay,
    )


class TestRetryPolicy:
    """Test which failures are retried."""

    @pytest.mark.parametrize("status,expected", [(408, True), (429, True), (500, True), (503, True), (404, False), (400, False)])
    def test_retryable_statuses(self, status, expected):
        assert is_retryable_status(status) is expected

    def test_jitter_range(self):
        assert with_jitter(2.0, rand=lambda: 0.0) == 1.0
        assert with_jitter(2.0, rand=lambda: 1.0) == 3.0


class TestGetJson:
    """Test fetching with backoff and error mapping."""

    def test_success_first_try(self):
        sleeps = []
        handler = ScriptedHandler(httpx.Response(200, json={"data": []}))

        assert make_requester(handler, sleeps).get_json("https://example.test/models") == {"data": []}
        assert sleeps == []
        assert handler.requests[0].headers["User-Agent"] == "whichmodel"

    def test_recovers_after_server_errors(self):
        sleeps = []
        handler = ScriptedHandler(
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json={"ok": True}),
        )

        assert make_requester(handler, sleeps).get_json("https://example.test") == {"ok": True}
        assert sleeps == [1.0, 2.0]
        assert len(handler.requests) == 3

    def test_params_are_sent(self):
        handler = ScriptedHandler(httpx.Response(200, json={}))
        make_requester(handler, []).get_json("https://example.test", params={"limit": "200"})

        assert handler.requests[0].url.params["limit"] == "200"

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failure_not_retried(self, status):
        sleeps = []
        handler = ScriptedHandler(httpx.Response(status))

        with pytest.raises(AuthError) as exc_info:
            make_requester(handler, sleeps).get_json("https://example.test")

        assert "OpenRouter" in exc_info.value.message
        assert len(handler.requests) == 1
        assert sleeps == []

    def test_client_error_not_retried(self):
        handler = ScriptedHandler(httpx.Response(404))

        with pytest.raises(NetworkError) as exc_info:
            make_requester(handler, []).get_json("https://example.test")

        assert exc_info.value.status_code == 404
        assert len(handler.requests) == 1

    def test_exhausted_rate_limit(self):
        sleeps = []
        handler = ScriptedHandler(httpx.Response(429))

        with pytest.raises(NetworkError) as exc_info:
            make_requester(handler, sleeps, delays=(0.1, 0.2)).get_json("https://example.test")

        assert exc_info.value.message == "OpenRouter rate limit exceeded (status 429)."
        assert exc_info.value.status_code == 429
        assert len(handler.requests) == 3
        assert sleeps == [0.1, 0.2]

    def test_exhausted_timeouts(self):
        handler = ScriptedHandler(httpx.ReadTimeout("timed out"))

        with pytest.raises(NetworkError, match="Timeout fetching model catalog from OpenRouter"):
            make_requester(handler, [], delays=(0.1,)).get_json("https://example.test")

        assert len(handler.requests) == 2

    def test_connection_failure(self):
        handler = ScriptedHandler(httpx.ConnectError("refused"))

        with pytest.raises(NetworkError, match="Failed to fetch model catalog from OpenRouter: refused"):
            make_requester(handler, [], delays=(0.1,)).get_json("https://example.test")

    def test_invalid_json_body(self):
        handler = ScriptedHandler(httpx.Response(200, content=b"<html>not json</html>"))

        with pytest.raises(MalformedResponseError):
            make_requester(handler, []).get_json("https://example.test")

        assert len(handler.requests) == 1


class TestClientLifecycle:
    """Test which HTTP clients a requester closes."""

    def test_closes_client_it_created(self):
        requester = RetryingRequester("OpenRouter")
        requester.close()
        assert requester.client.is_closed

    def test_leaves_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))

        RetryingRequester("OpenRouter", client=client).close()

        assert not client.is_closed
