"""Tests for the recommender LLM provider abstraction."""

from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from whichmodel.llm import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMMessage,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponse,
    MockLLMProvider,
    OpenRouterProvider,
)

CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


class TestLLMMessage:
    """Test LLMMessage class."""

    def test_to_dict(self):
        """Test converting message to dict."""
        msg = LLMMessage(role="system", content="You are helpful")
        assert msg.to_dict() == {"role": "system", "content": "You are helpful"}

    def test_constructors(self):
        assert LLMMessage.system("a").role == "system"
        assert LLMMessage.user("b").role == "user"


class TestLLMResponse:
    """Test LLMResponse class."""

    def test_token_counts(self):
        resp = LLMResponse(content="{}", model="m", usage={"prompt_tokens": 10, "completion_tokens": 5})
        assert resp.prompt_tokens == 10
        assert resp.completion_tokens == 5

    def test_missing_usage(self):
        resp = LLMResponse(content="{}", model="m")
        assert resp.prompt_tokens is None
        assert resp.completion_tokens is None


class TestMockLLMProvider:
    """Test MockLLMProvider."""

    def test_cycles_responses(self):
        provider = MockLLMProvider(responses=["one", "two"])
        msgs = [LLMMessage.user("hi")]

        assert [provider.complete(msgs, model="m").content for _ in range(3)] == ["one", "two", "one"]
        assert provider.call_count == 3

    def test_raises_configured_exception(self):
        provider = MockLLMProvider(responses=[LLMAPIError("down")])

        with pytest.raises(LLMAPIError):
            provider.complete([LLMMessage.user("hi")], model="m")

    def test_reset(self):
        provider = MockLLMProvider()
        provider.complete([LLMMessage.user("hi")], model="m")
        provider.reset()

        assert provider.call_count == 0
        assert provider.calls == []


def completion(content='{"ok": true}', usage=True, choices=True):
    response = MagicMock()
    response.model = "deepseek/deepseek-v3.2"
    if choices:
        choice = MagicMock()
        choice.message.content = content
        response.choices = [choice]
    else:
        response.choices = []
    if usage:
        response.usage.prompt_tokens = 900
        response.usage.completion_tokens = 300
        response.usage.total_tokens = 1200
    else:
        response.usage = None
    return response


def status_error(error_cls, status):
    response = httpx.Response(status, request=httpx.Request("POST", CHAT_URL))
    return error_cls("failed", response=response, body=None)


class TestOpenRouterProvider:
    """Test OpenRouterProvider against a mocked OpenAI client."""

    @pytest.fixture
    def client(self):
        with patch("whichmodel.llm.openrouter_provider.OpenAI") as MockOpenAI:
            client = MagicMock()
            MockOpenAI.return_value = client
            yield client, MockOpenAI

    def test_requires_api_key(self):
        with pytest.raises(LLMAuthenticationError):
            OpenRouterProvider(api_key="")

    def test_client_configuration(self, client):
        _, MockOpenAI = client
        OpenRouterProvider(api_key="sk-or-v1-test")

        kwargs = MockOpenAI.call_args.kwargs
        assert kwargs["api_key"] == "sk-or-v1-test"
        assert kwargs["base_url"] == "https://openrouter.ai/api/v1"
        assert kwargs["default_headers"]["X-Title"] == "whichmodel"

    def test_complete_json_mode(self, client):
        mock_client, _ = client
        mock_client.chat.completions.create.return_value = completion()

        response = OpenRouterProvider(api_key="k").complete(
            [LLMMessage.user("hi")], model="deepseek/deepseek-v3.2", max_tokens=1200, json_mode=True
        )

        assert response.content == '{"ok": true}'
        assert response.prompt_tokens == 900
        assert response.completion_tokens == 300
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["max_tokens"] == 1200

    def test_complete_without_json_mode_or_usage(self, client):
        mock_client, _ = client
        mock_client.chat.completions.create.return_value = completion(content=None, usage=False)

        response = OpenRouterProvider(api_key="k").complete([LLMMessage.user("hi")], model="m")

        assert response.content == ""
        assert response.usage is None
        assert "response_format" not in mock_client.chat.completions.create.call_args.kwargs

    def test_no_choices(self, client):
        mock_client, _ = client
        mock_client.chat.completions.create.return_value = completion(choices=False)

        with pytest.raises(LLMProviderError, match="no choices"):
            OpenRouterProvider(api_key="k").complete([LLMMessage.user("hi")], model="m")

    @pytest.mark.parametrize(
        "error,expected",
        [
            (status_error(openai.AuthenticationError, 401), LLMAuthenticationError),
            (status_error(openai.RateLimitError, 429), LLMRateLimitError),
            (status_error(openai.InternalServerError, 500), LLMAPIError),
            (openai.APIConnectionError(request=httpx.Request("POST", CHAT_URL)), LLMAPIError),
        ],
    )
    def test_error_mapping(self, client, error, expected):
        mock_client, _ = client
        mock_client.chat.completions.create.side_effect = error

        with pytest.raises(expected):
            OpenRouterProvider(api_key="k").complete([LLMMessage.user("hi")], model="m")
