"""OpenRouter LLM provider.

OpenRouter exposes an OpenAI-compatible API, so the OpenAI SDK is used with
OpenRouter's base URL.
"""

from typing import List, Optional

import openai
from openai import OpenAI

from ..logging import get_logger
from .base import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMMessage,
    LLMProvider,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponse,
)

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 2


class OpenRouterProvider(LLMProvider):
    """Chat completions through https://openrouter.ai."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        app_name: str = "whichmodel",
    ):
        """Initialize OpenRouter provider.

        Args:
            api_key: OpenRouter API key
            base_url: Optional base URL override
            timeout: Per-request timeout in seconds
            max_retries: SDK retries for transient failures
            app_name: App name sent for OpenRouter attribution

        Raises:
            LLMAuthenticationError: If no API key is given
        """
        if not api_key:
            raise LLMAuthenticationError(
                "OpenRouter API key not found. Set OPENROUTER_API_KEY. "
                "Get key at: https://openrouter.ai/keys"
            )

        self.base_url = base_url or self.OPENROUTER_BASE_URL
        self._client = OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=max_retries,
            default_headers={
                "HTTP-Referer": "https://github.com/whichmodel/whichmodel",
                "X-Title": app_name,
            },
        )
        logger.debug("Initialized OpenRouter provider", base_url=self.base_url)

    def complete(
        self,
        messages: List[LLMMessage],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion.

        Raises:
            LLMAuthenticationError: If the API key is rejected
            LLMRateLimitError: If rate limited after SDK retries
            LLMAPIError: For any other API or transport failure
        """
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[msg.to_dict() for msg in messages],  # type: ignore[misc]
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.AuthenticationError as e:
            raise LLMAuthenticationError(
                f"OpenRouter authentication failed: {e}. Get API key at: https://openrouter.ai/keys"
            ) from e
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"OpenRouter rate limit exceeded: {e}") from e
        except openai.OpenAIError as e:
            raise LLMAPIError(f"OpenRouter API error: {e}") from e

        if not response.choices:
            raise LLMProviderError("OpenRouter returned no choices.")

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model or model,
            usage=(
                {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }
                if response.usage
                else None
            ),
            raw_response=response,
        )
