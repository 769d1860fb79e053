"""LLM provider abstraction used by the recommender.

Usage:
    from whichmodel.llm import LLMMessage, OpenRouterProvider

    provider = OpenRouterProvider(api_key="sk-or-v1-...")
    response = provider.complete(
        messages=[LLMMessage.user("Hello!")],
        model="deepseek/deepseek-v3.2",
        json_mode=True,
    )
"""

from .base import (
    LLMAPIError,
    LLMAuthenticationError,
    LLMMessage,
    LLMProvider,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponse,
)
from .mock import MockLLMProvider
from .openrouter_provider import OpenRouterProvider

__all__ = [
    # Base
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    # Errors
    "LLMProviderError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMAPIError",
    # Providers
    "OpenRouterProvider",
    "MockLLMProvider",
]
