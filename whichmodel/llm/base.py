"""Base classes and interfaces for the recommender LLM."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class LLMMessage:
    """A single chat message.

    Attributes:
        role: Message role (system, user, assistant)
        content: Message text
    """

    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary format for API calls."""
        return {"role": self.role, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "LLMMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "LLMMessage":
        return cls(role="user", content=content)


@dataclass
class LLMResponse:
    """Response from an LLM provider.

    Attributes:
        content: Text of the first choice
        model: Model that generated the response
        usage: Token usage (prompt_tokens, completion_tokens), if reported
        raw_response: Provider-specific response object
    """

    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    raw_response: Optional[Any] = None

    @property
    def prompt_tokens(self) -> Optional[int]:
        return self.usage.get("prompt_tokens") if self.usage else None

    @property
    def completion_tokens(self) -> Optional[int]:
        return self.usage.get("completion_tokens") if self.usage else None


class LLMProvider(ABC):
    """Interface the recommendation pipeline calls."""

    @abstractmethod
    def complete(
        self,
        messages: List[LLMMessage],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation messages
            model: Model identifier (e.g. 'deepseek/deepseek-v3.2')
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            json_mode: Ask the provider for a JSON object response

        Raises:
            LLMProviderError: If the call fails
        """


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""

    pass


class LLMAuthenticationError(LLMProviderError):
    """Raised when API authentication fails."""

    pass


class LLMRateLimitError(LLMProviderError):
    """Raised when rate limit is exceeded."""

    pass


class LLMAPIError(LLMProviderError):
    """Raised when API returns an error."""

    pass
