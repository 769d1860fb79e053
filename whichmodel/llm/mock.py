"""Mock LLM provider for testing."""

from typing import List, Optional, Tuple, Union

from .base import LLMMessage, LLMProvider, LLMResponse


class MockLLMProvider(LLMProvider):
    """Returns pre-configured responses and records every call.

    A response may be an exception instance, which is raised instead of
    returned, to simulate provider failures.

    Example:
        >>> mock = MockLLMProvider(responses=['{"ok": true}'])
        >>> mock.complete([LLMMessage.user("Hi")], model="test").content
        '{"ok": true}'
    """

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None):
        self.responses: List[Union[str, Exception]] = responses or [""]
        self.call_count = 0
        self.calls: List[Tuple[List[LLMMessage], str, float, bool]] = []

    def complete(
        self,
        messages: List[LLMMessage],
        model: str,
        temperature: float = 0.2,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append((messages, model, temperature, json_mode))

        # Cycle through responses when exhausted
        response = self.responses[self.call_count % len(self.responses)]
        self.call_count += 1

        if isinstance(response, Exception):
            raise response

        return LLMResponse(
            content=response,
            model=model,
            usage={"prompt_tokens": 1000, "completion_tokens": 200, "total_tokens": 1200},
        )

    def reset(self) -> None:
        self.call_count = 0
        self.calls = []
