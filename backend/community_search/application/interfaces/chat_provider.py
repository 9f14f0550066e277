"""Abstract chat provider interface — port for text-completion adapters.

This interface enables multi-provider failover. Each provider
(OpenRouter, DeepInfra, Gemini, ...) implements this interface.
"""

from abc import ABC, abstractmethod

from community_search.domain.entities import ChatMessage, ChatCompletionResult


class ChatProvider(ABC):
    """Port — defines what the application layer needs from any text-completion provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'openrouter', 'gemini')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming completion request.

        Args:
            messages: The conversation history.
            temperature: Sampling temperature (0.0–2.0).
            max_tokens: Maximum tokens in the response.
            stop: Optional stop sequences.

        Returns:
            A ChatCompletionResult with content and usage.

        Raises:
            ProviderError: With ``kind`` set to rate_limit, timeout or a hard failure class.
        """
        ...
