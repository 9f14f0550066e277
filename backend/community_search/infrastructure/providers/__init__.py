"""Text-completion and embedding provider adapters."""

from .gemini_client import GeminiClient, GeminiEmbeddingProvider
from .openai_compatible_client import OpenAICompatibleClient
from .openai_compatible_embedding_provider import OpenAICompatibleEmbeddingProvider

__all__ = [
    "GeminiClient",
    "GeminiEmbeddingProvider",
    "OpenAICompatibleClient",
    "OpenAICompatibleEmbeddingProvider",
]
