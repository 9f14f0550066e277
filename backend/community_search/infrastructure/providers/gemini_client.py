"""Google Gemini adapters over the Generative Language REST API.

``GeminiClient`` implements ChatProvider via ``:generateContent`` and
``GeminiEmbeddingProvider`` implements EmbeddingProvider via
``:batchEmbedContents``. The API key travels in the ``x-goog-api-key``
header so it never shows up in logged URLs.
"""

import logging
from typing import Any

import httpx

from community_search.application.interfaces.chat_provider import ChatProvider
from community_search.application.interfaces.embedding_provider import EmbeddingProvider
from community_search.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from community_search.domain.exceptions import EmbeddingDimensionError
from community_search.infrastructure.providers.http_errors import (
    invalid_response,
    raise_for_response,
    transport_error,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

_FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
}


class _GeminiHttp:
    """Shared request plumbing for the Gemini adapters."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float,
        http_client: httpx.AsyncClient | None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client

    def _get_headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _post(self, provider: str, url: str, payload: dict) -> Any:
        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    url, headers=self._get_headers(), json=payload, timeout=self._timeout
                )
            except httpx.HTTPError as exc:
                raise transport_error(provider, exc) from exc

            raise_for_response(provider, response)

            try:
                return response.json()
            except ValueError as exc:
                raise invalid_response(provider, "response body is not JSON") from exc

        finally:
            if should_close:
                await client.aclose()


class GeminiClient(_GeminiHttp, ChatProvider):
    """Text completion through ``models/{model}:generateContent``."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(api_key, base_url, timeout, http_client)
        self._model = model

    @property
    def provider_name(self) -> str:
        return "gemini"

    @staticmethod
    def _build_payload(
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> dict:
        """System messages become ``systemInstruction``; assistant turns use role ``model``."""
        system_parts = [m.content for m in messages if m.role == "system"]
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role != "system"
        ]

        payload: dict[str, Any] = {"contents": contents}
        if system_parts:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_parts)}]}

        generation_config: dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if max_tokens is not None:
            generation_config["maxOutputTokens"] = max_tokens
        if stop:
            generation_config["stopSequences"] = stop
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> ChatCompletionResult:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        payload = self._build_payload(
            messages, temperature=temperature, max_tokens=max_tokens, stop=stop
        )
        data = await self._post(self.provider_name, url, payload)
        return self._parse_completion_response(data)

    def _parse_completion_response(self, data: Any) -> ChatCompletionResult:
        if not isinstance(data, dict):
            raise invalid_response(self.provider_name, "response body is not an object")

        candidates = data.get("candidates") or []
        if not candidates:
            block = (data.get("promptFeedback") or {}).get("blockReason")
            reason = f"prompt blocked ({block})" if block else "no candidates in response"
            raise invalid_response(self.provider_name, reason)

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        usage = data.get("usageMetadata") or {}

        return ChatCompletionResult(
            model=data.get("modelVersion", self._model),
            content=text,
            finish_reason=_FINISH_REASONS.get(candidate.get("finishReason", "STOP"), "error"),
            usage=TokenUsage(
                prompt_tokens=usage.get("promptTokenCount", 0),
                completion_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            ),
            provider=self.provider_name,
        )


class GeminiEmbeddingProvider(_GeminiHttp, EmbeddingProvider):
    """Embeddings through ``models/{model}:batchEmbedContents``."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-004",
        *,
        model_dimensions: int = 768,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(api_key, base_url, timeout, http_client)
        self._model = model
        self._dimensions = model_dimensions

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        url = f"{self._base_url}/models/{self._model}:batchEmbedContents"
        payload = {
            "requests": [
                {
                    "model": f"models/{self._model}",
                    "content": {"parts": [{"text": text}]},
                    "outputDimensionality": self._dimensions,
                }
                for text in texts
            ]
        }
        data = await self._post(self.provider_name, url, payload)

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not isinstance(embeddings, list):
            raise invalid_response(self.provider_name, "missing 'embeddings' array")

        vectors = []
        for item in embeddings:
            values = item.get("values") if isinstance(item, dict) else None
            if not isinstance(values, list):
                raise invalid_response(self.provider_name, "embedding entry without values")
            if len(values) != self._dimensions:
                raise EmbeddingDimensionError(
                    self.provider_name, expected=self._dimensions, actual=len(values)
                )
            vectors.append([float(v) for v in values])

        logger.info(
            "Generated %d embeddings (provider=gemini, model=%s)", len(vectors), self._model
        )
        return vectors
