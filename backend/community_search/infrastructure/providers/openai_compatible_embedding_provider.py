"""OpenAI-compatible embedding provider — calls the ``/embeddings`` endpoint.

Default setup targets DeepInfra's OpenAI API with ``BAAI/bge-base-en-v1.5``
(768 dimensions).
"""

import logging
from typing import Any

import httpx

from community_search.application.interfaces.embedding_provider import EmbeddingProvider
from community_search.domain.exceptions import EmbeddingDimensionError
from community_search.infrastructure.providers.http_errors import (
    invalid_response,
    raise_for_response,
    transport_error,
)

logger = logging.getLogger(__name__)


class OpenAICompatibleEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via an OpenAI-style /embeddings API."""

    def __init__(
        self,
        provider_name: str,
        api_key: str,
        base_url: str,
        model: str,
        *,
        model_dimensions: int = 768,
        send_dimensions: bool = False,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._provider_name = provider_name
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._dimensions = model_dimensions
        self._send_dimensions = send_dimensions
        self._timeout = timeout
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts; vectors come back in input order."""
        if not texts:
            return []

        url = f"{self._base_url}/embeddings"
        payload: dict[str, Any] = {
            "model": self._model,
            "input": texts,
            "encoding_format": "float",
        }
        # Only models with Matryoshka support accept an explicit size.
        if self._send_dimensions:
            payload["dimensions"] = self._dimensions

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            try:
                response = await client.post(
                    url, headers=self._get_headers(), json=payload, timeout=self._timeout
                )
            except httpx.HTTPError as exc:
                raise transport_error(self.provider_name, exc) from exc

            raise_for_response(self.provider_name, response)

            try:
                data = response.json()
            except ValueError as exc:
                raise invalid_response(self.provider_name, "response body is not JSON") from exc

            result = self._parse_embeddings(data)

            logger.info(
                "Generated %d embeddings (provider=%s, model=%s, dims=%d)",
                len(result),
                self.provider_name,
                self._model,
                len(result[0]) if result else 0,
            )
            return result

        finally:
            if should_close:
                await client.aclose()

    def _parse_embeddings(self, data: Any) -> list[list[float]]:
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise invalid_response(self.provider_name, "missing 'data' array in embedding response")

        # Sort by index to ensure correct ordering
        ordered = sorted(items, key=lambda x: x.get("index", 0))
        vectors = []
        for item in ordered:
            vector = item.get("embedding")
            if not isinstance(vector, list):
                raise invalid_response(self.provider_name, "embedding entry without a vector")
            if len(vector) != self._dimensions:
                raise EmbeddingDimensionError(
                    self.provider_name, expected=self._dimensions, actual=len(vector)
                )
            vectors.append([float(v) for v in vector])
        return vectors
