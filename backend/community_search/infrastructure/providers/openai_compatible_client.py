"""OpenAI-compatible chat completions client — implements the ChatProvider interface.

Works against any endpoint that speaks the ``/chat/completions`` wire format
(OpenRouter, DeepInfra's OpenAI API, ...). One instance is bound to one
provider name, base URL and model.
"""

import logging

import httpx

from community_search.application.interfaces.chat_provider import ChatProvider
from community_search.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from community_search.domain.exceptions import ProviderError
from community_search.infrastructure.providers.http_errors import (
    invalid_response,
    kind_for_status,
    raise_for_response,
    transport_error,
)

logger = logging.getLogger(__name__)


class OpenAICompatibleClient(ChatProvider):
    """Infrastructure adapter — non-streaming chat completions over httpx.

    Uses an injected ``httpx.AsyncClient`` when given (connection pooling,
    tests); otherwise opens a short-lived client per call.
    """

    def __init__(
        self,
        provider_name: str,
        api_key: str,
        base_url: str,
        model: str,
        *,
        timeout: float = 15.0,
        app_name: str = "Community Search",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._provider_name = provider_name
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._app_name = app_name
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    def _build_payload(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> dict:
        payload: dict = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if stop:
            payload["stop"] = stop
        return payload

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> ChatCompletionResult:
        """Send a chat completion; every failure surfaces as a classified ProviderError."""
        payload = self._build_payload(
            messages, temperature=temperature, max_tokens=max_tokens, stop=stop
        )
        url = f"{self._base_url}/chat/completions"

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

            return self._parse_completion_response(data)

        finally:
            if should_close:
                await client.aclose()

    def _parse_completion_response(self, data: dict) -> ChatCompletionResult:
        """Parse the OpenAI-style JSON response into a domain entity."""
        if not isinstance(data, dict):
            raise invalid_response(self.provider_name, "response body is not an object")

        # Some gateways report upstream failures with HTTP 200 and an error object.
        if "error" in data:
            error = data["error"] if isinstance(data["error"], dict) else {"message": data["error"]}
            code = error.get("code")
            status = code if isinstance(code, int) else 502
            raise ProviderError(
                provider=self.provider_name,
                status_code=status,
                message=str(error.get("message", "Unknown error")),
                kind=kind_for_status(status),
            )

        choices = data.get("choices") or []
        if not choices:
            raise invalid_response(self.provider_name, "no choices in response")

        choice = choices[0]
        message = choice.get("message") or {}
        usage_data = data.get("usage") or {}

        return ChatCompletionResult(
            model=data.get("model", self._model),
            content=message.get("content", "") or "",
            finish_reason=choice.get("finish_reason", "stop") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            ),
            provider=self.provider_name,
        )
