"""Unit tests for the Gemini chat and embedding adapters."""

import json

import httpx
import pytest

from community_search.domain.entities import ChatMessage
from community_search.domain.exceptions import ProviderError, ProviderErrorKind
from community_search.infrastructure.providers import GeminiClient, GeminiEmbeddingProvider


def _make_mock_transport(response_data: dict, status_code: int = 200, captured: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=response_data)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_generate_content_payload_and_parsing():
    captured: list[httpx.Request] = []
    response = {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": '{"intent": '}, {"text": '"find_peers"}'}]},
                "finishReason": "MAX_TOKENS",
            }
        ],
        "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 4, "totalTokenCount": 16},
        "modelVersion": "gemini-2.0-flash-001",
    }
    client = GeminiClient(
        api_key="g-key",
        http_client=httpx.AsyncClient(transport=_make_mock_transport(response, captured=captured)),
    )

    result = await client.complete(
        [
            ChatMessage(role="system", content="Rules."),
            ChatMessage(role="user", content="1995 batch"),
            ChatMessage(role="assistant", content="not json"),
            ChatMessage(role="user", content="again"),
        ],
        temperature=0.2,
        max_tokens=128,
        stop=["\n\n"],
    )

    assert result.content == '{"intent": "find_peers"}'
    assert result.finish_reason == "length"
    assert result.usage.total_tokens == 16
    assert result.provider == "gemini"
    assert result.model == "gemini-2.0-flash-001"

    request = captured[0]
    assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
    assert request.headers["x-goog-api-key"] == "g-key"
    assert "key=" not in str(request.url)
    body = json.loads(request.content)
    assert body["systemInstruction"] == {"parts": [{"text": "Rules."}]}
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["generationConfig"] == {
        "temperature": 0.2,
        "maxOutputTokens": 128,
        "stopSequences": ["\n\n"],
    }


@pytest.mark.asyncio
async def test_blocked_prompt_is_invalid_response():
    client = GeminiClient(
        api_key="g-key",
        http_client=httpx.AsyncClient(transport=_make_mock_transport({"promptFeedback": {"blockReason": "SAFETY"}})),
    )

    with pytest.raises(ProviderError) as exc_info:
        await client.complete([ChatMessage(role="user", content="hi")])

    assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE
    assert "SAFETY" in exc_info.value.message


@pytest.mark.asyncio
async def test_google_error_body_is_classified():
    error = {"error": {"code": 403, "message": "API key not valid", "status": "PERMISSION_DENIED"}}
    client = GeminiClient(
        api_key="bad",
        http_client=httpx.AsyncClient(transport=_make_mock_transport(error, status_code=403)),
    )

    with pytest.raises(ProviderError) as exc_info:
        await client.complete([ChatMessage(role="user", content="hi")])

    assert exc_info.value.kind == ProviderErrorKind.AUTHENTICATION
    assert exc_info.value.message == "API key not valid"


@pytest.mark.asyncio
async def test_batch_embeddings():
    captured: list[httpx.Request] = []
    response = {"embeddings": [{"values": [0.1, 0.2]}, {"values": [0.3, 0.4]}]}
    provider = GeminiEmbeddingProvider(
        api_key="g-key",
        model_dimensions=2,
        http_client=httpx.AsyncClient(transport=_make_mock_transport(response, captured=captured)),
    )

    vectors = await provider.generate_embeddings(["a", "b"])

    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    body = json.loads(captured[0].content)
    assert captured[0].url.path.endswith("/models/text-embedding-004:batchEmbedContents")
    assert body["requests"][0] == {
        "model": "models/text-embedding-004",
        "content": {"parts": [{"text": "a"}]},
        "outputDimensionality": 2,
    }


@pytest.mark.asyncio
async def test_missing_embeddings_array():
    provider = GeminiEmbeddingProvider(
        api_key="g-key",
        http_client=httpx.AsyncClient(transport=_make_mock_transport({"unexpected": True})),
    )

    with pytest.raises(ProviderError) as exc_info:
        await provider.generate_embeddings(["a"])

    assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE
