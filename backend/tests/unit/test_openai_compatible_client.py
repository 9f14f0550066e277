"""Unit tests for the OpenAI-compatible chat and embedding adapters."""

import json

import httpx
import pytest

from community_search.domain.entities import ChatMessage
from community_search.domain.exceptions import (
    EmbeddingDimensionError,
    ProviderError,
    ProviderErrorKind,
)
from community_search.infrastructure.providers import (
    OpenAICompatibleClient,
    OpenAICompatibleEmbeddingProvider,
)


# ── Helpers ──


def _mock_completion_response(content: str = "Hello!", model: str = "meta-llama/llama-3.1-8b-instruct") -> dict:
    return {
        "id": "chatcmpl-test123",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "model": model,
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def _make_mock_transport(
    response_data: dict | None = None,
    status_code: int = 200,
    captured: list | None = None,
) -> httpx.MockTransport:
    """Create a mock transport that returns a fixed response and records requests."""

    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(status_code, json=response_data or {})

    return httpx.MockTransport(handler)


def _client(transport: httpx.MockTransport, name: str = "openrouter") -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        provider_name=name,
        api_key="test-key",
        base_url="https://example.test/api/v1/",
        model="meta-llama/llama-3.1-8b-instruct",
        http_client=httpx.AsyncClient(transport=transport),
    )


MESSAGES = [
    ChatMessage(role="system", content="Extract entities."),
    ChatMessage(role="user", content="python developers"),
]


# ── Chat ──


@pytest.mark.asyncio
async def test_complete_parses_response_and_sends_payload():
    captured: list[httpx.Request] = []
    client = _client(_make_mock_transport(_mock_completion_response('{"intent": "find_business"}'), captured=captured))

    result = await client.complete(MESSAGES, temperature=0.1, max_tokens=256)

    assert result.content == '{"intent": "find_business"}'
    assert result.provider == "openrouter"
    assert result.usage.total_tokens == 15

    request = captured[0]
    assert str(request.url) == "https://example.test/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["model"] == "meta-llama/llama-3.1-8b-instruct"
    assert body["temperature"] == 0.1
    assert body["max_tokens"] == 256
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "stop" not in body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, kind",
    [
        (429, ProviderErrorKind.RATE_LIMIT),
        (504, ProviderErrorKind.TIMEOUT),
        (401, ProviderErrorKind.AUTHENTICATION),
        (404, ProviderErrorKind.CONFIGURATION),
        (500, ProviderErrorKind.SERVER),
    ],
)
async def test_http_errors_are_classified(status, kind):
    error_data = {"error": {"code": status, "message": "upstream said no"}}
    client = _client(_make_mock_transport(error_data, status_code=status))

    with pytest.raises(ProviderError) as exc_info:
        await client.complete(MESSAGES)

    assert exc_info.value.kind == kind
    assert exc_info.value.status_code == status
    assert exc_info.value.message == "upstream said no"
    assert exc_info.value.provider == "openrouter"


@pytest.mark.asyncio
async def test_error_object_with_200_status():
    client = _client(_make_mock_transport({"error": {"code": 429, "message": "Rate limit exceeded"}}))

    with pytest.raises(ProviderError) as exc_info:
        await client.complete(MESSAGES)

    assert exc_info.value.kind == ProviderErrorKind.RATE_LIMIT


@pytest.mark.asyncio
async def test_missing_choices_is_invalid_response():
    client = _client(_make_mock_transport({"choices": []}))

    with pytest.raises(ProviderError) as exc_info:
        await client.complete(MESSAGES)

    assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_timeout_becomes_transient_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(httpx.MockTransport(handler), name="deepinfra")

    with pytest.raises(ProviderError) as exc_info:
        await client.complete(MESSAGES)

    assert exc_info.value.kind == ProviderErrorKind.TIMEOUT
    assert exc_info.value.is_transient
    assert exc_info.value.provider == "deepinfra"


# ── Embeddings ──


def _embedder(transport: httpx.MockTransport, dims: int = 3) -> OpenAICompatibleEmbeddingProvider:
    return OpenAICompatibleEmbeddingProvider(
        provider_name="deepinfra",
        api_key="test-key",
        base_url="https://example.test/v1/openai",
        model="BAAI/bge-base-en-v1.5",
        model_dimensions=dims,
        http_client=httpx.AsyncClient(transport=transport),
    )


@pytest.mark.asyncio
async def test_embeddings_are_returned_in_input_order():
    captured: list[httpx.Request] = []
    data = {"data": [
        {"index": 1, "embedding": [0.4, 0.5, 0.6]},
        {"index": 0, "embedding": [0.1, 0.2, 0.3]},
    ]}
    embedder = _embedder(_make_mock_transport(data, captured=captured))

    vectors = await embedder.generate_embeddings(["first", "second"])

    assert vectors == [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]
    body = json.loads(captured[0].content)
    assert body["input"] == ["first", "second"]
    assert body["encoding_format"] == "float"
    assert "dimensions" not in body


@pytest.mark.asyncio
async def test_embedding_dimension_mismatch():
    embedder = _embedder(_make_mock_transport({"data": [{"index": 0, "embedding": [0.1, 0.2]}]}))

    with pytest.raises(EmbeddingDimensionError) as exc_info:
        await embedder.generate_embeddings(["x"])

    assert exc_info.value.expected == 3
    assert exc_info.value.actual == 2


@pytest.mark.asyncio
async def test_empty_batch_makes_no_request():
    captured: list[httpx.Request] = []
    embedder = _embedder(_make_mock_transport({}, captured=captured))

    assert await embedder.generate_embeddings([]) == []
    assert captured == []
