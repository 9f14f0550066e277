"""Tests for the /api/v1/search endpoints with the pipeline wired to fakes."""

import pytest
from httpx import ASGITransport, AsyncClient

from community_search.application.services.hybrid_extractor import HybridExtractor
from community_search.application.services.intent_classifier import IntentClassifier
from community_search.application.services.nl_search_service import NLSearchService
from community_search.application.services.provider_factory import ProviderFactory
from community_search.application.services.regex_extractor import RegexExtractor
from community_search.domain.entities import ScoredMember, SearchResponse
from community_search.domain.exceptions import AllProvidersFailedError
from community_search.infrastructure.dependencies import get_nl_search_service, get_provider_factory
from community_search.main import app


class FakeRetriever:
    def __init__(self, response: SearchResponse | None = None, error: Exception | None = None):
        self._response = response or SearchResponse(members=[], total_count=0)
        self._error = error

    async def search(self, search_phrase, filters, options=None):
        if self._error:
            raise self._error
        return self._response


def _override_service(retriever: FakeRetriever) -> None:
    async def provide():
        yield NLSearchService(
            HybridExtractor(IntentClassifier(), RegexExtractor()),
            retriever,
        )

    app.dependency_overrides[get_nl_search_service] = provide


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


async def _post(path: str, payload: dict):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, json=payload)


@pytest.mark.asyncio
async def test_search_returns_ranked_members():
    member = ScoredMember(id="m1", name="Karthik", city="Chennai", graduation_year=1995, relevance_score=0.8)
    _override_service(FakeRetriever(SearchResponse(members=[member], total_count=1, cleaned_query="1995 batch Chennai")))

    response = await _post("/api/v1/search", {"query": "1995 batch in Chennai", "max_results": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["understanding"]["intent"] == "find_peers"
    assert data["understanding"]["entities"]["graduation_year"] == [1995]
    assert data["understanding"]["entities"]["location"] == "Chennai"
    assert data["understanding"]["extraction"]["method"] == "regex"
    assert data["members"][0]["name"] == "Karthik"
    assert data["members"][0]["matched_fields"] == ["location", "batch year"]
    assert data["pagination"]["results_per_page"] == 5
    assert data["conversational_response"]
    assert 1 <= len(data["suggestions"]) <= 3


@pytest.mark.asyncio
async def test_provider_exhaustion_returns_apology_not_error():
    _override_service(FakeRetriever(error=AllProvidersFailedError("embedding", {"deepinfra": "server: down"})))

    response = await _post("/api/v1/search", {"query": "web developers"})

    assert response.status_code == 200
    data = response.json()
    assert data["members"] == []
    assert data["understanding"]["confidence"] == 0.0
    assert data["conversational_response"].startswith("I could not understand your query")


@pytest.mark.asyncio
async def test_request_validation():
    _override_service(FakeRetriever())

    empty = await _post("/api/v1/search", {"query": ""})
    too_many = await _post("/api/v1/search", {"query": "ok", "max_results": 500})
    blank = await _post("/api/v1/search", {"query": "   "})

    assert empty.status_code == 422
    assert too_many.status_code == 422
    assert blank.status_code == 422


@pytest.mark.asyncio
async def test_understand_skips_retrieval():
    retriever = FakeRetriever(error=AssertionError("retrieval must not run"))
    _override_service(retriever)

    response = await _post("/api/v1/search/understand", {"query": "looking for web development companies in Bangalore"})

    assert response.status_code == 200
    data = response.json()
    assert data["intent"] == "find_business"
    assert data["entities"]["services"] == ["Web Development"]
    assert data["entities"]["location"] == "Bangalore"


@pytest.mark.asyncio
async def test_provider_status_endpoint():
    app.dependency_overrides[get_provider_factory] = lambda: ProviderFactory()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/search/providers")

    assert response.status_code == 200
    assert response.json() == {
        "providers": [],
        "chat_configured": False,
        "embedding_configured": False,
    }
