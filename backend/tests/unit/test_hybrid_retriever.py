"""Unit tests for the HybridRetriever and its ranking helpers."""

import pytest

from community_search.application.interfaces import MemberSearchRepository
from community_search.application.services.hybrid_retriever import (
    HybridRetriever,
    apply_exact_match,
    apply_person_filter,
    clean_search_phrase,
    matched_filter_fields,
    merge_results,
    sort_members,
)
from community_search.domain.entities import ScoredMember, SearchFilters, SearchOptions
from community_search.domain.exceptions import AllProvidersFailedError


# ── Fakes ──


def _member(member_id: str, name: str, semantic: float = 0.0, keyword: float = 0.0, **fields) -> ScoredMember:
    return ScoredMember(id=member_id, name=name, semantic_score=semantic, keyword_score=keyword, **fields)


class FakeMemberRepository(MemberSearchRepository):
    def __init__(self, semantic: list[ScoredMember] | None = None, keyword: list[ScoredMember] | None = None):
        self._semantic = semantic or []
        self._keyword = keyword or []
        self.semantic_calls: list[tuple] = []
        self.keyword_calls: list[tuple] = []

    async def search_semantic(self, query_embedding, filters, *, limit=20):
        self.semantic_calls.append((query_embedding, filters, limit))
        return list(self._semantic)

    async def search_keyword(self, search_phrase, filters, *, limit=20):
        self.keyword_calls.append((search_phrase, filters, limit))
        return list(self._keyword)


class FakeEmbeddingFactory:
    def __init__(self, error: Exception | None = None):
        self._error = error
        self.queries: list[str] = []

    async def embed_query(self, text: str) -> list[float]:
        self.queries.append(text)
        if self._error:
            raise self._error
        return [0.1, 0.2, 0.3]


# ── Helpers ──


def test_clean_search_phrase_drops_fillers():
    assert clean_search_phrase("Who are the python developers in Chennai?") == "python developers Chennai"


def test_clean_search_phrase_keeps_original_when_nothing_survives():
    assert clean_search_phrase("who is he?") == "who is he?"


def test_merge_weights_and_max_wins():
    semantic = [_member("a", "Arun", semantic=0.8), _member("a", "Arun", semantic=0.6)]
    keyword = [_member("a", "Arun", keyword=0.5), _member("b", "Bala", keyword=1.0)]

    merged = {m.id: m for m in merge_results(semantic, keyword, 0.7, 0.3)}

    assert merged["a"].relevance_score == pytest.approx(0.71)
    assert merged["a"].semantic_score == 0.8
    assert merged["b"].relevance_score == pytest.approx(0.3)
    assert merged["b"].semantic_score == 0.0


def test_person_filter_without_name_token_match_returns_nothing():
    members = [_member("a", "Arun Kumar Prakash", relevance_score=0.9), _member("b", "Meena Raj", relevance_score=0.5)]

    assert apply_person_filter(members, "Kumar") == []


def test_person_filter_keeps_top_first_or_last_name_match():
    members = [
        _member("c", "Siva Kumaran", relevance_score=0.9),
        _member("b", "Raj Sivakumar K", relevance_score=0.7),
        _member("a", "Sivakumar Raj", relevance_score=0.5),
    ]

    assert [m.id for m in apply_person_filter(members, "Sivakumar")] == ["b"]


def test_exact_match_outranks_near_perfect_similarity():
    members = apply_exact_match(
        [
            _member("b", "Fathima Marian", relevance_score=0.99),
            _member("a", "Mrs. Fatima Mary", relevance_score=0.2),
        ],
        "Fatima Mary",
    )

    ordered = sort_members(members, "relevance", "desc")

    assert [m.id for m in ordered] == ["a", "b"]
    assert ordered[0].is_exact_match is True
    assert ordered[0].relevance_score == 1.0
    assert ordered[1].is_exact_match is False


def test_sort_by_year_puts_missing_last():
    members = [
        _member("a", "A", graduation_year=2010),
        _member("b", "B"),
        _member("c", "C", graduation_year=2005),
    ]

    ordered = sort_members(members, "year", "asc")

    assert [m.id for m in ordered] == ["c", "a", "b"]


def test_exact_matches_stay_first_under_any_sort():
    members = [
        _member("a", "Zara", relevance_score=1.0, is_exact_match=True),
        _member("b", "Anil", relevance_score=0.4),
    ]

    ordered = sort_members(members, "name", "asc")

    assert [m.id for m in ordered] == ["a", "b"]


def test_matched_filter_fields():
    member = _member(
        "a", "Arun",
        city="chennai",
        graduation_year=2005,
        services="Web Development, SEO",
        annual_turnover=50_000_000,
    )
    filters = SearchFilters(
        city="Chennai",
        year_of_graduation=[2005],
        services=["web development"],
        min_turnover=20_000_000,
        max_turnover=100_000_000,
    )

    assert matched_filter_fields(member, filters) == ["location", "batch year", "services", "turnover"]


# ── Retriever ──


@pytest.mark.asyncio
async def test_search_runs_both_paths_with_cleaned_phrase():
    repo = FakeMemberRepository(
        semantic=[_member("a", "Arun", semantic=0.9, city="Chennai"), _member("b", "Bala", semantic=0.4)],
        keyword=[_member("b", "Bala", keyword=1.0)],
    )
    factory = FakeEmbeddingFactory()
    retriever = HybridRetriever(repo, factory)
    filters = SearchFilters(city="Chennai")

    response = await retriever.search("find python developers in Chennai", filters)

    assert factory.queries == ["python developers Chennai"]
    assert repo.keyword_calls[0][0] == "python developers Chennai"
    assert repo.semantic_calls[0][1] is filters
    assert [m.id for m in response.members] == ["a", "b"]
    assert response.members[0].relevance_score == pytest.approx(0.63)
    assert response.members[1].relevance_score == pytest.approx(0.58)
    assert response.members[0].matched_fields == ["location"]
    assert response.total_count == 2
    assert response.person_filter_applied is False


@pytest.mark.asyncio
async def test_exact_name_match_wins_and_narrows_results():
    repo = FakeMemberRepository(
        semantic=[
            _member("a", "Priya Raman", semantic=0.95),
            _member("b", "Arun Prakash", semantic=0.40),
        ],
    )
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search("Arun Prakash", SearchFilters())

    assert response.person_filter_applied is True
    assert response.total_count == 1
    assert response.members[0].id == "b"
    assert response.members[0].relevance_score == 1.0
    assert response.members[0].is_exact_match is True


@pytest.mark.asyncio
async def test_pagination_and_candidate_budget():
    keyword = [_member(str(i), f"Firm {i:02d}", keyword=1 - i / 100) for i in range(25)]
    repo = FakeMemberRepository(keyword=keyword)
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search(
        "consulting firms", SearchFilters(), SearchOptions(page=3, limit=10)
    )

    assert repo.keyword_calls[0][2] == 60
    assert response.total_count == 25
    assert [m.id for m in response.members] == ["20", "21", "22", "23", "24"]


@pytest.mark.asyncio
async def test_page_size_is_capped():
    repo = FakeMemberRepository(keyword=[_member("a", "Arun", keyword=1.0)])
    retriever = HybridRetriever(repo, FakeEmbeddingFactory(), max_page_size=50)

    await retriever.search("consulting", SearchFilters(), SearchOptions(limit=500))

    assert repo.keyword_calls[0][2] == 100


@pytest.mark.asyncio
async def test_embedding_failure_propagates():
    repo = FakeMemberRepository()
    factory = FakeEmbeddingFactory(error=AllProvidersFailedError("embedding", {}))
    retriever = HybridRetriever(repo, factory)

    with pytest.raises(AllProvidersFailedError):
        await retriever.search("consulting", SearchFilters())


@pytest.mark.asyncio
async def test_unknown_single_name_returns_no_neighbours():
    repo = FakeMemberRepository(
        semantic=[
            _member("a", "Arun Kumar Prakash", semantic=0.9),
            _member("b", "Meena Raj", semantic=0.5),
        ],
    )
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search("Zubair", SearchFilters())

    assert response.person_filter_applied is True
    assert response.members == []
    assert response.total_count == 0


@pytest.mark.asyncio
async def test_full_name_with_honorific_is_exact():
    repo = FakeMemberRepository(
        semantic=[
            _member("b", "Fathima Marian", semantic=0.99),
            _member("a", "Mrs. Fatima Mary", semantic=0.3),
        ],
    )
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search("Fatima Mary", SearchFilters())

    assert [m.id for m in response.members] == ["a"]
    assert response.members[0].is_exact_match is True
    assert response.members[0].relevance_score == 1.0


@pytest.mark.asyncio
async def test_single_name_matches_first_and_last_tokens():
    repo = FakeMemberRepository(
        semantic=[
            _member("c", "Siva Kumaran", semantic=0.9),
            _member("b", "Raj Sivakumar K", semantic=0.7),
            _member("a", "Sivakumar Raj", semantic=0.5),
        ],
    )
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search("Sivakumar", SearchFilters())

    assert {m.id for m in response.members} == {"a", "b"}
    assert all(m.is_exact_match for m in response.members)
    assert response.total_count == 2


@pytest.mark.asyncio
async def test_topical_two_word_query_is_not_a_name():
    repo = FakeMemberRepository(
        keyword=[_member("a", "Anitha", keyword=0.9), _member("b", "Bala", keyword=0.6)],
    )
    retriever = HybridRetriever(repo, FakeEmbeddingFactory())

    response = await retriever.search("yoga teacher", SearchFilters())

    assert response.person_filter_applied is False
    assert [m.id for m in response.members] == ["a", "b"]
