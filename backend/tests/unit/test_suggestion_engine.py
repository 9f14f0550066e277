"""Unit tests for follow-up suggestions."""

import pytest

from community_search.application.services.suggestion_engine import (
    FALLBACK_SUGGESTIONS,
    SuggestionEngine,
)
from community_search.domain.entities import ExtractedEntities, Intent, ScoredMember


@pytest.fixture
def engine() -> SuggestionEngine:
    return SuggestionEngine(current_year=2024)


def _member(member_id: str, **fields) -> ScoredMember:
    return ScoredMember(id=member_id, name=f"Member {member_id}", **fields)


def test_empty_results_relax_filters(engine):
    entities = ExtractedEntities(location="Chennai", skills=["AI"])

    suggestions = engine.generate([], Intent.FIND_PEERS, entities)

    assert suggestions == ["Search without location filter", "Try related skills", "Browse all alumni"]


def test_business_suggestions(engine):
    members = [
        _member("1", city="Chennai", services="Construction, Interiors"),
        _member("2", city="Chennai", services="Construction"),
        _member("3", city="Pune", services="Web Development"),
    ]
    entities = ExtractedEntities(services=["Web Development"])

    suggestions = engine.generate(members, Intent.FIND_BUSINESS, entities)

    assert suggestions == [
        "Show only in Chennai",
        "Find Construction providers",
        "Show only alumni from 2019",
    ]


def test_peer_suggestions_offer_neighbouring_batch(engine):
    members = [_member("1", branch="Mechanical"), _member("2", branch="Civil")]
    entities = ExtractedEntities(graduation_year=[2005], branch="Mechanical")

    suggestions = engine.generate(members, Intent.FIND_PEERS, entities)

    assert suggestions == [
        "Show 2004 batch instead",
        "Show Civil instead",
        "Find 2005 alumni with businesses",
    ]


def test_person_suggestions_pivot_on_first_result(engine):
    members = [_member("1", graduation_year=2005, organization="Acme", city="Salem")]

    suggestions = engine.generate(members, Intent.FIND_SPECIFIC_PERSON, ExtractedEntities())

    assert suggestions == ["Find other 2005 alumni", "Find others at Acme", "Find members in Salem"]


def test_sparse_profiles_are_padded_with_fallbacks(engine):
    suggestions = engine.generate([_member("1")], Intent.FIND_SPECIFIC_PERSON, ExtractedEntities())

    assert suggestions == ["Browse all members", *FALLBACK_SUGGESTIONS[:2]]


def test_never_more_than_three(engine):
    members = [
        _member(str(i), city="Chennai", services="Consulting", designation="Director",
                graduation_year=2010, annual_turnover=10_000_000)
        for i in range(5)
    ]

    for intent in Intent:
        suggestions = engine.generate(members, intent, ExtractedEntities())
        assert 1 <= len(suggestions) <= 3
        assert len(set(suggestions)) == len(suggestions)
