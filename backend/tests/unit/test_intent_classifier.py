"""Unit tests for the rule-based IntentClassifier."""

import pytest

from community_search.application.services.intent_classifier import (
    DEFAULT_CONFIDENCE,
    IntentClassifier,
)
from community_search.domain.entities import Intent


@pytest.fixture
def classifier() -> IntentClassifier:
    return IntentClassifier()


def test_batch_query_is_peer_search(classifier):
    result = classifier.classify("1995 mechanical batch in Chennai")

    assert result.primary == Intent.FIND_PEERS
    assert result.confidence == pytest.approx(0.85)
    assert "find_peers:graduation_year" in result.matched_patterns
    assert "find_peers:branch" in result.matched_patterns


def test_service_request_is_business_search(classifier):
    result = classifier.classify("looking for web development companies in Bangalore")

    assert result.primary == Intent.FIND_BUSINESS
    assert result.confidence == pytest.approx(0.75)
    assert result.secondary is None


def test_contact_request_is_person_search_and_capped(classifier):
    result = classifier.classify("contact details of Dr. Ramesh")

    assert result.primary == Intent.FIND_SPECIFIC_PERSON
    assert result.confidence == 1.0


def test_alumni_ventures_reports_peer_secondary(classifier):
    result = classifier.classify("alumni running startups")

    assert result.primary == Intent.FIND_ALUMNI_BUSINESS
    assert result.confidence == pytest.approx(0.5)
    assert result.secondary == Intent.FIND_PEERS


def test_no_match_defaults_to_business(classifier):
    result = classifier.classify("hello there")

    assert result.primary == Intent.FIND_BUSINESS
    assert result.confidence == DEFAULT_CONFIDENCE
    assert result.matched_patterns == []
    assert all(score == 0 for score in result.scores.values())


def test_classification_is_deterministic(classifier):
    first = classifier.classify("2005 ECE alumni who run a company")
    second = classifier.classify("2005 ECE alumni who run a company")

    assert first == second
