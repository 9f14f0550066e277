"""Unit tests for the RegexExtractor and its pattern library."""

import pytest

from community_search.application.services.regex_extractor import (
    FAMILY_BRANCH,
    FAMILY_LOCATION,
    FAMILY_YEAR,
    RegexExtractor,
    score_families,
)
from community_search.domain.entities import TurnoverTier


@pytest.fixture
def extractor() -> RegexExtractor:
    return RegexExtractor(current_year=2024)


# ── Full extraction ──


def test_peer_query_extracts_year_branch_and_city(extractor):
    result = extractor.extract("1995 mechanical batch in Chennai")

    assert result.entities.graduation_year == [1995]
    assert result.entities.location == "Chennai"
    assert result.entities.branch == "Mechanical"
    assert result.matched_families == [FAMILY_YEAR, FAMILY_LOCATION, FAMILY_BRANCH]
    assert result.confidence == pytest.approx(0.9)


def test_service_query_extracts_service_and_city(extractor):
    result = extractor.extract("need web developers in Bangalore")

    assert result.entities.services == ["Web Development"]
    assert result.entities.skills == []
    assert result.entities.location == "Bangalore"
    assert result.confidence == pytest.approx(0.75)


def test_unstructured_query_has_zero_confidence(extractor):
    result = extractor.extract("who can help me")

    assert result.entities.is_empty()
    assert result.confidence == 0.0


# ── Years ──


def test_year_range_is_expanded(extractor):
    assert extractor.extract_years("2010 to 2012 batch") == [2010, 2011, 2012]


def test_two_digit_batch_years(extractor):
    assert extractor.extract_years("'95 batch") == [1995]
    assert extractor.extract_years("05 passouts") == [2005]


def test_future_years_are_dropped(extractor):
    assert extractor.extract_years("graduates of 2030") == []


# ── Other families ──


def test_multi_synonym_branch_is_a_list(extractor):
    result = extractor.extract("ece graduates")

    assert result.entities.branch == ["ECE", "Electronics and Communication"]


def test_lowercase_me_is_not_a_degree(extractor):
    result = extractor.extract("find me an MBA")

    assert result.entities.degree == ["MBA"]


def test_longest_service_phrase_wins(extractor):
    result = extractor.extract("mobile app development")

    assert result.entities.services == ["Mobile App Development"]


def test_unknown_city_after_preposition(extractor):
    result = extractor.extract("architects in Nagercoil")

    assert result.entities.location == "Nagercoil"
    assert result.entities.services == ["Architecture"]


@pytest.mark.parametrize(
    "query, tier",
    [
        ("companies with high turnover", TurnoverTier.HIGH),
        ("firms above 50 crores", TurnoverTier.HIGH),
        ("2 to 10 cr companies", TurnoverTier.MEDIUM),
        ("small businesses in Coimbatore", TurnoverTier.LOW),
    ],
)
def test_turnover_tiers(extractor, query, tier):
    assert extractor.extract(query).entities.turnover_requirement == tier


def test_skills_and_services_never_overlap(extractor):
    result = extractor.extract("python developers doing consulting and web development")

    skills = {s.lower() for s in result.entities.skills}
    services = {s.lower() for s in result.entities.services}
    assert "python" in skills
    assert {"consulting", "web development"} <= services
    assert not skills & services


# ── Scoring ──


def test_single_weak_family_is_penalized():
    assert score_families(["skills"]) == pytest.approx(0.55)
    assert score_families(["location"]) == pytest.approx(0.6)
    assert score_families([]) == 0.0
