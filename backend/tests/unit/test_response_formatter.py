"""Unit tests for the template-based response formatter."""

from community_search.application.services.response_formatter import (
    format_generic_results,
    format_results,
    format_turnover,
    highlight_matched_fields,
)
from community_search.domain.entities import ExtractedEntities, Intent, ScoredMember


def _member(**fields) -> ScoredMember:
    defaults = {"id": "m1", "name": "Arun Prakash"}
    defaults.update(fields)
    return ScoredMember(**defaults)


def test_format_turnover_units():
    assert format_turnover(150_000_000) == "₹15.0 Cr"
    assert format_turnover(500_000) == "₹5.0 L"
    assert format_turnover(50_000) == "₹50K"


def test_business_layout():
    member = _member(
        organization="Acme Web Studio",
        city="Chennai",
        services="Web Development, SEO",
        phone="9840012345",
        annual_turnover=150_000_000,
        matched_fields=["services", "location"],
    )
    entities = ExtractedEntities(services=["Web Development"], location="Chennai")

    text = format_results([member], query="web dev in chennai", intent=Intent.FIND_BUSINESS, entities=entities, total=20)

    assert text.startswith("Found **Web Development** companies in **Chennai** (20 results):")
    assert "1. **Acme Web Studio**" in text
    assert "💰 Turnover: ₹15.0 Cr" in text
    assert "✓ Matched: services, location" in text
    assert text.endswith("_Found 20 results_")


def test_peer_layout_shows_alumni_line():
    member = _member(graduation_year=1995, degree="B.E", branch="Mechanical", designation="Manager", organization="TVS")
    entities = ExtractedEntities(graduation_year=[1995], branch="Mechanical")

    text = format_results([member], query="1995 mech", intent=Intent.FIND_PEERS, entities=entities)

    assert text.startswith("**1995 batch** **Mechanical** alumni")
    assert "🎓 '95 • B.E • Mechanical" in text
    assert "💼 Manager at TVS" in text
    assert text.endswith("_Found 1 alumni_")


def test_person_layout_caps_listing():
    members = [_member(id=f"m{i}", name=f"Sivakumar {i}") for i in range(6)]
    entities = ExtractedEntities(name="Sivakumar")

    text = format_results(members, query="Sivakumar", intent=Intent.FIND_SPECIFIC_PERSON, entities=entities, total=10)

    assert text.startswith("Found matches for **Sivakumar**:")
    assert "5. **Sivakumar 4**" in text
    assert "Sivakumar 5" not in text
    assert text.endswith("_Showing top 5 of 10 matches_")


def test_alumni_business_layout():
    member = _member(organization="Kovai Pumps", graduation_year=2005, services="Manufacturing", city="Coimbatore")
    entities = ExtractedEntities(graduation_year=[2005], services=["Manufacturing"])

    text = format_results([member], query="2005 entrepreneurs", intent=Intent.FIND_ALUMNI_BUSINESS, entities=entities)

    assert text.startswith("**2005 batch** entrepreneurs in **Manufacturing** (1 results):")
    assert "1. **Arun Prakash** - Kovai Pumps" in text


def test_empty_results_describe_the_query():
    text = format_results([], query="quantum chefs", intent=Intent.FIND_BUSINESS, entities=ExtractedEntities())

    assert text == (
        "I couldn't find any members matching **quantum chefs**.\n\n"
        "Try different keywords, locations, or time periods."
    )


def test_empty_results_describe_the_filters():
    entities = ExtractedEntities(graduation_year=[2005], location="Pune")

    text = format_results([], query="2005 pune", intent=Intent.FIND_PEERS, entities=entities)

    assert text.startswith("I couldn't find any members matching from **2005 batch** from **Pune**.")


def test_generic_listing():
    members = [_member(email="arun@example.com", city="Chennai"), _member(id="m2", name="Bala")]

    text = format_generic_results(members)

    assert text.splitlines() == [
        "Found 2 members:",
        "",
        "1. Arun Prakash, arun@example.com, Chennai",
        "2. Bala",
    ]


def test_highlight_matched_fields():
    member = _member(city="Chennai", graduation_year=2005, branch="ECE", skills="Python, AI")
    entities = ExtractedEntities(
        location="chennai",
        graduation_year=[2005],
        branch=["ECE", "Electronics and Communication"],
        skills=["ai"],
    )

    assert highlight_matched_fields(member, entities) == ["location", "batch year", "branch", "skills"]


def test_highlight_degree_ignores_dots_and_case():
    member = _member(degree="B.Tech", skills="Java")
    entities = ExtractedEntities(degree=["BTech", "MBA"], skills=["python"])

    assert highlight_matched_fields(member, entities) == ["degree"]
