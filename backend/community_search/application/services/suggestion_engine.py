"""Follow-up query suggestions derived from the surviving result set.

Rule-based and side-effect free. Every call returns at most three
suggestions, and always at least one.
"""

import re
from collections import Counter
from datetime import datetime

from community_search.domain.entities import ExtractedEntities, Intent, ScoredMember

MAX_SUGGESTIONS = 3
_EARLIEST_SUGGESTED_YEAR = 2000

_SERVICE_SPLIT = re.compile(r"[,;/]")
_TITLE_PREFIX = re.compile(r"^(?:Mr\.|Mrs\.|Ms\.|Dr\.)?\s*", re.IGNORECASE)
_COMPANY_SUFFIX = re.compile(r"\s+(?:Pvt\.?|Ltd\.?|Limited|Inc\.?)$", re.IGNORECASE)

FALLBACK_SUGGESTIONS = (
    "Search by graduation year",
    "Search by location",
    "Find businesses by service",
)


# ── Result-set statistics ────────────────────────────────────────────


def top_cities(members: list[ScoredMember], limit: int = 3) -> list[str]:
    counts = Counter(m.city.strip() for m in members if m.city and m.city.strip())
    return [city for city, _ in counts.most_common(limit)]


def top_services(members: list[ScoredMember], limit: int = 5) -> list[str]:
    """First listed offering of each member, most frequent first."""
    counts: Counter[str] = Counter()
    for member in members:
        if not member.services or not member.services.strip():
            continue
        main = _SERVICE_SPLIT.split(member.services)[0].strip()
        if len(main) > 3:
            counts[main] += 1
    return [service for service, _ in counts.most_common(limit)]


def top_designations(members: list[ScoredMember], limit: int = 3) -> list[str]:
    counts: Counter[str] = Counter()
    for member in members:
        if not member.designation or not member.designation.strip():
            continue
        normalized = _COMPANY_SUFFIX.sub("", _TITLE_PREFIX.sub("", member.designation.strip())).strip()
        if len(normalized) > 2:
            counts[normalized] += 1
    return [designation for designation, _ in counts.most_common(limit)]


def top_branches(members: list[ScoredMember], limit: int = 3) -> list[str]:
    counts = Counter(m.branch.strip() for m in members if m.branch and m.branch.strip())
    return [branch for branch, _ in counts.most_common(limit)]


def most_common_year(members: list[ScoredMember]) -> int | None:
    counts = Counter(m.graduation_year for m in members if m.graduation_year)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def has_turnover_data(members: list[ScoredMember]) -> bool:
    return any(m.annual_turnover and m.annual_turnover > 0 for m in members)


def _new_service(members: list[ScoredMember], entities: ExtractedEntities) -> str | None:
    requested = [s.lower() for s in entities.services]
    for service in top_services(members):
        if not any(r in service.lower() for r in requested):
            return service
    return None


# ── Suggestion engine ────────────────────────────────────────────────


class SuggestionEngine:
    """Proposes refinements, alternatives and relaxations for a query."""

    def __init__(self, current_year: int | None = None):
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or datetime.now().year

    def generate(
        self,
        members: list[ScoredMember],
        intent: Intent,
        entities: ExtractedEntities,
    ) -> list[str]:
        if not members:
            suggestions = self.for_empty_results(intent, entities)
        elif intent is Intent.FIND_BUSINESS:
            suggestions = self.for_business(members, entities)
        elif intent is Intent.FIND_PEERS:
            suggestions = self.for_peers(members, entities)
        elif intent is Intent.FIND_SPECIFIC_PERSON:
            suggestions = self.for_person(members)
        elif intent is Intent.FIND_ALUMNI_BUSINESS:
            suggestions = self.for_alumni_business(members, entities)
        else:
            suggestions = self.generic(members)

        return _finalize(suggestions)

    def for_business(self, members: list[ScoredMember], entities: ExtractedEntities) -> list[str]:
        suggestions = []

        cities = top_cities(members)
        if cities and not entities.location:
            suggestions.append(f"Show only in {cities[0]}")
        elif len(cities) > 1 and entities.location:
            other = next((c for c in cities if c.lower() != entities.location.lower()), None)
            if other:
                suggestions.append(f"Show in {other} instead")

        service = _new_service(members, entities)
        if service:
            suggestions.append(f"Find {service} providers")

        if not entities.graduation_year:
            suggestions.append(f"Show only alumni from {self.current_year - 5}")

        if has_turnover_data(members):
            suggestions.append("Show businesses with high turnover")

        designations = top_designations(members)
        if designations:
            suggestions.append(f"Find only {designations[0]}s")

        if entities.services:
            suggestions.append("Browse all service providers")
        else:
            suggestions.append("Browse all businesses")
        return suggestions

    def for_peers(self, members: list[ScoredMember], entities: ExtractedEntities) -> list[str]:
        suggestions = []

        if entities.graduation_year:
            year = entities.graduation_year[0]
            nearby = [
                y for y in (year - 1, year + 1)
                if _EARLIEST_SUGGESTED_YEAR <= y <= self.current_year
            ]
            if nearby:
                suggestions.append(f"Show {nearby[0]} batch instead")
        else:
            year = most_common_year(members)
            if year:
                suggestions.append(f"Show only {year} batch")

        requested = [b.lower() for b in entities.branch_labels()]
        branches = top_branches(members)
        if branches and not requested:
            suggestions.append(f"Show only {branches[0]} branch")
        elif len(branches) > 1 and requested:
            other = next((b for b in branches if b.lower() not in requested), None)
            if other:
                suggestions.append(f"Show {other} instead")

        if entities.graduation_year:
            suggestions.append(f"Find {entities.graduation_year[0]} alumni with businesses")
        else:
            suggestions.append("Find batchmates with businesses")

        if len(suggestions) < MAX_SUGGESTIONS:
            designations = top_designations(members)
            if designations:
                suggestions.append(f"Find who are {designations[0]}s now")

        if len(suggestions) < MAX_SUGGESTIONS:
            cities = top_cities(members)
            if cities and not entities.location:
                suggestions.append(f"Show who are in {cities[0]}")

        suggestions.append("Browse all alumni")
        return suggestions

    def for_person(self, members: list[ScoredMember]) -> list[str]:
        first = members[0]
        suggestions = []
        if first.graduation_year:
            suggestions.append(f"Find other {first.graduation_year} alumni")
        if first.organization:
            suggestions.append(f"Find others at {first.organization}")
        if first.designation:
            suggestions.append(f"Find other {first.designation}s")
        if first.city:
            suggestions.append(f"Find members in {first.city}")
        if first.branch:
            suggestions.append(f"Browse {first.branch} alumni")
        suggestions.append("Browse all members")
        return suggestions

    def for_alumni_business(self, members: list[ScoredMember], entities: ExtractedEntities) -> list[str]:
        suggestions = []

        if not entities.graduation_year:
            year = most_common_year(members)
            if year:
                suggestions.append(f"Show only {year} batch entrepreneurs")
        else:
            older = entities.graduation_year[0] - 5
            if older >= _EARLIEST_SUGGESTED_YEAR:
                suggestions.append(f"Show {older} batch instead")

        service = _new_service(members, entities)
        if service:
            suggestions.append(f"Find alumni in {service}")

        cities = top_cities(members)
        if cities and not entities.location:
            suggestions.append(f"Show businesses in {cities[0]}")

        if has_turnover_data(members):
            suggestions.append("Show high-turnover businesses")

        if entities.graduation_year:
            suggestions.append(f"Show all {entities.graduation_year[0]} alumni")
        else:
            suggestions.append("Browse all alumni businesses")
        return suggestions

    def generic(self, members: list[ScoredMember]) -> list[str]:
        suggestions = []
        cities = top_cities(members)
        if cities:
            suggestions.append(f"Show members in {cities[0]}")
        year = most_common_year(members)
        if year:
            suggestions.append(f"Find {year} alumni")
        services = top_services(members, 3)
        if services:
            suggestions.append(f"Find {services[0]} providers")
        suggestions.append("Browse all members")
        return suggestions

    def for_empty_results(self, intent: Intent, entities: ExtractedEntities) -> list[str]:
        """Relax a filter, broaden the terms, then offer browsing."""
        suggestions = []

        if entities.location:
            suggestions.append("Search without location filter")
        elif entities.graduation_year:
            suggestions.append("Search without year filter")
        elif entities.branch:
            suggestions.append("Search without branch filter")

        if entities.services:
            suggestions.append("Try related services")
        elif entities.skills:
            suggestions.append("Try related skills")
        else:
            suggestions.append("Try broader keywords")

        if intent is Intent.FIND_BUSINESS:
            suggestions.append("Browse all businesses")
        elif intent is Intent.FIND_PEERS:
            suggestions.append("Browse all alumni")
        else:
            suggestions.append("Browse all members")
        return suggestions


def _finalize(suggestions: list[str]) -> list[str]:
    """De-duplicate, pad with fallbacks and cap at three."""
    result: list[str] = []
    for suggestion in [*suggestions, *FALLBACK_SUGGESTIONS]:
        if suggestion not in result:
            result.append(suggestion)
        if len(result) == MAX_SUGGESTIONS:
            break
    return result
