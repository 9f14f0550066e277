"""Hybrid retriever — vector similarity + full-text relevance, merged and re-ranked.

Pipeline per call:
  1. Clean the search phrase (stop words and fillers out).
  2. Semantic path (embed, then vector search) and lexical path run concurrently
     over the same filtered candidate set.
  3. Merge by member id with fixed weights.
  4. Exact-match override on name / email / phone.
  5. Person-search filter for bare-name queries.
  6. Sort (exact matches first) and paginate.
"""

import asyncio
import logging
from dataclasses import replace

from community_search.application.interfaces import MemberSearchRepository
from community_search.application.services.name_matching import (
    is_exact_match,
    looks_like_person_name,
    name_tokens,
)
from community_search.application.services.pattern_library import STOP_WORDS, dedupe
from community_search.application.services.provider_factory import ProviderFactory
from community_search.domain.entities import (
    ScoredMember,
    SearchFilters,
    SearchOptions,
    SearchResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_SEMANTIC_WEIGHT = 0.7
DEFAULT_KEYWORD_WEIGHT = 0.3
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
_CANDIDATE_MULTIPLIER = 2
_MAX_CANDIDATES = 200
_TOKEN_EDGE = "?!,;:\"'()[]."

SORT_FIELDS = ("relevance", "name", "year", "turnover")


def clean_search_phrase(phrase: str) -> str:
    """Drop question words, pronouns, generic verbs and articles.

    Falls back to the whitespace-normalized phrase when fewer than two
    characters would survive.
    """
    original = " ".join(phrase.split())
    kept = []
    for token in original.split():
        bare = token.strip(_TOKEN_EDGE)
        if not bare or bare.lower() in STOP_WORDS:
            continue
        kept.append(bare)
    cleaned = " ".join(kept)
    if len(cleaned) < 2:
        return original
    return cleaned


def merge_results(
    semantic: list[ScoredMember],
    keyword: list[ScoredMember],
    semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
    keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
) -> list[ScoredMember]:
    """One entry per member id; scores max-win, profile fields last-writer-win."""
    semantic_scores: dict[str, float] = {}
    keyword_scores: dict[str, float] = {}
    profiles: dict[str, ScoredMember] = {}
    matched: dict[str, list[str]] = {}

    for member in semantic:
        semantic_scores[member.id] = max(semantic_scores.get(member.id, 0.0), member.semantic_score)
        profiles[member.id] = member
        matched[member.id] = dedupe([*matched.get(member.id, []), *member.matched_fields])

    for member in keyword:
        keyword_scores[member.id] = max(keyword_scores.get(member.id, 0.0), member.keyword_score)
        profiles[member.id] = member
        matched[member.id] = dedupe([*matched.get(member.id, []), *member.matched_fields])

    merged = []
    for member_id, profile in profiles.items():
        sem = semantic_scores.get(member_id, 0.0)
        kw = keyword_scores.get(member_id, 0.0)
        merged.append(replace(
            profile,
            semantic_score=sem,
            keyword_score=kw,
            relevance_score=round(sem * semantic_weight + kw * keyword_weight, 6),
            is_exact_match=False,
            matched_fields=matched[member_id],
        ))
    return merged


def apply_exact_match(members: list[ScoredMember], query: str) -> list[ScoredMember]:
    """Force relevance 1.0 on members identified by name, email or phone."""
    result = []
    for member in members:
        if is_exact_match(query, name=member.name, email=member.email, phone=member.phone):
            member = replace(member, relevance_score=1.0, is_exact_match=True)
        result.append(member)
    return result


def apply_person_filter(members: list[ScoredMember], query: str) -> list[ScoredMember]:
    """Narrow a bare-name search down to the person being asked for.

    ``members`` must already be ordered by relevance.
    """
    exact = [m for m in members if m.is_exact_match]
    if exact:
        return exact

    query_tokens = name_tokens(query)
    if len(query_tokens) == 1:
        token = query_tokens[0]
        token_matches = [
            m for m in members
            if (tokens := name_tokens(m.name)) and token in (tokens[0], tokens[-1])
        ]
        return token_matches[:1]

    return members[:1]


def _relevance_order(members: list[ScoredMember]) -> list[ScoredMember]:
    return sorted(members, key=lambda m: (-m.relevance_score, m.name.lower(), m.id))


def _sort_partition(members: list[ScoredMember], sort_by: str, descending: bool) -> list[ScoredMember]:
    if sort_by == "relevance":
        ordered = sorted(members, key=lambda m: m.relevance_score, reverse=descending)
        return ordered

    if sort_by == "name":
        return sorted(members, key=lambda m: m.name.lower(), reverse=descending)

    attribute = "graduation_year" if sort_by == "year" else "annual_turnover"
    present = [m for m in members if getattr(m, attribute) is not None]
    missing = [m for m in members if getattr(m, attribute) is None]
    present.sort(key=lambda m: getattr(m, attribute), reverse=descending)
    return present + missing


def sort_members(members: list[ScoredMember], sort_by: str = "relevance", sort_order: str = "desc") -> list[ScoredMember]:
    """Exact matches first; each partition sorted by the requested field."""
    if sort_by not in SORT_FIELDS:
        sort_by = "relevance"
    descending = sort_order.lower() != "asc"

    # Relevance pre-sort makes ties deterministic for the other fields.
    base = _relevance_order(members)
    exact = [m for m in base if m.is_exact_match]
    rest = [m for m in base if not m.is_exact_match]
    return _sort_partition(exact, sort_by, descending) + _sort_partition(rest, sort_by, descending)


def matched_filter_fields(member: ScoredMember, filters: SearchFilters) -> list[str]:
    """Which filter dimensions this member satisfies."""
    fields = []
    if filters.city and member.city and member.city.strip().lower() == filters.city.lower():
        fields.append("location")
    if filters.year_of_graduation and member.graduation_year in filters.year_of_graduation:
        fields.append("batch year")
    if filters.degree and member.degree:
        degree = member.degree.lower()
        if any(d.lower() in degree for d in filters.degree):
            fields.append("degree")
    if filters.skills and member.skills:
        skills = member.skills.lower()
        if any(s.lower() in skills for s in filters.skills):
            fields.append("skills")
    if filters.services and member.services:
        services = member.services.lower()
        if any(s.lower() in services for s in filters.services):
            fields.append("services")
    if member.annual_turnover is not None and (
        filters.min_turnover is not None or filters.max_turnover is not None
    ):
        above = filters.min_turnover is None or member.annual_turnover >= filters.min_turnover
        below = filters.max_turnover is None or member.annual_turnover <= filters.max_turnover
        if above and below:
            fields.append("turnover")
    return fields


class HybridRetriever:
    """Runs semantic and lexical retrieval and fuses the rankings."""

    def __init__(
        self,
        repository: MemberSearchRepository,
        provider_factory: ProviderFactory,
        *,
        semantic_weight: float = DEFAULT_SEMANTIC_WEIGHT,
        keyword_weight: float = DEFAULT_KEYWORD_WEIGHT,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._repository = repository
        self._factory = provider_factory
        self._semantic_weight = semantic_weight
        self._keyword_weight = keyword_weight
        self._max_page_size = max_page_size

    async def search(
        self,
        search_phrase: str,
        filters: SearchFilters,
        options: SearchOptions | None = None,
    ) -> SearchResponse:
        options = options or SearchOptions()
        page = max(1, options.page)
        limit = min(max(1, options.limit), self._max_page_size)

        cleaned = clean_search_phrase(search_phrase)
        fetch = min(_MAX_CANDIDATES, page * limit * _CANDIDATE_MULTIPLIER)

        semantic, keyword = await asyncio.gather(
            self._semantic_path(cleaned, filters, fetch),
            self._repository.search_keyword(cleaned, filters, limit=fetch),
        )
        logger.info(
            "Hybrid search %r: %d semantic, %d keyword candidates",
            cleaned,
            len(semantic),
            len(keyword),
        )

        members = merge_results(semantic, keyword, self._semantic_weight, self._keyword_weight)
        members = [
            replace(m, matched_fields=dedupe([*m.matched_fields, *matched_filter_fields(m, filters)]))
            for m in members
        ]
        members = _relevance_order(apply_exact_match(members, cleaned))

        person_filter = looks_like_person_name(cleaned)
        if person_filter:
            before = len(members)
            members = apply_person_filter(members, cleaned)
            logger.debug("Person-search filter kept %d of %d candidates", len(members), before)

        ranked = sort_members(members, options.sort_by, options.sort_order)
        offset = (page - 1) * limit
        return SearchResponse(
            members=ranked[offset:offset + limit],
            total_count=len(ranked),
            cleaned_query=cleaned,
            person_filter_applied=person_filter,
        )

    async def _semantic_path(
        self,
        phrase: str,
        filters: SearchFilters,
        limit: int,
    ) -> list[ScoredMember]:
        embedding = await self._factory.embed_query(phrase)
        return await self._repository.search_semantic(embedding, filters, limit=limit)
