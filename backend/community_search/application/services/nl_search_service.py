"""Natural-language member search — the public pipeline entry point.

Flow:
  1. Hybrid extraction: intent + entities (regex first, generative fallback).
  2. Filter construction from the extracted entities.
  3. Hybrid retrieval: semantic + lexical, merged, exact-match override, paged.
  4. Formatting + follow-up suggestions (template based, never fatal).

Empty result sets are a normal outcome. Provider exhaustion on the embedding
path (``AllProvidersFailedError``) and storage errors propagate to the caller.
"""

import logging
import time
from dataclasses import replace

from community_search.application.interfaces import ConversationStore
from community_search.application.services.filter_builder import entities_to_filters
from community_search.application.services.hybrid_extractor import HybridExtractor
from community_search.application.services.hybrid_retriever import (
    MAX_PAGE_SIZE,
    SORT_FIELDS,
    HybridRetriever,
)
from community_search.application.services.pattern_library import dedupe
from community_search.application.services.response_formatter import (
    format_generic_results,
    format_results,
    highlight_matched_fields,
)
from community_search.application.services.suggestion_engine import SuggestionEngine
from community_search.domain.entities import (
    ExtractedEntities,
    ExtractionResult,
    Intent,
    NLSearchResult,
    Pagination,
    SearchOptions,
)
from community_search.domain.exceptions import InvalidSearchRequestError
from community_search.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("community_search.pipeline")

ERROR_SUGGESTIONS = [
    'Try searching with specific skills (e.g., "AI", "consulting")',
    'Search by location (e.g., "Chennai", "Bangalore")',
    "Browse all members",
]


def degraded_result(natural_query: str, max_results: int = 10, reason: str | None = None) -> NLSearchResult:
    """The 'could not understand' answer used when the pipeline cannot run at all."""
    if reason:
        logger.warning("Returning degraded search result for %r: %s", natural_query, reason)
    return NLSearchResult(
        intent=Intent.FIND_BUSINESS,
        entities=ExtractedEntities(),
        confidence=0.0,
        ranked_members=[],
        pagination=Pagination.build(1, max(1, max_results), 0),
        suggestions=list(ERROR_SUGGESTIONS),
        conversational_response=(
            f'I could not understand your query "{natural_query.strip()}" right now. '
            "Please try rephrasing your question or searching with specific keywords."
        ),
        search_query=natural_query.strip(),
    )


class NLSearchService:
    """Answers free-text member queries with ranked profiles and suggestions."""

    def __init__(
        self,
        extractor: HybridExtractor,
        retriever: HybridRetriever,
        *,
        suggestion_engine: SuggestionEngine | None = None,
        conversation_store: ConversationStore | None = None,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self._extractor = extractor
        self._retriever = retriever
        self._suggestions = suggestion_engine or SuggestionEngine()
        self._store = conversation_store
        self._max_page_size = max_page_size

    async def understand(
        self,
        natural_query: str,
        conversation_context: str | None = None,
    ) -> ExtractionResult:
        """Intent + entities only, without retrieval."""
        query = self._validate_query(natural_query)
        with plog.timed_step(PipelineStage.INTENT, "Understanding query", query=query):
            return await self._extractor.extract(query, conversation_context)

    async def search(
        self,
        natural_query: str,
        max_results: int = 10,
        conversation_context: str | None = None,
        *,
        page: int = 1,
        sort_by: str = "relevance",
        sort_order: str = "desc",
        session_key: str | None = None,
        conversation_store: ConversationStore | None = None,
    ) -> NLSearchResult:
        """Run the full pipeline for one query.

        Raises:
            InvalidSearchRequestError: Empty query or invalid paging/sorting.
            AllProvidersFailedError: No embedding provider could embed the query.
        """
        query = self._validate_query(natural_query)
        self._validate_paging(max_results, page, sort_by, sort_order)
        limit = min(max_results, self._max_page_size)
        start = time.monotonic()

        store = conversation_store or self._store
        if conversation_context is None and store is not None and session_key:
            conversation_context = await store.build_context(session_key) or None
            if conversation_context:
                plog.detail("Loaded conversation context", session=session_key)

        plog.separator(f"Search: {query[:40]}")

        # ── 1. Extraction ────────────────────────────────────────────
        with plog.timed_step(PipelineStage.INTENT, "Classifying and extracting"):
            extraction = await self._extractor.extract(query, conversation_context)
        plog.detail(
            f"intent={extraction.intent.value}",
            method=extraction.method.value,
            confidence=extraction.confidence,
            families=",".join(extraction.matched_families) or "-",
        )
        if extraction.llm_used:
            if extraction.error:
                plog.step_error(PipelineStage.LLM, "Generative fallback failed, regex result kept")
            else:
                plog.step_complete(
                    PipelineStage.LLM,
                    "Generative fallback merged",
                    reasons=",".join(extraction.fallback_reasons),
                )

        # ── 2. Filters ───────────────────────────────────────────────
        filters = entities_to_filters(extraction.entities)
        plog.step_complete(PipelineStage.FILTERS, "Filters built", empty=filters.is_empty())

        # ── 3. Retrieval ─────────────────────────────────────────────
        search_phrase = extraction.search_query or query
        options = SearchOptions(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
        with plog.timed_step(PipelineStage.RETRIEVAL, "Hybrid retrieval", phrase=search_phrase):
            response = await self._retriever.search(search_phrase, filters, options)

        members = [
            replace(
                m,
                matched_fields=dedupe([
                    *m.matched_fields,
                    *highlight_matched_fields(m, extraction.entities),
                ]),
            )
            for m in response.members
        ]
        plog.step_complete(
            PipelineStage.RANKING,
            f"{len(members)} of {response.total_count} members on page {page}",
            exact=sum(1 for m in members if m.is_exact_match),
            person_filter=response.person_filter_applied,
        )

        # ── 4. Formatting ────────────────────────────────────────────
        try:
            conversational = format_results(
                members,
                query=query,
                intent=extraction.intent,
                entities=extraction.entities,
                total=response.total_count,
            )
        except Exception as exc:
            plog.step_error(PipelineStage.FORMAT, "Formatter failed, using minimal listing", error=exc)
            conversational = format_generic_results(members, response.total_count)

        try:
            suggestions = self._suggestions.generate(members, extraction.intent, extraction.entities)
        except Exception as exc:
            plog.step_error(PipelineStage.FORMAT, "Suggestion engine failed, using defaults", error=exc)
            suggestions = list(ERROR_SUGGESTIONS)

        if store is not None and session_key:
            await store.record_turn(
                session_key,
                query=query,
                intent=extraction.intent,
                entities=extraction.entities,
                result_count=response.total_count,
            )

        elapsed_ms = (time.monotonic() - start) * 1000
        plog.step_complete(
            PipelineStage.COMPLETE,
            f"Search finished in {elapsed_ms:.0f}ms",
            results=response.total_count,
        )

        return NLSearchResult(
            intent=extraction.intent,
            entities=extraction.entities,
            confidence=extraction.confidence,
            ranked_members=members,
            pagination=Pagination.build(page, limit, response.total_count),
            suggestions=suggestions,
            conversational_response=conversational,
            search_query=response.cleaned_query or search_phrase,
            extraction=extraction,
            execution_time_ms=round(elapsed_ms, 2),
        )

    # ── Validation ───────────────────────────────────────────────────

    @staticmethod
    def _validate_query(natural_query: str) -> str:
        query = (natural_query or "").strip()
        if not query:
            raise InvalidSearchRequestError("Query must not be empty")
        return query

    @staticmethod
    def _validate_paging(max_results: int, page: int, sort_by: str, sort_order: str) -> None:
        if max_results < 1:
            raise InvalidSearchRequestError("max_results must be at least 1")
        if page < 1:
            raise InvalidSearchRequestError("page must be at least 1")
        if sort_by not in SORT_FIELDS:
            raise InvalidSearchRequestError(
                f"sort_by must be one of {', '.join(SORT_FIELDS)}"
            )
        if sort_order.lower() not in ("asc", "desc"):
            raise InvalidSearchRequestError("sort_order must be 'asc' or 'desc'")
