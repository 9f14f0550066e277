"""Search API controller — natural-language member search endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from community_search.application.schemas.search import (
    ExtractedEntitiesSchema,
    ExtractionMetadataSchema,
    MemberResultSchema,
    PaginationSchema,
    ProvidersResponseSchema,
    ProviderStatusSchema,
    SearchRequest,
    SearchResponseSchema,
    UnderstandingSchema,
    UnderstandRequest,
)
from community_search.application.services.nl_search_service import NLSearchService, degraded_result
from community_search.application.services.provider_factory import ProviderFactory
from community_search.domain.entities import (
    ExtractedEntities,
    ExtractionResult,
    NLSearchResult,
    ScoredMember,
)
from community_search.domain.exceptions import AllProvidersFailedError, InvalidSearchRequestError
from community_search.infrastructure.dependencies import get_nl_search_service, get_provider_factory

router = APIRouter(prefix="/search", tags=["search"])


# ── Helpers ──────────────────────────────────────────────────────────


def _to_entities_schema(entities: ExtractedEntities) -> ExtractedEntitiesSchema:
    return ExtractedEntitiesSchema(
        graduation_year=entities.graduation_year,
        location=entities.location,
        degree=entities.degree,
        branch=entities.branch,
        skills=entities.skills,
        services=entities.services,
        turnover_requirement=(
            entities.turnover_requirement.value if entities.turnover_requirement else None
        ),
        name=entities.name,
        organization_name=entities.organization_name,
    )


def _to_extraction_schema(extraction: ExtractionResult) -> ExtractionMetadataSchema:
    return ExtractionMetadataSchema(
        method=extraction.method.value,
        confidence=extraction.confidence,
        intent_confidence=extraction.intent_result.confidence,
        secondary_intent=(
            extraction.intent_result.secondary.value if extraction.intent_result.secondary else None
        ),
        matched_patterns=extraction.intent_result.matched_patterns,
        matched_families=extraction.matched_families,
        field_sources=extraction.field_sources,
        llm_used=extraction.llm_used,
        fallback_reasons=extraction.fallback_reasons,
        states=extraction.states,
        extraction_time_ms=extraction.extraction_time_ms,
        error=extraction.error,
    )


def _to_member_schema(member: ScoredMember) -> MemberResultSchema:
    return MemberResultSchema(
        id=member.id,
        name=member.name,
        email=member.email,
        phone=member.phone,
        city=member.city,
        organization=member.organization,
        designation=member.designation,
        skills=member.skills,
        services=member.services,
        annual_turnover=member.annual_turnover,
        graduation_year=member.graduation_year,
        degree=member.degree,
        branch=member.branch,
        member_type=member.member_type,
        relevance_score=member.relevance_score,
        semantic_score=member.semantic_score,
        keyword_score=member.keyword_score,
        is_exact_match=member.is_exact_match,
        matched_fields=member.matched_fields,
    )


def _to_result_schema(result: NLSearchResult) -> SearchResponseSchema:
    """Map domain NLSearchResult to response schema."""
    return SearchResponseSchema(
        understanding=UnderstandingSchema(
            intent=result.intent.value,
            entities=_to_entities_schema(result.entities),
            confidence=result.confidence,
            search_query=result.search_query,
            extraction=_to_extraction_schema(result.extraction) if result.extraction else None,
        ),
        members=[_to_member_schema(m) for m in result.ranked_members],
        pagination=PaginationSchema(
            current_page=result.pagination.current_page,
            total_pages=result.pagination.total_pages,
            total_results=result.pagination.total_results,
            results_per_page=result.pagination.results_per_page,
            has_next_page=result.pagination.has_next_page,
            has_previous_page=result.pagination.has_previous_page,
        ),
        conversational_response=result.conversational_response,
        suggestions=result.suggestions,
        execution_time_ms=result.execution_time_ms,
    )


def _to_understanding_schema(extraction: ExtractionResult) -> UnderstandingSchema:
    return UnderstandingSchema(
        intent=extraction.intent.value,
        entities=_to_entities_schema(extraction.entities),
        confidence=extraction.confidence,
        search_query=extraction.search_query,
        extraction=_to_extraction_schema(extraction),
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post("", response_model=SearchResponseSchema)
async def search_members(
    body: SearchRequest,
    service: NLSearchService = Depends(get_nl_search_service),
):
    """Answer a free-text question with ranked member profiles.

    Provider exhaustion yields the apologetic empty answer rather than an
    error status.
    """
    try:
        result = await service.search(
            body.query,
            max_results=body.max_results,
            conversation_context=body.conversation_context,
            page=body.page,
            sort_by=body.sort_by,
            sort_order=body.sort_order,
            session_key=body.session_id,
        )
    except InvalidSearchRequestError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except AllProvidersFailedError as exc:
        result = degraded_result(body.query, body.max_results, reason=str(exc))
    return _to_result_schema(result)


@router.post("/understand", response_model=UnderstandingSchema)
async def understand_query(
    body: UnderstandRequest,
    service: NLSearchService = Depends(get_nl_search_service),
):
    """Classify and extract only, without retrieval. Useful for debugging."""
    try:
        extraction = await service.understand(body.query, body.conversation_context)
    except InvalidSearchRequestError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _to_understanding_schema(extraction)


@router.get("/providers", response_model=ProvidersResponseSchema)
async def provider_status(
    factory: ProviderFactory = Depends(get_provider_factory),
):
    """Circuit-breaker state for every configured provider."""
    return ProvidersResponseSchema(
        providers=[ProviderStatusSchema(**entry) for entry in factory.provider_status()],
        chat_configured=factory.has_chat_providers,
        embedding_configured=factory.has_embedding_providers,
    )
