"""Pydantic schemas for member search API requests and responses."""

from typing import Literal

from pydantic import BaseModel, Field


# ── Request Schemas ──────────────────────────────────────────────────


class SearchRequest(BaseModel):
    """Request body for a natural-language member search."""

    query: str = Field(..., min_length=1, max_length=500, description="Free-text question")
    max_results: int = Field(default=10, ge=1, le=50, description="Results per page")
    page: int = Field(default=1, ge=1)
    sort_by: Literal["relevance", "name", "year", "turnover"] = "relevance"
    sort_order: Literal["asc", "desc"] = "desc"
    conversation_context: str | None = Field(
        default=None,
        description="Summary of earlier turns; built from session history when omitted",
    )
    session_id: str | None = Field(default=None, description="Key for conversation history")


class UnderstandRequest(BaseModel):
    """Request body for query understanding without retrieval."""

    query: str = Field(..., min_length=1, max_length=500)
    conversation_context: str | None = None


# ── Response Schemas ─────────────────────────────────────────────────


class ExtractedEntitiesSchema(BaseModel):
    graduation_year: list[int] = []
    location: str | None = None
    degree: list[str] = []
    branch: str | list[str] | None = None
    skills: list[str] = []
    services: list[str] = []
    turnover_requirement: str | None = None
    name: str | None = None
    organization_name: str | None = None


class MemberResultSchema(BaseModel):
    """One ranked member."""

    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    organization: str | None = None
    designation: str | None = None
    skills: str | None = None
    services: str | None = None
    annual_turnover: int | None = None
    graduation_year: int | None = None
    degree: str | None = None
    branch: str | None = None
    member_type: str | None = None
    relevance_score: float = 0.0
    semantic_score: float = 0.0
    keyword_score: float = 0.0
    is_exact_match: bool = False
    matched_fields: list[str] = []


class PaginationSchema(BaseModel):
    current_page: int
    total_pages: int
    total_results: int
    results_per_page: int
    has_next_page: bool
    has_previous_page: bool


class ExtractionMetadataSchema(BaseModel):
    """How the entities were obtained."""

    method: str
    confidence: float
    intent_confidence: float
    secondary_intent: str | None = None
    matched_patterns: list[str] = []
    matched_families: list[str] = []
    field_sources: dict[str, str] = {}
    llm_used: bool = False
    fallback_reasons: list[str] = []
    states: list[str] = []
    extraction_time_ms: float = 0.0
    error: str | None = None


class UnderstandingSchema(BaseModel):
    intent: str
    entities: ExtractedEntitiesSchema
    confidence: float
    search_query: str
    extraction: ExtractionMetadataSchema | None = None


class SearchResponseSchema(BaseModel):
    """Full answer to a natural-language member search."""

    understanding: UnderstandingSchema
    members: list[MemberResultSchema] = []
    pagination: PaginationSchema
    conversational_response: str = ""
    suggestions: list[str] = []
    execution_time_ms: float = 0.0


class ProviderStatusSchema(BaseModel):
    name: str
    kind: str
    failures: int
    open: bool
    last_failure_age_seconds: float | None = None


class ProvidersResponseSchema(BaseModel):
    providers: list[ProviderStatusSchema] = []
    chat_configured: bool = False
    embedding_configured: bool = False
