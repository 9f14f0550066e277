"""Domain entities for natural-language member search — framework-independent.

Covers the whole query lifecycle: intent classification, entity extraction,
structured filters, scored retrieval results and the final pipeline result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Coarse-grained purpose of a member search query."""

    FIND_BUSINESS = "find_business"
    FIND_PEERS = "find_peers"
    FIND_SPECIFIC_PERSON = "find_specific_person"
    FIND_ALUMNI_BUSINESS = "find_alumni_business"


class ExtractionMethod(str, Enum):
    """Which extraction path produced the final entities."""

    REGEX = "regex"
    LLM = "llm"
    HYBRID = "hybrid"
    CACHED = "cached"


class TurnoverTier(str, Enum):
    """Annual turnover bucket requested by a query."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class IntentResult:
    """Outcome of rule-based intent classification."""

    primary: Intent
    confidence: float
    secondary: Intent | None = None
    matched_patterns: list[str] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)


@dataclass
class ExtractedEntities:
    """Sparse set of structured values pulled out of a query.

    Empty lists and ``None`` both mean "unconstrained"; an extractor never
    emits empty strings.
    """

    graduation_year: list[int] = field(default_factory=list)
    location: str | None = None
    degree: list[str] = field(default_factory=list)
    branch: str | list[str] | None = None
    skills: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    turnover_requirement: TurnoverTier | None = None
    name: str | None = None
    organization_name: str | None = None

    def branch_labels(self) -> list[str]:
        """Branch as a list regardless of how it was recorded."""
        if self.branch is None:
            return []
        if isinstance(self.branch, str):
            return [self.branch]
        return list(self.branch)

    def is_empty(self) -> bool:
        return not any((
            self.graduation_year,
            self.location,
            self.degree,
            self.branch,
            self.skills,
            self.services,
            self.turnover_requirement,
            self.name,
            self.organization_name,
        ))

    def to_dict(self) -> dict[str, Any]:
        """Sparse dict with only the constrained fields."""
        data: dict[str, Any] = {}
        if self.graduation_year:
            data["graduation_year"] = list(self.graduation_year)
        if self.location:
            data["location"] = self.location
        if self.degree:
            data["degree"] = list(self.degree)
        if self.branch:
            data["branch"] = self.branch if isinstance(self.branch, str) else list(self.branch)
        if self.skills:
            data["skills"] = list(self.skills)
        if self.services:
            data["services"] = list(self.services)
        if self.turnover_requirement:
            data["turnover_requirement"] = self.turnover_requirement.value
        if self.name:
            data["name"] = self.name
        if self.organization_name:
            data["organization_name"] = self.organization_name
        return data


@dataclass
class RegexExtractionResult:
    """Entities found by pattern matching alone."""

    entities: ExtractedEntities
    confidence: float
    matched_families: list[str] = field(default_factory=list)


@dataclass
class GenerativeExtraction:
    """Validated entities returned by a text-completion provider."""

    entities: ExtractedEntities
    confidence: float
    intent: Intent | None = None
    search_query: str | None = None


@dataclass
class ExtractionResult:
    """Final output of the hybrid extraction coordinator."""

    intent: Intent
    entities: ExtractedEntities
    confidence: float
    method: ExtractionMethod
    search_query: str
    intent_result: IntentResult
    extraction_time_ms: float = 0.0
    matched_families: list[str] = field(default_factory=list)
    field_sources: dict[str, str] = field(default_factory=dict)
    llm_used: bool = False
    fallback_reasons: list[str] = field(default_factory=list)
    states: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class SearchFilters:
    """Retrieval constraints derived from extracted entities."""

    city: str | None = None
    skills: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    min_turnover: int | None = None
    max_turnover: int | None = None
    year_of_graduation: list[int] = field(default_factory=list)
    degree: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any((
            self.city,
            self.skills,
            self.services,
            self.min_turnover is not None,
            self.max_turnover is not None,
            self.year_of_graduation,
            self.degree,
        ))


@dataclass
class SearchOptions:
    """Paging and ordering for a retrieval call."""

    page: int = 1
    limit: int = 10
    sort_by: str = "relevance"  # "relevance" | "name" | "year" | "turnover"
    sort_order: str = "desc"    # "asc" | "desc"


@dataclass
class ScoredMember:
    """A candidate member profile with its retrieval scores."""

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
    semantic_score: float = 0.0
    keyword_score: float = 0.0
    relevance_score: float = 0.0
    is_exact_match: bool = False
    matched_fields: list[str] = field(default_factory=list)


@dataclass
class Pagination:
    """Page metadata for a ranked result list."""

    current_page: int
    total_pages: int
    total_results: int
    results_per_page: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "Pagination":
        total_pages = -(-total // per_page) if per_page > 0 else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_results=total,
            results_per_page=per_page,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


@dataclass
class SearchResponse:
    """One page of hybrid retrieval results."""

    members: list[ScoredMember]
    total_count: int
    cleaned_query: str = ""
    person_filter_applied: bool = False


@dataclass
class NLSearchResult:
    """Complete answer to a natural-language member query."""

    intent: Intent
    entities: ExtractedEntities
    confidence: float
    ranked_members: list[ScoredMember]
    pagination: Pagination
    suggestions: list[str]
    conversational_response: str = ""
    search_query: str = ""
    extraction: ExtractionResult | None = None
    execution_time_ms: float = 0.0
