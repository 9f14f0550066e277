from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .member_search import (
    Intent,
    ExtractionMethod,
    TurnoverTier,
    IntentResult,
    ExtractedEntities,
    RegexExtractionResult,
    GenerativeExtraction,
    ExtractionResult,
    SearchFilters,
    SearchOptions,
    ScoredMember,
    Pagination,
    SearchResponse,
    NLSearchResult,
)
from .provider_circuit import ProviderCircuitState

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Intent",
    "ExtractionMethod",
    "TurnoverTier",
    "IntentResult",
    "ExtractedEntities",
    "RegexExtractionResult",
    "GenerativeExtraction",
    "ExtractionResult",
    "SearchFilters",
    "SearchOptions",
    "ScoredMember",
    "Pagination",
    "SearchResponse",
    "NLSearchResult",
    "ProviderCircuitState",
]
