from .intent_classifier import IntentClassifier
from .regex_extractor import RegexExtractor
from .provider_factory import ProviderFactory
from .llm_extraction_service import LLMExtractionService
from .hybrid_extractor import HybridExtractor
from .hybrid_retriever import HybridRetriever
from .suggestion_engine import SuggestionEngine
from .nl_search_service import NLSearchService

__all__ = [
    "IntentClassifier",
    "RegexExtractor",
    "ProviderFactory",
    "LLMExtractionService",
    "HybridExtractor",
    "HybridRetriever",
    "SuggestionEngine",
    "NLSearchService",
]
