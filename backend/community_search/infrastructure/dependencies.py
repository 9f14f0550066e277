"""FastAPI dependency injection — wires infrastructure to application layer."""

import logging
from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends

from community_search.config import Settings, get_settings
from community_search.application.interfaces import (
    ChatProvider,
    ConversationStore,
    EmbeddingProvider,
    MemberSearchRepository,
)
from community_search.application.services import (
    HybridExtractor,
    HybridRetriever,
    IntentClassifier,
    LLMExtractionService,
    NLSearchService,
    ProviderFactory,
    RegexExtractor,
    SuggestionEngine,
)
from community_search.infrastructure.database.session import async_session_factory
from community_search.infrastructure.database.repositories import PgMemberSearchRepository
from community_search.infrastructure.providers import (
    GeminiClient,
    GeminiEmbeddingProvider,
    OpenAICompatibleClient,
    OpenAICompatibleEmbeddingProvider,
)
from community_search.infrastructure.session import InMemoryConversationStore

logger = logging.getLogger(__name__)


# ── Provider construction ────────────────────────────────────────────


def build_chat_providers(settings: Settings) -> list[ChatProvider]:
    """Text-completion adapters in configured failover order; unkeyed ones are skipped."""
    providers: list[ChatProvider] = []
    for name in settings.text_providers:
        name = name.strip().lower()
        if name == "openrouter" and settings.openrouter_api_key.strip():
            providers.append(OpenAICompatibleClient(
                provider_name="openrouter",
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                model=settings.openrouter_model,
                timeout=settings.completion_timeout_seconds,
                app_name=settings.openrouter_app_name,
            ))
        elif name == "deepinfra" and settings.deepinfra_api_key.strip():
            providers.append(OpenAICompatibleClient(
                provider_name="deepinfra",
                api_key=settings.deepinfra_api_key,
                base_url=settings.deepinfra_base_url,
                model=settings.deepinfra_model,
                timeout=settings.completion_timeout_seconds,
            ))
        elif name == "gemini" and settings.gemini_api_key.strip():
            providers.append(GeminiClient(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_base_url,
                timeout=settings.completion_timeout_seconds,
            ))
        elif name in ("openrouter", "deepinfra", "gemini"):
            logger.warning("Text provider '%s' has no API key configured; skipping", name)
        else:
            logger.warning("Unknown text provider '%s' in TEXT_PROVIDERS; skipping", name)
    return providers


def build_embedding_providers(settings: Settings) -> list[EmbeddingProvider]:
    """Embedding adapters in configured failover order; unkeyed ones are skipped."""
    providers: list[EmbeddingProvider] = []
    for name in settings.embedding_providers:
        name = name.strip().lower()
        if name == "deepinfra" and settings.deepinfra_api_key.strip():
            providers.append(OpenAICompatibleEmbeddingProvider(
                provider_name="deepinfra",
                api_key=settings.deepinfra_api_key,
                base_url=settings.deepinfra_base_url,
                model=settings.deepinfra_embedding_model,
                model_dimensions=settings.embedding_dimensions,
                timeout=settings.embedding_timeout_seconds,
            ))
        elif name == "gemini" and settings.gemini_api_key.strip():
            providers.append(GeminiEmbeddingProvider(
                api_key=settings.gemini_api_key,
                model=settings.gemini_embedding_model,
                model_dimensions=settings.embedding_dimensions,
                base_url=settings.gemini_base_url,
                timeout=settings.embedding_timeout_seconds,
            ))
        elif name in ("deepinfra", "gemini"):
            logger.warning("Embedding provider '%s' has no API key configured; skipping", name)
        else:
            logger.warning("Unknown embedding provider '%s' in EMBEDDING_PROVIDERS; skipping", name)
    return providers


# ── Process-wide singletons ──────────────────────────────────────────


@lru_cache
def get_provider_factory() -> ProviderFactory:
    """Singleton ProviderFactory, so breaker state survives across requests."""
    settings = get_settings()
    return ProviderFactory(
        build_chat_providers(settings),
        build_embedding_providers(settings),
        embedding_dimensions=settings.embedding_dimensions,
        failure_threshold=settings.circuit_failure_threshold,
        reset_timeout=settings.circuit_reset_timeout_seconds,
        max_retries=settings.provider_max_retries,
        retry_base_delay=settings.provider_retry_base_delay,
        retry_max_delay=settings.provider_retry_max_delay,
    )


@lru_cache
def get_conversation_store() -> ConversationStore:
    """Singleton conversation history shared by all requests."""
    settings = get_settings()
    return InMemoryConversationStore(
        max_history=settings.conversation_max_history,
        ttl_seconds=settings.conversation_ttl_seconds,
    )


# ── Request-scoped providers ─────────────────────────────────────────


def get_member_search_repository() -> MemberSearchRepository:
    """Provides the pgvector-backed member repository."""
    settings = get_settings()
    return PgMemberSearchRepository(
        async_session_factory,
        community_id=settings.community_id or None,
    )


async def get_nl_search_service(
    repository: MemberSearchRepository = Depends(get_member_search_repository),
    factory: ProviderFactory = Depends(get_provider_factory),
    store: ConversationStore = Depends(get_conversation_store),
) -> AsyncGenerator[NLSearchService, None]:
    """Provides an NLSearchService with extraction, retrieval and history wired up."""
    settings = get_settings()

    llm_extractor = None
    if factory.has_chat_providers:
        llm_extractor = LLMExtractionService(
            factory,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    extractor = HybridExtractor(
        IntentClassifier(),
        RegexExtractor(),
        llm_extractor,
        regex_threshold=settings.regex_confidence_threshold,
        intent_threshold=settings.intent_confidence_threshold,
    )
    retriever = HybridRetriever(
        repository,
        factory,
        semantic_weight=settings.semantic_weight,
        keyword_weight=settings.keyword_weight,
        max_page_size=settings.max_page_size,
    )

    yield NLSearchService(
        extractor,
        retriever,
        suggestion_engine=SuggestionEngine(),
        conversation_store=store,
        max_page_size=settings.max_page_size,
    )
