"""Abstract repository interface (port) for member retrieval."""

from abc import ABC, abstractmethod

from community_search.domain.entities import ScoredMember, SearchFilters


class MemberSearchRepository(ABC):
    """Port for the storage backend behind hybrid member search.

    Both operations apply the same filter predicates so that the semantic
    and lexical paths rank the same candidate set.
    """

    @abstractmethod
    async def search_semantic(
        self,
        query_embedding: list[float],
        filters: SearchFilters,
        *,
        limit: int = 20,
    ) -> list[ScoredMember]:
        """Rank filtered members by vector similarity.

        ``semantic_score`` is ``1 - distance`` for the closest of the member's
        stored embedding variants. Results are ordered by descending score.
        """
        ...

    @abstractmethod
    async def search_keyword(
        self,
        search_phrase: str,
        filters: SearchFilters,
        *,
        limit: int = 20,
    ) -> list[ScoredMember]:
        """Rank filtered members by full-text relevance.

        ``keyword_score`` is normalized to ``[0, 1]`` against the best hit.
        """
        ...
