"""Abstract interface (port) for per-user conversation history."""

from abc import ABC, abstractmethod

from community_search.domain.entities import ExtractedEntities, Intent


class ConversationStore(ABC):
    """Port for remembering recent queries so follow-ups can be understood."""

    @abstractmethod
    async def build_context(self, session_key: str) -> str:
        """Return a short free-text summary of recent turns ('' when none)."""
        ...

    @abstractmethod
    async def record_turn(
        self,
        session_key: str,
        *,
        query: str,
        intent: Intent,
        entities: ExtractedEntities,
        result_count: int,
    ) -> None:
        """Append a completed query to the session history."""
        ...
