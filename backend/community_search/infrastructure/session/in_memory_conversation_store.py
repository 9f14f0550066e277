"""In-memory ConversationStore — recent queries per session key.

Keeps the last few turns of each session and forgets a session after a
period of inactivity. Expired sessions are dropped lazily on access; no
background task is involved.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from community_search.application.interfaces.conversation_store import ConversationStore
from community_search.domain.entities import ExtractedEntities, Intent

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 5
DEFAULT_TTL_SECONDS = 30 * 60


@dataclass
class ConversationTurn:
    query: str
    intent: Intent
    entities: ExtractedEntities
    result_count: int
    timestamp: float


@dataclass
class ConversationSession:
    history: deque[ConversationTurn]
    last_activity: float
    created_at: float = field(default=0.0)


def describe_age(seconds: float) -> str:
    """Human phrase for how long ago a turn happened."""
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)} minutes ago"
    return f"{int(seconds // 3600)} hours ago"


class InMemoryConversationStore(ConversationStore):
    """Process-local conversation history; suitable for a single worker."""

    def __init__(
        self,
        *,
        max_history: int = DEFAULT_MAX_HISTORY,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._max_history = max_history
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, ConversationSession] = {}
        self._lock = asyncio.Lock()

    async def build_context(self, session_key: str) -> str:
        async with self._lock:
            self._purge_expired()
            session = self._sessions.get(session_key)
            if session is None or not session.history:
                return ""
            now = self._clock()
            lines = ["Previous conversation:"]
            for index, turn in enumerate(session.history, start=1):
                age = describe_age(now - turn.timestamp)
                lines.append(f'{index}. "{turn.query}" ({age}, {turn.result_count} results)')
            return "\n".join(lines)

    async def record_turn(
        self,
        session_key: str,
        *,
        query: str,
        intent: Intent,
        entities: ExtractedEntities,
        result_count: int,
    ) -> None:
        async with self._lock:
            self._purge_expired()
            now = self._clock()
            session = self._sessions.get(session_key)
            if session is None:
                logger.debug("Starting conversation session %s", session_key)
                session = ConversationSession(
                    history=deque(maxlen=self._max_history),
                    last_activity=now,
                    created_at=now,
                )
                self._sessions[session_key] = session
            session.history.append(ConversationTurn(
                query=query,
                intent=intent,
                entities=entities,
                result_count=result_count,
                timestamp=now,
            ))
            session.last_activity = now

    async def history(self, session_key: str) -> list[ConversationTurn]:
        async with self._lock:
            self._purge_expired()
            session = self._sessions.get(session_key)
            return list(session.history) if session else []

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def _purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, s in self._sessions.items() if now - s.last_activity > self._ttl]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.info("Dropped %d expired conversation sessions", len(expired))
        return len(expired)
