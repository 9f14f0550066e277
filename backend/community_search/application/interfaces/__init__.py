from .chat_provider import ChatProvider
from .embedding_provider import EmbeddingProvider
from .member_search_repository import MemberSearchRepository
from .conversation_store import ConversationStore

__all__ = [
    "ChatProvider",
    "EmbeddingProvider",
    "MemberSearchRepository",
    "ConversationStore",
]
