from .in_memory_conversation_store import InMemoryConversationStore

__all__ = ["InMemoryConversationStore"]
