from .base import Base
from .session import engine, async_session_factory
from .models import MemberModel, CommunityMembershipModel, MemberEmbeddingModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "MemberModel",
    "CommunityMembershipModel",
    "MemberEmbeddingModel",
]
