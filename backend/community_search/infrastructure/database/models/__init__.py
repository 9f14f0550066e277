from .member_models import CommunityMembershipModel, MemberEmbeddingModel, MemberModel

__all__ = [
    "MemberModel",
    "CommunityMembershipModel",
    "MemberEmbeddingModel",
]
