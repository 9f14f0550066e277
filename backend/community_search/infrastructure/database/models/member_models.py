"""SQLAlchemy ORM models for searchable community members.

Profiles live in ``community_memberships.profile_data`` (JSONB, shape varies
by member type). Each membership has one ``member_embeddings`` row holding
three embedding variants and a full-text ``search_vector``.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TSVECTOR, UUID

from pgvector.sqlalchemy import Vector

from community_search.infrastructure.database.base import Base

EMBEDDING_DIMENSIONS = 768


def _uuid() -> str:
    return str(uuid.uuid4())


class MemberModel(Base):
    """A person, independent of the communities they belong to."""

    __tablename__ = "members"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True, index=True)
    email = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class CommunityMembershipModel(Base):
    """A member's participation in one community, with a type-specific profile."""

    __tablename__ = "community_memberships"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    community_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    member_id = Column(
        UUID(as_uuid=False),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_type = Column(String(20), nullable=False)  # alumni | entrepreneur | resident | generic
    role = Column(String(20), nullable=False, server_default="member")
    profile_data = Column(JSONB, nullable=False, server_default=text("'{}'::jsonb"))
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("idx_cm_profile_data_gin", profile_data, postgresql_using="gin"),
    )


class MemberEmbeddingModel(Base):
    """Embedding variants and lexical index for one membership."""

    __tablename__ = "member_embeddings"

    membership_id = Column(
        UUID(as_uuid=False),
        ForeignKey("community_memberships.id", ondelete="CASCADE"),
        primary_key=True,
    )
    profile_embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    skills_embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    contextual_embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)
    search_vector = Column(TSVECTOR, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("idx_me_profile_hnsw", profile_embedding, postgresql_using="hnsw",
              postgresql_ops={"profile_embedding": "vector_cosine_ops"}),
        Index("idx_me_skills_hnsw", skills_embedding, postgresql_using="hnsw",
              postgresql_ops={"skills_embedding": "vector_cosine_ops"}),
        Index("idx_me_contextual_hnsw", contextual_embedding, postgresql_using="hnsw",
              postgresql_ops={"contextual_embedding": "vector_cosine_ops"}),
        Index("idx_me_search_vector", search_vector, postgresql_using="gin"),
    )
