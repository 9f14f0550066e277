"""PostgreSQL implementation of the MemberSearchRepository port.

Semantic path: pgvector cosine distance, best of the three embedding
variants per membership. Lexical path: ``ts_rank`` over ``search_vector``
normalized by the best hit of the batch. Both share the same filter
predicates on ``profile_data``.

Each call opens its own session so the two paths can run concurrently.
"""

import logging
from typing import Any

from sqlalchemy import Integer, Numeric, Select, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from community_search.application.interfaces.member_search_repository import (
    MemberSearchRepository,
)
from community_search.domain.entities import ScoredMember, SearchFilters
from community_search.infrastructure.database.models.member_models import (
    CommunityMembershipModel,
    MemberEmbeddingModel,
    MemberModel,
)

logger = logging.getLogger(__name__)

_TS_CONFIG = "english"

_ORGANIZATION_KEYS = ("current_organization", "organization", "company")
_DESIGNATION_KEYS = ("designation", "profession", "working_as")
_BRANCH_KEYS = ("department", "branch")
_SERVICE_KEYS = ("services_offered", "products_services", "services")


def _first(profile: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = profile.get(key)
        if value not in (None, "", []):
            return value
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        joined = ", ".join(str(v).strip() for v in value if str(v).strip())
        return joined or None
    text = str(value).strip()
    return text or None


def _as_int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def profile_to_member(
    member_id: str,
    name: str,
    email: str | None,
    phone: str | None,
    member_type: str | None,
    profile: dict[str, Any] | None,
) -> ScoredMember:
    """Flatten a JSONB profile into the search result shape."""
    profile = profile or {}
    return ScoredMember(
        id=str(member_id),
        name=name,
        email=email,
        phone=phone,
        city=_as_text(profile.get("city")),
        organization=_as_text(_first(profile, _ORGANIZATION_KEYS)),
        designation=_as_text(_first(profile, _DESIGNATION_KEYS)),
        skills=_as_text(profile.get("skills")),
        services=_as_text(_first(profile, _SERVICE_KEYS)),
        annual_turnover=_as_int(profile.get("annual_turnover")),
        graduation_year=_as_int(profile.get("graduation_year")),
        degree=_as_text(profile.get("degree")),
        branch=_as_text(_first(profile, _BRANCH_KEYS)),
        member_type=member_type,
    )


class PgMemberSearchRepository(MemberSearchRepository):
    """Hybrid search queries over members, memberships and member_embeddings."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        community_id: str | None = None,
    ):
        self._session_factory = session_factory
        self._community_id = community_id

    # ── Filters ──────────────────────────────────────────────────────

    def _apply_filters(self, query: Select, filters: SearchFilters) -> Select:
        profile = CommunityMembershipModel.profile_data

        query = query.where(CommunityMembershipModel.is_active.is_(True))
        query = query.where(MemberModel.is_active.is_(True))

        if self._community_id:
            query = query.where(CommunityMembershipModel.community_id == self._community_id)

        if filters.city:
            query = query.where(profile["city"].astext.ilike(f"%{filters.city}%"))

        if filters.year_of_graduation:
            query = query.where(
                and_(
                    CommunityMembershipModel.member_type == "alumni",
                    cast(profile["graduation_year"].astext, Integer).in_(filters.year_of_graduation),
                )
            )

        if filters.degree:
            query = query.where(
                and_(
                    CommunityMembershipModel.member_type == "alumni",
                    or_(*(profile["degree"].astext.ilike(f"%{d}%") for d in filters.degree)),
                )
            )

        # Skills and services form one membership group: any requested term
        # found in the member's skills or offerings qualifies.
        terms = [*filters.skills, *filters.services]
        if terms:
            searchable = [
                profile["skills"].astext,
                *(profile[key].astext for key in _SERVICE_KEYS),
            ]
            query = query.where(
                or_(*(column.ilike(f"%{term}%") for column in searchable for term in terms))
            )

        turnover = cast(profile["annual_turnover"].astext, Numeric)
        if filters.min_turnover is not None:
            query = query.where(turnover >= filters.min_turnover)
        if filters.max_turnover is not None:
            query = query.where(turnover <= filters.max_turnover)

        return query

    def _base_query(self, *columns) -> Select:
        return (
            select(
                MemberModel.id,
                MemberModel.name,
                MemberModel.email,
                MemberModel.phone,
                CommunityMembershipModel.member_type,
                CommunityMembershipModel.profile_data,
                *columns,
            )
            .select_from(CommunityMembershipModel)
            .join(MemberModel, MemberModel.id == CommunityMembershipModel.member_id)
            .join(
                MemberEmbeddingModel,
                MemberEmbeddingModel.membership_id == CommunityMembershipModel.id,
            )
        )

    # ── Semantic path ────────────────────────────────────────────────

    async def search_semantic(
        self,
        query_embedding: list[float],
        filters: SearchFilters,
        *,
        limit: int = 20,
    ) -> list[ScoredMember]:
        # LEAST ignores NULLs, so members with a missing variant still rank.
        min_distance = func.least(
            MemberEmbeddingModel.profile_embedding.cosine_distance(query_embedding),
            MemberEmbeddingModel.skills_embedding.cosine_distance(query_embedding),
            MemberEmbeddingModel.contextual_embedding.cosine_distance(query_embedding),
        ).label("min_distance")

        query = self._base_query(min_distance).where(
            or_(
                MemberEmbeddingModel.profile_embedding.is_not(None),
                MemberEmbeddingModel.skills_embedding.is_not(None),
                MemberEmbeddingModel.contextual_embedding.is_not(None),
            )
        )
        query = self._apply_filters(query, filters).order_by(min_distance.asc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        members = []
        for row in rows:
            member = profile_to_member(
                row.id, row.name, row.email, row.phone, row.member_type, row.profile_data
            )
            distance = float(row.min_distance) if row.min_distance is not None else 1.0
            member.semantic_score = max(0.0, min(1.0, 1.0 - distance))
            members.append(member)

        logger.debug("Semantic search returned %d rows", len(members))
        return members

    # ── Lexical path ─────────────────────────────────────────────────

    async def search_keyword(
        self,
        search_phrase: str,
        filters: SearchFilters,
        *,
        limit: int = 20,
    ) -> list[ScoredMember]:
        ts_query = func.plainto_tsquery(_TS_CONFIG, search_phrase)
        rank = func.ts_rank(MemberEmbeddingModel.search_vector, ts_query).label("rank")

        query = self._base_query(rank).where(
            MemberEmbeddingModel.search_vector.op("@@")(ts_query)
        )
        query = self._apply_filters(query, filters).order_by(rank.desc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.all()

        max_rank = max((float(row.rank) for row in rows), default=0.0) or 1.0

        members = []
        for row in rows:
            member = profile_to_member(
                row.id, row.name, row.email, row.phone, row.member_type, row.profile_data
            )
            member.keyword_score = float(row.rank) / max_rank
            members.append(member)

        logger.debug("Keyword search %r returned %d rows", search_phrase, len(members))
        return members
