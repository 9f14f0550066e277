from .member_search_repository import PgMemberSearchRepository

__all__ = [
    "PgMemberSearchRepository",
]
