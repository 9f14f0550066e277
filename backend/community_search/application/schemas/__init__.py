from .extraction import ExtractedEntitiesPayload, GenerativeExtractionPayload
from .search import (
    ExtractedEntitiesSchema,
    ExtractionMetadataSchema,
    MemberResultSchema,
    PaginationSchema,
    ProviderStatusSchema,
    ProvidersResponseSchema,
    SearchRequest,
    SearchResponseSchema,
    UnderstandingSchema,
    UnderstandRequest,
)

__all__ = [
    "ExtractedEntitiesPayload",
    "GenerativeExtractionPayload",
    "ExtractedEntitiesSchema",
    "ExtractionMetadataSchema",
    "MemberResultSchema",
    "PaginationSchema",
    "ProviderStatusSchema",
    "ProvidersResponseSchema",
    "SearchRequest",
    "SearchResponseSchema",
    "UnderstandingSchema",
    "UnderstandRequest",
]
