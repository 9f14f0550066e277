"""Translate extracted entities into retrieval filters.

A pure function of its input: the same entities always produce an equal
``SearchFilters`` value.
"""

from community_search.application.services.pattern_library import TURNOVER_BOUNDS
from community_search.domain.entities import ExtractedEntities, SearchFilters


def entities_to_filters(entities: ExtractedEntities) -> SearchFilters:
    """Location → city, skill/service sets, turnover tier → rupee bounds, years, degrees."""
    filters = SearchFilters()

    if entities.location:
        filters.city = entities.location

    if entities.skills:
        filters.skills = list(entities.skills)

    if entities.services:
        filters.services = list(entities.services)

    if entities.turnover_requirement:
        filters.min_turnover, filters.max_turnover = TURNOVER_BOUNDS[entities.turnover_requirement]

    if entities.graduation_year:
        filters.year_of_graduation = sorted(set(entities.graduation_year))

    if entities.degree:
        filters.degree = list(entities.degree)

    return filters
