"""Regex entity extractor — structured entities from pattern matching only.

Each entity family has its own recognizer; the confidence of the result
depends on how many families fired.
"""

import logging
from datetime import datetime

from community_search.application.services import pattern_library as patterns
from community_search.domain.entities import ExtractedEntities, RegexExtractionResult

logger = logging.getLogger(__name__)

# Entity family identifiers reported in ``matched_families``.
FAMILY_YEAR = "graduation_year"
FAMILY_LOCATION = "location"
FAMILY_DEGREE = "degree"
FAMILY_BRANCH = "branch"
FAMILY_SKILLS = "skills"
FAMILY_SERVICES = "services"
FAMILY_TURNOVER = "turnover"

_SINGLE_FAMILY_CONFIDENCE = 0.6
_TWO_FAMILY_CONFIDENCE = 0.75
_PER_EXTRA_FAMILY = 0.1
_MAX_BASE_CONFIDENCE = 0.95
_YEAR_BONUS = 0.05
_WEAK_SIGNAL_PENALTY = 0.05


def score_families(families: list[str]) -> float:
    """Confidence for a set of fired entity families."""
    count = len(families)
    if count == 0:
        return 0.0
    if count == 1:
        confidence = _SINGLE_FAMILY_CONFIDENCE
    elif count == 2:
        confidence = _TWO_FAMILY_CONFIDENCE
    else:
        confidence = min(
            _MAX_BASE_CONFIDENCE,
            _TWO_FAMILY_CONFIDENCE + _PER_EXTRA_FAMILY * (count - 2),
        )

    if FAMILY_YEAR in families:
        confidence += _YEAR_BONUS
    if count == 1 and families[0] in (FAMILY_SKILLS, FAMILY_SERVICES):
        confidence -= _WEAK_SIGNAL_PENALTY

    return round(min(1.0, max(0.0, confidence)), 4)


class RegexExtractor:
    """Extracts years, location, degree, branch, skills, services and turnover tier."""

    def __init__(self, current_year: int | None = None):
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or datetime.now().year

    def extract(self, query: str) -> RegexExtractionResult:
        text = query.strip()
        entities = ExtractedEntities()
        families: list[str] = []

        years = self.extract_years(text)
        if years:
            entities.graduation_year = years
            families.append(FAMILY_YEAR)

        location = patterns.lookup_city(text) or patterns.fallback_location(text)
        if location:
            entities.location = location
            families.append(FAMILY_LOCATION)

        degrees = patterns.find_degrees(text)
        if degrees:
            entities.degree = degrees
            families.append(FAMILY_DEGREE)

        branch = patterns.find_branch(text)
        if branch:
            entities.branch = branch
            families.append(FAMILY_BRANCH)

        skills, services = patterns.find_skills_and_services(text)
        if skills:
            entities.skills = skills
            families.append(FAMILY_SKILLS)
        if services:
            entities.services = services
            families.append(FAMILY_SERVICES)

        tier = patterns.find_turnover_tier(text)
        if tier:
            entities.turnover_requirement = tier
            families.append(FAMILY_TURNOVER)

        confidence = score_families(families)
        logger.debug(
            "Regex extraction for %r: families=%s confidence=%.2f",
            query,
            families,
            confidence,
        )
        return RegexExtractionResult(
            entities=entities,
            confidence=confidence,
            matched_families=families,
        )

    def extract_years(self, text: str) -> list[int]:
        """Graduation years from 4-digit years, year ranges and '95-batch style tokens."""
        lowered = text.lower()
        current = self.current_year
        years: set[int] = set()

        for match in patterns.YEAR_RANGE.finditer(lowered):
            start, end = int(match.group(1)), int(match.group(2))
            if start <= end and end - start <= patterns.MAX_YEAR_RANGE_SPAN:
                years.update(range(start, end + 1))

        for match in patterns.FOUR_DIGIT_YEAR.finditer(lowered):
            years.add(int(match.group(1)))

        for pattern in patterns.TWO_DIGIT_YEAR_PATTERNS:
            for match in pattern.finditer(lowered):
                years.add(self.expand_two_digit_year(int(match.group(1))))

        return sorted(
            y for y in years
            if patterns.EARLIEST_GRADUATION_YEAR <= y <= current
        )

    def expand_two_digit_year(self, yy: int) -> int:
        """'05 → 2005, '95 → 1995, relative to the current century."""
        if yy <= self.current_year % 100:
            return 2000 + yy
        return 1900 + yy
