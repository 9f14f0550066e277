"""Hybrid extraction coordinator — regex first, generative fallback when needed.

States: REGEX_ONLY → DONE, or REGEX_ONLY → LLM_FALLBACK → MERGE → DONE, with
ERROR_RECOVERY → DONE reachable from the fallback path. The traversed states
are recorded on the result for tracing.
"""

import logging
import re
import time
from enum import Enum

from community_search.application.services import pattern_library as patterns
from community_search.application.services.intent_classifier import IntentClassifier
from community_search.application.services.llm_extraction_service import LLMExtractionService
from community_search.application.services.name_matching import has_name_shaped_substring
from community_search.application.services.regex_extractor import RegexExtractor
from community_search.domain.entities import (
    ExtractedEntities,
    ExtractionMethod,
    ExtractionResult,
    GenerativeExtraction,
    Intent,
    IntentResult,
    RegexExtractionResult,
)

logger = logging.getLogger(__name__)

DEFAULT_REGEX_THRESHOLD = 0.5
DEFAULT_INTENT_THRESHOLD = 0.6

_REGEX_WEIGHT = 0.4
_LLM_WEIGHT = 0.6
_RECOVERY_FACTOR = 0.8
_RECOVERY_FLOOR = 0.3

_CONJUNCTION = re.compile(r"\b(?:and|or|but)\b", re.IGNORECASE)


class ExtractionState(str, Enum):
    REGEX_ONLY = "regex_only"
    LLM_FALLBACK = "llm_fallback"
    MERGE = "merge"
    ERROR_RECOVERY = "error_recovery"
    DONE = "done"


def fallback_reasons(
    query: str,
    regex_result: RegexExtractionResult,
    intent_result: IntentResult,
    *,
    regex_threshold: float = DEFAULT_REGEX_THRESHOLD,
    intent_threshold: float = DEFAULT_INTENT_THRESHOLD,
) -> list[str]:
    """Every reason the generative path should run; empty means regex is enough."""
    reasons = []
    if regex_result.confidence < regex_threshold:
        reasons.append("low_regex_confidence")
    if intent_result.confidence < intent_threshold:
        reasons.append("low_intent_confidence")
    if (
        intent_result.primary is Intent.FIND_SPECIFIC_PERSON
        and not has_name_shaped_substring(query)
    ):
        reasons.append("person_without_name")
    if _CONJUNCTION.search(query):
        reasons.append("compound_query")
    if not regex_result.matched_families:
        reasons.append("no_pattern_match")
    return reasons


def merge_entities(
    regex_entities: ExtractedEntities,
    llm_entities: ExtractedEntities,
) -> tuple[ExtractedEntities, dict[str, str]]:
    """Field-by-field merge; returns the entities plus per-field provenance."""
    sources: dict[str, str] = {}

    def prefer_regex(field: str, regex_value, llm_value):
        if regex_value:
            sources[field] = "regex"
            return regex_value
        if llm_value:
            sources[field] = "llm"
            return llm_value
        return None

    def union(field: str, regex_values: list, llm_values: list) -> list:
        merged = patterns.dedupe([*regex_values, *llm_values])
        if regex_values and len(merged) > len(patterns.dedupe(regex_values)):
            sources[field] = "regex+llm"
        elif regex_values:
            sources[field] = "regex"
        elif merged:
            sources[field] = "llm"
        return merged

    def prefer_llm(field: str, llm_value):
        if llm_value:
            sources[field] = "llm"
        return llm_value or None

    graduation_year = prefer_regex(
        "graduation_year", regex_entities.graduation_year, llm_entities.graduation_year
    )
    skills, services = patterns.enforce_disjoint(
        union("skills", regex_entities.skills, llm_entities.skills),
        union("services", regex_entities.services, llm_entities.services),
    )

    merged = ExtractedEntities(
        graduation_year=list(graduation_year or []),
        location=prefer_regex("location", regex_entities.location, llm_entities.location),
        degree=union("degree", regex_entities.degree, llm_entities.degree),
        branch=prefer_regex("branch", regex_entities.branch, llm_entities.branch),
        skills=skills,
        services=services,
        turnover_requirement=prefer_regex(
            "turnover_requirement",
            regex_entities.turnover_requirement,
            llm_entities.turnover_requirement,
        ),
        name=prefer_llm("name", llm_entities.name),
        organization_name=prefer_llm("organization_name", llm_entities.organization_name),
    )
    return merged, sources


class HybridExtractor:
    """Coordinates the classifier, the regex extractor and the generative adapter."""

    def __init__(
        self,
        intent_classifier: IntentClassifier,
        regex_extractor: RegexExtractor,
        llm_extractor: LLMExtractionService | None = None,
        *,
        regex_threshold: float = DEFAULT_REGEX_THRESHOLD,
        intent_threshold: float = DEFAULT_INTENT_THRESHOLD,
    ):
        self._classifier = intent_classifier
        self._regex = regex_extractor
        self._llm = llm_extractor
        self._regex_threshold = regex_threshold
        self._intent_threshold = intent_threshold

    async def extract(
        self,
        query: str,
        conversation_context: str | None = None,
    ) -> ExtractionResult:
        start = time.monotonic()
        states = [ExtractionState.REGEX_ONLY.value]

        intent_result = self._classifier.classify(query)
        regex_result = self._regex.extract(query)

        reasons = fallback_reasons(
            query,
            regex_result,
            intent_result,
            regex_threshold=self._regex_threshold,
            intent_threshold=self._intent_threshold,
        )

        if not reasons:
            states.append(ExtractionState.DONE.value)
            return self._regex_only(query, intent_result, regex_result, states, start)

        if self._llm is None:
            logger.info("Generative fallback wanted (%s) but no extractor is configured", reasons)
            states.append(ExtractionState.DONE.value)
            result = self._regex_only(query, intent_result, regex_result, states, start)
            result.fallback_reasons = reasons
            return result

        logger.info("Generative fallback for %r, reasons: %s", query, ", ".join(reasons))
        states.append(ExtractionState.LLM_FALLBACK.value)
        try:
            llm_result = await self._llm.extract(query, intent_result.primary, conversation_context)
            states.append(ExtractionState.MERGE.value)
            result = self._merge(query, intent_result, regex_result, llm_result, states, start)
        except Exception as exc:
            logger.warning("Generative extraction failed, using regex result: %s", exc)
            states.extend([ExtractionState.ERROR_RECOVERY.value, ExtractionState.DONE.value])
            result = self._regex_only(query, intent_result, regex_result, states, start)
            result.confidence = round(
                max(_RECOVERY_FLOOR, regex_result.confidence * _RECOVERY_FACTOR), 4
            )
            result.error = str(exc)
            result.llm_used = True

        result.fallback_reasons = reasons
        return result

    def _regex_only(
        self,
        query: str,
        intent_result: IntentResult,
        regex_result: RegexExtractionResult,
        states: list[str],
        start: float,
    ) -> ExtractionResult:
        return ExtractionResult(
            intent=intent_result.primary,
            entities=regex_result.entities,
            confidence=regex_result.confidence,
            method=ExtractionMethod.REGEX,
            search_query=query.strip(),
            intent_result=intent_result,
            extraction_time_ms=(time.monotonic() - start) * 1000,
            matched_families=list(regex_result.matched_families),
            field_sources={f: "regex" for f in regex_result.entities.to_dict()},
            states=states,
        )

    def _merge(
        self,
        query: str,
        intent_result: IntentResult,
        regex_result: RegexExtractionResult,
        llm_result: GenerativeExtraction,
        states: list[str],
        start: float,
    ) -> ExtractionResult:
        entities, sources = merge_entities(regex_result.entities, llm_result.entities)

        regex_has_data = not regex_result.entities.is_empty()
        llm_has_data = not llm_result.entities.is_empty()
        if regex_has_data and llm_has_data:
            method = ExtractionMethod.HYBRID
        elif llm_has_data:
            method = ExtractionMethod.LLM
        else:
            method = ExtractionMethod.REGEX

        confidence = _REGEX_WEIGHT * regex_result.confidence + _LLM_WEIGHT * llm_result.confidence
        states.append(ExtractionState.DONE.value)

        return ExtractionResult(
            intent=llm_result.intent or intent_result.primary,
            entities=entities,
            confidence=round(min(1.0, max(0.0, confidence)), 4),
            method=method,
            search_query=llm_result.search_query or query.strip(),
            intent_result=intent_result,
            extraction_time_ms=(time.monotonic() - start) * 1000,
            matched_families=list(regex_result.matched_families),
            field_sources=sources,
            llm_used=True,
            states=states,
        )
