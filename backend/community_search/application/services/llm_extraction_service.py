"""Generative extraction — entities from a text-completion provider.

Builds an intent-specific instruction, asks the provider factory for a JSON
object, and turns the reply into the same ``ExtractedEntities`` shape the
regex extractor produces. Replies are parsed into a tagged result
(``ParseOk`` / ``ParseError``); an invalid reply gets exactly one corrective
re-prompt before ``ExtractionParseError`` is raised.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError

from community_search.application.schemas.extraction import GenerativeExtractionPayload
from community_search.application.services import pattern_library as patterns
from community_search.application.services.name_matching import strip_honorifics
from community_search.application.services.provider_factory import ProviderFactory
from community_search.domain.entities import (
    ChatMessage,
    ExtractedEntities,
    GenerativeExtraction,
    Intent,
    TurnoverTier,
)
from community_search.domain.exceptions import ExtractionParseError

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)

# ── Prompt templates ─────────────────────────────────────────────────

_SCHEMA_TEXT = """{
  "intent": "find_business" | "find_peers" | "find_specific_person" | "find_alumni_business",
  "entities": {
    "graduation_year": [int],
    "location": string | null,
    "degree": [string],
    "branch": string | [string] | null,
    "skills": [string],
    "services": [string],
    "turnover_requirement": "low" | "medium" | "high" | null,
    "name": string | null,
    "organization_name": string | null
  },
  "search_query": string,
  "confidence": number between 0 and 1
}"""

_BASE_INSTRUCTIONS = """You extract structured search filters from questions asked to an alumni and business community directory.
Members have: name, city, organization, designation, graduation year, degree, branch, skills, products/services and annual turnover.

General rules:
- Reply with ONE JSON object and nothing else.
- Omit what the question does not say; never invent values.
- "skills" are personal expertise (Python, AI, AutoCAD). "services" are what a business sells (web development, construction). Never put the same term in both.
- Graduation years are four-digit. "'95 batch" means 1995, "05 passout" means 2005.
- Turnover tiers: high is above 10 crore, medium is 2 to 10 crore, low is below 2 crore.
- "search_query" is a short keyword phrase for full-text search, without filler words."""

INTENT_RULE_BLOCKS: dict[Intent, str] = {
    Intent.FIND_BUSINESS: """The user wants a business or service provider.
- Put the offering in "services" and any required expertise in "skills".
- Map phrases like "big company" or "above 10 crore" to turnover_requirement.
- A city after "in" / "at" / "from" is the location.""",
    Intent.FIND_PEERS: """The user wants fellow alumni (batchmates, seniors, juniors).
- Capture every graduation year, including ranges such as 2005-2008.
- Engineering streams (Mechanical, Civil, ECE, CSE, ...) go in "branch"; degrees (B.E, MBA, ...) go in "degree".""",
    Intent.FIND_SPECIFIC_PERSON: """The user wants one particular member.
- Put the person's full name in "name" without titles such as Mr, Mrs or Dr.
- If a company is mentioned, put it in "organization_name".
- "search_query" should be the name itself.""",
    Intent.FIND_ALUMNI_BUSINESS: """The user wants alumni who run businesses.
- Capture the graduation year(s) or batch and the line of business.
- The line of business goes in "services"; expertise in "skills".""",
}


def build_extraction_messages(
    query: str,
    intent: Intent,
    conversation_context: str | None = None,
) -> list[ChatMessage]:
    """System + user messages for one extraction request."""
    system = (
        f"{_BASE_INSTRUCTIONS}\n\n"
        f"Intent-specific rules:\n{INTENT_RULE_BLOCKS[intent]}\n\n"
        f"JSON schema:\n{_SCHEMA_TEXT}"
    )
    parts = []
    if conversation_context and conversation_context.strip():
        parts.append(f"Conversation context:\n{conversation_context.strip()}")
    parts.append(f"Question: {query.strip()}")
    return [
        ChatMessage(role="system", content=system),
        ChatMessage(role="user", content="\n\n".join(parts)),
    ]


def build_correction_message(raw: str, reason: str) -> ChatMessage:
    return ChatMessage(
        role="user",
        content=(
            "Your previous reply could not be used.\n"
            f"Problem: {reason}\n"
            f"Previous reply:\n{raw[:1500]}\n\n"
            "Reply again with ONLY a JSON object matching this schema:\n"
            f"{_SCHEMA_TEXT}"
        ),
    )


# ── Reply parsing ────────────────────────────────────────────────────


@dataclass(frozen=True)
class ParseOk:
    payload: GenerativeExtractionPayload


@dataclass(frozen=True)
class ParseError:
    raw: str
    reason: str


ParseResult = ParseOk | ParseError


def extract_json_text(raw: str) -> str:
    """Strip code fences and keep the outermost ``{...}`` span."""
    text = raw.strip()
    fenced = _FENCE_PATTERN.search(text)
    if fenced:
        text = fenced.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_extraction_reply(raw: str) -> ParseResult:
    """Decode and schema-validate a provider reply."""
    if not raw or not raw.strip():
        return ParseError(raw=raw or "", reason="empty reply")

    candidate = extract_json_text(raw)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseError(raw=raw, reason=f"invalid JSON ({exc.msg} at position {exc.pos})")

    if not isinstance(data, dict):
        return ParseError(raw=raw, reason=f"expected a JSON object, got {type(data).__name__}")

    try:
        payload = GenerativeExtractionPayload.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        return ParseError(raw=raw, reason=f"schema mismatch ({problems})")

    return ParseOk(payload=payload)


# ── Service ──────────────────────────────────────────────────────────


class LLMExtractionService:
    """Generative extractor adapter on top of the provider factory."""

    def __init__(
        self,
        provider_factory: ProviderFactory,
        *,
        temperature: float = 0.1,
        max_tokens: int = 512,
        current_year: int | None = None,
    ):
        self._factory = provider_factory
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._current_year = current_year

    async def extract(
        self,
        query: str,
        intent: Intent,
        conversation_context: str | None = None,
    ) -> GenerativeExtraction:
        """Ask a provider for entities; one corrective retry on a bad reply.

        Raises:
            AllProvidersFailedError: No provider could answer.
            ExtractionParseError: The reply was unusable twice in a row.
        """
        messages = build_extraction_messages(query, intent, conversation_context)
        start = time.monotonic()

        completion = await self._factory.generate(
            messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        parsed = parse_extraction_reply(completion.content)

        if isinstance(parsed, ParseError):
            logger.warning(
                "Generative extraction reply unusable (%s), sending corrective prompt",
                parsed.reason,
            )
            retry_messages = [
                *messages,
                ChatMessage(role="assistant", content=completion.content),
                build_correction_message(parsed.raw, parsed.reason),
            ]
            completion = await self._factory.generate(
                retry_messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            parsed = parse_extraction_reply(completion.content)

        if isinstance(parsed, ParseError):
            raise ExtractionParseError(raw=parsed.raw, reason=parsed.reason)

        result = self._to_extraction(parsed.payload)
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Generative extraction via %s in %.0fms: intent=%s entities=%s",
            completion.provider or "provider",
            elapsed_ms,
            result.intent.value if result.intent else None,
            result.entities.to_dict(),
        )
        return result

    def _to_extraction(self, payload: GenerativeExtractionPayload) -> GenerativeExtraction:
        return GenerativeExtraction(
            entities=self.normalize_entities(payload),
            confidence=payload.confidence,
            intent=Intent(payload.intent) if payload.intent else None,
            search_query=payload.search_query,
        )

    def normalize_entities(self, payload: GenerativeExtractionPayload) -> ExtractedEntities:
        """Map provider output onto the canonical vocabulary of the pattern library."""
        raw = payload.entities
        current_year = self._current_year or datetime.now().year

        years: set[int] = set()
        for year in raw.graduation_year:
            if 0 <= year < 100:
                year = 2000 + year if year <= current_year % 100 else 1900 + year
            if patterns.EARLIEST_GRADUATION_YEAR <= year <= current_year:
                years.add(year)

        branch: str | list[str] | None = None
        if raw.branch:
            labels = [raw.branch] if isinstance(raw.branch, str) else raw.branch
            canonical: list[str] = []
            for label in labels:
                known = patterns.find_branch(label)
                if isinstance(known, list):
                    canonical.extend(known)
                elif known:
                    canonical.append(known)
                else:
                    canonical.append(label.strip())
            canonical = patterns.dedupe(canonical)
            if canonical:
                branch = canonical[0] if len(canonical) == 1 else canonical

        skills, services = patterns.enforce_disjoint(
            patterns.dedupe(raw.skills),
            patterns.dedupe(raw.services),
        )

        name = strip_honorifics(raw.name) if raw.name else None

        return ExtractedEntities(
            graduation_year=sorted(years),
            location=patterns.normalize_city(raw.location),
            degree=patterns.dedupe(patterns.normalize_degree(d) for d in raw.degree),
            branch=branch,
            skills=skills,
            services=services,
            turnover_requirement=(
                TurnoverTier(raw.turnover_requirement) if raw.turnover_requirement else None
            ),
            name=name or None,
            organization_name=raw.organization_name.strip() if raw.organization_name else None,
        )
