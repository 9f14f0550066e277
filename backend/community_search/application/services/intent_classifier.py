"""Rule-based intent classifier for member search queries.

Each intent owns a list of weighted regex rules. A rule contributes
``weight × number of non-overlapping matches``; the intent with the highest
total wins and its score, divided by ``_CONFIDENCE_SCALE``, becomes the
confidence.
"""

import logging
import re
from dataclasses import dataclass

from community_search.domain.entities import Intent, IntentResult

logger = logging.getLogger(__name__)

DEFAULT_INTENT = Intent.FIND_BUSINESS
DEFAULT_CONFIDENCE = 0.3

# Raw score that maps to full confidence.
_CONFIDENCE_SCALE = 1.0

# Secondary intent must reach this share of the primary's raw score.
_SECONDARY_RATIO = 0.5

_YEAR = r"(?:19[5-9]\d|20\d{2})"
_BRANCH = (
    r"(?:mechanical|mech|civil|ece|eee|cse|eie|textile|chemical|production|"
    r"automobile|aeronautical|biotech(?:nology)?|computer science|"
    r"information technology|instrumentation|metallurgy)"
)
_ALUMNI = r"(?:alumni|alumnus|batch(?:mates?)?|passouts?|pass outs?|graduates?|classmates?)"
_VENTURE = (
    r"(?:business(?:es)?|startups?|compan(?:y|ies)|firms?|enterprises?|"
    r"entrepreneurs?|founders?|owners?|ventures?)"
)


@dataclass(frozen=True)
class IntentRule:
    """One weighted pattern contributing to an intent's score."""

    identifier: str
    pattern: re.Pattern[str]
    weight: float


def _rule(identifier: str, pattern: str, weight: float) -> IntentRule:
    return IntentRule(identifier, re.compile(pattern), weight)


INTENT_RULES: dict[Intent, list[IntentRule]] = {
    Intent.FIND_BUSINESS: [
        _rule(
            "business_keyword",
            r"\b(?:compan(?:y|ies)|business(?:es)?|firms?|agenc(?:y|ies)|vendors?|"
            r"suppliers?|manufacturers?|contractors?|dealers?|distributors?|"
            r"exporters?|importers?|traders?|providers?|freelancers?|consultants?|"
            r"consultancy|developers?|designers?|architects?|builders?)\b",
            0.3,
        ),
        _rule(
            "service_request",
            r"\b(?:need(?:ed)?|looking for|require|recommend|hire|hiring|"
            r"who (?:can|does|provides|offers)|anyone (?:doing|providing|offering|who can))\b",
            0.25,
        ),
        _rule(
            "service_domain",
            r"\b(?:web development|app development|software|digital marketing|"
            r"it services|it consulting|consulting|construction|manufacturing|"
            r"real estate|logistics|packaging|printing|interior|catering|export|"
            r"import|trading|insurance|recruitment|services?)\b",
            0.2,
        ),
        _rule(
            "turnover",
            r"\b(?:turnover|revenue|crores?|cr|lakhs?)\b",
            0.2,
        ),
    ],
    Intent.FIND_PEERS: [
        _rule(
            "peer_keyword",
            r"\b(?:batch(?:mates?)?|classmates?|passouts?|pass outs?|passed out|"
            r"alumni|alumnus|graduates?|graduated|juniors?|seniors?)\b",
            0.35,
        ),
        _rule("graduation_year", rf"\b{_YEAR}\b", 0.3),
        _rule(
            "short_year_batch",
            r"(?<!\d)'?\d{2}\s*(?:batch|passouts?|grads?)\b",
            0.3,
        ),
        _rule("branch", rf"\b{_BRANCH}\b", 0.2),
        _rule(
            "same_cohort",
            r"\b(?:from|of|in) (?:my|our|the same) (?:batch|year|class|college|branch|department)\b",
            0.3,
        ),
    ],
    Intent.FIND_SPECIFIC_PERSON: [
        _rule(
            "contact_request",
            r"\b(?:contact|phone(?: number)?|mobile(?: number)?|e-?mail|number|reach)"
            r"(?: details)? (?:of|for)\b",
            0.4,
        ),
        _rule(
            "person_lookup",
            r"\b(?:who is|where is|anyone named|somebody named|someone named|"
            r"person named|member named|called|know)\b",
            0.35,
        ),
        _rule("honorific", r"\b(?:mr|mrs|ms|dr|shri|smt|prof)\.?\s", 0.4),
        _rule("profile_request", r"\b(?:profile|details) of\b", 0.3),
    ],
    Intent.FIND_ALUMNI_BUSINESS: [
        _rule("alumni_with_venture", rf"\b{_ALUMNI}\b.*?\b{_VENTURE}\b", 0.5),
        _rule(
            "entrepreneur",
            r"\b(?:entrepreneurs?|founders?|co-?founders?|business owners?|"
            r"run(?:s|ning)? (?:a |an |their own |own )?(?:business|company|startup|firm))\b",
            0.35,
        ),
        _rule("year_with_venture", rf"\b{_YEAR}\b.*?\b{_VENTURE}\b", 0.3),
    ],
}


class IntentClassifier:
    """Pure scoring function over the weighted rule table."""

    def __init__(
        self,
        rules: dict[Intent, list[IntentRule]] | None = None,
        confidence_scale: float = _CONFIDENCE_SCALE,
    ):
        self._rules = rules or INTENT_RULES
        self._scale = confidence_scale

    def classify(self, query: str) -> IntentResult:
        """Score ``query`` against every intent and pick the strongest."""
        text = query.strip().lower()

        scores: dict[Intent, float] = {}
        matched: list[str] = []
        for intent, rules in self._rules.items():
            total = 0.0
            for rule in rules:
                hits = len(rule.pattern.findall(text))
                if hits:
                    total += rule.weight * hits
                    matched.append(f"{intent.value}:{rule.identifier}")
            scores[intent] = round(total, 6)

        score_map = {intent.value: score for intent, score in scores.items()}

        best_score = max(scores.values(), default=0.0)
        if best_score <= 0:
            logger.debug("No intent rules matched for %r, defaulting", query)
            return IntentResult(
                primary=DEFAULT_INTENT,
                confidence=DEFAULT_CONFIDENCE,
                scores=score_map,
            )

        # First intent in table order wins ties.
        primary = next(i for i, s in scores.items() if s == best_score)

        secondary = None
        runner_up = 0.0
        for intent, score in scores.items():
            if intent is primary or score <= 0:
                continue
            if score >= best_score * _SECONDARY_RATIO and score > runner_up:
                secondary, runner_up = intent, score

        confidence = min(1.0, max(0.0, best_score / self._scale))

        logger.debug(
            "Intent %s (%.2f), secondary=%s, patterns=%s",
            primary.value,
            confidence,
            secondary.value if secondary else None,
            matched,
        )
        return IntentResult(
            primary=primary,
            confidence=round(confidence, 4),
            secondary=secondary,
            matched_patterns=matched,
            scores=score_map,
        )
