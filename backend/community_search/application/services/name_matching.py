"""Name, email and phone normalization shared by extraction and retrieval.

One definition of "this query names that member" for the whole pipeline:
the coordinator uses it to spot name-shaped queries, the generative adapter
to clean extracted names, and the retriever for the exact-match override.
"""

import re

from community_search.application.services.pattern_library import is_domain_keyword

HONORIFICS = frozenset({
    "mr", "mrs", "ms", "miss", "dr", "prof", "shri", "sri", "smt", "thiru",
    "tmt", "selvi", "er", "adv", "capt", "col",
})

_APOSTROPHES = re.compile(r"['’]")
_NON_WORD = re.compile(r"[^\w\s]", re.UNICODE)
_NAME_SHAPED = re.compile(r"\b[A-Z][a-z]+\s+[A-Z][a-z]+\b")
_PERSON_NAME_CHARS = re.compile(r"^[^\W\d_]+(?:[\s.'’-]+[^\W\d_]+)*\.?$", re.UNICODE)
_PHONE_CHARS = re.compile(r"^\+?[\d\s().-]{7,}$")
_EDGE_PUNCTUATION = " \t\r\n?!.,;:<>\"'()[]"


def name_tokens(name: str) -> list[str]:
    """Lower-cased name tokens without honorifics, punctuation or single-letter initials."""
    if not name:
        return []
    text = _APOSTROPHES.sub("", name.lower())
    text = _NON_WORD.sub(" ", text)
    return [
        token
        for token in text.split()
        if token not in HONORIFICS and len(token) > 1
    ]


def normalize_name(name: str) -> str:
    return " ".join(name_tokens(name))


def strip_honorifics(name: str) -> str:
    """Display form of ``name`` with leading/trailing honorific tokens removed."""
    parts = [p for p in name.split() if p.rstrip(".").lower() not in HONORIFICS]
    return " ".join(parts).strip(_EDGE_PUNCTUATION)


def normalize_email(value: str | None) -> str:
    if not value:
        return ""
    return value.strip(_EDGE_PUNCTUATION).lower()


def normalize_phone(value: str | None) -> str:
    """Digits only; a leading country code is dropped for 10-digit comparison."""
    if not value:
        return ""
    digits = re.sub(r"\D", "", value)
    if len(digits) > 10:
        digits = digits[-10:]
    return digits


def looks_like_email(text: str) -> bool:
    stripped = text.strip(_EDGE_PUNCTUATION)
    return "@" in stripped and " " not in stripped


def looks_like_phone(text: str) -> bool:
    stripped = text.strip()
    return bool(_PHONE_CHARS.match(stripped)) and len(re.sub(r"\D", "", stripped)) >= 7


def has_name_shaped_substring(text: str) -> bool:
    """True when ``text`` contains two consecutive title-cased words."""
    return bool(_NAME_SHAPED.search(text))


def looks_like_person_name(text: str) -> bool:
    """A bare 1–3 token name: no digits, no '@', no special punctuation, no topical words."""
    stripped = text.strip()
    if not stripped or "@" in stripped:
        return False
    if not _PERSON_NAME_CHARS.match(stripped):
        return False
    tokens = stripped.split()
    if not 1 <= len(tokens) <= 3:
        return False
    return not any(is_domain_keyword(token.strip(".'’-")) for token in tokens)


def _is_consecutive_subsequence(needle: list[str], haystack: list[str]) -> bool:
    width = len(needle)
    return any(
        haystack[i:i + width] == needle
        for i in range(len(haystack) - width + 1)
    )


def is_exact_name_match(query: str, name: str) -> bool:
    """Name equality under the normalization above.

    Matches when the tokens are equal, when a single query token is the
    first or last name token, when the query is a consecutive run of name
    tokens, or when every query token is present and the first two line up
    with the name's first two.
    """
    query_tokens = name_tokens(query)
    candidate_tokens = name_tokens(name)
    if not query_tokens or not candidate_tokens:
        return False

    if query_tokens == candidate_tokens:
        return True

    if len(query_tokens) == 1:
        return query_tokens[0] in (candidate_tokens[0], candidate_tokens[-1])

    if _is_consecutive_subsequence(query_tokens, candidate_tokens):
        return True

    return (
        set(query_tokens) <= set(candidate_tokens)
        and query_tokens[:2] == candidate_tokens[:2]
    )


def is_exact_match(
    query: str,
    *,
    name: str | None,
    email: str | None = None,
    phone: str | None = None,
) -> bool:
    """True when ``query`` identifies the member by name, email or phone."""
    if not query or not query.strip():
        return False

    if looks_like_email(query):
        expected = normalize_email(email)
        return bool(expected) and normalize_email(query) == expected

    if looks_like_phone(query):
        expected = normalize_phone(phone)
        return bool(expected) and normalize_phone(query) == expected

    return is_exact_name_match(query, name or "")
