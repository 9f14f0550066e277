"""Pattern library — normalization tables and keyword sets for query understanding.

Pure data plus pure helper functions. Everything here is deterministic and
side-effect free so the classifier, the extractors and the retriever can
share one vocabulary.
"""

import re
from collections.abc import Iterable

from community_search.domain.entities import TurnoverTier


# ── Locations ────────────────────────────────────────────────────────

CITY_ALIASES: dict[str, str] = {
    "chennai": "Chennai",
    "madras": "Chennai",
    "bangalore": "Bangalore",
    "bengaluru": "Bangalore",
    "hyderabad": "Hyderabad",
    "secunderabad": "Hyderabad",
    "mumbai": "Mumbai",
    "bombay": "Mumbai",
    "navi mumbai": "Mumbai",
    "delhi": "Delhi",
    "new delhi": "Delhi",
    "gurgaon": "Gurgaon",
    "gurugram": "Gurgaon",
    "noida": "Noida",
    "pune": "Pune",
    "kolkata": "Kolkata",
    "calcutta": "Kolkata",
    "coimbatore": "Coimbatore",
    "kovai": "Coimbatore",
    "madurai": "Madurai",
    "trichy": "Trichy",
    "tiruchy": "Trichy",
    "tiruchirappalli": "Trichy",
    "salem": "Salem",
    "erode": "Erode",
    "tiruppur": "Tiruppur",
    "tirupur": "Tiruppur",
    "tirunelveli": "Tirunelveli",
    "vellore": "Vellore",
    "thanjavur": "Thanjavur",
    "karur": "Karur",
    "hosur": "Hosur",
    "pondicherry": "Puducherry",
    "puducherry": "Puducherry",
    "kochi": "Kochi",
    "cochin": "Kochi",
    "trivandrum": "Thiruvananthapuram",
    "thiruvananthapuram": "Thiruvananthapuram",
    "mysore": "Mysuru",
    "mysuru": "Mysuru",
    "ahmedabad": "Ahmedabad",
    "jaipur": "Jaipur",
    "vizag": "Visakhapatnam",
    "visakhapatnam": "Visakhapatnam",
    "dubai": "Dubai",
    "singapore": "Singapore",
}

# Longest alias first so "navi mumbai" wins over "mumbai".
_CITY_PATTERN = re.compile(
    r"\b("
    + "|".join(re.escape(a) for a in sorted(CITY_ALIASES, key=len, reverse=True))
    + r")\b"
)

_LOCATION_FALLBACK_PATTERN = re.compile(
    r"\b(?:in|at|from|near|around)\s+([a-z][a-z]{2,})\b"
)

# Tokens that follow "in/at" without being a place.
_NON_LOCATION_TOKENS = frozenset({
    "the", "our", "my", "any", "all", "this", "that", "these", "those", "touch",
    "need", "charge", "contact", "business", "businesses", "batch", "year",
    "years", "same", "college", "school", "campus", "company", "companies",
    "area", "city", "town", "field", "domain", "industry", "sector", "least",
    "most", "order", "general", "particular", "person", "house", "office",
    "home", "work", "india",
})


def lookup_city(text: str) -> str | None:
    """Canonical city for the first known alias in ``text`` (lower-cased)."""
    match = _CITY_PATTERN.search(text.lower())
    if match is None:
        return None
    return CITY_ALIASES[match.group(1)]


def fallback_location(text: str) -> str | None:
    """Title-cased token after "in/at/from" when no known city matched."""
    for match in _LOCATION_FALLBACK_PATTERN.finditer(text.lower()):
        token = match.group(1)
        if token in _NON_LOCATION_TOKENS or token in STOP_WORDS:
            continue
        if is_domain_keyword(token):
            continue
        return token.title()
    return None


def normalize_city(value: str | None) -> str | None:
    """Map a free-form city string to its canonical name when known."""
    if not value or not value.strip():
        return None
    cleaned = value.strip()
    return CITY_ALIASES.get(cleaned.lower(), cleaned.title())


# ── Degrees & branches ───────────────────────────────────────────────

# Dotted or all-caps forms only for BE/ME so "find me" is not a degree.
_DEGREE_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b[bB]\.?\s?[tT][eE][cC][hH]\b"), "B.Tech"),
    (re.compile(r"\b[mM]\.?\s?[tT][eE][cC][hH]\b"), "M.Tech"),
    (re.compile(r"\b(?:[bB]\.[eE]\.?(?![A-Za-z])|BE\b)"), "B.E"),
    (re.compile(r"\b(?:[mM]\.[eE]\.?(?![A-Za-z])|ME\b)"), "M.E"),
    (re.compile(r"\bmba\b", re.IGNORECASE), "MBA"),
    (re.compile(r"\bmca\b", re.IGNORECASE), "MCA"),
    (re.compile(r"\bbca\b", re.IGNORECASE), "BCA"),
    (re.compile(r"\bbba\b", re.IGNORECASE), "BBA"),
    (re.compile(r"\bb\.?\s?sc\b", re.IGNORECASE), "B.Sc"),
    (re.compile(r"\bm\.?\s?sc\b", re.IGNORECASE), "M.Sc"),
    (re.compile(r"\bb\.?\s?com\b", re.IGNORECASE), "B.Com"),
    (re.compile(r"\bm\.?\s?com\b", re.IGNORECASE), "M.Com"),
    (re.compile(r"\bb\.?\s?arch\b", re.IGNORECASE), "B.Arch"),
    (re.compile(r"\bph\.?\s?d\b", re.IGNORECASE), "PhD"),
    (re.compile(r"\bdiploma\b", re.IGNORECASE), "Diploma"),
]

BRANCH_SYNONYMS: dict[str, tuple[str, ...]] = {
    "mechanical": ("Mechanical",),
    "mech": ("Mechanical",),
    "civil": ("Civil",),
    "electrical and electronics": ("EEE", "Electrical and Electronics"),
    "eee": ("EEE", "Electrical and Electronics"),
    "electronics and communication": ("ECE", "Electronics and Communication"),
    "ece": ("ECE", "Electronics and Communication"),
    "computer science": ("CSE", "Computer Science"),
    "cse": ("CSE", "Computer Science"),
    "information technology": ("IT", "Information Technology"),
    "instrumentation": ("EIE", "Instrumentation"),
    "eie": ("EIE", "Instrumentation"),
    "textile": ("Textile",),
    "chemical": ("Chemical",),
    "production": ("Production",),
    "automobile": ("Automobile",),
    "aeronautical": ("Aeronautical",),
    "biotechnology": ("Biotechnology",),
    "biotech": ("Biotechnology",),
    "metallurgy": ("Metallurgy",),
}

_BRANCH_PATTERN = re.compile(
    r"\b("
    + "|".join(re.escape(k) for k in sorted(BRANCH_SYNONYMS, key=len, reverse=True))
    + r")\b"
)


def find_degrees(text: str) -> list[str]:
    """Canonical degree labels in order of appearance (case-sensitive input)."""
    found: list[tuple[int, str]] = []
    for pattern, label in _DEGREE_RULES:
        match = pattern.search(text)
        if match is not None:
            found.append((match.start(), label))
    found.sort()
    return dedupe(label for _, label in found)


def find_branch(text: str) -> str | list[str] | None:
    """Branch for the first key in ``text``; several synonyms come back as a list."""
    match = _BRANCH_PATTERN.search(text.lower())
    if match is None:
        return None
    labels = BRANCH_SYNONYMS[match.group(1)]
    if len(labels) == 1:
        return labels[0]
    return list(labels)


def normalize_degree(value: str) -> str:
    """Canonical label for a free-form degree string, else the trimmed input."""
    labels = find_degrees(value)
    return labels[0] if labels else value.strip()


# ── Skills & services ────────────────────────────────────────────────
#
# Surface form → canonical label. The two tables never share a surface
# form or a canonical label.

SKILL_TERMS: dict[str, str] = {
    "python": "Python",
    "java": "Java",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "react": "React",
    "node.js": "Node.js",
    "nodejs": "Node.js",
    "angular": "Angular",
    "flutter": "Flutter",
    "android": "Android",
    "ios": "iOS",
    "full stack": "Full Stack",
    "sql": "SQL",
    "ai": "AI",
    "artificial intelligence": "AI",
    "ml": "Machine Learning",
    "machine learning": "Machine Learning",
    "deep learning": "Deep Learning",
    "data science": "Data Science",
    "data analytics": "Data Analytics",
    "cloud computing": "Cloud Computing",
    "aws": "AWS",
    "azure": "Azure",
    "devops": "DevOps",
    "blockchain": "Blockchain",
    "cybersecurity": "Cybersecurity",
    "cyber security": "Cybersecurity",
    "embedded systems": "Embedded Systems",
    "iot": "IoT",
    "vlsi": "VLSI",
    "plc": "PLC",
    "autocad": "AutoCAD",
    "solidworks": "SolidWorks",
    "catia": "CATIA",
    "cad": "CAD",
    "sap": "SAP",
    "erp": "ERP",
    "seo": "SEO",
    "ui/ux": "UI/UX",
    "project management": "Project Management",
    "six sigma": "Six Sigma",
    "accounting": "Accounting",
    "taxation": "Taxation",
    "finance": "Finance",
    "sales": "Sales",
    "leadership": "Leadership",
}

SERVICE_TERMS: dict[str, str] = {
    "web development": "Web Development",
    "web developer": "Web Development",
    "website design": "Website Design",
    "app development": "App Development",
    "app developer": "App Development",
    "mobile app development": "Mobile App Development",
    "software development": "Software Development",
    "digital marketing": "Digital Marketing",
    "it consulting": "IT Consulting",
    "business consulting": "Business Consulting",
    "management consulting": "Management Consulting",
    "consulting": "Consulting",
    "consultancy": "Consulting",
    "consultant": "Consulting",
    "construction": "Construction",
    "builder": "Construction",
    "civil contracting": "Civil Contracting",
    "contractor": "Civil Contracting",
    "interior design": "Interior Design",
    "interior designer": "Interior Design",
    "architecture": "Architecture",
    "architect": "Architecture",
    "real estate": "Real Estate",
    "manufacturing": "Manufacturing",
    "manufacturer": "Manufacturing",
    "logistics": "Logistics",
    "packaging": "Packaging",
    "printing": "Printing",
    "catering": "Catering",
    "caterer": "Catering",
    "event management": "Event Management",
    "legal services": "Legal Services",
    "chartered accountancy": "Chartered Accountancy",
    "auditing": "Auditing",
    "auditor": "Auditing",
    "insurance": "Insurance",
    "recruitment": "Recruitment",
    "recruiter": "Recruitment",
    "staffing": "Staffing",
    "corporate training": "Corporate Training",
    "healthcare": "Healthcare",
    "export": "Export",
    "exporter": "Export",
    "import": "Import",
    "importer": "Import",
    "trading": "Trading",
    "trader": "Trading",
    "photography": "Photography",
    "photographer": "Photography",
    "travel": "Travel",
    "solar": "Solar",
    "industrial automation": "Industrial Automation",
    "garments": "Garments",
    "furniture": "Furniture",
    "security services": "Security Services",
}


def _term_pattern(terms: Iterable[str]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(t) for t in sorted(terms, key=len, reverse=True))
    # Optional plural; the lookarounds stand in for \b around "node.js", "ui/ux".
    return re.compile(r"(?<![a-z0-9])(" + alternation + r")s?(?![a-z0-9])")


_SKILL_PATTERN = _term_pattern(SKILL_TERMS)
_SERVICE_PATTERN = _term_pattern(SERVICE_TERMS)
_IT_TOKEN = re.compile(r"\bIT\b")


def _match_terms(text: str, pattern: re.Pattern[str], table: dict[str, str]) -> list[tuple[int, int, str]]:
    return [
        (m.start(), m.end(), table[m.group(1)])
        for m in pattern.finditer(text.lower())
    ]


def find_skills_and_services(text: str) -> tuple[list[str], list[str]]:
    """Skill and service labels in ``text``; a span is claimed by one table only.

    Longer surface forms win over shorter ones they contain, so
    "mobile app development" does not also yield "App Development".
    """
    skill_hits = _match_terms(text, _SKILL_PATTERN, SKILL_TERMS)
    service_hits = _match_terms(text, _SERVICE_PATTERN, SERVICE_TERMS)

    # Service phrases are longer and more specific than skill keywords.
    service_spans = [(s, e) for s, e, _ in service_hits]
    skill_hits = [
        hit for hit in skill_hits
        if not any(s <= hit[0] and hit[1] <= e for s, e in service_spans)
    ]

    skills = dedupe(label for _, _, label in skill_hits)
    services = dedupe(label for _, _, label in service_hits)

    if _IT_TOKEN.search(text) and "IT" not in skills:
        skills.append("IT")

    return enforce_disjoint(skills, services)


_SKILL_LABELS = frozenset(v.lower() for v in SKILL_TERMS.values())
_SERVICE_LABELS = frozenset(v.lower() for v in SERVICE_TERMS.values())


def classify_term(term: str) -> str | None:
    """'skill', 'service' or None for a free-form term."""
    key = term.strip().lower()
    if key in SERVICE_TERMS or key in _SERVICE_LABELS:
        return "service"
    if key in SKILL_TERMS or key in _SKILL_LABELS or term.strip() == "IT":
        return "skill"
    return None


def enforce_disjoint(skills: list[str], services: list[str]) -> tuple[list[str], list[str]]:
    """Drop terms present in both lists from the side they do not belong to.

    Known service terms stay in ``services``; everything else stays in ``skills``.
    """
    service_keys = {s.lower() for s in services}
    skill_keys = {s.lower() for s in skills}
    shared = service_keys & skill_keys
    if not shared:
        return list(skills), list(services)

    kept_skills = [
        s for s in skills
        if s.lower() not in shared or classify_term(s) != "service"
    ]
    kept_skill_keys = {s.lower() for s in kept_skills}
    kept_services = [s for s in services if s.lower() not in kept_skill_keys]
    return kept_skills, kept_services


# ── Turnover tiers ───────────────────────────────────────────────────

_COMPANY_WORDS = r"(?:turnover|revenue|compan(?:y|ies)|business(?:es)?|enterprises?|firms?)"

TURNOVER_PATTERNS: dict[TurnoverTier, list[re.Pattern[str]]] = {
    TurnoverTier.HIGH: [
        re.compile(r"\b(?:high|large|big|huge|top|highest)[\s-]+(?:turnover|revenue)\b"),
        re.compile(r"\b(?:above|over|more than|greater than|exceeding)\s+(?:rs\.?\s*)?[1-9]\d+\s*(?:cr|crores?)\b"),
        re.compile(r"\b(?:large|big)[\s-]+(?:scale[\s-]+)?(?:compan(?:y|ies)|business(?:es)?|enterprises?|firms?)\b"),
    ],
    TurnoverTier.MEDIUM: [
        re.compile(r"\b(?:medium|mid|moderate|average)[\s-]*(?:sized?|level|scale)?[\s-]*" + _COMPANY_WORDS + r"\b"),
        re.compile(r"\b[2-9]\s*(?:-|to)\s*10\s*(?:cr|crores?)\b"),
    ],
    TurnoverTier.LOW: [
        re.compile(r"\b(?:low|small)[\s-]+(?:scale[\s-]+)?" + _COMPANY_WORDS + r"\b"),
        re.compile(r"\b(?:below|under|less than)\s+(?:rs\.?\s*)?[12]\s*(?:cr|crores?)\b"),
        re.compile(r"\b(?:below|under|less than)\s+(?:rs\.?\s*)?\d+\s*lakhs?\b"),
        re.compile(r"\b(?:msme|micro enterprises?)\b"),
    ],
}

# Rupee bounds per tier: high > 10 Cr, medium 2–10 Cr, low < 2 Cr.
TURNOVER_BOUNDS: dict[TurnoverTier, tuple[int | None, int | None]] = {
    TurnoverTier.HIGH: (100_000_000, None),
    TurnoverTier.MEDIUM: (20_000_000, 100_000_000),
    TurnoverTier.LOW: (None, 20_000_000),
}


def find_turnover_tier(text: str) -> TurnoverTier | None:
    lowered = text.lower()
    for tier, patterns in TURNOVER_PATTERNS.items():
        if any(p.search(lowered) for p in patterns):
            return tier
    return None


# ── Graduation years ─────────────────────────────────────────────────

EARLIEST_GRADUATION_YEAR = 1950
MAX_YEAR_RANGE_SPAN = 15

FOUR_DIGIT_YEAR = re.compile(r"\b(19[5-9]\d|20\d{2})\b")
YEAR_RANGE = re.compile(
    r"\b(19[5-9]\d|20\d{2})\s*(?:-|–|to|and)\s*(19[5-9]\d|20\d{2})\b"
)
TWO_DIGIT_YEAR_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?<!\d)'?(\d{2})\s*(?:batch|pass[\s-]?outs?|passed out|grads?|graduates?)\b"),
    re.compile(r"\b(?:batch|class|pass[\s-]?out|graduated|graduation|grad)\s*(?:of|in|year)?\s*'?(\d{2})(?!\d)"),
]


# ── Stop words & domain vocabulary ───────────────────────────────────

STOP_WORDS = frozenset({
    # question words
    "who", "whom", "whose", "what", "which", "where", "when", "why", "how",
    # pronouns
    "i", "me", "my", "we", "us", "our", "you", "your", "he", "him", "his",
    "she", "her", "they", "them", "their", "someone", "somebody",
    "anyone", "anybody", "everyone", "people", "person", "members", "member",
    # generic verbs
    "find", "need", "needs", "show", "search", "looking", "look", "get", "give",
    "list", "want", "know", "tell", "help", "can", "could", "would",
    "should", "please", "is", "are", "was", "were", "be", "do", "does", "did",
    "have", "has", "any", "some", "all",
    # articles & fillers
    "a", "an", "the", "for", "of", "to", "with", "about", "from", "in", "at",
    "on", "by", "and", "or", "but", "there", "here", "this", "that", "these",
    "those", "details", "contact", "info", "information",
})

_DOMAIN_WORDS = frozenset({
    "batch", "alumni", "alumnus", "graduate", "graduates", "passout", "passouts",
    "company", "companies", "business", "businesses", "startup", "startups",
    "services", "service", "developer", "developers", "engineer", "engineers",
    "provider", "providers", "turnover", "revenue", "crore", "crores", "lakh",
    "entrepreneur", "entrepreneurs", "founder", "founders", "expert", "experts",
    # occupations
    "teacher", "teachers", "tutor", "tutors", "trainer", "trainers", "coach",
    "coaches", "doctor", "doctors", "lawyer", "lawyers", "advocate", "advocates",
    "auditor", "auditors", "accountant", "accountants", "consultant", "consultants",
    "designer", "designers", "architect", "architects", "contractor", "contractors",
    "photographer", "photographers", "manager", "managers", "director", "directors",
    "professor", "professors", "dealer", "dealers", "agent", "agents", "chef", "chefs",
    # activities and venues
    "class", "classes", "course", "courses", "coaching", "training", "tuition",
    "cooking", "yoga", "fitness", "music", "dance", "clinic", "hospital", "school",
    "schools", "college", "institute", "academy", "shop", "shops", "store", "stores",
    "studio", "studios", "agency", "agencies", "firm", "firms",
})


def is_domain_keyword(token: str) -> bool:
    """True for vocabulary that marks a query as topical rather than a name."""
    key = token.strip().lower()
    if not key:
        return False
    return (
        key in _DOMAIN_WORDS
        or key in SKILL_TERMS
        or key in SERVICE_TERMS
        or key in BRANCH_SYNONYMS
        or key in CITY_ALIASES
        or bool(find_degrees(token))
    )


# ── Helpers ──────────────────────────────────────────────────────────


def dedupe(items: Iterable[str]) -> list[str]:
    """Case-insensitive de-duplication that keeps first-seen order and casing."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if not item:
            continue
        key = item.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(item.strip())
    return result
